"""
Screenshot subcommand.

Writes the PNG returned by safaridriver and, on Retina displays, downscales
it to logical resolution with macOS ``sips`` when available.
"""

import argparse
import base64
import logging
import shutil
import subprocess
import time
from pathlib import Path

from ..payloads import DEVICE_PIXEL_RATIO
from .common import active_session, resolve_selector

logger = logging.getLogger(__name__)


def downscale_image(path: Path, device_pixel_ratio: float) -> bool:
    """
    Resample ``path`` to 1x logical width using sips.

    Best-effort: returns False when sips is unavailable or fails.
    """
    sips = shutil.which("sips")
    if sips is None:
        logger.debug("sips not found, keeping full-resolution screenshot")
        return False

    sips_info = subprocess.run(
        [sips, "-g", "pixelWidth", str(path)],
        capture_output=True,
        text=True,
    )
    lines = sips_info.stdout.strip().splitlines()
    try:
        current_width = int(lines[-1].split()[-1])
    except (IndexError, ValueError):
        logger.warning(f"Could not read image width from sips output: {sips_info.stdout!r}")
        return False

    target_width = round(current_width / device_pixel_ratio)
    result = subprocess.run(
        [sips, "--resampleWidth", str(target_width), str(path)],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        logger.warning(f"sips resample failed: {result.stderr.strip()}")
        return False
    return True


def screenshot_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    sid = session.session_id

    if args.selector:
        using, value = resolve_selector(args.selector)
        element_id = client.find_element(sid, using, value)
        encoded = client.take_element_screenshot(sid, element_id)
    else:
        encoded = client.take_screenshot(sid)

    filename = args.output or f"screenshot-{int(time.time() * 1000)}.png"
    filepath = Path(filename).resolve()
    filepath.write_bytes(base64.b64decode(encoded))

    dpr = client.execute_script(sid, DEVICE_PIXEL_RATIO)
    if isinstance(dpr, (int, float)) and dpr > 1:
        downscale_image(filepath, dpr)

    print(filepath)
    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'screenshot' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    screenshot_parser = subparsers.add_parser(
        "screenshot", parents=[parent], help="Take a screenshot"
    )
    screenshot_parser.add_argument(
        "-o",
        "--output",
        help="Output file path (default: screenshot-<timestamp>.png)",
    )
    screenshot_parser.add_argument(
        "-s", "--selector", help="Screenshot a specific element"
    )
    screenshot_parser.set_defaults(func=screenshot_handler)
