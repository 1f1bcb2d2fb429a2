"""
Session subcommands: start, stop, status.

These are the only commands that spawn or stop safaridriver.
"""

import argparse
import asyncio
import json
import logging

from ..exceptions import WebDriverError
from .common import build_manager, fetch_page_info

logger = logging.getLogger(__name__)


def start_handler(args: argparse.Namespace) -> int:
    """
    Handle 'start' command.

    Starts safaridriver and creates a browser session, or reports the
    existing session if one is already running.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    config = args.config
    manager = build_manager(config)

    session, reused = manager.start_or_reuse(config.port)

    if reused:
        print(
            f"Session already active (pid={session.pid}, port={session.port}, "
            f"session={session.session_id})"
        )
        return 0

    print("Safari session started")
    print(f"  Port:      {session.port}")
    print(f"  Session:   {session.session_id}")
    print(f"  PID:       {session.pid}")
    return 0


def stop_handler(args: argparse.Namespace) -> int:
    """Handle 'stop' command: close the session and stop safaridriver."""
    session = build_manager(args.config).teardown()

    if session is None:
        print("No active session.")
        return 0

    print(f"Session closed (pid={session.pid}).")
    return 0


def status_handler(args: argparse.Namespace) -> int:
    """
    Handle 'status' command.

    Checks the driver process explicitly, and shows the current page when
    the process is alive.
    """
    manager = build_manager(args.config)
    status = manager.status()

    if status is None:
        if args.json:
            print(json.dumps(None))
        else:
            print("No active session.")
        return 0

    session = status.session
    url = title = None
    if status.alive:
        try:
            url, title = asyncio.run(
                fetch_page_info(manager.client_for(session), session.session_id)
            )
        except WebDriverError as e:
            if e.kind == "protocol" and e.is_invalid_session:
                raise
            logger.info(f"Could not read page info: {e}")

    if args.json:
        print(json.dumps({**status.to_dict(), "url": url, "title": title}, indent=2))
        return 0

    print(f"Session:     {session.session_id}")
    print(f"Port:        {session.port}")
    print(f"PID:         {session.pid} ({'running' if status.alive else 'DEAD'})")
    print(f"Started:     {session.started_at}")
    if url is not None:
        print(f"Current URL: {url}")
        print(f"Page Title:  {title}")
    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'start', 'stop' and 'status' subcommands.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    start_parser = subparsers.add_parser(
        "start",
        parents=[parent],
        help="Start SafariDriver and create a browser session",
        description="Start SafariDriver and create a browser session (no-op if one is active)",
    )
    start_parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="SafariDriver port (default: 9515)",
    )
    start_parser.set_defaults(func=start_handler)

    stop_parser = subparsers.add_parser(
        "stop",
        parents=[parent],
        help="Close Safari session and stop SafariDriver",
    )
    stop_parser.set_defaults(func=stop_handler)

    status_parser = subparsers.add_parser(
        "status",
        parents=[parent],
        help="Show current session status",
    )
    status_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    status_parser.set_defaults(func=status_handler)
