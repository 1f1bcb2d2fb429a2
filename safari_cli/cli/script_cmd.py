"""
Script subcommands: execute, console, console-clear, network, network-clear, perf.

Console and network capture work by injecting hooks into the page; entries
are collected on ``window`` and read back on demand.
"""

import argparse
import logging
import re
from datetime import datetime, timezone

from ..exceptions import ProtocolError
from ..payloads import (
    CLEAR_CONSOLE,
    CLEAR_NETWORK,
    INJECT_CONSOLE,
    INJECT_NETWORK,
    PERFORMANCE_METRICS,
    READ_CONSOLE,
    READ_NETWORK,
)
from .common import active_session, format_value

logger = logging.getLogger(__name__)

RETURN_RE = re.compile(r"^\s*return\s", re.MULTILINE)


def wrap_script(script: str) -> str:
    """
    Make a script return its last expression.

    Scripts that already contain a return statement are left as-is.
    """
    if RETURN_RE.search(script):
        return script
    if ";" in script:
        statements = [s.strip() for s in script.split(";") if s.strip()]
        last = statements.pop() if statements else ""
        prefix = "; ".join(statements) + "; " if statements else ""
        return f"{prefix}return {last}"
    return f"return {script}"


def execute_handler(args: argparse.Namespace) -> int:
    """
    Handle 'execute' command.

    Sync scripts are wrapped to return their last expression; if the wrapped
    form is rejected by the page, the raw script is run instead.
    """
    session, client = active_session(args.config)
    sid = session.session_id

    if args.use_async:
        result = client.execute_async_script(sid, args.script)
    else:
        wrapped = wrap_script(args.script)
        try:
            result = client.execute_script(sid, wrapped)
        except ProtocolError as e:
            if e.is_invalid_session or wrapped == args.script:
                raise
            logger.debug(f"Wrapped script failed ({e}), retrying raw script")
            result = client.execute_script(sid, args.script)

    if result is not None:
        print(format_value(result))
    return 0


def format_timestamp(millis: float) -> str:
    """Format epoch milliseconds as HH:MM:SS.mmm (UTC)."""
    moment = datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    return moment.strftime("%H:%M:%S.%f")[:-3]


def console_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    sid = session.session_id

    client.execute_script(sid, INJECT_CONSOLE)
    if args.inject:
        print("Console capture injected.")
        return 0

    logs = client.execute_script(sid, READ_CONSOLE) or []
    if args.level:
        level = args.level.upper()
        logs = [entry for entry in logs if entry.get("level") == level]

    if not logs:
        print("No console logs captured.")
        return 0

    for entry in logs:
        print(f"[{format_timestamp(entry['timestamp'])}] {entry['level']:<5} {entry['message']}")
    return 0


def console_clear_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    client.execute_script(session.session_id, CLEAR_CONSOLE)
    print("Console logs cleared.")
    return 0


def network_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    sid = session.session_id

    client.execute_script(sid, INJECT_NETWORK)
    if args.inject:
        print("Network capture injected.")
        return 0

    logs = client.execute_script(sid, READ_NETWORK) or []
    if not logs:
        print("No network logs captured.")
        return 0

    for entry in logs:
        status = str(entry["status"]) if entry.get("status") is not None else "???"
        duration = f"{entry['duration']}ms" if entry.get("duration") is not None else ""
        print(f"{entry['method']:<6} {status:<4} {duration:>8}  {entry['url']}")
    return 0


def network_clear_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    client.execute_script(session.session_id, CLEAR_NETWORK)
    print("Network logs cleared.")
    return 0


def perf_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    metrics = client.execute_script(session.session_id, PERFORMANCE_METRICS)

    def ms(value):
        return f"{value}ms" if value is not None else "N/A"

    print(f"URL:                    {metrics['url']}")
    print(f"DOM Content Loaded:     {metrics['domContentLoaded']}ms")
    print(f"Load Complete:          {metrics['loadComplete']}ms")
    print(f"DOM Interactive:        {metrics['domInteractive']}ms")
    print(f"First Paint:            {ms(metrics['firstPaint'])}")
    print(f"First Contentful Paint: {ms(metrics['firstContentfulPaint'])}")
    print(f"Response Time:          {metrics['responseTime']}ms")
    print(f"Resources:              {metrics['resourceCount']}")
    print(f"Transfer Size:          {metrics['totalTransferSize'] / 1024:.1f} KB")
    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register script subcommands.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    execute_parser = subparsers.add_parser(
        "execute",
        aliases=["eval"],
        parents=[parent],
        help="Execute JavaScript in the browser",
        description="Execute JavaScript; bare expressions are returned automatically",
    )
    execute_parser.add_argument("script", help="JavaScript source")
    execute_parser.add_argument(
        "--async",
        dest="use_async",
        action="store_true",
        help="Execute as async script (must call arguments[0] callback)",
    )
    execute_parser.set_defaults(func=execute_handler)

    console_parser = subparsers.add_parser(
        "console", parents=[parent], help="Get captured console logs"
    )
    console_parser.add_argument(
        "-l",
        "--level",
        help="Filter by level (LOG, WARN, ERROR, INFO, DEBUG)",
    )
    console_parser.add_argument(
        "--inject",
        action="store_true",
        help="Just inject the capture hook (for pages loaded without it)",
    )
    console_parser.set_defaults(func=console_handler)

    console_clear_parser = subparsers.add_parser(
        "console-clear", parents=[parent], help="Clear captured console logs"
    )
    console_clear_parser.set_defaults(func=console_clear_handler)

    network_parser = subparsers.add_parser(
        "network", parents=[parent], help="Get captured network logs"
    )
    network_parser.add_argument(
        "--inject", action="store_true", help="Just inject the capture hook"
    )
    network_parser.set_defaults(func=network_handler)

    network_clear_parser = subparsers.add_parser(
        "network-clear", parents=[parent], help="Clear captured network logs"
    )
    network_clear_parser.set_defaults(func=network_clear_handler)

    perf_parser = subparsers.add_parser(
        "perf", parents=[parent], help="Get page performance metrics"
    )
    perf_parser.set_defaults(func=perf_handler)
