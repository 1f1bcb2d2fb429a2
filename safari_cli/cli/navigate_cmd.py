"""
Navigation subcommands: navigate, back, forward, refresh, info, source.
"""

import argparse
import asyncio
import re
import sys
from pathlib import Path

from .common import active_session, fetch_page_info

SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_url(url: str) -> str:
    """Prefix https:// when the URL has no http(s) scheme."""
    if SCHEME_RE.match(url):
        return url
    return f"https://{url}"


def navigate_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    url = normalize_url(args.url)
    client.navigate_to(session.session_id, url)
    print(f"Navigated to {url}")
    return 0


def back_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    client.back(session.session_id)
    print("Navigated back.")
    return 0


def forward_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    client.forward(session.session_id)
    print("Navigated forward.")
    return 0


def refresh_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    client.refresh(session.session_id)
    print("Page refreshed.")
    return 0


async def info_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'info' command (async implementation).

    URL and title are independent reads, so they are fetched concurrently.
    """
    session, client = active_session(args.config)
    url, title = await fetch_page_info(client, session.session_id)
    print(f"Title: {title}")
    print(f"URL:   {url}")
    return 0


def info_handler(args: argparse.Namespace) -> int:
    """Synchronous wrapper for info_handler_async."""
    return asyncio.run(info_handler_async(args))


def source_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    source = client.get_page_source(session.session_id)

    if args.output:
        Path(args.output).write_text(source)
        print(f"Saved to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(source)
    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register navigation subcommands.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    navigate_parser = subparsers.add_parser(
        "navigate",
        aliases=["go"],
        parents=[parent],
        help="Navigate to a URL",
        description="Navigate to a URL (https:// is added when no scheme is given)",
    )
    navigate_parser.add_argument("url", help="URL to open")
    navigate_parser.set_defaults(func=navigate_handler)

    for name, handler, help_text in (
        ("back", back_handler, "Go back"),
        ("forward", forward_handler, "Go forward"),
        ("refresh", refresh_handler, "Refresh the page"),
        ("info", info_handler, "Get page title and URL"),
    ):
        simple_parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        simple_parser.set_defaults(func=handler)

    source_parser = subparsers.add_parser(
        "source",
        parents=[parent],
        help="Get page source HTML",
    )
    source_parser.add_argument(
        "-o", "--output", help="Write to file instead of stdout"
    )
    source_parser.set_defaults(func=source_handler)
