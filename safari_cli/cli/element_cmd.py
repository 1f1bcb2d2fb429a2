"""
Element subcommands: inspect, click, type, find, html, wait.

Selectors starting with // are XPath; anything else is a CSS selector.
"""

import argparse
import sys
from pathlib import Path

from ..exceptions import NO_SUCH_ELEMENT, ProtocolError
from ..payloads import INSPECT_ELEMENT, OUTER_HTML
from ..polling import poll_until
from ..webdriver import element_reference
from .common import active_session, resolve_selector

WAIT_INTERVAL = 0.3


def inspect_handler(args: argparse.Namespace) -> int:
    """
    Handle 'inspect' command.

    Shows tag, text, rect, visibility, enabled state and attributes.
    """
    session, client = active_session(args.config)
    sid = session.session_id
    using, value = resolve_selector(args.selector)
    element_id = client.find_element(sid, using, value)

    tag_name = client.get_element_tag_name(sid, element_id)
    text = client.get_element_text(sid, element_id)
    rect = client.get_element_rect(sid, element_id)
    extras = client.execute_script(sid, INSPECT_ELEMENT, [element_reference(element_id)])

    print(f"Tag:       <{tag_name}>")
    print(f"Text:      {text[:200] or '(empty)'}")
    print(f"Rect:      x={rect['x']} y={rect['y']} w={rect['width']} h={rect['height']}")
    print(f"Displayed: {str(extras['displayed']).lower()}")
    print(f"Enabled:   {str(extras['enabled']).lower()}")

    attrs = extras.get("attrs") or {}
    if attrs:
        print("Attributes:")
        for name, attr_value in attrs.items():
            print(f'  {name}="{attr_value}"')
    return 0


def click_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    using, value = resolve_selector(args.selector)
    element_id = client.find_element(session.session_id, using, value)
    client.click_element(session.session_id, element_id)
    print(f"Clicked: {args.selector}")
    return 0


def type_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    using, value = resolve_selector(args.selector)
    element_id = client.find_element(session.session_id, using, value)
    if args.clear:
        client.clear_element(session.session_id, element_id)
    client.send_keys(session.session_id, element_id, args.text)
    print(f"Typed into: {args.selector}")
    return 0


def find_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    sid = session.session_id
    using, value = resolve_selector(args.selector)
    elements = client.find_elements(sid, using, value)

    print(f"Found {len(elements)} element(s)")
    for i, element_id in enumerate(elements):
        line = f"  [{i}] <{client.get_element_tag_name(sid, element_id)}>"
        if args.text:
            text = client.get_element_text(sid, element_id)
            if text:
                line += f' "{text[:80]}"'
        print(line)
    return 0


def html_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    sid = session.session_id

    if args.selector:
        using, value = resolve_selector(args.selector)
        element_id = client.find_element(sid, using, value)
        html = client.execute_script(sid, OUTER_HTML, [element_reference(element_id)])
    else:
        html = client.get_page_source(sid)

    if args.output:
        Path(args.output).write_text(html)
        print(f"Saved to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(html + "\n")
    return 0


def wait_handler(args: argparse.Namespace) -> int:
    """
    Handle 'wait' command.

    Polls find-element until it succeeds; only "no such element" is retried.
    """
    session, client = active_session(args.config)
    using, value = resolve_selector(args.selector)

    poll_until(
        lambda: client.find_element(session.session_id, using, value),
        timeout=args.wait_timeout / 1000.0,
        interval=WAIT_INTERVAL,
        retry_on=(ProtocolError,),
        retry_if=lambda e: e.error_code == NO_SUCH_ELEMENT,
        description=f"element {args.selector}",
    )
    print(f"Element found: {args.selector}")
    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register element subcommands.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    inspect_parser = subparsers.add_parser(
        "inspect", parents=[parent], help="Inspect a DOM element"
    )
    inspect_parser.add_argument("selector", help="CSS selector or XPath")
    inspect_parser.set_defaults(func=inspect_handler)

    click_parser = subparsers.add_parser(
        "click", parents=[parent], help="Click a DOM element"
    )
    click_parser.add_argument("selector", help="CSS selector or XPath")
    click_parser.set_defaults(func=click_handler)

    type_parser = subparsers.add_parser(
        "type", parents=[parent], help="Type text into a DOM element"
    )
    type_parser.add_argument("selector", help="CSS selector or XPath")
    type_parser.add_argument("text", help="Text to type")
    type_parser.add_argument(
        "--clear", action="store_true", help="Clear the field first"
    )
    type_parser.set_defaults(func=type_handler)

    find_parser = subparsers.add_parser(
        "find", parents=[parent], help="Find elements matching a selector"
    )
    find_parser.add_argument("selector", help="CSS selector or XPath")
    find_parser.add_argument(
        "--text", action="store_true", help="Show element text"
    )
    find_parser.set_defaults(func=find_handler)

    html_parser = subparsers.add_parser(
        "html",
        parents=[parent],
        help="Get outerHTML of an element (or full page)",
    )
    html_parser.add_argument("selector", nargs="?", help="CSS selector or XPath")
    html_parser.add_argument("-o", "--output", help="Write to file")
    html_parser.set_defaults(func=html_handler)

    wait_parser = subparsers.add_parser(
        "wait", parents=[parent], help="Wait for an element to appear"
    )
    wait_parser.add_argument("selector", help="CSS selector or XPath")
    wait_parser.add_argument(
        "-t",
        "--wait-timeout",
        type=int,
        default=10000,
        help="Timeout in milliseconds (default: 10000)",
    )
    wait_parser.set_defaults(func=wait_handler)
