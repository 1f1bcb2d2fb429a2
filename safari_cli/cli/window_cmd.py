"""
Browser state subcommands: cookies, resize, tabs, tab, alert, frame.
"""

import argparse
import json
from datetime import datetime, timezone

from ..exceptions import WebDriverError
from ..webdriver import element_reference
from .common import active_session, resolve_selector


def cookies_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    cookies = client.get_cookies(session.session_id)

    if args.json:
        print(json.dumps(cookies, indent=2))
        return 0

    if not cookies:
        print("No cookies.")
        return 0

    for cookie in cookies:
        print(f"{cookie['name']}={cookie['value']}")
        if cookie.get("domain"):
            print(f"  domain: {cookie['domain']}")
        if cookie.get("path"):
            print(f"  path: {cookie['path']}")
        if cookie.get("expiry"):
            expires = datetime.fromtimestamp(cookie["expiry"], tz=timezone.utc)
            print(f"  expires: {expires.isoformat()}")
        if cookie.get("secure"):
            print("  secure: true")
        if cookie.get("httpOnly"):
            print("  httpOnly: true")
    return 0


def resize_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    sid = session.session_id

    if args.maximize:
        client.maximize_window(sid)
        print("Window maximized.")
        return 0
    if args.fullscreen:
        client.fullscreen_window(sid)
        print("Window fullscreened.")
        return 0
    if args.width or args.height:
        client.set_window_rect(sid, width=args.width, height=args.height)
        print(f"Window resized to {args.width or '?'}x{args.height or '?'}")
        return 0

    rect = client.get_window_rect(sid)
    print(f"Position: {rect['x']}, {rect['y']}")
    print(f"Size:     {rect['width']}x{rect['height']}")
    return 0


def tabs_handler(args: argparse.Namespace) -> int:
    """
    Handle 'tabs' command.

    Titles of background tabs are only reachable by switching to them, so
    each tab is visited and the original tab is restored at the end.
    """
    session, client = active_session(args.config)
    sid = session.session_id
    handles = client.get_window_handles(sid)
    current = client.get_window_handle(sid)

    try:
        for handle in handles:
            marker = "→" if handle == current else " "
            try:
                if handle != current:
                    client.switch_to_window(sid, handle)
                title = client.get_title(sid)
                url = client.get_current_url(sid)
                print(f"{marker} {handle}  {title}  ({url})")
            except WebDriverError as e:
                if e.kind == "protocol" and e.is_invalid_session:
                    raise
                print(f"{marker} {handle}")
    finally:
        if len(handles) > 1:
            client.switch_to_window(sid, current)
    return 0


def tab_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    client.switch_to_window(session.session_id, args.handle)
    print(f"Switched to: {client.get_title(session.session_id)}")
    return 0


def alert_handler(args: argparse.Namespace) -> int:
    session, client = active_session(args.config)
    sid = session.session_id

    if args.text is not None:
        client.send_alert_text(sid, args.text)

    if args.accept:
        client.accept_alert(sid)
        print("Alert accepted.")
    elif args.dismiss:
        client.dismiss_alert(sid)
        print("Alert dismissed.")
    else:
        print(f"Alert: {client.get_alert_text(sid)}")
    return 0


def frame_handler(args: argparse.Namespace) -> int:
    """
    Handle 'frame' command.

    No argument switches to the top-level browsing context, a number selects
    a frame by index, anything else is a selector for the frame element.
    """
    session, client = active_session(args.config)
    sid = session.session_id

    if args.frame is None:
        client.switch_to_frame(sid, None)
        print("Switched to top-level frame.")
        return 0

    if args.frame.isdigit():
        client.switch_to_frame(sid, int(args.frame))
    else:
        using, value = resolve_selector(args.frame)
        element_id = client.find_element(sid, using, value)
        client.switch_to_frame(sid, element_reference(element_id))
    print(f"Switched to frame: {args.frame}")
    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register browser state subcommands.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    cookies_parser = subparsers.add_parser(
        "cookies", parents=[parent], help="List all cookies"
    )
    cookies_parser.add_argument("--json", action="store_true", help="Output as JSON")
    cookies_parser.set_defaults(func=cookies_handler)

    resize_parser = subparsers.add_parser(
        "resize", parents=[parent], help="Get or set window size"
    )
    resize_parser.add_argument("-W", "--width", type=int, help="Window width")
    resize_parser.add_argument("-H", "--height", type=int, help="Window height")
    mode_group = resize_parser.add_mutually_exclusive_group()
    mode_group.add_argument("--maximize", action="store_true", help="Maximize window")
    mode_group.add_argument("--fullscreen", action="store_true", help="Fullscreen window")
    resize_parser.set_defaults(func=resize_handler)

    tabs_parser = subparsers.add_parser(
        "tabs", parents=[parent], help="List open tabs/windows"
    )
    tabs_parser.set_defaults(func=tabs_handler)

    tab_parser = subparsers.add_parser(
        "tab", parents=[parent], help="Switch to a tab/window by handle"
    )
    tab_parser.add_argument("handle", help="Window handle (see `safari-cli tabs`)")
    tab_parser.set_defaults(func=tab_handler)

    alert_parser = subparsers.add_parser(
        "alert", parents=[parent], help="Get alert text, accept, or dismiss"
    )
    action_group = alert_parser.add_mutually_exclusive_group()
    action_group.add_argument("--accept", action="store_true", help="Accept the alert")
    action_group.add_argument("--dismiss", action="store_true", help="Dismiss the alert")
    alert_parser.add_argument("--text", help="Send text to a prompt")
    alert_parser.set_defaults(func=alert_handler)

    frame_parser = subparsers.add_parser(
        "frame",
        parents=[parent],
        help="Switch to an iframe (no arg = top-level)",
    )
    frame_parser.add_argument(
        "frame", nargs="?", help="Frame index or selector of the iframe element"
    )
    frame_parser.set_defaults(func=frame_handler)
