"""
Helpers shared by subcommand handlers.
"""

import asyncio
import json
from typing import Any, Tuple

from ..config import Configuration
from ..session import SessionManager
from ..state import Session, SessionStore
from ..webdriver import WebDriverClient


def build_manager(config: Configuration) -> SessionManager:
    """Create a SessionManager from resolved configuration."""
    return SessionManager(
        SessionStore(config.state_dir),
        driver_path=config.driver_path,
        startup_timeout=config.startup_timeout,
        poll_interval=config.poll_interval,
        request_timeout=config.timeout,
    )


def active_session(config: Configuration) -> Tuple[Session, WebDriverClient]:
    """
    Load the active session and a client bound to it.

    Raises:
        NoSessionError: If no session has been started
    """
    manager = build_manager(config)
    session = manager.require_active()
    return session, manager.client_for(session)


def resolve_selector(selector: str) -> Tuple[str, str]:
    """Map a selector to a WebDriver locator strategy: XPath if it starts with //, else CSS."""
    if selector.startswith(("//", "(//")):
        return "xpath", selector
    return "css selector", selector


async def fetch_page_info(client: WebDriverClient, session_id: str) -> Tuple[str, str]:
    """Fetch current URL and title concurrently."""
    url, title = await asyncio.gather(
        asyncio.to_thread(client.get_current_url, session_id),
        asyncio.to_thread(client.get_title, session_id),
    )
    return url, title


def format_value(value: Any) -> str:
    """Render a script result: strings verbatim, everything else as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2)
