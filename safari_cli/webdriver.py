"""W3C WebDriver HTTP client for safaridriver.

Provides WebDriverClient: one HTTP round trip per WebDriver command, with the
response envelope unwrapped and error payloads translated into typed exceptions.
"""

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional, Union

from .exceptions import (
    SESSION_NOT_CREATED,
    HTTPStatusError,
    ProtocolError,
    WebDriverConnectionError,
)

logger = logging.getLogger(__name__)

# W3C element identifier key; legacy drivers use "ELEMENT"
ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"

DEFAULT_CAPABILITIES = {
    "capabilities": {
        "alwaysMatch": {
            "browserName": "safari",
            "safari:automaticInspection": True,
            "safari:automaticProfiling": True,
        }
    }
}


def element_id_from_reference(reference: Dict[str, str]) -> str:
    """Read the element id from a web element reference.

    The key naming the id has changed across protocol versions
    (``element-6066-11e4-a52e-4f735466cecf`` in W3C, ``ELEMENT`` in the
    legacy JSON wire protocol), so the reference is read as a single-entry
    mapping instead of by a fixed key.

    Raises:
        ValueError: If the reference is not a single-entry mapping
    """
    if not isinstance(reference, dict) or len(reference) != 1:
        raise ValueError(f"Expected a single-key element reference, got {reference!r}")
    (element_id,) = reference.values()
    return element_id


def element_reference(element_id: str) -> Dict[str, str]:
    """Build a W3C element reference for passing an element as a script argument."""
    return {ELEMENT_KEY: element_id}


def _quote(segment: str) -> str:
    return urllib.parse.quote(str(segment), safe="")


class WebDriverClient:
    """Stateless client for a local WebDriver endpoint.

    Every call is attempted exactly once. Retry policy belongs to callers
    (see ``safari_cli.polling``).

    Usage:
        client = WebDriverClient(9515)
        session_id = client.create_session()
        client.navigate_to(session_id, "https://example.com")

    Attributes:
        port: Driver port
        host: Driver host (default: "localhost")
        timeout: HTTP request timeout in seconds
    """

    def __init__(self, port: int, host: str = "localhost", timeout: float = 30.0):
        if not 1 <= port <= 65535:
            raise ValueError(f"port must be 1-65535, got {port}")

        self.port = port
        self.host = host
        self.timeout = timeout
        self.base_url = f"http://{host}:{port}"

    def __repr__(self):
        return f"WebDriverClient(base_url={self.base_url!r})"

    def request(self, method: str, path: str, body: Any = None) -> Any:
        """Perform one WebDriver command and return the unwrapped ``value``.

        Args:
            method: HTTP method ("GET", "POST", "DELETE")
            path: Endpoint path, e.g. "/session/abc/url"
            body: JSON-serializable request body (omitted when None)

        Returns:
            The ``value`` of the response envelope, or the raw text for a
            successful response whose body is not JSON.

        Raises:
            WebDriverConnectionError: Endpoint unreachable or reply is not valid HTTP
            HTTPStatusError: Non-success status with a non-JSON body
            ProtocolError: Response ``value`` carries an ``error`` field
        """
        url = f"{self.base_url}{path}"
        headers = {}
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        logger.debug(f"{method} {path}")

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = response.status
                text = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            # Non-2xx responses still carry a body worth parsing
            status = e.code
            text = e.read().decode("utf-8", errors="replace")
        except (urllib.error.URLError, OSError, http.client.HTTPException) as e:
            cause = getattr(e, "reason", e)
            raise WebDriverConnectionError(
                f"Cannot connect to SafariDriver at {self.base_url}: {cause}",
                details={"address": self.base_url, "cause": str(cause)},
            ) from e

        return self._unwrap(status, text)

    def _unwrap(self, status: int, text: str) -> Any:
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            if not 200 <= status < 300:
                raise HTTPStatusError(status, text)
            return text

        value = data.get("value") if isinstance(data, dict) else data

        if isinstance(value, dict) and "error" in value:
            raise ProtocolError(
                value.get("message") or value["error"],
                status_code=status,
                error_code=value["error"],
            )

        return value

    # --- Session ---

    def create_session(self, capabilities: Optional[dict] = None) -> str:
        result = self.request("POST", "/session", capabilities or DEFAULT_CAPABILITIES)
        session_id = result.get("sessionId") if isinstance(result, dict) else None
        if not isinstance(session_id, str) or not session_id:
            raise ProtocolError(
                "Driver returned no session id",
                error_code=SESSION_NOT_CREATED,
                details={"response": result},
            )
        return session_id

    def delete_session(self, session_id: str) -> None:
        self.request("DELETE", f"/session/{session_id}")

    def get_status(self) -> Any:
        return self.request("GET", "/status")

    # --- Navigation ---

    def navigate_to(self, session_id: str, url: str) -> None:
        self.request("POST", f"/session/{session_id}/url", {"url": url})

    def get_current_url(self, session_id: str) -> str:
        return self.request("GET", f"/session/{session_id}/url")

    def get_title(self, session_id: str) -> str:
        return self.request("GET", f"/session/{session_id}/title")

    def back(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/back", {})

    def forward(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/forward", {})

    def refresh(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/refresh", {})

    def get_page_source(self, session_id: str) -> str:
        return self.request("GET", f"/session/{session_id}/source")

    # --- Scripts ---

    def execute_script(self, session_id: str, script: str, args: Optional[List[Any]] = None) -> Any:
        return self.request(
            "POST",
            f"/session/{session_id}/execute/sync",
            {"script": script, "args": args or []},
        )

    def execute_async_script(
        self, session_id: str, script: str, args: Optional[List[Any]] = None
    ) -> Any:
        return self.request(
            "POST",
            f"/session/{session_id}/execute/async",
            {"script": script, "args": args or []},
        )

    # --- Screenshots (base64-encoded PNG) ---

    def take_screenshot(self, session_id: str) -> str:
        return self.request("GET", f"/session/{session_id}/screenshot")

    def take_element_screenshot(self, session_id: str, element_id: str) -> str:
        return self.request("GET", f"/session/{session_id}/element/{element_id}/screenshot")

    # --- Elements ---

    def find_element(self, session_id: str, using: str, value: str) -> str:
        result = self.request(
            "POST", f"/session/{session_id}/element", {"using": using, "value": value}
        )
        return element_id_from_reference(result)

    def find_elements(self, session_id: str, using: str, value: str) -> List[str]:
        results = self.request(
            "POST", f"/session/{session_id}/elements", {"using": using, "value": value}
        )
        return [element_id_from_reference(r) for r in results]

    def click_element(self, session_id: str, element_id: str) -> None:
        self.request("POST", f"/session/{session_id}/element/{element_id}/click", {})

    def send_keys(self, session_id: str, element_id: str, text: str) -> None:
        self.request("POST", f"/session/{session_id}/element/{element_id}/value", {"text": text})

    def clear_element(self, session_id: str, element_id: str) -> None:
        self.request("POST", f"/session/{session_id}/element/{element_id}/clear", {})

    def get_element_text(self, session_id: str, element_id: str) -> str:
        return self.request("GET", f"/session/{session_id}/element/{element_id}/text")

    def get_element_tag_name(self, session_id: str, element_id: str) -> str:
        return self.request("GET", f"/session/{session_id}/element/{element_id}/name")

    def get_element_attribute(self, session_id: str, element_id: str, name: str) -> Optional[str]:
        return self.request(
            "GET", f"/session/{session_id}/element/{element_id}/attribute/{_quote(name)}"
        )

    def get_element_property(self, session_id: str, element_id: str, name: str) -> Any:
        return self.request(
            "GET", f"/session/{session_id}/element/{element_id}/property/{_quote(name)}"
        )

    def get_element_rect(self, session_id: str, element_id: str) -> Dict[str, float]:
        return self.request("GET", f"/session/{session_id}/element/{element_id}/rect")

    def is_element_displayed(self, session_id: str, element_id: str) -> bool:
        return self.request("GET", f"/session/{session_id}/element/{element_id}/displayed")

    def is_element_enabled(self, session_id: str, element_id: str) -> bool:
        return self.request("GET", f"/session/{session_id}/element/{element_id}/enabled")

    # --- Cookies ---

    def get_cookies(self, session_id: str) -> List[Dict[str, Any]]:
        return self.request("GET", f"/session/{session_id}/cookie")

    def get_cookie(self, session_id: str, name: str) -> Dict[str, Any]:
        return self.request("GET", f"/session/{session_id}/cookie/{_quote(name)}")

    def add_cookie(self, session_id: str, cookie: Dict[str, Any]) -> None:
        self.request("POST", f"/session/{session_id}/cookie", {"cookie": cookie})

    def delete_cookie(self, session_id: str, name: str) -> None:
        self.request("DELETE", f"/session/{session_id}/cookie/{_quote(name)}")

    def delete_all_cookies(self, session_id: str) -> None:
        self.request("DELETE", f"/session/{session_id}/cookie")

    # --- Windows ---

    def get_window_handle(self, session_id: str) -> str:
        return self.request("GET", f"/session/{session_id}/window")

    def get_window_handles(self, session_id: str) -> List[str]:
        return self.request("GET", f"/session/{session_id}/window/handles")

    def switch_to_window(self, session_id: str, handle: str) -> None:
        self.request("POST", f"/session/{session_id}/window", {"handle": handle})

    def close_window(self, session_id: str) -> List[str]:
        return self.request("DELETE", f"/session/{session_id}/window")

    def get_window_rect(self, session_id: str) -> Dict[str, int]:
        return self.request("GET", f"/session/{session_id}/window/rect")

    def set_window_rect(
        self,
        session_id: str,
        x: Optional[int] = None,
        y: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> Dict[str, int]:
        rect = {"x": x, "y": y, "width": width, "height": height}
        return self.request(
            "POST",
            f"/session/{session_id}/window/rect",
            {k: v for k, v in rect.items() if v is not None},
        )

    def maximize_window(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/window/maximize", {})

    def minimize_window(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/window/minimize", {})

    def fullscreen_window(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/window/fullscreen", {})

    # --- Frames ---

    def switch_to_frame(
        self, session_id: str, frame_id: Union[int, Dict[str, str], None]
    ) -> None:
        """Switch to a frame by index, element reference, or None for top-level."""
        self.request("POST", f"/session/{session_id}/frame", {"id": frame_id})

    def switch_to_parent_frame(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/frame/parent", {})

    # --- Alerts ---

    def get_alert_text(self, session_id: str) -> Optional[str]:
        return self.request("GET", f"/session/{session_id}/alert/text")

    def accept_alert(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/alert/accept", {})

    def dismiss_alert(self, session_id: str) -> None:
        self.request("POST", f"/session/{session_id}/alert/dismiss", {})

    def send_alert_text(self, session_id: str, text: str) -> None:
        self.request("POST", f"/session/{session_id}/alert/text", {"text": text})

    # --- Timeouts (milliseconds) ---

    def get_timeouts(self, session_id: str) -> Dict[str, Optional[int]]:
        return self.request("GET", f"/session/{session_id}/timeouts")

    def set_timeouts(
        self,
        session_id: str,
        script: Optional[int] = None,
        page_load: Optional[int] = None,
        implicit: Optional[int] = None,
    ) -> None:
        timeouts = {"script": script, "pageLoad": page_load, "implicit": implicit}
        self.request(
            "POST",
            f"/session/{session_id}/timeouts",
            {k: v for k, v in timeouts.items() if v is not None},
        )
