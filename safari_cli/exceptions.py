"""Exception hierarchy for WebDriver operations.

All safari-cli exceptions inherit from WebDriverError. Each class carries a
``kind`` discriminant so the top-level handler can match on it explicitly.
"""

from typing import Optional

INVALID_SESSION_ID = "invalid session id"
NO_SUCH_ELEMENT = "no such element"
SESSION_NOT_CREATED = "session not created"


class WebDriverError(Exception):
    """Base exception for all safari-cli errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    kind = "error"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class WebDriverConnectionError(WebDriverError):
    """The WebDriver endpoint could not be reached.

    Raised for refused connections, DNS failures and connect timeouts.
    Details carry the target ``address`` and the underlying ``cause``.
    """

    kind = "connection"


class HTTPStatusError(WebDriverError):
    """Non-success HTTP status with a body that is not JSON."""

    kind = "http"

    def __init__(self, status_code: int, body: str, details: Optional[dict] = None):
        super().__init__(f"HTTP {status_code}: {body}", details)
        self.status_code = status_code
        self.body = body


class ProtocolError(WebDriverError):
    """Error object returned inside the ``value`` of a WebDriver response.

    Attributes:
        status_code: HTTP status of the response
        error_code: WebDriver error code, e.g. "no such element"
    """

    kind = "protocol"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.error_code = error_code

    @property
    def is_invalid_session(self) -> bool:
        return self.error_code == INVALID_SESSION_ID


class NoSessionError(WebDriverError):
    """No persisted session exists (or it went stale)."""

    kind = "no-session"

    def __init__(self, message: str = "No active Safari session", details: Optional[dict] = None):
        super().__init__(message, details)


class WaitTimeoutError(WebDriverError):
    """A polled condition did not succeed before its deadline.

    Attributes:
        timeout: Deadline in seconds
        last_error: Last exception raised by the last attempt, if any
    """

    kind = "timeout"

    def __init__(
        self,
        message: str,
        timeout: Optional[float] = None,
        last_error: Optional[BaseException] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.timeout = timeout
        self.last_error = last_error


class StartupTimeoutError(WaitTimeoutError):
    """The driver process never answered its status endpoint.

    Raised only after the spawned process has been killed.
    """

    kind = "startup-timeout"


class DriverLaunchError(WebDriverError):
    """The driver binary could not be started."""

    kind = "launch"
