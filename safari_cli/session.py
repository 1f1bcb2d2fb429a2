"""
Session lifecycle management for safaridriver.

Owns the driver process and the single WebDriver session: starting it,
waiting for readiness, persisting its identity, checking it is still alive
and tearing it down.
"""

import logging
from typing import Callable, Optional, Tuple

from .driver_process import is_process_alive, launch_driver, terminate_process
from .exceptions import (
    DriverLaunchError,
    HTTPStatusError,
    NoSessionError,
    ProtocolError,
    StartupTimeoutError,
    WaitTimeoutError,
    WebDriverConnectionError,
    WebDriverError,
)
from .logging_setup import log_with_context
from .polling import poll_until
from .state import Session, SessionStore
from .webdriver import DEFAULT_CAPABILITIES, WebDriverClient

logger = logging.getLogger(__name__)

# Failures that mean "driver not answering yet" during startup
STARTUP_RETRYABLE = (WebDriverConnectionError, HTTPStatusError, ProtocolError)


class SessionStatus:
    """
    Snapshot of the persisted session plus an explicit liveness check_ready.

    Attributes:
        session: Persisted session
        alive: Whether the driver process still exists
    """

    def __init__(self, session: Session, alive: bool):
        self.session = session
        self.alive = alive

    def to_dict(self) -> dict:
        return {**self.session.to_dict(), "alive": self.alive}


class SessionManager:
    """
    Manager for the process-wide single safaridriver session.

    State lives in a SessionStore and is re-read by every operation; the
    manager itself holds no session state.

    Usage:
        manager = SessionManager(SessionStore())
        session, reused = manager.start_or_reuse(9515)
        client = manager.client_for(session)
        client.navigate_to(session.session_id, "https://example.com")

    Attributes:
        store: Persisted session store
        driver_path: safaridriver executable (looked up on PATH)
        startup_timeout: Seconds to wait for the driver to answer /status
        poll_interval: Seconds between /status requests
        request_timeout: HTTP timeout for WebDriver requests
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        driver_path: str = "safaridriver",
        startup_timeout: float = 10.0,
        poll_interval: float = 0.2,
        request_timeout: float = 30.0,
        capabilities: Optional[dict] = None,
        client_factory: Callable[..., WebDriverClient] = WebDriverClient,
    ):
        self.store = store
        self.driver_path = driver_path
        self.startup_timeout = startup_timeout
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        self.capabilities = capabilities or DEFAULT_CAPABILITIES
        self._client_factory = client_factory

    def client_for(self, session: Session) -> WebDriverClient:
        """Create a WebDriverClient bound to the session's driver port."""
        return self._client_factory(session.port, timeout=self.request_timeout)

    def start_or_reuse(self, port: int) -> Tuple[Session, bool]:
        """
        Return the live persisted session, or start a new one.

        Args:
            port: Port for a newly spawned driver

        Returns:
            Tuple of (session, reused) where reused is True when an existing
            live session was returned unchanged

        Raises:
            DriverLaunchError: Driver could not be spawned or exited during startup
            StartupTimeoutError: Driver never answered /status (process killed)
            WebDriverError: Session negotiation failed (process killed)
        """
        existing = self.store.load()
        if existing is not None:
            if self._driver_alive(existing):
                log_with_context(
                    logger, logging.INFO, "Reusing active session",
                    session_id=existing.session_id, pid=existing.pid, port=existing.port,
                )
                return existing, True

            logger.info(
                f"Discarding stale session {existing.session_id} (pid {existing.pid} is gone)"
            )
            self.store.clear()

        pid = launch_driver(self.driver_path, port)
        client = self._client_factory(port, timeout=self.request_timeout)

        try:
            self._wait_for_driver(client, pid)
        except WaitTimeoutError as e:
            terminate_process(pid)
            raise StartupTimeoutError(
                f"SafariDriver did not start within {self.startup_timeout}s",
                timeout=self.startup_timeout,
                last_error=e.last_error,
                details={"port": port, "pid": pid},
            ) from e
        except Exception:
            terminate_process(pid)
            raise

        # Past this point a failure must not leave the driver running
        try:
            session_id = client.create_session(self.capabilities)
            session = Session(port=port, session_id=session_id, pid=pid)
            self.store.save(session)
        except BaseException as e:
            logger.error(f"Failed to create session: {e}")
            terminate_process(pid)
            raise

        log_with_context(
            logger, logging.INFO, "Safari session started",
            session_id=session_id, pid=pid, port=port,
        )
        return session, False

    def _driver_alive(self, session: Session) -> bool:
        """Liveness of the session's driver, rejecting pids reused since it started."""
        return is_process_alive(session.pid, created_before=session.started_timestamp)

    def _wait_for_driver(self, client: WebDriverClient, pid: int) -> None:
        def check_ready():
            if not is_process_alive(pid):
                raise DriverLaunchError(
                    f"SafariDriver (pid {pid}) exited during startup",
                    details={"recovery": "Run `safaridriver --enable` once to allow remote automation"},
                )
            return client.get_status()

        poll_until(
            check_ready,
            timeout=self.startup_timeout,
            interval=self.poll_interval,
            retry_on=STARTUP_RETRYABLE,
            description=f"SafariDriver on port {client.port}",
        )
        logger.debug(f"SafariDriver answered on port {client.port}")

    def require_active(self, check_liveness: bool = False) -> Session:
        """
        Load the persisted session for a command that needs one.

        By default liveness is not checked here; a dead session surfaces on the
        next WebDriver call as an "invalid session id" or connection error.

        Args:
            check_liveness: Also verify the driver process still exists

        Raises:
            NoSessionError: No persisted session, or its process is gone
        """
        session = self.store.load()
        if session is None:
            raise NoSessionError()

        if check_liveness and not self._driver_alive(session):
            self.store.clear()
            raise NoSessionError(
                f"Session {session.session_id} is stale (pid {session.pid} is not running)"
            )

        return session

    def status(self) -> Optional[SessionStatus]:
        """Return the persisted session with an explicit liveness check_ready, or None."""
        session = self.store.load()
        if session is None:
            return None
        return SessionStatus(session, self._driver_alive(session))

    def teardown(self) -> Optional[Session]:
        """
        Close the session and stop its driver process.

        Each step is best-effort; persisted state is cleared last regardless
        of how the earlier steps went.

        Returns:
            The session that was torn down, or None if there was none
        """
        session = self.store.load()
        if session is None:
            return None

        try:
            try:
                self.client_for(session).delete_session(session.session_id)
            except WebDriverError as e:
                logger.info(f"Session delete failed (driver may be gone): {e}")

            if self._driver_alive(session):
                if terminate_process(session.pid):
                    logger.info(f"Stopped safaridriver (pid={session.pid})")
            else:
                logger.info(f"Driver pid {session.pid} is gone or reused, not signalling it")
        finally:
            self.store.clear()

        return session

    def invalidate(self) -> None:
        """Forget the persisted session after the driver rejected its id."""
        logger.info("Clearing stale session state")
        self.store.clear()
