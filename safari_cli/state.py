"""Persisted session state.

Stores the active session in ``~/.safari-cli/session.json`` so that separate
CLI invocations share one driver process and browser session.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = "~/.safari-cli"
STATE_FILENAME = "session.json"


class Session:
    """
    Identity of the active automation session.

    Attributes:
        port: Port the driver process listens on
        session_id: WebDriver session id assigned by the driver
        pid: Process id of the spawned driver
        started_at: ISO-8601 timestamp of session creation
    """

    def __init__(self, port: int, session_id: str, pid: int, started_at: Optional[str] = None):
        if not session_id:
            raise ValueError("session_id must be non-empty")

        self.port = port
        self.session_id = session_id
        self.pid = pid
        self.started_at = started_at or datetime.now(timezone.utc).isoformat()

    @property
    def started_timestamp(self) -> Optional[float]:
        """``started_at`` as epoch seconds, or None if it cannot be parsed."""
        try:
            return datetime.fromisoformat(self.started_at).timestamp()
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """Build a Session from its persisted JSON form."""
        return cls(
            port=int(data["port"]),
            session_id=data["sessionId"],
            pid=int(data["pid"]),
            started_at=data["startedAt"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert session to its persisted JSON form."""
        return {
            "port": self.port,
            "sessionId": self.session_id,
            "pid": self.pid,
            "startedAt": self.started_at,
        }

    def __eq__(self, other):
        if not isinstance(other, Session):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Session(session_id={self.session_id!r}, port={self.port}, pid={self.pid})"


class SessionStore:
    """
    File-backed store for the single persisted Session.

    Nothing is cached in memory: every call reads or writes the file, so
    concurrent invocations see a consistent (possibly stale) snapshot.

    Attributes:
        state_dir: Directory holding the state file (created on demand)
        path: Full path of the state file
    """

    def __init__(self, state_dir: Union[str, Path] = DEFAULT_STATE_DIR):
        self.state_dir = Path(state_dir).expanduser()
        self.path = self.state_dir / STATE_FILENAME

    def load(self) -> Optional[Session]:
        """
        Read the persisted session.

        Returns:
            Session, or None when no valid state exists
        """
        try:
            raw = self.path.read_text()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Cannot read session state {self.path}: {e}")
            return None

        try:
            return Session.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid session state in {self.path}: {e}")
            return None

    def save(self, session: Session) -> None:
        """
        Persist ``session``, replacing any previous state atomically.

        The record is written to a temporary file in the same directory and
        renamed over the state file, so readers never observe a partial write.
        """
        self.state_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.state_dir, prefix=".session-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(session.to_dict(), f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        logger.debug(f"Saved session {session.session_id} to {self.path}")

    def clear(self) -> None:
        """Remove persisted state. Safe to call when none exists."""
        try:
            self.path.unlink()
            logger.debug(f"Cleared session state {self.path}")
        except FileNotFoundError:
            pass
