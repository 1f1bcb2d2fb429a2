"""Unit tests for Session and SessionStore persistence."""

import json
import os
from unittest.mock import patch

import pytest

from safari_cli.state import Session, SessionStore


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "state")


@pytest.fixture
def session():
    return Session(port=9515, session_id="abc123", pid=4242, started_at="2025-01-01T00:00:00+00:00")


@pytest.mark.unit
class TestSession:
    def test_to_dict_uses_persisted_field_names(self, session):
        assert session.to_dict() == {
            "port": 9515,
            "sessionId": "abc123",
            "pid": 4242,
            "startedAt": "2025-01-01T00:00:00+00:00",
        }

    def test_from_dict_round_trip(self, session):
        assert Session.from_dict(session.to_dict()) == session

    def test_started_at_defaults_to_now(self):
        session = Session(port=9515, session_id="abc", pid=1)
        assert session.started_at.startswith("20")
        assert "T" in session.started_at

    def test_empty_session_id_rejected(self):
        with pytest.raises(ValueError, match="session_id must be non-empty"):
            Session(port=9515, session_id="", pid=1)

    def test_started_timestamp(self, session):
        assert session.started_timestamp == 1735689600.0

    def test_started_timestamp_unparseable(self):
        session = Session(port=9515, session_id="abc", pid=1, started_at="yesterday")
        assert session.started_timestamp is None


@pytest.mark.unit
class TestSessionStore:
    def test_load_absent(self, store):
        assert store.load() is None

    def test_save_creates_directory(self, store, session):
        assert not store.state_dir.exists()
        store.save(session)
        assert store.path.exists()
        assert json.loads(store.path.read_text()) == session.to_dict()

    def test_save_then_load(self, store, session):
        store.save(session)
        assert store.load() == session

    def test_save_replaces_previous(self, store, session):
        store.save(session)
        newer = Session(port=9600, session_id="def456", pid=99)
        store.save(newer)
        assert store.load() == newer

    def test_no_temp_files_left_behind(self, store, session):
        store.save(session)
        assert [p.name for p in store.state_dir.iterdir()] == ["session.json"]

    def test_failed_write_keeps_previous_state(self, store, session):
        store.save(session)
        with patch("safari_cli.state.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.save(Session(port=1, session_id="x", pid=1))

        assert store.load() == session
        assert [p.name for p in store.state_dir.iterdir()] == ["session.json"]

    def test_corrupt_file_treated_as_absent(self, store):
        store.state_dir.mkdir(parents=True)
        store.path.write_text('{"port": 9515, "sessionId": ')
        assert store.load() is None

    def test_missing_fields_treated_as_absent(self, store):
        store.state_dir.mkdir(parents=True)
        store.path.write_text(json.dumps({"port": 9515}))
        assert store.load() is None

    def test_clear(self, store, session):
        store.save(session)
        store.clear()
        assert store.load() is None
        assert not store.path.exists()

    def test_clear_when_absent(self, store):
        store.clear()
        assert store.load() is None

    def test_expands_user(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        store = SessionStore("~/.safari-cli")
        assert store.path == tmp_path / ".safari-cli" / "session.json"

    def test_rereads_on_every_load(self, store, session):
        store.save(session)
        first = store.load()
        # Another invocation rewrites the file behind our back
        other = Session(port=9600, session_id="other", pid=7)
        os.replace(_write_tmp(store, other), store.path)
        assert store.load() == other
        assert first == session


def _write_tmp(store, session):
    tmp = store.state_dir / "external.json"
    tmp.write_text(json.dumps(session.to_dict()))
    return tmp
