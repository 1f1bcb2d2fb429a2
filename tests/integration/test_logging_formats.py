"""Integration tests for log format output from a real CLI process.

`stop` against a session whose driver is unreachable emits INFO logs, which
--verbose makes visible on stderr.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from safari_cli.state import Session, SessionStore

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def stale_env(tmp_path, unused_port, dead_pid):
    state_dir = tmp_path / "state"
    SessionStore(state_dir).save(Session(port=unused_port, session_id="abc123", pid=dead_pid))

    env = {k: v for k, v in os.environ.items() if not k.startswith("SAFARI_CLI_")}
    env["HOME"] = str(tmp_path)
    env["SAFARI_CLI_STATE_DIR"] = str(state_dir)
    return env


def run_stop(env, *extra):
    return subprocess.run(
        [sys.executable, "-m", "safari_cli.cli.main", "stop", "--verbose", "--timeout", "2", *extra],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        env=env,
        timeout=30,
    )


@pytest.mark.integration
class TestLoggingFormats:
    def test_json_log_format_output(self, stale_env):
        result = run_stop(stale_env, "--log-format", "json")

        assert result.returncode == 0
        assert "Session closed" in result.stdout

        records = [json.loads(line) for line in result.stderr.splitlines() if line.strip()]
        assert records, "Expected log output on stderr"
        for record in records:
            assert {"timestamp", "level", "logger", "message"} <= set(record)

        messages = [r["message"] for r in records if r["logger"] == "safari_cli.session"]
        assert any("Session delete failed" in m for m in messages)

    def test_text_log_format_output(self, stale_env):
        result = run_stop(stale_env)

        assert result.returncode == 0
        assert "[INFO] safari_cli.session: Session delete failed" in result.stderr

    def test_quiet_hides_info_logs(self, stale_env):
        result = subprocess.run(
            [sys.executable, "-m", "safari_cli.cli.main", "stop", "--quiet", "--timeout", "2"],
            capture_output=True,
            text=True,
            cwd=REPO_ROOT,
            env=stale_env,
            timeout=30,
        )

        assert result.returncode == 0
        assert result.stderr == ""
