"""Unit tests for Configuration precedence (CLI > env > file > defaults)."""

import json
import pytest
from safari_cli.config import Configuration


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in Configuration.ENV_MAPPINGS:
        monkeypatch.delenv(var, raising=False)


class TestConfigurationPrecedence:
    def test_default_values(self):
        config = Configuration()

        assert config.port == 9515
        assert config.timeout == 30.0
        assert config.startup_timeout == 10.0
        assert config.poll_interval == 0.2
        assert config.driver_path == "safaridriver"
        assert config.state_dir == "~/.safari-cli"
        assert config.log_level == "WARNING"
        assert config.log_format == "text"

    def test_load_from_file(self, tmp_path):
        config_file = tmp_path / ".safari-clirc"
        config_file.write_text(json.dumps({"port": 9600, "startup_timeout": 20.0}))

        config = Configuration()
        config.load_from_file(str(config_file))

        assert config.port == 9600
        assert config.startup_timeout == 20.0
        # Defaults still apply for unset values
        assert config.timeout == 30.0

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("SAFARI_CLI_PORT", "9700")
        monkeypatch.setenv("SAFARI_CLI_POLL_INTERVAL", "0.5")
        monkeypatch.setenv("SAFARI_CLI_DRIVER_PATH", "/usr/bin/safaridriver")

        config = Configuration()
        config.load_from_env()

        assert config.port == 9700
        assert config.poll_interval == 0.5
        assert config.driver_path == "/usr/bin/safaridriver"

    def test_full_precedence_chain(self, tmp_path, monkeypatch):
        config_file = tmp_path / ".safari-clirc"
        config_file.write_text(json.dumps({"port": 9600, "timeout": 60.0, "log_level": "INFO"}))
        monkeypatch.setenv("SAFARI_CLI_PORT", "9700")
        monkeypatch.setenv("SAFARI_CLI_TIMEOUT", "45.0")

        config = Configuration()
        config.load_from_file(str(config_file))
        config.load_from_env()
        config.merge(port=9800)

        assert config.port == 9800  # CLI
        assert config.timeout == 45.0  # env
        assert config.log_level == "INFO"  # file

    def test_merge_ignores_none_and_unknown_keys(self):
        config = Configuration()
        config.merge(port=None, bogus=1)
        assert config.port == 9515
        assert not hasattr(config, "bogus")


class TestConfigurationErrorHandling:
    def test_missing_file_is_ignored(self, tmp_path):
        config = Configuration()
        config.load_from_file(str(tmp_path / "nope"))
        assert config.port == 9515

    def test_invalid_json_is_ignored(self, tmp_path):
        config_file = tmp_path / ".safari-clirc"
        config_file.write_text("{ not json")

        config = Configuration()
        config.load_from_file(str(config_file))
        assert config.port == 9515

    def test_non_object_json_is_ignored(self, tmp_path):
        config_file = tmp_path / ".safari-clirc"
        config_file.write_text("[1, 2]")

        config = Configuration()
        config.load_from_file(str(config_file))
        assert config.port == 9515

    def test_invalid_env_value_is_ignored(self, monkeypatch):
        monkeypatch.setenv("SAFARI_CLI_PORT", "not-a-number")

        config = Configuration()
        config.load_from_env()
        assert config.port == 9515

    def test_to_dict(self):
        data = Configuration().to_dict()
        assert set(data) == set(Configuration.DEFAULTS)
        assert data["port"] == 9515
