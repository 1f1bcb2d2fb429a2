"""Configuration management for safari-cli.

Supports multiple configuration sources with precedence:
CLI flags > Environment variables > Config file > Defaults

Usage:
    >>> config = Configuration()
    >>> config.load_from_file("~/.safari-clirc")
    >>> config.load_from_env()
    >>> config.merge(port=9600)  # CLI overrides
    >>> print(config.port)
    9600
"""

import os
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.safari-clirc"


class Configuration:
    """Configuration manager with layered precedence.

    Precedence order (highest to lowest):
    1. CLI arguments (via merge method)
    2. Environment variables (SAFARI_CLI_* prefix)
    3. Config file (~/.safari-clirc JSON)
    4. Default values

    Attributes:
        port: safaridriver port for new sessions (default: 9515)
        timeout: WebDriver HTTP request timeout in seconds (default: 30.0)
        startup_timeout: Seconds to wait for safaridriver to answer (default: 10.0)
        poll_interval: Seconds between readiness checks (default: 0.2)
        driver_path: safaridriver executable (default: "safaridriver")
        state_dir: Directory for persisted session state (default: ~/.safari-cli)
        log_level: Logging level (default: "WARNING")
        log_format: Log output format "text" or "json" (default: "text")
    """

    DEFAULTS = {
        "port": 9515,
        "timeout": 30.0,
        "startup_timeout": 10.0,
        "poll_interval": 0.2,
        "driver_path": "safaridriver",
        "state_dir": "~/.safari-cli",
        "log_level": "WARNING",
        "log_format": "text",
    }

    ENV_MAPPINGS = {
        "SAFARI_CLI_PORT": ("port", int),
        "SAFARI_CLI_TIMEOUT": ("timeout", float),
        "SAFARI_CLI_STARTUP_TIMEOUT": ("startup_timeout", float),
        "SAFARI_CLI_POLL_INTERVAL": ("poll_interval", float),
        "SAFARI_CLI_DRIVER_PATH": ("driver_path", str),
        "SAFARI_CLI_STATE_DIR": ("state_dir", str),
        "SAFARI_CLI_LOG_LEVEL": ("log_level", str),
        "SAFARI_CLI_LOG_FORMAT": ("log_format", str),
    }

    def __init__(self):
        """Initialize configuration with default values."""
        self.port: int = self.DEFAULTS["port"]
        self.timeout: float = self.DEFAULTS["timeout"]
        self.startup_timeout: float = self.DEFAULTS["startup_timeout"]
        self.poll_interval: float = self.DEFAULTS["poll_interval"]
        self.driver_path: str = self.DEFAULTS["driver_path"]
        self.state_dir: str = self.DEFAULTS["state_dir"]
        self.log_level: str = self.DEFAULTS["log_level"]
        self.log_format: str = self.DEFAULTS["log_format"]

    def load_from_file(self, file_path: str) -> None:
        """Load configuration from JSON file.

        Args:
            file_path: Path to config file (typically ~/.safari-clirc)

        Note:
            Invalid JSON or missing file is ignored with a log message.
            Partial configs are merged with existing values.
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            logger.debug(f"Config file not found: {path}")
            return

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in config file {path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Error loading config file {path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Config file {path} must contain a JSON object")
            return

        self._merge_dict(data)
        logger.info(f"Loaded configuration from {path}")

    def load_from_env(self) -> None:
        """Load configuration from SAFARI_CLI_* environment variables.

        Invalid values are ignored with a warning log.
        """
        for env_var, (attr_name, type_converter) in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    converted_value = type_converter(value)
                    setattr(self, attr_name, converted_value)
                    logger.debug(f"Loaded {attr_name}={converted_value} from {env_var}")
                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid value for {env_var}: {value} ({e})")

    def merge(self, **kwargs) -> None:
        """Merge CLI arguments into configuration (highest precedence).

        Example:
            >>> config.merge(port=9600, timeout=15.0)
        """
        self._merge_dict(kwargs)

    def _merge_dict(self, data: dict) -> None:
        for key, value in data.items():
            if key in self.DEFAULTS and value is not None:
                setattr(self, key, value)
                logger.debug(f"Set {key}={value}")

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {key: getattr(self, key) for key in self.DEFAULTS}

    def __repr__(self) -> str:
        return f"Configuration({self.to_dict()})"
