"""
Main CLI entry point for safari-cli.

Provides a unified command-line interface for controlling Safari through
safaridriver, with one browser session shared across invocations.

Usage:
    python -m safari_cli.cli.main <subcommand> [options]

Subcommands:
    start, stop, status             - Session lifecycle
    navigate, back, forward, ...    - Navigation and page info
    inspect, click, type, find, ... - DOM elements
    execute, console, network, perf - In-page scripts
    screenshot                      - Page or element screenshots
    cookies, resize, tabs, ...      - Browser state
"""

import argparse
import logging
import sys
from typing import List, Optional

from ..config import Configuration, DEFAULT_CONFIG_FILE
from ..exceptions import WebDriverError
from ..logging_setup import setup_logging
from .common import build_manager

logger = logging.getLogger(__name__)


def create_parent_parser() -> argparse.ArgumentParser:
    """
    Create parent parser with global options shared across all subcommands.

    Global options:
        --timeout: WebDriver request timeout in seconds
        --log-level: Log level (debug|info|warning|error)
        --log-format: Log format (text|json)
        --quiet/--verbose: Mutual exclusion group for output control

    Returns:
        ArgumentParser with global options
    """
    parent = argparse.ArgumentParser(add_help=False)

    # Defaults are None so config file and environment values are not masked
    parent.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="WebDriver request timeout in seconds (default: 30.0)",
    )
    parent.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: warning)",
    )
    parent.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Log output format (default: text)",
    )

    verbosity_group = parent.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Only log errors",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug output",
    )

    return parent


def create_main_parser(parent: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """
    Create main parser with all subcommands.

    Args:
        parent: Parent parser with global options

    Returns:
        Main ArgumentParser with subcommands configured
    """
    parser = argparse.ArgumentParser(
        prog="safari-cli",
        description="Control Safari from the command line via WebDriver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start safaridriver and open a session
  safari-cli start

  # Navigate and read page info
  safari-cli navigate example.com
  safari-cli info

  # Interact with the page
  safari-cli click "button.submit"
  safari-cli execute "document.title"

  # Close the session and stop safaridriver
  safari-cli stop

For more information on subcommands, run: safari-cli <subcommand> --help
        """,
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        title="subcommands",
        description="Available operations",
        required=True,
    )

    from . import (
        session_cmd,
        navigate_cmd,
        element_cmd,
        script_cmd,
        screenshot_cmd,
        window_cmd,
    )

    session_cmd.register_subcommand(subparsers, parent)
    navigate_cmd.register_subcommand(subparsers, parent)
    element_cmd.register_subcommand(subparsers, parent)
    script_cmd.register_subcommand(subparsers, parent)
    screenshot_cmd.register_subcommand(subparsers, parent)
    window_cmd.register_subcommand(subparsers, parent)

    return parser


def load_configuration(args: argparse.Namespace) -> Configuration:
    """Resolve configuration with precedence: CLI > env > file > defaults."""
    config = Configuration()
    config.load_from_file(DEFAULT_CONFIG_FILE)
    config.load_from_env()

    cli_overrides = {
        "port": getattr(args, "port", None),
        "timeout": getattr(args, "timeout", None),
        "log_level": getattr(args, "log_level", None),
        "log_format": getattr(args, "log_format", None),
    }
    config.merge(**{k: v for k, v in cli_overrides.items() if v is not None})

    if getattr(args, "quiet", False):
        config.log_level = "ERROR"
    elif getattr(args, "verbose", False):
        config.log_level = "DEBUG"

    return config


def report_error(error: WebDriverError, config: Configuration) -> int:
    """
    Report a WebDriverError and apply its state side effects.

    A ProtocolError carrying "invalid session id" means the driver no longer
    knows the persisted session, so the persisted state is cleared.

    Returns:
        Exit code (always 1)
    """
    print(f"Error: {error.message}", file=sys.stderr)

    if error.kind == "protocol" and error.is_invalid_session:
        build_manager(config).invalidate()
        print(
            "Session is stale. Run `safari-cli start` to create a new one.",
            file=sys.stderr,
        )
    elif error.kind == "no-session":
        print("Run `safari-cli start` first.", file=sys.stderr)
    elif error.kind == "connection":
        print(
            "SafariDriver is not reachable. Run `safari-cli stop` then `safari-cli start`.",
            file=sys.stderr,
        )

    if error.details.get("recovery"):
        print(f"Recovery hint: {error.details['recovery']}", file=sys.stderr)

    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parent = create_parent_parser()
    parser = create_main_parser(parent)

    args = parser.parse_args(argv)

    config = load_configuration(args)

    setup_logging(
        format_type=config.log_format,
        level=config.log_level.upper() if isinstance(config.log_level, str) else "WARNING",
        quiet=getattr(args, "quiet", False),
        verbose=getattr(args, "verbose", False),
    )

    # Attach config to args for subcommands to access
    args.config = config
    debug = str(config.log_level).upper() == "DEBUG"

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT
    except WebDriverError as e:
        exit_code = report_error(e, config)
        if debug:
            raise  # Re-raise for full traceback in debug mode
        return exit_code
    except Exception as e:
        if debug:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
