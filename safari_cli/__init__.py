"""Control Safari from the command line via WebDriver.

This package provides:
- WebDriverClient: W3C WebDriver HTTP client for safaridriver
- SessionManager: driver process and session lifecycle, persisted across invocations
- CLI: Unified command-line interface (safari-cli)
"""

__version__ = "0.1.0"
