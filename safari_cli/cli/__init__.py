"""Command-line interface for safari-cli."""
