"""MCP CLI - command-line host for the Lokalise domains."""

from mcp_cli.main import CommandRegistry, create_cli, main

__all__ = [
    "CommandRegistry",
    "create_cli",
    "main",
]
