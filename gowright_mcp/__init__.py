"""Gowright MCP server: Go test generation for the Gowright framework."""

__version__ = "1.0.0"
