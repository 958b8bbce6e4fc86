"""MCP stdio server exposing the Gowright operations as tools.

``tools/list`` advertises the operation catalog and ``tools/call`` hands
the raw arguments to the :class:`~gowright_mcp.dispatcher.Dispatcher`.
Argument validation is left to the dispatcher so every failure comes back
as an ordinary text response.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from gowright_mcp import __version__
from gowright_mcp.config import Settings
from gowright_mcp.dispatcher import Dispatcher
from gowright_mcp.schemas import tool_definitions
from gowright_mcp.utils import console


def list_tool_definitions() -> list[types.Tool]:
    """The catalog as MCP ``Tool`` objects."""
    return [
        types.Tool(name=d["name"], description=d["description"], inputSchema=d["inputSchema"])
        for d in tool_definitions()
    ]


async def handle_call(
    dispatcher: Dispatcher, name: str, arguments: Optional[dict[str, Any]]
) -> list[types.TextContent]:
    """Run one tool call and wrap the report in a single text block."""
    result = await dispatcher.dispatch(name, arguments)
    return [types.TextContent(type="text", text=result.report)]


def build_server(dispatcher: Dispatcher) -> Server:
    """Create the low-level MCP server wired to *dispatcher*."""
    server: Server = Server(
        dispatcher.settings.server_name, version=dispatcher.settings.server_version
    )

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return list_tool_definitions()

    @server.call_tool(validate_input=False)
    async def _call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        return await handle_call(dispatcher, name, arguments)

    return server


async def serve(settings: Settings | None = None) -> None:
    """Serve requests on stdin/stdout until the client disconnects."""
    settings = settings or Settings.from_env()
    dispatcher = Dispatcher(settings)
    server = build_server(dispatcher)

    console.print(
        f"[bold cyan]{settings.server_name}[/bold cyan] {__version__} "
        f"running on stdio (workdir: {settings.working_dir})"
    )
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``gowright-mcp`` / ``python -m gowright_mcp``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Gowright MCP server -- Go test generation over stdio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  gowright-mcp\n"
            "  gowright-mcp --workdir ./my-service\n"
            "  GOWRIGHT_MCP_TEST_TIMEOUT=600 gowright-mcp\n"
        ),
    )
    parser.add_argument(
        "--workdir", "-w",
        default=None,
        help="Project directory the tools operate on (default: $GOWRIGHT_MCP_WORKDIR or cwd)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid environment settings: {exc}")
        sys.exit(1)

    if args.workdir:
        workdir = Path(args.workdir)
        if not workdir.is_dir():
            console.print(f"[bold red]Error:[/bold red] Working directory not found: {workdir}")
            sys.exit(1)
        settings.working_dir = workdir.resolve()

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        console.print("[dim]Server stopped.[/dim]")


if __name__ == "__main__":
    main()
