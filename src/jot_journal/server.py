"""MCP server exposing the jot tools over stdio: ``jot-mcp``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# MCP imports are optional - only needed when running the server
try:
    from mcp.server import Server  # pragma: no cover
    from mcp.server.stdio import stdio_server  # pragma: no cover
    from mcp.types import Tool, TextContent  # pragma: no cover
    HAS_MCP = True  # pragma: no cover
except ImportError:
    HAS_MCP = False
    Server = None  # type: ignore
    Tool = None  # type: ignore
    TextContent = None  # type: ignore

from .config import ProjectConfig, load_config
from .tools import execute_tool, make_tools

logger = logging.getLogger(__name__)

MISSING_MCP = "MCP package not installed. Install with: pip install jot-journal[mcp]"


def create_server(config: ProjectConfig) -> "Server":
    """Create and configure the MCP server.

    Raises:
        ImportError: If MCP package is not installed
    """
    if not HAS_MCP:
        raise ImportError(MISSING_MCP)

    server = Server("jot-journal")
    tool_defs = make_tools(config)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name=t["name"],
                description=t["description"],
                inputSchema=t["inputSchema"],
            )
            for t in tool_defs.values()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        logger.debug("Tool call %s %s", name, arguments)
        result = await execute_tool(config, name, arguments or {})
        return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]

    return server


async def run_server(config: ProjectConfig) -> None:
    """Run the MCP server with stdio transport."""
    if not HAS_MCP:
        raise ImportError(MISSING_MCP)

    server = create_server(config)  # pragma: no cover

    async with stdio_server() as (read_stream, write_stream):  # pragma: no cover
        await server.run(  # pragma: no cover
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Serve the jot history as MCP tools over stdio"
    )
    parser.add_argument(
        "--project-root",
        "-p",
        type=Path,
        default=Path.cwd(),
        help="Directory holding the history file (default: current directory)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to config file (default: auto-detect in project root)",
    )
    args = parser.parse_args()

    if not HAS_MCP:
        print(f"Error: {MISSING_MCP}", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args.project_root.resolve(), args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    # stdout carries the protocol, so logs go to stderr only
    logging.basicConfig(level=config.log_level, stream=sys.stderr)

    asyncio.run(run_server(config))


if __name__ == "__main__":  # pragma: no cover
    main()
