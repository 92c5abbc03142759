"""MCP server exposing the webset job tools over stdio.

Run with ``python -m app.tools.server``.
"""

import asyncio
import logging
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent

from app.config import settings
from app.jobs.lifecycle import WebsetJobManager
from app.runtime import build_runtime
from app.tools.definitions import WEBSET_TOOLS
from app.tools.handlers import call_tool

logger = logging.getLogger(__name__)


def build_server(manager: WebsetJobManager) -> Server:
    server = Server("websets-job-service")

    @server.list_tools()
    async def list_tools():
        return WEBSET_TOOLS

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        return await call_tool(manager, name, arguments)

    return server


async def run_stdio() -> None:
    runtime = build_runtime(settings)
    await runtime.start()
    server = build_server(runtime.manager)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await runtime.stop()


def main() -> None:
    logging.basicConfig(level=settings.log_level)
    asyncio.run(run_stdio())


if __name__ == "__main__":
    main()
