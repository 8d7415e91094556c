# symbols_awakening/adapters/mcp/server.py
"""
MCP stdio server.

Registers the tool catalogue, the `symbols://` resources and the prompts on a
low-level `mcp` Server and runs it over stdin/stdout. Logging must never
write to stdout while this server is running.
"""
import asyncio
import signal
from contextlib import suppress
from typing import Any, Dict, List, Optional

import mcp.server.stdio
import mcp.types as types
import structlog
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.models import InitializationOptions

from symbols_awakening import __version__
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository
from symbols_awakening.adapters.mcp.tools import (
    CATEGORIES_URI,
    CATEGORY_URI_TEMPLATE,
    PROMPTS,
    SERVER_NAME,
    SymbolsToolService,
    to_json,
)

logger = structlog.get_logger()


def build_server(service: SymbolsToolService) -> Server:
    server = Server(SERVER_NAME)

    # -- tools -------------------------------------------------------------

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return [
            types.Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema())
            for spec in service.specs
        ]

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        payload = await service.call(name, arguments)
        return [types.TextContent(type="text", text=to_json(payload))]

    # -- resources ---------------------------------------------------------

    @server.list_resources()
    async def handle_list_resources() -> List[types.Resource]:
        return [
            types.Resource(
                uri=CATEGORIES_URI,
                name="categories",
                description="All distinct symbol categories",
                mimeType="application/json",
            )
        ]

    @server.list_resource_templates()
    async def handle_list_resource_templates() -> List[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=CATEGORY_URI_TEMPLATE,
                name="symbols-by-category",
                description="Up to 20 symbols of one category",
                mimeType="application/json",
            )
        ]

    @server.read_resource()
    async def handle_read_resource(uri) -> List[ReadResourceContents]:
        text = await service.read_resource(str(uri))
        return [ReadResourceContents(content=text, mime_type="application/json")]

    # -- prompts -----------------------------------------------------------

    @server.list_prompts()
    async def handle_list_prompts() -> List[types.Prompt]:
        return [
            types.Prompt(
                name=prompt["name"],
                description=prompt["description"],
                arguments=[types.PromptArgument(**argument) for argument in prompt["arguments"]],
            )
            for prompt in PROMPTS
        ]

    @server.get_prompt()
    async def handle_get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
        rendered = await service.render_prompt(name, arguments)
        return types.GetPromptResult(
            description=rendered["description"],
            messages=[
                types.PromptMessage(
                    role="user",
                    content=types.TextContent(type="text", text=rendered["text"]),
                )
            ],
        )

    return server


async def serve_stdio(repository: ISymbolRepository, backend: str = "memory") -> None:
    """
    Connects the repository, serves MCP over stdio until the client hangs up
    or SIGTERM arrives, then disconnects.
    """
    result = await repository.connect()
    if not result.success:
        logger.error("repository_connect_failed", error=result.error.message)
        raise RuntimeError(f"Could not connect to the data store: {result.error.message}")

    server = build_server(SymbolsToolService(repository, backend=backend))
    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()
    with suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGTERM, main_task.cancel)

    logger.info("mcp_server_started", backend=backend)
    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )
    except asyncio.CancelledError:
        logger.info("mcp_server_cancelled")
    finally:
        with suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGTERM)
        await repository.disconnect()
        logger.info("mcp_server_stopped")
