"""MCP server exposing SharePoint Embedded tools over stdio.

Creates the FastMCP server with:
- Lifespan context manager that builds the shared services once and
  closes them on shutdown
- One registered tool per SharePoint Embedded operation

If configuration cannot be loaded the server still starts; every tool
then answers with the startup error so the agent host can surface it.

Usage:
    from spe_mcp.server.app import create_server

    server = create_server()
    server.run()  # stdio transport
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Any

from mcp.server.fastmcp import Context, FastMCP
from pydantic import Field

from spe_mcp.core.logging import get_logger
from spe_mcp.dependencies import Services
from spe_mcp.server import tools

logger = get_logger(__name__)

SERVER_NAME = "sharepoint-embedded"

SERVER_INSTRUCTIONS = """
Tools for SharePoint Embedded file storage containers.

A container ID is also a drive ID. Use list_containers_by_type to find
containers, list_container_items to browse them, and upload_file or
upload_folder to add content. Uploads overwrite files at the same path.
Paths inside a container use forward slashes.
""".strip()


@dataclass
class ServerState:
    """Lifespan state shared by every tool call."""

    services: Services | None
    startup_error: str | None = None


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[ServerState]:
    """Initialize services on startup, close them on shutdown.

    On startup:
    1. Load config (YAML + environment)
    2. Build auth, Graph client, managers and uploader
    """
    from spe_mcp.config import get_config
    from spe_mcp.dependencies import init_services

    try:
        services = init_services(get_config())
    except Exception as e:
        logger.error("services_init_failed", error=str(e))
        yield ServerState(services=None, startup_error=str(e))
        return

    logger.info("mcp_server_started", server=SERVER_NAME)
    try:
        yield ServerState(services=services)
    finally:
        services.close()
        logger.info("mcp_server_stopped", server=SERVER_NAME)


async def _run(ctx: Context, handler: Callable[..., str], *args: Any, **kwargs: Any) -> str:
    """Call a tool implementation with the shared services in a worker thread.

    The implementations block on Graph and on local file reads, so running
    them off the event loop keeps the stdio transport responsive.
    Returns the startup error instead when services could not be built.
    """
    state: ServerState = ctx.request_context.lifespan_context
    if state.services is None:
        return f"Server is not configured: {state.startup_error}"
    return await asyncio.to_thread(handler, state.services, *args, **kwargs)


ContainerId = Annotated[str, Field(description="Container ID")]


def register_tools(server: FastMCP) -> None:
    """Register every SharePoint Embedded tool on the server."""

    @server.tool(description="Lists SharePoint Embedded containers of a specific container type.")
    async def list_containers_by_type(
        ctx: Context,
        container_type_id: Annotated[str, Field(description="Container Type ID")],
    ) -> str:
        return await _run(ctx, tools.list_containers_by_type, container_type_id)

    @server.tool(description="Get details of a specific SharePoint Embedded container.")
    async def get_container(ctx: Context, container_id: ContainerId) -> str:
        return await _run(ctx, tools.get_container, container_id)

    @server.tool(description="List files and folders in a SharePoint Embedded container.")
    async def list_container_items(
        ctx: Context,
        container_id: ContainerId,
        folder_path: Annotated[
            str | None, Field(description="Optional folder path within container")
        ] = None,
    ) -> str:
        return await _run(ctx, tools.list_container_items, container_id, folder_path)

    @server.tool(description="Create a new SharePoint Embedded container of a container type.")
    async def create_container(
        ctx: Context,
        container_type_id: Annotated[str, Field(description="Container Type ID")],
        display_name: Annotated[str, Field(description="Display name of the new container")],
        description: Annotated[str | None, Field(description="Optional description")] = None,
    ) -> str:
        return await _run(ctx, tools.create_container, container_type_id, display_name, description)

    @server.tool(description="Add a custom metadata column to a SharePoint Embedded container.")
    async def add_container_column(
        ctx: Context,
        container_id: ContainerId,
        column_name: Annotated[str, Field(description="Column name (no spaces)")],
        column_type: Annotated[
            str,
            Field(
                description=(
                    "Column type: text, boolean, number, dateTime, currency, choice, "
                    "hyperlinkOrPicture or personOrGroup"
                )
            ),
        ] = "text",
        display_name: Annotated[str | None, Field(description="Optional display name")] = None,
        description: Annotated[str | None, Field(description="Optional description")] = None,
        choices: Annotated[
            list[str] | None, Field(description="Allowed values for a choice column")
        ] = None,
    ) -> str:
        return await _run(
            ctx,
            tools.add_container_column,
            container_id,
            column_name,
            column_type,
            display_name=display_name,
            description=description,
            choices=choices,
        )

    @server.tool(description="Upload a local file to a SharePoint Embedded container.")
    async def upload_file(
        ctx: Context,
        container_id: ContainerId,
        local_file_path: Annotated[str, Field(description="Path of the local file to upload")],
        dest_folder_path: Annotated[
            str | None, Field(description="Optional destination folder path within container")
        ] = None,
    ) -> str:
        return await _run(ctx, tools.upload_file, container_id, local_file_path, dest_folder_path)

    @server.tool(
        description=(
            "Upload all files in a local folder (recursively) to a SharePoint Embedded "
            "container, preserving the folder structure."
        )
    )
    async def upload_folder(
        ctx: Context,
        container_id: ContainerId,
        local_folder_path: Annotated[str, Field(description="Path of the local folder to upload")],
        dest_folder_path: Annotated[
            str | None, Field(description="Optional destination folder path within container")
        ] = None,
    ) -> str:
        return await _run(ctx, tools.upload_folder, container_id, local_folder_path, dest_folder_path)


def create_server() -> FastMCP:
    """Create the FastMCP server with all tools registered."""
    server = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS, lifespan=lifespan)
    register_tools(server)
    return server
