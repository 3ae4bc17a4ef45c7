"""Process-wide service wiring.

Builds the authenticated Graph client once and hands the same instance to
every manager, the folder uploader and the MCP tools. Whoever calls
init_services() owns the result and must call close() on shutdown (the
MCP lifespan and the CLI both do).

Usage:
    from spe_mcp.config import get_config
    from spe_mcp.dependencies import init_services

    services = init_services(get_config())
    try:
        print(services.uploader.upload_folder(container_id, "/tmp/docs"))
    finally:
        services.close()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from spe_mcp.auth.msal_auth import GraphAuth
from spe_mcp.core.logging import get_logger
from spe_mcp.engine.folder_upload import FolderUploader
from spe_mcp.graph.client import GraphClient
from spe_mcp.graph.containers import ContainerManager
from spe_mcp.graph.drive_items import DriveItemManager

if TYPE_CHECKING:
    from spe_mcp.config_schema import AppConfig

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Services:
    """Shared dependencies initialized by init_services()."""

    config: AppConfig
    auth: GraphAuth
    graph_client: GraphClient
    containers: ContainerManager
    drive_items: DriveItemManager
    uploader: FolderUploader

    def close(self) -> None:
        """Release the HTTP session held by the Graph client."""
        self.graph_client.close()
        logger.info("Services closed")


def init_services(config: AppConfig) -> Services:
    """Create the authenticated client and everything that depends on it.

    No network call is made here; MSAL tenant discovery and the first
    token both happen lazily on the first Graph request.

    Raises:
        ValueError: If credentials are empty
    """
    auth = GraphAuth(
        tenant_id=config.auth.tenant_id,
        client_id=config.auth.client_id,
        client_secret=config.auth.client_secret.get_secret_value(),
        authority_host=config.auth.authority_host,
        scopes=config.auth.scopes,
    )
    graph_client = GraphClient(
        auth,
        base_url=config.graph.base_url,
        beta_url=config.graph.beta_url,
        max_retries=config.graph.max_retries,
        timeout=config.graph.timeout_seconds,
    )
    drive_items = DriveItemManager(graph_client, upload_timeout=config.graph.upload_timeout_seconds)

    logger.info("Services initialized", base_url=config.graph.base_url)

    return Services(
        config=config,
        auth=auth,
        graph_client=graph_client,
        containers=ContainerManager(graph_client),
        drive_items=drive_items,
        uploader=FolderUploader(drive_items),
    )
