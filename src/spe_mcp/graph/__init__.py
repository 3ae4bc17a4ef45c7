"""Microsoft Graph API client module.

Provides:
- Base client with retry logic and error handling
- Container operations (list, get, create, add column)
- Drive item operations (list children, write content)

Usage:
    from spe_mcp.auth import GraphAuth
    from spe_mcp.graph import ContainerManager, DriveItemManager, GraphClient

    auth = GraphAuth(tenant_id, client_id, client_secret)
    client = GraphClient(auth)
    containers = ContainerManager(client)
    drive_items = DriveItemManager(client)
"""

from spe_mcp.graph.client import GraphClient
from spe_mcp.graph.containers import ContainerManager
from spe_mcp.graph.drive_items import DriveItemManager

__all__ = [
    "GraphClient",
    "ContainerManager",
    "DriveItemManager",
]
