"""SharePoint Embedded container operations for Microsoft Graph API.

Containers live under /storage/fileStorage/containers. As in the rest of
SharePoint Embedded tooling, these calls go to the beta endpoint.

Usage:
    from spe_mcp.graph.client import GraphClient
    from spe_mcp.graph.containers import ContainerManager

    containers = ContainerManager(client)

    items = containers.list_containers("00000000-0000-0000-0000-000000000000")
    created = containers.create_container(type_id, "Project Files")
    containers.add_column(created["id"], "Status", "text")
"""

from typing import TYPE_CHECKING, Any

from spe_mcp.core.logging import get_logger

if TYPE_CHECKING:
    from spe_mcp.graph.client import GraphClient

logger = get_logger(__name__)

CONTAINERS_ENDPOINT = "/storage/fileStorage/containers"

# Column kinds accepted by columnDefinition; each maps to a facet of the same name
COLUMN_KINDS = (
    "text",
    "boolean",
    "number",
    "dateTime",
    "currency",
    "choice",
    "hyperlinkOrPicture",
    "personOrGroup",
)


def build_column_definition(
    name: str,
    kind: str,
    display_name: str | None = None,
    description: str | None = None,
    choices: list[str] | None = None,
) -> dict[str, Any]:
    """Build a columnDefinition payload.

    Args:
        name: API-facing column name (no spaces)
        kind: One of COLUMN_KINDS
        display_name: User-facing name (defaults to name)
        description: Optional column description
        choices: Allowed values, required for the "choice" kind

    Returns:
        JSON payload for POST .../columns

    Raises:
        ValueError: If the name is empty, the kind is unknown, or a choice
            column has no choices
    """
    if not name or not name.strip():
        raise ValueError("Column name cannot be empty")
    if kind not in COLUMN_KINDS:
        raise ValueError(
            f"Unsupported column type '{kind}'. Supported types: {', '.join(COLUMN_KINDS)}"
        )

    facet: dict[str, Any] = {}
    if kind == "choice":
        if not choices:
            raise ValueError("A choice column needs at least one value in 'choices'")
        facet = {"allowTextEntry": False, "choices": list(choices), "displayAs": "dropDownMenu"}
    elif kind == "text":
        facet = {"allowMultipleLines": False, "maxLength": 255}
    elif kind == "dateTime":
        facet = {"displayAs": "default", "format": "dateTime"}

    payload: dict[str, Any] = {
        "name": name.strip(),
        "displayName": display_name or name.strip(),
        kind: facet,
    }
    if description:
        payload["description"] = description
    return payload


class ContainerManager:
    """Manages fileStorage container operations.

    Attributes:
        client: GraphClient instance for API calls
    """

    def __init__(self, client: "GraphClient"):
        self.client = client

    def list_containers(self, container_type_id: str) -> list[dict[str, Any]]:
        """List containers of one container type.

        Args:
            container_type_id: Container type GUID (Graph requires this filter)

        Returns:
            List of container dicts (id, displayName, containerTypeId, createdDateTime)
        """
        containers = self.client.paginate(
            CONTAINERS_ENDPOINT,
            params={"$filter": f"containerTypeId eq {container_type_id}"},
            beta=True,
        )
        logger.debug(
            "Containers listed",
            container_type_id=container_type_id,
            count=len(containers),
        )
        return containers

    def get_container(self, container_id: str) -> dict[str, Any]:
        """Get container details (empty dict if Graph returned no body)."""
        return self.client.get(f"{CONTAINERS_ENDPOINT}/{container_id}", beta=True)

    def create_container(
        self,
        container_type_id: str,
        display_name: str,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create a new container of the given type.

        Returns:
            The created container dict
        """
        payload: dict[str, Any] = {
            "displayName": display_name,
            "containerTypeId": container_type_id,
        }
        if description:
            payload["description"] = description

        created = self.client.post(CONTAINERS_ENDPOINT, json=payload, beta=True)
        logger.info(
            "Container created",
            container_type_id=container_type_id,
            display_name=display_name,
            container_id=created.get("id"),
        )
        return created

    def add_column(
        self,
        container_id: str,
        name: str,
        kind: str,
        display_name: str | None = None,
        description: str | None = None,
        choices: list[str] | None = None,
    ) -> dict[str, Any]:
        """Add a custom metadata column to a container.

        Raises:
            ValueError: If the column definition is invalid (no request is made)
        """
        payload = build_column_definition(name, kind, display_name, description, choices)
        created = self.client.post(
            f"{CONTAINERS_ENDPOINT}/{container_id}/columns",
            json=payload,
            beta=True,
        )
        logger.info(
            "Container column added",
            container_id=container_id,
            column=payload["name"],
            kind=kind,
        )
        return created
