"""SharePoint Embedded tool implementations.

Each function backs one MCP tool. They take the shared Services plus the
tool arguments, make one Graph call (or a short fixed sequence), and
return text for the agent: indented JSON on success, a plain sentence
otherwise. No function here raises; unexpected exceptions are turned
into "<prefix>: <message>" by the tool_boundary decorator.

Tools:
- list_containers_by_type: containers of one container type
- get_container: details of a single container
- list_container_items: files and folders at the root or under a path
- create_container: new container of a container type
- add_container_column: custom metadata column on a container
- upload_file: one local file into a container
- upload_folder: a local folder tree into a container
"""

from __future__ import annotations

import functools
import json
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from spe_mcp.core.logging import get_logger, set_correlation_id
from spe_mcp.graph.drive_items import check_simple_upload_size, normalize_remote_path

if TYPE_CHECKING:
    from spe_mcp.dependencies import Services

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _strip_annotations(value: Any) -> Any:
    """Drop @odata.* keys so the agent only sees resource properties."""
    if isinstance(value, dict):
        return {
            key: _strip_annotations(item)
            for key, item in value.items()
            if not key.startswith("@odata.")
        }
    if isinstance(value, list):
        return [_strip_annotations(item) for item in value]
    return value


def format_json(value: Any) -> str:
    """Serialize a Graph payload as indented JSON, keeping camelCase keys."""
    return json.dumps(_strip_annotations(value), indent=2, ensure_ascii=False, default=str)


def tool_boundary(error_prefix: str) -> Callable[[Callable[..., str]], Callable[..., str]]:
    """Run a tool with a fresh correlation ID and convert exceptions to text.

    Args:
        error_prefix: Leading text of the message returned on failure,
            e.g. "Error listing containers"
    """

    def decorator(func: Callable[..., str]) -> Callable[..., str]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> str:
            set_correlation_id(str(uuid.uuid4()))
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error("tool_execution_failed", tool=func.__name__, error=str(e))
                return f"{error_prefix}: {e}"
            finally:
                set_correlation_id(None)

        return wrapper

    return decorator


# ---------------------------------------------------------------------------
# Container tools
# ---------------------------------------------------------------------------


@tool_boundary("Error listing containers")
def list_containers_by_type(services: Services, container_type_id: str) -> str:
    """List containers of a specific container type."""
    containers = services.containers.list_containers(container_type_id)
    if not containers:
        return "No containers found."
    return format_json(containers)


@tool_boundary("Error getting container details")
def get_container(services: Services, container_id: str) -> str:
    """Get details of a specific container."""
    container = services.containers.get_container(container_id)
    if not container:
        return f"Container with ID {container_id} not found."
    return format_json(container)


@tool_boundary("Error creating container")
def create_container(
    services: Services,
    container_type_id: str,
    display_name: str,
    description: str | None = None,
) -> str:
    """Create a container of the given type."""
    created = services.containers.create_container(container_type_id, display_name, description)
    if not created.get("id"):
        return "Failed to create container."
    return format_json(created)


@tool_boundary("Error adding column")
def add_container_column(
    services: Services,
    container_id: str,
    column_name: str,
    column_type: str = "text",
    display_name: str | None = None,
    description: str | None = None,
    choices: list[str] | None = None,
) -> str:
    """Add a custom metadata column to a container."""
    created = services.containers.add_column(
        container_id,
        column_name,
        column_type,
        display_name=display_name,
        description=description,
        choices=choices,
    )
    if not created.get("id"):
        return f"Failed to add column '{column_name}'."
    return format_json(created)


# ---------------------------------------------------------------------------
# Item tools
# ---------------------------------------------------------------------------


@tool_boundary("Error listing container items")
def list_container_items(services: Services, container_id: str, folder_path: str | None = None) -> str:
    """List files and folders at the container root or under folder_path."""
    if not folder_path:
        items = services.drive_items.list_root_children(container_id)
    else:
        path_request = folder_path if folder_path.startswith("/") else "/" + folder_path
        if path_request.endswith("/"):
            path_request = path_request[:-1]

        try:
            folder = services.drive_items.get_item_by_path(container_id, path_request)
            if not folder.get("id"):
                return f"Folder path '{folder_path}' not found in the container."
            items = services.drive_items.list_children_of(container_id, folder["id"])
        except Exception as e:
            logger.warning(
                "folder_path_lookup_failed",
                container_id=container_id,
                folder_path=folder_path,
                error=str(e),
            )
            return f"Error accessing folder path '{folder_path}': {e}"

    if not items:
        return "No items found in the specified location."
    return format_json(items)


@tool_boundary("Error uploading file")
def upload_file(
    services: Services,
    container_id: str,
    local_file_path: str,
    dest_folder_path: str | None = None,
) -> str:
    """Upload one local file to dest_folder_path (or the root) of a container."""
    local_file = Path(local_file_path)
    if not local_file.is_file():
        return f"Local file '{local_file_path}' does not exist."

    check_simple_upload_size(local_file)
    remote_path = normalize_remote_path(dest_folder_path, local_file.name)
    item = services.drive_items.write_content(container_id, "/" + remote_path, local_file.read_bytes())
    if not item:
        return f"Failed: {remote_path}"

    logger.info("file_uploaded", container_id=container_id, path=remote_path, item_id=item.get("id"))
    return f"Uploaded: {remote_path}"


@tool_boundary("Error uploading folder")
def upload_folder(
    services: Services,
    container_id: str,
    local_folder_path: str,
    dest_folder_path: str | None = None,
) -> str:
    """Upload every file under a local folder, preserving relative paths."""
    return services.uploader.upload_folder(container_id, local_folder_path, dest_folder_path)
