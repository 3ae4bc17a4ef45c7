"""Drive item operations for SharePoint Embedded containers.

A container ID is also the ID of its drive, so files and folders are
reached through /drives/{container_id}/... on the v1.0 endpoint.

Content is written with a single PUT. Graph accepts at most
SIMPLE_UPLOAD_MAX_BYTES in one request; callers check a file with
check_simple_upload_size() before reading it. Larger files would need an
upload session, which this module does not implement.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from spe_mcp.core.errors import FileTooLargeError
from spe_mcp.core.logging import get_logger

if TYPE_CHECKING:
    from spe_mcp.graph.client import GraphClient

logger = get_logger(__name__)

# Graph's limit for PUT .../content without an upload session
SIMPLE_UPLOAD_MAX_BYTES = 250 * 1024 * 1024


def normalize_remote_path(*parts: str | None) -> str:
    """Join path parts into a forward-slash path without outer slashes.

    Backslashes are treated as separators and empty segments are dropped,
    so ``normalize_remote_path("/archive/", "sub//dir", "a.txt")`` gives
    ``"archive/sub/dir/a.txt"``.
    """
    segments: list[str] = []
    for part in parts:
        if not part:
            continue
        segments.extend(s for s in part.replace("\\", "/").split("/") if s and s != ".")
    return "/".join(segments)


def check_simple_upload_size(local_path: Path) -> int:
    """Return the size of local_path, rejecting files too large for one PUT.

    Only the file metadata is read.

    Raises:
        FileTooLargeError: If the file is over SIMPLE_UPLOAD_MAX_BYTES
        OSError: If the file cannot be stat'ed
    """
    size = local_path.stat().st_size
    if size > SIMPLE_UPLOAD_MAX_BYTES:
        raise FileTooLargeError(
            f"File is {size} bytes, over the {SIMPLE_UPLOAD_MAX_BYTES} byte "
            "single-request upload limit",
            local_path=str(local_path),
            size=size,
            limit=SIMPLE_UPLOAD_MAX_BYTES,
        )
    return size


def _quote_path(path: str) -> str:
    return quote(path, safe="/")


class DriveItemManager:
    """Manages files and folders inside a container's drive.

    Attributes:
        client: GraphClient instance for API calls
        upload_timeout: Timeout in seconds for content uploads
    """

    def __init__(self, client: "GraphClient", upload_timeout: float | None = None):
        self.client = client
        self.upload_timeout = upload_timeout

    def get_item_by_path(self, container_id: str, path: str) -> dict[str, Any]:
        """Get a drive item by its path relative to the container root.

        Args:
            container_id: Container (drive) ID
            path: Remote path, with or without leading slash

        Returns:
            The driveItem dict
        """
        remote_path = normalize_remote_path(path)
        return self.client.get(f"/drives/{container_id}/root:/{_quote_path(remote_path)}")

    def list_root_children(self, container_id: str) -> list[dict[str, Any]]:
        """List the files and folders at the container root."""
        return self.list_children_of(container_id, "root")

    def list_children_of(self, container_id: str, item_id: str) -> list[dict[str, Any]]:
        """List the children of a folder by item ID ("root" for the container root)."""
        return self.client.paginate(f"/drives/{container_id}/items/{item_id}/children")

    def write_content(self, container_id: str, remote_path: str, data: bytes) -> dict[str, Any]:
        """Create or overwrite a file at a path with the given bytes.

        Args:
            container_id: Container (drive) ID
            remote_path: Target path, e.g. "/archive/a.txt"
            data: Complete file content

        Returns:
            The created driveItem, or an empty dict if Graph returned no body
        """
        path = normalize_remote_path(remote_path)
        item = self.client.put_content(
            f"/drives/{container_id}/root:/{_quote_path(path)}:/content",
            data=data,
            timeout=self.upload_timeout,
        )
        logger.debug(
            "Content written",
            container_id=container_id,
            path=path,
            size=len(data),
            item_id=item.get("id"),
        )
        return item
