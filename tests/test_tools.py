"""Tests for server/tools.py.

Each tool is called with a MagicMock standing in for Services; the tests
check the exact text handed back to the agent.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from spe_mcp.core.errors import GraphAPIError
from spe_mcp.core.logging import get_correlation_id
from spe_mcp.server import tools


@pytest.fixture
def services(mock_drive_items: MagicMock) -> MagicMock:
    """Return a mock Services bundle."""
    mock_services = MagicMock()
    mock_services.drive_items = mock_drive_items
    return mock_services


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestFormatJson:
    """Tests for format_json()."""

    def test_indented_camel_case(self) -> None:
        text = tools.format_json({"displayName": "Files", "containerTypeId": "t"})

        assert text == '{\n  "displayName": "Files",\n  "containerTypeId": "t"\n}'

    def test_odata_annotations_removed(self) -> None:
        value = {
            "@odata.context": "https://graph.microsoft.com/...",
            "id": "c1",
            "items": [{"@odata.etag": "x", "name": "a"}],
        }

        assert json.loads(tools.format_json(value)) == {"id": "c1", "items": [{"name": "a"}]}


class TestToolBoundary:
    """Tests for the tool_boundary decorator."""

    def test_exception_becomes_prefixed_text(self) -> None:
        @tools.tool_boundary("Error doing thing")
        def failing() -> str:
            raise RuntimeError("kaput")

        assert failing() == "Error doing thing: kaput"

    def test_correlation_id_set_during_call_and_cleared(self) -> None:
        seen: list[str | None] = []

        @tools.tool_boundary("Error")
        def recording() -> str:
            seen.append(get_correlation_id())
            return "ok"

        assert recording() == "ok"
        assert seen[0] is not None
        assert get_correlation_id() is None


# ---------------------------------------------------------------------------
# Container tools
# ---------------------------------------------------------------------------


class TestContainerTools:
    """Tests for the container tools."""

    def test_list_containers(self, services: MagicMock) -> None:
        services.containers.list_containers.return_value = [{"id": "c1", "displayName": "A"}]

        result = tools.list_containers_by_type(services, "type-1")

        assert json.loads(result) == [{"id": "c1", "displayName": "A"}]
        services.containers.list_containers.assert_called_once_with("type-1")

    def test_list_containers_empty(self, services: MagicMock) -> None:
        services.containers.list_containers.return_value = []

        assert tools.list_containers_by_type(services, "type-1") == "No containers found."

    def test_list_containers_error(self, services: MagicMock) -> None:
        services.containers.list_containers.side_effect = GraphAPIError("Permission denied (403)")

        result = tools.list_containers_by_type(services, "type-1")

        assert result == "Error listing containers: Permission denied (403)"

    def test_get_container(self, services: MagicMock) -> None:
        services.containers.get_container.return_value = {"id": "c1"}

        assert json.loads(tools.get_container(services, "c1")) == {"id": "c1"}

    def test_get_container_empty(self, services: MagicMock) -> None:
        services.containers.get_container.return_value = {}

        assert tools.get_container(services, "c1") == "Container with ID c1 not found."

    def test_get_container_error(self, services: MagicMock) -> None:
        services.containers.get_container.side_effect = GraphAPIError("Resource not found (404)")

        result = tools.get_container(services, "c1")

        assert result == "Error getting container details: Resource not found (404)"

    def test_create_container(self, services: MagicMock) -> None:
        services.containers.create_container.return_value = {"id": "new", "displayName": "X"}

        result = tools.create_container(services, "type-1", "X", "desc")

        assert json.loads(result)["id"] == "new"
        services.containers.create_container.assert_called_once_with("type-1", "X", "desc")

    def test_create_container_without_id(self, services: MagicMock) -> None:
        services.containers.create_container.return_value = {}

        assert tools.create_container(services, "type-1", "X") == "Failed to create container."

    def test_add_column(self, services: MagicMock) -> None:
        services.containers.add_column.return_value = {"id": "col", "name": "Status"}

        result = tools.add_container_column(services, "c1", "Status", "choice", choices=["a"])

        assert json.loads(result)["name"] == "Status"
        services.containers.add_column.assert_called_once_with(
            "c1", "Status", "choice", display_name=None, description=None, choices=["a"]
        )

    def test_add_column_without_id(self, services: MagicMock) -> None:
        services.containers.add_column.return_value = {}

        assert tools.add_container_column(services, "c1", "Status") == "Failed to add column 'Status'."

    def test_add_column_invalid_kind(self, services: MagicMock) -> None:
        services.containers.add_column.side_effect = ValueError("Unsupported column type 'blob'")

        result = tools.add_container_column(services, "c1", "Status", "blob")

        assert result == "Error adding column: Unsupported column type 'blob'"


# ---------------------------------------------------------------------------
# Item tools
# ---------------------------------------------------------------------------


class TestListContainerItems:
    """Tests for list_container_items()."""

    def test_root(self, services: MagicMock) -> None:
        services.drive_items.list_root_children.return_value = [{"name": "a.txt"}]

        result = tools.list_container_items(services, "c1")

        assert json.loads(result) == [{"name": "a.txt"}]
        services.drive_items.list_root_children.assert_called_once_with("c1")
        services.drive_items.get_item_by_path.assert_not_called()

    def test_root_empty(self, services: MagicMock) -> None:
        services.drive_items.list_root_children.return_value = []

        assert tools.list_container_items(services, "c1") == "No items found in the specified location."

    @pytest.mark.parametrize("folder_path", ["docs", "/docs", "docs/", "/docs/"])
    def test_folder_path_normalized(self, services: MagicMock, folder_path: str) -> None:
        services.drive_items.get_item_by_path.return_value = {"id": "f1"}
        services.drive_items.list_children_of.return_value = [{"name": "b.txt"}]

        result = tools.list_container_items(services, "c1", folder_path)

        assert json.loads(result) == [{"name": "b.txt"}]
        services.drive_items.get_item_by_path.assert_called_once_with("c1", "/docs")
        services.drive_items.list_children_of.assert_called_once_with("c1", "f1")

    def test_folder_without_id(self, services: MagicMock) -> None:
        services.drive_items.get_item_by_path.return_value = {}

        result = tools.list_container_items(services, "c1", "docs")

        assert result == "Folder path 'docs' not found in the container."

    def test_folder_lookup_error(self, services: MagicMock) -> None:
        services.drive_items.get_item_by_path.side_effect = GraphAPIError("Resource not found (404)")

        result = tools.list_container_items(services, "c1", "missing")

        assert result == "Error accessing folder path 'missing': Resource not found (404)"

    def test_root_listing_error(self, services: MagicMock) -> None:
        services.drive_items.list_root_children.side_effect = GraphAPIError("boom")

        assert tools.list_container_items(services, "c1") == "Error listing container items: boom"


class TestUploadFile:
    """Tests for upload_file()."""

    def test_upload_with_destination(self, services: MagicMock, docs_tree: Path) -> None:
        result = tools.upload_file(services, "c1", str(docs_tree / "a.txt"), "/archive/")

        assert result == "Uploaded: archive/a.txt"
        services.drive_items.write_content.assert_called_once_with("c1", "/archive/a.txt", b"alpha")

    def test_upload_to_root(self, services: MagicMock, docs_tree: Path) -> None:
        result = tools.upload_file(services, "c1", str(docs_tree / "sub" / "b.txt"))

        assert result == "Uploaded: b.txt"
        services.drive_items.write_content.assert_called_once_with("c1", "/b.txt", b"bravo")

    def test_missing_file(self, services: MagicMock, tmp_path: Path) -> None:
        missing = str(tmp_path / "none.txt")

        assert tools.upload_file(services, "c1", missing) == f"Local file '{missing}' does not exist."
        services.drive_items.write_content.assert_not_called()

    def test_empty_response(self, services: MagicMock, docs_tree: Path) -> None:
        services.drive_items.write_content.return_value = {}

        assert tools.upload_file(services, "c1", str(docs_tree / "a.txt")) == "Failed: a.txt"

    def test_oversize_file_is_not_sent(self, services: MagicMock, docs_tree: Path) -> None:
        with patch("spe_mcp.graph.drive_items.SIMPLE_UPLOAD_MAX_BYTES", 4):
            result = tools.upload_file(services, "c1", str(docs_tree / "a.txt"))

        assert result.startswith("Error uploading file: File is 5 bytes")
        services.drive_items.write_content.assert_not_called()

    def test_graph_error(self, services: MagicMock, docs_tree: Path) -> None:
        services.drive_items.write_content.side_effect = GraphAPIError("Permission denied (403)")

        result = tools.upload_file(services, "c1", str(docs_tree / "a.txt"))

        assert result == "Error uploading file: Permission denied (403)"


class TestUploadFolder:
    """Tests for upload_folder()."""

    def test_delegates_to_uploader(self, services: MagicMock) -> None:
        services.uploader.upload_folder.return_value = "Uploaded: a.txt"

        result = tools.upload_folder(services, "c1", "/tmp/docs", "archive")

        assert result == "Uploaded: a.txt"
        services.uploader.upload_folder.assert_called_once_with("c1", "/tmp/docs", "archive")

    def test_unexpected_error(self, services: MagicMock) -> None:
        services.uploader.upload_folder.side_effect = RuntimeError("boom")

        assert tools.upload_folder(services, "c1", "/tmp/docs") == "Error uploading folder: boom"
