"""Recursive folder upload into a SharePoint Embedded container.

Walks a local directory tree, rebases every file's relative path onto an
optional remote prefix, and writes each file with one whole-file PUT.
Files are processed one at a time in sorted relative-path order; one
file's failure never stops the rest of the batch.

Each file is read fully into memory and sent in a single request. Files
larger than Graph's simple-upload limit (250 MB, see
spe_mcp.graph.drive_items.SIMPLE_UPLOAD_MAX_BYTES) are rejected from
their size before being read and get an error line; resumable upload
sessions are not implemented.

Symlinked directories are not followed, so files under them are not
uploaded. Symlinked files are uploaded with the target's content.

Usage:
    from spe_mcp.engine.folder_upload import FolderUploader

    uploader = FolderUploader(drive_items)
    report = uploader.upload_folder("b!container", "/tmp/docs", "archive")
    print(report)
    # Uploaded: archive/a.txt
    # Uploaded: archive/sub/b.txt
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from spe_mcp.core.errors import UploadPreconditionError
from spe_mcp.core.logging import get_logger
from spe_mcp.graph.drive_items import check_simple_upload_size, normalize_remote_path

if TYPE_CHECKING:
    from spe_mcp.graph.drive_items import DriveItemManager

logger = get_logger(__name__)


class UploadStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERRORED = "errored"


@dataclass(frozen=True, slots=True)
class UploadTask:
    """One local file and the container path it is written to.

    ``remote_path`` is forward-slash separated with no leading or
    trailing slash.
    """

    local_path: Path
    remote_path: str


@dataclass(frozen=True, slots=True)
class UploadOutcome:
    """Result of uploading a single file."""

    task: UploadTask
    status: UploadStatus
    message: str | None = None

    def render(self) -> str:
        """Render the report line for this outcome."""
        if self.status is UploadStatus.SUCCEEDED:
            return f"Uploaded: {self.task.remote_path}"
        if self.status is UploadStatus.FAILED:
            return f"Failed: {self.task.remote_path}"
        return f"Error uploading {self.task.remote_path}: {self.message}"


@dataclass(frozen=True, slots=True)
class UploadReport:
    """All outcomes of one folder upload, in processing order."""

    outcomes: tuple[UploadOutcome, ...]

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status is UploadStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    def render(self) -> str:
        return "\n".join(outcome.render() for outcome in self.outcomes)


def _raise_walk_error(error: OSError) -> None:
    raise error


def collect_upload_tasks(local_folder: Path, dest_folder_path: str | None = None) -> list[UploadTask]:
    """Enumerate every file under local_folder and compute its remote path.

    The whole tree is walked before anything is uploaded. Tasks are sorted
    by relative path so the order does not depend on the filesystem.

    Args:
        local_folder: Root of the local tree
        dest_folder_path: Optional remote prefix

    Returns:
        List of UploadTask, one per file

    Raises:
        OSError: If a directory in the tree cannot be read
    """
    tasks: list[UploadTask] = []
    for dirpath, _dirnames, filenames in os.walk(local_folder, onerror=_raise_walk_error):
        current = Path(dirpath)
        relative_dir = current.relative_to(local_folder).as_posix()
        for filename in filenames:
            tasks.append(
                UploadTask(
                    local_path=current / filename,
                    remote_path=normalize_remote_path(dest_folder_path, relative_dir, filename),
                )
            )

    tasks.sort(key=lambda task: task.remote_path)
    return tasks


class FolderUploader:
    """Uploads a local folder tree into a container, one file at a time.

    Stateless between calls; the drive item manager (and the Graph client
    behind it) is injected once at startup.

    Attributes:
        drive_items: Remote store used for content writes
    """

    def __init__(self, drive_items: DriveItemManager):
        self.drive_items = drive_items

    def prepare(self, local_folder_path: str, dest_folder_path: str | None = None) -> list[UploadTask]:
        """Validate the local folder and build the task list.

        Raises:
            UploadPreconditionError: If the folder is missing or has no files
            OSError: If the tree cannot be enumerated
        """
        local_folder = Path(local_folder_path)
        if not local_folder.is_dir():
            raise UploadPreconditionError(
                f"Local folder '{local_folder_path}' does not exist.",
                local_path=local_folder_path,
            )

        tasks = collect_upload_tasks(local_folder, dest_folder_path)
        if not tasks:
            raise UploadPreconditionError(
                f"No files found in folder '{local_folder_path}'.",
                local_path=local_folder_path,
            )
        return tasks

    def upload_file(self, container_id: str, task: UploadTask) -> UploadOutcome:
        """Upload one file, converting any exception into an errored outcome."""
        try:
            check_simple_upload_size(task.local_path)
            content = task.local_path.read_bytes()
            item = self.drive_items.write_content(container_id, "/" + task.remote_path, content)
        except Exception as e:
            logger.warning(
                "File upload failed",
                container_id=container_id,
                path=task.remote_path,
                error=str(e),
            )
            return UploadOutcome(task=task, status=UploadStatus.ERRORED, message=str(e))

        if not item:
            logger.warning("File upload returned no item", container_id=container_id, path=task.remote_path)
            return UploadOutcome(task=task, status=UploadStatus.FAILED)

        logger.debug("File uploaded", container_id=container_id, path=task.remote_path, size=len(content))
        return UploadOutcome(task=task, status=UploadStatus.SUCCEEDED)

    def run(self, container_id: str, tasks: list[UploadTask]) -> UploadReport:
        """Upload every task in order and return the collected report."""
        outcomes = [self.upload_file(container_id, task) for task in tasks]
        return self._finish(container_id, outcomes)

    def _finish(self, container_id: str, outcomes: list[UploadOutcome]) -> UploadReport:
        report = UploadReport(outcomes=tuple(outcomes))
        logger.info(
            "Folder upload complete",
            container_id=container_id,
            total=len(outcomes),
            succeeded=report.succeeded,
            failed=report.failed,
        )
        return report

    def upload_folder(
        self,
        container_id: str,
        local_folder_path: str,
        dest_folder_path: str | None = None,
    ) -> str:
        """Upload a local folder and return the text report.

        Every failure becomes text: precondition failures return their own
        message, per-file failures become report lines, and anything else
        returns "Error uploading folder: ..." followed by the lines already
        collected, if any.

        Args:
            container_id: Target container (drive) ID
            local_folder_path: Local directory to upload
            dest_folder_path: Optional remote prefix

        Returns:
            Newline-joined report, one line per file, or an error message
        """
        outcomes: list[UploadOutcome] = []
        try:
            tasks = self.prepare(local_folder_path, dest_folder_path)
            logger.info(
                "Folder upload started",
                container_id=container_id,
                local_folder=local_folder_path,
                dest_folder=dest_folder_path,
                files=len(tasks),
            )
            for task in tasks:
                outcomes.append(self.upload_file(container_id, task))
            report = self._finish(container_id, outcomes)
        except UploadPreconditionError as e:
            logger.info("Folder upload rejected", local_folder=local_folder_path, reason=str(e))
            return str(e)
        except Exception as e:
            logger.error(
                "Folder upload aborted",
                container_id=container_id,
                local_folder=local_folder_path,
                completed=len(outcomes),
                error=str(e),
            )
            message = f"Error uploading folder: {e}"
            if outcomes:
                partial = UploadReport(outcomes=tuple(outcomes)).render()
                message += f"\nPartial results:\n{partial}"
            return message

        return report.render()
