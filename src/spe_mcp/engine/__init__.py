"""Upload engine.

Provides:
- FolderUploader: recursive folder upload with per-file outcome reporting

Usage:
    from spe_mcp.engine import FolderUploader

    uploader = FolderUploader(drive_items)
    print(uploader.upload_folder(container_id, "/tmp/docs", "archive"))
"""

from spe_mcp.engine.folder_upload import (
    FolderUploader,
    UploadOutcome,
    UploadReport,
    UploadStatus,
    UploadTask,
)

__all__ = [
    "FolderUploader",
    "UploadOutcome",
    "UploadReport",
    "UploadStatus",
    "UploadTask",
]
