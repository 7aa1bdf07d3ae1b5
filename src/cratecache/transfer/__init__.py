"""Archive upload and download against the object store."""

from .download import check_exists, fetch_archive
from .retry import retry
from .upload import UploadSession, iter_chunks, part_count, upload_archive, verify_upload

__all__ = [
    "UploadSession",
    "check_exists",
    "fetch_archive",
    "iter_chunks",
    "part_count",
    "retry",
    "upload_archive",
    "verify_upload",
]
