"""Collect local CI artifacts and push them to an object store."""

from upr.uploads.collector import collect_uploads, object_key_for
from upr.uploads.models import UploadGroup, UploadItem, UploadReport, compute_expiry
from upr.uploads.scheduler import run_uploads, upload_files

__all__ = [
    "UploadGroup",
    "UploadItem",
    "UploadReport",
    "collect_uploads",
    "compute_expiry",
    "object_key_for",
    "run_uploads",
    "upload_files",
]
