"""Bounded-concurrency upload of an UploadGroup to an object store backend."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from upr.core.config import Settings
from upr.core.exceptions import UploadError
from upr.core.logging import object_key_context
from upr.storage import ObjectStoreBackend, create_backend
from upr.uploads.models import UploadGroup, UploadItem, UploadReport, compute_expiry

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4

# Queue sentinel telling a worker there is no more work
_CLOSED = None


def _upload_item(backend: ObjectStoreBackend, item: UploadItem) -> str:
    """Open the item's file and push it; blocking, runs in a worker thread."""
    with open(item.path, "rb") as reader:
        return backend.put_object(item.object_key, reader)


async def _worker(
    worker_id: int,
    queue: asyncio.Queue,
    group: UploadGroup,
    backend: ObjectStoreBackend,
    report: UploadReport,
) -> None:
    while True:
        handle = await queue.get()
        if handle is _CLOSED:
            return

        item = group[handle]
        if not item.object_key:
            report.skipped += 1
            continue

        report.attempted += 1
        object_key_context.set(item.object_key)
        logger.info(f"  started: {item.object_key}", extra={"worker": worker_id})
        try:
            url = await asyncio.to_thread(_upload_item, backend, item)
        except Exception as e:
            report.failed += 1
            logger.error(
                f"Upload failed for '{item.path}'",
                extra={"worker": worker_id, "path": item.path, "error": str(e)},
                exc_info=not isinstance(e, (OSError, UploadError)),
            )
            continue
        finally:
            object_key_context.set(None)

        item.url = url
        report.uploaded += 1
        logger.info(f" uploaded: {item.object_key}", extra={"worker": worker_id, "url": url})


async def run_uploads(
    group: UploadGroup,
    backend: ObjectStoreBackend,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> UploadReport:
    """Upload every item in the group with a fixed pool of workers.

    Each handle is queued exactly once. A failed item is logged and keeps
    ``url=None``; the other uploads carry on. Returns after every worker has
    drained the queue.

    Args:
        group: Items to upload; their ``url`` fields are filled in place
        backend: Prepared object store backend
        concurrency: Number of parallel workers

    Returns:
        Counts of attempted, uploaded, failed and skipped items
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be positive, got {concurrency}")

    report = UploadReport()
    queue: asyncio.Queue = asyncio.Queue()
    for handle in group.handles():
        queue.put_nowait(handle)
    for _ in range(concurrency):
        queue.put_nowait(_CLOSED)

    logger.info(
        "Starting upload...  This can take a while, go get a coffee.  :)",
        extra={"files": len(group), "concurrency": concurrency, "backend": backend.get_backend_name()},
    )
    workers = [
        asyncio.create_task(_worker(worker_id, queue, group, backend, report))
        for worker_id in range(concurrency)
    ]
    await asyncio.gather(*workers)

    logger.info(
        f"Upload finished: {report.uploaded} uploaded, {report.failed} failed",
        extra={
            "attempted": report.attempted,
            "uploaded": report.uploaded,
            "failed": report.failed,
            "skipped": report.skipped,
        },
    )
    return report


def upload_files(group: UploadGroup, settings: Settings, now: Optional[datetime] = None) -> Optional[datetime]:
    """Set up the configured backend and upload the whole group.

    Args:
        group: Collected uploads; URLs are written back in place
        settings: Resolved settings with the uploads_* fields
        now: Reference time for the expiry computation

    Returns:
        The expiry shared by every uploaded object, or None

    Raises:
        ConfigurationError: If the backend settings are invalid
        AuthenticationError: If the store rejects the credentials
        BucketSetupError: If the bucket cannot be prepared
    """
    config = settings.backend_config()
    expires_at = compute_expiry(config.expire_days, now)
    backend = create_backend(config, expires_at)
    backend.prepare()
    asyncio.run(run_uploads(group, backend, config.concurrency))
    return expires_at
