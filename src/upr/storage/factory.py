"""Select the object store backend for an invocation."""

from datetime import datetime
from typing import Optional

from upr.core.config import BackendConfig, BackendKind
from upr.storage.base import ObjectStoreBackend
from upr.storage.s3 import S3StorageBackend
from upr.storage.swift import SwiftStorageBackend

_BACKENDS: dict[BackendKind, type[ObjectStoreBackend]] = {
    BackendKind.S3: S3StorageBackend,
    BackendKind.SWIFT: SwiftStorageBackend,
}


def create_backend(config: BackendConfig, expires_at: Optional[datetime] = None) -> ObjectStoreBackend:
    """Instantiate the backend named by ``config.kind``.

    No network call is made; call ``prepare()`` on the result before uploading.
    """
    return _BACKENDS[config.kind](config, expires_at)
