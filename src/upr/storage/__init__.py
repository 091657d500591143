"""
Object store backends.

Uploaded CI artifacts are pushed to a public bucket through either the S3
or the Swift API; both implement ObjectStoreBackend.
"""

from upr.storage.base import ObjectStoreBackend
from upr.storage.factory import create_backend
from upr.storage.s3 import S3StorageBackend
from upr.storage.swift import SwiftStorageBackend

__all__ = [
    "ObjectStoreBackend",
    "S3StorageBackend",
    "SwiftStorageBackend",
    "create_backend",
]
