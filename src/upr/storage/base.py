"""Abstract object store backend interface."""

import logging
import mimetypes
from abc import ABC, abstractmethod
from datetime import datetime
from typing import BinaryIO, Optional

from upr.core.config import BackendConfig

logger = logging.getLogger(__name__)


def guess_content_type(key: str) -> Optional[str]:
    """Guess a MIME type from the key's extension."""
    content_type, _ = mimetypes.guess_type(key)
    return content_type


class ObjectStoreBackend(ABC):
    """Abstract base class for object store backends.

    A backend is bound to one bucket and one expiry instant for the whole
    invocation; every object it uploads shares that expiry.
    """

    def __init__(self, config: BackendConfig, expires_at: Optional[datetime] = None):
        self.config = config
        self.bucket = config.bucket
        self.expires_at = expires_at

    def prepare(self) -> None:
        """Authenticate and set up the bucket before any upload starts.

        Raises:
            AuthenticationError: If the credentials are rejected
            BucketSetupError: If the bucket cannot be created, made public or given a lifecycle
        """
        self.authenticate()
        self.ensure_bucket()
        self.make_public()
        self.configure_expiry()
        logger.info(
            f"Using bucket: {self.bucket}",
            extra={"backend": self.get_backend_name(), "bucket": self.bucket, "expires_at": self.expires_at},
        )

    @abstractmethod
    def authenticate(self) -> None:
        """Validate credentials against the store.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        pass

    @abstractmethod
    def ensure_bucket(self) -> None:
        """Create the bucket unless it already exists.

        Raises:
            BucketSetupError: If the bucket cannot be checked or created
        """
        pass

    @abstractmethod
    def make_public(self) -> None:
        """Allow anonymous reads of every object in the bucket.

        Raises:
            BucketSetupError: If the access policy cannot be updated
        """
        pass

    @abstractmethod
    def configure_expiry(self) -> None:
        """Arrange for uploaded objects to be deleted at ``expires_at``.

        No-op when no expiry is configured.

        Raises:
            BucketSetupError: If the lifecycle cannot be configured
        """
        pass

    @abstractmethod
    def put_object(self, key: str, reader: BinaryIO) -> str:
        """Upload one object and make it publicly readable.

        Args:
            key: Object key derived from the local path
            reader: Open binary file to stream from

        Returns:
            Public URL of the uploaded object

        Raises:
            UploadError: If the upload fails
        """
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass

    def object_url(self, endpoint: str, key: str) -> str:
        """Compose ``<endpoint>/<bucket>/<key>`` with the endpoint's trailing slash stripped."""
        return f"{endpoint.rstrip('/')}/{self.bucket}/{key}"
