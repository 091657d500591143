"""OpenStack Swift object store backend."""

import logging
from datetime import datetime
from typing import BinaryIO, Optional
from urllib.parse import urlparse

from swiftclient import client as swift
from swiftclient.exceptions import ClientException

from upr.core.config import BackendConfig
from upr.core.exceptions import AuthenticationError, BucketSetupError, UploadError
from upr.storage.base import ObjectStoreBackend, guess_content_type

logger = logging.getLogger(__name__)

PUBLIC_READ_ACL = ".r:*,.rlistings"


def auth_version_for(auth_url: str) -> str:
    """Pick the Keystone/TempAuth version from the auth URL path."""
    path = urlparse(auth_url).path.rstrip("/")
    if "v3" in path:
        return "3"
    if "v2" in path:
        return "2.0"
    return "1.0"


class SwiftStorageBackend(ObjectStoreBackend):
    """Swift backend authenticating with a 'tenant:username' identity.

    Expiry is set per object with an X-Delete-At header at upload time.
    Each call opens its own HTTP connection, so uploads can run from
    several worker threads at once.
    """

    def __init__(self, config: BackendConfig, expires_at: Optional[datetime] = None):
        super().__init__(config, expires_at)
        self.tenant, self.username = config.identity_parts()
        self.storage_url: Optional[str] = None
        self._token: Optional[str] = None

    def authenticate(self) -> None:
        version = auth_version_for(self.config.endpoint)
        if version == "1.0":
            # TempAuth takes the account and user together
            user = f"{self.tenant}:{self.username}"
            os_options = {}
        else:
            user = self.username
            os_options = {"tenant_name": self.tenant, "project_name": self.tenant}
            if version == "3":
                os_options.update(user_domain_name="Default", project_domain_name="Default")

        try:
            self.storage_url, self._token = swift.get_auth(
                self.config.endpoint,
                user,
                self.config.secret,
                auth_version=version,
                os_options=os_options,
            )
        except (ClientException, OSError) as e:
            raise AuthenticationError(
                f"Swift authentication failed. Validate your credentials are correct: {e}"
            ) from e
        logger.debug("Swift authentication succeeded", extra={"storage_url": self.storage_url})

    def ensure_bucket(self) -> None:
        try:
            swift.head_container(self.storage_url, self._token, self.bucket)
            logger.debug("Container already exists", extra={"bucket": self.bucket})
            return
        except ClientException as e:
            if e.http_status != 404:
                raise BucketSetupError(f"Problem checking bucket '{self.bucket}': {e}") from e
        except OSError as e:
            raise BucketSetupError(f"Problem checking bucket '{self.bucket}': {e}") from e

        try:
            swift.put_container(self.storage_url, self._token, self.bucket)
        except (ClientException, OSError) as e:
            raise BucketSetupError(f"Problem creating bucket '{self.bucket}': {e}") from e
        logger.info("Container created", extra={"bucket": self.bucket})

    def make_public(self) -> None:
        try:
            swift.post_container(
                self.storage_url, self._token, self.bucket, {"X-Container-Read": PUBLIC_READ_ACL}
            )
        except (ClientException, OSError) as e:
            raise BucketSetupError(
                f"Problem updating headers to make bucket '{self.bucket}' public: {e}"
            ) from e

    def configure_expiry(self) -> None:
        # Swift expires objects individually; see put_object
        if self.expires_at is not None:
            logger.debug(
                "Objects will carry X-Delete-At",
                extra={"bucket": self.bucket, "delete_at": self._delete_at()},
            )

    def put_object(self, key: str, reader: BinaryIO) -> str:
        headers = {}
        if self.expires_at is not None:
            headers["X-Delete-At"] = self._delete_at()

        # Checksums are not verified; artifacts can be large
        try:
            swift.put_object(
                self.storage_url,
                self._token,
                self.bucket,
                key,
                contents=reader,
                content_type=guess_content_type(key),
                headers=headers,
            )
        except (ClientException, OSError) as e:
            raise UploadError(f"Problem uploading object '{key}': {e}") from e

        return self.object_url(self.storage_url or self.config.endpoint, key)

    def get_backend_name(self) -> str:
        return "swift"

    def _delete_at(self) -> str:
        return str(int(self.expires_at.timestamp()))
