"""S3 object store backend."""

import logging
from datetime import datetime
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from upr.core.config import BackendConfig
from upr.core.exceptions import AuthenticationError, BucketSetupError, UploadError
from upr.storage.base import ObjectStoreBackend, guess_content_type

logger = logging.getLogger(__name__)

# Objects under this prefix are covered by the bucket lifecycle rule
EXPIRE_PREFIX = "upload-expires"

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}


class S3StorageBackend(ObjectStoreBackend):
    """S3 (or S3 compatible) backend.

    Expiry is a bucket lifecycle rule scoped to ``upload-expires``; expiring
    objects are written under that prefix.
    """

    def __init__(self, config: BackendConfig, expires_at: Optional[datetime] = None):
        super().__init__(config, expires_at)
        # No identity/secret means the default chain (~/.aws/credentials, AWS_* env vars)
        self._session = boto3.session.Session(
            aws_access_key_id=config.identity or None,
            aws_secret_access_key=config.secret or None,
            region_name=config.region,
        )
        self._client = self._session.client("s3", endpoint_url=config.endpoint, region_name=config.region)

    def authenticate(self) -> None:
        if self._session.get_credentials() is None:
            raise AuthenticationError(
                "S3 credentials not found. Set 'uploads_identity'/'uploads_secret', "
                "AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY or ~/.aws/credentials."
            )

    def ensure_bucket(self) -> None:
        try:
            self._client.head_bucket(Bucket=self.bucket)
            logger.debug("Bucket already exists", extra={"bucket": self.bucket})
            return
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code not in _MISSING_BUCKET_CODES:
                raise BucketSetupError(f"Problem checking bucket '{self.bucket}': {e}") from e
        except BotoCoreError as e:
            raise BucketSetupError(f"Problem checking bucket '{self.bucket}': {e}") from e

        create_kwargs = {"Bucket": self.bucket}
        # us-east-1 is the default location and rejects an explicit constraint
        if self.config.region and self.config.region != "us-east-1":
            create_kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.config.region}
        try:
            self._client.create_bucket(**create_kwargs)
        except (ClientError, BotoCoreError) as e:
            raise BucketSetupError(f"Problem creating bucket '{self.bucket}': {e}") from e
        logger.info("Bucket created", extra={"bucket": self.bucket})

    def make_public(self) -> None:
        try:
            self._client.put_bucket_acl(Bucket=self.bucket, ACL="public-read")
        except (ClientError, BotoCoreError) as e:
            raise BucketSetupError(f"Problem updating ACLs to make bucket '{self.bucket}' public: {e}") from e

    def configure_expiry(self) -> None:
        if self.expires_at is None:
            return
        lifecycle = {
            "Rules": [
                {
                    "ID": EXPIRE_PREFIX,
                    "Filter": {"Prefix": EXPIRE_PREFIX},
                    "Status": "Enabled",
                    "Expiration": {"Date": self.expires_at},
                }
            ]
        }
        try:
            self._client.put_bucket_lifecycle_configuration(
                Bucket=self.bucket, LifecycleConfiguration=lifecycle
            )
        except (ClientError, BotoCoreError) as e:
            raise BucketSetupError(
                f"Problem updating lifecycle to automatically expire objects in bucket '{self.bucket}': {e}"
            ) from e

    def put_object(self, key: str, reader: BinaryIO) -> str:
        if self.expires_at is not None:
            key = f"{EXPIRE_PREFIX}/{key}"

        params = {"Bucket": self.bucket, "Key": key, "Body": reader}
        content_type = guess_content_type(key)
        if content_type:
            params["ContentType"] = content_type
        if self.expires_at is not None:
            params["Expires"] = self.expires_at

        try:
            self._client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Problem uploading object '{key}': {e}") from e

        try:
            self._client.put_object_acl(Bucket=self.bucket, Key=key, ACL="public-read")
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Problem updating ACLs to make object '{key}' public: {e}") from e

        return self.object_url(self.config.endpoint, key)

    def get_backend_name(self) -> str:
        return "s3"
