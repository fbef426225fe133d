"""Object storage for submission files (S3-compatible)."""

import logging
import uuid
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from werkzeug.utils import secure_filename

import config
from core.exceptions import StorageError

logger = logging.getLogger(__name__)


class S3Storage:
    """Writes uploaded files to a bucket and returns their public URL."""

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.public_base_url = public_base_url
        self.client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
        )

    @classmethod
    def from_config(cls) -> "S3Storage":
        return cls(
            bucket=config.BUCKET_NAME,
            region=config.AWS_REGION,
            access_key_id=config.AWS_ACCESS_KEY_ID,
            secret_access_key=config.AWS_SECRET_ACCESS_KEY,
            endpoint_url=config.S3_ENDPOINT_URL,
            public_base_url=config.S3_PUBLIC_BASE_URL,
        )

    @staticmethod
    def build_key(filename: Optional[str]) -> str:
        """Build a unique object key: random prefix plus the sanitized name."""
        safe_name = secure_filename(filename or "") or "upload"
        return f"{uuid.uuid4()}-{safe_name}"

    def get_file_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def upload(self, data: bytes, filename: Optional[str], content_type: Optional[str] = None) -> str:
        """Write one file to the bucket.

        Args:
            data: File content.
            filename: Original client-side file name.
            content_type: MIME type reported by the client.

        Returns:
            Public URL of the stored object.

        Raises:
            StorageError: If the bucket rejects the write.
        """
        key = self.build_key(filename)
        params = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        try:
            self.client.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload '{filename}': {e}") from e

        logger.info("Uploaded %s to bucket %s", key, self.bucket)
        return self.get_file_url(key)
