"""
Cloudflare R2 storage for product images.

R2 speaks the S3 API, so this is a boto3 S3 client pointed at the account
endpoint.
"""

import uuid
from typing import Optional
import boto3
from botocore.exceptions import BotoCoreError, ClientError
import structlog

from config import settings
from exceptions import StorageError

logger = structlog.get_logger(__name__)

EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
}


def guess_image_type(content: bytes) -> str:
    """Content type from magic bytes; falls back to image/png."""
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if content.startswith(b"GIF8"):
        return "image/gif"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    if content.startswith(b"BM"):
        return "image/bmp"
    return "image/png"


class R2Storage:
    """Uploads blobs and returns their public URL."""

    def __init__(self, client=None, bucket: Optional[str] = None, public_url: Optional[str] = None):
        self.bucket = bucket or settings.r2_bucket_name
        self.public_url = (public_url or settings.r2_public_url or "").rstrip("/")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not settings.r2_configured:
                raise StorageError("R2 credentials are not configured")
            self._client = boto3.client(
                "s3",
                endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
                aws_access_key_id=settings.r2_access_key_id,
                aws_secret_access_key=settings.r2_secret_access_key,
                region_name="auto",
            )
        return self._client

    def get_public_url(self, key: str) -> str:
        if not self.public_url:
            raise StorageError("R2 public URL is not configured")
        return f"{self.public_url}/{key}"

    def put(self, content: bytes, content_type: Optional[str] = None, key: Optional[str] = None) -> str:
        """
        Upload bytes.

        Args:
            content: Object body
            content_type: MIME type (sniffed from the bytes if None)
            key: Object key (random under products/ if None)

        Returns:
            Public URL of the object

        Raises:
            StorageError: If the upload fails
        """
        content_type = content_type or guess_image_type(content)
        if key is None:
            key = f"products/{uuid.uuid4()}.{EXTENSIONS.get(content_type, 'bin')}"

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("r2_upload_failed", key=key, error=str(e))
            raise StorageError(f"Failed to upload {key}: {str(e)}", details={"key": key})

        logger.debug("r2_upload_completed", key=key, size_bytes=len(content))
        return self.get_public_url(key)


# Singleton instance
_storage: Optional[R2Storage] = None


def get_storage() -> R2Storage:
    """Get or create R2Storage instance."""
    global _storage
    if _storage is None:
        _storage = R2Storage()
    return _storage
