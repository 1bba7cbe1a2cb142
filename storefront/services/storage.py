"""
Storage Service - S3-compatible image host

Product images are uploaded to AWS S3, Cloudflare R2, MinIO or any other
S3-compatible service and referenced from Product.images by public URL.
"""
import logging
import hashlib
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from storefront.core.config import settings
from storefront.core.exceptions import StorageError, ValidationError
from storefront.core.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Result of a file upload."""
    url: str
    key: str
    content_type: str
    size_bytes: int


class StorageService:
    """S3-compatible storage for product images."""

    ALLOWED_IMAGE_TYPES = {
        "image/png": ".png",
        "image/jpeg": ".jpg",
        "image/gif": ".gif",
        "image/webp": ".webp",
    }

    MAX_PRODUCT_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB

    def __init__(self, client=None):
        self._client = client
        self._bucket = settings.S3_BUCKET
        self._region = settings.S3_REGION

    @property
    def client(self):
        """Lazy-load S3 client."""
        if self._client is None:
            config = Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "standard"}
            )

            client_kwargs = {
                "service_name": "s3",
                "region_name": self._region,
                "config": config,
            }
            # Missing keys fall back to the default credential chain
            if settings.S3_ACCESS_KEY and settings.S3_SECRET_KEY:
                client_kwargs["aws_access_key_id"] = settings.S3_ACCESS_KEY
                client_kwargs["aws_secret_access_key"] = settings.S3_SECRET_KEY

            # Custom endpoint for R2/MinIO
            if settings.S3_ENDPOINT:
                client_kwargs["endpoint_url"] = settings.S3_ENDPOINT

            self._client = boto3.client(**client_kwargs)

        return self._client

    def get_public_url(self, key: str) -> str:
        if settings.S3_ENDPOINT:
            endpoint = settings.S3_ENDPOINT.rstrip("/")
            return f"{endpoint}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Reverse of get_public_url; None for URLs not hosted in this bucket."""
        prefix = self.get_public_url("")
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    def _generate_key(self, folder: str, filename: str, content: bytes) -> str:
        content_hash = hashlib.sha256(content).hexdigest()[:12]
        timestamp = utcnow().strftime("%Y%m%d")
        safe_filename = "".join(c for c in filename if c.isalnum() or c in ".-_").lower()
        return f"{folder}/{timestamp}_{content_hash}_{safe_filename}"

    def _validate_image(self, content: bytes, content_type: str) -> None:
        if content_type not in self.ALLOWED_IMAGE_TYPES:
            raise ValidationError(
                f"Invalid content type: {content_type}",
                details={"allowed": list(self.ALLOWED_IMAGE_TYPES.keys())},
            )
        if not content:
            raise ValidationError("Empty file")
        if len(content) > self.MAX_PRODUCT_IMAGE_SIZE:
            max_mb = self.MAX_PRODUCT_IMAGE_SIZE / (1024 * 1024)
            actual_mb = len(content) / (1024 * 1024)
            raise ValidationError(f"File too large: {actual_mb:.1f}MB. Max: {max_mb:.0f}MB")

        # Basic magic byte validation
        if content_type == "image/png" and not content.startswith(b"\x89PNG"):
            raise ValidationError("Invalid PNG file")
        if content_type == "image/jpeg" and not content.startswith(b"\xff\xd8"):
            raise ValidationError("Invalid JPEG file")
        if content_type == "image/gif" and not content.startswith(b"GIF"):
            raise ValidationError("Invalid GIF file")

    def upload_product_image(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        product_id: int,
    ) -> UploadResult:
        """
        Upload a product image.

        Raises:
            ValidationError: unsupported type, empty or oversized file
            StorageError: the image host rejected the upload
        """
        self._validate_image(content, content_type)
        key = self._generate_key(f"products/{product_id}", filename, content)

        try:
            self.client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                CacheControl="public, max-age=86400",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Product image upload failed for {key}: {e}")
            raise StorageError("Image upload failed", key=key) from e

        url = self.get_public_url(key)
        logger.info(f"Uploaded product image: {key}")
        return UploadResult(url=url, key=key, content_type=content_type, size_bytes=len(content))

    def delete_object(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Delete failed for {key}: {e}")
            raise StorageError("Image delete failed", key=key) from e
        logger.info(f"Deleted object: {key}")


_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
