"""Media store for vehicle images.

Uploaded bytes are sniffed with Pillow (the client-supplied content type
and file name are not trusted). Accepted images go to S3/MinIO when
``S3_ENABLED`` is set, otherwise to Django's default file storage.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from io import BytesIO

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings  # type: ignore
from django.core.files.base import ContentFile  # type: ignore
from django.core.files.storage import default_storage  # type: ignore
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Pillow format name -> (content type, extension)
ALLOWED_FORMATS = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "WEBP": ("image/webp", "webp"),
}


class InvalidImage(ValueError):
    """The uploaded bytes are not an acceptable image."""


class MediaUploadError(RuntimeError):
    """The storage backend refused or failed the upload."""


class MediaStore:
    """Validates and stores vehicle images, returning their public URL."""

    folder = "vehicles"

    def __init__(self, *, max_size: int | None = None, s3_enabled: bool | None = None):
        self.max_size = max_size or getattr(settings, "VEHICLE_IMAGE_MAX_SIZE", 5 * 1024 * 1024)
        self.s3_enabled = getattr(settings, "S3_ENABLED", False) if s3_enabled is None else s3_enabled
        self._s3_client = None

    # ---------- validation ----------

    def sniff(self, data: bytes) -> tuple[str, str]:
        """Return (content_type, extension) for the image in ``data``."""
        if not data:
            raise InvalidImage("Image is empty.")
        if len(data) > self.max_size:
            raise InvalidImage(f"Image is too large. Maximum {self.max_size / 1024 / 1024:.1f} MB.")
        try:
            with Image.open(BytesIO(data)) as img:
                image_format = img.format
                img.verify()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as exc:
            raise InvalidImage("Invalid image file.") from exc
        if image_format not in ALLOWED_FORMATS:
            raise InvalidImage(f"Unsupported image format: {image_format}.")
        return ALLOWED_FORMATS[image_format]

    # ---------- storage ----------

    def _object_name(self, data: bytes, extension: str) -> str:
        digest = hashlib.md5(data).hexdigest()[:8]
        return f"{self.folder}/{digest}_{uuid.uuid4().hex[:8]}.{extension}"

    @property
    def s3_client(self):
        if self._s3_client is None:
            self._s3_client = boto3.client(
                "s3",
                endpoint_url=getattr(settings, "S3_ENDPOINT_URL", None) or None,
                aws_access_key_id=getattr(settings, "S3_ACCESS_KEY", ""),
                aws_secret_access_key=getattr(settings, "S3_SECRET_KEY", ""),
                region_name=getattr(settings, "S3_REGION", "us-east-1"),
                config=BotoConfig(
                    signature_version="s3v4",
                    s3={"addressing_style": getattr(settings, "S3_ADDRESSING_STYLE", "path")},
                ),
            )
        return self._s3_client

    def _upload_s3(self, name: str, data: bytes, content_type: str) -> str:
        bucket = settings.S3_BUCKET_NAME
        try:
            self.s3_client.put_object(
                Bucket=bucket,
                Key=name,
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 upload of %s failed: %s", name, exc, exc_info=True)
            raise MediaUploadError("Image upload failed.") from exc

        public_base = getattr(settings, "S3_PUBLIC_BASE", "").rstrip("/")
        if public_base:
            return f"{public_base}/{name}"
        return self.s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": name},
            ExpiresIn=7 * 24 * 3600,
        )

    def _upload_local(self, name: str, data: bytes) -> str:
        saved_name = default_storage.save(name, ContentFile(data))
        return default_storage.url(saved_name)

    def store(self, data: bytes) -> str:
        """Validate ``data`` and store it; returns the image URL."""
        content_type, extension = self.sniff(data)
        name = self._object_name(data, extension)
        if self.s3_enabled:
            url = self._upload_s3(name, data, content_type)
        else:
            url = self._upload_local(name, data)
        logger.info("Stored vehicle image %s (%s, %d bytes)", name, content_type, len(data))
        return url
