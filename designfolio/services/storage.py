"""S3 object storage for uploaded media files."""

import logging
import os
import secrets
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any, BinaryIO

import boto3
from fastapi import Depends

from designfolio.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

MB = 1024 * 1024


@dataclass(frozen=True)
class UploadRule:
    """What one family of uploads may contain and where its objects go."""

    folder: str
    prefix: str
    max_bytes: int
    content_types: frozenset[str]
    extensions: frozenset[str]

    def accepts(self, content_type: str, filename: str) -> bool:
        extension = os.path.splitext(filename)[1].lower()
        return content_type in self.content_types and extension in self.extensions


IMAGE_UPLOADS = UploadRule(
    folder="images",
    prefix="img",
    max_bytes=10 * MB,
    content_types=frozenset(
        {"image/jpg", "image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}
    ),
    extensions=frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"}),
)

VIDEO_UPLOADS = UploadRule(
    folder="videos",
    prefix="vid",
    max_bytes=100 * MB,
    content_types=frozenset(
        {
            "video/mp4",
            "video/mpeg",
            "video/quicktime",
            "video/x-msvideo",
            "video/x-ms-wmv",
            "video/webm",
        }
    ),
    extensions=frozenset({".mp4", ".mpeg", ".mpg", ".mov", ".avi", ".wmv", ".webm"}),
)

UPLOAD_RULES = (IMAGE_UPLOADS, VIDEO_UPLOADS)
ALLOWED_EXTENSIONS = sorted(IMAGE_UPLOADS.extensions | VIDEO_UPLOADS.extensions)


def find_upload_rule(content_type: str, filename: str) -> UploadRule | None:
    """Rule whose MIME type and extension both match, or None when the file is not allowed."""
    for rule in UPLOAD_RULES:
        if rule.accepts(content_type, filename):
            return rule
    return None


def build_object_key(rule: UploadRule, filename: str) -> str:
    """media/<folder>/<prefix>_<epoch ms>_<32 hex chars><ext>, e.g. media/images/img_1700000000000_ab12....png"""
    extension = os.path.splitext(filename)[1].lower()
    timestamp = int(time.time() * 1000)
    return f"media/{rule.folder}/{rule.prefix}_{timestamp}_{secrets.token_hex(16)}{extension}"


class S3Storage:
    """Thin wrapper over a boto3 S3 client bound to one bucket."""

    def __init__(self, client: Any, bucket: str, public_base_url: str) -> None:
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3Storage":
        secret = settings.AWS_SECRET_ACCESS_KEY
        client = _s3_client(
            settings.AWS_REGION,
            settings.AWS_ACCESS_KEY_ID,
            secret.get_secret_value() if secret else None,
            settings.AWS_S3_ENDPOINT_URL,
        )
        if settings.AWS_S3_ENDPOINT_URL:
            base = f"{settings.AWS_S3_ENDPOINT_URL.rstrip('/')}/{settings.AWS_S3_BUCKET}"
        else:
            base = f"https://{settings.AWS_S3_BUCKET}.s3.{settings.AWS_REGION}.amazonaws.com"
        return cls(client, settings.AWS_S3_BUCKET, base)

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def key_from_url(self, url: str) -> str | None:
        """Object key for a URL this bucket served; None for anything stored elsewhere."""
        prefix = self.public_base_url + "/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    def put(self, fileobj: BinaryIO, key: str, content_type: str) -> str:
        """Upload ``fileobj`` under ``key`` and return its public URL."""
        self.client.upload_fileobj(
            fileobj,
            self.bucket,
            key,
            ExtraArgs={"ContentType": content_type},
        )
        logger.info("storage put bucket=%s key=%s content_type=%s", self.bucket, key, content_type)
        return self.public_url(key)

    def delete(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=key)
        logger.info("storage delete bucket=%s key=%s", self.bucket, key)


@lru_cache
def _s3_client(
    region: str,
    access_key_id: str | None,
    secret_access_key: str | None,
    endpoint_url: str | None,
) -> Any:
    # boto3 clients are thread-safe; one per credential set is enough.
    return boto3.client(
        "s3",
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        region_name=region,
        endpoint_url=endpoint_url,
    )


def get_storage(
    settings: Annotated[Settings, Depends(get_settings)],
) -> S3Storage | None:
    """Dependency: configured storage, or None when no bucket is set."""
    if not settings.AWS_S3_BUCKET:
        return None
    return S3Storage.from_settings(settings)
