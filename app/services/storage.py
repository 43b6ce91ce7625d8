"""
Object Storage Service

Stores uploaded documents (reimbursement bills, profile pictures,
government IDs).

Supports:
- S3-compatible object storage via boto3 (production)
- Local file storage served under /files (development, tests)

Object keys are laid out as {base_folder}/{folder}/{owner_id}/{uuid}{ext}.
"""
import logging
import os
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.exceptions import DependencyFailureError, InvalidInputError

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = "/files"

IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")
DOCUMENT_TYPES = IMAGE_TYPES + ("application/pdf",)


class StorageProvider(str, Enum):
    S3 = "s3"
    LOCAL = "local"


@dataclass(frozen=True)
class FileRule:
    folder: str
    allowed_types: Tuple[str, ...]
    max_size: int
    label: str


FILE_RULES = {
    "bill": FileRule("reimbursement_bills", DOCUMENT_TYPES, settings.storage.max_bill_size, "Bill"),
    "profile_picture": FileRule("profile_pictures", IMAGE_TYPES, settings.storage.max_profile_picture_size, "Profile picture"),
    "government_id": FileRule("government_ids", DOCUMENT_TYPES, settings.storage.max_government_id_size, "Government ID"),
}


def validate_upload(kind: str, content_type: Optional[str], size: int) -> FileRule:
    """Check type and size of an upload against its rule. Raises InvalidInputError."""
    rule = FILE_RULES[kind]
    if (content_type or "").lower() not in rule.allowed_types:
        allowed = ", ".join(t.split("/")[-1] for t in rule.allowed_types)
        raise InvalidInputError(f"Invalid file type for {rule.label.lower()}. Allowed: {allowed}")
    if size <= 0:
        raise InvalidInputError("Uploaded file is empty")
    if size > rule.max_size:
        raise InvalidInputError(f"{rule.label} must be smaller than {rule.max_size // (1024 * 1024)}MB")
    return rule


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str


class StorageService:
    def __init__(self, config=None):
        self.config = config or settings.storage
        self.provider = StorageProvider(self.config.provider.lower())
        self._client = None
        if self.provider == StorageProvider.LOCAL:
            self.local_root = Path(self.config.local_dir)

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.config.s3_endpoint_url,
                region_name=self.config.s3_region,
                aws_access_key_id=self.config.s3_access_key,
                aws_secret_access_key=self.config.s3_secret_key,
                config=BotoConfig(s3={"addressing_style": "path"}, signature_version="s3v4"),
            )
        return self._client

    def build_key(self, filename: str, folder: str, owner_id) -> str:
        ext = os.path.splitext(filename or "")[1].lower()
        return f"{self.config.base_folder}/{folder}/{owner_id}/{uuid.uuid4()}{ext}"

    def public_url(self, key: str) -> str:
        if self.provider == StorageProvider.S3:
            endpoint = (self.config.s3_endpoint_url or "").rstrip("/")
            return f"{endpoint}/{self.config.s3_bucket_name}/{key}"
        return f"{self.config.public_base_url.rstrip('/')}{LOCAL_URL_PREFIX}/{key}"

    def put(self, content: bytes, filename: str, mime_type: str, folder: str, owner_id) -> StoredObject:
        """
        Store bytes and return the object key and its public URL.

        Raises:
            DependencyFailureError: the backend rejected the write.
        """
        key = self.build_key(filename, folder, owner_id)
        try:
            if self.provider == StorageProvider.S3:
                self.client.put_object(
                    Bucket=self.config.s3_bucket_name,
                    Key=key,
                    Body=content,
                    ContentType=mime_type,
                    ACL="public-read",
                )
            else:
                path = self.local_root / key
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(content)
        except (BotoCoreError, ClientError, OSError) as e:
            raise DependencyFailureError(f"Failed to store {filename}: {e}") from e

        logger.info(f"Stored object {key} ({len(content)} bytes) via {self.provider.value}")
        return StoredObject(key=key, url=self.public_url(key))

    def delete(self, key: Optional[str]) -> None:
        if not key:
            return
        try:
            if self.provider == StorageProvider.S3:
                self.client.delete_object(Bucket=self.config.s3_bucket_name, Key=key)
            else:
                path = self.local_root / key
                if path.exists():
                    path.unlink()
        except (BotoCoreError, ClientError, OSError) as e:
            raise DependencyFailureError(f"Failed to delete {key}: {e}") from e
        logger.info(f"Deleted object {key}")

    def delete_quietly(self, key: Optional[str]) -> bool:
        """Best-effort delete for cleanup paths. Failures are logged, never raised."""
        try:
            self.delete(key)
            return True
        except DependencyFailureError as e:
            logger.warning(f"Object cleanup failed, leaving {key} behind: {e.message}")
            return False

    def url_to_key(self, url: Optional[str]) -> Optional[str]:
        """Recover an object key from its public URL, or None when it cannot be parsed."""
        if not url:
            return None
        try:
            parsed = urlparse(url)
        except ValueError:
            return None
        if not parsed.scheme or not parsed.netloc:
            return None

        parts = [unquote(p) for p in parsed.path.split("/") if p]
        if self.provider == StorageProvider.LOCAL and parts[:1] == [LOCAL_URL_PREFIX.strip("/")]:
            parts = parts[1:]
        elif parts[:1] == [self.config.s3_bucket_name]:
            parts = parts[1:]
        return "/".join(parts) or None


_storage: Optional[StorageService] = None


def get_storage() -> StorageService:
    """Process-wide storage service; overridable as a FastAPI dependency."""
    global _storage
    if _storage is None:
        _storage = StorageService()
    return _storage
