"""File storage for uploads.

Two flavours: :class:`LocalFileStorage` writes to disk and returns a path
reference; :class:`InlineFileStorage` keeps the bytes on the owning entity.
Both validate the upload against an :class:`UploadPolicy` first.
"""
from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional, Protocol

from ..core.constants import MAX_UPLOAD_BYTES
from ..core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Upload:
    """Raw file received from a form."""

    data: bytes
    content_type: str
    filename: str


@dataclass(frozen=True)
class StoredFile:
    content_type: str
    size: int
    filename: str
    reference: Optional[str] = None
    data: Optional[bytes] = None


@dataclass(frozen=True)
class UploadPolicy:
    allowed_types: FrozenSet[str]
    allowed_extensions: FrozenSet[str] = frozenset()
    max_bytes: int = MAX_UPLOAD_BYTES
    label: str = "File"

    def check(self, data: bytes, *, content_type: str, filename: str) -> None:
        if not data:
            raise ValidationError(f"{self.label} is empty")
        if len(data) > self.max_bytes:
            raise ValidationError(f"{self.label} exceeds {self.max_bytes // (1024 * 1024)} MB")

        content_type = (content_type or "").lower()
        ext = os.path.splitext(filename or "")[1].lower()
        if self.allowed_types and content_type not in self.allowed_types:
            raise ValidationError(f"{self.label} type not allowed: {content_type or 'unknown'}")
        if self.allowed_extensions and ext not in self.allowed_extensions:
            raise ValidationError(f"{self.label} extension not allowed: {ext or 'none'}")


def unique_filename(original_filename: str, prefix: str = "") -> str:
    ext = ""
    if "." in (original_filename or ""):
        ext = "." + original_filename.rsplit(".", 1)[1].lower()
    name = f"{uuid.uuid4().hex[:12]}{ext}"
    return f"{prefix}/{name}" if prefix else name


class FileStorage(Protocol):
    def save(
        self,
        data: bytes,
        *,
        content_type: str,
        filename: str,
        policy: Optional[UploadPolicy] = None,
        prefix: str = "",
    ) -> StoredFile:
        raise NotImplementedError

    def read(self, reference: str) -> bytes:
        raise NotImplementedError


class LocalFileStorage(FileStorage):
    def __init__(self, root: str | Path):
        self._root = Path(root).resolve()

    def _resolve(self, reference: str) -> Path:
        path = (self._root / reference).resolve()
        if self._root not in path.parents:
            raise ValidationError("Invalid file reference")
        return path

    def save(
        self,
        data: bytes,
        *,
        content_type: str,
        filename: str,
        policy: Optional[UploadPolicy] = None,
        prefix: str = "",
    ) -> StoredFile:
        if policy:
            policy.check(data, content_type=content_type, filename=filename)

        reference = unique_filename(filename, prefix)
        path = self._resolve(reference)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored upload %s (%d bytes)", reference, len(data))
        return StoredFile(content_type=content_type, size=len(data), filename=filename, reference=reference)

    def read(self, reference: str) -> bytes:
        path = self._resolve(reference)
        if not path.is_file():
            raise NotFoundError("File not found")
        return path.read_bytes()


class InlineFileStorage(FileStorage):
    """Validates and hands the bytes back; the caller persists them inline."""

    def save(
        self,
        data: bytes,
        *,
        content_type: str,
        filename: str,
        policy: Optional[UploadPolicy] = None,
        prefix: str = "",
    ) -> StoredFile:
        if policy:
            policy.check(data, content_type=content_type, filename=filename)
        return StoredFile(content_type=content_type, size=len(data), filename=filename, data=data)

    def read(self, reference: str) -> bytes:
        raise NotFoundError("Inline files are read from their owning record")
