"""File type detection and hashing utilities."""

from __future__ import annotations

import hashlib
import mimetypes
from typing import Literal

from .models import InputFile

SizeCategory = Literal["small", "medium", "large"]

_MEBIBYTE = 1024 * 1024

FILE_TYPE_BY_EXTENSION: dict[str, str] = {
    # images
    "jpg": "image",
    "jpeg": "image",
    "png": "image",
    "gif": "image",
    "bmp": "image",
    "svg": "image",
    "webp": "image",
    # documents
    "pdf": "document",
    "doc": "document",
    "docx": "document",
    "txt": "document",
    "rtf": "document",
    # spreadsheets
    "xls": "spreadsheet",
    "xlsx": "spreadsheet",
    "csv": "spreadsheet",
    # presentations
    "ppt": "presentation",
    "pptx": "presentation",
    # video
    "mp4": "video",
    "avi": "video",
    "mov": "video",
    "wmv": "video",
    "flv": "video",
    "webm": "video",
    # audio
    "mp3": "audio",
    "wav": "audio",
    "flac": "audio",
    "aac": "audio",
    "ogg": "audio",
    # archives
    "zip": "archive",
    "rar": "archive",
    "7z": "archive",
    "tar": "archive",
    "gz": "archive",
    # code
    "js": "code",
    "ts": "code",
    "jsx": "code",
    "tsx": "code",
    "html": "code",
    "css": "code",
    "py": "code",
    "java": "code",
}


class TypeDetector:
    """Identify media types, file-type buckets and size buckets."""

    def media_type(self, name: str) -> str:
        """Guess a media type from the file name; ``""`` when unknown."""
        guessed, _ = mimetypes.guess_type(name)
        return guessed or ""

    def file_type(self, name: str) -> str:
        """Return the file-type bucket for a file name.

        Known extensions map through ``FILE_TYPE_BY_EXTENSION``; unknown
        extensions map to the extension itself and names without one map to
        ``"unknown"``.
        """
        _, dot, suffix = name.rpartition(".")
        extension = suffix.lower() if dot else ""
        if not extension:
            return "unknown"
        return FILE_TYPE_BY_EXTENSION.get(extension, extension)

    def size_category(self, size_bytes: int) -> SizeCategory:
        """Bucket a byte size: small below 1 MiB, medium below 10 MiB, else large."""
        if size_bytes < _MEBIBYTE:
            return "small"
        if size_bytes < 10 * _MEBIBYTE:
            return "medium"
        return "large"

    def is_image(self, file: InputFile) -> bool:
        """Return whether the declared media type is an image type."""
        return file.media_type.lower().startswith("image/")


class HashComputer:
    """Compute SHA-256 content fingerprints for duplicate detection."""

    def compute(self, file: InputFile) -> str:
        """Return the lowercase hex SHA-256 digest of the full content.

        Raises:
            InputFileError: If the content cannot be read.
        """
        digest = hashlib.sha256()
        for chunk in file.iter_chunks():
            digest.update(chunk)
        return digest.hexdigest()


__all__ = ["FILE_TYPE_BY_EXTENSION", "HashComputer", "SizeCategory", "TypeDetector"]
