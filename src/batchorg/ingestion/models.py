"""Models describing files submitted for organization."""

from __future__ import annotations

import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import InputFileError

_READ_CHUNK = 1024 * 1024


class InputFile(BaseModel):
    """A file submitted to an organize batch.

    Content is loaded lazily from ``path`` unless ``data`` was supplied up
    front. Instances are immutable; the engine reads content at most a few
    times (hashing, text extraction, inline image upload).

    Attributes:
        name: File name including extension; never contains folder segments.
        size_bytes: Declared size of the content in bytes.
        last_modified: Last-modified timestamp.
        media_type: Declared media type, e.g. ``text/plain``; may be empty.
        path: Location of the content on disk, when backed by a file.
        data: In-memory content, when not backed by a file.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    size_bytes: int = Field(ge=0)
    last_modified: datetime
    media_type: str = ""
    path: Optional[Path] = None
    data: Optional[bytes] = Field(default=None, exclude=True, repr=False)

    @classmethod
    def from_path(cls, path: Path, *, follow_symlinks: bool = True) -> "InputFile":
        """Build an input file from a path on disk.

        Raises:
            InputFileError: If the path cannot be inspected.
        """
        try:
            stat = path.stat(follow_symlinks=follow_symlinks)
        except OSError as exc:
            raise InputFileError(f"Cannot read {path}: {exc}") from exc
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size_bytes=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime).astimezone(),
            media_type=media_type or "",
            path=path,
        )

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        *,
        last_modified: datetime | None = None,
        media_type: str | None = None,
    ) -> "InputFile":
        """Build an input file from in-memory content."""
        if media_type is None:
            media_type = mimetypes.guess_type(name)[0] or ""
        return cls(
            name=name,
            size_bytes=len(data),
            last_modified=last_modified or datetime.now().astimezone(),
            media_type=media_type,
            data=data,
        )

    @property
    def last_modified_ms(self) -> int:
        """Return the last-modified timestamp as epoch milliseconds."""
        return int(self.last_modified.timestamp() * 1000)

    @property
    def identity_key(self) -> str:
        """Return the heuristic ``name-size-lastModified`` identity key.

        Two distinct files may share a key; it correlates classification
        results with files inside one batch and is not content based.
        """
        return f"{self.name}-{self.size_bytes}-{self.last_modified_ms}"

    @property
    def extension(self) -> str:
        """Return the lower-cased extension with its leading dot, or ``""``."""
        stem, dot, suffix = self.name.rpartition(".")
        if not dot or not suffix:
            return ""
        return f".{suffix.lower()}"

    def iter_chunks(self, chunk_size: int = _READ_CHUNK) -> Iterator[bytes]:
        """Yield the content in chunks.

        Raises:
            InputFileError: If the content cannot be read.
        """
        if self.data is not None:
            yield self.data
            return
        if self.path is None:
            raise InputFileError(f"No content available for {self.name}")
        try:
            with self.path.open("rb") as fh:
                while chunk := fh.read(chunk_size):
                    yield chunk
        except OSError as exc:
            raise InputFileError(f"Cannot read {self.path}: {exc}") from exc

    def read_bytes(self) -> bytes:
        """Return the full content.

        Raises:
            InputFileError: If the content cannot be read.
        """
        return b"".join(self.iter_chunks())

    def read_text(self) -> str:
        """Return the content decoded as UTF-8, replacing invalid bytes."""
        return self.read_bytes().decode("utf-8", errors="replace")


class DocumentMetadata(BaseModel):
    """Estimated properties of extracted document text."""

    word_count: Optional[int] = None
    page_count: Optional[int] = None
    language: Optional[str] = None


__all__ = ["DocumentMetadata", "InputFile"]
