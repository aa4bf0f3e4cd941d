"""ZIP archive export of organized batches."""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import Iterable

from .models import OrganizedFile

LOGGER = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "organized-files.zip"


class ArchiveBuilder:
    """Lay out organized files in a ZIP container by organization path.

    Folder entries are written for every path prefix. When two records share
    a path the later record's content is stored at the position of the first.
    """

    def __init__(self, *, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self._compression = compression

    def build(self, files: Iterable[OrganizedFile]) -> bytes:
        """Return the archive for ``files`` as bytes.

        Raises:
            InputFileError: If the content of a file cannot be read.
        """
        buffer = io.BytesIO()
        self._write_to(buffer, files)
        return buffer.getvalue()

    def write(self, files: Iterable[OrganizedFile], destination: Path) -> Path:
        """Write the archive for ``files`` to ``destination``.

        Returns:
            Path: The destination path.
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("wb") as fh:
            self._write_to(fh, files)
        LOGGER.info("Wrote archive %s", destination)
        return destination

    def _write_to(self, target, files: Iterable[OrganizedFile]) -> None:
        entries: dict[str, OrganizedFile] = {}
        for record in files:
            entries[record.organization_path] = record

        folders: set[str] = set()
        with zipfile.ZipFile(target, mode="w", compression=self._compression) as archive:
            for path, record in entries.items():
                parts = path.split("/")[:-1]
                for depth in range(1, len(parts) + 1):
                    folder = "/".join(parts[:depth]) + "/"
                    if folder not in folders:
                        folders.add(folder)
                        archive.writestr(folder, b"")
                info = zipfile.ZipInfo(path, date_time=self._zip_timestamp(record))
                info.compress_type = self._compression
                archive.writestr(info, record.original_file.read_bytes())

    @staticmethod
    def _zip_timestamp(record: OrganizedFile) -> tuple[int, int, int, int, int, int]:
        stamp = record.metadata.last_modified
        # ZIP timestamps cannot predate 1980.
        if stamp.year < 1980:
            return (1980, 1, 1, 0, 0, 0)
        return (stamp.year, stamp.month, stamp.day, stamp.hour, stamp.minute, stamp.second)


def build_archive(files: Iterable[OrganizedFile]) -> bytes:
    """Build a ZIP archive for ``files`` with default settings."""
    return ArchiveBuilder().build(files)


__all__ = ["ArchiveBuilder", "DEFAULT_ARCHIVE_NAME", "build_archive"]
