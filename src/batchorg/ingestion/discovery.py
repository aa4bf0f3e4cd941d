"""Collect input batches from paths on disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator

from .errors import InputFileError
from .models import InputFile

LOGGER = logging.getLogger(__name__)


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


class DirectoryScanner:
    """Discover files under one or more paths subject to configuration filters."""

    def __init__(
        self,
        *,
        recursive: bool,
        include_hidden: bool,
        follow_symlinks: bool,
        max_size_bytes: int | None,
    ) -> None:
        self.recursive = recursive
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.max_size_bytes = max_size_bytes
        self.skipped: list[Path] = []

    def collect(self, roots: Iterable[Path]) -> list[InputFile]:
        """Return the batch for ``roots`` in discovery order, without repeats."""
        batch: list[InputFile] = []
        seen: set[Path] = set()
        for root in roots:
            for file in self.scan(root):
                key = file.path.resolve() if file.path is not None else Path(file.name)
                if key in seen:
                    continue
                seen.add(key)
                batch.append(file)
        return batch

    def scan(self, root: Path) -> Iterator[InputFile]:
        """Yield files under ``root`` (or ``root`` itself) respecting filters.

        Directory listings are sorted by name so batches are reproducible.
        """
        root = root.expanduser()
        if not root.exists():
            raise InputFileError(f"No such file or directory: {root}")

        for path in self._iter_paths(root):
            if path.is_symlink() and not self.follow_symlinks:
                continue
            if not path.is_file():
                continue
            relative = Path(path.name) if path == root else path.relative_to(root)
            if not self.include_hidden and _is_hidden(relative):
                continue
            try:
                file = InputFile.from_path(path, follow_symlinks=self.follow_symlinks)
            except InputFileError as exc:
                LOGGER.warning("Skipping unreadable file %s: %s", path, exc)
                self.skipped.append(path)
                continue
            if self.max_size_bytes is not None and file.size_bytes > self.max_size_bytes:
                LOGGER.info("Skipping oversized file %s (%d bytes)", path, file.size_bytes)
                self.skipped.append(path)
                continue
            yield file

    def _iter_paths(self, root: Path) -> Iterable[Path]:
        if root.is_file():
            yield root
            return

        if self.recursive:
            yield from sorted(root.rglob("*"))
        else:
            yield from sorted(root.iterdir())


__all__ = ["DirectoryScanner"]
