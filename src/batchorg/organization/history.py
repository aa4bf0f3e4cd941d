"""Snapshot history supporting undo of organize batches."""

from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .models import BatchSnapshot


class BatchHistory(BaseModel):
    """Immutable stack of whole-batch snapshots, newest last.

    Every operation returns a new history; snapshots are never edited in
    place.
    """

    model_config = ConfigDict(frozen=True)

    snapshots: List[BatchSnapshot] = Field(default_factory=list)

    @property
    def current(self) -> Optional[BatchSnapshot]:
        """Return the most recent snapshot, if any."""
        return self.snapshots[-1] if self.snapshots else None

    def __len__(self) -> int:
        return len(self.snapshots)

    def push(self, snapshot: BatchSnapshot, *, limit: Optional[int] = None) -> "BatchHistory":
        """Return a history with ``snapshot`` on top, keeping at most ``limit`` entries."""
        snapshots = [*self.snapshots, snapshot]
        if limit is not None and limit > 0:
            snapshots = snapshots[-limit:]
        return BatchHistory(snapshots=snapshots)

    def undo(self) -> Tuple["BatchHistory", Optional[BatchSnapshot]]:
        """Drop the newest snapshot.

        Returns:
            tuple: The shortened history and the snapshot that is now current,
            or ``None`` when nothing remains.

        Raises:
            IndexError: If the history is empty.
        """
        if not self.snapshots:
            raise IndexError("No organize batch to undo")
        remaining = BatchHistory(snapshots=self.snapshots[:-1])
        return remaining, remaining.current


__all__ = ["BatchHistory"]
