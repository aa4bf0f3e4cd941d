"""Persistence of organize batch history for the batchorg CLI."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from batchorg.organization.history import BatchHistory

from .errors import MissingStateError, StateError

HISTORY_FILENAME = "history.json"


class StateRepository:
    """Store the snapshot history of organize batches as JSON.

    In-memory file content is not serialized; restored snapshots reference
    files by path only.
    """

    def __init__(self, base_dir: Path) -> None:
        """Initialize the repository.

        Args:
            base_dir: Directory that holds the history file.
        """
        self._base_dir = base_dir.expanduser()

    @property
    def history_path(self) -> Path:
        """Return the location of the history file."""
        return self._base_dir / HISTORY_FILENAME

    def load_history(self, *, missing_ok: bool = False) -> BatchHistory:
        """Load the recorded snapshot history.

        Args:
            missing_ok: Return an empty history instead of raising when no
                history file exists.

        Returns:
            BatchHistory: Stored snapshots, oldest first.

        Raises:
            MissingStateError: If no history exists and ``missing_ok`` is False.
            StateError: If the stored data cannot be parsed.
        """
        path = self.history_path
        if not path.exists():
            if missing_ok:
                return BatchHistory()
            raise MissingStateError(f"No batch history found at {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StateError(f"Invalid batch history data: {exc}") from exc

        try:
            return BatchHistory.model_validate(data)
        except ValidationError as exc:
            raise StateError(f"Invalid batch history data: {exc}") from exc

    def save_history(self, history: BatchHistory) -> Path:
        """Persist ``history``, replacing any previous file.

        Returns:
            Path: Location of the written history file.
        """
        self._base_dir.mkdir(parents=True, exist_ok=True)
        payload = history.model_dump(mode="json")
        path = self.history_path
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return path


__all__ = [
    "HISTORY_FILENAME",
    "MissingStateError",
    "StateError",
    "StateRepository",
]
