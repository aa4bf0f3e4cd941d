"""Tests for batch history and its persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from batchorg.config.models import OrganizationRules
from batchorg.ingestion import InputFile
from batchorg.organization import BatchHistory, BatchSnapshot, organize
from batchorg.state import MissingStateError, StateError, StateRepository

MARCH_2024 = datetime(2024, 3, 20, 10, 0, tzinfo=timezone.utc)


def _snapshot(tmp_path: Path, *names: str) -> BatchSnapshot:
    """Return a snapshot organizing freshly written files.

    Args:
        tmp_path: Temporary directory provided by pytest.
        names: File names to create and organize.

    Returns:
        BatchSnapshot: Snapshot over the organized files.
    """
    files = []
    for name in names:
        path = tmp_path / name
        path.write_text(f"content of {name}", encoding="utf-8")
        files.append(InputFile.from_path(path))
    rules = OrganizationRules(organize_by_date=False)
    return BatchSnapshot(rules=rules, files=organize(files, rules))


def test_history_push_and_undo(tmp_path: Path) -> None:
    first = _snapshot(tmp_path, "a.txt")
    second = _snapshot(tmp_path, "b.txt", "c.txt")

    history = BatchHistory().push(first).push(second)

    assert len(history) == 2
    assert history.current == second

    shorter, restored = history.undo()
    assert restored == first
    assert len(history) == 2
    assert len(shorter) == 1

    empty, restored = shorter.undo()
    assert restored is None
    with pytest.raises(IndexError):
        empty.undo()


def test_history_limit_drops_oldest(tmp_path: Path) -> None:
    snapshots = [_snapshot(tmp_path, f"{index}.txt") for index in range(4)]

    history = BatchHistory()
    for snapshot in snapshots:
        history = history.push(snapshot, limit=2)

    assert history.snapshots == snapshots[2:]


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path / "state")
    snapshot = _snapshot(tmp_path, "report.txt", "copy.txt")

    path = repo.save_history(BatchHistory().push(snapshot))
    loaded = repo.load_history()

    assert path == tmp_path / "state" / "history.json"
    restored = loaded.current
    assert restored is not None
    assert [record.organization_path for record in restored.files] == [
        record.organization_path for record in snapshot.files
    ]
    assert restored.files[0].original_file.path == tmp_path / "report.txt"
    assert restored.files[0].hash == snapshot.files[0].hash
    assert restored.rules == snapshot.rules


def test_load_missing_history(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)

    with pytest.raises(MissingStateError):
        repo.load_history()
    assert len(repo.load_history(missing_ok=True)) == 0


def test_load_invalid_history_raises(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)
    repo.history_path.write_text("not json", encoding="utf-8")

    with pytest.raises(StateError):
        repo.load_history()

    repo.history_path.write_text('{"snapshots": [{"files": "nope"}]}', encoding="utf-8")

    with pytest.raises(StateError):
        repo.load_history()
