"""Tests for paced batch classification."""

from __future__ import annotations

import threading
from typing import Optional

import pytest

from batchorg.classification import (
    BatchClassifier,
    BatchSchedule,
    ClassificationResult,
    ClassificationTransportError,
    ImageOutcome,
)
from batchorg.config.models import ClassificationOptions
from batchorg.ingestion import InputFile


class _RecordingClient:
    """Client double that records concurrency and fails on request."""

    def __init__(self, *, failing: set[str] = frozenset(), skipped: set[str] = frozenset()) -> None:
        self.failing = failing
        self.skipped = skipped
        self.in_flight = 0
        self.peak = 0
        self.order: list[str] = []
        self._lock = threading.Lock()

    def classify(self, file: InputFile) -> Optional[ImageOutcome]:
        with self._lock:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            self.order.append(file.name)
        try:
            if file.name in self.failing:
                raise ClassificationTransportError("service unavailable")
            if file.name in self.skipped:
                return None
            return ImageOutcome(
                result=ClassificationResult(category=f"cat-{file.name}", confidence=0.9)
            )
        finally:
            with self._lock:
                self.in_flight -= 1


class _GroupBarrierClient:
    """Client double that holds every call until a full group is in flight."""

    def __init__(self, parties: int) -> None:
        self.barrier = threading.Barrier(parties, timeout=5)
        self.events: list[tuple[str, str]] = []
        self.in_flight = 0
        self.peak = 0
        self._lock = threading.Lock()

    def classify(self, file: InputFile) -> ImageOutcome:
        with self._lock:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            self.events.append(("start", file.name))
        try:
            self.barrier.wait()
            return ImageOutcome(result=ClassificationResult(category="photo", confidence=0.9))
        finally:
            with self._lock:
                self.in_flight -= 1
                self.events.append(("end", file.name))


def _files(count: int) -> list[InputFile]:
    return [InputFile.from_bytes(f"file{index}.png", bytes([index])) for index in range(count)]


def test_groups_are_paced_with_sleeps() -> None:
    sleeps: list[float] = []
    client = _RecordingClient()
    classifier = BatchClassifier(client, sleep=sleeps.append)

    batch = classifier.classify(_files(7))

    assert sleeps == [1.0, 1.0]
    assert len(batch.results) == 7
    assert client.peak <= 3
    assert batch.errors == []


def test_group_members_run_concurrently_and_groups_in_sequence() -> None:
    files = _files(6)
    client = _GroupBarrierClient(parties=3)
    classifier = BatchClassifier(client, sleep=lambda _: None)

    batch = classifier.classify(files)

    assert batch.errors == []
    assert len(batch.results) == 6
    assert client.peak == 3
    first_group = {file.name for file in files[:3]}
    second_group = {file.name for file in files[3:]}
    last_first_end = max(
        index
        for index, (kind, name) in enumerate(client.events)
        if kind == "end" and name in first_group
    )
    first_second_start = min(
        index
        for index, (kind, name) in enumerate(client.events)
        if kind == "start" and name in second_group
    )
    assert last_first_end < first_second_start


def test_failures_are_isolated_per_file() -> None:
    files = _files(3)
    client = _RecordingClient(failing={"file1.png"}, skipped={"file2.png"})
    classifier = BatchClassifier(client, sleep=lambda _: None)

    batch = classifier.classify(files)

    assert list(batch.results) == [files[0].identity_key]
    assert batch.results[files[0].identity_key].classification.category == "cat-file0.png"
    assert batch.errors == ["file1.png: service unavailable"]


def test_results_are_keyed_by_identity_key() -> None:
    files = _files(2)
    classifier = BatchClassifier(_RecordingClient(), sleep=lambda _: None)

    batch = classifier.classify(files)

    assert set(batch.results) == {file.identity_key for file in files}


def test_single_file_groups_without_delay() -> None:
    sleeps: list[float] = []
    client = _RecordingClient()
    classifier = BatchClassifier(
        client, schedule=BatchSchedule(group_size=1, delay_seconds=0), sleep=sleeps.append
    )

    classifier.classify(_files(4))

    assert sleeps == []
    assert client.peak == 1
    assert client.order == ["file0.png", "file1.png", "file2.png", "file3.png"]


def test_empty_batch() -> None:
    sleeps: list[float] = []
    batch = BatchClassifier(_RecordingClient(), sleep=sleeps.append).classify([])

    assert batch.results == {}
    assert sleeps == []


def test_schedule_from_options_and_validation() -> None:
    schedule = BatchSchedule.from_options(
        ClassificationOptions(group_size=5, group_delay_seconds=0.25)
    )

    assert schedule == BatchSchedule(group_size=5, delay_seconds=0.25)
    with pytest.raises(ValueError):
        BatchSchedule(group_size=0)
    with pytest.raises(ValueError):
        BatchSchedule(delay_seconds=-1)
