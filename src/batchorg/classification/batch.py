"""Paced, bounded-concurrency classification of file batches."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from batchorg.config.models import ClassificationOptions
from batchorg.ingestion.models import InputFile

from .client import ClassifierClient
from .models import ClassificationBatch

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchSchedule:
    """Pacing applied to batch classification.

    Attributes:
        group_size: Files classified concurrently within one group.
        delay_seconds: Pause between consecutive groups.
    """

    group_size: int = 3
    delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.group_size < 1:
            raise ValueError("group_size must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

    @classmethod
    def from_options(cls, options: ClassificationOptions) -> "BatchSchedule":
        return cls(group_size=options.group_size, delay_seconds=options.group_delay_seconds)


class BatchClassifier:
    """Fan files out to a :class:`ClassifierClient` in paced groups.

    Groups of ``schedule.group_size`` files are classified concurrently;
    groups run one after another with ``schedule.delay_seconds`` between them.
    A failure only removes the failing file from the results.
    """

    def __init__(
        self,
        client: ClassifierClient,
        *,
        schedule: Optional[BatchSchedule] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._schedule = schedule or BatchSchedule()
        self._sleep = sleep

    @property
    def schedule(self) -> BatchSchedule:
        return self._schedule

    def classify(self, files: Sequence[InputFile]) -> ClassificationBatch:
        """Classify ``files`` and collect outcomes keyed by identity key.

        Args:
            files: Files to classify, in batch order.

        Returns:
            ClassificationBatch: Successful outcomes and per-file error messages.
        """
        batch = ClassificationBatch()
        files = list(files)
        size = self._schedule.group_size
        groups = [files[start : start + size] for start in range(0, len(files), size)]
        LOGGER.info("Starting AI classification for %d files", len(files))

        with ThreadPoolExecutor(max_workers=size, thread_name_prefix="classify") as pool:
            for index, group in enumerate(groups):
                if index and self._schedule.delay_seconds:
                    LOGGER.debug(
                        "Waiting %.2fs between classification groups", self._schedule.delay_seconds
                    )
                    self._sleep(self._schedule.delay_seconds)

                pending = [(file, pool.submit(self._client.classify, file)) for file in group]
                for file, future in pending:
                    LOGGER.debug("Classifying %s", file.name)
                    try:
                        outcome = future.result()
                    except Exception as exc:
                        LOGGER.error("Error classifying %s: %s", file.name, exc)
                        batch.errors.append(f"{file.name}: {exc}")
                        continue
                    if outcome is None:
                        continue
                    LOGGER.info(
                        "Classified %s as %s (%.2f)",
                        file.name,
                        outcome.classification.category,
                        outcome.classification.confidence,
                    )
                    batch.results[file.identity_key] = outcome

        LOGGER.info(
            "AI classification complete: %d/%d files classified", len(batch.results), len(files)
        )
        return batch


__all__ = ["BatchClassifier", "BatchSchedule"]
