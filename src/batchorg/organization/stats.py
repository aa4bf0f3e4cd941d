"""Statistics over organized batches and classification outcomes."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional

from batchorg.classification.models import ClassificationOutcome
from batchorg.ingestion.detectors import TypeDetector

from .models import ClassificationSummary, FileStats, OrganizedFile

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def compute_stats(
    files: Iterable[OrganizedFile],
    *,
    detector: Optional[TypeDetector] = None,
) -> FileStats:
    """Recompute :class:`FileStats` from a full organized batch.

    Args:
        files: Organized records of one batch.
        detector: Detector used to derive file-type buckets.

    Returns:
        FileStats: Totals, per-type and per-category counts, and AI figures.
    """
    detector = detector or TypeDetector()
    file_types: Counter[str] = Counter()
    categories: Counter[str] = Counter()
    ai_categories: Counter[str] = Counter()
    total_files = 0
    total_size = 0
    duplicates = 0
    confidences: list[float] = []
    fallbacks = 0

    for record in files:
        total_files += 1
        total_size += record.original_file.size_bytes
        if record.is_duplicate:
            duplicates += 1
        file_types[detector.file_type(record.original_file.name)] += 1
        categories[record.organization_path.split("/", 1)[0]] += 1
        ai = record.ai_classification
        if ai is not None:
            ai_categories[ai.category] += 1
            confidences.append(ai.confidence)
            if ai.fallback:
                fallbacks += 1

    return FileStats(
        total_files=total_files,
        total_size=total_size,
        file_types=dict(file_types),
        duplicates=duplicates,
        categories=dict(categories),
        ai_classifications=dict(ai_categories),
        average_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
        fallback_classifications=fallbacks,
    )


def summarize_classifications(
    outcomes: Iterable[ClassificationOutcome],
    *,
    high_confidence_threshold: float = 0.8,
) -> ClassificationSummary:
    """Summarize raw classification outcomes.

    Outcomes whose confidence is strictly above ``high_confidence_threshold``
    count as high confidence.
    """
    categories: Counter[str] = Counter()
    confidences: list[float] = []
    for outcome in outcomes:
        result = outcome.classification
        categories[result.category] += 1
        confidences.append(result.confidence)

    return ClassificationSummary(
        total_classified=len(confidences),
        categories=dict(categories),
        average_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
        high_confidence_count=sum(1 for value in confidences if value > high_confidence_threshold),
    )


def format_file_size(size_bytes: int) -> str:
    """Render a byte count using 1024-based units, e.g. ``1.5 KB``."""
    if size_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(_SIZE_UNITS) - 1 and size_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size_bytes / 1024**exponent, 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


__all__ = ["compute_stats", "format_file_size", "summarize_classifications"]
