"""Organization engine tying hashing, classification and path resolution together."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from batchorg.classification.batch import BatchClassifier
from batchorg.classification.models import ClassificationOutcome
from batchorg.config.models import OrganizationRules
from batchorg.ingestion.detectors import HashComputer, TypeDetector
from batchorg.ingestion.models import InputFile

from .models import AIClassification, FileMetadata, OrganizedFile
from .resolver import PathResolver

LOGGER = logging.getLogger(__name__)


class OrganizationEngine:
    """Assign every file in a batch a destination path.

    Ignored files are dropped first. When AI classification is enabled the
    remaining files are classified once, up front, before the per-file pass
    hashes content, flags duplicates and resolves paths in input order.
    """

    def __init__(
        self,
        classifier: Optional[BatchClassifier] = None,
        *,
        hasher: Optional[HashComputer] = None,
        resolver: Optional[PathResolver] = None,
        detector: Optional[TypeDetector] = None,
    ) -> None:
        self._classifier = classifier
        self._hasher = hasher or HashComputer()
        self._detector = detector or TypeDetector()
        self._resolver = resolver or PathResolver(self._detector)

    def organize(self, files: Sequence[InputFile], rules: OrganizationRules) -> list[OrganizedFile]:
        """Organize ``files`` under ``rules``.

        Args:
            files: Batch of files in input order.
            rules: Rule configuration for the batch.

        Returns:
            list[OrganizedFile]: One record per non-ignored file, in input order.

        Raises:
            InputFileError: If content of a file cannot be read for hashing.
        """
        surviving = [file for file in files if not self._resolver.is_ignored(file, rules)]
        if len(surviving) != len(files):
            LOGGER.debug("Ignored %d file(s) by type", len(files) - len(surviving))

        outcomes = self._classify(surviving) if rules.ai_classification else {}

        organized: list[OrganizedFile] = []
        seen_hashes: set[str] = set()
        for file in surviving:
            digest = ""
            is_duplicate = False
            if rules.detect_duplicates:
                digest = self._hasher.compute(file)
                is_duplicate = digest in seen_hashes
                seen_hashes.add(digest)

            outcome = outcomes.get(file.identity_key)
            classification = outcome.classification if outcome is not None else None
            path = self._resolver.resolve(file, rules, classification)

            organized.append(
                OrganizedFile(
                    original_file=file,
                    organization_path=path,
                    hash=digest,
                    is_duplicate=is_duplicate,
                    size_category=self._detector.size_category(file.size_bytes),
                    ai_classification=(
                        AIClassification.from_outcome(outcome) if outcome is not None else None
                    ),
                    metadata=FileMetadata(last_modified=file.last_modified),
                )
            )

        LOGGER.info(
            "Organized %d file(s); %d classified by AI",
            len(organized),
            sum(1 for record in organized if record.ai_classification is not None),
        )
        return organized

    def _classify(self, files: Sequence[InputFile]) -> Dict[str, ClassificationOutcome]:
        if self._classifier is None:
            LOGGER.warning("AI classification requested but no classifier is configured")
            return {}
        try:
            return dict(self._classifier.classify(files).results)
        except Exception as exc:
            LOGGER.warning("AI classification failed, continuing without it: %s", exc)
            return {}


def organize(
    files: Sequence[InputFile],
    rules: OrganizationRules,
    *,
    classifier: Optional[BatchClassifier] = None,
) -> list[OrganizedFile]:
    """Organize ``files`` with a default engine."""
    return OrganizationEngine(classifier).organize(files, rules)


__all__ = ["OrganizationEngine", "organize"]
