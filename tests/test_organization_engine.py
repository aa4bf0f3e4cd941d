"""End-to-end tests for the organization engine."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

import pytest

from batchorg.classification import (
    BatchClassifier,
    ClassificationBatch,
    ClassificationResult,
    DocumentAnalysis,
    DocumentOutcome,
    ImageOutcome,
)
from batchorg.config.models import CustomRule, OrganizationRules
from batchorg.ingestion import DocumentMetadata, InputFile, InputFileError
from batchorg.organization import OrganizationEngine, OrganizedFile, organize

MARCH_2024 = datetime(2024, 3, 20, 10, 0, tzinfo=timezone.utc)
KIB = 1024


def _scenario_files() -> list[InputFile]:
    photo_bytes = b"\xff\xd8" + b"p" * (500 * KIB - 2)
    return [
        InputFile.from_bytes("report.pdf", b"r" * (2 * KIB * KIB), last_modified=MARCH_2024),
        InputFile.from_bytes("photo.jpg", photo_bytes, last_modified=MARCH_2024),
        InputFile.from_bytes("photo_copy.jpg", photo_bytes, last_modified=MARCH_2024),
        InputFile.from_bytes("notes.tmp", b"scratch", last_modified=MARCH_2024),
    ]


class _StubClassifier:
    """Batch classifier double returning preset outcomes."""

    def __init__(self, results=None, error: Optional[Exception] = None) -> None:
        self.results = results or {}
        self.error = error
        self.seen: list[str] = []

    def classify(self, files: Sequence[InputFile]) -> ClassificationBatch:
        self.seen = [file.name for file in files]
        if self.error is not None:
            raise self.error
        return ClassificationBatch(results=self.results)


def test_end_to_end_scenario() -> None:
    rules = OrganizationRules(ignored_types=[".tmp"])

    organized = organize(_scenario_files(), rules)

    by_name = {record.original_file.name: record for record in organized}
    assert [record.original_file.name for record in organized] == [
        "report.pdf",
        "photo.jpg",
        "photo_copy.jpg",
    ]
    assert "notes.tmp" not in by_name
    assert by_name["report.pdf"].organization_path == "2024/03/document/medium/report.pdf"
    assert by_name["report.pdf"].size_category == "medium"
    assert by_name["photo.jpg"].organization_path == "2024/03/image/small/photo.jpg"
    assert by_name["photo.jpg"].is_duplicate is False
    assert by_name["photo_copy.jpg"].is_duplicate is True
    assert by_name["photo.jpg"].hash == by_name["photo_copy.jpg"].hash
    assert by_name["report.pdf"].hash != by_name["photo.jpg"].hash
    assert by_name["report.pdf"].metadata.last_modified == MARCH_2024


def test_duplicate_detection_disabled_leaves_hash_empty() -> None:
    rules = OrganizationRules(detect_duplicates=False)

    organized = organize(_scenario_files()[1:3], rules)

    assert [record.hash for record in organized] == ["", ""]
    assert not any(record.is_duplicate for record in organized)


def test_later_duplicate_is_flagged_regardless_of_path() -> None:
    files = [
        InputFile.from_bytes("a.txt", b"same", last_modified=MARCH_2024),
        InputFile.from_bytes("b.txt", b"different", last_modified=MARCH_2024),
        InputFile.from_bytes("c.invoice", b"same", last_modified=MARCH_2024),
    ]
    rules = OrganizationRules(
        custom_rules=[CustomRule(condition="extension", value=".invoice", target_folder="Finance")]
    )

    organized = organize(files, rules)

    assert [record.is_duplicate for record in organized] == [False, False, True]
    assert organized[2].organization_path == "Finance/c.invoice"


def test_ai_results_drive_paths_and_records() -> None:
    files = _scenario_files()[:2]
    report, photo = files
    results = {
        report.identity_key: DocumentOutcome(
            analysis=DocumentAnalysis(
                classification=ClassificationResult(
                    category="report",
                    confidence=0.9,
                    subcategory="quarterly",
                    suggested_folder="Reports/Quarterly",
                    reasoning="Quarterly figures.",
                ),
                extracted_text="PDF Document: report.pdf",
                metadata=DocumentMetadata(word_count=3, page_count=1, language="en"),
            )
        ),
        photo.identity_key: ImageOutcome(
            result=ClassificationResult(category="photo", confidence=0.7)
        ),
    }
    stub = _StubClassifier(results)
    engine = OrganizationEngine(stub)

    organized = engine.organize(files, OrganizationRules(ai_classification=True))

    report_record, photo_record = organized
    assert report_record.organization_path == "Reports/Quarterly/report.pdf"
    assert report_record.ai_classification is not None
    assert report_record.ai_classification.subcategory == "quarterly"
    assert report_record.ai_classification.extracted_text == "PDF Document: report.pdf"
    assert report_record.ai_classification.metadata.page_count == 1
    assert photo_record.organization_path == "Documents/photo/photo.jpg"
    assert photo_record.ai_classification.extracted_text is None
    assert photo_record.ai_classification.metadata is None


def test_classifier_only_sees_surviving_files() -> None:
    stub = _StubClassifier()

    OrganizationEngine(stub).organize(
        _scenario_files(), OrganizationRules(ai_classification=True, ignored_types=[".tmp"])
    )

    assert stub.seen == ["report.pdf", "photo.jpg", "photo_copy.jpg"]


def test_classifier_not_called_when_ai_disabled() -> None:
    stub = _StubClassifier()

    OrganizationEngine(stub).organize(_scenario_files(), OrganizationRules())

    assert stub.seen == []


def test_classifier_failure_degrades_to_structural_paths(caplog: pytest.LogCaptureFixture) -> None:
    stub = _StubClassifier(error=RuntimeError("network down"))
    engine = OrganizationEngine(stub)

    with caplog.at_level(logging.WARNING, logger="batchorg.organization.engine"):
        organized = engine.organize(
            _scenario_files()[:1], OrganizationRules(ai_classification=True)
        )

    assert organized[0].organization_path == "2024/03/document/medium/report.pdf"
    assert organized[0].ai_classification is None
    assert "network down" in caplog.text


def test_missing_classifier_degrades() -> None:
    organized = OrganizationEngine().organize(
        _scenario_files()[:1], OrganizationRules(ai_classification=True)
    )

    assert organized[0].organization_path == "2024/03/document/medium/report.pdf"


def test_real_batch_classifier_integration() -> None:
    class _Client:
        def classify(self, file: InputFile) -> ImageOutcome:
            return ImageOutcome(
                result=ClassificationResult(
                    category="photo", confidence=0.8, suggested_folder="Images/Photos"
                )
            )

    engine = OrganizationEngine(BatchClassifier(_Client(), sleep=lambda _: None))

    organized = engine.organize(_scenario_files()[1:3], OrganizationRules(ai_classification=True))

    assert [record.organization_path for record in organized] == [
        "Images/Photos/photo.jpg",
        "Images/Photos/photo_copy.jpg",
    ]


def test_unreadable_file_fails_the_batch() -> None:
    ghost = InputFile(name="ghost.txt", size_bytes=4, last_modified=MARCH_2024)

    with pytest.raises(InputFileError):
        organize([ghost], OrganizationRules())


def test_organized_file_path_must_end_with_name() -> None:
    file = _scenario_files()[0]

    with pytest.raises(ValueError):
        OrganizedFile(
            original_file=file,
            organization_path="Reports/renamed.pdf",
            size_category="medium",
            metadata={"last_modified": MARCH_2024},
        )
