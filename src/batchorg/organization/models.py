"""Organization output data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from batchorg.classification.models import ClassificationOutcome
from batchorg.config.models import OrganizationRules
from batchorg.ingestion.models import DocumentMetadata, InputFile


class AIClassification(BaseModel):
    """Classification details attached to an organized file.

    Attributes:
        category: Category assigned by the classification service.
        confidence: Confidence between 0 and 1.
        subcategory: Optional finer-grained label.
        reasoning: Short explanation of the classification.
        extracted_text: Text preview, present for documents only.
        metadata: Word/page estimates, present for documents only.
        fallback: True when the fallback policy produced the classification.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    confidence: float
    subcategory: Optional[str] = None
    reasoning: str = ""
    extracted_text: Optional[str] = None
    metadata: Optional[DocumentMetadata] = None
    fallback: bool = False

    @classmethod
    def from_outcome(cls, outcome: ClassificationOutcome) -> "AIClassification":
        """Flatten an image or document outcome into a record."""
        result = outcome.classification
        fields = {
            "category": result.category,
            "confidence": result.confidence,
            "subcategory": result.subcategory,
            "reasoning": result.reasoning,
            "fallback": result.fallback,
        }
        if outcome.kind == "document":
            fields["extracted_text"] = outcome.analysis.extracted_text
            fields["metadata"] = outcome.analysis.metadata
        return cls(**fields)


class FileMetadata(BaseModel):
    """Timestamps carried over from the input file."""

    model_config = ConfigDict(frozen=True)

    last_modified: datetime


class OrganizedFile(BaseModel):
    """Destination assignment for one surviving input file.

    The final segment of ``organization_path`` is always the original file
    name; organization only prepends folders.

    Attributes:
        original_file: File the record describes.
        organization_path: ``/``-separated destination path.
        hash: SHA-256 hex digest, empty when duplicate detection is disabled.
        is_duplicate: True when identical content appeared earlier in the batch.
        size_category: Size bucket of the file.
        ai_classification: Classification details, when one was available.
        metadata: Timestamps carried over from the input file.
    """

    model_config = ConfigDict(frozen=True)

    original_file: InputFile
    organization_path: str
    hash: str = ""
    is_duplicate: bool = False
    size_category: Literal["small", "medium", "large"]
    ai_classification: Optional[AIClassification] = None
    metadata: FileMetadata

    @model_validator(mode="after")
    def _path_ends_with_name(self) -> "OrganizedFile":
        if not self.organization_path:
            raise ValueError("organization_path must not be empty")
        if self.organization_path.rsplit("/", 1)[-1] != self.original_file.name:
            raise ValueError(
                f"organization_path {self.organization_path!r} must end with "
                f"{self.original_file.name!r}"
            )
        return self

    @property
    def folder(self) -> str:
        """Return the folder part of the path, ``""`` for top-level files."""
        folder, _, _ = self.organization_path.rpartition("/")
        return folder


class FileStats(BaseModel):
    """Summary counts over an organized batch.

    Attributes:
        total_files: Number of organized files.
        total_size: Sum of file sizes in bytes.
        file_types: Count per file-type bucket.
        duplicates: Number of files flagged as duplicates.
        categories: Count per top-level folder of the organization path.
        ai_classifications: Count per AI category.
        average_confidence: Mean AI confidence, 0 when nothing was classified.
        fallback_classifications: Classifications produced by the fallback policy.
    """

    total_files: int = 0
    total_size: int = 0
    file_types: Dict[str, int] = Field(default_factory=dict)
    duplicates: int = 0
    categories: Dict[str, int] = Field(default_factory=dict)
    ai_classifications: Dict[str, int] = Field(default_factory=dict)
    average_confidence: float = 0.0
    fallback_classifications: int = 0


class ClassificationSummary(BaseModel):
    """Summary over raw classification outcomes."""

    total_classified: int = 0
    categories: Dict[str, int] = Field(default_factory=dict)
    average_confidence: float = 0.0
    high_confidence_count: int = 0


class BatchSnapshot(BaseModel):
    """One organize batch, kept whole for undo."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    rules: OrganizationRules
    files: List[OrganizedFile] = Field(default_factory=list)


__all__ = [
    "AIClassification",
    "BatchSnapshot",
    "ClassificationSummary",
    "FileMetadata",
    "FileStats",
    "OrganizedFile",
]
