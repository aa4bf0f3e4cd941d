"""Classification result models."""

from __future__ import annotations

import math
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from batchorg.ingestion.models import DocumentMetadata


class ClassificationResult(BaseModel):
    """Validated classification returned by the external service.

    ``confidence`` is clamped into ``[0, 1]`` and ``suggested_folder``
    defaults to ``Documents/<category>`` when the response omits it.

    Attributes:
        category: Category chosen from the prompt vocabulary.
        confidence: Model confidence between 0 and 1.
        subcategory: Optional finer-grained label.
        suggested_folder: Folder path the file should be placed in.
        reasoning: Short explanation of the classification.
        fallback: True when the record was produced by the fallback policy.
    """

    category: str
    confidence: float
    subcategory: Optional[str] = None
    suggested_folder: str = ""
    reasoning: str = ""
    fallback: bool = False

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("confidence must be a finite number")
        return max(0.0, min(1.0, value))

    @model_validator(mode="after")
    def _default_folder(self) -> "ClassificationResult":
        if not self.suggested_folder.strip():
            self.suggested_folder = f"Documents/{self.category}"
        return self


class DocumentAnalysis(BaseModel):
    """Classification of a document together with its extracted text.

    Attributes:
        classification: Validated classification for the document.
        extracted_text: Preview of the text the classification was based on.
        metadata: Estimated word count, page count and language.
    """

    classification: ClassificationResult
    extracted_text: Optional[str] = None
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)


class ImageOutcome(BaseModel):
    """Outcome of classifying an image."""

    kind: Literal["image"] = "image"
    result: ClassificationResult

    @property
    def classification(self) -> ClassificationResult:
        return self.result


class DocumentOutcome(BaseModel):
    """Outcome of classifying a document."""

    kind: Literal["document"] = "document"
    analysis: DocumentAnalysis

    @property
    def classification(self) -> ClassificationResult:
        return self.analysis.classification


ClassificationOutcome = Annotated[Union[ImageOutcome, DocumentOutcome], Field(discriminator="kind")]


class ClassificationBatch(BaseModel):
    """Results of classifying a batch of files.

    Attributes:
        results: Outcomes keyed by file identity key; failed files are absent.
        errors: Human-readable descriptions of per-file failures.
    """

    results: Dict[str, ClassificationOutcome] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)


class ConnectivityReport(BaseModel):
    """Outcome of a connectivity smoke test against the external service."""

    ok: bool
    message: str
    response: Optional[str] = None


__all__ = [
    "ClassificationBatch",
    "ClassificationOutcome",
    "ClassificationResult",
    "ConnectivityReport",
    "DocumentAnalysis",
    "DocumentOutcome",
    "ImageOutcome",
]
