"""Classification of files through an external language-model service."""

from .batch import BatchClassifier, BatchSchedule
from .client import ClassifierClient, check_connectivity
from .errors import ClassificationError, ClassificationTransportError, ClassifierConfigError
from .models import (
    ClassificationBatch,
    ClassificationOutcome,
    ClassificationResult,
    ConnectivityReport,
    DocumentAnalysis,
    DocumentOutcome,
    ImageOutcome,
)

__all__ = [
    "BatchClassifier",
    "BatchSchedule",
    "ClassificationBatch",
    "ClassificationError",
    "ClassificationOutcome",
    "ClassificationResult",
    "ClassificationTransportError",
    "ClassifierClient",
    "ClassifierConfigError",
    "ConnectivityReport",
    "DocumentAnalysis",
    "DocumentOutcome",
    "ImageOutcome",
    "check_connectivity",
]
