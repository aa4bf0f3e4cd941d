"""Organization engine, path resolution, statistics and archive export."""

from .archive import DEFAULT_ARCHIVE_NAME, ArchiveBuilder, build_archive
from .engine import OrganizationEngine, organize
from .history import BatchHistory
from .models import (
    AIClassification,
    BatchSnapshot,
    ClassificationSummary,
    FileMetadata,
    FileStats,
    OrganizedFile,
)
from .resolver import PathResolver
from .stats import compute_stats, format_file_size, summarize_classifications

__all__ = [
    "AIClassification",
    "ArchiveBuilder",
    "BatchHistory",
    "BatchSnapshot",
    "ClassificationSummary",
    "DEFAULT_ARCHIVE_NAME",
    "FileMetadata",
    "FileStats",
    "OrganizationEngine",
    "OrganizedFile",
    "PathResolver",
    "build_archive",
    "compute_stats",
    "format_file_size",
    "organize",
    "summarize_classifications",
]
