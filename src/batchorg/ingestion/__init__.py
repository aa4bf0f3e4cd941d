"""Input batch collection, hashing and text extraction."""

from .detectors import HashComputer, TypeDetector
from .discovery import DirectoryScanner
from .errors import InputFileError
from .extractors import TextExtractor
from .models import DocumentMetadata, InputFile

__all__ = [
    "DirectoryScanner",
    "DocumentMetadata",
    "HashComputer",
    "InputFile",
    "InputFileError",
    "TextExtractor",
    "TypeDetector",
]
