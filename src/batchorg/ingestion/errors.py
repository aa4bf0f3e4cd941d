"""Ingestion errors."""


class InputFileError(Exception):
    """Raised when a file is missing or its content cannot be read."""
