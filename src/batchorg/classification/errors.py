"""Classification errors."""


class ClassificationError(Exception):
    """Base exception for classification failures."""


class ClassifierConfigError(ClassificationError):
    """Raised when the external classification service is not configured."""


class ClassificationTransportError(ClassificationError):
    """Raised when a request to the classification service fails."""
