"""Single-file classification against the external model service."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional, Protocol

from batchorg.config.models import ClassificationOptions, LLMSettings
from batchorg.ingestion.detectors import TypeDetector
from batchorg.ingestion.extractors import TextExtractor
from batchorg.ingestion.models import InputFile

from .errors import ClassificationError, ClassifierConfigError
from .models import (
    ClassificationOutcome,
    ClassificationResult,
    ConnectivityReport,
    DocumentAnalysis,
    DocumentOutcome,
    ImageOutcome,
)
from .parsing import parse_classification_response
from .prompts import (
    CONNECTIVITY_PROMPT,
    DOCUMENT_SYSTEM_PROMPT,
    IMAGE_SYSTEM_PROMPT,
    build_document_prompt,
    build_image_prompt,
)

LOGGER = logging.getLogger(__name__)

Message = dict[str, Any]

_CONNECTIVITY_MAX_TOKENS = 10


class CompletionTransport(Protocol):
    """Boundary to the external classification service."""

    def complete(
        self,
        messages: list[Message],
        *,
        vision: bool = False,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send chat messages and return the raw text of the first completion."""
        ...


class ClassifierClient:
    """Classify one file at a time through a completion transport.

    Images are uploaded inline; every other file is classified from a text
    representation produced by :class:`TextExtractor`. Unusable responses
    degrade to the fallback classification, while transport failures are
    raised so callers can account for them per file.
    """

    def __init__(
        self,
        transport: CompletionTransport,
        *,
        settings: Optional[LLMSettings] = None,
        options: Optional[ClassificationOptions] = None,
        extractor: Optional[TextExtractor] = None,
        detector: Optional[TypeDetector] = None,
    ) -> None:
        self._transport = transport
        self._settings = settings or LLMSettings()
        self._options = options or ClassificationOptions()
        self._extractor = extractor or TextExtractor()
        self._detector = detector or TypeDetector()

    def classify(self, file: InputFile) -> Optional[ClassificationOutcome]:
        """Classify ``file``.

        Args:
            file: File to classify.

        Returns:
            Optional[ClassificationOutcome]: Image or document outcome, or
            ``None`` when a document has too little text to classify.

        Raises:
            ClassificationTransportError: If the service request fails.
            InputFileError: If the file content cannot be read.
        """
        if self._detector.is_image(file):
            return ImageOutcome(result=self._classify_image(file))
        return self._classify_document(file)

    def check_connectivity(self) -> ConnectivityReport:
        """Send a trivial prompt to verify credentials and reachability."""
        messages: list[Message] = [{"role": "user", "content": CONNECTIVITY_PROMPT}]
        try:
            reply = self._transport.complete(messages, max_tokens=_CONNECTIVITY_MAX_TOKENS)
        except ClassificationError as exc:
            LOGGER.error("Connectivity check failed: %s", exc)
            return ConnectivityReport(ok=False, message=str(exc))
        return ConnectivityReport(
            ok=True,
            message="Classification service is reachable and credentials are valid",
            response=reply,
        )

    def _classify_document(self, file: InputFile) -> Optional[DocumentOutcome]:
        text = self._extractor.extract(file)
        if len(text) < self._options.min_text_length:
            LOGGER.info("Skipping %s: content too short for classification", file.name)
            return None

        LOGGER.debug("Extracted %d characters from %s", len(text), file.name)
        prompt = build_document_prompt(text, file.name, limit=self._options.prompt_text_limit)
        messages: list[Message] = [
            {"role": "system", "content": DOCUMENT_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        raw = self._transport.complete(messages, max_tokens=self._settings.max_tokens)
        LOGGER.debug("Model response for %s: %s", file.name, raw)

        return DocumentOutcome(
            analysis=DocumentAnalysis(
                classification=parse_classification_response(raw, source=file.name),
                extracted_text=text[: self._options.preview_limit],
                metadata=self._extractor.metadata(text),
            )
        )

    def _classify_image(self, file: InputFile) -> ClassificationResult:
        media_type = file.media_type or "application/octet-stream"
        encoded = base64.b64encode(file.read_bytes()).decode("ascii")
        messages: list[Message] = [
            {"role": "system", "content": IMAGE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": build_image_prompt(file.name)},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{media_type};base64,{encoded}"},
                    },
                ],
            },
        ]
        raw = self._transport.complete(
            messages, vision=True, max_tokens=self._settings.vision_max_tokens
        )
        LOGGER.debug("Vision response for %s: %s", file.name, raw)
        return parse_classification_response(raw, source=file.name)


def check_connectivity(settings: Optional[LLMSettings] = None) -> ConnectivityReport:
    """Build a transport from ``settings`` and run a connectivity smoke test."""
    from .transport import LanguageModelTransport

    try:
        transport = LanguageModelTransport(settings)
    except ClassifierConfigError as exc:
        return ConnectivityReport(ok=False, message=str(exc))
    return ClassifierClient(transport, settings=settings).check_connectivity()


__all__ = ["ClassifierClient", "CompletionTransport", "Message", "check_connectivity"]
