"""Parsing and validation of classification responses."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from pydantic import ValidationError

from .models import ClassificationResult

LOGGER = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class ResponseShapeError(ValueError):
    """Raised when a model response does not contain a usable classification."""


def fallback_result() -> ClassificationResult:
    """Return the degraded classification used when a response is unusable."""
    return ClassificationResult(
        category="document",
        confidence=0.5,
        suggested_folder="Documents/Unclassified",
        reasoning="Classification failed, using fallback category",
        fallback=True,
    )


def extract_json_object(text: str) -> dict[str, Any]:
    """Extract and decode the JSON object embedded in a model response.

    Models often wrap JSON in prose or code fences, so the span from the
    first ``{`` to the last ``}`` is decoded.

    Raises:
        ResponseShapeError: If no JSON object can be found or decoded.
    """
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        raise ResponseShapeError("No JSON found in response")
    try:
        parsed = json.loads(match.group(0))
    except (ValueError, RecursionError) as exc:
        raise ResponseShapeError(f"Invalid JSON in response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ResponseShapeError("Response JSON is not an object")
    return parsed


def validate_payload(payload: dict[str, Any]) -> ClassificationResult:
    """Validate a decoded response payload.

    Raises:
        ResponseShapeError: If ``category`` or ``confidence`` is missing or invalid.
    """
    category = payload.get("category")
    confidence = payload.get("confidence")
    if not category or confidence is None or isinstance(confidence, bool):
        raise ResponseShapeError("Missing required fields in classification response")

    try:
        value = float(confidence)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ResponseShapeError(f"Invalid confidence value: {exc}") from exc
    if not math.isfinite(value):
        raise ResponseShapeError(f"Confidence is not a finite number: {confidence!r}")

    subcategory = payload.get("subcategory")
    try:
        return ClassificationResult(
            category=str(category),
            confidence=value,
            subcategory=str(subcategory) if subcategory else None,
            suggested_folder=str(
                payload.get("suggestedFolder") or payload.get("suggested_folder") or ""
            ),
            reasoning=str(payload.get("reasoning") or ""),
        )
    except (TypeError, ValueError, ValidationError) as exc:
        raise ResponseShapeError(f"Invalid classification values: {exc}") from exc


def parse_classification_response(text: str, *, source: str = "") -> ClassificationResult:
    """Parse a raw model response, falling back on any shape problem.

    Args:
        text: Raw text returned by the model.
        source: File name used in log messages.

    Returns:
        ClassificationResult: Parsed result, or the fallback result.
    """
    try:
        return validate_payload(extract_json_object(text))
    except ResponseShapeError as exc:
        LOGGER.warning("Using fallback classification for %s: %s", source or "<unknown>", exc)
        return fallback_result()


__all__ = [
    "ResponseShapeError",
    "extract_json_object",
    "fallback_result",
    "parse_classification_response",
    "validate_payload",
]
