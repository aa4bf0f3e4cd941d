"""Prompt templates for document and image classification."""

from __future__ import annotations

import textwrap

DOCUMENT_CATEGORIES = (
    "resume",
    "invoice",
    "contract",
    "report",
    "presentation",
    "assignment",
    "receipt",
    "certificate",
    "manual",
    "form",
)

IMAGE_CATEGORIES = (
    "screenshot",
    "photo",
    "diagram",
    "chart",
    "document-scan",
    "receipt",
    "id-card",
    "certificate",
    "artwork",
    "meme",
    "social-media",
)

DOCUMENT_SYSTEM_PROMPT = (
    "You are an expert document classifier. Analyze documents and classify them into "
    "specific categories with high accuracy. Always respond with valid JSON only."
)

IMAGE_SYSTEM_PROMPT = (
    "You are an expert image classifier. Analyze images and classify them into "
    "appropriate categories. Always respond with valid JSON only."
)

CONNECTIVITY_PROMPT = "Say 'API key is working' if you can read this."

_DOCUMENT_TEMPLATE = textwrap.dedent(
    """\
    Analyze this document and classify it into one of these categories: {categories}

    Document filename: {filename}
    Document content (first {limit} characters):
    {content}

    Respond with ONLY a JSON object in this exact format:
    {{
      "category": "one of the predefined categories",
      "confidence": 0.95,
      "subcategory": "specific subcategory if applicable",
      "suggestedFolder": "suggested folder path",
      "reasoning": "brief explanation of classification"
    }}

    Requirements:
    - confidence should be between 0.0 and 1.0
    - category must be one of: {categories}
    - suggestedFolder should follow the pattern: Category/Subcategory
    - reasoning should be 1-2 sentences explaining why
    """
)

_IMAGE_TEMPLATE = textwrap.dedent(
    """\
    Analyze this image and classify it into an appropriate category.

    Image filename: {filename}

    Common image categories: {categories}

    Respond with ONLY a JSON object in this exact format:
    {{
      "category": "most appropriate category",
      "confidence": 0.95,
      "subcategory": "specific subcategory if applicable",
      "suggestedFolder": "Images/CategoryName",
      "reasoning": "brief explanation of what you see"
    }}
    """
)


def build_document_prompt(content: str, filename: str, *, limit: int = 2_000) -> str:
    """Return the classification prompt for a document's extracted text."""
    return _DOCUMENT_TEMPLATE.format(
        categories=", ".join(DOCUMENT_CATEGORIES),
        filename=filename,
        limit=limit,
        content=content[:limit],
    )


def build_image_prompt(filename: str) -> str:
    """Return the classification prompt sent alongside an inline image."""
    return _IMAGE_TEMPLATE.format(filename=filename, categories=", ".join(IMAGE_CATEGORIES))


__all__ = [
    "CONNECTIVITY_PROMPT",
    "DOCUMENT_CATEGORIES",
    "DOCUMENT_SYSTEM_PROMPT",
    "IMAGE_CATEGORIES",
    "IMAGE_SYSTEM_PROMPT",
    "build_document_prompt",
    "build_image_prompt",
]
