"""Text extraction and document metadata helpers."""

from __future__ import annotations

import math

from .models import DocumentMetadata, InputFile

WORDS_PER_PAGE = 250


class TextExtractor:
    """Produce a text representation of a document for classification.

    Plain-text and JSON content is decoded directly. Binary document formats
    are not parsed: PDFs and every other type are represented by a short
    description built from the file name, media type and size, so their
    classification relies on the file name alone.
    """

    def extract(self, file: InputFile) -> str:
        """Return the text used to classify ``file``.

        Raises:
            InputFileError: If text content cannot be read.
        """
        media_type = file.media_type.lower()

        if "text/" in media_type or "json" in media_type:
            return file.read_text()

        if "pdf" in media_type:
            return (
                f"PDF Document: {file.name}\n"
                f"Size: {file.size_bytes} bytes\n"
                "This is a PDF file that requires specialized parsing."
            )

        return f"Document: {file.name}\nType: {file.media_type}\nSize: {file.size_bytes} bytes"

    def metadata(self, text: str) -> DocumentMetadata:
        """Estimate word count, page count and language for extracted text."""
        word_count = len(text.split())
        return DocumentMetadata(
            word_count=word_count,
            page_count=math.ceil(word_count / WORDS_PER_PAGE),
            language="en",
        )


__all__ = ["TextExtractor", "WORDS_PER_PAGE"]
