"""
Document-to-text collaborator.

Image digitization is out of scope: uploads are expected to already
carry a text layer. The extractor decodes them and splits the text into
candidate lines for the procedure matcher.
"""

import logging
from typing import Protocol

from clinic_assistant.tools.errors import DocumentExtractionError

logger = logging.getLogger(__name__)


class DocumentExtractor(Protocol):
    def extract_text(self, document: bytes) -> list[str]: ...


class PlainTextExtractor:
    """Decode a text document as UTF-8 (falling back to Latin-1) and split it into lines."""

    def extract_text(self, document: bytes) -> list[str]:
        if not document:
            raise DocumentExtractionError("Empty document")
        try:
            text = document.decode("utf-8")
        except UnicodeDecodeError:
            text = document.decode("latin-1")
        lines = [line.strip() for line in text.splitlines()]
        lines = [line for line in lines if line]
        if not lines:
            raise DocumentExtractionError("No text found in document")
        logger.info("Extracted %d lines from document", len(lines))
        return lines
