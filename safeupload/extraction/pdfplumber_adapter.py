import io
from typing import ClassVar

import pdfplumber

from safeupload.extraction.base import BaseTextExtractor
from safeupload.extraction.exceptions import ExtractionError, UnsupportedContentTypeError


class PdfPlumberAdapter(BaseTextExtractor):
    """Extracts the text layer of PDFs using pdfplumber.

    Every call opens its own document, so one instance is safe to share
    between threads.
    """

    SUPPORTED_CONTENT_TYPES: ClassVar[frozenset[str]] = frozenset({"application/pdf"})

    def extract_text(self, content: bytes, content_type: str) -> str:
        if not self.supports(content_type):
            raise UnsupportedContentTypeError(
                f"pdfplumber cannot read '{content_type}'"
            )
        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return "\n".join(pages).strip()
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"pdfplumber extraction failed: {exc}") from exc
