import threading
from typing import ClassVar

import pymupdf

from safeupload.extraction.base import BaseTextExtractor
from safeupload.extraction.exceptions import ExtractionError, UnsupportedContentTypeError


class PyMuPdfAdapter(BaseTextExtractor):
    """Extracts text from PDFs and, via Tesseract OCR, from images using PyMuPDF.

    PyMuPDF is not thread-safe: a single instance serializes all calls
    behind a lock.
    """

    PDF_CONTENT_TYPE: ClassVar[str] = "application/pdf"
    IMAGE_CONTENT_TYPES: ClassVar[frozenset[str]] = frozenset({"image/png", "image/jpeg"})
    SUPPORTED_CONTENT_TYPES: ClassVar[frozenset[str]] = IMAGE_CONTENT_TYPES | {PDF_CONTENT_TYPE}

    def __init__(self, ocr_language: str = "eng", tessdata: str | None = None) -> None:
        self._ocr_language = ocr_language
        self._tessdata = tessdata
        self._lock = threading.Lock()

    def extract_text(self, content: bytes, content_type: str) -> str:
        if not self.supports(content_type):
            raise UnsupportedContentTypeError(f"pymupdf cannot read '{content_type}'")
        try:
            with self._lock:
                if content_type == self.PDF_CONTENT_TYPE:
                    return self._pdf_text(content)
                return self._ocr_image(content)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"pymupdf extraction failed: {exc}") from exc

    def _pdf_text(self, content: bytes) -> str:
        with pymupdf.open(stream=content, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            pages = [page.get_text() for page in doc]
        return "\n".join(pages).strip()

    def _ocr_image(self, content: bytes) -> str:
        pixmap = pymupdf.Pixmap(content)
        if pixmap.alpha:
            pixmap = pymupdf.Pixmap(pixmap, 0)
        ocr_pdf = pixmap.pdfocr_tobytes(language=self._ocr_language, tessdata=self._tessdata)
        with pymupdf.open(stream=ocr_pdf, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            pages = [page.get_text() for page in doc]
        return "\n".join(pages).strip()
