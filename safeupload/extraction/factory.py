from safeupload.config.settings import Settings
from safeupload.extraction.base import BaseTextExtractor
from safeupload.extraction.pdfplumber_adapter import PdfPlumberAdapter
from safeupload.extraction.pymupdf_adapter import PyMuPdfAdapter
from safeupload.extraction.timeout import TimeoutExtractor


class TextExtractorFactory:
    """Creates the correct text extractor based on settings."""

    ENGINES: tuple[str, ...] = ("pymupdf", "pdfplumber")

    @classmethod
    def create(cls, settings: Settings) -> BaseTextExtractor:
        engine = settings.extraction_engine.lower()
        extractor: BaseTextExtractor
        if engine == "pymupdf":
            extractor = PyMuPdfAdapter(
                ocr_language=settings.ocr_language,
                tessdata=settings.ocr_tessdata,
            )
        elif engine == "pdfplumber":
            extractor = PdfPlumberAdapter()
        else:
            raise ValueError(
                f"Unknown extraction engine '{engine}'. Choose from: {list(cls.ENGINES)}"
            )
        if settings.extraction_timeout_seconds > 0:
            return TimeoutExtractor(
                extractor,
                timeout_seconds=settings.extraction_timeout_seconds,
                max_workers=settings.upload_workers,
            )
        return extractor
