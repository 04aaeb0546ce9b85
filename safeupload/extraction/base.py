from abc import ABC, abstractmethod
from typing import ClassVar

from safeupload.extraction.exceptions import ExtractionError
from safeupload.extraction.models import ExtractedText, ExtractionFailed, ExtractionOutcome


class BaseTextExtractor(ABC):
    """Contract for all text extraction adapters."""

    SUPPORTED_CONTENT_TYPES: ClassVar[frozenset[str]] = frozenset()

    def supports(self, content_type: str) -> bool:
        return content_type in self.SUPPORTED_CONTENT_TYPES

    @abstractmethod
    def extract_text(self, content: bytes, content_type: str) -> str:
        """Extract plain text from raw upload bytes.

        Args:
            content: Raw file content.
            content_type: Resolved mime type, e.g. "application/pdf".

        Returns:
            Extracted text as a single normalized string.

        Raises:
            ExtractionError: if extraction fails for any reason.
        """

    def extract(self, content: bytes, content_type: str) -> ExtractionOutcome:
        """Run extraction and report the result as a tagged outcome."""
        if not self.supports(content_type):
            return ExtractionFailed(reason=f"unsupported content type '{content_type}'")
        try:
            text = self.extract_text(content, content_type)
        except ExtractionError as exc:
            return ExtractionFailed(reason=str(exc))
        return ExtractedText(text=text)

    def is_available(self) -> bool:
        return True

    def close(self) -> None:
        """Release engine resources."""
