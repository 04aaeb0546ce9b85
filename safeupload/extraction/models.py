from dataclasses import dataclass


@dataclass(frozen=True)
class ExtractedText:
    """Text recovered from the upload."""

    text: str


@dataclass(frozen=True)
class ExtractionFailed:
    """Extraction did not produce text; the upload still proceeds."""

    reason: str


ExtractionOutcome = ExtractedText | ExtractionFailed
