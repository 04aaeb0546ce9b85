from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar

from safeupload.storage.models import StorageDescriptor
from safeupload.upload.models import Rejection, UploadRequest, UploadResult


class PipelineState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    SCANNED = "scanned"
    EXTRACTED = "extracted"
    STORED = "stored"
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class Advance:
    """The step succeeded; move to its target state."""


@dataclass(frozen=True)
class Reject:
    """Content-policy refusal; ends in REJECTED."""

    rejection: Rejection


@dataclass(frozen=True)
class Fail:
    """System fault; ends in FAILED."""

    message: str


StepOutcome = Advance | Reject | Fail


@dataclass(slots=True)
class UploadContext:
    request: UploadRequest
    received_at: datetime
    state: PipelineState = PipelineState.RECEIVED
    mime_type: str = ""
    scan_passed: bool = False
    extracted_text: str = ""
    extraction_degraded: bool = False
    stored_filename: str = ""
    descriptor: StorageDescriptor | None = None
    result: UploadResult | None = None


class PipelineStep(ABC):
    """One transition of the upload state machine.

    source/target name the transition; terminal is the only non-advancing
    state the step may end in (None when the step always advances).
    """

    source: ClassVar[PipelineState]
    target: ClassVar[PipelineState]
    terminal: ClassVar[PipelineState | None] = None

    @abstractmethod
    def run(self, context: UploadContext) -> StepOutcome:
        raise NotImplementedError
