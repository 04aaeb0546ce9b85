from dataclasses import dataclass
from enum import Enum


class ScannerUnavailablePolicy(str, Enum):
    """What the pipeline does when the scanning engine cannot give a verdict."""

    FAIL_OPEN = "fail_open"  # proceed, record scan_passed=False
    FAIL_CLOSED = "fail_closed"  # reject the upload


@dataclass(frozen=True)
class Clean:
    """No malicious content found."""


@dataclass(frozen=True)
class Infected:
    """Malicious content found."""

    signature: str  # e.g. "Eicar-Test-Signature"


@dataclass(frozen=True)
class Unavailable:
    """The engine could not produce a verdict (down, timed out, errored)."""

    reason: str = ""


ScanVerdict = Clean | Infected | Unavailable
