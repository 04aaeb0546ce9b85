"""Offline scanner that only knows the EICAR test signature.

Use it for local development and tests where no ClamAV service runs. It
reports the standard anti-virus test file as infected and everything else as
clean.
"""

from typing import ClassVar

from safeupload.scanning.base import BaseScanner
from safeupload.scanning.models import Clean, Infected, ScanVerdict


class EicarScannerAdapter(BaseScanner):
    """Detects the EICAR anti-virus test string. Stateless and thread-safe."""

    SIGNATURE_NAME: ClassVar[str] = "Eicar-Test-Signature"
    EICAR: ClassVar[bytes] = (
        rb"X5O!P%@AP[4\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*"
    )

    def scan(self, content: bytes) -> ScanVerdict:
        if self.EICAR in content:
            return Infected(signature=self.SIGNATURE_NAME)
        return Clean()

    def is_available(self) -> bool:
        return True
