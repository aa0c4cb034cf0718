"""
Typed errors raised across the hours submission flow.

Verification problems never surface as exceptions to the caller: the gate
converts them into rejected verdicts. Ledger problems always do.
"""

from typing import Optional


class HoursError(Exception):
    """Base class for all service-hours errors."""


class ConfigurationError(HoursError):
    """A required credential or endpoint is missing."""


class SubmissionValidationError(HoursError):
    """A submission field failed validation before any network call.

    Attributes:
        field: Name of the offending form field
        message: Guidance to show next to that field
    """

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class LedgerUnavailableError(HoursError):
    """The remote ledger could not be reached or returned an HTTP error."""

    RETRY_HINT = "Check your internet connection and try again."

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message}. {self.RETRY_HINT}")
        self.status_code = status_code


class LedgerWriteError(HoursError):
    """The ledger endpoint was reached but reported that the write failed."""


class VisionUnavailableError(HoursError):
    """The image authenticity service failed."""


class UnparseableVerdictError(HoursError):
    """The AI verifier returned a response that could not be interpreted."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text
