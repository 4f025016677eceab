"""
Error taxonomy for the content store.

Every error carries the HTTP status it should surface as, so the API layer
can map them without a lookup table.
"""

from typing import List, Optional


class SiteCMSError(Exception):
    """Base class for all sitecms errors."""

    status_code = 500


class StorageCorruptError(SiteCMSError):
    """Backing collection file exists but is not a JSON array."""

    status_code = 500


class AdmissionError(SiteCMSError):
    """Upload rejected by the admission policy."""

    status_code = 400


class UnsupportedMediaTypeError(AdmissionError):
    status_code = 415


class PayloadTooLargeError(AdmissionError):
    status_code = 413


class NotFoundError(SiteCMSError):
    status_code = 404


class ValidationError(SiteCMSError):
    """Raised by strict record factories; `errors` lists each problem."""

    status_code = 400

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "; ".join(self.errors))


class StorageWriteError(SiteCMSError):
    """Persisting a collection or upload failed; nothing partial is left behind."""

    status_code = 500
