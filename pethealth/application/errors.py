from enum import Enum
from typing import Optional


class DiagnosticError(Exception):
    """Base class for failures surfaced by the diagnostic pipeline."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DiagnosticError):
    """Caller input is malformed. Always surfaced, never degraded."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class ParseError(DiagnosticError):
    """Provider output could not be turned into a typed result."""


class ServiceUnavailableError(DiagnosticError):
    """Raised by calls that have no fallback tier."""


class ProviderFailure(str, Enum):
    UNCONFIGURED = "unconfigured"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_CREDENTIAL = "invalid_credential"
    TRANSPORT = "transport"
    EMPTY_RESPONSE = "empty_response"
    REFUSED = "refused"


class ProviderError(DiagnosticError):
    def __init__(self, kind: ProviderFailure, message: Optional[str] = None):
        super().__init__(message or f"Diagnostic provider failure: {kind.value}")
        self.kind = kind
