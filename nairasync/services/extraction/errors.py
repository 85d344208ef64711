"""
Extraction Error Taxonomy

Every failure of an extraction call leaves the pipeline as exactly one
ExtractionError subclass. str(error) is always the fixed user-facing
message; the provider's own error text is kept on __cause__ for logs
and never shown to the user.

DESIGN DECISION: Provider errors are classified by matching substrings of
their text against CLASSIFICATION_RULES. Provider SDKs do not share an
exception hierarchy, and their messages (status codes, "quota", "token
count") are the only signal common to all of them. The rules are plain
data so they can be tested without a live provider.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """User-facing failure categories."""
    CONFIGURATION = "configuration"
    ACCESS_DENIED = "access_denied"
    MODEL_UNAVAILABLE = "model_unavailable"
    RATE_LIMITED = "rate_limited"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    CONTENT_TOO_DENSE = "content_too_dense"
    UNSUPPORTED_COMPLEXITY = "unsupported_complexity"
    CONTENT_BLOCKED = "content_blocked"
    DATA_FORMAT = "data_format"
    UNKNOWN = "unknown"


HIGH_CAPACITY_TAG = "[Pro Audit]"


class ExtractionError(Exception):
    """Base exception for extraction errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    default_message = "Failed to process document. Please try again or contact support."
    retryable = False

    def __init__(self, message: Optional[str] = None):
        self.user_message = message or self.default_message
        super().__init__(self.user_message)

    def tagged(self, tag: str) -> "ExtractionError":
        """Return a copy of this error whose message is prefixed with tag."""
        if self.user_message.startswith(tag):
            return self
        error = type(self)(f"{tag} {self.user_message}")
        error.__cause__ = self.__cause__
        return error


class ConfigurationError(ExtractionError):
    """No provider credential configured. Fatal, never retried."""
    kind = ErrorKind.CONFIGURATION
    default_message = "System Configuration Error: API Key is missing."


class AccessDeniedError(ExtractionError):
    """Credential rejected by the provider."""
    kind = ErrorKind.ACCESS_DENIED
    default_message = "Access Denied: Invalid or Missing API Key."


class ModelUnavailableError(ExtractionError):
    """Requested backend model does not exist or is not enabled."""
    kind = ErrorKind.MODEL_UNAVAILABLE
    default_message = (
        "Engine Error: The selected model is not available. "
        "Please try switching between Flash and Pro."
    )


class RateLimitedError(ExtractionError):
    """Quota or throttling. Safe to resubmit."""
    kind = ErrorKind.RATE_LIMITED
    default_message = "Traffic limit exceeded. Retrying in a moment usually fixes this."
    retryable = True


class PayloadTooLargeError(ExtractionError):
    kind = ErrorKind.PAYLOAD_TOO_LARGE
    default_message = (
        "The document size exceeds the secure transmission limit. "
        "Please try compressing your PDF or converting to grayscale to reduce size."
    )


class ContentTooDenseError(ExtractionError):
    """Token or context limit reached."""
    kind = ErrorKind.CONTENT_TOO_DENSE
    default_message = (
        "This document is extremely dense. Please switch to High-Capacity mode "
        "or split the PDF into smaller parts."
    )


class UnsupportedComplexityError(ExtractionError):
    """Provider failed internally while processing the document."""
    kind = ErrorKind.UNSUPPORTED_COMPLEXITY
    default_message = (
        "The document structure is too complex for the engine. "
        "Please try converting to an Image or creating a simpler PDF."
    )


class ContentBlockedError(ExtractionError):
    """Provider safety filter refused the document."""
    kind = ErrorKind.CONTENT_BLOCKED
    default_message = (
        "The document was rejected by the content filter. "
        "Please try a different file."
    )


class DataFormatError(ExtractionError):
    """Response could not be parsed even after repair."""
    kind = ErrorKind.DATA_FORMAT
    default_message = "Failed to parse the financial data. The document might be illegible."


class UnknownExtractionError(ExtractionError):
    kind = ErrorKind.UNKNOWN


# Evaluated top to bottom, first match wins. Rate limiting comes first so a
# 429 wins over anything else mentioned in the same message.
CLASSIFICATION_RULES: list[tuple[tuple[str, ...], type[ExtractionError]]] = [
    (("429", "quota", "resource exhausted", "resource_exhausted", "resource has been exhausted"), RateLimitedError),
    (("api key", "403", "permission denied", "unauthenticated"), AccessDeniedError),
    (("404", "not found"), ModelUnavailableError),
    (("too large", "payload", "413"), PayloadTooLargeError),
    (("safety", "blocked"), ContentBlockedError),
    (("token count", "token limit", "context", "limit"), ContentTooDenseError),
    (("dependency", "internal"), UnsupportedComplexityError),
]


def error_text(error: BaseException) -> str:
    """Lower-cased message used for matching. The class name is left out."""
    return str(error).lower()


def classify_error(error: BaseException) -> ExtractionError:
    """
    Map any exception to exactly one ExtractionError.

    ExtractionErrors pass through unchanged. Anything else is matched
    against CLASSIFICATION_RULES and falls back to UnknownExtractionError.
    The original exception is chained as __cause__.
    """
    if isinstance(error, ExtractionError):
        return error

    text = error_text(error)
    error_class: type[ExtractionError] = UnknownExtractionError
    for signatures, candidate in CLASSIFICATION_RULES:
        if any(signature in text for signature in signatures):
            error_class = candidate
            break

    classified = error_class()
    classified.__cause__ = error
    return classified
