"""Statement extraction services package."""

from nairasync.services.extraction.errors import (
    CLASSIFICATION_RULES,
    AccessDeniedError,
    ConfigurationError,
    ContentBlockedError,
    ContentTooDenseError,
    DataFormatError,
    ErrorKind,
    ExtractionError,
    ModelUnavailableError,
    PayloadTooLargeError,
    RateLimitedError,
    UnknownExtractionError,
    UnsupportedComplexityError,
    classify_error,
)
from nairasync.services.extraction.parsing import (
    TRANSACTION_LIST_SCHEMA,
    parse_transactions,
    repair_truncated_array,
    strip_code_fences,
)
from nairasync.services.extraction.pipeline import (
    ExtractionOutcome,
    ExtractionPipeline,
    decode_document,
    select_tier,
)
from nairasync.services.extraction.provider import (
    DocumentExtractionProvider,
    GeminiExtractionProvider,
    ProviderResponseError,
)

__all__ = [
    # Errors
    "CLASSIFICATION_RULES",
    "AccessDeniedError",
    "ConfigurationError",
    "ContentBlockedError",
    "ContentTooDenseError",
    "DataFormatError",
    "ErrorKind",
    "ExtractionError",
    "ModelUnavailableError",
    "PayloadTooLargeError",
    "RateLimitedError",
    "UnknownExtractionError",
    "UnsupportedComplexityError",
    "classify_error",
    # Parsing
    "TRANSACTION_LIST_SCHEMA",
    "parse_transactions",
    "repair_truncated_array",
    "strip_code_fences",
    # Pipeline
    "ExtractionOutcome",
    "ExtractionPipeline",
    "decode_document",
    "select_tier",
    # Providers
    "DocumentExtractionProvider",
    "GeminiExtractionProvider",
    "ProviderResponseError",
]
