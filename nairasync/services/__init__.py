"""Services package."""

from nairasync.services.extraction import (
    DocumentExtractionProvider,
    ExtractionError,
    ExtractionPipeline,
    GeminiExtractionProvider,
)

__all__ = [
    "DocumentExtractionProvider",
    "ExtractionError",
    "ExtractionPipeline",
    "GeminiExtractionProvider",
]
