"""
Data Models Package

This package contains all Pydantic models used in the NairaSync system.
All data flowing through the system must conform to these schemas.
"""

from nairasync.models.transaction import (
    SUPPORTED_MIME_TYPES,
    BandAllocation,
    DocumentUpload,
    ExtractionRequest,
    ModelTier,
    ProviderChoice,
    StatementAnalysis,
    TaxBand,
    TaxBreakdown,
    Transaction,
    TransactionType,
)
from nairasync.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Statement models
    "SUPPORTED_MIME_TYPES",
    "BandAllocation",
    "DocumentUpload",
    "ExtractionRequest",
    "ModelTier",
    "ProviderChoice",
    "StatementAnalysis",
    "TaxBand",
    "TaxBreakdown",
    "Transaction",
    "TransactionType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
