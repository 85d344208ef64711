"""
Audit Models for NairaSync

Every significant step of a statement analysis is logged for audit purposes.
This provides:
1. Traceability of each extraction call (tier, retries, repairs)
2. Debugging information when the provider misbehaves
3. A record of which error kind was shown to the user

DESIGN DECISION: Audit events describe WHAT happened, never the financial
content. No description, amount or date from a statement ever appears
in an event. Counts, sizes, tiers and error kinds only.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Upload
    DOCUMENT_RECEIVED = "document_received"
    DOCUMENT_REJECTED = "document_rejected"

    # Extraction
    TIER_SELECTED = "tier_selected"
    EMPTY_RESPONSE_RETRY = "empty_response_retry"
    RESPONSE_REPAIRED = "response_repaired"
    EXTRACTION_COMPLETED = "extraction_completed"
    EXTRACTION_FAILED = "extraction_failed"

    # Tax
    TAX_COMPUTED = "tax_computed"

    # Session
    SESSION_RESET = "session_reset"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'document', 'extraction', 'session')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one upload)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.document_received(upload_id, filename, size, mime, cid)
        event = AuditEventBuilder.extraction_failed(upload_id, "rate_limited", msg, cid)
    """

    @staticmethod
    def document_received(
        upload_id: UUID,
        filename: str,
        size_bytes: int,
        mime_type: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_RECEIVED,
            entity_type="document",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Statement uploaded: {filename}",
            details={
                "filename": filename,
                "size_bytes": size_bytes,
                "mime_type": mime_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def document_rejected(
        filename: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            correlation_id=correlation_id,
            description=f"Statement rejected before extraction: {filename}",
            details={
                "filename": filename,
                "reason": reason,
            },
        )

    @staticmethod
    def tier_selected(
        tier: str,
        model_name: str,
        size_bytes: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TIER_SELECTED,
            entity_type="extraction",
            correlation_id=correlation_id,
            description=f"Extraction tier selected: {tier}",
            details={
                "tier": tier,
                "model_name": model_name,
                "size_bytes": size_bytes,
            },
        )

    @staticmethod
    def empty_response_retry(
        attempt: int,
        model_name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMPTY_RESPONSE_RETRY,
            severity=AuditSeverity.WARNING,
            entity_type="extraction",
            correlation_id=correlation_id,
            description="Provider returned an empty response, retrying",
            details={
                "attempt": attempt,
                "model_name": model_name,
            },
        )

    @staticmethod
    def response_repaired(
        original_length: int,
        repaired_length: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RESPONSE_REPAIRED,
            severity=AuditSeverity.WARNING,
            entity_type="extraction",
            correlation_id=correlation_id,
            description="Truncated provider response repaired",
            details={
                "original_length": original_length,
                "repaired_length": repaired_length,
            },
        )

    @staticmethod
    def extraction_completed(
        upload_id: UUID,
        transaction_count: int,
        tier: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_COMPLETED,
            entity_type="extraction",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Extraction completed with {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
                "tier": tier,
            },
        )

    @staticmethod
    def extraction_failed(
        upload_id: UUID,
        error_kind: str,
        user_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="extraction",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Extraction failed: {error_kind}",
            error_code=error_kind,
            error_message=user_message,
            details={
                "error_kind": error_kind,
            },
        )

    @staticmethod
    def tax_computed(
        upload_id: UUID,
        bands_used: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAX_COMPUTED,
            entity_type="extraction",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Tax computed across {bands_used} band(s)",
            details={
                "bands_used": bands_used,
            },
        )

    @staticmethod
    def session_reset(
        discarded_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESET,
            entity_type="session",
            description="Session reset, in-memory transactions discarded",
            details={
                "discarded_count": discarded_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
