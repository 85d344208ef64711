"""
Audit Logger

DESIGN DECISION: Every significant step of a statement analysis is logged.
This provides:
1. Traceability of provider calls, retries and repairs
2. Debugging capability
3. A record of which error kind reached the user

The audit logger:
- Writes structured JSON to the local log only. Statements are private,
  so there is no storage backend to persist events to
- Never receives transaction content (see models.audit)
- Supports correlation IDs to trace related events
"""

from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from nairasync.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


DEFAULT_MAX_RECENT_EVENTS = 500


class AuditLogger:
    """Central audit logging service."""

    def __init__(self, logger=None, max_recent_events: int = DEFAULT_MAX_RECENT_EVENTS):
        """
        Initialize audit logger.

        Args:
            logger: structlog logger to write to.
                    If None, the module logger is used.
            max_recent_events: How many recent events to keep in memory.
                    Older ones are dropped; the log output is the record.
        """
        self._logger = logger or structlog.get_logger("nairasync.audit")
        self._events: deque[AuditEvent] = deque(maxlen=max_recent_events)

    @property
    def events(self) -> list[AuditEvent]:
        """Most recent events logged by this instance, oldest first."""
        return list(self._events)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event locally."""
        self._events.append(event)
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_document_received(
        self,
        upload_id: UUID,
        filename: str,
        size_bytes: int,
        mime_type: str,
        correlation_id: UUID,
    ) -> None:
        """Log statement upload."""
        self.log(AuditEventBuilder.document_received(
            upload_id=upload_id,
            filename=filename,
            size_bytes=size_bytes,
            mime_type=mime_type,
            correlation_id=correlation_id,
        ))

    def log_document_rejected(
        self,
        filename: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log an upload refused before extraction."""
        self.log(AuditEventBuilder.document_rejected(
            filename=filename,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_tier_selected(
        self,
        tier: str,
        model_name: str,
        size_bytes: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.tier_selected(
            tier=tier,
            model_name=model_name,
            size_bytes=size_bytes,
            correlation_id=correlation_id,
        ))

    def log_empty_response_retry(
        self,
        attempt: int,
        model_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.empty_response_retry(
            attempt=attempt,
            model_name=model_name,
            correlation_id=correlation_id,
        ))

    def log_response_repaired(
        self,
        original_length: int,
        repaired_length: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.response_repaired(
            original_length=original_length,
            repaired_length=repaired_length,
            correlation_id=correlation_id,
        ))

    def log_extraction_completed(
        self,
        upload_id: UUID,
        transaction_count: int,
        tier: str,
        correlation_id: UUID,
    ) -> None:
        """Log successful extraction."""
        self.log(AuditEventBuilder.extraction_completed(
            upload_id=upload_id,
            transaction_count=transaction_count,
            tier=tier,
            correlation_id=correlation_id,
        ))

    def log_extraction_failed(
        self,
        upload_id: UUID,
        error_kind: str,
        user_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a classified extraction failure."""
        self.log(AuditEventBuilder.extraction_failed(
            upload_id=upload_id,
            error_kind=error_kind,
            user_message=user_message,
            correlation_id=correlation_id,
        ))

    def log_tax_computed(
        self,
        upload_id: UUID,
        bands_used: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.tax_computed(
            upload_id=upload_id,
            bands_used=bands_used,
            correlation_id=correlation_id,
        ))

    def log_session_reset(self, discarded_count: int) -> None:
        self.log(AuditEventBuilder.session_reset(discarded_count=discarded_count))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., statement upload).
    Pass it through all subsequent operations.
    """
    return uuid4()
