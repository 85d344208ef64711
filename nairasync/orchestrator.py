"""
Main Orchestrator for NairaSync

This module ties together all the components and defines the
end-to-end flow for one statement:

    upload → envelope checks → extraction → totals + tax → session

DESIGN DECISION: The orchestrator enforces the boundaries:
- Only PDF/JPEG/PNG within the upload ceiling reach the provider
- Every step is audited, without financial content
- Results live in a StatementSession in memory and nowhere else

The presentation layer calls analyze_document() with the file payload and
renders the returned StatementAnalysis, or the str() of the raised error.
"""

from typing import Optional, Union
from uuid import UUID

from pydantic import ValidationError

from nairasync.audit import AuditLogger, create_correlation_id
from nairasync.config import get_settings, validate_all_settings
from nairasync.config.settings import AppSettings
from nairasync.models.transaction import (
    DocumentUpload,
    ProviderChoice,
    StatementAnalysis,
    Transaction,
)
from nairasync.services.extraction import (
    DocumentExtractionProvider,
    ExtractionError,
    ExtractionPipeline,
)
from nairasync.services.extraction.pipeline import strip_data_uri_header
from nairasync.tax import analyze_transactions


class DocumentRejectedError(Exception):
    """Upload refused before any provider call (type or size)."""

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message)


def estimate_decoded_size(document: Union[bytes, str]) -> int:
    """Size of the raw document; base64 text is ~4/3 of the original."""
    if isinstance(document, (bytes, bytearray)) and not document.startswith(b"data:"):
        return len(document)
    if isinstance(document, (bytes, bytearray)):
        document = bytes(document).decode("ascii", errors="ignore")
    # Line breaks in MIME-wrapped base64 carry no data
    body = "".join(strip_data_uri_header(document).split())
    return (len(body) * 3) // 4


class StatementSession:
    """
    Holds the current statement analysis for one user session.

    CRITICAL: This is the only place transactions live after extraction.
    Loading a new statement replaces the old one; reset() discards it.
    Nothing here is ever written to disk.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._analysis: Optional[StatementAnalysis] = None
        self._audit_logger = audit_logger

    @property
    def analysis(self) -> Optional[StatementAnalysis]:
        return self._analysis

    @property
    def transactions(self) -> list[Transaction]:
        if self._analysis is None:
            return []
        return list(self._analysis.transactions)

    @property
    def has_statement(self) -> bool:
        return self._analysis is not None

    def load(self, analysis: StatementAnalysis) -> None:
        """Replace the current statement with a new one."""
        self._analysis = analysis

    def reset(self) -> None:
        """Discard the current statement."""
        discarded = len(self._analysis.transactions) if self._analysis else 0
        self._analysis = None
        if self._audit_logger:
            self._audit_logger.log_session_reset(discarded_count=discarded)


class StatementAnalysisFlow:
    """
    Orchestrates the statement analysis flow.

    Flow:
    1. Upload → Create DocumentUpload record, check type and size
    2. Extract → Pipeline (tier, provider, retry, repair, classify)
    3. Analyze → CREDIT/DEBIT totals and PITA estimate
    4. Session → Replace the in-memory statement (if a session is given)

    Any ExtractionError is terminal for the request. The user resubmits.
    """

    def __init__(
        self,
        pipeline: Optional[ExtractionPipeline] = None,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
        session: Optional[StatementSession] = None,
    ):
        self._app_settings = app_settings or get_settings().app
        self._audit_logger = audit_logger
        self._pipeline = pipeline or ExtractionPipeline(
            app_settings=self._app_settings,
            audit_logger=audit_logger,
        )
        self._session = session

    def validate_upload(
        self,
        filename: str,
        mime_type: str,
        size_bytes: int,
        correlation_id: UUID,
    ) -> DocumentUpload:
        """
        Check the upload envelope before anything is sent out.

        Raises:
            DocumentRejectedError: Unsupported type or over the size ceiling
        """
        unsupported = DocumentRejectedError(
            reason="unsupported_type",
            message="Unsupported file type. Please upload a PDF, JPEG or PNG statement.",
        )
        try:
            upload = DocumentUpload(
                filename=filename,
                mime_type=mime_type,
                size_bytes=size_bytes,
            )
        except ValidationError as e:
            self._reject(filename, "unsupported_type", correlation_id)
            raise unsupported from e

        # Deployments may narrow the accepted types further
        if upload.mime_type not in self._app_settings.supported_mime_types_list:
            self._reject(filename, "unsupported_type", correlation_id)
            raise unsupported

        max_mb = self._app_settings.max_upload_size_mb
        if upload.size_bytes > self._app_settings.max_upload_size_bytes:
            self._reject(filename, "too_large", correlation_id)
            raise DocumentRejectedError(
                reason="too_large",
                message=f"Document exceeds secure processing limit (Max {max_mb}MB).",
            )

        return upload

    def _reject(self, filename: str, reason: str, correlation_id: UUID) -> None:
        if self._audit_logger:
            self._audit_logger.log_document_rejected(
                filename=filename,
                reason=reason,
                correlation_id=correlation_id,
            )

    async def analyze_document(
        self,
        document: Union[bytes, str],
        filename: str,
        mime_type: str,
        provider_choice: ProviderChoice = ProviderChoice.GEMINI_FLASH,
        size_bytes: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> StatementAnalysis:
        """
        Analyze one uploaded statement.

        Args:
            document: Raw bytes, base64 text or a data URI
            size_bytes: Size reported by the upload widget; estimated if omitted

        Returns:
            StatementAnalysis with transactions in statement order

        Raises:
            DocumentRejectedError: Envelope checks failed
            ExtractionError: Classified extraction failure
        """
        correlation_id = correlation_id or create_correlation_id()
        if size_bytes is None:
            size_bytes = estimate_decoded_size(document)

        upload = self.validate_upload(filename, mime_type, size_bytes, correlation_id)

        if self._audit_logger:
            self._audit_logger.log_document_received(
                upload_id=upload.upload_id,
                filename=upload.filename,
                size_bytes=upload.size_bytes,
                mime_type=upload.mime_type,
                correlation_id=correlation_id,
            )

        try:
            outcome = await self._pipeline.run(
                document,
                upload.mime_type,
                provider_choice,
                correlation_id=correlation_id,
            )
        except ExtractionError as e:
            if self._audit_logger:
                self._audit_logger.log_extraction_failed(
                    upload_id=upload.upload_id,
                    error_kind=e.kind.value,
                    user_message=e.user_message,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_extraction_completed(
                upload_id=upload.upload_id,
                transaction_count=len(outcome.transactions),
                tier=outcome.tier.value,
                correlation_id=correlation_id,
            )

        analysis = analyze_transactions(outcome.transactions)

        if self._audit_logger:
            self._audit_logger.log_tax_computed(
                upload_id=upload.upload_id,
                bands_used=len(analysis.tax.bands),
                correlation_id=correlation_id,
            )

        if self._session is not None:
            self._session.load(analysis)

        return analysis


def create_app_components(
    provider: Optional[DocumentExtractionProvider] = None,
) -> tuple[StatementAnalysisFlow, StatementSession]:
    """
    Factory function to create all application components.

    Args:
        provider: Extraction provider to use.
                  Defaults to Gemini configured from the environment.

    Returns:
        (statement_flow, session)
    """
    settings = get_settings()
    audit_logger = AuditLogger()
    session = StatementSession(audit_logger=audit_logger)

    # Startup check. A missing key is not fatal here: the tax views still
    # work, and extraction reports it per request.
    if provider is None:
        status = validate_all_settings()
        for name in ("gemini", "app"):
            if not status.get(name):
                audit_logger.log_error(
                    error_type=f"{name}_settings",
                    error_message=status.get(f"{name}_error", "invalid settings"),
                )

    pipeline = ExtractionPipeline(
        provider=provider,
        app_settings=settings.app,
        gemini_settings=settings.gemini,
        audit_logger=audit_logger,
    )
    flow = StatementAnalysisFlow(
        pipeline=pipeline,
        audit_logger=audit_logger,
        app_settings=settings.app,
        session=session,
    )
    return flow, session
