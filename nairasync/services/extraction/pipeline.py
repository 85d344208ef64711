"""
Statement Extraction Pipeline

This service handles:
1. Credential pre-check (ConfigurationError, never retried)
2. Payload normalization (data-URI header stripped, base64 decoded)
3. Tier selection (size-based escalation or explicit preference)
4. The provider call, with one retry on an empty response
5. Repair and parse of the response into Transactions
6. Classification of every failure into one user-facing ErrorKind

CRITICAL: Provider output is never trusted. It always goes through
parse_transactions, and every failure leaves as an ExtractionError.

State per call: Idle → RequestSent → (EmptyResponse → RequestSent, once)
→ ResponseReceived → Done | Failed. Nothing is kept on the instance
between calls, so one pipeline can serve concurrent extractions.
"""

import base64
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, Field
from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt

from nairasync.audit import AuditLogger
from nairasync.config import AppSettings, GeminiSettings, get_settings
from nairasync.models.transaction import (
    ExtractionRequest,
    ModelTier,
    ProviderChoice,
    Transaction,
)
from nairasync.services.extraction.errors import (
    HIGH_CAPACITY_TAG,
    ConfigurationError,
    classify_error,
)
from nairasync.services.extraction.parsing import (
    TRANSACTION_LIST_SCHEMA,
    parse_transactions,
)
from nairasync.services.extraction.provider import (
    DocumentExtractionProvider,
    GeminiExtractionProvider,
)


logger = structlog.get_logger(__name__)

# One request plus one retry when the provider returns nothing
EMPTY_RESPONSE_ATTEMPTS = 2

EXTRACTION_PROMPT = """You are a Federal Auditor extraction engine. Analyze this bank statement.

CRITICAL INSTRUCTION: This document may contain hundreds of pages.
Extract transactions from the FIRST page through to the LAST page.
Do NOT stop after the first page. Do NOT summarize or sample.
If you see "Page 1 of N", make sure you reach page N.

TASK: Extract every financial transaction into a single JSON array.

FIELDS:
- date: "YYYY-MM-DD" (the transaction date)
- description: string (clean up bank codes, drop timestamps mixed into the narration)
- amount: number (positive value, no currency symbols)
- type: "CREDIT" (inflow/deposit) or "DEBIT" (outflow/withdrawal)

If the document is unclear or contains no transactions, return an empty array []."""


class ExtractionOutcome(BaseModel):
    """Result of one extraction call, with the decisions taken on the way."""

    transactions: list[Transaction] = Field(default_factory=list)
    tier: ModelTier
    model_name: str
    size_bytes: int = Field(ge=0)
    attempts: int = Field(ge=1)
    repaired: bool = False


def strip_data_uri_header(payload: str) -> str:
    """Drop a 'data:<mime>;base64,' prefix if one is present."""
    _, separator, body = payload.partition(",")
    return body if separator else payload


def decode_document(document: Union[bytes, str]) -> bytes:
    """
    Recover the raw document from its transport encoding.

    bytes are taken as the raw file unless they hold a data URI. A str is
    a base64 payload, with or without a data-URI header.

    Raises:
        binascii.Error: If the base64 body is malformed
    """
    if isinstance(document, (bytes, bytearray)):
        if not document.startswith(b"data:"):
            return bytes(document)
        document = bytes(document).decode("ascii")
    body = "".join(strip_data_uri_header(document).split())
    return base64.b64decode(body, validate=True)


def select_tier(
    size_bytes: int,
    preference: ProviderChoice,
    threshold_bytes: int,
) -> ModelTier:
    """
    Decide which model tier serves a document.

    Large documents always go to the high-capacity tier, whatever the
    user asked for. A document exactly at the threshold stays fast.
    """
    if size_bytes > threshold_bytes or preference.prefers_high_capacity:
        return ModelTier.HIGH_CAPACITY
    return ModelTier.FAST


def _is_empty_response(text: Optional[str]) -> bool:
    return text is None or not text.strip()


class ExtractionPipeline:
    """
    Extracts transactions from a statement through a provider.

    IMPORTANT BOUNDARIES:
    1. At most two provider calls per extraction, and only when the first
       came back empty
    2. No raw provider text or exception message ever reaches the caller
    3. Nothing is cached or persisted
    """

    def __init__(
        self,
        provider: Optional[DocumentExtractionProvider] = None,
        app_settings: Optional[AppSettings] = None,
        gemini_settings: Optional[GeminiSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._gemini_settings = gemini_settings or get_settings().gemini
        self._app_settings = app_settings or get_settings().app
        self._provider = provider or GeminiExtractionProvider(self._gemini_settings)
        self._audit_logger = audit_logger

    def model_for(self, tier: ModelTier) -> str:
        if tier == ModelTier.HIGH_CAPACITY:
            return self._gemini_settings.high_capacity_model_name
        return self._gemini_settings.fast_model_name

    async def extract(
        self,
        document: Union[bytes, str],
        mime_type: str,
        provider_choice: ProviderChoice = ProviderChoice.GEMINI_FLASH,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Extract the ordered transaction list from a statement.

        Returns:
            Transactions in statement order; empty if the provider found none

        Raises:
            ExtractionError: One of the classified subclasses
        """
        outcome = await self.run(document, mime_type, provider_choice, correlation_id)
        return outcome.transactions

    async def run(
        self,
        document: Union[bytes, str],
        mime_type: str,
        provider_choice: ProviderChoice = ProviderChoice.GEMINI_FLASH,
        correlation_id: Optional[UUID] = None,
    ) -> ExtractionOutcome:
        """Same as extract(), but also reports tier, attempts and repairs."""
        if not self._provider.is_configured:
            raise ConfigurationError()

        tier: Optional[ModelTier] = None
        try:
            payload = decode_document(document)
            tier = select_tier(
                len(payload),
                provider_choice,
                self._app_settings.large_document_threshold_bytes,
            )
            model_name = self.model_for(tier)
            if self._audit_logger:
                self._audit_logger.log_tier_selected(
                    tier=tier.value,
                    model_name=model_name,
                    size_bytes=len(payload),
                    correlation_id=correlation_id,
                )

            request = ExtractionRequest(
                model_name=model_name,
                document=payload,
                mime_type=mime_type,
                prompt=EXTRACTION_PROMPT,
                response_schema=TRANSACTION_LIST_SCHEMA,
                disable_safety_filters=True,
                tier=tier,
            )
            raw_text, attempts = await self._request_with_retry(request, correlation_id)

            transactions: list[Transaction] = []
            repaired = False
            if _is_empty_response(raw_text):
                # Still empty after the retry: a statement with no transactions
                logger.warning(
                    "empty_response_after_retry",
                    model_name=model_name,
                    attempts=attempts,
                )
            else:
                parsed = parse_transactions(raw_text)
                transactions = parsed.transactions
                repaired = parsed.repaired
                if repaired:
                    logger.warning(
                        "truncated_response_repaired",
                        original_length=parsed.original_length,
                        repaired_length=parsed.repaired_length,
                    )
                    if self._audit_logger:
                        self._audit_logger.log_response_repaired(
                            original_length=parsed.original_length,
                            repaired_length=parsed.repaired_length,
                            correlation_id=correlation_id,
                        )

            return ExtractionOutcome(
                transactions=transactions,
                tier=tier,
                model_name=model_name,
                size_bytes=len(payload),
                attempts=attempts,
                repaired=repaired,
            )

        except Exception as e:
            error = classify_error(e)
            logger.error(
                "extraction_failed",
                error_kind=error.kind.value,
                provider=self._provider.name,
                tier=tier.value if tier else None,
                exc_info=True,
            )
            if tier == ModelTier.HIGH_CAPACITY or provider_choice.prefers_high_capacity:
                error = error.tagged(HIGH_CAPACITY_TAG)
            raise error

    async def _request_with_retry(
        self,
        request: ExtractionRequest,
        correlation_id: Optional[UUID],
    ) -> tuple[Optional[str], int]:
        """
        Call the provider, retrying exactly once on an empty response.

        Exceptions are never retried here; they propagate on first failure.

        Returns:
            (raw_text, attempts). raw_text is None if both attempts were empty.
        """
        def on_empty(retry_state: RetryCallState) -> None:
            logger.warning(
                "empty_response_retrying",
                model_name=request.model_name,
                attempt=retry_state.attempt_number,
            )
            if self._audit_logger:
                self._audit_logger.log_empty_response_retry(
                    attempt=retry_state.attempt_number,
                    model_name=request.model_name,
                    correlation_id=correlation_id,
                )

        attempts = 0

        async def attempt() -> Optional[str]:
            nonlocal attempts
            attempts += 1
            return await self._provider.generate(request)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(EMPTY_RESPONSE_ATTEMPTS),
            retry=retry_if_result(_is_empty_response),
            before_sleep=on_empty,
            retry_error_callback=lambda retry_state: None,
        )
        raw_text = await retrying(attempt)
        return raw_text, attempts
