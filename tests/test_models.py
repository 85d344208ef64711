"""
Tests for NairaSync models and settings

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for flows (with a fake extraction provider)
3. No real API calls in tests
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from nairasync.config import AppSettings, GeminiSettings
from nairasync.models.transaction import (
    DocumentUpload,
    ProviderChoice,
    TaxBand,
    Transaction,
    TransactionType,
)
from nairasync.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_transaction_creation(self):
        """Test Transaction creation from provider-shaped values."""
        txn = Transaction(
            date="2024-03-01",
            description="POS Purchase",
            amount=1500.5,
            type="DEBIT",
        )
        assert txn.date == date(2024, 3, 1)
        assert txn.amount == Decimal("1500.50")
        assert txn.type == TransactionType.DEBIT

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from the description."""
        txn = Transaction(date="2024-03-01", description="  Transfer  ", amount=1, type="CREDIT")
        assert txn.description == "Transfer"

    def test_day_first_dates_accepted(self):
        txn = Transaction(date="05/01/2024", description="Airtime", amount=100, type="DEBIT")
        assert txn.date == date(2024, 1, 5)

    def test_datetime_truncated_to_date(self):
        txn = Transaction(
            date=datetime(2024, 1, 5, 14, 30),
            description="Airtime",
            amount=100,
            type="DEBIT",
        )
        assert txn.date == date(2024, 1, 5)

    def test_currency_formatting_stripped(self):
        txn = Transaction(date="2024-01-05", description="Salary", amount="₦1,250,000.00", type="CREDIT")
        assert txn.amount == Decimal("1250000.00")

    def test_lowercase_type_normalized(self):
        txn = Transaction(date="2024-01-05", description="Salary", amount=1, type="credit")
        assert txn.type == TransactionType.CREDIT

    def test_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            Transaction(date="2024-01-05", description="Refund", amount=-100, type="CREDIT")

    @pytest.mark.parametrize("amount", ["abc", "NaN", "Infinity", True])
    def test_rejects_non_numeric_amount(self, amount):
        with pytest.raises(ValidationError):
            Transaction(date="2024-01-05", description="Bad", amount=amount, type="CREDIT")

    def test_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            Transaction(date="2024-01-05", description="Fee", amount=10, type="TRANSFER")

    def test_rejects_empty_description(self):
        with pytest.raises(ValidationError):
            Transaction(date="2024-01-05", description="   ", amount=10, type="DEBIT")

    def test_rejects_unparseable_date(self):
        with pytest.raises(ValidationError):
            Transaction(date="sometime in May", description="Fee", amount=10, type="DEBIT")

    def test_transaction_is_frozen(self):
        txn = Transaction(date="2024-01-05", description="Fee", amount=10, type="DEBIT")
        with pytest.raises(ValidationError):
            txn.amount = Decimal("0")

    def test_identical_lines_are_equal_but_distinct(self):
        """No identity: two identical statement lines compare equal."""
        a = Transaction(date="2024-01-05", description="Fee", amount=10, type="DEBIT")
        b = Transaction(date="2024-01-05", description="Fee", amount=10, type="DEBIT")
        assert a == b
        assert a is not b


class TestDocumentUpload:
    """Tests for the DocumentUpload envelope."""

    @pytest.mark.parametrize("mime_type", ["application/pdf", "image/jpeg", "IMAGE/PNG"])
    def test_supported_types(self, mime_type):
        upload = DocumentUpload(filename="stmt", size_bytes=10, mime_type=mime_type)
        assert upload.mime_type == mime_type.lower()
        assert upload.upload_id is not None

    def test_rejects_unsupported_type(self):
        with pytest.raises(ValidationError):
            DocumentUpload(filename="stmt.docx", size_bytes=10, mime_type="application/msword")


class TestProviderChoice:
    """Tests for the user-facing engine choice."""

    def test_flash_prefers_fast(self):
        assert not ProviderChoice.GEMINI_FLASH.prefers_high_capacity

    def test_pro_and_legacy_grok_prefer_high_capacity(self):
        assert ProviderChoice.GEMINI_PRO.prefers_high_capacity
        assert ProviderChoice.GROK_BETA.prefers_high_capacity

    def test_labels(self):
        assert ProviderChoice("Gemini Flash (Fast)") == ProviderChoice.GEMINI_FLASH
        assert ProviderChoice("Gemini Pro (Reasoning)") == ProviderChoice.GEMINI_PRO


class TestTaxBand:

    def test_rate_bounds(self):
        with pytest.raises(ValidationError):
            TaxBand(width=Decimal("100"), rate=Decimal("1.5"))

    def test_width_must_be_positive(self):
        with pytest.raises(ValidationError):
            TaxBand(width=Decimal("0"), rate=Decimal("0.1"))


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.DOCUMENT_RECEIVED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.DOCUMENT_RECEIVED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TAX_COMPUTED,
            description="Tax computed",
            entity_id=uuid4(),
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "tax_computed"
        assert log_dict["description"] == "Tax computed"
        assert isinstance(log_dict["entity_id"], str)

    def test_audit_event_builder_document_received(self):
        """Test AuditEventBuilder.document_received."""
        upload_id = uuid4()
        correlation_id = uuid4()
        event = AuditEventBuilder.document_received(
            upload_id=upload_id,
            filename="statement.pdf",
            size_bytes=1024,
            mime_type="application/pdf",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.DOCUMENT_RECEIVED
        assert event.entity_id == upload_id
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert event.details["size_bytes"] == 1024

    def test_audit_event_builder_extraction_failed(self):
        event = AuditEventBuilder.extraction_failed(
            upload_id=uuid4(),
            error_kind="rate_limited",
            user_message="Traffic limit exceeded.",
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_code == "rate_limited"
        assert event.error_message == "Traffic limit exceeded."


class TestSettings:
    """Tests for configuration loading."""

    def test_blank_api_key_is_not_configured(self):
        settings = GeminiSettings(api_key="   ")
        assert settings.api_key is None
        assert not settings.is_configured

    def test_api_key_configured(self):
        assert GeminiSettings(api_key="key").is_configured

    def test_app_settings_byte_limits(self):
        settings = AppSettings(max_upload_size_mb=2, large_document_threshold_mb=1)
        assert settings.max_upload_size_bytes == 2 * 1024 * 1024
        assert settings.large_document_threshold_bytes == 1024 * 1024

    def test_supported_mime_types_list(self):
        settings = AppSettings(supported_mime_types="application/pdf, IMAGE/PNG")
        assert settings.supported_mime_types_list == ["application/pdf", "image/png"]

    def test_upload_ceiling_bounds(self):
        with pytest.raises(ValidationError):
            AppSettings(max_upload_size_mb=0)
