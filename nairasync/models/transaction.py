"""
Core Data Models for NairaSync

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Turn loosely formatted provider output into typed values
2. Provide clear validation error messages
3. Stay in memory only (nothing here is ever persisted)

DESIGN DECISION: Transactions are frozen once built. The parser either
produces a complete, valid Transaction or rejects the whole response.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a cash flow on the statement."""
    CREDIT = "CREDIT"  # Inflow / deposit
    DEBIT = "DEBIT"    # Outflow / withdrawal


class ProviderChoice(str, Enum):
    """
    Extraction engine requested by the user.

    GROK_BETA is kept as a label for users of older clients; it has always
    been served by the high-capacity Gemini model.
    """
    GEMINI_FLASH = "Gemini Flash (Fast)"
    GEMINI_PRO = "Gemini Pro (Reasoning)"
    GROK_BETA = "Grok (Beta)"

    @property
    def prefers_high_capacity(self) -> bool:
        return self in (ProviderChoice.GEMINI_PRO, ProviderChoice.GROK_BETA)


class ModelTier(str, Enum):
    """Backend tier actually used for an extraction call."""
    FAST = "fast"
    HIGH_CAPACITY = "high_capacity"


SUPPORTED_MIME_TYPES = frozenset({"application/pdf", "image/jpeg", "image/png"})

STATEMENT_DATE_FORMATS = ["%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%Y/%m/%d"]

CENTS = Decimal("0.01")

# Alias so the `date` field name below does not shadow the type
StatementDate = date


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    A single line from a bank statement.

    No identifier and no deduplication: two identical lines on the
    statement are two transactions.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    date: StatementDate = Field(
        ...,
        description="Transaction date (no time component)"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="Narration as printed on the statement"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in NGN, always positive"
    )
    type: TransactionType = Field(
        ...,
        description="CREDIT (inflow) or DEBIT (outflow)"
    )

    @field_validator('date', mode='before')
    @classmethod
    def parse_statement_date(cls, value: Any) -> Any:
        """Accept ISO dates plus the day-first formats banks print."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            text = value.strip()
            for fmt in STATEMENT_DATE_FORMATS:
                try:
                    return datetime.strptime(text, fmt).date()
                except ValueError:
                    continue
        # Let pydantic report anything else
        return value

    @field_validator('amount', mode='before')
    @classmethod
    def parse_amount(cls, value: Any) -> Any:
        """Strip currency formatting and quantize to kobo."""
        if isinstance(value, bool):
            raise ValueError("Amount must be a number")
        if isinstance(value, str):
            value = value.replace(",", "").replace("₦", "").replace("NGN", "").strip()
        if isinstance(value, (int, float, str, Decimal)):
            try:
                amount = Decimal(str(value))
            except InvalidOperation:
                raise ValueError(f"Invalid amount: {value!r}")
            if not amount.is_finite():
                raise ValueError(f"Invalid amount: {value!r}")
            try:
                return amount.quantize(CENTS)
            except InvalidOperation:
                # More digits than the decimal context holds
                raise ValueError(f"Invalid amount: {value!r}")
        return value

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


# =============================================================================
# UPLOAD MODEL
# =============================================================================

class DocumentUpload(BaseModel):
    """Represents an uploaded statement before extraction."""

    upload_id: UUID = Field(
        default_factory=uuid4,
        description="Unique upload identifier"
    )
    uploaded_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    filename: str
    size_bytes: int = Field(ge=0)
    mime_type: str

    @field_validator('mime_type')
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only allow PDF and raster image types."""
        if v.lower() not in SUPPORTED_MIME_TYPES:
            raise ValueError(
                f"Unsupported document type: {v}. Allowed: {sorted(SUPPORTED_MIME_TYPES)}"
            )
        return v.lower()


# =============================================================================
# PROVIDER REQUEST MODEL
# =============================================================================

class ExtractionRequest(BaseModel):
    """
    Everything a DocumentExtractionProvider needs for one call.

    The provider must not add to or change the instructions; swapping
    providers only swaps transport.
    """
    model_config = ConfigDict(frozen=True)

    model_name: str
    document: bytes = Field(repr=False)
    mime_type: str
    prompt: str = Field(repr=False)
    response_schema: dict[str, Any]
    disable_safety_filters: bool = True
    tier: ModelTier = ModelTier.FAST


# =============================================================================
# TAX MODELS
# =============================================================================

class TaxBand(BaseModel):
    """A marginal bracket. width=None means unbounded."""
    model_config = ConfigDict(frozen=True)

    width: Optional[Decimal] = Field(default=None, gt=0)
    rate: Decimal = Field(..., ge=0, le=1)


class BandAllocation(BaseModel):
    """How much taxable income fell into one band, and the tax on it."""

    width: Optional[Decimal]
    rate: Decimal
    amount: Decimal = Field(ge=0)
    tax: Decimal = Field(ge=0)


class TaxBreakdown(BaseModel):
    """
    Result of the PITA computation.

    Recomputed from the current transactions every time it is needed.
    """

    gross_income: Decimal
    consolidated_relief: Decimal
    taxable_income: Decimal = Field(ge=0)
    total_tax: Decimal = Field(ge=0)
    effective_rate: Decimal = Field(
        ...,
        ge=0,
        description="Total tax as a percentage of gross income"
    )
    bands: list[BandAllocation] = Field(default_factory=list)


class StatementAnalysis(BaseModel):
    """Everything the presentation layer renders for one statement."""

    transactions: list[Transaction] = Field(default_factory=list)
    total_income: Decimal = Field(ge=0)
    total_expense: Decimal = Field(ge=0)
    net_income: Decimal
    tax: TaxBreakdown

    @property
    def credit_count(self) -> int:
        return sum(1 for t in self.transactions if t.type == TransactionType.CREDIT)

    @property
    def debit_count(self) -> int:
        return sum(1 for t in self.transactions if t.type == TransactionType.DEBIT)
