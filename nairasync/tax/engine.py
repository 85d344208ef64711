"""
Nigerian Personal Income Tax Engine

Computes PITA tax on gross income after the Consolidated Relief Allowance.

DESIGN DECISION: All arithmetic is done in Decimal. Floats are converted
through str() first so 0.1 stays 0.1. The engine is pure: no settings,
no logging, no I/O. It runs on every render of the dashboard.

Relief:
    max(₦200,000, 1% of gross) + 20% of gross

Bands (applied to taxable income, in order):
    first ₦300,000   at 7%
    next  ₦300,000   at 11%
    next  ₦500,000   at 15%
    next  ₦500,000   at 19%
    next  ₦1,600,000 at 21%
    above ₦3,200,000 at 24%
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from nairasync.models.transaction import BandAllocation, TaxBand, TaxBreakdown


Amount = Union[Decimal, int, float, str]

ZERO = Decimal("0")
HUNDRED = Decimal("100")

MINIMUM_RELIEF = Decimal("200000")
MINIMUM_RELIEF_RATE = Decimal("0.01")
VARIABLE_RELIEF_RATE = Decimal("0.20")

PITA_TAX_BANDS: tuple[TaxBand, ...] = (
    TaxBand(width=Decimal("300000"), rate=Decimal("0.07")),
    TaxBand(width=Decimal("300000"), rate=Decimal("0.11")),
    TaxBand(width=Decimal("500000"), rate=Decimal("0.15")),
    TaxBand(width=Decimal("500000"), rate=Decimal("0.19")),
    TaxBand(width=Decimal("1600000"), rate=Decimal("0.21")),
    TaxBand(width=None, rate=Decimal("0.24")),
)


def to_decimal(value: Amount) -> Decimal:
    """Convert an amount to a finite Decimal, or raise ValueError."""
    if isinstance(value, bool):
        raise ValueError("Income must be a number, not a boolean")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Income is not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Income must be finite: {value!r}")
    return result


def consolidated_relief(gross_income: Amount) -> Decimal:
    """Higher of ₦200,000 or 1% of gross, plus 20% of gross."""
    gross = to_decimal(gross_income)
    base = max(MINIMUM_RELIEF, gross * MINIMUM_RELIEF_RATE)
    return base + gross * VARIABLE_RELIEF_RATE


def allocate_bands(
    taxable_income: Amount,
    bands: tuple[TaxBand, ...] = PITA_TAX_BANDS,
) -> list[BandAllocation]:
    """
    Spread taxable income across the marginal bands.

    Only bands that receive income are returned, so the allocated
    amounts always sum to exactly the taxable income. Income landing
    exactly on a band boundary fills that band and stops.
    """
    remaining = max(ZERO, to_decimal(taxable_income))
    allocations = []

    for band in bands:
        if remaining <= 0:
            break
        in_band = remaining if band.width is None else min(remaining, band.width)
        allocations.append(BandAllocation(
            width=band.width,
            rate=band.rate,
            amount=in_band,
            tax=in_band * band.rate,
        ))
        remaining -= in_band

    return allocations


def compute_tax(gross_income: Amount) -> TaxBreakdown:
    """
    Compute the PITA breakdown for a gross income.

    Total for any finite input. Zero or negative income (a statement with
    no inflows, or a caller passing a net figure) yields zero tax and a
    zero effective rate.

    Raises:
        ValueError: If the income is not a finite number
    """
    gross = to_decimal(gross_income)
    relief = consolidated_relief(gross)
    taxable = max(ZERO, gross - relief)

    allocations = allocate_bands(taxable)
    total_tax = sum((a.tax for a in allocations), ZERO)

    effective_rate = total_tax / gross * HUNDRED if gross > 0 else ZERO

    return TaxBreakdown(
        gross_income=gross,
        consolidated_relief=relief,
        taxable_income=taxable,
        total_tax=total_tax,
        effective_rate=effective_rate,
        bands=allocations,
    )
