"""Tax computation package."""

from nairasync.tax.engine import (
    PITA_TAX_BANDS,
    allocate_bands,
    compute_tax,
    consolidated_relief,
)
from nairasync.tax.statement import analyze_transactions

__all__ = [
    "PITA_TAX_BANDS",
    "allocate_bands",
    "analyze_transactions",
    "compute_tax",
    "consolidated_relief",
]
