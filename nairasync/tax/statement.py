"""Statement-level totals and the tax estimate derived from them."""

from decimal import Decimal
from typing import Iterable

from nairasync.models.transaction import StatementAnalysis, Transaction, TransactionType
from nairasync.tax.engine import compute_tax


def total_for(transactions: Iterable[Transaction], kind: TransactionType) -> Decimal:
    return sum((t.amount for t in transactions if t.type == kind), Decimal("0"))


def analyze_transactions(transactions: Iterable[Transaction]) -> StatementAnalysis:
    """
    Build the dashboard figures for a set of transactions.

    Gross income for tax purposes is the sum of CREDIT amounts only.
    Transactions keep their statement order.
    """
    transactions = list(transactions)
    total_income = total_for(transactions, TransactionType.CREDIT)
    total_expense = total_for(transactions, TransactionType.DEBIT)

    return StatementAnalysis(
        transactions=transactions,
        total_income=total_income,
        total_expense=total_expense,
        net_income=total_income - total_expense,
        tax=compute_tax(total_income),
    )
