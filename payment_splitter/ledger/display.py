"""
Display helpers for ledger amounts and history.

Rounding here is cosmetic. Stored balances keep full precision.
"""

from datetime import tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from payment_splitter.models.ledger import Expense


def format_amount(
    value: Decimal,
    currency: str = "LKR",
    decimals: int = 2,
) -> str:
    """Format an amount for display, e.g. 'LKR 50.00'."""
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    # Avoid showing "-0.00" for tiny negative residues
    if rounded == 0:
        rounded = abs(rounded)
    return f"{currency} {rounded:.{decimals}f}"


def balance_state(balance: Decimal) -> str:
    """Classify a balance for styling: positive, negative or zero."""
    if balance > 0:
        return "positive"
    if balance < 0:
        return "negative"
    return "zero"


def expense_rows(
    expenses: list[Expense],
    currency: str = "LKR",
    decimals: int = 2,
    tz: Optional[tzinfo] = None,
) -> list[dict]:
    """
    Rows for the expense history table.

    Dates are shown in local time unless a tzinfo is given.
    """
    rows = []
    for expense in expenses:
        created = expense.created_at.astimezone(tz)
        rows.append({
            "Date": created.date().isoformat(),
            "Description": expense.description,
            "Amount": format_amount(expense.amount, currency, decimals),
            "Users": len(expense.participant_ids),
        })
    return rows
