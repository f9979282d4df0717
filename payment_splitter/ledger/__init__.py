"""Ledger accounting package."""

from payment_splitter.ledger.core import LedgerCore
from payment_splitter.ledger.display import (
    balance_state,
    expense_rows,
    format_amount,
)

__all__ = ["LedgerCore", "balance_state", "expense_rows", "format_amount"]
