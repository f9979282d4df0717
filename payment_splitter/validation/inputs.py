"""
Input Parsing for Ledger Commands

The front end hands the ledger raw primitives: text typed into a form,
numbers from a number widget, ids from a selection. These helpers turn
them into validated values.

IMPORTANT: Parsing NEVER raises. Anything that cannot be used
comes back as None and the calling command becomes a no-op.
"""

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def clean_name(value: Any) -> Optional[str]:
    """Trim a participant name; None if it is empty or not text."""
    if not isinstance(value, str):
        return None
    name = value.strip()
    return name or None


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a money amount.

    Accepts Decimal, int, float or numeric text. Floats go through
    their shortest repr so 0.1 stays 0.1.

    Returns:
        The amount if it is finite and strictly positive, None otherwise
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def parse_participant_ids(values: Any) -> Optional[list[int]]:
    """
    Normalize a selection of participant ids.

    Order is preserved and duplicates are dropped.

    Returns:
        The ids, or None if the selection is empty or holds a non-integer
    """
    if values is None or isinstance(values, (str, bytes)):
        return None
    if not isinstance(values, Iterable):
        return None

    ids: list[int] = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        if value not in ids:
            ids.append(value)
    return ids or None
