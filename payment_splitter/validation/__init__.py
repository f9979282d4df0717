"""Input validation package."""

from payment_splitter.validation.inputs import (
    clean_name,
    parse_amount,
    parse_participant_ids,
)

__all__ = ["clean_name", "parse_amount", "parse_participant_ids"]
