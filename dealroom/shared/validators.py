"""Shared validation utilities"""

import math
from typing import Any, NamedTuple, Optional

from ..config import NON_ECONOMIC_NOTE_MIN_LENGTH
from ..models import OFFER_ECONOMIC, OFFER_NON_ECONOMIC


class OfferValidation(NamedTuple):
    valid: bool
    reason: Optional[str] = None


def parse_finite_number(value: Any) -> Optional[float]:
    """
    Parse a number from user input.

    Args:
        value: int, float or numeric string

    Returns:
        The parsed float, or None if the value is missing, not numeric, NaN or infinite
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def validate_offer(
    offer_type: Optional[str],
    amount: Any = None,
    equity_percent: Any = None,
    note: Optional[str] = None,
) -> OfferValidation:
    """
    Validate the offer attached to a meeting request.

    The single rule set behind the booking transaction and the public
    pre-submission check. It has no side effects.

    Args:
        offer_type: "economic" or "non_economic"
        amount: Monetary amount for economic offers
        equity_percent: Equity percentage for economic offers, in (0, 100]
        note: Contribution description (required for non-economic offers)

    Returns:
        OfferValidation(valid, reason) where reason explains a rejection
    """
    if offer_type == OFFER_ECONOMIC:
        parsed_amount = parse_finite_number(amount)
        if parsed_amount is None or parsed_amount <= 0:
            return OfferValidation(False, "Offer amount must be a positive number")

        parsed_equity = parse_finite_number(equity_percent)
        if parsed_equity is None or parsed_equity <= 0 or parsed_equity > 100:
            return OfferValidation(
                False, "Equity percentage must be greater than 0 and at most 100"
            )
        return OfferValidation(True)

    if offer_type == OFFER_NON_ECONOMIC:
        if len((note or "").strip()) < NON_ECONOMIC_NOTE_MIN_LENGTH:
            return OfferValidation(
                False,
                f"Non-economic offers need a description of at least "
                f"{NON_ECONOMIC_NOTE_MIN_LENGTH} characters",
            )
        return OfferValidation(True)

    return OfferValidation(False, f"Unknown offer type: {offer_type!r}")


def summarize_offer(
    offer_type: str,
    amount: Optional[float] = None,
    equity_percent: Optional[float] = None,
    note: Optional[str] = None,
) -> str:
    """Human readable one-line summary of an offer, used in notifications"""
    if offer_type == OFFER_ECONOMIC:
        return f"Economic offer: ${amount:,.2f} for {equity_percent:g}% equity"
    return f"Non-economic offer: {(note or '').strip()}"
