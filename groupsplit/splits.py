"""Split an expense total into per-member shares.

All three modes return shares that sum exactly to the total. Shares are
rounded down to the cent first. For equal splits the missing cents are
then handed out one at a time in participant order, so the first
participants pay the odd cent (10.00 among three is 3.34, 3.33, 3.33).
Percent splits give the missing cents to the shares that lost the most in
rounding.
"""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Any, List, Mapping, Sequence

from .errors import InvalidSplitError
from .models import Share
from .money import allocate_by_weight, distribute_remainder, floor_cents, to_cents, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def compute_shares(total_amount: Any, mode: str, participants: Sequence[Any]) -> List[Share]:
    try:
        total = to_decimal(total_amount)
    except ValueError:
        raise InvalidSplitError("invalid_amount") from None
    if total <= 0:
        raise InvalidSplitError("invalid_amount")
    if not participants:
        raise InvalidSplitError("no_participants")

    calculator = _CALCULATORS.get(mode)
    if calculator is None:
        raise InvalidSplitError("unknown_split_mode", f"unknown split mode {mode!r}")

    member_ids = [_member_id(item) for item in participants]
    if len(set(member_ids)) != len(member_ids):
        raise InvalidSplitError("duplicate_participant")

    amounts = calculator(total, participants)
    logger.debug("split %s %s across %d members", mode, total, len(amounts))
    return [Share(member_id=member_id, amount=amount) for member_id, amount in zip(member_ids, amounts)]


def split_equally(total: Decimal, count: int) -> List[Decimal]:
    if count <= 0:
        raise InvalidSplitError("no_participants")
    per_person = floor_cents(total / count)
    return distribute_remainder([per_person] * count, total)


def _equal(total: Decimal, participants: Sequence[Any]) -> List[Decimal]:
    return split_equally(total, len(participants))


def _percent(total: Decimal, participants: Sequence[Any]) -> List[Decimal]:
    percents = [_field(item, "percent") for item in participants]
    if any(percent < 0 for percent in percents):
        raise InvalidSplitError("invalid_percent")

    percent_total = sum(percents, Decimal("0"))
    if percent_total.to_integral_value(rounding=ROUND_HALF_EVEN) != HUNDRED:
        raise InvalidSplitError("percent_total_mismatch", f"percentages sum to {percent_total}")

    # Percentages only have to round to 100, so scale by their real sum
    return allocate_by_weight(total, percents)


def _custom(total: Decimal, participants: Sequence[Any]) -> List[Decimal]:
    amounts = []
    for item in participants:
        value = _field(item, "amount")
        try:
            amount = to_decimal(value)
        except ValueError:
            raise InvalidSplitError("invalid_share_amount") from None
        if amount <= 0:
            raise InvalidSplitError("invalid_share_amount")
        amounts.append(amount)

    share_total = sum(amounts, Decimal("0.00"))
    if to_cents(share_total) != to_cents(total):
        raise InvalidSplitError("share_total_mismatch", f"shares sum to {share_total}, expense is {total}")
    return amounts


def _member_id(item: Any) -> Any:
    if isinstance(item, Mapping):
        try:
            return item["member_id"]
        except KeyError:
            raise InvalidSplitError("invalid_participant") from None
    return item


def _field(item: Any, name: str) -> Decimal:
    if not isinstance(item, Mapping) or item.get(name) is None:
        raise InvalidSplitError(f"missing_{name}")
    value = item[name]
    if isinstance(value, bool):
        raise InvalidSplitError(f"invalid_{name}")
    try:
        number = Decimal(str(value))
    except ArithmeticError:
        raise InvalidSplitError(f"invalid_{name}") from None
    if not number.is_finite():
        raise InvalidSplitError(f"invalid_{name}")
    return number


_CALCULATORS = {
    "equal": _equal,
    "percent": _percent,
    "custom": _custom,
}
