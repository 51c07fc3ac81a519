from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_EVEN
from typing import Any, List

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
TOLERANCE = CENT


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("Cannot convert value to Decimal")
    try:
        if isinstance(value, Decimal):
            number = value
        elif isinstance(value, (int, float)):
            number = Decimal(str(value))
        elif isinstance(value, str):
            number = Decimal(value.strip())
        else:
            raise ValueError("Cannot convert value to Decimal")
        if not number.is_finite():
            raise ValueError("Cannot convert value to Decimal")
        return quantize(number)
    except InvalidOperation:
        raise ValueError("Cannot convert value to Decimal") from None


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def floor_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


def to_cents(value: Decimal) -> int:
    return int(quantize(value) * 100)


def distribute_remainder(parts: List[Decimal], total: Decimal) -> List[Decimal]:
    """Hand out the cents ``parts`` are missing from ``total`` one at a time.

    Cents go to the parts in order, wrapping around, so the first entries
    absorb the rounding. Works in both directions.
    """
    parts = list(parts)
    if not parts:
        return parts
    remainder = to_cents(total) - sum(to_cents(part) for part in parts)
    step = 1 if remainder > 0 else -1
    idx = 0
    while remainder != 0:
        parts[idx] += CENT * step
        remainder -= step
        idx = (idx + 1) % len(parts)
    return parts


def allocate_by_weight(total: Decimal, weights: List[Decimal]) -> List[Decimal]:
    """Split ``total`` in proportion to ``weights`` (largest remainder).

    Every part is rounded down to the cent, then the few leftover cents go
    to the parts that lost the most in rounding, earlier parts first on
    ties. A zero weight always gets 0.00.
    """
    weight_total = sum(weights, Decimal("0"))
    if not weights or weight_total <= 0:
        raise ValueError("weights must sum to a positive number")

    raw = [total * weight / weight_total for weight in weights]
    parts = [floor_cents(value) for value in raw]
    leftover = to_cents(total) - sum(to_cents(part) for part in parts)

    by_loss = sorted(range(len(parts)), key=lambda idx: raw[idx] - parts[idx], reverse=True)
    for idx in by_loss[:leftover]:
        parts[idx] += CENT
    return parts


def as_float(value: Decimal) -> float:
    return float(quantize(value))
