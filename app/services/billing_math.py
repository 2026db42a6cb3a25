"""
Money and date helpers shared by the invoice and statement services.

Every cent amount derived from a ratio goes through round_cents so that the
rounding rule (half away from zero) is identical everywhere.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional, Sequence

from app.core.errors import InvalidInputError

_YMD_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")
_YMD_EXACT = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MINUTES_PER_HOUR = 60


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps 10.1 as 10.1 rather than its binary expansion
        return Decimal(str(value))
    return Decimal(value)


def round_cents(value: Any) -> int:
    return int(_to_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def line_amount_cents(total_minutes: int, hourly_rate_cents: int) -> int:
    return round_cents(Decimal(int(total_minutes)) * Decimal(int(hourly_rate_cents)) / Decimal(MINUTES_PER_HOUR))


def discount_cents(subtotal_cents: int, discount_percent: Any) -> int:
    pct = _to_decimal(discount_percent or 0)
    if pct < 0 or pct > 100:
        raise InvalidInputError("discount_percent must be between 0 and 100")
    return round_cents(Decimal(int(subtotal_cents)) * pct / Decimal(100))


def allocate_cents(total_cents: int, weights: Sequence[int]) -> List[int]:
    """
    Split total_cents across weights proportionally (largest remainder method).

    The result always sums to total_cents. Leftover cents go to the largest
    remainders first, ties broken by position.
    """
    total_cents = int(total_cents)
    if total_cents < 0:
        raise InvalidInputError("Cannot allocate a negative amount")

    weight_sum = sum(int(w) for w in weights)
    if not weights:
        return []
    if weight_sum <= 0:
        if total_cents != 0:
            raise InvalidInputError("Cannot allocate cents across zero weights")
        return [0 for _ in weights]

    floors: List[int] = []
    remainders: List[tuple[int, int]] = []  # (remainder, position)
    for i, w in enumerate(weights):
        num = total_cents * int(w)
        floors.append(num // weight_sum)
        remainders.append((num % weight_sum, i))

    leftover = total_cents - sum(floors)
    for _remainder, i in sorted(remainders, key=lambda r: (-r[0], r[1]))[:leftover]:
        floors[i] += 1

    return floors


def normalize_project_name(value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        return ""
    return str(value)


def to_ymd(value: Any) -> Optional[str]:
    """Date-only YYYY-MM-DD form of a date, datetime or date-ish string."""
    if value is None:
        return None
    # datetime first: it is also a date. Take its own calendar day, no tz shift.
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        match = _YMD_PREFIX.match(value.strip())
        return match.group(1) if match else None
    return None


def parse_ymd(value: Any, field: str) -> date:
    if value is None or value == "":
        raise InvalidInputError(f"{field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _YMD_EXACT.match(value):
        raise InvalidInputError("Dates must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidInputError(f"{field} is not a valid calendar date") from exc
