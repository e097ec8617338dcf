import logging
import re
from calendar import monthrange
from datetime import date
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")


class InvalidMonthKey(ValueError):
    pass


def month_start(d: date) -> date:
    return d.replace(day=1)


def add_months(d: date, count: int) -> date:
    month_index = (d.year * 12) + (d.month - 1) + count
    year = month_index // 12
    month = (month_index % 12) + 1
    return date(year, month, 1)


def month_end(d: date) -> date:
    return add_months(d, 1) - date.resolution


def days_in_month(d: date) -> int:
    return monthrange(d.year, d.month)[1]


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_label(d: date) -> str:
    return d.strftime("%b %Y")


def month_long_label(d: date) -> str:
    return d.strftime("%B %Y")


def parse_month_key(value: str) -> date:
    """Return the first day of the month named by a ``YYYY-MM`` key."""
    match = _MONTH_KEY_RE.match(value or "")
    if not match:
        raise InvalidMonthKey(f"Invalid month key: {value!r} (expected YYYY-MM)")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidMonthKey(f"Invalid month key: {value!r} (month out of range)")
    return date(year, month, 1)


def resolve_month_range(
    current_month: date,
    *,
    budget_months: Iterable[date] = (),
    earliest_transaction: Optional[date] = None,
    latest_transaction: Optional[date] = None,
    lookahead: int = 3,
    max_months: int = 48,
) -> list[date]:
    """Contiguous month anchors covering all activity plus the forecast horizon.

    The range runs from the earliest of the current month, the first budget and
    the first transaction, through the latest of those and
    ``current_month + lookahead``. Generation stops after ``max_months`` anchors.
    With no budgets and no transactions at all the range is just the current
    month.
    """
    current = month_start(current_month)
    budget_starts = sorted(month_start(m) for m in budget_months)
    if not budget_starts and earliest_transaction is None and latest_transaction is None:
        return [current]

    earliest_candidates = [current]
    latest_candidates = [current, add_months(current, lookahead)]
    if budget_starts:
        earliest_candidates.append(budget_starts[0])
        latest_candidates.append(budget_starts[-1])
    if earliest_transaction is not None:
        earliest_candidates.append(month_start(earliest_transaction))
    if latest_transaction is not None:
        latest_candidates.append(month_start(latest_transaction))

    first = min(earliest_candidates)
    last = max(latest_candidates)

    anchors: list[date] = []
    cursor = first
    while cursor <= last and len(anchors) < max_months:
        anchors.append(cursor)
        cursor = add_months(cursor, 1)
    if cursor <= last:
        logger.warning(
            f"month_range_truncated: first={month_key(first)} last={month_key(last)} "
            f"max_months={max_months}"
        )
    if not anchors:
        anchors.append(current)
    return anchors
