from datetime import date

import pytest

from months import (
    InvalidMonthKey,
    add_months,
    days_in_month,
    month_end,
    month_key,
    month_label,
    month_long_label,
    parse_month_key,
    resolve_month_range,
)


def _assert_gap_free(anchors):
    for previous, current in zip(anchors, anchors[1:]):
        assert current == add_months(previous, 1)
        assert month_key(current) > month_key(previous)


def test_parse_month_key_accepts_valid_keys() -> None:
    assert parse_month_key("2026-10") == date(2026, 10, 1)
    assert parse_month_key("1999-01") == date(1999, 1, 1)


@pytest.mark.parametrize(
    "raw", ["2026-13", "2026-00", "2026-1", "26-10", "2026/10", "", "2026-10-01"]
)
def test_parse_month_key_rejects_malformed_keys(raw) -> None:
    with pytest.raises(InvalidMonthKey):
        parse_month_key(raw)


def test_invalid_month_key_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_month_key("nope")


def test_month_arithmetic_rolls_over_years() -> None:
    assert add_months(date(2026, 11, 1), 3) == date(2027, 2, 1)
    assert add_months(date(2026, 1, 15), -1) == date(2025, 12, 1)
    assert month_end(date(2024, 2, 1)) == date(2024, 2, 29)
    assert days_in_month(date(2026, 2, 1)) == 28


def test_month_labels() -> None:
    assert month_key(date(2026, 3, 1)) == "2026-03"
    assert month_label(date(2026, 3, 1)) == "Mar 2026"
    assert month_long_label(date(2026, 3, 1)) == "March 2026"


def test_range_spans_activity_and_lookahead() -> None:
    anchors = resolve_month_range(
        date(2026, 10, 18),
        budget_months=[date(2026, 8, 1)],
        earliest_transaction=date(2026, 6, 15),
        latest_transaction=date(2026, 10, 3),
        lookahead=3,
    )

    assert [month_key(a) for a in anchors] == [
        "2026-06",
        "2026-07",
        "2026-08",
        "2026-09",
        "2026-10",
        "2026-11",
        "2026-12",
        "2027-01",
    ]
    _assert_gap_free(anchors)


def test_range_extends_to_future_budget_beyond_lookahead() -> None:
    anchors = resolve_month_range(
        date(2026, 10, 1),
        budget_months=[date(2027, 6, 1)],
        lookahead=3,
    )

    assert month_key(anchors[0]) == "2026-10"
    assert month_key(anchors[-1]) == "2027-06"
    _assert_gap_free(anchors)


def test_range_without_any_data_is_current_month_only() -> None:
    anchors = resolve_month_range(date(2026, 10, 18))

    assert anchors == [date(2026, 10, 1)]


def test_range_is_truncated_at_guard() -> None:
    anchors = resolve_month_range(
        date(2026, 10, 1),
        earliest_transaction=date(2020, 1, 15),
        latest_transaction=date(2026, 10, 2),
        max_months=48,
    )

    assert len(anchors) == 48
    assert month_key(anchors[0]) == "2020-01"
    assert month_key(anchors[-1]) == "2023-12"
    _assert_gap_free(anchors)
