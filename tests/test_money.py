from decimal import Decimal

from money import format_currency, format_percent, money, quantize, safe_percent


def test_money_rounds_half_up_to_cents() -> None:
    assert money(0.1 + 0.2) == 0.3
    assert money(2.675) == 2.68
    assert money(Decimal("10.005")) == 10.01
    assert money(None) == 0.0
    assert money(float("nan")) == 0.0


def test_quantize_places() -> None:
    assert quantize(1 / 3, 4) == 0.3333
    assert quantize(-2.0005, 3) == -2.001


def test_safe_percent_returns_none_for_zero_denominator() -> None:
    assert safe_percent(10, 0) is None
    assert safe_percent(10, 0.0000001) is None
    assert safe_percent(10, None) is None
    assert safe_percent(-20, 500) == -0.04


def test_formatters() -> None:
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-12) == "-$12.00"
    assert format_percent(0.4) == "40%"
    assert format_percent(-0.125) == "13%"
