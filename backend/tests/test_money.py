from decimal import Decimal

import pytest

from backoffice.money import money_str, percent_of, round2, to_money


@pytest.mark.parametrize(
    "value,expected",
    [
        ("0.005", "0.01"),
        ("0.004", "0.00"),
        ("1.445", "1.45"),
        ("2.675", "2.68"),
        ("-1.005", "-1.01"),
        (10, "10.00"),
    ],
)
def test_round2_is_half_up(value, expected):
    assert round2(value) == Decimal(expected)


def test_float_input_goes_through_str():
    assert to_money(0.1) == Decimal("0.1")
    assert round2(2.675) == Decimal("2.68")


def test_percent_of():
    assert percent_of(Decimal("20.00"), 10) == Decimal("2.00")
    assert percent_of(Decimal("19.99"), 15) == Decimal("3.00")  # 2.9985


def test_to_money_rejects_garbage():
    with pytest.raises(ValueError):
        to_money("ten dollars")
    with pytest.raises(ValueError):
        to_money(True)


def test_money_str():
    assert money_str(Decimal("21.6")) == "21.60"
    assert money_str(None) is None
