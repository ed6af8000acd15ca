"""Tests for numeric coercion and 2-dp money rounding."""

from decimal import Decimal

import pytest

from invoice_engine.normalization.amounts import (
    AmountNormalizer,
    money,
    percent_of,
    round2,
    to_number,
)


class TestAmountNormalizer:

    @pytest.mark.parametrize("raw, expected", [
        ("₹ 1,234.50", "1234.50"),
        ("$99", "99"),
        ("INR 12,000", "12000"),
        ("1.234,56", "1234.56"),
        ("-45.5", "-45.5"),
        (".5", ".5"),
    ])
    def test_normalize(self, raw, expected):
        assert AmountNormalizer().normalize(raw) == expected

    @pytest.mark.parametrize("raw", ["", "n/a", "12abc", "--1", "1.2.3"])
    def test_rejects_non_numbers(self, raw):
        assert AmountNormalizer().normalize(raw) is None


class TestToNumber:

    def test_numbers_and_strings(self):
        assert to_number(5) == Decimal("5")
        assert to_number(2.5) == Decimal("2.5")
        assert to_number("12,000") == Decimal("12000")

    def test_defaults(self):
        assert to_number("abc") == Decimal("0")
        assert to_number("abc", 1) == Decimal("1")
        assert to_number(None, None) is None

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), True, [], {}])
    def test_non_finite_and_non_scalar(self, raw):
        assert to_number(raw) == Decimal("0")


class TestRounding:

    def test_half_up(self):
        assert round2(Decimal("2.675")) == Decimal("2.68")
        assert round2(Decimal("2.665")) == Decimal("2.67")
        assert round2("0.005") == Decimal("0.01")

    def test_float_input_uses_its_decimal_repr(self):
        assert round2(1.005) == Decimal("1.01")

    def test_non_numeric_rounds_to_zero(self):
        assert round2(None) == Decimal("0.00")

    def test_money_clamps_negative(self):
        assert money(-5) == Decimal("0.00")
        assert money("10.126") == Decimal("10.13")

    def test_percent_of(self):
        assert percent_of(1620, 9000) == Decimal("18.00")
        assert percent_of(200, 27000) == Decimal("0.74")
        assert percent_of(100, 0) is None


class TestOutOfRangeAmounts:

    @pytest.mark.parametrize("raw", [1e30, 10 ** 20, "99999999999999999999999999999", Decimal("1E+40")])
    def test_oversized_amounts_use_default(self, raw):
        assert to_number(raw) == Decimal("0")
        assert to_number(raw, 7) == Decimal("7")
        assert round2(raw) == Decimal("0.00")

    def test_large_but_valid_amount(self):
        assert round2("999999999999999999.994") == Decimal("999999999999999999.99")

    def test_round2_never_raises_on_huge_results(self):
        assert round2(Decimal("9" * 17) * Decimal("9" * 17)) == Decimal("0.00")
        assert percent_of(10 ** 17, "0.0000000001") == Decimal("0.00")
