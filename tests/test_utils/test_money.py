"""Tests de l'arithmétique monétaire."""

from decimal import Decimal

import pytest

from shopify_tickets.utils.money import (
    format_amount,
    format_tax_rate,
    parse_amount,
    round_to_two_decimals,
    safe_add,
    safe_divide,
    safe_multiply,
    to_decimal,
)


class TestRounding:
    """Tests de l'arrondi au centime."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1.005", "1.01"),
            ("1.004", "1.00"),
            ("-1.005", "-1.01"),
            ("2.675", "2.68"),
            (10, "10.00"),
        ],
    )
    def test_round_half_up(self, value, expected) -> None:
        assert round_to_two_decimals(value) == Decimal(expected)

    def test_float_uses_shortest_representation(self) -> None:
        """0.1 + 0.2 en float ne doit pas introduire d'expansion binaire."""
        assert to_decimal(0.1) == Decimal("0.1")
        assert round_to_two_decimals(2.675) == Decimal("2.68")


class TestOperations:
    """Tests des opérations arrondies."""

    def test_safe_add(self) -> None:
        assert safe_add("0.10", "0.20") == Decimal("0.30")

    def test_safe_add_rounds_result(self) -> None:
        assert safe_add("0.005", "0") == Decimal("0.01")

    def test_safe_multiply(self) -> None:
        assert safe_multiply("19.99", 3) == Decimal("59.97")

    def test_safe_multiply_rounds_share(self) -> None:
        assert safe_multiply("10.00", Decimal(1) / Decimal(3)) == Decimal("3.33")

    def test_safe_divide_backs_out_tax(self) -> None:
        assert safe_divide("190.00", "1.21") == Decimal("157.02")

    def test_safe_divide_by_zero(self) -> None:
        with pytest.raises(ZeroDivisionError, match="zéro"):
            safe_divide("10", 0)


class TestParsing:
    """Tests de conversion des montants Shopify."""

    def test_parse_string_amount(self) -> None:
        assert parse_amount("19.90") == Decimal("19.90")

    def test_parse_strips_whitespace(self) -> None:
        assert parse_amount(" 5.5 ") == Decimal("5.50")

    def test_parse_invalid_amount(self) -> None:
        with pytest.raises(ValueError, match="Montant invalide"):
            parse_amount("abc")


class TestFormatting:
    """Tests du formatage des montants et des taux."""

    def test_format_amount_two_decimals(self) -> None:
        assert format_amount(Decimal("157.2")) == "157.20"

    def test_format_negative_amount(self) -> None:
        assert format_amount(Decimal("-32.98")) == "-32.98"

    def test_negative_zero_becomes_zero(self) -> None:
        assert format_amount(Decimal("-0.00")) == "0.00"

    @pytest.mark.parametrize(
        "rate,expected",
        [("0.21", "21%"), ("0.10", "10%"), ("0.04", "4%"), ("0", "0%")],
    )
    def test_format_tax_rate(self, rate, expected) -> None:
        assert format_tax_rate(Decimal(rate)) == expected
