from decimal import Decimal

import pytest

from src.tc_common.money import as_decimal, to_price, to_usd, usd_display, validate_price_per_dollar


class TestToUsd:
    def test_half_up(self) -> None:
        assert to_usd(Decimal("88000.005")) == Decimal("88000.01")

    def test_int(self) -> None:
        assert to_usd(5000) == Decimal("5000.00")

    def test_price_four_places(self) -> None:
        assert to_price("0.88005") == Decimal("0.8801")


class TestAsDecimal:
    def test_float_uses_repr(self) -> None:
        assert as_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity", "x", None, True])
    def test_rejects(self, value: object) -> None:
        with pytest.raises(ValueError):
            as_decimal(value)


class TestPriceRange:
    @pytest.mark.parametrize("price", ["0.0001", "0.88", "1"])
    def test_valid(self, price: str) -> None:
        validate_price_per_dollar(Decimal(price))

    @pytest.mark.parametrize("price", ["0", "-0.5", "1.0001"])
    def test_invalid(self, price: str) -> None:
        with pytest.raises(ValueError):
            validate_price_per_dollar(Decimal(price))


def test_usd_display() -> None:
    assert usd_display(Decimal("6500")) == "$6,500.00"
    assert usd_display(Decimal("-12")) == "-$12.00"
