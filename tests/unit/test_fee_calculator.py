from decimal import Decimal

import pytest

from src.tc_common.errors import ValidationError
from src.tc_order.domain.fees import FeeBase, compute, price_order


class TestCompute:
    def test_reference_example(self) -> None:
        # $100,000 face @ 0.88, 2% platform fee on face
        fb = compute(Decimal("100000"), Decimal("0.88"), Decimal("2"))
        assert fb.subtotal == Decimal("88000.00")
        assert fb.platform_fee == Decimal("2000.00")
        assert fb.broker_fee == Decimal("0.00")
        assert fb.total_cost == Decimal("90000.00")
        assert fb.savings == Decimal("10000.00")
        assert fb.effective_discount_pct == Decimal("10.00")

    def test_broker_fee_added_on_top(self) -> None:
        fb = compute(100000, "0.88", 2, 1)
        assert fb.broker_fee == Decimal("1000.00")
        assert fb.total_cost == Decimal("91000.00")
        assert fb.effective_discount_pct == Decimal("9.00")

    def test_subtotal_fee_base(self) -> None:
        fb = compute(100000, "0.88", 2, fee_base=FeeBase.SUBTOTAL)
        assert fb.platform_fee == Decimal("1760.00")
        assert fb.total_cost == Decimal("89760.00")

    def test_fee_base_accepts_plain_string(self) -> None:
        assert compute(100000, "0.88", 2, fee_base="subtotal").platform_fee == Decimal("1760.00")

    def test_flat_floor_applies_to_small_orders(self) -> None:
        fb = compute(10000, "0.9", 2, fee_base="subtotal", flat_fee_floor=499)
        assert fb.platform_fee == Decimal("499.00")

    def test_price_of_one_means_no_discount_before_fees(self) -> None:
        fb = compute(50000, 1, 0)
        assert fb.savings == Decimal("0.00")
        assert fb.effective_discount_pct == Decimal("0.00")

    def test_half_cent_rounds_up(self) -> None:
        # 50.01 x 0.5 = 25.005 -> 25.01
        fb = compute("50.01", "0.5", 0)
        assert fb.subtotal == Decimal("25.01")

    def test_float_input_goes_through_str(self) -> None:
        fb = compute(100000.0, 0.88, 2.0)
        assert fb.total_cost == Decimal("90000.00")

    @pytest.mark.parametrize(
        "face,price,pct",
        [
            (0, "0.88", 2),
            (-1, "0.88", 2),
            (100000, "0", 2),
            (100000, "1.01", 2),
            (100000, "0.88", -2),
            ("NaN", "0.88", 2),
            ("Infinity", "0.88", 2),
            ("abc", "0.88", 2),
        ],
    )
    def test_rejects_bad_input(self, face: object, price: object, pct: object) -> None:
        with pytest.raises(ValidationError):
            compute(face, price, pct)

    def test_rejects_unknown_fee_base(self) -> None:
        with pytest.raises(ValidationError):
            compute(100000, "0.88", 2, fee_base="gross")

    def test_rejects_bool(self) -> None:
        with pytest.raises(ValidationError):
            compute(True, "0.88", 2)


class TestPriceOrder:
    def test_floor_wins_below_threshold(self) -> None:
        # $20,000 @ 0.85: 2% of 17,000 = 340 < 499
        pricing = price_order(Decimal("20000"), Decimal("0.85"), Decimal("2"), Decimal("499"))
        assert pricing.subtotal == Decimal("17000.00")
        assert pricing.fees == Decimal("499.00")
        assert pricing.total == Decimal("17499.00")

    def test_percentage_wins_above_threshold(self) -> None:
        pricing = price_order(Decimal("100000"), Decimal("0.88"), Decimal("2"), Decimal("499"))
        assert pricing.fees == Decimal("1760.00")
        assert pricing.total == Decimal("89760.00")

    def test_total_is_subtotal_plus_fees(self) -> None:
        pricing = price_order(Decimal("12345.67"), Decimal("0.9123"), Decimal("2"), Decimal("499"))
        assert pricing.total == pricing.subtotal + pricing.fees
