from decimal import Decimal

from src.tc_common.errors import (
    AppError,
    BelowMinimumBlockError,
    ForbiddenError,
    InsufficientInventoryError,
    InvalidStatusTransitionError,
    PaymentAmountMismatchError,
    PaymentSignatureError,
    RateLimitError,
    TransactionFailureError,
    ValidationError,
)
from src.tc_common.response import error_response, success_response


class TestErrors:
    def test_insufficient_inventory_is_400(self) -> None:
        err = InsufficientInventoryError(Decimal("60"), Decimal("40"))
        assert isinstance(err, AppError)
        assert (err.code, err.http_status) == (3003, 400)
        assert "40" in err.message

    def test_below_minimum_block_is_400(self) -> None:
        err = BelowMinimumBlockError(Decimal("4999.99"), Decimal("5000"))
        assert (err.code, err.http_status) == (3004, 400)

    def test_status_codes(self) -> None:
        assert ForbiddenError().http_status == 403
        assert InvalidStatusTransitionError("PAID", "FAILED").http_status == 422
        assert PaymentSignatureError().http_status == 400
        assert PaymentAmountMismatchError(Decimal("1"), Decimal("2")).http_status == 422
        assert ValidationError("bad").http_status == 422
        assert TransactionFailureError().http_status == 500

    def test_rate_limit_carries_retry_after(self) -> None:
        err = RateLimitError(17)
        assert err.retry_after == 17
        assert err.http_status == 429


class TestResponse:
    def test_success_envelope(self) -> None:
        resp = success_response({"x": 1})
        assert resp.code == 0
        assert resp.data == {"x": 1}
        assert resp.request_id.startswith("req_")

    def test_error_envelope(self) -> None:
        resp = error_response(3003, "Insufficient")
        assert resp.code == 3003
        assert resp.data is None
