"""Tests for sa_common.errors and sa_common.response."""

from src.sa_common.errors import (
    ActiveSlotExistsError,
    AppError,
    AuctionEndedError,
    ContractDeadlinePassedError,
    EscrowGatewayError,
    EscrowNotLockedError,
    InvalidCredentialsError,
    NonPositiveAmountError,
    SelfBidError,
    SlotNotClosableError,
    SlotNotFoundError,
)
from src.sa_common.response import ApiResponse, error_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.http_status == 500
        assert err.category == "SYSTEM"
        assert err.retryable is False

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestCategories:
    def test_validation(self) -> None:
        err = NonPositiveAmountError("amount", 0)
        assert (err.code, err.http_status, err.category) == (1001, 422, "VALIDATION")
        assert err.retryable is False

    def test_authorization(self) -> None:
        err = SelfBidError()
        assert (err.code, err.http_status, err.category) == (2003, 403, "AUTHORIZATION")

    def test_invalid_credentials_is_401(self) -> None:
        assert InvalidCredentialsError().http_status == 401

    def test_state_conflict_retryable(self) -> None:
        err = ActiveSlotExistsError("iss-1")
        assert (err.code, err.http_status, err.category) == (3001, 409, "STATE_CONFLICT")
        assert err.retryable is True
        assert "iss-1" in err.message

    def test_close_conflict_retryable(self) -> None:
        assert SlotNotClosableError("s-1").retryable is True

    def test_terminal_conflicts_not_retryable(self) -> None:
        assert AuctionEndedError("s-1").retryable is False
        assert ContractDeadlinePassedError("c-1").retryable is False

    def test_not_found_is_404(self) -> None:
        err = SlotNotFoundError("s-404")
        assert err.http_status == 404
        assert err.category == "STATE_CONFLICT"

    def test_integrity(self) -> None:
        err = EscrowNotLockedError("b-1", "REFUNDED")
        assert (err.code, err.http_status, err.category) == (4002, 500, "INTEGRITY")
        assert "REFUNDED" in err.message

    def test_gateway_carries_reason(self) -> None:
        err = EscrowGatewayError("lock", "b-1", "(402) insufficient funds")
        assert (err.code, err.http_status, err.category) == (5001, 502, "GATEWAY")
        assert err.retryable is True
        assert err.operation == "lock"
        assert err.reference_id == "b-1"
        assert err.reason == "(402) insufficient funds"
        assert "insufficient funds" in err.message


class TestApiResponse:
    def test_defaults(self) -> None:
        resp = ApiResponse()
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.request_id.startswith("req_")

    def test_error_carries_category(self) -> None:
        resp = error_response(SelfBidError())
        assert resp.code == 2003
        assert resp.message == "Issuer cannot bid on own slot"
        assert resp.data == {"category": "AUTHORIZATION", "retryable": False}

    def test_error_keeps_request_id(self) -> None:
        resp = error_response(SlotNotClosableError("s-1"), "req_fixed")
        assert resp.request_id == "req_fixed"
        assert resp.data["retryable"] is True
