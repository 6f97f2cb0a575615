"""Tests for md_common.errors and md_common.response."""

from src.md_common.errors import (
    AppError,
    ConcurrentMutationError,
    DuplicatePendingOrderError,
    FetchError,
    InvalidOrderError,
    MissingCallerError,
    NotOrderPartyError,
    OrderNotFoundError,
    OrderStoreError,
    PaymentUnavailableError,
    ServerRejectionError,
    TransitionError,
)
from src.md_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        err = AppError(code=4001, message="test")
        assert isinstance(err, Exception)
        assert str(err) == "test"


class TestLifecycleErrors:
    def test_invalid_order(self) -> None:
        err = InvalidOrderError("price must be positive")
        assert err.code == 4001
        assert err.http_status == 422
        assert "price must be positive" in err.message

    def test_transition_error_names_action_and_edge(self) -> None:
        err = TransitionError("reject", "completed", "rejected", "dealer")
        assert err.code == 4002
        assert err.http_status == 409
        assert err.message == (
            "Cannot reject: dealer may not move an order from completed to rejected"
        )
        assert (err.action, err.from_status, err.to_status, err.actor) == (
            "reject", "completed", "rejected", "dealer",
        )

    def test_concurrent_mutation(self) -> None:
        err = ConcurrentMutationError("order-9")
        assert err.code == 4003
        assert err.order_id == "order-9"
        assert "in flight" in err.message

    def test_order_not_found(self) -> None:
        err = OrderNotFoundError("order-abc")
        assert err.code == 4004
        assert err.http_status == 404

    def test_duplicate_pending(self) -> None:
        err = DuplicatePendingOrderError("gig-3")
        assert err.code == 4005
        assert "gig-3" in err.message

    def test_server_rejection_keeps_server_message(self) -> None:
        err = ServerRejectionError(4002, "pending -> paid refused", 409)
        assert err.code == 4006
        assert err.server_code == 4002
        assert err.message == "pending -> paid refused"
        assert err.http_status == 409

    def test_not_order_party(self) -> None:
        assert NotOrderPartyError("order-1").http_status == 403
        assert NotOrderPartyError("order-1").message == "Caller is not a party to order order-1"

    def test_not_order_party_with_detail(self) -> None:
        err = NotOrderPartyError(detail="Caller cannot list orders of client client-9")
        assert err.code == 4007
        assert err.message == "Caller cannot list orders of client client-9"

    def test_payment_unavailable(self) -> None:
        assert PaymentUnavailableError().code == 4008

    def test_missing_caller(self) -> None:
        assert MissingCallerError().http_status == 401


class TestTransportErrors:
    def test_fetch_error(self) -> None:
        err = FetchError("HTTP 503: unavailable")
        assert err.code == 6001
        assert err.message.startswith("Failed to load orders")

    def test_order_store_error(self) -> None:
        err = OrderStoreError("ConnectError: refused")
        assert err.code == 6002
        assert err.http_status == 502


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"id": "order-1"})
        assert resp.code == 0
        assert resp.is_success
        assert resp.data == {"id": "order-1"}
        assert resp.request_id.startswith("req_")

    def test_error(self) -> None:
        resp = error_response(4004, "Order not found: x")
        assert not resp.is_success
        assert resp.data is None

    def test_parse_from_dict(self) -> None:
        resp = ApiResponse.model_validate({"code": 4002, "message": "nope", "data": None})
        assert resp.code == 4002
        assert not resp.is_success
