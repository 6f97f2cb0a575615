"""Unified error codes and custom exceptions.

Error code ranges:
  4xxx: Order lifecycle (proposal, transitions, per-order serialization)
  6xxx: Order Store transport (fetch / mutation delivery)
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 4xxx: Order lifecycle ---

class InvalidOrderError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid order: {detail}", 422)


class TransitionError(AppError):
    """An action asked for a status edge the transition table does not allow."""

    def __init__(self, action: str, from_status: str, to_status: str, actor: str) -> None:
        self.action = action
        self.from_status = from_status
        self.to_status = to_status
        self.actor = actor
        super().__init__(
            4002,
            f"Cannot {action}: {actor} may not move an order from {from_status} to {to_status}",
            409,
        )


class ConcurrentMutationError(AppError):
    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(4003, f"Another action on order {order_id} is still in flight", 409)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class DuplicatePendingOrderError(AppError):
    def __init__(self, gig_id: str) -> None:
        super().__init__(4005, f"A pending request for gig {gig_id} already exists", 409)


class ServerRejectionError(AppError):
    """The Order Store refused a request; its code and message are kept verbatim."""

    def __init__(self, server_code: int, message: str, http_status: int) -> None:
        self.server_code = server_code
        super().__init__(4006, message, http_status)


class NotOrderPartyError(AppError):
    def __init__(self, order_id: str | None = None, *, detail: str | None = None) -> None:
        message = detail or f"Caller is not a party to order {order_id}"
        super().__init__(4007, message, 403)


class PaymentUnavailableError(AppError):
    def __init__(self) -> None:
        super().__init__(4008, "Payment capture is not available", 501)


class MissingCallerError(AppError):
    def __init__(self) -> None:
        super().__init__(4009, "X-User-Id header is required", 401)


# --- 6xxx: Order Store transport ---

class FetchError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6001, f"Failed to load orders: {detail}", 503)


class OrderStoreError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6002, f"Order Store request failed: {detail}", 502)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
