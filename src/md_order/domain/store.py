"""Ports the dealer/client side consumes: the remote Order Store and the push channel."""
from collections.abc import AsyncIterator
from datetime import date
from typing import Protocol

from src.md_common.enums import OrderStatus
from src.md_order.domain.events import OrderEvent
from src.md_order.domain.models import Order


class OrderStoreProtocol(Protocol):
    """CRUD contract of the authoritative Order Store."""

    async def list_orders(
        self, *, dealer_id: str | None = None, client_id: str | None = None
    ) -> list[Order]: ...

    async def create_order(
        self,
        gig_id: str,
        dealer_id: str,
        proposed_price: int,
        notes: str | None = None,
        scheduled_date: date | None = None,
    ) -> Order: ...

    async def update_status(
        self, order_id: str, status: OrderStatus, agreed_price: int | None = None
    ) -> Order: ...

    async def mark_opened(self, order_id: str) -> Order: ...


class PushSubscriptionProtocol(Protocol):
    """An open topic subscription: an event stream plus its release."""

    def __aiter__(self) -> AsyncIterator[OrderEvent]: ...

    async def close(self) -> None: ...


class PushChannelProtocol(Protocol):
    async def subscribe(self, topic: str) -> PushSubscriptionProtocol: ...
