"""Shared test doubles: an in-memory Order Store and an in-process push channel."""

import asyncio
import dataclasses
from datetime import UTC, date, datetime, timedelta
from typing import Any

from src.md_common.enums import OrderStatus, PushEventType
from src.md_common.errors import OrderNotFoundError, ServerRejectionError
from src.md_common.redis_client import client_topic, dealer_topic
from src.md_order.domain.events import OrderEvent
from src.md_order.domain.models import Order
from src.md_order.domain.transitions import is_allowed_transition

DEALER_ID = "dealer-1"
CLIENT_ID = "client-1"
BASE_TIME = datetime(2026, 10, 1, 9, 0, tzinfo=UTC)


def make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = dict(
        id="order-1",
        gig_id="gig-1",
        client_id=CLIENT_ID,
        dealer_id=DEALER_ID,
        proposed_price=12000,
        status=OrderStatus.PENDING,
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )
    defaults.update(kwargs)
    return Order(**defaults)


async def settle(rounds: int = 10) -> None:
    """Let background pump/opened tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Order Store
# ---------------------------------------------------------------------------


class FakeOrderBackend:
    """Shared state behind one FakeOrderStore per caller.

    With a channel attached, every write is published to both party topics
    the way the real service does after commit.
    """

    def __init__(self, *orders: Order, channel: "FakePushChannel | None" = None) -> None:
        self.channel = channel
        self.orders: dict[str, Order] = {o.id: o for o in orders}
        self.calls: list[tuple[Any, ...]] = []
        self.gate: asyncio.Event | None = None
        # Holds back mark_opened replies after the write has landed
        self.opened_gate: asyncio.Event | None = None
        self.failures: list[Exception] = []
        self._tick = 0
        self._next_id = 100

    def now(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(minutes=self._tick)

    def store_for(self, user_id: str) -> "FakeOrderStore":
        return FakeOrderStore(self, user_id)

    def calls_of(self, kind: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == kind]

    def take_failure(self) -> None:
        if self.failures:
            raise self.failures.pop(0)

    def publish(self, event_type: PushEventType, order: Order) -> None:
        if self.channel is not None:
            self.channel.publish(event_type, order)


class FakeOrderStore:
    """OrderStoreProtocol double enforcing the same transition rules as the service."""

    def __init__(self, backend: FakeOrderBackend, user_id: str) -> None:
        self.backend = backend
        self.user_id = user_id

    async def list_orders(
        self, *, dealer_id: str | None = None, client_id: str | None = None
    ) -> list[Order]:
        self.backend.calls.append(("list", dealer_id, client_id))
        await asyncio.sleep(0)
        self.backend.take_failure()
        found = [
            o
            for o in self.backend.orders.values()
            if (dealer_id and o.dealer_id == dealer_id) or (client_id and o.client_id == client_id)
        ]
        return sorted(found, key=lambda o: o.created_at, reverse=True)

    async def create_order(
        self,
        gig_id: str,
        dealer_id: str,
        proposed_price: int,
        notes: str | None = None,
        scheduled_date: date | None = None,
    ) -> Order:
        self.backend.calls.append(("create", dealer_id, proposed_price))
        await asyncio.sleep(0)
        self.backend.take_failure()
        self.backend._next_id += 1
        now = self.backend.now()
        order = Order(
            id=f"order-{self.backend._next_id}",
            gig_id=gig_id,
            client_id=self.user_id,
            dealer_id=dealer_id,
            proposed_price=proposed_price,
            notes=notes,
            scheduled_date=scheduled_date,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.backend.orders[order.id] = order
        self.backend.publish(PushEventType.INSERT, order)
        return order

    async def update_status(
        self, order_id: str, status: OrderStatus, agreed_price: int | None = None
    ) -> Order:
        self.backend.calls.append(("update", order_id, status, agreed_price))
        if self.backend.gate is not None:
            await self.backend.gate.wait()
        else:
            await asyncio.sleep(0)
        self.backend.take_failure()
        current = self.backend.orders.get(order_id)
        if current is None:
            raise OrderNotFoundError(order_id)
        actor = current.party_of(self.user_id)
        if actor is None or not is_allowed_transition(current.status, status, actor):
            message = f"{current.status.value} -> {status.value} refused"
            raise ServerRejectionError(4002, message, 409)
        updated = dataclasses.replace(
            current,
            status=status,
            agreed_price=agreed_price if agreed_price is not None else current.agreed_price,
            updated_at=self.backend.now(),
        )
        self.backend.orders[order_id] = updated
        self.backend.publish(PushEventType.UPDATE, updated)
        return updated

    async def mark_opened(self, order_id: str) -> Order:
        self.backend.calls.append(("opened", order_id))
        await asyncio.sleep(0)
        self.backend.take_failure()
        current = self.backend.orders[order_id]
        if current.opened_at is not None:
            return current
        now = self.backend.now()
        opened = dataclasses.replace(current, opened_at=now, updated_at=now)
        self.backend.orders[order_id] = opened
        self.backend.publish(PushEventType.UPDATE, opened)
        if self.backend.opened_gate is not None:
            await self.backend.opened_gate.wait()
        return opened


# ---------------------------------------------------------------------------
# Push channel
# ---------------------------------------------------------------------------


class FakeSubscription:
    def __init__(self, topic: str) -> None:
        self.topic = topic
        self.queue: asyncio.Queue[OrderEvent | None] = asyncio.Queue()
        self.closed = False

    def __aiter__(self):  # type: ignore[no-untyped-def]
        return self._events()

    async def _events(self):  # type: ignore[no-untyped-def]
        while not self.closed:
            event = await self.queue.get()
            if event is None:
                return
            yield event

    async def close(self) -> None:
        self.closed = True
        self.queue.put_nowait(None)


class FakePushChannel:
    def __init__(self) -> None:
        self.subscriptions: list[FakeSubscription] = []

    async def subscribe(self, topic: str) -> FakeSubscription:
        sub = FakeSubscription(topic)
        self.subscriptions.append(sub)
        return sub

    def publish(self, event_type: PushEventType, order: Order) -> None:
        topics = {dealer_topic(order.dealer_id), client_topic(order.client_id)}
        for sub in self.subscriptions:
            if not sub.closed and sub.topic in topics:
                sub.queue.put_nowait(OrderEvent(type=event_type, order=order))

    @property
    def open_topics(self) -> list[str]:
        return [s.topic for s in self.subscriptions if not s.closed]
