# src/md_queue/session.py
"""Live order queues for the surrounding UI.

`DealerOrders` is what a dealer dashboard mounts: entering it subscribes to
the dealer's push topic and loads the current orders; leaving it releases
the subscription and discards anything still in flight. `ClientOrders` is
the same for the client side of a negotiation.

    async with DealerOrders.connect("dealer-7") as queue:
        view = queue.queue          # pending / active / completed / rejected
        await queue.accept(view.pending[0].id)
"""
import logging
from collections.abc import Callable
from datetime import date
from types import TracebackType
from typing import NoReturn, Self

from src.md_common.enums import Actor
from src.md_order.domain.models import Order
from src.md_order.domain.store import OrderStoreProtocol, PushChannelProtocol
from src.md_order.infrastructure.push_channel import RedisPushChannel
from src.md_order.infrastructure.store_client import HttpOrderStore
from src.md_queue.controller import OrderActionController
from src.md_queue.projection import DealerQueue, project_queue
from src.md_queue.sync_client import OrderSyncClient, SubscriptionHandle

logger = logging.getLogger(__name__)


class OrderQueueSession:
    _scope: Actor

    def __init__(
        self,
        owner_id: str,
        store: OrderStoreProtocol,
        channel: PushChannelProtocol,
        owned_store: HttpOrderStore | None = None,
    ) -> None:
        self._owner_id = owner_id
        self._owned_store = owned_store
        self._mounted = False
        self._handle: SubscriptionHandle | None = None
        self.sync = OrderSyncClient(store, channel, owner_id, scope=self._scope)
        self.actions = OrderActionController(
            store, self.sync, self._scope, owner_id, is_mounted=lambda: self._mounted
        )

    @classmethod
    def connect(cls, owner_id: str, base_url: str | None = None) -> Self:
        """Session wired to the HTTP Order Store and the redis push channel."""
        store = HttpOrderStore(user_id=owner_id, base_url=base_url)
        return cls(owner_id, store, RedisPushChannel(), owned_store=store)

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def queue(self) -> DealerQueue:
        return project_queue(self.sync.orders, self.sync.unseen_ids)

    def on_change(self, callback: Callable[[], object]) -> None:
        self.sync.add_change_listener(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> DealerQueue:
        """Subscribe first, then load, so nothing published meanwhile is missed."""
        if self.sync.closed:
            raise RuntimeError("order queue session is single-use; create a new one")
        self._mounted = True
        if self._handle is None:
            self._handle = await self.sync.subscribe()
        await self.refresh()
        return self.queue

    async def refresh(self) -> DealerQueue:
        """Manual (re)load; raises FetchError unchanged."""
        await self.sync.load_initial()
        return self.queue

    async def close(self) -> None:
        self._mounted = False
        self.sync.close()
        if self._handle is not None:
            await self._handle.aclose()
            self._handle = None
        if self._owned_store is not None:
            await self._owned_store.aclose()
            self._owned_store = None

    async def __aenter__(self) -> Self:
        try:
            await self.open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Shared commands
    # ------------------------------------------------------------------

    async def accept(self, order_id: str) -> Order:
        return await self.actions.accept(order_id)

    async def reject(self, order_id: str) -> Order:
        return await self.actions.reject(order_id)


class DealerOrders(OrderQueueSession):
    _scope = Actor.DEALER

    def on_new_lead(self, callback: Callable[[Order], object]) -> None:
        self.sync.add_new_lead_listener(callback)

    def clear_unseen(self, order_id: str) -> bool:
        return self.sync.clear_unseen(order_id)

    def order_rendered(self, order_id: str) -> None:
        """Hook for the order detail view; stamps opened_at on first render."""
        self.actions.mark_opened(order_id)

    async def counter(self, order_id: str, new_price: int) -> Order:
        return await self.actions.counter(order_id, new_price)

    async def mark_in_progress(self, order_id: str) -> Order:
        return await self.actions.mark_in_progress(order_id)

    async def mark_completed(self, order_id: str) -> Order:
        return await self.actions.mark_completed(order_id)


class ClientOrders(OrderQueueSession):
    _scope = Actor.CLIENT

    async def create(
        self,
        dealer_id: str,
        proposed_price: int,
        gig_id: str,
        notes: str | None = None,
        scheduled_date: date | None = None,
    ) -> Order:
        return await self.actions.create(
            dealer_id, proposed_price, gig_id, notes=notes, scheduled_date=scheduled_date
        )

    async def pay_and_proceed(self, order_id: str) -> NoReturn:
        await self.actions.pay_and_proceed(order_id)
