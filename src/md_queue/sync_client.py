# src/md_queue/sync_client.py
"""OrderSyncClient — the single writer of one party's local order collection.

Two asynchronous sources feed the collection: the one-shot initial fetch
and the long-lived push subscription. Both may be in flight at startup, so
every merge is idempotent and safe under duplicate or reordered delivery:

  insert  known id  → ignored (duplicate)
          new id    → prepended; a pending order in dealer scope is a new lead
  update  known id  → replaced in place (last write wins, position kept)
          new id    → prepended like an insert, but never a new lead

Merges are synchronous; nothing awaits between reading and writing the
collection, so a half-applied merge is never observable.
"""
import asyncio
import logging
from collections.abc import Callable, Iterable

from src.md_common.enums import Actor, OrderStatus, PushEventType
from src.md_common.redis_client import client_topic, dealer_topic
from src.md_order.domain.models import Order
from src.md_order.domain.store import (
    OrderStoreProtocol,
    PushChannelProtocol,
    PushSubscriptionProtocol,
)

logger = logging.getLogger(__name__)

OrderCallback = Callable[[Order], object]
Listener = Callable[[], object]


class SubscriptionHandle:
    """Scoped release of a push subscription.

    Calling the handle (or `close()`) stops delivery immediately and releases
    the channel once the pump task has unwound, including a pump that was
    cancelled before it ever ran. `aclose()` waits for the release.
    """

    def __init__(
        self, task: asyncio.Task[None], subscription: PushSubscriptionProtocol
    ) -> None:
        self._task = task
        self._subscription = subscription
        self._closed = False
        self._release: asyncio.Task[None] | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def __call__(self) -> None:
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._task.cancel()
        self._task.add_done_callback(self._on_pump_done)

    def _on_pump_done(self, task: asyncio.Task[None]) -> None:
        # Subscription.close() is idempotent; a pump cancelled before its
        # first step never reached its own finally
        self._release = asyncio.create_task(
            self._subscription.close(), name=f"{task.get_name()}:release"
        )

    async def aclose(self) -> None:
        self.close()
        await asyncio.wait([self._task])
        if self._release is not None:
            await self._release
        else:
            await self._subscription.close()


class OrderSyncClient:
    def __init__(
        self,
        store: OrderStoreProtocol,
        channel: PushChannelProtocol,
        owner_id: str,
        scope: Actor = Actor.DEALER,
    ) -> None:
        self._store = store
        self._channel = channel
        self._owner_id = owner_id
        self._scope = scope

        self._orders: dict[str, Order] = {}
        # Display order, newest lead first; fixed when an id is first observed
        self._positions: list[str] = []
        self._unseen: set[str] = set()

        self._new_lead_listeners: list[OrderCallback] = []
        self._change_listeners: list[Listener] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def scope(self) -> Actor:
        return self._scope

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def orders(self) -> tuple[Order, ...]:
        return tuple(self._orders[order_id] for order_id in self._positions)

    def get(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders

    def __len__(self) -> int:
        return len(self._positions)

    @property
    def unseen_ids(self) -> frozenset[str]:
        return frozenset(self._unseen)

    @property
    def unseen_count(self) -> int:
        return len(self._unseen)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_new_lead_listener(self, callback: OrderCallback) -> None:
        """Called with each new pending order delivered by push (dealer scope only)."""
        self._new_lead_listeners.append(callback)

    def add_change_listener(self, callback: Listener) -> None:
        """Called after every merge or unseen change that altered the collection."""
        self._change_listeners.append(callback)

    def _emit(self, listeners: Iterable[Callable[..., object]], *args: object) -> None:
        for callback in listeners:
            try:
                callback(*args)
            except Exception:
                # A faulty UI listener must not break the merge pipeline
                logger.exception("Order listener %r failed", callback)

    # ------------------------------------------------------------------
    # Merge rules
    # ------------------------------------------------------------------

    def merge_insert(self, order: Order) -> bool:
        """Apply an insert event. Returns False when the id was already known."""
        if self._closed:
            logger.debug("Discarding insert after close: order=%s", order.id)
            return False
        if order.id in self._orders:
            logger.debug("Duplicate insert ignored: order=%s", order.id)
            return False
        self._orders[order.id] = order
        self._positions.insert(0, order.id)
        is_lead = self._scope is Actor.DEALER and order.status is OrderStatus.PENDING
        if is_lead:
            self._unseen.add(order.id)
            logger.info(
                "New service request: order=%s dealer=%s price=%d",
                order.id,
                order.dealer_id,
                order.proposed_price,
            )
        self._emit(self._change_listeners)
        if is_lead:
            self._emit(self._new_lead_listeners, order)
        return True

    def merge_update(self, order: Order) -> bool:
        """Apply an update event (or a confirmed mutation result).

        Unknown ids are inserted without flagging a lead: the update raced
        ahead of its insert or of the initial fetch.
        """
        if self._closed:
            logger.debug("Discarding update after close: order=%s", order.id)
            return False
        if order.id in self._orders:
            self._orders[order.id] = order
        else:
            logger.debug("Update before insert, adopting: order=%s", order.id)
            self._orders[order.id] = order
            self._positions.insert(0, order.id)
        self._emit(self._change_listeners)
        return True

    def merge_snapshot(self, orders: Iterable[Order]) -> int:
        """Fold an initial fetch (newest first) into whatever push already delivered.

        Known ids keep the fresher record by `updated_at`; unknown ids append
        after the live entries in fetched order. Returns the number of orders added.
        """
        if self._closed:
            return 0
        added = 0
        changed = False
        for order in orders:
            existing = self._orders.get(order.id)
            if existing is None:
                self._orders[order.id] = order
                self._positions.append(order.id)
                added += 1
                changed = True
            elif order.updated_at > existing.updated_at:
                self._orders[order.id] = order
                changed = True
        if changed:
            self._emit(self._change_listeners)
        return added

    def clear_unseen(self, order_id: str) -> bool:
        """View-side acknowledgement of a lead; no server round-trip."""
        if order_id not in self._unseen:
            return False
        self._unseen.discard(order_id)
        self._emit(self._change_listeners)
        return True

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    async def load_initial(self) -> list[Order]:
        """Fetch every order of the owner, newest first, and merge it.

        Raises FetchError unchanged; there is no automatic retry. A result
        arriving after `close()` is returned but not merged.
        """
        if self._scope is Actor.DEALER:
            orders = await self._store.list_orders(dealer_id=self._owner_id)
        else:
            orders = await self._store.list_orders(client_id=self._owner_id)
        orders = sorted(orders, key=lambda o: o.created_at, reverse=True)
        if self._closed:
            logger.debug("Discarding initial load after close: owner=%s", self._owner_id)
            return orders
        added = self.merge_snapshot(orders)
        logger.debug(
            "Initial load: owner=%s fetched=%d added=%d", self._owner_id, len(orders), added
        )
        return orders

    def topic(self) -> str:
        if self._scope is Actor.DEALER:
            return dealer_topic(self._owner_id)
        return client_topic(self._owner_id)

    async def subscribe(
        self,
        on_insert: OrderCallback | None = None,
        on_update: OrderCallback | None = None,
    ) -> SubscriptionHandle:
        """Open the owner's push topic and pump its events into the merge rules.

        Custom callbacks replace the default merges for their event type.
        """
        subscription = await self._channel.subscribe(self.topic())
        task = asyncio.create_task(
            self._pump(
                subscription,
                on_insert or self.merge_insert,
                on_update or self.merge_update,
            ),
            name=f"order-push:{self.topic()}",
        )
        return SubscriptionHandle(task, subscription)

    async def _pump(
        self,
        subscription: PushSubscriptionProtocol,
        on_insert: OrderCallback,
        on_update: OrderCallback,
    ) -> None:
        try:
            async for event in subscription:
                handler = on_insert if event.type is PushEventType.INSERT else on_update
                try:
                    handler(event.order)
                except Exception:
                    logger.exception(
                        "Push handler failed: type=%s order=%s", event.type.value, event.order.id
                    )
        finally:
            await subscription.close()

    def close(self) -> None:
        """Stop accepting merges; late fetch or mutation results are discarded."""
        self._closed = True
