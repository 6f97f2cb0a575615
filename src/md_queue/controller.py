# src/md_queue/controller.py
"""OrderActionController — the per-order command surface.

Every status command follows the same contract:
  1. read the current status from the local collection
  2. check the transition table; illegal edges fail before any network call
  3. refuse if a mutation of the same order is already in flight
  4. send the mutation to the Order Store
  5. merge the confirmed record (never an optimistic guess) and release the order
  6. on failure release the order and re-raise the error unchanged

In-flight tokens are per order id, so unrelated orders mutate concurrently.
"""
import asyncio
import dataclasses
import logging
from collections.abc import Callable
from datetime import date
from typing import NoReturn

from src.md_common.cents import validate_price
from src.md_common.enums import Actor, OrderStatus
from src.md_common.errors import (
    ConcurrentMutationError,
    InvalidOrderError,
    OrderNotFoundError,
    PaymentUnavailableError,
    TransitionError,
)
from src.md_order.domain.models import Order
from src.md_order.domain.store import OrderStoreProtocol
from src.md_order.domain.transitions import action_name, is_allowed_transition
from src.md_queue.sync_client import OrderSyncClient

logger = logging.getLogger(__name__)


class OrderActionController:
    def __init__(
        self,
        store: OrderStoreProtocol,
        sync: OrderSyncClient,
        actor: Actor,
        user_id: str,
        is_mounted: Callable[[], bool] | None = None,
    ) -> None:
        self._store = store
        self._sync = sync
        self._actor = actor
        self._user_id = user_id
        self._is_mounted = is_mounted or (lambda: not sync.closed)
        self._inflight: dict[str, object] = {}
        self._opened_requested: set[str] = set()
        self._background: set[asyncio.Task[None]] = set()

    @property
    def actor(self) -> Actor:
        return self._actor

    def is_updating(self, order_id: str) -> bool:
        return order_id in self._inflight

    @property
    def updating_ids(self) -> frozenset[str]:
        return frozenset(self._inflight)

    def can(self, order_id: str, target: OrderStatus) -> bool:
        """Whether a command towards `target` would pass steps 1–3 right now."""
        order = self._sync.get(order_id)
        return (
            order is not None
            and order_id not in self._inflight
            and is_allowed_transition(order.status, target, self._actor)
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def accept(self, order_id: str) -> Order:
        """Dealer accepts a request, or client accepts a counter-offer."""
        order = self._current(order_id)
        self._check(order, OrderStatus.ACCEPTED)
        updated = await self._mutate(order, OrderStatus.ACCEPTED, order.price_to_agree)
        self._acknowledge(order_id)
        return updated

    async def reject(self, order_id: str) -> Order:
        """Dealer declines a request or withdraws a counter; client declines a counter."""
        order = self._current(order_id)
        self._check(order, OrderStatus.REJECTED)
        updated = await self._mutate(order, OrderStatus.REJECTED)
        self._acknowledge(order_id)
        return updated

    async def counter(self, order_id: str, new_price: int) -> Order:
        try:
            validate_price(new_price)
        except ValueError as exc:
            raise InvalidOrderError(str(exc)) from exc
        order = self._current(order_id)
        self._check(order, OrderStatus.COUNTERED)
        updated = await self._mutate(order, OrderStatus.COUNTERED, new_price)
        self._acknowledge(order_id)
        return updated

    async def mark_in_progress(self, order_id: str) -> Order:
        order = self._current(order_id)
        self._check(order, OrderStatus.IN_PROGRESS)
        return await self._mutate(order, OrderStatus.IN_PROGRESS)

    async def mark_completed(self, order_id: str) -> Order:
        order = self._current(order_id)
        self._check(order, OrderStatus.COMPLETED)
        return await self._mutate(order, OrderStatus.COMPLETED)

    async def pay_and_proceed(self, order_id: str) -> NoReturn:
        """Client pays an accepted order. Payment capture is not wired up here."""
        order = self._current(order_id)
        self._check(order, OrderStatus.PAID)
        raise PaymentUnavailableError()

    async def create(
        self,
        dealer_id: str,
        proposed_price: int,
        gig_id: str,
        notes: str | None = None,
        scheduled_date: date | None = None,
    ) -> Order:
        """Client proposes a new order; no prior status, so no transition check."""
        if self._actor is not Actor.CLIENT:
            raise InvalidOrderError("only clients can request a service")
        try:
            validate_price(proposed_price)
        except ValueError as exc:
            raise InvalidOrderError(str(exc)) from exc
        if dealer_id == self._user_id:
            raise InvalidOrderError("a dealer cannot request their own service")
        order = await self._store.create_order(
            gig_id=gig_id,
            dealer_id=dealer_id,
            proposed_price=proposed_price,
            notes=notes,
            scheduled_date=scheduled_date,
        )
        if self._is_mounted():
            self._sync.merge_insert(order)
        return order

    def mark_opened(self, order_id: str) -> asyncio.Task[None] | None:
        """Fire-and-forget: stamp opened_at the first time the dealer renders an order.

        Returns the background task, or None when nothing needs sending.
        Failures are logged and never reach the caller.
        """
        if self._actor is not Actor.DEALER:
            return None
        order = self._sync.get(order_id)
        if order is None or order.is_opened or order_id in self._opened_requested:
            return None
        self._opened_requested.add(order_id)
        task = asyncio.create_task(self._send_opened(order_id), name=f"order-opened:{order_id}")
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _send_opened(self, order_id: str) -> None:
        try:
            updated = await self._store.mark_opened(order_id)
        except Exception:
            logger.warning("mark_opened failed: order=%s", order_id, exc_info=True)
            return
        if not self._is_mounted():
            return
        current = self._sync.get(order_id)
        if current is None or updated.updated_at > current.updated_at:
            self._sync.merge_update(updated)
        elif not current.is_opened:
            # The response predates a newer local record; take only the stamp
            self._sync.merge_update(dataclasses.replace(current, opened_at=updated.opened_at))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _current(self, order_id: str) -> Order:
        order = self._sync.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _check(self, order: Order, target: OrderStatus) -> None:
        if not is_allowed_transition(order.status, target, self._actor):
            raise TransitionError(
                action_name(target), order.status.value, target.value, self._actor.value
            )
        if order.id in self._inflight:
            raise ConcurrentMutationError(order.id)

    async def _mutate(
        self, order: Order, target: OrderStatus, agreed_price: int | None = None
    ) -> Order:
        token = object()
        self._inflight[order.id] = token
        try:
            updated = await self._store.update_status(order.id, target, agreed_price)
            if self._is_mounted():
                self._sync.merge_update(updated)
            else:
                logger.debug("Discarding late mutation result: order=%s", order.id)
        finally:
            if self._inflight.get(order.id) is token:
                del self._inflight[order.id]
        logger.info(
            "Order %s by %s: id=%s %s -> %s",
            action_name(target),
            self._actor.value,
            order.id,
            order.status.value,
            updated.status.value,
        )
        return updated

    def _acknowledge(self, order_id: str) -> None:
        if self._actor is Actor.DEALER and self._is_mounted():
            self._sync.clear_unseen(order_id)
