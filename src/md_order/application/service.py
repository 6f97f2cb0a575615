# src/md_order/application/service.py
"""OrderApplicationService — the Order Store behind the REST contract.

Mutations run inside one transaction per request (commit on success,
rollback on any error) and publish the committed record on the push
channel afterwards. Transition rules are re-checked here even though the
dealer/client side checks them first.
"""
import logging
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.md_common.enums import Actor, OrderStatus, PushEventType
from src.md_common.errors import (
    DuplicatePendingOrderError,
    InvalidOrderError,
    NotOrderPartyError,
    OrderNotFoundError,
    TransitionError,
)
from src.md_order.application.schemas import (
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    UpdateOrderStatusRequest,
)
from src.md_order.domain.events import OrderEvent
from src.md_order.domain.models import Order
from src.md_order.domain.repository import OrderRepositoryProtocol
from src.md_order.domain.transitions import action_name, is_allowed_transition
from src.md_order.infrastructure.persistence import OrderRepository
from src.md_order.infrastructure.publisher import RedisOrderPublisher

logger = logging.getLogger(__name__)


class OrderPublisherProtocol(Protocol):
    async def publish(self, event: OrderEvent) -> None: ...


def _to_list_response(orders: list[Order]) -> OrderListResponse:
    return OrderListResponse(items=[OrderResponse.from_domain(o) for o in orders])


class OrderApplicationService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        publisher: OrderPublisherProtocol | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._publisher: OrderPublisherProtocol = publisher or RedisOrderPublisher()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_orders(
        self,
        db: AsyncSession,
        caller_id: str,
        dealer_id: str | None,
        client_id: str | None,
    ) -> OrderListResponse:
        if (dealer_id is None) == (client_id is None):
            raise InvalidOrderError("exactly one of dealer_id or client_id is required")
        if dealer_id is not None:
            if caller_id != dealer_id:
                raise NotOrderPartyError(detail=f"Caller cannot list orders of dealer {dealer_id}")
            return _to_list_response(await self._repo.list_by_dealer(db, dealer_id))
        if caller_id != client_id:
            raise NotOrderPartyError(detail=f"Caller cannot list orders of client {client_id}")
        return _to_list_response(await self._repo.list_by_client(db, client_id))

    async def list_upcoming(
        self, db: AsyncSession, caller_id: str, dealer_id: str
    ) -> OrderListResponse:
        if caller_id != dealer_id:
            raise NotOrderPartyError(detail=f"Caller cannot list orders of dealer {dealer_id}")
        return _to_list_response(await self._repo.list_dealer_upcoming(db, dealer_id))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_order(
        self, db: AsyncSession, caller_id: str, req: CreateOrderRequest
    ) -> OrderResponse:
        if caller_id == req.dealer_id:
            raise InvalidOrderError("a dealer cannot request their own service")
        try:
            if await self._repo.has_pending_request(db, caller_id, req.dealer_id, req.gig_id):
                raise DuplicatePendingOrderError(req.gig_id)
            order = await self._repo.insert(
                db,
                gig_id=req.gig_id,
                client_id=caller_id,
                dealer_id=req.dealer_id,
                proposed_price=req.proposed_price,
                notes=req.notes,
                scheduled_date=req.scheduled_date,
            )
            await db.commit()
        except IntegrityError as exc:
            # Partial unique index on pending (client, dealer, gig) lost a race
            await db.rollback()
            raise DuplicatePendingOrderError(req.gig_id) from exc
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Order created: id=%s dealer=%s client=%s price=%d",
            order.id,
            order.dealer_id,
            order.client_id,
            order.proposed_price,
        )
        await self._publisher.publish(OrderEvent(type=PushEventType.INSERT, order=order))
        return OrderResponse.from_domain(order)

    async def update_status(
        self,
        db: AsyncSession,
        caller_id: str,
        order_id: str,
        req: UpdateOrderStatusRequest,
    ) -> OrderResponse:
        try:
            current = await self._repo.get_by_id(db, order_id, for_update=True)
            if current is None:
                raise OrderNotFoundError(order_id)
            actor = current.party_of(caller_id)
            if actor is None:
                raise NotOrderPartyError(order_id)
            if not is_allowed_transition(current.status, req.status, actor):
                raise TransitionError(
                    action_name(req.status), current.status.value, req.status.value, actor.value
                )
            agreed_price = self._resolve_agreed_price(current, req)
            updated = await self._repo.update_status(db, order_id, req.status, agreed_price)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Order transition: id=%s %s -> %s by %s",
            order_id,
            current.status.value,
            updated.status.value,
            actor.value,
        )
        await self._publisher.publish(OrderEvent(type=PushEventType.UPDATE, order=updated))
        return OrderResponse.from_domain(updated)

    async def mark_opened(
        self, db: AsyncSession, caller_id: str, order_id: str
    ) -> OrderResponse:
        try:
            current = await self._repo.get_by_id(db, order_id)
            if current is None:
                raise OrderNotFoundError(order_id)
            if current.party_of(caller_id) is not Actor.DEALER:
                raise NotOrderPartyError(order_id)
            opened = await self._repo.mark_opened(db, order_id)
            if opened is None:
                # Already opened: idempotent, nothing written
                await db.rollback()
                return OrderResponse.from_domain(current)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._publisher.publish(OrderEvent(type=PushEventType.UPDATE, order=opened))
        return OrderResponse.from_domain(opened)

    @staticmethod
    def _resolve_agreed_price(current: Order, req: UpdateOrderStatusRequest) -> int | None:
        """Price written with the transition; None keeps the stored value."""
        if req.status is OrderStatus.COUNTERED:
            if req.agreed_price is None:
                raise InvalidOrderError("a counter-offer needs a price")
            return req.agreed_price
        if req.status is OrderStatus.ACCEPTED:
            price = current.price_to_agree
            if req.agreed_price is not None and req.agreed_price != price:
                raise InvalidOrderError(
                    f"accepted price {req.agreed_price} does not match offered price {price}"
                )
            return price
        if req.agreed_price is not None:
            raise InvalidOrderError("agreed_price can only be set by accept or counter")
        return None
