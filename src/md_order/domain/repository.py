# src/md_order/domain/repository.py
"""OrderRepository Protocol — interface contract for the Order Store persistence layer."""
from datetime import date
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.md_common.enums import OrderStatus
from src.md_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def insert(
        self,
        db: AsyncSession,
        gig_id: str,
        client_id: str,
        dealer_id: str,
        proposed_price: int,
        notes: str | None,
        scheduled_date: date | None,
    ) -> Order: ...

    async def get_by_id(
        self, db: AsyncSession, order_id: str, for_update: bool = False
    ) -> Order | None: ...

    async def has_pending_request(
        self, db: AsyncSession, client_id: str, dealer_id: str, gig_id: str
    ) -> bool: ...

    async def update_status(
        self,
        db: AsyncSession,
        order_id: str,
        status: OrderStatus,
        agreed_price: int | None,
    ) -> Order: ...

    async def mark_opened(self, db: AsyncSession, order_id: str) -> Order | None: ...

    async def list_by_dealer(self, db: AsyncSession, dealer_id: str) -> list[Order]: ...

    async def list_by_client(self, db: AsyncSession, client_id: str) -> list[Order]: ...

    async def list_dealer_upcoming(self, db: AsyncSession, dealer_id: str) -> list[Order]: ...
