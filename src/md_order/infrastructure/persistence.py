# src/md_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation."""
from datetime import date
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.md_common.enums import OrderStatus
from src.md_common.errors import OrderNotFoundError
from src.md_order.domain.models import Order

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (gig_id, client_id, dealer_id, proposed_price,
        notes, scheduled_date, status)
    VALUES (:gig_id, :client_id, :dealer_id, :proposed_price,
        :notes, :scheduled_date, 'pending')
    RETURNING id
""")

_UPDATE_STATUS_SQL = text("""
    UPDATE orders
    SET status = :status,
        agreed_price = COALESCE(CAST(:agreed_price AS BIGINT), agreed_price)
    WHERE id = :id
    RETURNING id
""")

_MARK_OPENED_SQL = text("""
    UPDATE orders
    SET opened_at = NOW()
    WHERE id = :id AND opened_at IS NULL
    RETURNING id
""")

_SELECT_FROM = """
    SELECT o.id, o.gig_id, o.client_id, o.dealer_id,
        o.proposed_price, o.agreed_price, o.notes, o.scheduled_date,
        o.status, o.created_at, o.updated_at, o.opened_at,
        p.name AS client_name, d.business_name AS dealer_name
    FROM orders o
    LEFT JOIN profiles p ON p.id = o.client_id
    LEFT JOIN dealer_profiles d ON d.id = o.dealer_id
"""

_GET_ORDER_BY_ID_SQL = text(f"{_SELECT_FROM} WHERE o.id = :id")

_GET_ORDER_FOR_UPDATE_SQL = text(f"{_SELECT_FROM} WHERE o.id = :id FOR UPDATE OF o")

_HAS_PENDING_SQL = text("""
    SELECT 1 FROM orders
    WHERE client_id = :client_id AND dealer_id = :dealer_id
      AND gig_id = :gig_id AND status = 'pending'
    LIMIT 1
""")

_LIST_BY_DEALER_SQL = text(f"""
    {_SELECT_FROM}
    WHERE o.dealer_id = :dealer_id
    ORDER BY o.created_at DESC
""")

_LIST_BY_CLIENT_SQL = text(f"""
    {_SELECT_FROM}
    WHERE o.client_id = :client_id
    ORDER BY o.created_at DESC
""")

_LIST_DEALER_UPCOMING_SQL = text(f"""
    {_SELECT_FROM}
    WHERE o.dealer_id = :dealer_id
      AND o.status IN ('accepted', 'paid', 'in_progress')
    ORDER BY o.scheduled_date ASC NULLS LAST, o.created_at DESC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=str(row.id),
        gig_id=row.gig_id,
        client_id=row.client_id,
        dealer_id=row.dealer_id,
        proposed_price=row.proposed_price,
        agreed_price=row.agreed_price,
        notes=row.notes,
        scheduled_date=row.scheduled_date,
        status=OrderStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        opened_at=row.opened_at,
        client_name=row.client_name,
        dealer_name=row.dealer_name,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL.

    Does not commit; the application service owns the transaction.
    """

    async def insert(
        self,
        db: AsyncSession,
        gig_id: str,
        client_id: str,
        dealer_id: str,
        proposed_price: int,
        notes: str | None,
        scheduled_date: date | None,
    ) -> Order:
        result = await db.execute(
            _INSERT_ORDER_SQL,
            {
                "gig_id": gig_id,
                "client_id": client_id,
                "dealer_id": dealer_id,
                "proposed_price": proposed_price,
                "notes": notes,
                "scheduled_date": scheduled_date,
            },
        )
        order_id = str(result.scalar_one())
        return await self._require(db, order_id)

    async def get_by_id(
        self, db: AsyncSession, order_id: str, for_update: bool = False
    ) -> Order | None:
        sql = _GET_ORDER_FOR_UPDATE_SQL if for_update else _GET_ORDER_BY_ID_SQL
        result = await db.execute(sql, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def has_pending_request(
        self, db: AsyncSession, client_id: str, dealer_id: str, gig_id: str
    ) -> bool:
        result = await db.execute(
            _HAS_PENDING_SQL,
            {"client_id": client_id, "dealer_id": dealer_id, "gig_id": gig_id},
        )
        return result.fetchone() is not None

    async def update_status(
        self,
        db: AsyncSession,
        order_id: str,
        status: OrderStatus,
        agreed_price: int | None,
    ) -> Order:
        result = await db.execute(
            _UPDATE_STATUS_SQL,
            {"id": order_id, "status": status.value, "agreed_price": agreed_price},
        )
        if result.fetchone() is None:
            raise OrderNotFoundError(order_id)
        return await self._require(db, order_id)

    async def mark_opened(self, db: AsyncSession, order_id: str) -> Order | None:
        """Stamp opened_at once; returns None when it was already set (or no such order)."""
        result = await db.execute(_MARK_OPENED_SQL, {"id": order_id})
        if result.fetchone() is None:
            return None
        return await self._require(db, order_id)

    async def list_by_dealer(self, db: AsyncSession, dealer_id: str) -> list[Order]:
        result = await db.execute(_LIST_BY_DEALER_SQL, {"dealer_id": dealer_id})
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_by_client(self, db: AsyncSession, client_id: str) -> list[Order]:
        result = await db.execute(_LIST_BY_CLIENT_SQL, {"client_id": client_id})
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_dealer_upcoming(self, db: AsyncSession, dealer_id: str) -> list[Order]:
        result = await db.execute(_LIST_DEALER_UPCOMING_SQL, {"dealer_id": dealer_id})
        return [_row_to_order(row) for row in result.fetchall()]

    async def _require(self, db: AsyncSession, order_id: str) -> Order:
        order = await self.get_by_id(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order
