# src/md_order/application/schemas.py
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, field_validator

from src.md_common.datetime_utils import ensure_utc
from src.md_common.enums import OrderStatus, PushEventType
from src.md_order.domain.events import OrderEvent
from src.md_order.domain.models import Order


class CreateOrderRequest(BaseModel):
    gig_id: str
    dealer_id: str
    proposed_price: int = Field(gt=0, description="Proposed price in cents")
    notes: str | None = None
    scheduled_date: date | None = None

    @field_validator("gig_id", "dealer_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("notes")
    @classmethod
    def empty_notes_to_none(cls, v: str | None) -> str | None:
        return v or None


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    agreed_price: int | None = Field(default=None, gt=0, description="Agreed price in cents")


class OrderResponse(BaseModel):
    """Wire form of an Order, shared by the REST contract and push messages."""

    id: str
    gig_id: str
    client_id: str
    dealer_id: str
    proposed_price: int
    agreed_price: int | None = None
    notes: str | None = None
    scheduled_date: date | None = None
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    opened_at: datetime | None = None
    client_name: str | None = None
    dealer_name: str | None = None

    @classmethod
    def from_domain(cls, order: Order) -> Self:
        return cls(
            id=order.id,
            gig_id=order.gig_id,
            client_id=order.client_id,
            dealer_id=order.dealer_id,
            proposed_price=order.proposed_price,
            agreed_price=order.agreed_price,
            notes=order.notes,
            scheduled_date=order.scheduled_date,
            status=order.status,
            created_at=order.created_at,
            updated_at=order.updated_at,
            opened_at=order.opened_at,
            client_name=order.client_name,
            dealer_name=order.dealer_name,
        )

    def to_domain(self) -> Order:
        return Order(
            id=self.id,
            gig_id=self.gig_id,
            client_id=self.client_id,
            dealer_id=self.dealer_id,
            proposed_price=self.proposed_price,
            agreed_price=self.agreed_price,
            notes=self.notes,
            scheduled_date=self.scheduled_date,
            status=self.status,
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
            opened_at=ensure_utc(self.opened_at) if self.opened_at else None,
            client_name=self.client_name,
            dealer_name=self.dealer_name,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]


class PushMessage(BaseModel):
    """Payload published on a per-party topic."""

    type: PushEventType
    order: OrderResponse

    @classmethod
    def from_event(cls, event: OrderEvent) -> Self:
        return cls(type=event.type, order=OrderResponse.from_domain(event.order))

    def to_event(self) -> OrderEvent:
        return OrderEvent(type=self.type, order=self.order.to_domain())
