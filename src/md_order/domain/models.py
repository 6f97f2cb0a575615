"""Order domain model — pure dataclass, no SQLAlchemy or pydantic dependency."""
from dataclasses import dataclass
from datetime import date, datetime

from src.md_common.enums import Actor, OrderStatus

# Statuses reached only after a price was fixed by acceptance or counter-offer.
PRICED_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.COUNTERED,
        OrderStatus.ACCEPTED,
        OrderStatus.PAID,
        OrderStatus.IN_PROGRESS,
        OrderStatus.COMPLETED,
    }
)


@dataclass(frozen=True)
class Order:
    id: str
    gig_id: str
    client_id: str
    dealer_id: str
    proposed_price: int  # cents, fixed at creation
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    agreed_price: int | None = None  # cents, set by accept or counter
    notes: str | None = None
    scheduled_date: date | None = None
    opened_at: datetime | None = None  # first time the dealer viewed the order
    # Joined display data, never authoritative
    client_name: str | None = None
    dealer_name: str | None = None

    def __post_init__(self) -> None:
        # Coerce raw strings so a record can never hold an unknown status
        object.__setattr__(self, "status", OrderStatus(self.status))
        if self.proposed_price <= 0:
            raise ValueError(f"proposed_price must be positive, got {self.proposed_price}")
        if self.agreed_price is not None and self.agreed_price <= 0:
            raise ValueError(f"agreed_price must be positive, got {self.agreed_price}")
        if self.status in PRICED_STATUSES and self.agreed_price is None:
            raise ValueError(f"order {self.id} in status {self.status.value} has no agreed_price")
        if self.client_id == self.dealer_id:
            raise ValueError(f"order {self.id} has the same client and dealer")

    @property
    def display_price(self) -> int:
        return self.agreed_price if self.agreed_price is not None else self.proposed_price

    @property
    def price_to_agree(self) -> int:
        """Price fixed by an accept: the countered price if any, else the proposal."""
        return self.display_price

    @property
    def is_opened(self) -> bool:
        return self.opened_at is not None

    def party_of(self, user_id: str) -> Actor | None:
        if user_id == self.dealer_id:
            return Actor.DEALER
        if user_id == self.client_id:
            return Actor.CLIENT
        return None
