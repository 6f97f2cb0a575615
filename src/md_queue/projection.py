# src/md_queue/projection.py
"""Dealer queue projection — a pure function of the local order collection."""
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from datetime import date

from src.md_common.cents import cents_to_display
from src.md_common.enums import OrderStatus, QueueBucket
from src.md_order.domain.models import Order

# Every status maps to exactly one bucket; buckets are disjoint by construction.
STATUS_BUCKETS: dict[OrderStatus, QueueBucket] = {
    OrderStatus.PENDING: QueueBucket.PENDING,
    OrderStatus.COUNTERED: QueueBucket.PENDING,
    OrderStatus.ACCEPTED: QueueBucket.ACTIVE,
    OrderStatus.PAID: QueueBucket.ACTIVE,
    OrderStatus.IN_PROGRESS: QueueBucket.ACTIVE,
    OrderStatus.COMPLETED: QueueBucket.COMPLETED,
    OrderStatus.REJECTED: QueueBucket.REJECTED,
}


def bucket_for(status: OrderStatus) -> QueueBucket:
    return STATUS_BUCKETS[status]


def display_price(order: Order) -> str:
    return cents_to_display(order.display_price)


@dataclass(frozen=True)
class DealerQueue:
    pending: tuple[Order, ...] = ()
    active: tuple[Order, ...] = ()
    completed: tuple[Order, ...] = ()
    rejected: tuple[Order, ...] = ()
    unseen_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def unseen_count(self) -> int:
        return len(self.unseen_ids)

    @property
    def is_empty(self) -> bool:
        return not (self.pending or self.active or self.completed or self.rejected)

    def is_unseen(self, order_id: str) -> bool:
        return order_id in self.unseen_ids

    def bucket(self, bucket: QueueBucket) -> tuple[Order, ...]:
        return {
            QueueBucket.PENDING: self.pending,
            QueueBucket.ACTIVE: self.active,
            QueueBucket.COMPLETED: self.completed,
            QueueBucket.REJECTED: self.rejected,
        }[bucket]

    @property
    def upcoming(self) -> tuple[Order, ...]:
        """Active jobs by scheduled date (unscheduled last), newest first within a day."""
        by_created = sorted(self.active, key=lambda o: o.created_at, reverse=True)
        return tuple(
            sorted(
                by_created,
                key=lambda o: (o.scheduled_date is None, o.scheduled_date or date.min),
            )
        )


def project_queue(
    orders: Iterable[Order], unseen_ids: Collection[str] = frozenset()
) -> DealerQueue:
    """Split orders into the four display buckets, keeping collection order within each.

    Unseen flags for ids no longer in the collection are not counted.
    """
    buckets: dict[QueueBucket, list[Order]] = {b: [] for b in QueueBucket}
    present: set[str] = set()
    for order in orders:
        buckets[bucket_for(order.status)].append(order)
        present.add(order.id)
    return DealerQueue(
        pending=tuple(buckets[QueueBucket.PENDING]),
        active=tuple(buckets[QueueBucket.ACTIVE]),
        completed=tuple(buckets[QueueBucket.COMPLETED]),
        rejected=tuple(buckets[QueueBucket.REJECTED]),
        unseen_ids=frozenset(i for i in unseen_ids if i in present),
    )
