"""Push channel events — the typed sequence a per-party topic yields."""
from dataclasses import dataclass

from src.md_common.enums import PushEventType
from src.md_order.domain.models import Order


@dataclass(frozen=True)
class OrderEvent:
    """One delivery from the push channel.

    The channel carries the post-mutation record, not a diff. Delivery is
    at-least-once and unordered; deduplication happens on merge.
    """

    type: PushEventType
    order: Order
