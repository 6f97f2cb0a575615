"""Tests for md_common.enums — values must match the orders CHECK constraint."""

from src.md_common.enums import Actor, OrderStatus, PushEventType, QueueBucket


class TestAllEnumsAreStr:
    """All enums inherit from (str, Enum) for JSON serialization."""

    def test_order_status_is_str(self) -> None:
        assert isinstance(OrderStatus.PENDING, str)
        assert OrderStatus.IN_PROGRESS == "in_progress"

    def test_actor_is_str(self) -> None:
        assert Actor.DEALER == "dealer"

    def test_push_event_type_is_str(self) -> None:
        assert PushEventType.INSERT == "insert"


class TestOrderStatus:
    def test_all_values(self) -> None:
        expected = {
            "pending", "countered", "accepted", "rejected",
            "paid", "in_progress", "completed",
        }
        assert {s.value for s in OrderStatus} == expected

    def test_from_wire_value(self) -> None:
        assert OrderStatus("countered") is OrderStatus.COUNTERED


class TestActor:
    def test_all_values(self) -> None:
        assert {a.value for a in Actor} == {"dealer", "client"}


class TestQueueBucket:
    def test_all_values(self) -> None:
        assert {b.value for b in QueueBucket} == {"pending", "active", "completed", "rejected"}
