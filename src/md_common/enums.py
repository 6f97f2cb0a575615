"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    """Negotiation status: pending → countered | accepted | rejected → paid → completed"""
    PENDING = "pending"
    COUNTERED = "countered"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    PAID = "paid"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Actor(str, Enum):
    """Party of an order that fires a transition"""
    DEALER = "dealer"
    CLIENT = "client"


class PushEventType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"


class QueueBucket(str, Enum):
    """Dealer queue display bucket"""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    REJECTED = "rejected"
