"""Order negotiation state machine.

Single source of truth for which party may move an order between two
statuses. Pure lookup: no I/O, no state, never raises for unknown input.
"""

from src.md_common.enums import Actor, OrderStatus

# (from, to) -> parties allowed to fire the edge
ORDER_TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], frozenset[Actor]] = {
    (OrderStatus.PENDING, OrderStatus.COUNTERED): frozenset({Actor.DEALER}),
    (OrderStatus.PENDING, OrderStatus.ACCEPTED): frozenset({Actor.DEALER}),
    (OrderStatus.PENDING, OrderStatus.REJECTED): frozenset({Actor.DEALER}),
    (OrderStatus.COUNTERED, OrderStatus.ACCEPTED): frozenset({Actor.CLIENT}),
    # Client declines the counter, or the dealer withdraws it
    (OrderStatus.COUNTERED, OrderStatus.REJECTED): frozenset({Actor.CLIENT, Actor.DEALER}),
    (OrderStatus.ACCEPTED, OrderStatus.PAID): frozenset({Actor.CLIENT}),
    # Work may start before payment settles
    (OrderStatus.ACCEPTED, OrderStatus.IN_PROGRESS): frozenset({Actor.DEALER}),
    (OrderStatus.PAID, OrderStatus.IN_PROGRESS): frozenset({Actor.DEALER}),
    (OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED): frozenset({Actor.DEALER}),
}

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.REJECTED, OrderStatus.COMPLETED}
)


def _coerce(status: OrderStatus | str) -> OrderStatus | None:
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def _coerce_actor(actor: Actor | str) -> Actor | None:
    try:
        return Actor(actor)
    except ValueError:
        return None


def is_allowed_transition(
    from_status: OrderStatus | str,
    to_status: OrderStatus | str,
    actor: Actor | str,
) -> bool:
    """Return True if `actor` may move an order from `from_status` to `to_status`."""
    src, dst, who = _coerce(from_status), _coerce(to_status), _coerce_actor(actor)
    if src is None or dst is None or who is None:
        return False
    return who in ORDER_TRANSITIONS.get((src, dst), frozenset())


def allowed_targets(from_status: OrderStatus | str, actor: Actor | str) -> frozenset[OrderStatus]:
    """Statuses `actor` may move an order to from `from_status`."""
    src, who = _coerce(from_status), _coerce_actor(actor)
    return frozenset(
        dst
        for (edge_src, dst), actors in ORDER_TRANSITIONS.items()
        if edge_src == src and who in actors
    )


def is_terminal(status: OrderStatus | str) -> bool:
    """Return True if no edge leaves `status`."""
    return _coerce(status) in TERMINAL_STATUSES


_ACTION_BY_TARGET: dict[OrderStatus, str] = {
    OrderStatus.COUNTERED: "counter",
    OrderStatus.ACCEPTED: "accept",
    OrderStatus.REJECTED: "reject",
    OrderStatus.PAID: "pay",
    OrderStatus.IN_PROGRESS: "start",
    OrderStatus.COMPLETED: "complete",
}


def action_name(to_status: OrderStatus | str) -> str:
    """User-facing verb for the action that requests `to_status`."""
    target = _coerce(to_status)
    if target is None:
        return f"move to {to_status}"
    return _ACTION_BY_TARGET.get(target, f"move to {target.value}")
