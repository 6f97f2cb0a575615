"""Integer arithmetic utilities for order prices.

All prices (proposed and agreed) are int cents. No float, no Decimal.
"""


def validate_price(price: int) -> None:
    """Validate that a proposed or countered price is a positive amount of cents."""
    if isinstance(price, bool) or not isinstance(price, int):
        raise ValueError(f"Price must be an integer amount of cents, got {price!r}")
    if price <= 0:
        raise ValueError(f"Price must be greater than 0 cents, got {price}")


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 12000 -> '$120.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
