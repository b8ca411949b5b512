from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_decimal(amount):
    """Parse a JSON number or numeric string into a Decimal, or None if it isn't one."""
    if isinstance(amount, bool) or amount is None:
        return None
    try:
        # str() first so floats like 0.1 + 0.2 keep their shortest repr
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def to_minor_units(amount):
    """Convert a major-unit amount (e.g. 19.99) to integer minor units (1999).

    Rounds half-up exactly once, so 0.1 + 0.2 becomes 30 rather than 30.000000000000004
    truncated or 29 from float drift.
    """
    value = to_decimal(amount)
    if value is None:
        raise ValueError(f"Invalid amount: {amount!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def same_price(amount, price):
    """True when two major-unit amounts agree to the cent."""
    left, right = to_decimal(amount), to_decimal(price)
    if left is None or right is None:
        return False
    return left.quantize(CENT, rounding=ROUND_HALF_UP) == right.quantize(CENT, rounding=ROUND_HALF_UP)


def format_price(price):
    return str((to_decimal(price) or Decimal("0")).quantize(CENT))
