import math


def parse_amount(value) -> float:
    """Parse a number or numeric string, allowing thousands separators.

    Raises ValueError or TypeError when the input is not a number.
    """
    if isinstance(value, bool):
        raise TypeError("bool is not an amount")
    if isinstance(value, str):
        return float(value.strip().replace(",", ""))
    return float(value)


def coerce_amount(value) -> float:
    """Coerce user input to a non-negative float.

    Anything that is not a finite number (blank, text, NaN, inf) becomes 0.0,
    and negative values are clamped to 0.0. Never raises.
    """
    try:
        amount = parse_amount(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return round(amount, 2)


def format_currency(amount: float, symbol: str = "$") -> str:
    """Format a float as currency string, e.g. '$1,234.56'."""
    return f"{symbol}{amount:,.2f}"


def format_signed(amount: float, symbol: str = "$") -> str:
    """Format with +/- sign."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"
