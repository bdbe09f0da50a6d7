from decimal import Decimal, InvalidOperation


def parse_decimal(value):
    """Decimal for a finite numeric string, else None."""
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def parse_int(value, default=None):
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def format_money(value) -> str:
    if value is None:
        return "$0.00"
    return f"${Decimal(value):.2f}"
