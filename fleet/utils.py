# fleet/utils.py
import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from fleet.exceptions import ValidationError

CENTS = Decimal('0.01')


def parse_date(value, field_name='date'):
    """
    Turns an ISO string (YYYY-MM-DD, time part ignored) or a date/datetime
    into a ``datetime.date``.
    Example:
        Input: "2024-03-01T10:00:00"
        Output: date(2024, 3, 1)
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not value:
        raise ValidationError(f"Missing {field_name}")
    try:
        return datetime.date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"Invalid {field_name}: {value}")


def parse_money(value, field_name='amount', positive=False):
    if value is None or value == '':
        raise ValidationError(f"Missing {field_name}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field_name}: {value}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field_name}: {value}")
    if positive and amount <= 0:
        raise ValidationError(f"{field_name.replace('_', ' ').capitalize()} must be greater than zero")
    return amount


def round_money(amount):
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(amount):
    if amount is None:
        return None
    return str(round_money(amount))


def format_currency(amount):
    """Formats a value as US dollars, e.g. 1234.5 -> $1,234.50."""
    if amount is None or amount == '':
        return '$0.00'
    try:
        value = round_money(Decimal(str(amount)))
    except (InvalidOperation, ValueError):
        return '$0.00'
    return f"${value:,.2f}"


def isoformat(value):
    if value is None:
        return None
    return value.isoformat()
