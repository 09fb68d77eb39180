import datetime
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date

from ..models.base import ZERO


def as_decimal(value, field="value", default=ZERO):
    """Decimal from request/form input; "" and None become `default`."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        # go through str() so floats don't leak binary noise
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError({field: f"'{value}' is not a number"})


def as_date(value, field="date"):
    if isinstance(value, datetime.date):
        return value
    if not value:
        raise ValidationError({field: "This field is required"})
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError({field: f"'{value}' is not a valid date"})
    return parsed
