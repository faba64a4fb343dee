import math
from datetime import date, datetime


def coerce_number(value):
    # bool is an int subclass; a checkbox value is not a quantity
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            number = float(str(value).strip())
    except (ValueError, OverflowError):
        # huge JSON integers overflow a float
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def coerce_int(value):
    number = coerce_number(value)
    return int(number)


def coerce_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def parse_date(value):
    """Parse an ISO ``YYYY-MM-DD`` string. Returns None when it cannot."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        return None
