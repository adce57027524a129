"""Calendar-day helpers.

Every date in the fulfillment domain is compared at UTC day granularity.
Timestamps are converted to UTC before their day is taken, so an evening
timestamp in a western timezone lands on the following UTC day.
"""

from datetime import UTC, date, datetime

from protean.exceptions import ValidationError


def normalize_day(value, field: str = "date") -> date:
    """Return the UTC calendar day for a date, datetime or ISO-8601 string."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(UTC).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return normalize_day(datetime.fromisoformat(text.replace("Z", "+00:00")), field)
        except ValueError:
            pass
    raise ValidationError({field: [f"Invalid date: {value!r}"]})


def day_key(value, field: str = "date") -> str:
    """Return the ``YYYY-MM-DD`` key for a calendar day."""
    return normalize_day(value, field).isoformat()


def utc_today() -> date:
    return datetime.now(UTC).date()
