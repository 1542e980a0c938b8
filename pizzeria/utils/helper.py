import datetime
from decimal import Decimal, ROUND_HALF_UP
from zoneinfo import ZoneInfo

from pizzeria.utils.config import settings

CENTS = Decimal("0.01")


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def to_utc(dt: datetime.datetime) -> datetime.datetime:
    # If dt is None, return as-is
    if dt is None:
        return dt
    # Naive values come back from SQLite; they are stored as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def restaurant_now() -> datetime.datetime:
    """Current wall-clock time in the restaurant's timezone."""
    return utcnow().astimezone(ZoneInfo(settings.RESTAURANT_TIMEZONE))


def money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_datetime(value: str) -> datetime.datetime:
    """Parse an ISO-8601 timestamp (a trailing Z is accepted). Raises ValueError."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        # naive client times are restaurant-local
        parsed = parsed.replace(tzinfo=ZoneInfo(settings.RESTAURANT_TIMEZONE))
    return parsed.astimezone(datetime.timezone.utc)
