"""
Conversions between ledger wire units and human-readable values.

Currency travels as integer minor units; timestamps as nanoseconds since the epoch.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from ticketing_client.platform.config.core_setting import settings


NANOS_PER_MILLI = 1_000_000
MILLIS_PER_SECOND = 1_000
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M'


def format_currency(
    amount: int, *, scale: Optional[int] = None, decimals: Optional[int] = None
) -> str:
    """1_000_000 minor units with scale 1e8 and 8 decimals -> '0.01000000'"""
    scale = scale or settings.CURRENCY_SCALE
    decimals = settings.CURRENCY_DECIMALS if decimals is None else decimals
    return f'{Decimal(amount) / Decimal(scale):.{decimals}f}'


def format_price(amount: int) -> str:
    return f'{format_currency(amount)} {settings.CURRENCY_SYMBOL}'


def nanos_to_datetime(nanos: int, tz: Optional[timezone] = None) -> datetime:
    millis = nanos // NANOS_PER_MILLI
    return datetime.fromtimestamp(millis / MILLIS_PER_SECOND, tz=tz)


def datetime_to_nanos(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.astimezone()
    delta = value - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000


def format_timestamp(
    nanos: int, *, fmt: str = DEFAULT_DATE_FORMAT, tz: Optional[timezone] = None
) -> str:
    return nanos_to_datetime(nanos, tz=tz).strftime(fmt)
