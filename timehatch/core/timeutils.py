"""Duration and money helpers shared by reports and exports."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, NamedTuple, Optional, Union

from .errors import ValidationError

Currency = Literal["USD", "CHF", "EUR", "GBP", "CAD", "AUD"]
CURRENCIES = ("USD", "CHF", "EUR", "GBP", "CAD", "AUD")

# All supported currencies use two decimal places
MINOR_UNIT_FACTOR = 100


def format_time(minutes: float, show_decimal: bool = False) -> str:
    """
    Format a duration given in minutes.

    >>> format_time(90)
    '1h 30m'
    >>> format_time(105, show_decimal=True)
    '1h 45m (1.75h)'
    """
    if minutes == 0:
        return "0m (0.00h)" if show_decimal else "0m"

    total_minutes = int(Decimal(str(minutes)).quantize(Decimal("1"), ROUND_HALF_UP))
    hours, remaining = divmod(total_minutes, 60)

    if hours > 0:
        text = f"{hours}h"
        if remaining > 0:
            text += f" {remaining}m"
    else:
        text = f"{remaining}m"

    if show_decimal:
        text += f" ({total_minutes / 60:.2f}h)"
    return text


def format_duration(ms: int) -> str:
    """Label for a duration in milliseconds, e.g. ``1h 30m (1.50h)``."""
    return format_time(ms // 60000, show_decimal=True)


class CsvDuration(NamedTuple):
    hours_minutes: str
    decimal_hours: str


def format_time_for_csv(minutes: int) -> CsvDuration:
    """Both duration renderings used by the report export."""
    return CsvDuration(format_time(minutes), f"{minutes / 60:.2f}h")


def duration_ms(started_at: datetime, stopped_at: Optional[datetime]) -> int:
    """Milliseconds between two instants, 0 for a running entry."""
    if stopped_at is None:
        return 0
    return int((stopped_at - started_at).total_seconds() * 1000)


def minor_unit_factor(currency: str) -> int:
    if currency not in CURRENCIES:
        raise ValidationError(
            f"Unsupported currency: {currency}", {"currency": currency}
        )
    return MINOR_UNIT_FACTOR


def to_minor(value: Union[Decimal, float, str], currency: Currency = "USD") -> int:
    """Convert a major-unit amount to integer minor units."""
    amount = Decimal(str(value)) * minor_unit_factor(currency)
    return int(amount.quantize(Decimal("1"), ROUND_HALF_UP))


def from_minor(minor: int, currency: Currency = "USD") -> Decimal:
    """Convert integer minor units to a major-unit amount."""
    return Decimal(minor) / minor_unit_factor(currency)
