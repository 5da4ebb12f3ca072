"""Billing period arithmetic.

Periods are fixed 14-day windows counted from a UTC epoch. Period 1 starts at
the epoch; period ``n`` starts ``(n - 1) * 14`` days later and ends one second
before period ``n + 1`` starts. Every function takes ``now`` explicitly so
results never depend on the wall clock or the caller's time zone.
"""

import math
from datetime import datetime, timedelta

from settlement.core.config import DEFAULT_CONFIG, SettlementConfig
from settlement.models.shared import ensure_utc
from settlement.schemas.period import BillingPeriod, TimeRemaining

_SECONDS_PER_DAY = 24 * 60 * 60


def period_number_for_date(date: datetime, config: SettlementConfig = DEFAULT_CONFIG) -> int:
    """Period number for ``date``; zero or negative before the epoch."""
    # timedelta.days floors, so instants before the epoch give negative days
    days_since_epoch = (ensure_utc(date) - config.epoch).days
    return days_since_epoch // config.period_length_days + 1


def period_by_number(
    period_number: int, config: SettlementConfig = DEFAULT_CONFIG
) -> BillingPeriod:
    """Get the billing period with the given number.

    Args:
        period_number: 1-based period number.
        config: Settlement constants.

    Returns:
        The billing period.

    Raises:
        ValueError: If ``period_number`` is less than 1.
    """
    if period_number < 1:
        raise ValueError(f"Billing period number must be >= 1, got {period_number}")

    length = timedelta(days=config.period_length_days)
    start = config.epoch + (period_number - 1) * length
    end = start + length - timedelta(seconds=1)
    return BillingPeriod(period_number=period_number, start=start, end=end)


def period_for_date(date: datetime, config: SettlementConfig = DEFAULT_CONFIG) -> BillingPeriod:
    """Get the billing period containing ``date``.

    Raises:
        ValueError: If ``date`` precedes the billing epoch.
    """
    period_number = period_number_for_date(date, config)
    if period_number < 1:
        raise ValueError(f"{date.isoformat()} precedes the billing epoch")
    return period_by_number(period_number, config)


def current_period(now: datetime, config: SettlementConfig = DEFAULT_CONFIG) -> BillingPeriod:
    """Get the billing period in progress at ``now``."""
    return period_for_date(now, config)


def is_date_in_period(date: datetime, period: BillingPeriod) -> bool:
    """Check if a date falls within a billing period.

    The upper bound is the next period's start, so instants between ``end``
    and the following second still belong to this period.
    """
    date = ensure_utc(date)
    return ensure_utc(period.start) <= date < ensure_utc(period.next_start)


def periods_before(
    current: BillingPeriod, count: int, config: SettlementConfig = DEFAULT_CONFIG
) -> list[BillingPeriod]:
    """Get up to ``count`` periods preceding ``current``, most recent first."""
    periods = []
    for offset in range(1, count + 1):
        period_number = current.period_number - offset
        if period_number < 1:
            break
        periods.append(period_by_number(period_number, config))
    return periods


def time_remaining(period: BillingPeriod, now: datetime) -> TimeRemaining:
    """Break down the time left until ``period`` ends."""
    remaining = max(timedelta(0), ensure_utc(period.end) - ensure_utc(now))
    total_ms = int(remaining.total_seconds() * 1000)
    total_seconds = total_ms // 1000
    return TimeRemaining(
        days=total_seconds // _SECONDS_PER_DAY,
        hours=(total_seconds % _SECONDS_PER_DAY) // 3600,
        minutes=(total_seconds % 3600) // 60,
        seconds=total_seconds % 60,
        total_ms=total_ms,
    )


def days_remaining(period: BillingPeriod, now: datetime) -> int:
    """Whole days left in ``period``, rounded up."""
    remaining = (ensure_utc(period.end) - ensure_utc(now)).total_seconds()
    return max(0, math.ceil(remaining / _SECONDS_PER_DAY))


def format_period(period: BillingPeriod) -> str:
    """Format a billing period for display, e.g. ``01 Jan 2024 - 14 Jan 2024``."""
    return f"{period.start:%d %b %Y} - {period.end:%d %b %Y}"
