"""
Billing period arithmetic for recurring fee rules.

A period starts on a boundary date and spans coverage_period_value units of
coverage_period_type; its end is the day before the next boundary. Month and
year steps clamp to the last day of shorter months (Jan 31 + 1 month = Feb 28/29).
"""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from core.constants import CoveragePeriodType


@dataclass(frozen=True)
class BillingPeriod:
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def label(self) -> str:
        return f"{self.start.strftime('%d/%m/%Y')} - {self.end.strftime('%d/%m/%Y')}"


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def add_period(day: date, value: int, period_type: str, times: int = 1) -> date:
    """Move a boundary date forward by `times` coverage periods"""
    steps = value * times
    if period_type == CoveragePeriodType.WEEK:
        return day + timedelta(weeks=steps)
    if period_type == CoveragePeriodType.MONTH:
        return _add_months(day, steps)
    if period_type == CoveragePeriodType.YEAR:
        return _add_months(day, steps * 12)
    raise ValueError(f"Unknown coverage period type: {period_type}")


def coverage_end(start: date, value: int, period_type: str) -> date:
    """Last day covered by a period starting on `start`"""
    return add_period(start, value, period_type) - timedelta(days=1)


def period_starting(start: date, value: int, period_type: str) -> BillingPeriod:
    return BillingPeriod(start=start, end=coverage_end(start, value, period_type))


def current_period(origin: date, value: int, period_type: str, anchor: date) -> BillingPeriod:
    """
    The billing period that is current on `anchor`.

    Rolls forward from `origin` one period at a time until the period's end is
    on or after the anchor. Never rolls backwards: an anchor before `origin`
    yields the period starting at `origin`. Each step is computed from `origin`
    so month clamping does not drift (Jan 31 -> Feb 28 -> Mar 31).
    """
    if value < 1:
        raise ValueError("Coverage period value must be at least 1")
    times = 0
    start = origin
    next_start = add_period(origin, value, period_type, 1)
    while next_start - timedelta(days=1) < anchor:
        times += 1
        start = next_start
        next_start = add_period(origin, value, period_type, times + 1)
    return BillingPeriod(start=start, end=next_start - timedelta(days=1))


def describe_coverage(value: int, period_type: str) -> str:
    """Human label like '1 month' or '3 months'"""
    unit = dict(CoveragePeriodType.CHOICES).get(period_type, period_type).lower()
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"
