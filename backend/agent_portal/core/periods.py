"""Date and period boundaries used by the aggregators.

Timestamps are compared as naive datetimes in the server reference
timezone (``settings.TIMEZONE``); PostgreSQL sessions are pinned to the
same zone in ``create_db_engine``.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from agent_portal.core.config import settings
from agent_portal.core.errors import ValidationError

STATEMENT_PRESETS = ("all", "mtd", "past30", "past90")
EARLIEST_STATEMENT_DATE = date(2000, 1, 1)


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Current wall-clock time in the reference timezone, without tzinfo."""
    return datetime.now(ZoneInfo(tz_name or settings.TIMEZONE)).replace(tzinfo=None)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)


def validate_date_range(start_date: date, end_date: date) -> None:
    if start_date is None or end_date is None:
        raise ValidationError("start_date and end_date are required")
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")


def inclusive_day_bounds(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    """Half-open [start 00:00, end+1 00:00) covering every moment of end_date."""
    validate_date_range(start_date, end_date)
    lower = datetime.combine(start_date, time.min)
    upper = datetime.combine(end_date + timedelta(days=1), time.min)
    return lower, upper


def resolve_date_range(preset: str, today: Optional[date] = None) -> Tuple[date, date]:
    """Statement date range for one of the dashboard presets.

    all     2000-01-01 .. today
    mtd     first of this month .. today
    past30  today - 30 days .. today
    past90  today - 90 days .. today
    """
    today = today or local_now().date()
    if preset == "all":
        return EARLIEST_STATEMENT_DATE, today
    if preset == "mtd":
        return today + relativedelta(day=1), today
    if preset == "past30":
        return today - relativedelta(days=30), today
    if preset == "past90":
        return today - relativedelta(days=90), today
    raise ValidationError(f"Unknown date range preset. Must be one of: {list(STATEMENT_PRESETS)}")
