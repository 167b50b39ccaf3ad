"""
Cron occurrence calculation for dosage jobs
"""
from datetime import date, datetime, time, timedelta
from typing import Optional
import logging

from croniter import croniter

from pillreminder.utils.timezone import now_local, start_of_day, to_local

logger = logging.getLogger(__name__)


def daily_cron_expression(dosage_time: time) -> str:
    """Cron expression firing every day at the dosage's hour:minute, e.g. "5 9 * * *"."""
    return f"{dosage_time.minute} {dosage_time.hour} * * *"


def next_occurrence(
    cron_expression: str,
    after: Optional[datetime],
    start_date: date,
    end_date: Optional[date] = None,
) -> Optional[datetime]:
    """
    First cron match strictly after `after` and not before `start_date`.
    Returns None once the match would fall after `end_date`. Evaluated in the
    configured timezone; the result is tz-aware.
    """
    window_start = start_of_day(start_date) - timedelta(seconds=1)
    base = to_local(after) if after is not None else now_local()
    base = max(base, window_start)
    nxt = croniter(cron_expression, base).get_next(datetime)
    logger.debug(f"[Cron] base={base.isoformat()} expr={cron_expression} next={nxt.isoformat()}")
    if end_date is not None and nxt.date() > end_date:
        return None
    return nxt
