"""Reduce a 3-hour forecast feed to one representative entry per future day."""
import logging
from datetime import date, datetime, tzinfo
from typing import List, Optional, Set

from weather_data import ForecastEntry, ForecastSeries

HOUR_WINDOW = 3


def _local(moment: datetime, tz: Optional[tzinfo]) -> datetime:
    # astimezone(None) converts to the system's local zone
    return moment.astimezone(tz)


def five_day_forecast(
    series: ForecastSeries,
    reference_time: Optional[datetime] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None
) -> List[ForecastEntry]:
    """
    Pick one forecast entry per future calendar day.

    An entry qualifies when its hour of day is within three hours of the
    reference time's hour, so viewing the forecast at 17:00 shows each day's
    sample closest to 17:00. Today's entries are skipped, and when two samples
    of the same day qualify the earlier one wins.

    Args:
        series: Decoded forecast series
        reference_time: Time of day to match against (defaults to now)
        now: Current instant, used to determine "today" (defaults to the wall clock)
        tz: Zone used for calendar days and hours (defaults to the local zone)

    Returns:
        Entries sorted by timestamp. May be shorter than five days, never padded.
    """
    now = now or datetime.now().astimezone()
    reference_time = reference_time or now
    today = _local(now, tz).date()
    current_hour = _local(reference_time, tz).hour

    matched_days: Set[date] = set()
    selected: List[ForecastEntry] = []
    for entry in series.entries:
        local_time = _local(entry.timestamp, tz)
        day = local_time.date()
        if day <= today:
            continue
        if abs(current_hour - local_time.hour) > HOUR_WINDOW:
            continue
        if day in matched_days:
            continue
        matched_days.add(day)
        selected.append(entry)

    selected.sort(key=lambda entry: entry.timestamp)
    logging.debug(f"Five day forecast: {len(selected)} of {len(series)} entries selected (hour {current_hour})")
    return selected
