"""
Common utilities shared across fetchers, preprocessors and runners.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Tuple
import zoneinfo

from .config import LOCAL_TIMEZONE
from .exceptions import DateRangeError

# Longest range the single-offset time-zone rule is valid for
MAX_RANGE_DAYS = 366


def setup_logging(debug=False):
    """
    Setup logging configuration.

    Args:
        debug: If True, set log level to DEBUG, otherwise INFO

    Returns:
        Logger instance
    """
    log_level = logging.DEBUG if debug else logging.INFO

    # Configure the package logger, every module logs below it
    logger = logging.getLogger('reservecrawler')
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    handler = logging.StreamHandler()
    handler.setLevel(log_level)

    if debug:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Request URLs carry query parameters, keep them out of the log
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    return logger


def parse_date(value) -> date:
    """
    Parse a calendar date.

    Accepts date/datetime objects and strings in YYYY-MM-DD or the German
    DD.MM.YYYY format used by the portals.

    Args:
        value: Date-like value

    Returns:
        date object

    Raises:
        DateRangeError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    for fmt in ('%Y-%m-%d', '%d.%m.%Y'):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise DateRangeError(f"Invalid date '{value}'. Expected YYYY-MM-DD or DD.MM.YYYY")


def date_range(start_date, end_date):
    """
    Generate dates between start_date and end_date (inclusive).

    Args:
        start_date: Start date
        end_date: End date

    Yields:
        date objects for each day in range
    """
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def week_bounds(day: date) -> Tuple[date, date]:
    """Return the Monday and Sunday of the week containing day."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def iter_weeks(start_date: date, end_date: date) -> Iterator[Tuple[date, date]]:
    """
    Yield (monday, sunday) for every auction week touching the range.

    Args:
        start_date: First requested day
        end_date: Last requested day
    """
    monday, _ = week_bounds(start_date)
    while monday <= end_date:
        yield monday, monday + timedelta(days=6)
        monday += timedelta(days=7)


def iter_months(start_date: date, end_date: date) -> Iterator[Tuple[int, int]]:
    """Yield (year, month) for every month touching the range."""
    year, month = start_date.year, start_date.month
    while (year, month) <= (end_date.year, end_date.month):
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


def resolve_utc_offset(start_date: date, end_date: date, tz_name: str = LOCAL_TIMEZONE) -> timezone:
    """
    Resolve the single UTC offset of the local zone over a date range.

    Source timestamps are wall-clock times without offset. They are converted
    with one fixed offset, which is only valid if the range does not contain
    a daylight saving transition.

    Args:
        start_date: First day of the range
        end_date: Last day of the range
        tz_name: IANA time zone of the source data

    Returns:
        Fixed-offset timezone

    Raises:
        DateRangeError: If the range spans a DST transition
    """
    tz = zoneinfo.ZoneInfo(tz_name)
    offsets = set()
    for day in date_range(start_date, end_date):
        offsets.add(datetime(day.year, day.month, day.day, 0, 0, tzinfo=tz).utcoffset())
        offsets.add(datetime(day.year, day.month, day.day, 23, 59, 59, tzinfo=tz).utcoffset())

    if len(offsets) > 1:
        raise DateRangeError(
            f"Date range {start_date} to {end_date} spans a daylight saving transition "
            f"in {tz_name}; request the periods before and after the switch separately"
        )

    return timezone(offsets.pop())


def validate_date_range(start_date: date, end_date: date, first_date: date = None,
                        check_dst: bool = True) -> None:
    """
    Validate a requested date range before anything is fetched.

    Args:
        start_date: Start date
        end_date: End date
        first_date: Oldest date offered by the source (optional)
        check_dst: Reject ranges spanning a DST transition

    Raises:
        DateRangeError: If validation fails
    """
    if start_date > end_date:
        raise DateRangeError(f"Start date {start_date} must be before or equal to end date {end_date}")

    days = (end_date - start_date).days + 1
    if days > MAX_RANGE_DAYS:
        raise DateRangeError(f"Date range ({days} days) exceeds maximum allowed ({MAX_RANGE_DAYS} days)")

    if first_date is not None and start_date < first_date:
        raise DateRangeError(f"No data available before {first_date} (requested {start_date})")

    if check_dst:
        resolve_utc_offset(start_date, end_date)
