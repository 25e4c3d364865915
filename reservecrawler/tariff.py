"""
Tariff periods of the weekly reserve auctions.

HT ("Hochtarif") covers Monday to Friday 08:00-20:00 local time, excluding
German nationwide public holidays. Everything else is NT ("Niedertarif").
"""

from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import FrozenSet

HT_START_HOUR = 8
HT_END_HOUR = 20

# Holidays declared nationwide for a single year only
ONE_OFF_HOLIDAYS = {
    date(2017, 10, 31),  # 500th anniversary of the Reformation
}


def easter_sunday(year: int) -> date:
    """Gregorian Easter Sunday (anonymous Gregorian algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


@lru_cache(maxsize=None)
def national_holidays(year: int) -> FrozenSet[date]:
    """Return the German nationwide public holidays of a year."""
    easter = easter_sunday(year)
    holidays = {
        date(year, 1, 1),                   # Neujahr
        easter - timedelta(days=2),         # Karfreitag
        easter + timedelta(days=1),         # Ostermontag
        date(year, 5, 1),                   # Tag der Arbeit
        easter + timedelta(days=39),        # Christi Himmelfahrt
        easter + timedelta(days=50),        # Pfingstmontag
        date(year, 10, 3),                  # Tag der Deutschen Einheit
        date(year, 12, 25),
        date(year, 12, 26),
    }
    holidays.update(d for d in ONE_OFF_HOLIDAYS if d.year == year)
    return frozenset(holidays)


def is_holiday(day: date) -> bool:
    return day in national_holidays(day.year)


def tariff_period(local_time: datetime) -> str:
    """
    Return 'HT' or 'NT' for a local wall-clock time.

    Args:
        local_time: Timestamp in German local time

    Returns:
        Tariff period code
    """
    day = local_time.date()
    if local_time.weekday() >= 5 or is_holiday(day):
        return 'NT'
    if HT_START_HOUR <= local_time.hour < HT_END_HOUR:
        return 'HT'
    return 'NT'
