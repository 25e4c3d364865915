"""
Tests for date handling and range validation.
"""
from datetime import date, datetime, timedelta

import pytest

from reservecrawler.common import (
    parse_date, iter_weeks, iter_months, week_bounds, resolve_utc_offset, validate_date_range
)
from reservecrawler.constants import NEEDS_FIRST_DATE
from reservecrawler.exceptions import DateRangeError


class TestParseDate:

    @pytest.mark.parametrize("value", [
        '2017-03-07', '07.03.2017', date(2017, 3, 7), datetime(2017, 3, 7, 13, 30),
    ])
    def test_formats(self, value):
        assert parse_date(value) == date(2017, 3, 7)

    def test_invalid(self):
        with pytest.raises(DateRangeError):
            parse_date('03/07/2017')

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_date('yesterday')


class TestCalendarHelpers:

    def test_week_bounds(self):
        assert week_bounds(date(2017, 3, 7)) == (date(2017, 3, 6), date(2017, 3, 12))

    def test_iter_weeks(self):
        weeks = list(iter_weeks(date(2017, 3, 7), date(2017, 3, 14)))
        assert weeks == [
            (date(2017, 3, 6), date(2017, 3, 12)),
            (date(2017, 3, 13), date(2017, 3, 19)),
        ]

    def test_iter_months_across_year(self):
        months = list(iter_months(date(2016, 12, 15), date(2017, 2, 1)))
        assert months == [(2016, 12), (2017, 1), (2017, 2)]


class TestUtcOffset:

    def test_winter(self):
        offset = resolve_utc_offset(date(2017, 3, 7), date(2017, 3, 14))
        assert offset.utcoffset(None) == timedelta(hours=1)

    def test_summer(self):
        offset = resolve_utc_offset(date(2017, 7, 1), date(2017, 7, 31))
        assert offset.utcoffset(None) == timedelta(hours=2)

    def test_year_boundary_in_winter(self):
        offset = resolve_utc_offset(date(2016, 12, 30), date(2017, 1, 2))
        assert offset.utcoffset(None) == timedelta(hours=1)

    @pytest.mark.parametrize("start,end", [
        (date(2017, 3, 20), date(2017, 3, 30)),   # spring forward on 26.03.
        (date(2017, 10, 29), date(2017, 10, 29)),  # fall back on the day itself
    ])
    def test_dst_transition(self, start, end):
        with pytest.raises(DateRangeError):
            resolve_utc_offset(start, end)


class TestValidateDateRange:

    def test_valid(self):
        validate_date_range(date(2017, 3, 7), date(2017, 3, 14), first_date=NEEDS_FIRST_DATE)

    def test_reversed(self):
        with pytest.raises(DateRangeError):
            validate_date_range(date(2017, 3, 14), date(2017, 3, 7))

    def test_too_long(self):
        with pytest.raises(DateRangeError):
            validate_date_range(date(2016, 11, 1), date(2017, 12, 31), check_dst=False)

    def test_before_first_date(self):
        with pytest.raises(DateRangeError):
            validate_date_range(date(2010, 1, 4), date(2010, 1, 5), first_date=NEEDS_FIRST_DATE)

    def test_dst_check_can_be_skipped(self):
        validate_date_range(date(2017, 3, 20), date(2017, 3, 30), check_dst=False)
