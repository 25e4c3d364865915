"""
Tests for aligning the needs samples with the call windows.
"""
import logging

import numpy as np
import pandas as pd
import pytest

from reservecrawler.aggregate import aggregate_needs, aggregate_needs_to_minutes, check_window_grid
from reservecrawler.exceptions import AlignmentError

START = '2017-03-07 00:00'


class TestWindowGrid:

    def test_valid_grid(self):
        check_window_grid(pd.date_range(START, periods=4, freq='15min', tz='UTC'))

    def test_off_grid(self):
        with pytest.raises(AlignmentError):
            check_window_grid(pd.DatetimeIndex(['2017-03-07 00:05'], tz='UTC'))

    def test_duplicate_window(self):
        with pytest.raises(AlignmentError):
            check_window_grid(pd.DatetimeIndex(['2017-03-07 00:00', '2017-03-07 00:00'], tz='UTC'))

    def test_unsorted_windows(self):
        with pytest.raises(AlignmentError):
            check_window_grid(pd.DatetimeIndex(['2017-03-07 00:15', '2017-03-07 00:00'], tz='UTC'))


class TestAggregateNeeds:

    def test_window_means(self, build_needs, build_calls):
        needs = build_needs(START, np.concatenate([np.arange(15.0), np.full(15, -4.0)]))
        calls = build_calls(START, neg=[-1.0, -2.0], pos=[3.0, 4.0])

        aligned = aggregate_needs(needs, calls)

        assert list(aligned.columns) == ['DateTime', 'avg_15min_MW', 'neg_MW', 'pos_MW']
        assert aligned['avg_15min_MW'].tolist() == pytest.approx([7.0, -4.0])
        assert aligned['neg_MW'].tolist() == [-1.0, -2.0]

    def test_samples_outside_windows_ignored(self, build_needs, build_calls):
        needs = build_needs(START, np.concatenate([np.full(15, 2.0), np.full(15, 100.0)]))
        calls = build_calls(START, neg=[0.0], pos=[0.0])

        aligned = aggregate_needs(needs, calls)

        assert aligned['avg_15min_MW'].tolist() == [2.0]

    def test_window_without_samples(self, build_needs, build_calls):
        needs = build_needs(START, np.ones(15))
        calls = build_calls(START, neg=[0.0, 0.0], pos=[1.0, 1.0])

        with pytest.raises(AlignmentError):
            aggregate_needs(needs, calls)

    def test_off_grid_calls(self, build_needs, build_calls):
        needs = build_needs(START, np.ones(30))
        calls = build_calls('2017-03-07 00:05', neg=[0.0], pos=[1.0])

        with pytest.raises(AlignmentError):
            aggregate_needs(needs, calls)

    def test_no_calls(self, build_needs, build_calls):
        needs = build_needs(START, np.ones(15))
        with pytest.raises(AlignmentError):
            aggregate_needs(needs, build_calls(START, neg=[], pos=[]))


class TestAggregateToMinutes:

    def test_minute_means(self, build_needs):
        needs = build_needs(START, np.arange(15.0))
        windows = pd.date_range(START, periods=1, freq='15min', tz='UTC')

        minutes = aggregate_needs_to_minutes(needs, windows)

        assert len(minutes) == 15
        assert minutes['avg_1min_MW'].tolist() == pytest.approx(list(np.arange(15.0)))
        assert minutes['DateTime'].iloc[-1] == pd.Timestamp('2017-03-07 00:14', tz='UTC')

    def test_missing_minute_takes_window_mean(self, build_needs, caplog):
        needs = build_needs(START, np.full(15, 10.0))
        gap = needs['DateTime'].dt.floor('1min') == pd.Timestamp('2017-03-07 00:03', tz='UTC')
        needs = needs[~gap].reset_index(drop=True)
        windows = pd.date_range(START, periods=1, freq='15min', tz='UTC')

        with caplog.at_level(logging.WARNING):
            minutes = aggregate_needs_to_minutes(needs, windows)

        assert minutes['avg_1min_MW'].iloc[3] == pytest.approx(10.0)
        assert not minutes['avg_1min_MW'].isna().any()
        assert 'window mean' in caplog.text

    def test_empty_window(self, build_needs):
        needs = build_needs(START, np.ones(15))
        windows = pd.date_range(START, periods=2, freq='15min', tz='UTC')

        with pytest.raises(AlignmentError):
            aggregate_needs_to_minutes(needs, windows)
