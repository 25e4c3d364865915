"""
Needs Aggregator: align the 4-second needs series with the 15-minute calls.
"""

import logging
from typing import Optional, Union

import numpy as np
import pandas as pd

from .constants import CALL_WINDOW_MINUTES, MINUTES_PER_WINDOW
from .exceptions import AlignmentError
from .schema import (
    NEEDS_COLUMNS, CALLS_COLUMNS, ALIGNED_COLUMNS, MINUTE_NEEDS_COLUMNS, select_columns
)

LOGGER = logging.getLogger(__name__)

WINDOW_FREQ = f"{CALL_WINDOW_MINUTES}min"


def check_window_grid(starts: pd.DatetimeIndex) -> None:
    """
    Check that window starts lie on the 15-minute grid, are unique and sorted.

    Raises:
        AlignmentError: On the first violation
    """
    off_grid = starts != starts.floor(WINDOW_FREQ)
    if off_grid.any():
        raise AlignmentError(f"Call window {starts[np.argmax(off_grid)]} is not on the 15-minute grid")

    duplicated = starts.duplicated()
    if duplicated.any():
        raise AlignmentError(f"Call window {starts[np.argmax(duplicated)]} appears more than once")

    if not starts.is_monotonic_increasing:
        raise AlignmentError("Call windows are not in chronological order")


def _window_means(needs: pd.DataFrame, starts: pd.DatetimeIndex) -> pd.Series:
    """Mean needs per window start, NaN for windows without samples."""
    buckets = needs['DateTime'].dt.floor(WINDOW_FREQ)
    means = needs.groupby(buckets)['MW'].mean()
    return means.reindex(starts)


def aggregate_needs(needs: pd.DataFrame, calls: pd.DataFrame,
                    logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Average the needs samples of every call window.

    A window covers the samples with timestamp in [start, start + 15 min).
    Samples outside all call windows are ignored.

    Args:
        needs: NeedsSample table
        calls: CallWindow table
        logger: Logger instance

    Returns:
        AlignedWindow table, one row per call window

    Raises:
        AlignmentError: If a window has no samples or the call grid is broken
    """
    logger = logger or LOGGER
    needs = select_columns(needs, NEEDS_COLUMNS, 'needs')
    calls = select_columns(calls, CALLS_COLUMNS, 'calls')

    if calls.empty:
        raise AlignmentError("No call windows to align the needs with")

    starts = pd.DatetimeIndex(calls['DateTime'])
    check_window_grid(starts)

    avg = _window_means(needs, starts)
    empty = avg.isna().to_numpy()
    if empty.any():
        raise AlignmentError(
            f"No needs samples in window starting {starts[np.argmax(empty)]} "
            f"({int(empty.sum())} of {len(starts)} windows empty)"
        )

    aligned = pd.DataFrame({
        'DateTime': calls['DateTime'],
        'avg_15min_MW': avg.to_numpy(),
        'neg_MW': calls['neg_MW'],
        'pos_MW': calls['pos_MW'],
    })

    logger.info(f"✓ Aligned {len(needs)} needs samples to {len(aligned)} call windows")
    return select_columns(aligned, ALIGNED_COLUMNS, 'aligned windows')


def aggregate_needs_to_minutes(needs: pd.DataFrame, windows: Union[pd.Series, pd.DatetimeIndex],
                               logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Average the needs samples of every minute of the given windows.

    Minutes without samples inside an otherwise populated window take the
    window mean.

    Args:
        needs: NeedsSample table
        windows: Window starts (e.g. the DateTime column of the aligned table)
        logger: Logger instance

    Returns:
        MinuteNeeds table with 15 rows per window

    Raises:
        AlignmentError: If a whole window has no samples
    """
    logger = logger or LOGGER
    needs = select_columns(needs, NEEDS_COLUMNS, 'needs')
    starts = pd.DatetimeIndex(windows)
    check_window_grid(starts)

    offsets = pd.to_timedelta(np.arange(MINUTES_PER_WINDOW), unit='min')
    minutes = starts.repeat(MINUTES_PER_WINDOW) + np.tile(offsets.to_numpy(), len(starts))

    minute_means = needs.groupby(needs['DateTime'].dt.floor('1min'))['MW'].mean()
    avg = minute_means.reindex(minutes).to_numpy()

    missing = np.isnan(avg)
    if missing.any():
        window_avg = _window_means(needs, starts).to_numpy()
        empty = np.isnan(window_avg)
        if empty.any():
            raise AlignmentError(f"No needs samples in window starting {starts[np.argmax(empty)]}")
        avg = np.where(missing, np.repeat(window_avg, MINUTES_PER_WINDOW), avg)
        logger.warning(f"⚠ {int(missing.sum())} minutes without needs samples, using the window mean")

    df = pd.DataFrame({'DateTime': minutes, 'avg_1min_MW': avg})
    logger.debug(f"Aggregated needs to {len(df)} minutes")
    return select_columns(df, MINUTE_NEEDS_COLUMNS, 'minute needs')
