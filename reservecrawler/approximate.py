"""
Recursive Call Approximator.

Distributes every 15-minute call volume over the fifteen minutes of its
window, proportional to the shape of the 1-minute needs curve. POS and NEG
calls are distributed independently (POS along the positive part of the
needs, NEG along the negative part) and then added to one signed value.

The "recursion" is a single chronological pass: each window starts from the
residual left by all previous windows. The residual is the difference
between everything assigned so far and all call volumes so far; it is
subtracted from the next window's target, so floating-point drift does not
accumulate. Every window sums to its call volume, with or without a rounding
resolution.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .aggregate import check_window_grid
from .constants import MINUTES_PER_WINDOW
from .exceptions import AlignmentError
from .schema import ALIGNED_COLUMNS, MINUTE_NEEDS_COLUMNS, APPROX_CALLS_COLUMNS, select_columns

LOGGER = logging.getLogger(__name__)

# Below this the needs of a direction count as absent
ZERO_SUM_TOLERANCE = 1e-9


def minute_weights(values) -> np.ndarray:
    """
    Proportional weights n_i / sum(n).

    Falls back to uniform weights when the sum is (close to) zero, i.e. when
    the needs curve gives no shape for this direction.

    Args:
        values: Needs values of one direction (all >= 0 or all <= 0)

    Returns:
        Weights summing to 1
    """
    values = np.asarray(values, dtype=float)
    total = values.sum()
    if abs(total) <= ZERO_SUM_TOLERANCE:
        return np.full(len(values), 1.0 / len(values))
    return values / total


def allocate_window(minute_needs, neg_mw: float, pos_mw: float) -> np.ndarray:
    """
    Provisional minute volumes of one window.

    Args:
        minute_needs: The window's 1-minute needs averages
        neg_mw: NEG call volume of the window (<= 0)
        pos_mw: POS call volume of the window (>= 0)

    Returns:
        Signed minute volumes summing to neg_mw + pos_mw
    """
    minute_needs = np.asarray(minute_needs, dtype=float)
    pos_weights = minute_weights(np.clip(minute_needs, 0.0, None))
    neg_weights = minute_weights(np.clip(minute_needs, None, 0.0))
    return pos_mw * pos_weights + neg_mw * neg_weights


def close_window(provisional: np.ndarray, target: float,
                 resolution: Optional[float] = None) -> np.ndarray:
    """
    Turn provisional minute volumes into minute volumes summing to target.

    The gap between target and the provisional sum is spread linearly over
    the cumulative curve. With a resolution, the inner points of the
    cumulative curve are rounded to that step while its end stays at target;
    the minute values are its differences, so all but the last minute are
    multiples of the step and the last minute takes the remainder.

    Args:
        provisional: Provisional minute volumes
        target: Window target (call volume minus carried residual)
        resolution: Optional rounding step in MW

    Returns:
        Minute volumes
    """
    cumulative = np.cumsum(provisional)
    ramp = np.arange(1, len(cumulative) + 1) / len(cumulative)
    cumulative = cumulative + (target - cumulative[-1]) * ramp

    if resolution is not None:
        cumulative[:-1] = np.round(cumulative[:-1] / resolution) * resolution
        cumulative[-1] = target

    return np.diff(cumulative, prepend=0.0)


def _expected_minutes(starts: pd.DatetimeIndex) -> pd.DatetimeIndex:
    offsets = pd.to_timedelta(np.arange(MINUTES_PER_WINDOW), unit='min').to_numpy()
    return starts.repeat(MINUTES_PER_WINDOW) + np.tile(offsets, len(starts))


def approximate_calls(aligned: pd.DataFrame, minute_needs: pd.DataFrame,
                      resolution: Optional[float] = None,
                      logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Approximate 1-minute calls from 15-minute calls and 1-minute needs.

    Args:
        aligned: AlignedWindow table (chronological)
        minute_needs: MinuteNeeds table, 15 rows per aligned window
        resolution: Optional rounding step of the minute values in MW
        logger: Logger instance

    Returns:
        ApproxMinuteCall table: DateTime, neg_MW, pos_MW, approx_1min_call

    Raises:
        AlignmentError: If the two tables do not cover the same windows
        ValueError: If resolution is not positive
    """
    logger = logger or LOGGER
    aligned = select_columns(aligned, ALIGNED_COLUMNS, 'aligned windows')
    minute_needs = select_columns(minute_needs, MINUTE_NEEDS_COLUMNS, 'minute needs')

    if resolution is not None and resolution <= 0:
        raise ValueError(f"Resolution must be positive, got {resolution}")

    n_windows = len(aligned)
    if len(minute_needs) != n_windows * MINUTES_PER_WINDOW:
        raise AlignmentError(
            f"Expected {n_windows * MINUTES_PER_WINDOW} minutes for {n_windows} windows, "
            f"got {len(minute_needs)}"
        )

    starts = pd.DatetimeIndex(aligned['DateTime'])
    check_window_grid(starts)

    minutes = pd.DatetimeIndex(minute_needs['DateTime'])
    expected = _expected_minutes(starts)
    mismatch = minutes != expected
    if mismatch.any():
        position = int(np.argmax(mismatch))
        raise AlignmentError(
            f"Minute {minutes[position]} does not belong to window "
            f"{starts[position // MINUTES_PER_WINDOW]}"
        )

    needs_matrix = minute_needs['avg_1min_MW'].to_numpy(dtype=float).reshape(n_windows, MINUTES_PER_WINDOW)
    if np.isnan(needs_matrix).any():
        raise AlignmentError("Minute needs contain missing values")

    neg = aligned['neg_MW'].to_numpy(dtype=float)
    pos = aligned['pos_MW'].to_numpy(dtype=float)

    result = np.empty_like(needs_matrix)
    carry = 0.0
    for w in range(n_windows):
        volume = neg[w] + pos[w]
        provisional = allocate_window(needs_matrix[w], neg[w], pos[w])
        result[w] = close_window(provisional, volume - carry, resolution)
        carry += result[w].sum() - volume

    logger.info(f"✓ Approximated {n_windows * MINUTES_PER_WINDOW} 1-minute calls from {n_windows} windows")
    logger.debug(f"  Residual after last window: {carry:.3e} MW")

    df = pd.DataFrame({
        'DateTime': minutes,
        'neg_MW': np.repeat(neg, MINUTES_PER_WINDOW),
        'pos_MW': np.repeat(pos, MINUTES_PER_WINDOW),
        'approx_1min_call': result.ravel(),
    })
    return select_columns(df, APPROX_CALLS_COLUMNS, '1-minute calls')
