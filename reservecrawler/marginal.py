"""
Marginal Price Calculator.

For every minute, walks the bid ladder of the matching auction week,
direction and tariff period in dispatch order and returns the work price of
the bid at which the offered capacity first covers the called volume.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import LOCAL_TIMEZONE
from .exceptions import InsufficientCapacityError
from .schema import APPROX_CALLS_COLUMNS, AUCTIONS_COLUMNS, MARGINAL_PRICE_COLUMNS, select_columns
from .tariff import tariff_period

LOGGER = logging.getLogger(__name__)

# Calls this small count as no call at all
ZERO_CALL_TOLERANCE = 1e-9
# Slack when comparing cumulative capacity with the called volume
CAPACITY_TOLERANCE = 1e-9


class BidLadder:
    """Bids of one (week, direction, tariff) group in dispatch order.

    POS bids are dispatched by ascending work price, NEG bids by descending
    work price. Bids with equal work price keep their download order.
    """

    def __init__(self, direction: str, work_prices: Sequence[float], capacities: Sequence[float]):
        work_prices = np.asarray(work_prices, dtype=float)
        capacities = np.asarray(capacities, dtype=float)
        if len(work_prices) != len(capacities):
            raise ValueError("work_prices and capacities must have the same length")
        if direction not in ('POS', 'NEG'):
            raise ValueError(f"Unknown direction '{direction}'")

        key = work_prices if direction == 'POS' else -work_prices
        order = np.argsort(key, kind='stable')

        self.direction = direction
        self.work_prices = work_prices[order]
        self.capacities = capacities[order]
        self.cumulative = np.cumsum(self.capacities)

    @property
    def total_capacity(self) -> float:
        return float(self.cumulative[-1]) if len(self.cumulative) else 0.0

    def marginal_price(self, volume: float, minute=None) -> float:
        """
        Work price of the marginal bid for a called volume.

        Args:
            volume: Called volume (sign is ignored)
            minute: Minute the volume belongs to, for the error message

        Returns:
            Work price of the bid at which cumulative capacity reaches |volume|

        Raises:
            InsufficientCapacityError: If the ladder cannot cover the volume
        """
        required = abs(volume)
        index = int(np.searchsorted(self.cumulative, required - CAPACITY_TOLERANCE, side='left'))
        if index >= len(self.cumulative):
            where = f" at {minute}" if minute is not None else ""
            raise InsufficientCapacityError(
                f"{self.direction} bids offer {self.total_capacity:.3f} MW, "
                f"{required:.3f} MW called{where}",
                minute=minute, volume=volume, available=self.total_capacity
            )
        return float(self.work_prices[index])


def build_bid_ladders(auctions: pd.DataFrame) -> Dict[Tuple[date, str, str], BidLadder]:
    """
    Group bids by (week start, direction, tariff) into ladders.

    Args:
        auctions: AuctionBid table

    Returns:
        Mapping of (date_from, Direction, Tarif) to BidLadder
    """
    auctions = select_columns(auctions, AUCTIONS_COLUMNS, 'auctions')
    ladders = {}
    for (week, direction, tariff), group in auctions.groupby(['date_from', 'Direction', 'Tarif'], sort=False):
        ladders[(week, direction, tariff)] = BidLadder(
            direction, group['work_price'].to_numpy(), group['offered_power_MW'].to_numpy()
        )
    return ladders


def _auction_weeks(auctions: pd.DataFrame) -> List[Tuple[date, date]]:
    pairs = auctions[['date_from', 'date_to']].drop_duplicates()
    return sorted(zip(pairs['date_from'], pairs['date_to']))


def calc_marginal_work_prices(approx_calls: pd.DataFrame, auctions: pd.DataFrame,
                              logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Marginal work price of every minute.

    Args:
        approx_calls: ApproxMinuteCall table
        auctions: AuctionBid table covering the minutes' weeks
        logger: Logger instance

    Returns:
        MarginalPricedMinute table; Direction is None and the price NaN for
        minutes without a call

    Raises:
        InsufficientCapacityError: If a minute has no matching ladder or the
            ladder is too small
    """
    logger = logger or LOGGER
    approx_calls = select_columns(approx_calls, APPROX_CALLS_COLUMNS, '1-minute calls')
    auctions = select_columns(auctions, AUCTIONS_COLUMNS, 'auctions')

    ladders = build_bid_ladders(auctions)
    weeks = _auction_weeks(auctions)
    logger.info(f"Built {len(ladders)} bid ladders for {len(weeks)} auction weeks")

    week_of_day = {}

    def week_for(day: date) -> Optional[date]:
        if day not in week_of_day:
            week_of_day[day] = next((start for start, end in weeks if start <= day <= end), None)
        return week_of_day[day]

    local_times = pd.DatetimeIndex(approx_calls['DateTime']).tz_convert(LOCAL_TIMEZONE)
    volumes = approx_calls['approx_1min_call'].to_numpy(dtype=float)

    directions, tariffs, prices = [], [], []
    for minute, local_time, volume in zip(approx_calls['DateTime'], local_times, volumes):
        tariff = tariff_period(local_time)
        tariffs.append(tariff)

        if abs(volume) <= ZERO_CALL_TOLERANCE:
            directions.append(None)
            prices.append(np.nan)
            continue

        direction = 'POS' if volume > 0 else 'NEG'
        directions.append(direction)

        week = week_for(local_time.date())
        ladder = ladders.get((week, direction, tariff)) if week is not None else None
        if ladder is None:
            raise InsufficientCapacityError(
                f"No {direction}/{tariff} bids for minute {minute} (auction week missing)",
                minute=minute, volume=volume, available=0.0
            )
        prices.append(ladder.marginal_price(volume, minute))

    df = approx_calls.copy()
    df['Direction'] = pd.Series(directions, index=df.index, dtype=object)
    df['Tarif'] = tariffs
    df['marginal_work_price'] = np.asarray(prices, dtype=float)

    logger.info(f"✓ Calculated marginal work prices for {len(df)} minutes")
    return select_columns(df, MARGINAL_PRICE_COLUMNS, 'marginal prices')
