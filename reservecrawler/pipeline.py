"""
Public entry points.

Each call validates the requested range, fetches fresh data and recomputes
everything; nothing is cached between calls. Pass a logger to receive
progress events, otherwise they go to the 'reservecrawler' logger, which is
silent unless the application configures logging.

Example:
    needs = get_reserve_needs('07.03.2017', '14.03.2017')
    calls = get_reserve_calls('07.03.2017', '14.03.2017', '6', 'SRL')
    auctions = get_reserve_auctions('07.03.2017', '14.03.2017', '2')
    prices = get_marginal_work_prices(needs, calls, auctions)
"""

import logging
from typing import Optional

import pandas as pd

from .aggregate import aggregate_needs, aggregate_needs_to_minutes
from .approximate import approximate_calls
from .common import parse_date, validate_date_range, iter_weeks
from .constants import (
    NEEDS_FIRST_DATE, CALLS_FIRST_DATE,
    validate_uenb, validate_call_reserve_type, validate_auction_product
)
from .marginal import calc_marginal_work_prices
from .preprocess import preprocess_needs, preprocess_calls, preprocess_auctions
from .schema import RAW_AUCTIONS_COLUMNS
from .sources.client import ReserveDataClient
from .sources.fetchers import fetch_needs, fetch_calls, fetch_auctions

LOGGER = logging.getLogger(__name__)


def get_reserve_needs(start_date, end_date, client: Optional[ReserveDataClient] = None,
                      logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Retrieve the 4-second operating reserve needs.

    Args:
        start_date: First day (date, 'YYYY-MM-DD' or 'DD.MM.YYYY')
        end_date: Last day
        client: Portal client (a default client is created if omitted)
        logger: Logger instance

    Returns:
        NeedsSample table (DateTime in UTC, MW)
    """
    logger = logger or LOGGER
    start_date, end_date = parse_date(start_date), parse_date(end_date)
    validate_date_range(start_date, end_date, first_date=NEEDS_FIRST_DATE)

    raw = fetch_needs(start_date, end_date, client=client, logger=logger)
    return preprocess_needs(raw, start_date, end_date, logger=logger)


def get_reserve_calls(start_date, end_date, uenb, reserve_type,
                      client: Optional[ReserveDataClient] = None,
                      logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Retrieve the 15-minute operating reserve calls.

    Args:
        start_date: First day
        end_date: Last day
        uenb: 50Hertz (4), TenneT (2), Amprion (3), TransnetBW (1),
            Netzregelverbund (6), IGCC (11)
        reserve_type: SRL, MRL, RZ_SALDO, REBAP, ZUSATZMASSNAHMEN, NOTHILFE
        client: Portal client
        logger: Logger instance

    Returns:
        CallWindow table (DateTime in UTC, neg_MW, pos_MW)
    """
    logger = logger or LOGGER
    uenb = validate_uenb(uenb)
    reserve_type = validate_call_reserve_type(reserve_type)
    start_date, end_date = parse_date(start_date), parse_date(end_date)
    validate_date_range(start_date, end_date, first_date=CALLS_FIRST_DATE)

    raw = fetch_calls(start_date, end_date, uenb, reserve_type, client=client, logger=logger)
    return preprocess_calls(raw, start_date, end_date, uenb, reserve_type, logger=logger)


def get_reserve_auctions(start_date, end_date, reserve_type,
                         client: Optional[ReserveDataClient] = None,
                         logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Retrieve the results of every auction week touching the range.

    Args:
        start_date: First day
        end_date: Last day
        reserve_type: PRL (1), SRL (2), MRL (3), sofort abschaltbare Lasten (4),
            schnell abschaltbare Lasten (5), Primärregelleistung NL (6)
        client: Portal client
        logger: Logger instance

    Returns:
        AuctionBid table
    """
    logger = logger or LOGGER
    reserve_type = validate_auction_product(reserve_type)
    start_date, end_date = parse_date(start_date), parse_date(end_date)
    # Auction weeks carry dates only, DST does not matter here
    validate_date_range(start_date, end_date, check_dst=False)

    client = client or ReserveDataClient()
    parts = [
        fetch_auctions(week_start, week_end, reserve_type, client=client, logger=logger)
        for week_start, week_end in iter_weeks(start_date, end_date)
    ]
    raw = pd.concat(parts, ignore_index=True) if parts else pd.DataFrame(columns=RAW_AUCTIONS_COLUMNS)
    return preprocess_auctions(raw, start_date, end_date, reserve_type, logger=logger)


def get_one_minute_calls(needs: pd.DataFrame, calls: pd.DataFrame,
                         resolution: Optional[float] = None,
                         logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Approximate the 1-minute calls out of the 4-second needs.

    Args:
        needs: Preprocessed needs (get_reserve_needs)
        calls: Preprocessed calls (get_reserve_calls)
        resolution: Optional rounding step of the minute values in MW
        logger: Logger instance

    Returns:
        ApproxMinuteCall table (DateTime, neg_MW, pos_MW, approx_1min_call)
    """
    logger = logger or LOGGER
    aligned = aggregate_needs(needs, calls, logger=logger)
    minute_needs = aggregate_needs_to_minutes(needs, aligned['DateTime'], logger=logger)
    return approximate_calls(aligned, minute_needs, resolution=resolution, logger=logger)


def get_marginal_work_prices(needs: pd.DataFrame, calls: pd.DataFrame, auctions: pd.DataFrame,
                             resolution: Optional[float] = None,
                             logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Approximate the 1-minute calls and price every minute.

    Args:
        needs: Preprocessed needs (get_reserve_needs)
        calls: Preprocessed calls (get_reserve_calls)
        auctions: Preprocessed auctions (get_reserve_auctions)
        resolution: Optional rounding step of the minute values in MW
        logger: Logger instance

    Returns:
        MarginalPricedMinute table
    """
    logger = logger or LOGGER
    approx = get_one_minute_calls(needs, calls, resolution=resolution, logger=logger)
    return calc_marginal_work_prices(approx, auctions, logger=logger)
