"""
Raw fetchers: date range in, raw string tables out.

These functions only download and split the portal responses. Numeric and
timestamp conversion, range filtering and deduplication happen in
reservecrawler.preprocess.
"""

import logging
from datetime import date
from typing import Optional

import pandas as pd

from ..common import iter_months
from ..schema import RAW_NEEDS_COLUMNS, RAW_CALLS_COLUMNS, RAW_AUCTIONS_COLUMNS
from .client import ReserveDataClient
from .parsers import parse_needs_csv, parse_calls_csv, parse_auctions_csv

LOGGER = logging.getLogger(__name__)


def fetch_needs(start_date: date, end_date: date,
                client: Optional[ReserveDataClient] = None,
                logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Fetch raw 4-second needs for every month touching the range.

    Args:
        start_date: First day
        end_date: Last day
        client: Portal client (a default client is created if omitted)
        logger: Logger instance

    Returns:
        Raw needs table (whole months, not yet filtered to the range)
    """
    logger = logger or LOGGER
    client = client or ReserveDataClient()

    parts = []
    for year, month in iter_months(start_date, end_date):
        logger.info(f"Fetching needs {year}-{month:02d}...")
        df = parse_needs_csv(client.fetch_needs_month(year, month))
        logger.debug(f"  {len(df)} rows")
        parts.append(df)

    if not parts:
        return pd.DataFrame(columns=RAW_NEEDS_COLUMNS)
    return pd.concat(parts, ignore_index=True)


def fetch_calls(start_date: date, end_date: date, uenb: str, reserve_type: str,
                client: Optional[ReserveDataClient] = None,
                logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Fetch raw 15-minute calls.

    Args:
        start_date: First day
        end_date: Last day
        uenb: Operator code
        reserve_type: Call data type (SRL, MRL, ...)
        client: Portal client
        logger: Logger instance

    Returns:
        Raw calls table
    """
    logger = logger or LOGGER
    client = client or ReserveDataClient()

    logger.info(f"Fetching {reserve_type} calls for uenb {uenb}: {start_date} to {end_date}...")
    df = parse_calls_csv(client.fetch_calls(start_date, end_date, uenb, reserve_type))
    logger.debug(f"  {len(df)} rows")

    if df.empty:
        return pd.DataFrame(columns=RAW_CALLS_COLUMNS)
    return df


def fetch_auctions(week_start: date, week_end: date, reserve_type: str,
                   client: Optional[ReserveDataClient] = None,
                   logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Fetch raw tender results of one auction week.

    Args:
        week_start: Monday of the week
        week_end: Sunday of the week
        reserve_type: Tender product code
        client: Portal client
        logger: Logger instance

    Returns:
        Raw auctions table
    """
    logger = logger or LOGGER
    client = client or ReserveDataClient()

    logger.info(f"Fetching auction results (product {reserve_type}): {week_start} to {week_end}...")
    df = parse_auctions_csv(client.fetch_auctions(week_start, week_end, reserve_type))
    logger.debug(f"  {len(df)} bids")

    if df.empty:
        return pd.DataFrame(columns=RAW_AUCTIONS_COLUMNS)
    return df
