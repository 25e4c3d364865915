"""
Preprocessors: raw portal rows to canonical time-indexed tables.

Responsibilities:
- Decimal-comma numbers ("1.234,5") to float
- German local wall-clock timestamps to UTC with one fixed offset per request
- Column renaming by explicit field selection (schema module)
- Range filtering and deduplication
"""

import logging
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

import numpy as np
import pandas as pd

from .common import parse_date, resolve_utc_offset
from .constants import validate_uenb, validate_call_reserve_type, validate_auction_product
from .exceptions import ParseError
from .schema import (
    RAW_NEEDS_COLUMNS, RAW_CALLS_COLUMNS, RAW_AUCTIONS_COLUMNS,
    NEEDS_COLUMNS, CALLS_COLUMNS, AUCTIONS_COLUMNS, select_columns
)

LOGGER = logging.getLogger(__name__)

TIMESTAMP_FORMATS = ['%d.%m.%Y %H:%M:%S', '%d.%m.%Y %H:%M', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M']
DATE_FORMATS = ['%d.%m.%Y', '%Y-%m-%d']

PRODUCT_PATTERN = re.compile(r'^(POS|NEG)[\s_\-]*(HT|NT)$')

AUCTION_KEY = ['date_from', 'Direction', 'Tarif', 'work_price']


def parse_decimal(value, context: Optional[dict] = None) -> float:
    """
    Parse a locale-specific numeric value.

    A comma marks the decimal separator and dots are then thousands
    separators ("1.234,5" -> 1234.5). Without a comma the dot is the decimal
    separator.

    Args:
        value: Raw value (string or number)
        context: Row the value comes from, included in the error

    Returns:
        float

    Raises:
        ParseError: If the value is empty, non-numeric or not finite
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        result = float(value)
    else:
        text = str(value).strip().replace('\xa0', '').replace(' ', '')
        if not text:
            raise ParseError("Empty numeric value", row=context)
        if ',' in text:
            text = text.replace('.', '').replace(',', '.')
        try:
            result = float(text)
        except ValueError:
            raise ParseError(f"Non-numeric value '{value}'", row=context) from None

    if not math.isfinite(result):
        raise ParseError(f"Non-finite value '{value}'", row=context)
    return result


def _decimal_column(raw: pd.DataFrame, column: str) -> pd.Series:
    """Vectorized parse_decimal over one raw column."""
    text = (raw[column].astype(str).str.strip()
            .str.replace('\xa0', '', regex=False)
            .str.replace(' ', '', regex=False))
    has_comma = text.str.contains(',', regex=False)
    text = text.where(~has_comma, text.str.replace('.', '', regex=False).str.replace(',', '.', regex=False))

    values = pd.to_numeric(text, errors='coerce').astype(float)
    bad = ~np.isfinite(values.to_numpy())
    if bad.any():
        position = int(np.argmax(bad))
        row = raw.iloc[position].to_dict()
        raise ParseError(f"Non-numeric value '{raw[column].iloc[position]}' in column '{column}'", row=row)
    return values


def _parse_with_formats(text: pd.Series, formats: List[str]) -> pd.Series:
    """Try each format in turn, keeping the first successful parse per row."""
    parsed = pd.Series(pd.NaT, index=text.index, dtype='datetime64[ns]')
    for fmt in formats:
        missing = parsed.isna()
        if not missing.any():
            break
        parsed = parsed.where(~missing, pd.to_datetime(text, format=fmt, errors='coerce'))
    return parsed


def _timestamp_column(raw: pd.DataFrame, date_column: str, time_column: str,
                      offset: timezone) -> pd.Series:
    """
    Build UTC timestamps from local date and time-of-day columns.

    Raises:
        ParseError: If a date/time pair cannot be parsed
    """
    text = raw[date_column].astype(str).str.strip() + ' ' + raw[time_column].astype(str).str.strip()
    local = _parse_with_formats(text, TIMESTAMP_FORMATS)

    bad = local.isna().to_numpy()
    if bad.any():
        position = int(np.argmax(bad))
        raise ParseError(f"Invalid timestamp '{text.iloc[position]}'", row=raw.iloc[position].to_dict())

    return local.dt.tz_localize(offset).dt.tz_convert('UTC')


def _date_column(raw: pd.DataFrame, column: str) -> pd.Series:
    """Parse a calendar date column to datetime.date objects."""
    parsed = _parse_with_formats(raw[column].astype(str).str.strip(), DATE_FORMATS)

    bad = parsed.isna().to_numpy()
    if bad.any():
        position = int(np.argmax(bad))
        raise ParseError(f"Invalid date '{raw[column].iloc[position]}' in column '{column}'",
                         row=raw.iloc[position].to_dict())
    return parsed.dt.date


def _local_bounds(start_date: date, end_date: date, offset: timezone):
    """Half-open [start 00:00, end + 1 day 00:00) range in local time."""
    lower = pd.Timestamp(datetime.combine(start_date, datetime.min.time()).replace(tzinfo=offset))
    upper = pd.Timestamp(datetime.combine(end_date + timedelta(days=1), datetime.min.time()).replace(tzinfo=offset))
    return lower, upper


def _finish_series(df: pd.DataFrame, start_date: date, end_date: date, offset: timezone,
                   columns: List[str], table: str, logger: logging.Logger) -> pd.DataFrame:
    """Filter to the requested range, drop duplicate timestamps, sort."""
    lower, upper = _local_bounds(start_date, end_date, offset)
    df = df[(df['DateTime'] >= lower) & (df['DateTime'] < upper)]

    before = len(df)
    df = df.drop_duplicates(subset='DateTime', keep='first')
    if len(df) < before:
        logger.warning(f"⚠ Found {before - len(df)} duplicate {table} timestamps, keeping first occurrence")

    df = df.sort_values('DateTime', kind='mergesort')
    return select_columns(df, columns, table)


def _empty_series_table(value_columns: List[str], columns: List[str]) -> pd.DataFrame:
    df = pd.DataFrame({'DateTime': pd.Series([], dtype='datetime64[ns, UTC]')})
    for column in value_columns:
        df[column] = pd.Series([], dtype=float)
    return df[columns]


def preprocess_needs(raw: pd.DataFrame, start_date, end_date,
                     logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Convert raw needs rows into the NeedsSample table.

    Args:
        raw: Raw needs table (date, time, value)
        start_date: First requested day
        end_date: Last requested day
        logger: Logger instance

    Returns:
        DataFrame with DateTime (UTC) and MW, sorted, one row per timestamp

    Raises:
        ParseError: On malformed rows
        DateRangeError: If the range spans a DST transition
    """
    logger = logger or LOGGER
    start_date, end_date = parse_date(start_date), parse_date(end_date)
    offset = resolve_utc_offset(start_date, end_date)

    raw = select_columns(raw, RAW_NEEDS_COLUMNS, 'raw needs')
    if raw.empty:
        logger.warning("No needs rows to preprocess")
        return _empty_series_table(['MW'], NEEDS_COLUMNS)

    df = pd.DataFrame({
        'DateTime': _timestamp_column(raw, 'date', 'time', offset),
        'MW': _decimal_column(raw, 'value'),
    })
    df = _finish_series(df, start_date, end_date, offset, NEEDS_COLUMNS, 'needs', logger)

    logger.info(f"✓ Preprocessed {len(df)} needs samples (UTC offset {offset})")
    return df


def preprocess_calls(raw: pd.DataFrame, start_date, end_date, uenb, reserve_type,
                     logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Convert raw call rows into the CallWindow table.

    NEG calls are stored as values <= 0, POS calls as values >= 0, whatever
    sign convention the download uses.

    Args:
        raw: Raw calls table
        start_date: First requested day
        end_date: Last requested day
        uenb: Operator code the rows were fetched for
        reserve_type: Call data type the rows were fetched for
        logger: Logger instance

    Returns:
        DataFrame with DateTime (UTC, window start), neg_MW, pos_MW
    """
    logger = logger or LOGGER
    uenb = validate_uenb(uenb)
    reserve_type = validate_call_reserve_type(reserve_type)
    start_date, end_date = parse_date(start_date), parse_date(end_date)
    offset = resolve_utc_offset(start_date, end_date)

    raw = select_columns(raw, RAW_CALLS_COLUMNS, 'raw calls')
    if raw.empty:
        logger.warning(f"No {reserve_type} call rows to preprocess for uenb {uenb}")
        return _empty_series_table(['neg_MW', 'pos_MW'], CALLS_COLUMNS)

    df = pd.DataFrame({
        'DateTime': _timestamp_column(raw, 'date', 'time_from', offset),
        'neg_MW': -_decimal_column(raw, 'neg').abs(),
        'pos_MW': _decimal_column(raw, 'pos').abs(),
    })
    df = _finish_series(df, start_date, end_date, offset, CALLS_COLUMNS, 'calls', logger)

    logger.info(f"✓ Preprocessed {len(df)} {reserve_type} call windows for uenb {uenb}")
    return df


def _split_products(raw: pd.DataFrame) -> pd.DataFrame:
    """Split product codes like 'NEG_HT' into Direction and Tarif."""
    directions, tariffs = [], []
    for position, product in enumerate(raw['product'].astype(str)):
        match = PRODUCT_PATTERN.match(product.strip().upper())
        if not match:
            raise ParseError(f"Unknown auction product '{product}'", row=raw.iloc[position].to_dict())
        directions.append(match.group(1))
        tariffs.append(match.group(2))
    return pd.DataFrame({'Direction': directions, 'Tarif': tariffs}, index=raw.index)


def preprocess_auctions(raw: pd.DataFrame, start_date, end_date, reserve_type,
                        logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Convert raw tender rows into the AuctionBid table.

    Bids keep their download order, which is the tie-break for equal work
    prices in the bid ladder.

    Args:
        raw: Raw auctions table (possibly several weeks concatenated)
        start_date: First requested day
        end_date: Last requested day
        reserve_type: Tender product code the rows were fetched for
        logger: Logger instance

    Returns:
        DataFrame with date_from, date_to, Direction, Tarif, power_price,
        work_price, offered_power_MW

    Raises:
        ParseError: On malformed rows or non-positive offered capacity
    """
    logger = logger or LOGGER
    reserve_type = validate_auction_product(reserve_type)
    start_date, end_date = parse_date(start_date), parse_date(end_date)

    raw = select_columns(raw, RAW_AUCTIONS_COLUMNS, 'raw auctions')
    if raw.empty:
        logger.warning(f"No auction rows to preprocess for product {reserve_type}")
        df = pd.DataFrame({c: pd.Series([], dtype=object) for c in AUCTIONS_COLUMNS[:4]})
        for column in AUCTIONS_COLUMNS[4:]:
            df[column] = pd.Series([], dtype=float)
        return df[AUCTIONS_COLUMNS]

    df = pd.concat([
        pd.DataFrame({
            'date_from': _date_column(raw, 'date_from'),
            'date_to': _date_column(raw, 'date_to'),
        }),
        _split_products(raw),
        pd.DataFrame({
            'power_price': _decimal_column(raw, 'power_price'),
            'work_price': _decimal_column(raw, 'work_price'),
            'offered_power_MW': _decimal_column(raw, 'offered_power'),
        }),
    ], axis=1)

    non_positive = (df['offered_power_MW'] <= 0).to_numpy()
    if non_positive.any():
        position = int(np.argmax(non_positive))
        raise ParseError("Offered capacity must be positive", row=raw.iloc[position].to_dict())

    # Weeks touching the requested range only
    df = df[(df['date_to'] >= start_date) & (df['date_from'] <= end_date)]

    # Overlapping week queries return the same bids twice
    before = len(df)
    df = df.drop_duplicates(subset=AUCTION_KEY, keep='first')
    if len(df) < before:
        logger.warning(f"⚠ Removed {before - len(df)} duplicate bids from overlapping week queries")

    df = select_columns(df, AUCTIONS_COLUMNS, 'auctions')
    logger.info(f"✓ Preprocessed {len(df)} bids in {df['date_from'].nunique()} auction weeks")
    return df
