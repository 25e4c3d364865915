"""
Column layout of every table passed between pipeline stages.

Each stage ends with select_columns() so a missing column fails loudly and
intermediate columns never leak into the next stage.
"""

from typing import List

import pandas as pd

from .exceptions import SchemaError

# Raw fetcher output (all values are strings as delivered by the portals)
RAW_NEEDS_COLUMNS = ['date', 'time', 'value']
RAW_CALLS_COLUMNS = ['date', 'time_from', 'time_to', 'product', 'neg', 'pos']
RAW_AUCTIONS_COLUMNS = ['date_from', 'date_to', 'product', 'power_price', 'work_price', 'offered_power']

# Canonical tables
NEEDS_COLUMNS = ['DateTime', 'MW']
CALLS_COLUMNS = ['DateTime', 'neg_MW', 'pos_MW']
AUCTIONS_COLUMNS = [
    'date_from', 'date_to', 'Direction', 'Tarif',
    'power_price', 'work_price', 'offered_power_MW',
]

# Derived tables
ALIGNED_COLUMNS = ['DateTime', 'avg_15min_MW', 'neg_MW', 'pos_MW']
MINUTE_NEEDS_COLUMNS = ['DateTime', 'avg_1min_MW']
APPROX_CALLS_COLUMNS = ['DateTime', 'neg_MW', 'pos_MW', 'approx_1min_call']
MARGINAL_PRICE_COLUMNS = APPROX_CALLS_COLUMNS + ['Direction', 'Tarif', 'marginal_work_price']


def select_columns(df: pd.DataFrame, columns: List[str], table: str) -> pd.DataFrame:
    """
    Return exactly the given columns of df, in order.

    Args:
        df: Input table
        columns: Required columns
        table: Table name for the error message

    Returns:
        New DataFrame with a fresh RangeIndex

    Raises:
        SchemaError: If a required column is missing
    """
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(f"{table} table is missing columns {missing} (has {list(df.columns)})")
    return df.loc[:, columns].reset_index(drop=True)
