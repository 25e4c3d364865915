"""
Operating reserve crawler.

Retrieves German operating reserve needs, calls and auction results,
approximates 1-minute calls and derives marginal work prices.
"""

import logging

from .exceptions import (
    ReserveDataError, ParseError, SchemaError, AlignmentError,
    InsufficientCapacityError, DateRangeError, SourceUnavailableError
)
from .pipeline import (
    get_reserve_needs, get_reserve_calls, get_reserve_auctions,
    get_one_minute_calls, get_marginal_work_prices
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.3.0"

__all__ = [
    'get_reserve_needs', 'get_reserve_calls', 'get_reserve_auctions',
    'get_one_minute_calls', 'get_marginal_work_prices',
    'ReserveDataError', 'ParseError', 'SchemaError', 'AlignmentError',
    'InsufficientCapacityError', 'DateRangeError', 'SourceUnavailableError',
]
