"""
Raw data sources.

This package fetches the operating reserve needs, calls and auction results
from the TransnetBW archive and the regelleistung.net portal.
"""

from .client import ReserveDataClient
from .fetchers import fetch_needs, fetch_calls, fetch_auctions
from .parsers import parse_needs_csv, parse_calls_csv, parse_auctions_csv

__all__ = [
    'ReserveDataClient',
    'fetch_needs', 'fetch_calls', 'fetch_auctions',
    'parse_needs_csv', 'parse_calls_csv', 'parse_auctions_csv',
]
