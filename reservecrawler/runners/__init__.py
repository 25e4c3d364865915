"""
Command-line runners.

This package provides runners that fetch, compute and save the approximated
1-minute calls and the marginal work prices.
"""

from .base_runner import BaseRunner
from .one_minute_calls_runner import OneMinuteCallsRunner
from .marginal_price_runner import MarginalPriceRunner

__all__ = ['BaseRunner', 'OneMinuteCallsRunner', 'MarginalPriceRunner']
