"""
Return series and state-conditional return pools.

This module implements:
- Simple returns from prices, with zero-price guards
- Validation of externally supplied return series
- Per-state return buckets for bootstrap resampling
"""

from markov_asset.returns.series import as_return_series, simple_returns
from markov_asset.returns.buckets import ReturnBuckets

__all__ = [
    "simple_returns",
    "as_return_series",
    "ReturnBuckets",
]
