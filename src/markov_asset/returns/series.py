"""Simple returns from a price series."""

import logging
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

from markov_asset.errors import InsufficientDataError, InvalidInputError

logger = logging.getLogger(__name__)

MIN_PRICES = 3
MIN_RETURNS = 2


def simple_returns(
    prices: Union[Sequence[float], NDArray[np.float64]],
) -> NDArray[np.float64]:
    """
    Period-over-period simple returns r_t = P_t / P_{t-1} - 1.

    Parameters
    ----------
    prices : array-like
        Prices in chronological order (oldest first), at least 3.

    Returns
    -------
    NDArray[np.float64]
        Returns of shape (len(prices) - 1,), read-only.

    Raises
    ------
    InsufficientDataError
        If fewer than 3 prices are given.
    InvalidInputError
        If a price is zero, negative or not finite.
    """
    values = np.asarray(prices, dtype=np.float64).ravel()
    if values.size < MIN_PRICES:
        raise InsufficientDataError(
            f"At least {MIN_PRICES} prices are required to compute returns. Got {values.size}"
        )

    non_finite = np.flatnonzero(~np.isfinite(values))
    if non_finite.size:
        raise InvalidInputError(f"Non-finite price found at index {non_finite[0]}")

    zeros = np.flatnonzero(values == 0.0)
    if zeros.size:
        raise InvalidInputError(f"Zero price found at index {zeros[0]}")

    negatives = np.flatnonzero(values < 0.0)
    if negatives.size:
        raise InvalidInputError(f"Negative price found at index {negatives[0]}")

    # P_t / P_{t-1} - 1 without the extra rounding: 100 -> 101 is exactly 0.01
    returns = np.diff(values) / values[:-1]
    returns.setflags(write=False)
    return returns


def as_return_series(
    returns: Union[Sequence[float], NDArray[np.float64]],
) -> NDArray[np.float64]:
    """
    Validate and freeze an externally computed return series.

    Raises
    ------
    InsufficientDataError
        If fewer than 2 returns are given.
    InvalidInputError
        If any return is not finite.
    """
    values = np.array(returns, dtype=np.float64).ravel()
    if values.size < MIN_RETURNS:
        raise InsufficientDataError(
            f"At least {MIN_RETURNS} returns are required. Got {values.size}"
        )

    non_finite = np.flatnonzero(~np.isfinite(values))
    if non_finite.size:
        raise InvalidInputError(f"Non-finite return found at index {non_finite[0]}")

    if np.any(values <= -1.0):
        logger.warning(
            "Return series contains %d values <= -100%%; simulated prices may reach zero",
            int(np.sum(values <= -1.0)),
        )

    values.setflags(write=False)
    return values
