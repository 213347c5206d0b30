"""
Risk summary of simulated price paths.

Quantiles use linear interpolation between order statistics:

    idx = (n - 1) p,  i = floor(idx),  f = idx - i
    Q(p) = (1 - f) x_(i) + f x_(i+1)

with Q(p) = x_(0) for p <= 0 and Q(p) = x_(n-1) for p >= 1, so Q is
continuous in p and exact at both ends.
"""

import math
from typing import Dict, Optional, Sequence, TypedDict, Union

import numpy as np
from numpy.typing import NDArray

from markov_asset.errors import InsufficientDataError, InvalidInputError
from markov_asset.regimes.states import N_STATES, State
from markov_asset.simulation.simulator import SimulationBatch

ArrayLike = Union[Sequence[float], NDArray[np.float64]]


class SummaryReport(TypedDict):
    start_price: float
    median_price: float
    prob_neg_return: float
    VaR5_price: float  # price level at the 5th percentile, not a loss amount
    p95_price: float
    mean_return: float
    std_return: float


def quantile(
    sorted_values: ArrayLike,
    p: float,
) -> Union[float, NDArray[np.float64]]:
    """
    Empirical quantile of pre-sorted data.

    Parameters
    ----------
    sorted_values : array-like
        Values sorted ascending along axis 0, shape (n,) or (n, m).
    p : float
        Probability in [0, 1]; values outside are clamped to the ends.

    Returns
    -------
    float or NDArray[np.float64]
        Scalar for 1-D input, otherwise one quantile per column.

    Raises
    ------
    InsufficientDataError
        If sorted_values is empty.
    """
    values = np.asarray(sorted_values, dtype=np.float64)
    n = values.shape[0] if values.ndim else 0
    if n == 0:
        raise InsufficientDataError("Cannot take a quantile of an empty sequence")

    if p <= 0:
        result = values[0]
    elif p >= 1:
        result = values[n - 1]
    else:
        idx = (n - 1) * p
        i = int(math.floor(idx))
        f = idx - i
        if i + 1 >= n:
            result = values[i]
        else:
            result = (1 - f) * values[i] + f * values[i + 1]

    return float(result) if values.ndim == 1 else result


def mean(values: ArrayLike) -> float:
    """Arithmetic mean; NaN for an empty sequence."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return float("nan")
    return float(values.sum() / values.size)


def sample_std(values: ArrayLike) -> float:
    """Bessel-corrected standard deviation (divisor n - 1); NaN below 2 values."""
    values = np.asarray(values, dtype=np.float64)
    if values.size < 2:
        return float("nan")
    return float(np.std(values, ddof=1))


def _as_paths(batch: Union[SimulationBatch, ArrayLike]) -> NDArray[np.float64]:
    paths = batch.paths if isinstance(batch, SimulationBatch) else batch
    paths = np.asarray(paths, dtype=np.float64)
    if paths.ndim == 1:
        paths = paths[np.newaxis, :]
    if paths.ndim != 2:
        raise InvalidInputError(
            f"paths must have shape (n_scenarios, horizon + 1). Got {paths.shape}"
        )
    return paths


def summarize(
    batch: Union[SimulationBatch, ArrayLike],
    start_price: Optional[float] = None,
) -> SummaryReport:
    """
    Risk metrics of the terminal price distribution.

    Parameters
    ----------
    batch : SimulationBatch or array-like
        Simulated batch, or a raw paths array of shape
        (n_scenarios, horizon + 1).
    start_price : float, optional
        Reference price for terminal returns. Defaults to the batch's own
        start price; required when a raw array is passed.

    Returns
    -------
    SummaryReport
        - 'start_price': reference price
        - 'median_price': 50th percentile of terminal prices
        - 'prob_neg_return': fraction of strictly negative terminal returns
        - 'VaR5_price': 5th percentile of terminal prices
        - 'p95_price': 95th percentile of terminal prices
        - 'mean_return': mean terminal return
        - 'std_return': sample std of terminal returns (NaN below 2 paths)
        Every field is NaN except start_price when the batch is empty.
    """
    if start_price is None:
        if not isinstance(batch, SimulationBatch):
            raise InvalidInputError("start_price is required when summarizing raw paths")
        start_price = batch.start_price
    start_price = float(start_price)

    paths = _as_paths(batch)
    finals = np.sort(paths[:, -1]) if paths.shape[1] else np.empty(0)
    rets = np.sort(finals / start_price - 1.0)

    if finals.size == 0:
        nan = float("nan")
        return SummaryReport(
            start_price=start_price,
            median_price=nan,
            prob_neg_return=nan,
            VaR5_price=nan,
            p95_price=nan,
            mean_return=nan,
            std_return=nan,
        )

    return SummaryReport(
        start_price=start_price,
        median_price=quantile(finals, 0.50),
        prob_neg_return=mean(rets < 0),
        VaR5_price=quantile(finals, 0.05),
        p95_price=quantile(finals, 0.95),
        mean_return=mean(rets),
        std_return=sample_std(rets),
    )


def path_statistics(
    batch: Union[SimulationBatch, ArrayLike],
) -> Dict[str, NDArray[np.float64]]:
    """
    Cross-sectional price statistics at every step.

    Parameters
    ----------
    batch : SimulationBatch or array-like
        Paths of shape (n_scenarios, horizon + 1).

    Returns
    -------
    stats : Dict[str, NDArray]
        Per-step arrays of shape (horizon + 1,):
        - 'mean': mean price
        - 'median': 50th percentile
        - 'quantile_5': 5th percentile
        - 'quantile_95': 95th percentile
    """
    paths = _as_paths(batch)
    if paths.shape[0] == 0:
        raise InsufficientDataError("Cannot compute path statistics of an empty batch")

    ordered = np.sort(paths, axis=0)
    return {
        "mean": paths.mean(axis=0),
        "median": quantile(ordered, 0.50),
        "quantile_5": quantile(ordered, 0.05),
        "quantile_95": quantile(ordered, 0.95),
    }


def terminal_state_frequencies(batch: SimulationBatch) -> Dict[str, float]:
    """Fraction of scenarios ending in each state, keyed by state name."""
    counts = np.bincount(batch.end_states, minlength=N_STATES)
    total = counts.sum()
    return {
        State(s).name: (float(counts[s] / total) if total else float("nan"))
        for s in range(N_STATES)
    }
