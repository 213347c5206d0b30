"""
Calibration of the three-state return model.

A calibration is a pure function of a return series and a ModelSpec:

    1. discretize returns into states
    2. count adjacent state transitions
    3. smooth the counts into a transition matrix
    4. bucket each return under its own state

The result is an immutable CalibratedModel. Nothing here mutates shared
state, so a failure leaves any earlier calibration intact.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from markov_asset.config import ModelSpec, validate_price
from markov_asset.errors import InsufficientDataError
from markov_asset.regimes.markov import MarkovChain, count_transitions
from markov_asset.regimes.states import N_STATES, Discretizer, State
from markov_asset.returns.buckets import ReturnBuckets
from markov_asset.returns.series import as_return_series

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CalibratedModel:
    """
    Calibrated transition matrix and return buckets.

    Attributes
    ----------
    spec : ModelSpec
        Thresholds and smoothing used.
    returns : NDArray[np.float64]
        Return series, shape (T,).
    states : NDArray[np.int64]
        State of each return, shape (T,).
    transition_counts : NDArray[np.int64]
        Raw transition counts, shape (3, 3).
    chain : MarkovChain
        Smoothed transition dynamics.
    buckets : ReturnBuckets
        Returns grouped by originating state.
    last_price : float, optional
        Default simulation start, known when fitted from prices.
    """

    spec: ModelSpec
    returns: NDArray[np.float64]
    states: NDArray[np.int64]
    transition_counts: NDArray[np.int64]
    chain: MarkovChain
    buckets: ReturnBuckets
    last_price: Optional[float] = None

    @property
    def transition_matrix(self) -> NDArray[np.float64]:
        return self.chain.transition_matrix

    @property
    def last_state(self) -> State:
        """State of the most recent return; every simulated path starts here."""
        return State(int(self.states[-1]))

    def state_histogram(self) -> NDArray[np.int64]:
        """Occurrences of each state in the calibration sample, shape (3,)."""
        return np.bincount(self.states, minlength=N_STATES).astype(np.int64)

    def with_last_price(self, price: float) -> "CalibratedModel":
        """Copy of this model with a different default start price."""
        return dataclasses.replace(self, last_price=validate_price(price))


def calibrate(
    returns: Union[Sequence[float], NDArray[np.float64]],
    spec: Optional[ModelSpec] = None,
    last_price: Optional[float] = None,
) -> CalibratedModel:
    """
    Fit the Markov return model to a return series.

    Parameters
    ----------
    returns : array-like
        Simple returns in chronological order, at least 2.
    spec : ModelSpec, optional
        Thresholds and smoothing. Defaults to ModelSpec().
    last_price : float, optional
        Most recent observed price, recorded as the default start price.

    Returns
    -------
    CalibratedModel
        Fully built model.

    Raises
    ------
    InsufficientDataError
        If fewer than 2 returns (and hence states) are available.
    InvalidInputError
        If a return is not finite.
    """
    if spec is None:
        spec = ModelSpec()

    series = as_return_series(returns)
    states = Discretizer.from_spec(spec).discretize(series)
    if states.size < 2:
        raise InsufficientDataError(
            f"Too few states to estimate transitions. Got {states.size}"
        )
    states.setflags(write=False)

    counts = count_transitions(states)
    counts.setflags(write=False)
    chain = MarkovChain.from_counts(counts, alpha=spec.laplace_alpha)
    buckets = ReturnBuckets.from_states(series, states)

    if last_price is not None:
        last_price = validate_price(last_price, name="last_price")

    logger.debug(
        "Calibrated on %d returns: state counts %s, last state %s",
        series.size,
        np.bincount(states, minlength=N_STATES).tolist(),
        State(int(states[-1])).name,
    )

    return CalibratedModel(
        spec=spec,
        returns=series,
        states=states,
        transition_counts=counts,
        chain=chain,
        buckets=buckets,
        last_price=last_price,
    )
