"""
Return states and threshold discretization.

Each simple return is mapped to one of three states:

    s_t = Down  if r_t < down_threshold
          Up    if r_t > up_threshold
          Flat  otherwise

Both comparisons are strict, so a return sitting exactly on a threshold is
Flat. The ordinal of each state doubles as its row/column index in the
transition matrix.
"""

from enum import IntEnum
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

from markov_asset.config import ModelSpec


class State(IntEnum):
    DOWN = 0
    FLAT = 1
    UP = 2


N_STATES = len(State)


class Discretizer:
    """
    Threshold classifier from returns to states.

    Attributes
    ----------
    down_threshold : float
        Upper bound (exclusive) of the Down state.
    up_threshold : float
        Lower bound (exclusive) of the Up state.
    """

    def __init__(
        self,
        down_threshold: float = -0.01,
        up_threshold: float = 0.01,
    ) -> None:
        # ModelSpec owns the ordering check
        spec = ModelSpec(down_threshold=down_threshold, up_threshold=up_threshold)
        self.down_threshold = spec.down_threshold
        self.up_threshold = spec.up_threshold

    @classmethod
    def from_spec(cls, spec: ModelSpec) -> "Discretizer":
        return cls(spec.down_threshold, spec.up_threshold)

    def classify(self, value: float) -> State:
        """Classify a single return."""
        if value < self.down_threshold:
            return State.DOWN
        if value > self.up_threshold:
            return State.UP
        return State.FLAT

    def discretize(
        self,
        returns: Union[Sequence[float], NDArray[np.float64]],
    ) -> NDArray[np.int64]:
        """
        Map a return series to its state sequence.

        Parameters
        ----------
        returns : array-like
            Simple returns, shape (T,).

        Returns
        -------
        NDArray[np.int64]
            State ordinals, shape (T,).
        """
        values = np.asarray(returns, dtype=np.float64)
        states = np.full(values.shape, State.FLAT, dtype=np.int64)
        states[values < self.down_threshold] = State.DOWN
        states[values > self.up_threshold] = State.UP
        return states

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Discretizer(down_threshold={self.down_threshold}, "
            f"up_threshold={self.up_threshold})"
        )
