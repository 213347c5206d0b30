"""
State-conditional return buckets for bootstrap resampling.

The bucket for state S holds every historical return r_t whose own state was
S (the state the chain occupied when r_t was realized). During simulation
the bucket of the state just entered is sampled. A state that was never
observed has an empty bucket; sampling from it falls back to the full
return series.
"""

import logging
from typing import Dict, Tuple

import numpy as np
from numpy.typing import NDArray

from markov_asset.regimes.states import N_STATES, State

logger = logging.getLogger(__name__)


class ReturnBuckets:
    """
    Empirical return distributions conditional on state.

    Attributes
    ----------
    returns : NDArray[np.float64]
        Full return series, shape (T,). Fallback pool for empty buckets.
    buckets : Dict[State, NDArray[np.float64]]
        Returns grouped by originating state, in original order.
    """

    def __init__(
        self,
        returns: NDArray[np.float64],
        buckets: Dict[State, NDArray[np.float64]],
    ) -> None:
        self.returns = np.asarray(returns, dtype=np.float64)
        self.buckets = {
            State(state): np.asarray(buckets.get(State(state), ()), dtype=np.float64)
            for state in range(N_STATES)
        }
        for values in self.buckets.values():
            values.setflags(write=False)

    @classmethod
    def from_states(
        cls,
        returns: NDArray[np.float64],
        states: NDArray[np.int64],
    ) -> "ReturnBuckets":
        """
        Group returns by the state that produced them.

        Parameters
        ----------
        returns : NDArray[np.float64]
            Return series, shape (T,).
        states : NDArray[np.int64]
            State of each return, shape (T,).

        Returns
        -------
        ReturnBuckets
            One bucket per state, possibly empty.
        """
        returns = np.asarray(returns, dtype=np.float64)
        states = np.asarray(states, dtype=np.int64)
        if returns.shape != states.shape:
            raise ValueError(
                f"returns and states must have the same shape. "
                f"Got {returns.shape} and {states.shape}"
            )
        buckets = {State(s): returns[states == s] for s in range(N_STATES)}
        return cls(returns, buckets)

    def sizes(self) -> NDArray[np.int64]:
        """Number of returns per state, shape (K,)."""
        return np.array([self.buckets[State(s)].size for s in range(N_STATES)], dtype=np.int64)

    def sampling_pool(self) -> Tuple[NDArray[np.float64], NDArray[np.int64], NDArray[np.int64]]:
        """
        Flatten the buckets into one pool for vectorized sampling.

        Empty buckets are replaced by the full return series here, which is
        what makes the fallback silent at sampling time.

        Returns
        -------
        pool : NDArray[np.float64]
            Concatenated bucket contents.
        offsets : NDArray[np.int64]
            Start of each state's slice in pool, shape (K,).
        lengths : NDArray[np.int64]
            Length of each state's slice, shape (K,), all >= 1.
        """
        segments = []
        for s in range(N_STATES):
            bucket = self.buckets[State(s)]
            if bucket.size == 0:
                logger.debug(
                    "Empty return bucket for %s; sampling from all %d returns",
                    State(s).name,
                    self.returns.size,
                )
                bucket = self.returns
            segments.append(bucket)

        lengths = np.array([segment.size for segment in segments], dtype=np.int64)
        offsets = np.concatenate(([0], np.cumsum(lengths)[:-1])).astype(np.int64)
        pool = np.concatenate(segments)
        return pool, offsets, lengths

    def sample(
        self,
        state: int,
        rng: np.random.Generator,
        size: int = 1,
    ) -> NDArray[np.float64]:
        """
        Bootstrap draw (with replacement) from a state's bucket.

        Parameters
        ----------
        state : int
            State whose bucket is sampled.
        rng : np.random.Generator
            Random source.
        size : int
            Number of draws. Default 1.

        Returns
        -------
        NDArray[np.float64]
            Sampled returns, shape (size,).
        """
        bucket = self.buckets[State(state)]
        if bucket.size == 0:
            bucket = self.returns
        return bucket[rng.integers(0, bucket.size, size=size)]

    def __repr__(self) -> str:
        """String representation."""
        sizes = {State(s).name: int(n) for s, n in enumerate(self.sizes())}
        return f"ReturnBuckets(sizes={sizes})"
