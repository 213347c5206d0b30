"""
Transition estimation and the calibrated Markov chain.

Transition probabilities are plain frequency counts with additive (Laplace)
smoothing:

    n_ij = #{t : s_t = i, s_{t+1} = j}
    P_ij = (n_ij + α) / (Σ_k n_ik + K α)

With α > 0 every transition gets positive probability, even those never
observed. With α = 0 a state that never starts a transition has no
information at all; its row is set to the uniform distribution 1/K so the
matrix stays row-stochastic.
"""

import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from markov_asset.regimes.states import N_STATES

logger = logging.getLogger(__name__)

# Cumulative rows drifting further than this from 1.0 are renormalized.
CUMULATIVE_TOLERANCE = 1e-12


def count_transitions(
    states: NDArray[np.int64],
    n_states: int = N_STATES,
) -> NDArray[np.int64]:
    """
    Count state-to-state transitions over adjacent pairs.

    Parameters
    ----------
    states : NDArray[np.int64]
        State sequence, shape (T,), values in {0, …, K-1}.
    n_states : int
        Number of states K. Default 3.

    Returns
    -------
    NDArray[np.int64]
        Count matrix of shape (K, K); entry (i, j) counts s_t = i, s_{t+1} = j.
    """
    states = np.asarray(states, dtype=np.int64)
    counts = np.zeros((n_states, n_states), dtype=np.int64)
    if states.size < 2:
        return counts
    np.add.at(counts, (states[:-1], states[1:]), 1)
    return counts


def estimate_transition_matrix(
    counts: NDArray[np.int64],
    alpha: float = 1.0,
) -> NDArray[np.float64]:
    """
    Laplace-smoothed row-stochastic matrix from transition counts.

    Parameters
    ----------
    counts : NDArray[np.int64]
        Transition counts, shape (K, K).
    alpha : float
        Additive smoothing constant, >= 0. Default 1.0.

    Returns
    -------
    NDArray[np.float64]
        Transition matrix of shape (K, K); each row sums to 1.
    """
    if alpha < 0:
        raise ValueError(f"alpha must be >= 0. Got {alpha}")

    counts = np.asarray(counts, dtype=np.float64)
    n_states = counts.shape[0]

    smoothed = counts + alpha
    row_sums = smoothed.sum(axis=1, keepdims=True)

    # Only reachable with alpha == 0: a state with no outgoing observations
    empty_rows = row_sums[:, 0] == 0
    if np.any(empty_rows):
        logger.debug(
            "No outgoing transitions for states %s; using uniform rows",
            np.flatnonzero(empty_rows).tolist(),
        )
        smoothed[empty_rows, :] = 1.0
        row_sums[empty_rows] = n_states

    return smoothed / row_sums


class MarkovChain:
    """
    Discrete-time Markov chain over return states.

    Attributes
    ----------
    n_states : int
        Number of states (K)
    transition_matrix : NDArray[np.float64]
        Transition probability matrix P of shape (K, K) where P[i, j] is
        the probability of moving from state i to state j. Each row sums to 1.
    """

    def __init__(
        self,
        transition_matrix: NDArray[np.float64],
        validate: bool = True,
    ) -> None:
        """
        Initialize Markov chain.

        Parameters
        ----------
        transition_matrix : NDArray[np.float64]
            Row-stochastic matrix of shape (K, K).
        validate : bool, optional
            If True, check shape, range and row sums. Default True.

        Raises
        ------
        ValueError
            If transition_matrix is not row-stochastic.
        """
        self.transition_matrix = np.array(transition_matrix, dtype=np.float64)
        self.transition_matrix.setflags(write=False)
        self.n_states: int = self.transition_matrix.shape[0]

        if validate:
            self._validate_transition_matrix()

    @classmethod
    def from_counts(
        cls,
        counts: NDArray[np.int64],
        alpha: float = 1.0,
    ) -> "MarkovChain":
        """Build a chain from transition counts with Laplace smoothing."""
        return cls(estimate_transition_matrix(counts, alpha))

    def _validate_transition_matrix(self) -> None:
        P = self.transition_matrix

        if P.ndim != 2 or P.shape[0] != P.shape[1]:
            raise ValueError(f"Transition matrix must be square. Got shape {P.shape}")

        if not np.all((P >= 0) & (P <= 1)):
            raise ValueError("All transition probabilities must be in [0, 1]")

        row_sums = P.sum(axis=1)
        if not np.allclose(row_sums, 1.0, atol=1e-9):
            raise ValueError(f"Each row must sum to 1. Got row sums: {row_sums}")

    def cumulative_matrix(self) -> NDArray[np.float64]:
        """
        Row-wise cumulative distribution used for inverse-CDF sampling.

        A row whose last cumulative entry is off from 1.0 by more than
        CUMULATIVE_TOLERANCE is divided through by that entry, so the final
        bucket always closes at exactly 1.

        Returns
        -------
        NDArray[np.float64]
            Cumulative matrix of shape (K, K).
        """
        cum = np.cumsum(self.transition_matrix, axis=1)
        last = cum[:, -1:]
        drifted = np.abs(last[:, 0] - 1.0) > CUMULATIVE_TOLERANCE
        if np.any(drifted):
            cum[drifted] = cum[drifted] / last[drifted]
        return cum

    @staticmethod
    def sample_next_states(
        cumulative: NDArray[np.float64],
        current: NDArray[np.int64],
        uniforms: NDArray[np.float64],
    ) -> NDArray[np.int64]:
        """
        Inverse-CDF draw of the next state for a batch of chains.

        For each chain the next state is the first j with u <= cum[current, j].
        A draw above every cumulative entry lands in the last state.

        Parameters
        ----------
        cumulative : NDArray[np.float64]
            Output of cumulative_matrix(), shape (K, K).
        current : NDArray[np.int64]
            Current state per chain, shape (N,).
        uniforms : NDArray[np.float64]
            U(0, 1) draws, shape (N,).

        Returns
        -------
        NDArray[np.int64]
            Next state per chain, shape (N,).
        """
        rows = cumulative[current]
        below = uniforms[:, None] > rows
        return np.minimum(below.sum(axis=1), cumulative.shape[1] - 1).astype(np.int64)

    @property
    def stationary_dist(self) -> NDArray[np.float64]:
        """
        Stationary distribution π with π P = π and Σ π_i = 1.

        Left eigenvector of P for the eigenvalue closest to 1. With α > 0
        every entry of P is positive, so the chain is irreducible and
        aperiodic and π is unique.
        """
        eigenvalues, left_vectors = linalg.eig(
            self.transition_matrix, left=True, right=False
        )
        idx = np.argmin(np.abs(eigenvalues - 1.0))
        stationary = np.real(left_vectors[:, idx])
        stationary = stationary / stationary.sum()
        return stationary.astype(np.float64)

    def expected_duration(self, state: int) -> float:
        """
        Expected number of consecutive periods spent in a state.

        E[duration | state i] = 1 / (1 - P_ii)

        Raises
        ------
        ValueError
            If state is out of range or absorbing (P_ii = 1).
        """
        if not (0 <= state < self.n_states):
            raise ValueError(f"state must be in {{0, …, {self.n_states - 1}}}")

        self_prob = self.transition_matrix[state, state]
        if self_prob >= 1.0:
            raise ValueError(
                f"State {state} is absorbing (P_{{{state},{state}}} = 1). "
                "Expected duration is infinite."
            )
        return 1.0 / (1.0 - self_prob)

    def expected_durations(self) -> NDArray[np.float64]:
        return np.array([self.expected_duration(i) for i in range(self.n_states)])

    def state_distribution(
        self,
        n_steps: int,
        initial_state: Optional[int] = None,
        initial_dist: Optional[NDArray[np.float64]] = None,
    ) -> NDArray[np.float64]:
        """
        Distribution over states after n steps: π_n = π_0 P^n.

        Parameters
        ----------
        n_steps : int
            Number of transitions, >= 0.
        initial_state : int, optional
            Start with all mass in this state.
        initial_dist : NDArray[np.float64], optional
            Start distribution of shape (K,). Ignored when initial_state is
            given. If both are None, the stationary distribution is used.

        Returns
        -------
        NDArray[np.float64]
            Distribution of shape (K,), sums to 1.
        """
        if n_steps < 0:
            raise ValueError(f"n_steps must be >= 0. Got {n_steps}")

        if initial_state is not None:
            if not (0 <= initial_state < self.n_states):
                raise ValueError(
                    f"initial_state must be in {{0, …, {self.n_states - 1}}}"
                )
            initial_dist = np.zeros(self.n_states)
            initial_dist[initial_state] = 1.0
        elif initial_dist is None:
            initial_dist = self.stationary_dist
        else:
            initial_dist = np.asarray(initial_dist, dtype=np.float64)
            if initial_dist.shape != (self.n_states,):
                raise ValueError(f"initial_dist must have length {self.n_states}")
            if not np.isclose(initial_dist.sum(), 1.0):
                raise ValueError("initial_dist must sum to 1")

        return initial_dist @ np.linalg.matrix_power(self.transition_matrix, n_steps)

    def __repr__(self) -> str:
        """String representation."""
        return f"MarkovChain(n_states={self.n_states})"
