"""
Monte Carlo price paths from a calibrated Markov return model.

Each scenario starts at the last calibrated state and a common start price,
then for every step:

    s_{t+1} ~ P(· | s_t)                 # inverse-CDF on cumulative rows
    r_{t+1} ~ Bucket(s_{t+1})            # bootstrap, full series if empty
    S_{t+1} = S_t (1 + r_{t+1})

Scenarios are independent. They are generated together as numpy vectors
and, with n_workers > 1, split into chunks that run in a process pool, each
with its own spawned random stream.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from markov_asset.calibration import CalibratedModel
from markov_asset.config import DEFAULT_START_PRICE, validate_price
from markov_asset.errors import InvalidInputError
from markov_asset.regimes.markov import MarkovChain

logger = logging.getLogger(__name__)

RandomState = Union[None, int, np.random.Generator]


@dataclass(frozen=True, eq=False)
class SimulationBatch:
    """
    Simulated price paths and the state each path ended in.

    Attributes
    ----------
    paths : NDArray[np.float64]
        Prices, shape (n_scenarios, horizon + 1); column 0 is the start price.
    end_states : NDArray[np.int64]
        Final state per scenario, shape (n_scenarios,).
    start_price : float
        Price every path started from.
    """

    paths: NDArray[np.float64]
    end_states: NDArray[np.int64]
    start_price: float

    @property
    def n_scenarios(self) -> int:
        return int(self.paths.shape[0])

    @property
    def horizon(self) -> int:
        return int(self.paths.shape[1] - 1)

    @property
    def terminal_prices(self) -> NDArray[np.float64]:
        return self.paths[:, -1]

    def __len__(self) -> int:
        return self.n_scenarios


def validate_sizes(horizon: int, n_scenarios: int, n_workers: int = 1) -> None:
    """Raise InvalidInputError unless horizon, n_scenarios and n_workers are positive."""
    if horizon <= 0 or n_scenarios <= 0:
        raise InvalidInputError(
            f"horizon and n_scenarios must be > 0. "
            f"Got horizon={horizon}, n_scenarios={n_scenarios}"
        )
    if n_workers <= 0:
        raise InvalidInputError(f"n_workers must be > 0. Got {n_workers}")


def _simulate_chunk(
    cumulative: NDArray[np.float64],
    pool: NDArray[np.float64],
    offsets: NDArray[np.int64],
    lengths: NDArray[np.int64],
    start_state: int,
    start_price: float,
    horizon: int,
    n_scenarios: int,
    rng: np.random.Generator,
) -> Tuple[NDArray[np.float64], NDArray[np.int64]]:
    """Generate one block of scenarios. Module level so a process pool can pickle it."""
    paths = np.empty((n_scenarios, horizon + 1), dtype=np.float64)
    paths[:, 0] = start_price

    states = np.full(n_scenarios, start_state, dtype=np.int64)
    prices = np.full(n_scenarios, start_price, dtype=np.float64)

    for t in range(1, horizon + 1):
        u = rng.random(n_scenarios)
        states = MarkovChain.sample_next_states(cumulative, states, u)

        draws = offsets[states] + rng.integers(0, lengths[states])
        prices = prices * (1.0 + pool[draws])
        paths[:, t] = prices

    return paths, states


class PathSimulator:
    """
    Monte Carlo path generator over a calibrated model.

    The model is only read; one simulator can serve any number of calls.

    Attributes
    ----------
    model : CalibratedModel
        Source of the transition matrix, return buckets and start state.
    """

    def __init__(self, model: CalibratedModel) -> None:
        self.model = model

    def simulate(
        self,
        horizon: int,
        n_scenarios: int,
        start_price: Optional[float] = None,
        random_state: RandomState = None,
        n_workers: int = 1,
    ) -> SimulationBatch:
        """
        Generate independent price paths.

        Parameters
        ----------
        horizon : int
            Number of steps per path, > 0.
        n_scenarios : int
            Number of paths, > 0.
        start_price : float, optional
            Price at step 0. Defaults to the model's last price, or 100.0
            when none is known.
        random_state : None, int or np.random.Generator
            Seed or generator. None draws fresh OS entropy.
        n_workers : int
            Worker processes. 1 (default) runs in the calling process.
            Output is reproducible for a fixed (seed, n_workers) pair.

        Returns
        -------
        SimulationBatch
            Paths of shape (n_scenarios, horizon + 1) and final states.

        Raises
        ------
        InvalidInputError
            If horizon, n_scenarios or n_workers is not positive.
        ConfigurationError
            If an explicit start_price is not positive.
        """
        validate_sizes(horizon, n_scenarios, n_workers)

        if start_price is None:
            start_price = (
                self.model.last_price
                if self.model.last_price is not None
                else DEFAULT_START_PRICE
            )
        start_price = validate_price(start_price, name="start_price")

        rng = np.random.default_rng(random_state)

        cumulative = self.model.chain.cumulative_matrix()
        pool, offsets, lengths = self.model.buckets.sampling_pool()
        start_state = int(self.model.last_state)

        n_chunks = min(int(n_workers), int(n_scenarios))
        logger.debug(
            "Simulating %d scenarios x %d steps from %s at %.4f (%d chunk(s))",
            n_scenarios,
            horizon,
            self.model.last_state.name,
            start_price,
            n_chunks,
        )

        if n_chunks == 1:
            paths, end_states = _simulate_chunk(
                cumulative, pool, offsets, lengths,
                start_state, start_price, horizon, n_scenarios, rng,
            )
        else:
            sizes = [len(chunk) for chunk in np.array_split(np.arange(n_scenarios), n_chunks)]
            child_rngs = rng.spawn(n_chunks)
            with ProcessPoolExecutor(max_workers=n_chunks) as executor:
                results = list(
                    executor.map(
                        _simulate_chunk,
                        [cumulative] * n_chunks,
                        [pool] * n_chunks,
                        [offsets] * n_chunks,
                        [lengths] * n_chunks,
                        [start_state] * n_chunks,
                        [start_price] * n_chunks,
                        [horizon] * n_chunks,
                        sizes,
                        child_rngs,
                    )
                )
            paths = np.concatenate([r[0] for r in results], axis=0)
            end_states = np.concatenate([r[1] for r in results])

        return SimulationBatch(
            paths=paths,
            end_states=end_states,
            start_price=start_price,
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"PathSimulator(last_state={self.model.last_state.name}, "
            f"last_price={self.model.last_price})"
        )
