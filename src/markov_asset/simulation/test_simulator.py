"""
Tests for the Monte Carlo path simulator.

Progressive sizing (no expensive computation):
- Small (n_scenarios<=100, horizon<=10): instant
- Medium (n_scenarios=1000, horizon=50): well under a second
- Parallel (two worker processes): a second or two for process start-up
"""

import numpy as np
from numpy.testing import assert_array_equal

from markov_asset.calibration import calibrate
from markov_asset.config import ModelSpec
from markov_asset.errors import ConfigurationError, InvalidInputError
from markov_asset.regimes.states import State
from markov_asset.simulation.simulator import PathSimulator, SimulationBatch


EXAMPLE_RETURNS = [0.01, -0.0198, 0.0101, 0.02]


def _simulator(returns=EXAMPLE_RETURNS, last_price=None, spec=None) -> PathSimulator:
    return PathSimulator(calibrate(returns, spec, last_price=last_price))


# ============================================================================
# SMALL TESTS: shapes and validation
# ============================================================================

def test_small_batch_shape():
    """N scenarios, each of length horizon + 1, all starting at the start price."""
    batch = _simulator().simulate(horizon=5, n_scenarios=40, start_price=100.0, random_state=1)
    assert isinstance(batch, SimulationBatch)
    assert batch.paths.shape == (40, 6)
    assert batch.end_states.shape == (40,)
    assert len(batch) == 40
    assert batch.n_scenarios == 40
    assert batch.horizon == 5
    assert np.all(batch.paths[:, 0] == 100.0)
    assert_array_equal(batch.terminal_prices, batch.paths[:, -1])


def test_small_invalid_sizes():
    """Non-positive horizon or scenario count is rejected."""
    sim = _simulator()
    for horizon, n_scenarios in [(0, 10), (10, 0), (-3, 5)]:
        try:
            sim.simulate(horizon=horizon, n_scenarios=n_scenarios)
            assert False, "Should raise InvalidInputError"
        except InvalidInputError:
            pass


def test_small_invalid_workers():
    try:
        _simulator().simulate(horizon=3, n_scenarios=10, n_workers=0)
        assert False, "Should raise InvalidInputError"
    except InvalidInputError:
        pass


def test_small_invalid_start_price():
    try:
        _simulator().simulate(horizon=3, n_scenarios=10, start_price=-1.0)
        assert False, "Should raise ConfigurationError"
    except ConfigurationError:
        pass


def test_small_default_start_price():
    """Last price when known, 100.0 otherwise."""
    assert _simulator(last_price=57.0).simulate(3, 5, random_state=0).start_price == 57.0
    assert _simulator().simulate(3, 5, random_state=0).start_price == 100.0


def test_small_first_step_uses_start_state_row():
    """With a deterministic chain every path follows the only allowed transition."""
    # Up, Down, Up, Down, Up: with alpha=0 the chain can only alternate
    returns = [0.05, -0.05, 0.05, -0.05, 0.05]
    sim = _simulator(returns, spec=ModelSpec(laplace_alpha=0.0))
    assert sim.model.last_state is State.UP
    batch = sim.simulate(horizon=4, n_scenarios=20, start_price=100.0, random_state=3)
    # Up -> Down -> Up -> Down -> Up, returns drawn from the matching buckets
    expected = 100.0 * np.cumprod([1.0, 0.95, 1.05, 0.95, 1.05])
    for path in batch.paths:
        np.testing.assert_allclose(path, expected)
    assert np.all(batch.end_states == State.UP)


def test_small_reproducible_with_seed():
    sim = _simulator()
    a = sim.simulate(horizon=10, n_scenarios=50, random_state=42)
    b = sim.simulate(horizon=10, n_scenarios=50, random_state=42)
    c = sim.simulate(horizon=10, n_scenarios=50, random_state=43)
    assert_array_equal(a.paths, b.paths)
    assert_array_equal(a.end_states, b.end_states)
    assert not np.array_equal(a.paths, c.paths)


def test_small_accepts_generator():
    sim = _simulator()
    a = sim.simulate(horizon=10, n_scenarios=50, random_state=np.random.default_rng(9))
    b = sim.simulate(horizon=10, n_scenarios=50, random_state=np.random.default_rng(9))
    assert_array_equal(a.paths, b.paths)


def test_small_model_not_mutated():
    sim = _simulator(last_price=102.0)
    before = np.array(sim.model.transition_matrix)
    sim.simulate(horizon=10, n_scenarios=100, random_state=5)
    assert_array_equal(sim.model.transition_matrix, before)
    assert sim.model.last_price == 102.0


# ============================================================================
# MEDIUM TESTS: distributional properties
# ============================================================================

def test_medium_prices_stay_positive():
    rng = np.random.default_rng(11)
    returns = rng.normal(0.0005, 0.02, 300)
    batch = _simulator(returns).simulate(horizon=50, n_scenarios=1000, random_state=1)
    assert np.all(batch.paths > 0)


def test_medium_step_returns_come_from_history():
    """Every simulated one-step return is a historical return."""
    rng = np.random.default_rng(12)
    returns = np.round(rng.normal(0, 0.015, 60), 6)
    batch = _simulator(returns).simulate(horizon=50, n_scenarios=1000, random_state=2)
    step_returns = batch.paths[:, 1:] / batch.paths[:, :-1] - 1.0
    distance = np.min(np.abs(step_returns.ravel()[:, None] - returns[None, :]), axis=1)
    assert np.all(distance < 1e-9)


def test_medium_empty_bucket_fallback():
    """Entering a never-observed state draws from the full return series."""
    returns = np.array([0.0, -0.02, 0.0, -0.02])  # Flat, Down, Flat, Down; no Up
    sim = _simulator(returns)
    assert sim.model.buckets.buckets[State.UP].size == 0

    batch = sim.simulate(horizon=1, n_scenarios=2000, start_price=100.0, random_state=4)
    entered_up = batch.end_states == State.UP
    assert entered_up.any()

    step = batch.paths[entered_up, 1] / 100.0 - 1.0
    assert np.all(np.isclose(step[:, None], returns[None, :]).any(axis=1))
    # Both historical values are reachable from the empty Up bucket
    assert np.isclose(step, 0.0).any() and np.isclose(step, -0.02).any()


def test_medium_state_frequencies_follow_matrix():
    """First-step states are distributed like the start state's row."""
    rng = np.random.default_rng(13)
    sim = _simulator(rng.normal(0, 0.015, 400))
    batch = sim.simulate(horizon=1, n_scenarios=20_000, random_state=6)
    freq = np.bincount(batch.end_states, minlength=3) / 20_000
    row = sim.model.transition_matrix[int(sim.model.last_state)]
    np.testing.assert_allclose(freq, row, atol=0.015)


# ============================================================================
# PARALLEL TESTS
# ============================================================================

def test_parallel_shape_and_reproducibility():
    sim = _simulator(last_price=100.0)
    a = sim.simulate(horizon=8, n_scenarios=101, random_state=21, n_workers=2)
    b = sim.simulate(horizon=8, n_scenarios=101, random_state=21, n_workers=2)
    assert a.paths.shape == (101, 9)
    assert a.end_states.shape == (101,)
    assert np.all(a.paths[:, 0] == 100.0)
    assert_array_equal(a.paths, b.paths)


def test_parallel_more_workers_than_scenarios():
    batch = _simulator().simulate(horizon=3, n_scenarios=2, random_state=0, n_workers=4)
    assert batch.paths.shape == (2, 4)
