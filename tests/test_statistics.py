"""
Unit tests for summary statistics.

Tests cover:
- Linear-interpolation quantile, endpoints and monotonicity
- Mean and Bessel-corrected standard deviation
- Risk report fields
- Per-step path statistics and terminal state frequencies
"""

import math

import pytest
import numpy as np
from numpy.testing import assert_allclose

from markov_asset.errors import InsufficientDataError, InvalidInputError
from markov_asset.simulation import (
    SimulationBatch,
    mean,
    path_statistics,
    quantile,
    sample_std,
    summarize,
    terminal_state_frequencies,
)


def make_batch(terminal_prices, start_price=100.0, end_states=None) -> SimulationBatch:
    terminal = np.asarray(terminal_prices, dtype=np.float64)
    paths = np.column_stack([np.full(terminal.size, start_price), terminal])
    if end_states is None:
        end_states = np.ones(terminal.size, dtype=np.int64)
    return SimulationBatch(paths=paths, end_states=np.asarray(end_states), start_price=start_price)


class TestQuantile:
    """Tests for the empirical quantile."""

    def test_endpoints(self) -> None:
        values = np.sort(np.random.default_rng(1).normal(size=37))
        assert quantile(values, 0.0) == values[0]
        assert quantile(values, 1.0) == values[-1]
        assert quantile(values, -0.5) == values[0]
        assert quantile(values, 1.5) == values[-1]

    def test_interpolation(self) -> None:
        values = [1.0, 2.0, 3.0, 4.0]
        assert quantile(values, 0.5) == pytest.approx(2.5)
        assert quantile(values, 0.05) == pytest.approx(1.15)
        assert quantile(values, 0.95) == pytest.approx(3.85)

    def test_exact_order_statistic(self) -> None:
        values = [10.0, 20.0, 30.0, 40.0, 50.0]
        assert quantile(values, 0.25) == pytest.approx(20.0)
        assert quantile(values, 0.5) == pytest.approx(30.0)

    def test_single_value(self) -> None:
        for p in (0.0, 0.3, 1.0):
            assert quantile([7.0], p) == 7.0

    def test_monotone_in_p(self) -> None:
        values = np.sort(np.random.default_rng(2).exponential(size=101))
        qs = [quantile(values, p) for p in np.linspace(0, 1, 501)]
        assert np.all(np.diff(qs) >= -1e-12)

    def test_matches_numpy_linear(self) -> None:
        values = np.sort(np.random.default_rng(3).normal(size=250))
        for p in (0.01, 0.05, 0.33, 0.5, 0.95):
            assert quantile(values, p) == pytest.approx(np.quantile(values, p), rel=1e-12, abs=1e-12)

    def test_columns(self) -> None:
        ordered = np.array([[1.0, 10.0], [2.0, 20.0], [3.0, 30.0]])
        assert_allclose(quantile(ordered, 0.25), [1.5, 15.0])

    def test_empty_raises(self) -> None:
        with pytest.raises(InsufficientDataError):
            quantile([], 0.5)


class TestMoments:
    """Tests for mean and sample standard deviation."""

    def test_mean(self) -> None:
        assert mean([1.0, 2.0, 6.0]) == pytest.approx(3.0)
        assert math.isnan(mean([]))

    def test_sample_std_bessel(self) -> None:
        # deviations -1, 0, 1 -> sum of squares 2, divisor n-1 = 2
        assert sample_std([1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_sample_std_too_few(self) -> None:
        assert math.isnan(sample_std([1.0]))
        assert math.isnan(sample_std([]))


class TestSummarize:
    """Tests for the risk report."""

    def test_known_values(self) -> None:
        batch = make_batch([90.0, 100.0, 110.0, 120.0, 80.0])
        report = summarize(batch, 100.0)
        assert report["start_price"] == 100.0
        assert report["median_price"] == pytest.approx(100.0)
        # sorted 80, 90, 100, 110, 120: idx 0.2 -> 82, idx 3.8 -> 118
        assert report["VaR5_price"] == pytest.approx(82.0)
        assert report["p95_price"] == pytest.approx(118.0)
        assert report["prob_neg_return"] == pytest.approx(0.4)
        assert report["mean_return"] == pytest.approx(0.0, abs=1e-15)
        assert report["std_return"] == pytest.approx(np.std([-0.1, 0.0, 0.1, 0.2, -0.2], ddof=1))

    def test_zero_return_is_not_a_loss(self) -> None:
        report = summarize(make_batch([100.0, 100.0, 99.0, 101.0]), 100.0)
        assert report["prob_neg_return"] == pytest.approx(0.25)

    def test_default_start_price(self) -> None:
        report = summarize(make_batch([105.0, 95.0], start_price=100.0))
        assert report["start_price"] == 100.0
        assert report["mean_return"] == pytest.approx(0.0, abs=1e-15)

    def test_explicit_start_price_overrides(self) -> None:
        report = summarize(make_batch([110.0, 110.0], start_price=100.0), 110.0)
        assert report["mean_return"] == pytest.approx(0.0, abs=1e-15)
        assert report["prob_neg_return"] == 0.0

    def test_single_scenario_std_is_nan(self) -> None:
        report = summarize(make_batch([105.0]), 100.0)
        assert math.isnan(report["std_return"])
        assert report["median_price"] == 105.0
        assert report["mean_return"] == pytest.approx(0.05)

    def test_empty_batch_is_nan(self) -> None:
        report = summarize(np.empty((0, 3)), 100.0)
        assert report["start_price"] == 100.0
        assert all(math.isnan(report[k]) for k in report if k != "start_price")

    def test_raw_paths(self) -> None:
        paths = np.array([[100.0, 90.0], [100.0, 110.0]])
        report = summarize(paths, 100.0)
        assert report["median_price"] == pytest.approx(100.0)

    def test_raw_paths_need_start_price(self) -> None:
        with pytest.raises(InvalidInputError, match="start_price is required"):
            summarize(np.array([[100.0, 90.0]]))

    def test_values_are_python_floats(self) -> None:
        report = summarize(make_batch([90.0, 110.0]), 100.0)
        assert all(type(v) is float for v in report.values())


class TestPathStatistics:
    """Tests for per-step bands and terminal states."""

    def test_bands(self) -> None:
        paths = np.array([
            [100.0, 101.0, 102.0],
            [100.0, 99.0, 98.0],
            [100.0, 100.0, 100.0],
        ])
        stats = path_statistics(SimulationBatch(paths, np.zeros(3, dtype=np.int64), 100.0))
        assert_allclose(stats["mean"], [100.0, 100.0, 100.0])
        assert_allclose(stats["median"], [100.0, 100.0, 100.0])
        assert_allclose(stats["quantile_5"], [100.0, 99.1, 98.2])
        assert_allclose(stats["quantile_95"], [100.0, 100.9, 101.8])

    def test_band_ordering(self) -> None:
        paths = 100.0 * np.cumprod(1 + np.random.default_rng(5).normal(0, 0.01, (400, 11)), axis=1)
        stats = path_statistics(paths)
        assert np.all(stats["quantile_5"] <= stats["median"])
        assert np.all(stats["median"] <= stats["quantile_95"])

    def test_empty_raises(self) -> None:
        with pytest.raises(InsufficientDataError):
            path_statistics(np.empty((0, 4)))

    def test_terminal_state_frequencies(self) -> None:
        batch = make_batch([1.0, 2.0, 3.0, 4.0], end_states=[0, 2, 2, 1])
        freq = terminal_state_frequencies(batch)
        assert freq == {"DOWN": 0.25, "FLAT": 0.25, "UP": 0.5}
