"""Pytest configuration and shared fixtures."""

import logging

import numpy as np
import pytest


@pytest.fixture
def example_prices():
    """Five closes whose returns hit every state, including a boundary value."""
    return [100.0, 101.0, 99.0, 100.0, 102.0]


@pytest.fixture
def sample_returns():
    """Realistic daily simple returns (~20% annual vol)."""
    rng = np.random.default_rng(42)
    daily_vol = 0.20 / np.sqrt(252)
    daily_mu = 0.08 / 252
    return rng.normal(daily_mu, daily_vol, 500)


@pytest.fixture
def sample_prices(sample_returns):
    return 100.0 * np.cumprod(np.concatenate(([1.0], 1.0 + sample_returns)))


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def restore_package_logger():
    """Undo setup_logging() changes to the package logger after a test."""
    logger = logging.getLogger("markov_asset")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate
