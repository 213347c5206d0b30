"""
Markov asset model: calibrate once, simulate and summarize many times.

MarkovAssetModel keeps the configuration and the current CalibratedModel.
Each fit builds a complete new CalibratedModel before replacing the old one,
so a fit that raises leaves the previous calibration in place.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from markov_asset.calibration import CalibratedModel, calibrate
from markov_asset.config import ModelSpec
from markov_asset.errors import NotCalibratedError
from markov_asset.regimes.states import N_STATES
from markov_asset.returns.series import simple_returns
from markov_asset.simulation.simulator import (
    PathSimulator,
    RandomState,
    SimulationBatch,
    validate_sizes,
)
from markov_asset.simulation.statistics import SummaryReport, summarize

logger = logging.getLogger(__name__)


class MarkovAssetModel:
    """
    Three-state Markov chain over an asset's returns.

    Attributes
    ----------
    spec : ModelSpec
        Thresholds and smoothing, fixed at construction.
    calibration : CalibratedModel or None
        Current calibration; None until a fit succeeds.
    """

    def __init__(
        self,
        down_threshold: float = -0.01,
        up_threshold: float = 0.01,
        laplace_alpha: float = 1.0,
        spec: Optional[ModelSpec] = None,
    ) -> None:
        """
        Initialize an uncalibrated model.

        Parameters
        ----------
        down_threshold : float
            Returns strictly below are Down. Default -0.01.
        up_threshold : float
            Returns strictly above are Up. Default 0.01.
        laplace_alpha : float
            Additive smoothing of transition counts, >= 0. Default 1.0.
        spec : ModelSpec, optional
            Full specification; overrides the three arguments above.

        Raises
        ------
        ConfigurationError
            If thresholds are not ordered or alpha is negative.
        """
        if spec is None:
            spec = ModelSpec(
                down_threshold=down_threshold,
                up_threshold=up_threshold,
                laplace_alpha=laplace_alpha,
            )
        self.spec = spec
        self.calibration: Optional[CalibratedModel] = None

    @property
    def is_calibrated(self) -> bool:
        return self.calibration is not None

    def _require_calibration(self) -> CalibratedModel:
        if self.calibration is None:
            raise NotCalibratedError(
                "Model is not calibrated. Call fit_from_prices() or fit_from_returns() first."
            )
        return self.calibration

    def fit_from_prices(self, prices: Union[Sequence[float], NDArray[np.float64]]) -> None:
        """
        Calibrate from closing prices; the last price becomes the default start.

        Raises
        ------
        InsufficientDataError
            Fewer than 3 prices.
        InvalidInputError
            A zero, negative or non-finite price.
        """
        returns = simple_returns(prices)
        last_price = float(np.asarray(prices, dtype=np.float64).ravel()[-1])
        self.calibration = calibrate(returns, self.spec, last_price=last_price)
        logger.info(
            "Fitted from %d prices; last price %.4f", returns.size + 1, last_price
        )

    def fit_from_returns(self, returns: Union[Sequence[float], NDArray[np.float64]]) -> None:
        """
        Calibrate from precomputed returns. The start price is unknown until
        set_last_price() is called; simulate() falls back to 100.0.

        Raises
        ------
        InsufficientDataError
            Fewer than 2 returns.
        InvalidInputError
            A non-finite return.
        """
        self.calibration = calibrate(returns, self.spec)
        logger.info("Fitted from %d returns", self.calibration.returns.size)

    def set_last_price(self, price: float) -> None:
        """
        Set the default simulation start price.

        Raises
        ------
        ConfigurationError
            If price is not positive.
        NotCalibratedError
            If there is no calibration to attach the price to.
        """
        calibration = self._require_calibration()
        self.calibration = calibration.with_last_price(price)

    def get_transition_matrix(self) -> NDArray[np.float64]:
        """Copy of the 3x3 transition matrix; all zeros when uncalibrated."""
        if self.calibration is None:
            return np.zeros((N_STATES, N_STATES), dtype=np.float64)
        return np.array(self.calibration.transition_matrix)

    def get_state_histogram(self) -> NDArray[np.int64]:
        """Count of each state in the calibration sample; zeros when uncalibrated."""
        if self.calibration is None:
            return np.zeros(N_STATES, dtype=np.int64)
        return self.calibration.state_histogram()

    def simulate(
        self,
        horizon: int,
        n_scenarios: int,
        start_price: Optional[float] = None,
        random_state: RandomState = None,
        n_workers: int = 1,
    ) -> SimulationBatch:
        """
        Simulate price paths; see PathSimulator.simulate.

        Raises
        ------
        InvalidInputError
            Non-positive horizon or n_scenarios.
        NotCalibratedError
            No successful fit yet.
        """
        # Parameter errors take precedence over the calibration check
        validate_sizes(horizon, n_scenarios, n_workers)
        simulator = PathSimulator(self._require_calibration())
        return simulator.simulate(
            horizon,
            n_scenarios,
            start_price=start_price,
            random_state=random_state,
            n_workers=n_workers,
        )

    def summarize(
        self,
        batch: SimulationBatch,
        start_price: Optional[float] = None,
    ) -> SummaryReport:
        return summarize(batch, start_price)

    def __repr__(self) -> str:
        """String representation."""
        return f"MarkovAssetModel(spec={self.spec!r}, calibrated={self.is_calibrated})"
