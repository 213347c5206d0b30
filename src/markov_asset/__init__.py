"""
Markov-chain return model with Monte Carlo price simulation.

Daily returns are discretized into Down / Flat / Up states, a Laplace-smoothed
transition matrix is estimated from adjacent states, and future price paths
are generated by sampling states from the chain and returns from the
historical returns of each state. Simulated paths reduce to a fixed set of
risk metrics (loss probability, VaR price level, quantiles, return moments).

**Usage:**
```python
from markov_asset import MarkovAssetModel

model = MarkovAssetModel(down_threshold=-0.01, up_threshold=0.01)
model.fit_from_prices(closes)
batch = model.simulate(horizon=20, n_scenarios=10_000, random_state=42)
report = model.summarize(batch)
```
"""

from markov_asset.calibration import CalibratedModel, calibrate
from markov_asset.config import DEFAULT_START_PRICE, ModelSpec
from markov_asset.errors import (
    ConfigurationError,
    InsufficientDataError,
    InvalidInputError,
    MarkovAssetError,
    NotCalibratedError,
)
from markov_asset.model import MarkovAssetModel
from markov_asset.regimes import Discretizer, MarkovChain, State
from markov_asset.returns import ReturnBuckets, simple_returns
from markov_asset.simulation import (
    PathSimulator,
    SimulationBatch,
    SummaryReport,
    path_statistics,
    quantile,
    summarize,
)

__version__ = "0.1.0"

__all__ = [
    # Model
    "MarkovAssetModel",
    "CalibratedModel",
    "calibrate",
    "ModelSpec",
    "DEFAULT_START_PRICE",
    # Building blocks
    "State",
    "Discretizer",
    "MarkovChain",
    "ReturnBuckets",
    "simple_returns",
    # Simulation
    "PathSimulator",
    "SimulationBatch",
    "SummaryReport",
    "summarize",
    "path_statistics",
    "quantile",
    # Errors
    "MarkovAssetError",
    "ConfigurationError",
    "InsufficientDataError",
    "InvalidInputError",
    "NotCalibratedError",
]
