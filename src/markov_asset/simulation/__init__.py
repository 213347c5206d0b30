"""
Monte Carlo simulation and risk summaries for the Markov return model.

- PathSimulator: price paths by state sampling + conditional bootstrap
- SimulationBatch: paths and terminal states of one simulate() call
- summarize: loss probability, VaR price level, quantiles, return moments
- path_statistics: per-step mean / median / 5% / 95% price bands

**Usage:**
```python
from markov_asset.calibration import calibrate
from markov_asset.simulation import PathSimulator, summarize

model = calibrate(returns, last_price=102.0)
batch = PathSimulator(model).simulate(horizon=20, n_scenarios=5000, random_state=7)
report = summarize(batch)
```
"""

from markov_asset.simulation.simulator import PathSimulator, SimulationBatch
from markov_asset.simulation.statistics import (
    SummaryReport,
    mean,
    path_statistics,
    quantile,
    sample_std,
    summarize,
    terminal_state_frequencies,
)

__all__ = [
    "PathSimulator",
    "SimulationBatch",
    "SummaryReport",
    "summarize",
    "path_statistics",
    "terminal_state_frequencies",
    "quantile",
    "mean",
    "sample_std",
]
