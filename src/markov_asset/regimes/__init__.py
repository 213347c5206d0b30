"""
Return states and their Markov dynamics.

**States (states.py):**
- Down / Flat / Up enumeration
- Threshold discretization of return series

**Markov chain (markov.py):**
- Transition counting over adjacent states
- Laplace-smoothed transition matrix
- Cumulative rows and inverse-CDF state sampling
- Stationary distribution, expected durations, n-step distributions
"""

from markov_asset.regimes.states import N_STATES, Discretizer, State
from markov_asset.regimes.markov import (
    MarkovChain,
    count_transitions,
    estimate_transition_matrix,
)

__all__ = [
    # States
    "State",
    "N_STATES",
    "Discretizer",
    # Markov chain
    "MarkovChain",
    "count_transitions",
    "estimate_transition_matrix",
]
