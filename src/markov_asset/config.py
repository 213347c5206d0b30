"""
Model configuration.

Thresholds and smoothing are fixed when a model is created and validated
once, here. Nothing is read from the environment.
"""

import math

from markov_asset.errors import ConfigurationError

# Fallback start price when a model was fitted from returns only.
DEFAULT_START_PRICE = 100.0


class ModelSpec:
    """Discretization thresholds and Laplace smoothing for a Markov asset model."""

    def __init__(
        self,
        down_threshold: float = -0.01,
        up_threshold: float = 0.01,
        laplace_alpha: float = 1.0,
    ) -> None:
        """
        Initialize model specification.

        Parameters
        ----------
        down_threshold : float
            Returns strictly below this are classified Down. Default -0.01.
        up_threshold : float
            Returns strictly above this are classified Up. Default 0.01.
        laplace_alpha : float
            Additive smoothing applied to every transition count. Default 1.0.
            Must be >= 0.

        Raises
        ------
        ConfigurationError
            If thresholds are not ordered or alpha is negative or not finite.
        """
        down_threshold = float(down_threshold)
        up_threshold = float(up_threshold)
        laplace_alpha = float(laplace_alpha)

        if not (math.isfinite(down_threshold) and math.isfinite(up_threshold)):
            raise ConfigurationError(
                f"Thresholds must be finite. Got down={down_threshold}, up={up_threshold}"
            )
        if down_threshold >= up_threshold:
            raise ConfigurationError(
                f"down_threshold must be < up_threshold. "
                f"Got down={down_threshold}, up={up_threshold}"
            )
        if not math.isfinite(laplace_alpha) or laplace_alpha < 0:
            raise ConfigurationError(
                f"laplace_alpha must be a finite value >= 0. Got {laplace_alpha}"
            )

        self.down_threshold = down_threshold
        self.up_threshold = up_threshold
        self.laplace_alpha = laplace_alpha

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModelSpec):
            return NotImplemented
        return (
            self.down_threshold == other.down_threshold
            and self.up_threshold == other.up_threshold
            and self.laplace_alpha == other.laplace_alpha
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ModelSpec(down_threshold={self.down_threshold}, "
            f"up_threshold={self.up_threshold}, laplace_α={self.laplace_alpha})"
        )


def validate_price(price: float, name: str = "price") -> float:
    """Return ``price`` as float, raising ConfigurationError unless positive and finite."""
    price = float(price)
    if not math.isfinite(price) or price <= 0:
        raise ConfigurationError(f"{name} must be positive. Got {price}")
    return price
