"""
Exception hierarchy for calibration and simulation failures.

Every error derives from the built-in exception a caller would otherwise
expect (``ValueError`` for bad inputs, ``RuntimeError`` for calling things
out of order), so ``except ValueError`` keeps working.
"""


class MarkovAssetError(Exception):
    """Base class for all errors raised by markov_asset."""


class ConfigurationError(MarkovAssetError, ValueError):
    """Invalid thresholds, smoothing constant or explicit price."""


class InsufficientDataError(MarkovAssetError, ValueError):
    """Too few prices, returns or states to calibrate from."""


class InvalidInputError(MarkovAssetError, ValueError):
    """Malformed series (e.g. a zero price) or non-positive sizes."""


class NotCalibratedError(MarkovAssetError, RuntimeError):
    """Operation requires a successful fit first."""


__all__ = [
    "MarkovAssetError",
    "ConfigurationError",
    "InsufficientDataError",
    "InvalidInputError",
    "NotCalibratedError",
]
