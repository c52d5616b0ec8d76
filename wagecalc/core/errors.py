from __future__ import annotations


class WageCalculationError(ValueError):
    """Base class for calculator failures; computations are deterministic so none are retryable."""


class InvalidConfigurationError(WageCalculationError):
    pass


class InvalidArgumentError(WageCalculationError):
    pass


__all__ = [
    "WageCalculationError",
    "InvalidConfigurationError",
    "InvalidArgumentError",
]
