from __future__ import annotations

"""
Error taxonomy for the transform layer and the model fitting helpers.
"""


class BeyondLinearError(Exception):
    """Base class for every error raised by this package."""


class InvalidConfigurationError(BeyondLinearError, ValueError):
    """Malformed transform or model parameters (bad degree, breaks, knots...)."""


class InsufficientDataError(BeyondLinearError, ValueError):
    """Training data too small or too degenerate for the requested transform."""


class DimensionMismatchError(BeyondLinearError, ValueError):
    """Input column is empty, not one-dimensional, or has the wrong width."""


class ModelFitError(BeyondLinearError, RuntimeError):
    """Rank-deficient design or a solver that failed to converge."""
