from __future__ import annotations

"""
Transform objects: each learns its parameters from a training column with
`fit` and turns any column into design-matrix columns with `apply`. A model
input is an ordered list of transforms applied one after the other and
concatenated column-wise.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

import pandas as pd

from .binning import bin_indicators, fit_cut, fit_discretize
from .constants import (
    DEFAULT_CUT_BREAKS,
    DEFAULT_NUM_BINS,
    DEFAULT_POLY_DEGREE,
    DEFAULT_SPLINE_DEGREE,
)
from .exceptions import DimensionMismatchError, InvalidConfigurationError
from .polynomial import apply_polynomial, fit_polynomial
from .splines import (
    apply_natural_spline,
    apply_spline,
    fit_natural_spline,
    fit_spline,
    quantile_knots,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FittedTransform:
    """A transform together with the parameters it learned at fit time."""

    transform: "Transform"
    params: Any


class Transform(ABC):
    """Base class for single-column feature transforms."""

    @abstractmethod
    def fit(self, column) -> FittedTransform:
        """Learn parameters from the training column."""

    @abstractmethod
    def _evaluate(self, params, column) -> pd.DataFrame:
        pass

    def apply(self, fitted: FittedTransform, column) -> pd.DataFrame:
        """
        Evaluate the fitted parameters on a (possibly new) column. Parameters
        learned by another transform would give a block of the wrong width,
        so the pairing is reported as a DimensionMismatchError.
        """
        if fitted.transform != self:
            raise DimensionMismatchError(
                f"{fitted.transform!r} was fitted by a different transform than {self!r}"
            )
        return self._evaluate(fitted.params, column)

    def fit_apply(self, column) -> tuple[FittedTransform, pd.DataFrame]:
        fitted = self.fit(column)
        return fitted, self.apply(fitted, column)


@dataclass(frozen=True)
class PolynomialTransform(Transform):
    degree: int = DEFAULT_POLY_DEGREE
    orthogonal: bool = True

    def fit(self, column) -> FittedTransform:
        return FittedTransform(self, fit_polynomial(column, self.degree, self.orthogonal))

    def _evaluate(self, params, column) -> pd.DataFrame:
        return apply_polynomial(params, column)


@dataclass(frozen=True)
class DiscretizeTransform(Transform):
    """Roughly equal-count bins learned from training quantiles."""

    num_breaks: int = DEFAULT_NUM_BINS
    drop_first: bool = True

    def fit(self, column) -> FittedTransform:
        return FittedTransform(self, fit_discretize(column, self.num_breaks))

    def _evaluate(self, params, column) -> pd.DataFrame:
        return bin_indicators(params, column, drop_first=self.drop_first)


@dataclass(frozen=True)
class CutTransform(Transform):
    """Bins at fixed, caller-chosen cut points."""

    breaks: tuple[float, ...] = DEFAULT_CUT_BREAKS
    drop_first: bool = True

    def fit(self, column) -> FittedTransform:
        return FittedTransform(self, fit_cut(self.breaks))

    def _evaluate(self, params, column) -> pd.DataFrame:
        return bin_indicators(params, column, drop_first=self.drop_first)


def _choose_knots(knots, num_knots, column):
    if knots is not None:
        return knots
    if num_knots is None:
        raise InvalidConfigurationError("either knots or num_knots must be given")
    return quantile_knots(column, num_knots)


@dataclass(frozen=True)
class SplineTransform(Transform):
    """B-spline basis; knots are given directly or placed at training quantiles."""

    knots: tuple[float, ...] | None = None
    num_knots: int | None = None
    degree: int = DEFAULT_SPLINE_DEGREE
    extrapolation: str = "linear"

    def fit(self, column) -> FittedTransform:
        knots = _choose_knots(self.knots, self.num_knots, column)
        basis = fit_spline(
            knots, degree=self.degree, column=column, extrapolation=self.extrapolation
        )
        return FittedTransform(self, basis)

    def _evaluate(self, params, column) -> pd.DataFrame:
        return apply_spline(params, column)


@dataclass(frozen=True)
class NaturalSplineTransform(Transform):
    knots: tuple[float, ...] | None = None
    num_knots: int | None = None
    include_intercept: bool = False

    def fit(self, column) -> FittedTransform:
        knots = _choose_knots(self.knots, self.num_knots, column)
        basis = fit_natural_spline(
            knots, column=column, include_intercept=self.include_intercept
        )
        return FittedTransform(self, basis)

    def _evaluate(self, params, column) -> pd.DataFrame:
        return apply_natural_spline(params, column)


def fit_transforms(transforms: Sequence[Transform], column) -> list[FittedTransform]:
    """Fit every transform on the same training column, keeping their order."""
    if not transforms:
        raise InvalidConfigurationError("at least one transform is required")
    fitted = [transform.fit(column) for transform in transforms]
    logger.info("Fitted %d transform(s): %s", len(fitted), [type(t).__name__ for t in transforms])
    return fitted


def apply_transforms(fitted: Sequence[FittedTransform], column) -> pd.DataFrame:
    """Apply fitted transforms in order and concatenate their columns."""
    if not fitted:
        raise DimensionMismatchError(
            "no fitted transforms given; the design would have no columns"
        )
    blocks = [f.transform.apply(f, column) for f in fitted]
    design = pd.concat(blocks, axis=1)
    logger.debug("Design matrix: %d rows x %d columns", *design.shape)
    return design
