from __future__ import annotations

"""
Regression spline bases: B-splines of any degree and natural cubic splines.

A SplineBasis pins down the interior knots, the two boundary knots and the
degree. Its clamped knot vector is

    [lo] * (degree + 1) + knots + [hi] * (degree + 1)

which yields len(knots) + degree + 1 basis functions that sum to one on
[lo, hi]. Values are computed with the Cox-de Boor recursion: degree-0
functions are knot-interval indicators and each higher degree blends two
neighbours with linear ramps over the knot span.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from .columns import as_column, check_degree, column_name, to_design_matrix
from .constants import DEFAULT_SPLINE_DEGREE, EXTRAPOLATION_MODES
from .exceptions import InsufficientDataError, InvalidConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplineBasis:
    knots: tuple[float, ...]
    degree: int
    boundary_knots: tuple[float, float]
    extrapolation: str = "linear"

    @property
    def knot_vector(self) -> np.ndarray:
        lo, hi = self.boundary_knots
        return np.concatenate(
            [[lo] * (self.degree + 1), self.knots, [hi] * (self.degree + 1)]
        ).astype(float)

    @property
    def n_columns(self) -> int:
        return len(self.knots) + self.degree + 1


@dataclass(frozen=True)
class NaturalSplineBasis:
    """Cubic B-spline basis projected onto the zero-curvature-at-boundary subspace."""

    spline: SplineBasis
    projection: tuple[tuple[float, ...], ...]
    include_intercept: bool = False

    @property
    def n_columns(self) -> int:
        return len(self.projection[0])


def _check_knots(knots: Sequence[float]) -> np.ndarray:
    values = np.asarray(list(knots) if knots is not None else [], dtype=float)
    if values.ndim != 1 or values.size < 1:
        raise InvalidConfigurationError("knots must contain at least one value")
    if not np.isfinite(values).all():
        raise InvalidConfigurationError("knots must be finite")
    if np.any(np.diff(values) <= 0):
        raise InvalidConfigurationError(
            f"knots must be strictly increasing, got {values.tolist()}"
        )
    return values


def _resolve_boundary(knots: np.ndarray, boundary_knots, column) -> tuple[float, float]:
    if boundary_knots is not None:
        lo, hi = (float(b) for b in boundary_knots)
    elif column is not None:
        x, _ = as_column(column, "spline training column")
        lo, hi = float(x.min()), float(x.max())
    else:
        spacing = (knots[-1] - knots[0]) / (knots.size - 1) if knots.size > 1 else 1.0
        lo, hi = float(knots[0] - spacing), float(knots[-1] + spacing)

    if not (lo < knots[0] and knots[-1] < hi):
        raise InvalidConfigurationError(
            f"knots must lie strictly inside the boundary knots ({lo:g}, {hi:g}), "
            f"got {knots.tolist()}"
        )
    return lo, hi


def quantile_knots(column, num_knots: int) -> tuple[float, ...]:
    """Interior knots at the training quantiles i / (num_knots + 1)."""
    num_knots = check_degree(num_knots, 1, "num_knots")
    x, _ = as_column(column, "spline training column")
    probs = np.arange(1, num_knots + 1) / (num_knots + 1)
    knots = np.quantile(x, probs)
    if np.unique(knots).size < knots.size:
        raise InsufficientDataError(
            f"num_knots={num_knots} produces tied quantile knots; "
            "the column has too few distinct values"
        )
    return tuple(float(k) for k in knots)


def fit_spline(
    knots: Sequence[float],
    degree: int = DEFAULT_SPLINE_DEGREE,
    boundary_knots: Sequence[float] | None = None,
    column=None,
    extrapolation: str = "linear",
) -> SplineBasis:
    """
    Fix a B-spline basis.

    Boundary knots come from `boundary_knots`, else the range of `column`,
    else one mean knot spacing beyond the outer knots.
    """
    degree = check_degree(degree, 0)
    knot_values = _check_knots(knots)
    if extrapolation not in EXTRAPOLATION_MODES:
        raise InvalidConfigurationError(
            f"extrapolation must be one of {EXTRAPOLATION_MODES}, got {extrapolation!r}"
        )
    boundary = _resolve_boundary(knot_values, boundary_knots, column)
    basis = SplineBasis(
        knots=tuple(float(k) for k in knot_values),
        degree=degree,
        boundary_knots=boundary,
        extrapolation=extrapolation,
    )
    logger.debug(
        "Fitted B-spline degree=%d knots=%s boundary=%s", degree, basis.knots, boundary
    )
    return basis


def bspline_design(x, knot_vector, degree: int, deriv: int = 0) -> np.ndarray:
    """
    Evaluate every B-spline (or its `deriv`-th derivative) of the knot vector
    at x. Points outside the knot range use the polynomial piece of the
    nearest non-empty knot interval.
    """
    t = np.asarray(knot_vector, dtype=float)
    x = np.atleast_1d(np.asarray(x, dtype=float))
    n_basis = t.size - degree - 1
    if n_basis < 1:
        raise InvalidConfigurationError(
            f"knot vector of length {t.size} is too short for degree {degree}"
        )

    if deriv > degree:
        return np.zeros((x.size, n_basis))
    if deriv > 0:
        lower = bspline_design(x, t, degree - 1, deriv - 1)
        out = np.zeros((x.size, n_basis))
        for i in range(n_basis):
            left = t[i + degree] - t[i]
            right = t[i + degree + 1] - t[i + 1]
            if left > 0:
                out[:, i] += lower[:, i] / left
            if right > 0:
                out[:, i] -= lower[:, i + 1] / right
        return degree * out

    nonempty = np.flatnonzero(np.diff(t) > 0)
    span = np.searchsorted(t, x, side="right") - 1
    span = np.clip(span, nonempty[0], nonempty[-1])

    values = np.zeros((x.size, t.size - 1))
    values[np.arange(x.size), span] = 1.0
    for d in range(1, degree + 1):
        nxt = np.zeros((x.size, t.size - 1 - d))
        for i in range(t.size - 1 - d):
            left = t[i + d] - t[i]
            right = t[i + d + 1] - t[i + 1]
            if left > 0:
                nxt[:, i] += (x - t[i]) / left * values[:, i]
            if right > 0:
                nxt[:, i] += (t[i + d + 1] - x) / right * values[:, i + 1]
        values = nxt
    return values


def _spline_values(basis: SplineBasis, x: np.ndarray) -> np.ndarray:
    t = basis.knot_vector
    values = bspline_design(x, t, basis.degree)
    if basis.extrapolation == "polynomial":
        return values

    lo, hi = basis.boundary_knots
    for edge, mask in ((lo, x < lo), (hi, x > hi)):
        if not mask.any():
            continue
        at_edge = bspline_design([edge], t, basis.degree)
        slope = bspline_design([edge], t, basis.degree, deriv=1)
        values[mask] = at_edge + (x[mask, None] - edge) * slope
    return values


def _warn_outside(basis: SplineBasis, x: np.ndarray):
    lo, hi = basis.boundary_knots
    outside = int(((x < lo) | (x > hi)).sum())
    if outside:
        logger.warning(
            "Extrapolating spline basis (%s) for %d value(s) outside [%g, %g]",
            basis.extrapolation,
            outside,
            lo,
            hi,
        )


def apply_spline(basis: SplineBasis, column) -> pd.DataFrame:
    """Evaluate the fitted basis; returns len(knots) + degree + 1 columns."""
    x, index = as_column(column)
    _warn_outside(basis, x)
    return to_design_matrix(_spline_values(basis, x), f"{column_name(column)}_bs", index)


def fit_natural_spline(
    knots: Sequence[float],
    boundary_knots: Sequence[float] | None = None,
    column=None,
    include_intercept: bool = False,
) -> NaturalSplineBasis:
    """
    Natural cubic spline: a cubic B-spline basis constrained to have zero
    second derivative at both boundary knots, so fits are linear beyond them.
    Gives len(knots) + 1 columns, or len(knots) + 2 with the intercept.
    """
    spline = fit_spline(
        knots, degree=3, boundary_knots=boundary_knots, column=column, extrapolation="linear"
    )
    curvature = bspline_design(list(spline.boundary_knots), spline.knot_vector, 3, deriv=2)
    if not include_intercept:
        curvature = curvature[:, 1:]
    q, _ = np.linalg.qr(curvature.T, mode="complete")
    projection = q[:, 2:]
    return NaturalSplineBasis(
        spline=spline,
        projection=tuple(tuple(float(v) for v in row) for row in projection),
        include_intercept=include_intercept,
    )


def apply_natural_spline(basis: NaturalSplineBasis, column) -> pd.DataFrame:
    x, index = as_column(column)
    _warn_outside(basis.spline, x)
    values = _spline_values(basis.spline, x)
    if not basis.include_intercept:
        values = values[:, 1:]
    values = values @ np.asarray(basis.projection)
    return to_design_matrix(values, f"{column_name(column)}_ns", index)
