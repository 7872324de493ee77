from __future__ import annotations

"""
Polynomial expansion of a single predictor, raw (x, x^2, ...) or orthogonal.

The orthogonal basis is built once from the training column: the monomials
1, x, ..., x^D are orthogonalised under the empirical inner product (QR of
the centred Vandermonde matrix), the constant is dropped and every column is
scaled to unit norm. Only the three-term recurrence coefficients are kept, so
new data (inside or outside the training range) are evaluated with the same
polynomials instead of being re-orthogonalised.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .columns import as_column, check_degree, column_name, to_design_matrix
from .exceptions import InsufficientDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolynomialBasis:
    """Fitted polynomial expansion; `alpha`/`norm2` are empty in raw mode."""

    degree: int
    orthogonal: bool = True
    alpha: tuple[float, ...] = ()
    norm2: tuple[float, ...] = ()
    domain: tuple[float, float] | None = None

    @property
    def n_columns(self) -> int:
        return self.degree


def fit_polynomial(column, degree: int, orthogonal: bool = True) -> PolynomialBasis:
    """
    Learn a polynomial basis of the given degree from the training column.

    Raises InsufficientDataError when the column has no more distinct values
    than the requested degree.
    """
    degree = check_degree(degree, 1)
    x, _ = as_column(column, "polynomial training column")

    n_unique = np.unique(x).size
    if degree >= n_unique:
        raise InsufficientDataError(
            f"degree must be less than the number of distinct training values "
            f"(degree={degree}, distinct values={n_unique})"
        )
    domain = (float(x.min()), float(x.max()))

    if not orthogonal:
        return PolynomialBasis(degree=degree, orthogonal=False, domain=domain)

    x_mean = x.mean()
    centered = x - x_mean
    vander = np.vander(centered, degree + 1, increasing=True)
    q, r = np.linalg.qr(vander)
    # Q scaled by diag(R): column j is x^j minus its projection on lower degrees
    z = q * np.diag(r)
    norm2 = (z**2).sum(axis=0)
    alpha = ((centered[:, None] * z**2).sum(axis=0) / norm2 + x_mean)[:degree]
    norm2 = np.concatenate([[1.0], norm2])

    logger.debug("Fitted orthogonal polynomial degree=%d on %d rows", degree, x.size)
    return PolynomialBasis(
        degree=degree,
        orthogonal=True,
        alpha=tuple(float(a) for a in alpha),
        norm2=tuple(float(n) for n in norm2),
        domain=domain,
    )


def _orthogonal_values(x: np.ndarray, basis: PolynomialBasis) -> np.ndarray:
    alpha = np.asarray(basis.alpha)
    norm2 = np.asarray(basis.norm2)
    z = np.ones((x.size, basis.degree + 1))
    z[:, 1] = x - alpha[0]
    for i in range(1, basis.degree):
        z[:, i + 1] = (x - alpha[i]) * z[:, i] - (norm2[i + 1] / norm2[i]) * z[:, i - 1]
    return z[:, 1:] / np.sqrt(norm2[2:])


def apply_polynomial(basis: PolynomialBasis, column) -> pd.DataFrame:
    """Evaluate a fitted basis on any column; returns `degree` columns."""
    x, index = as_column(column)
    if basis.domain is not None:
        lo, hi = basis.domain
        outside = int(((x < lo) | (x > hi)).sum())
        if outside:
            logger.warning(
                "Extrapolating polynomial basis for %d value(s) outside [%g, %g]",
                outside,
                lo,
                hi,
            )

    if basis.orthogonal:
        values = _orthogonal_values(x, basis)
        prefix = f"{column_name(column)}_poly"
    else:
        values = np.column_stack([x**j for j in range(1, basis.degree + 1)])
        prefix = f"{column_name(column)}_pow"
    return to_design_matrix(values, prefix, index)
