from __future__ import annotations

"""
Shared helpers that turn raw predictor columns into arrays and wrap basis
arrays back into named design matrices.
"""

import numpy as np
import pandas as pd

from .exceptions import DimensionMismatchError, InvalidConfigurationError


def as_column(column, name: str = "column") -> tuple[np.ndarray, pd.Index]:
    """
    Validate a raw predictor column and return it as a float array plus the
    row index the output should carry.
    """
    index = column.index if isinstance(column, pd.Series) else None
    values = np.asarray(column, dtype=float)
    if values.ndim != 1:
        raise DimensionMismatchError(
            f"{name} must be one-dimensional, got shape {values.shape}"
        )
    if values.size == 0:
        raise DimensionMismatchError(f"{name} is empty")
    if not np.isfinite(values).all():
        raise DimensionMismatchError(f"{name} contains NaN or infinite values")
    if index is None:
        index = pd.RangeIndex(values.size)
    return values, index


def to_design_matrix(
    basis: np.ndarray, prefix: str, index: pd.Index, start: int = 1
) -> pd.DataFrame:
    """Wrap an (n, d) basis array as a DataFrame with `prefix_<j>` columns."""
    columns = [f"{prefix}_{j}" for j in range(start, start + basis.shape[1])]
    return pd.DataFrame(basis, index=index, columns=columns)


def column_name(column, default: str = "x") -> str:
    """Name used to prefix derived feature columns."""
    name = getattr(column, "name", None)
    return str(name) if name is not None else default


def check_degree(degree, minimum: int, what: str = "degree") -> int:
    """Reject non-integer or too-small degrees/counts with a readable message."""
    if isinstance(degree, bool) or not isinstance(degree, (int, np.integer)):
        raise InvalidConfigurationError(f"{what} must be an integer, got {degree!r}")
    if degree < minimum:
        raise InvalidConfigurationError(f"{what} must be >= {minimum}, got {degree}")
    return int(degree)
