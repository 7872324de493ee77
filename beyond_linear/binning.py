from __future__ import annotations

"""
Step-function features: cut a numeric column into ordered, right-closed bins.

Bins are (-inf, c1], (c1, c2], ..., (c_{K-1}, inf), so values beyond the
outer cut points always land in the open-ended boundary bins.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from .columns import as_column, check_degree, column_name
from .exceptions import InsufficientDataError, InvalidConfigurationError

logger = logging.getLogger(__name__)


def _format_edge(value: float) -> str:
    return f"{value:g}"


def _interval_labels(breaks: Sequence[float]) -> tuple[str, ...]:
    edges = ["-inf", *(_format_edge(b) for b in breaks)]
    labels = [f"({left},{right}]" for left, right in zip(edges[:-1], edges[1:])]
    labels.append(f"({edges[-1]},inf)")
    return tuple(labels)


@dataclass(frozen=True)
class BinSpec:
    """Fixed cut points and the label of every bin they induce."""

    breaks: tuple[float, ...]
    labels: tuple[str, ...]

    @property
    def n_bins(self) -> int:
        return len(self.breaks) + 1


def fit_cut(breaks: Sequence[float]) -> BinSpec:
    """Bin specification from caller-supplied cut points (no data needed)."""
    cut_points = np.asarray(list(breaks) if breaks is not None else [], dtype=float)
    if cut_points.ndim != 1 or cut_points.size == 0:
        raise InvalidConfigurationError("breaks must be a non-empty sequence of numbers")
    if not np.isfinite(cut_points).all():
        raise InvalidConfigurationError("breaks must be finite")
    if np.any(np.diff(cut_points) <= 0):
        raise InvalidConfigurationError(
            f"breaks must be strictly increasing, got {cut_points.tolist()}"
        )
    as_tuple = tuple(float(b) for b in cut_points)
    return BinSpec(breaks=as_tuple, labels=_interval_labels(as_tuple))


def fit_discretize(column, num_breaks: int) -> BinSpec:
    """
    Choose K-1 cut points so each of the K bins holds about N/K training rows.

    Cut i is the midpoint between the sorted values at positions
    floor(i*N/K) - 1 and floor(i*N/K). With distinct values every bin then
    holds floor(N/K) or ceil(N/K) rows. Ties at a cut go to the lower bin,
    and cut points that coincide because of ties are merged (fewer bins).
    """
    num_breaks = check_degree(num_breaks, 2, "num_breaks")
    x, _ = as_column(column, "discretize training column")
    n = x.size
    if n < num_breaks:
        raise InsufficientDataError(
            f"num_breaks={num_breaks} exceeds the number of training rows ({n})"
        )

    ordered = np.sort(x, kind="stable")
    positions = (np.arange(1, num_breaks) * n) // num_breaks
    cuts = (ordered[positions - 1] + ordered[positions]) / 2.0
    unique_cuts = np.unique(cuts)
    if unique_cuts.size < cuts.size:
        logger.warning(
            "Tied quantiles merged %d cut point(s); producing %d bins instead of %d",
            cuts.size - unique_cuts.size,
            unique_cuts.size + 1,
            num_breaks,
        )
    return fit_cut(unique_cuts)


def bin_codes(spec: BinSpec, column) -> np.ndarray:
    """Integer bin index (0 .. n_bins-1) for every value, via binary search."""
    x, _ = as_column(column)
    return np.searchsorted(np.asarray(spec.breaks), x, side="left")


def apply_bin(spec: BinSpec, column) -> pd.Categorical:
    """Ordered categorical label for every value of the column."""
    return pd.Categorical.from_codes(
        bin_codes(spec, column), categories=list(spec.labels), ordered=True
    )


def bin_indicators(spec: BinSpec, column, drop_first: bool = True) -> pd.DataFrame:
    """
    One-hot step-function columns. All bins of the spec are represented even
    when the column leaves some empty, so the width never depends on the data.
    """
    _, index = as_column(column)
    labels = pd.Series(apply_bin(spec, column), index=index)
    dummies = pd.get_dummies(labels, prefix=f"{column_name(column)}_bin", prefix_sep="_")
    if drop_first:
        dummies = dummies.iloc[:, 1:]
    return dummies.astype(float)
