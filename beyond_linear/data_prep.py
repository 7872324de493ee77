from __future__ import annotations

"""
Data preparation for the wage-vs-age experiments: CSV loading, a synthetic
stand-in with the same shape, train/test splitting and prediction grids.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from .constants import AGE_COLUMN, HIGH_EARNER_COLUMN, HIGH_EARNER_THRESHOLD, WAGE_COLUMN
from .exceptions import DimensionMismatchError, InvalidConfigurationError

logger = logging.getLogger(__name__)


def add_high_earner_label(
    df: pd.DataFrame, threshold: float = HIGH_EARNER_THRESHOLD
) -> pd.DataFrame:
    """Add the 0/1 classification target `wage > threshold`."""
    out = df.copy()
    out[HIGH_EARNER_COLUMN] = (out[WAGE_COLUMN] > threshold).astype(int)
    return out


def load_wage(csv_path: Path, threshold: float = HIGH_EARNER_THRESHOLD) -> pd.DataFrame:
    """
    Read a Wage-style CSV. Only `age` and `wage` are required; any other
    columns are carried through untouched. Rows missing either are dropped.
    """
    df = pd.read_csv(csv_path)
    missing = [c for c in (AGE_COLUMN, WAGE_COLUMN) if c not in df.columns]
    if missing:
        raise DimensionMismatchError(f"{csv_path} is missing required columns: {missing}")

    before = len(df)
    df = df.dropna(subset=[AGE_COLUMN, WAGE_COLUMN]).reset_index(drop=True)
    if len(df) < before:
        logger.warning("Dropped %d row(s) with missing age or wage", before - len(df))
    df[AGE_COLUMN] = df[AGE_COLUMN].astype(float)
    df[WAGE_COLUMN] = df[WAGE_COLUMN].astype(float)
    logger.info("Loaded %d rows from %s", len(df), csv_path)
    return add_high_earner_label(df, threshold)


def simulate_wage(
    n: int = 3000,
    random_state: int | None = 42,
    threshold: float = HIGH_EARNER_THRESHOLD,
) -> pd.DataFrame:
    """
    Synthetic Wage-like sample: wage rises with age, flattens in the
    forties and falls off later, plus a small group of high earners
    concentrated in mid-career.
    """
    if n < 1:
        raise InvalidConfigurationError(f"n must be >= 1, got {n}")
    rng = np.random.default_rng(random_state)
    age = np.clip(np.round(rng.normal(42, 11.5, size=n)), 18, 80)
    wage = 35 + 3.6 * age - 0.037 * age**2 + rng.normal(0, 30, size=n)
    p_high = 0.005 + 0.06 * np.exp(-(((age - 50) / 12) ** 2))
    high = rng.random(n) < p_high
    wage = np.clip(wage + high * rng.uniform(130, 200, size=n), 20, None)

    df = pd.DataFrame({AGE_COLUMN: age, WAGE_COLUMN: wage})
    return add_high_earner_label(df, threshold)


def make_train_test_split(
    df: pd.DataFrame,
    test_size: float = 0.2,
    random_state: int | None = 42,
    stratify_column: str | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Random row-level split, optionally stratified on one column."""
    stratify = df[stratify_column] if stratify_column is not None else None
    train, test = train_test_split(
        df, test_size=test_size, random_state=random_state, stratify=stratify
    )
    return train.sort_index(), test.sort_index()


def make_age_grid(
    column, num: int = 100, extend_to: float | None = None
) -> pd.Series:
    """Evenly spaced ages from the column minimum to its maximum (or `extend_to`)."""
    values = np.asarray(column, dtype=float)
    if values.size == 0:
        raise DimensionMismatchError("cannot build a grid from an empty column")
    lo = float(values.min())
    hi = float(values.max()) if extend_to is None else max(float(values.max()), extend_to)
    return pd.Series(np.linspace(lo, hi, num), name=AGE_COLUMN)
