# tests/conftest.py
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from beyond_linear import simulate_wage


@pytest.fixture
def ages() -> pd.Series:
    """Integer ages 18..80, each repeated a few times, in shuffled order."""
    rng = np.random.default_rng(7)
    values = np.repeat(np.arange(18, 81, dtype=float), 3)
    return pd.Series(rng.permutation(values), name="age")


@pytest.fixture
def wage_df() -> pd.DataFrame:
    return simulate_wage(n=800, random_state=0)


@pytest.fixture
def distinct_column() -> np.ndarray:
    rng = np.random.default_rng(11)
    return rng.permutation(np.linspace(0.0, 1.0, 103))
