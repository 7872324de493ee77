from __future__ import annotations

import dataclasses

import numpy as np
import pandas as pd
import pytest

from beyond_linear import (
    DimensionMismatchError,
    InsufficientDataError,
    InvalidConfigurationError,
    LinearRegressionOLS,
    apply_polynomial,
    fit_polynomial,
)


@pytest.mark.parametrize("degree", [1, 2, 4, 6])
def test_orthogonal_columns_are_centered_and_uncorrelated(ages, degree):
    basis = fit_polynomial(ages, degree)
    X = apply_polynomial(basis, ages).to_numpy()

    assert X.shape == (len(ages), degree)
    np.testing.assert_allclose(X.mean(axis=0), 0.0, atol=1e-10)
    cov = np.cov(X, rowvar=False).reshape(degree, degree)
    off_diag = cov - np.diag(np.diag(cov))
    np.testing.assert_allclose(off_diag, 0.0, atol=1e-10)
    # unit-norm columns
    np.testing.assert_allclose(X.T @ X, np.eye(degree), atol=1e-8)


def test_orthogonal_column_j_is_a_degree_j_polynomial(ages):
    X = apply_polynomial(fit_polynomial(ages, 3), ages).to_numpy()
    x = ages.to_numpy()
    for j in range(1, 4):
        vander = np.vander(x - x.mean(), j + 1, increasing=True)
        coef, *_ = np.linalg.lstsq(vander, X[:, j - 1], rcond=None)
        np.testing.assert_allclose(vander @ coef, X[:, j - 1], atol=1e-9)
        # the leading coefficient is not zero, so the degree is exactly j
        assert abs(coef[-1]) > 1e-12


def test_raw_columns_are_plain_powers(ages):
    basis = fit_polynomial(ages, 4, orthogonal=False)
    X = apply_polynomial(basis, ages)

    assert list(X.columns) == ["age_pow_1", "age_pow_2", "age_pow_3", "age_pow_4"]
    for j in range(1, 5):
        np.testing.assert_allclose(X[f"age_pow_{j}"].to_numpy(), ages.to_numpy() ** j, rtol=1e-12)


def test_raw_and_orthogonal_span_the_same_fits(ages):
    rng = np.random.default_rng(3)
    y = 50 + 2 * ages - 0.02 * ages**2 + rng.normal(0, 5, size=len(ages))
    raw = apply_polynomial(fit_polynomial(ages, 3, orthogonal=False), ages)
    ortho = apply_polynomial(fit_polynomial(ages, 3), ages)

    fit_raw = LinearRegressionOLS().fit(raw, y).predict(raw)
    fit_ortho = LinearRegressionOLS().fit(ortho, y).predict(ortho)
    np.testing.assert_allclose(fit_raw, fit_ortho, rtol=1e-7)


def test_new_data_reuses_training_coefficients(ages):
    basis = fit_polynomial(ages, 4)
    on_train = apply_polynomial(basis, ages)

    new = pd.Series([18.0, 45.0, 80.0, 95.0, 100.0], name="age")
    on_new = apply_polynomial(basis, new)

    for pos, age in enumerate([18.0, 45.0, 80.0]):
        train_row = on_train[ages == age].iloc[0].to_numpy()
        np.testing.assert_allclose(on_new.iloc[pos].to_numpy(), train_row, rtol=1e-12)

    # evaluating new data does not touch the fitted basis
    assert fit_polynomial(ages, 4) == basis


def test_extrapolation_is_finite_and_deterministic(ages):
    basis = fit_polynomial(ages, 4)
    far = pd.Series([100.0], name="age")
    first = apply_polynomial(basis, far)
    second = apply_polynomial(basis, far)

    assert np.isfinite(first.to_numpy()).all()
    np.testing.assert_array_equal(first.to_numpy(), second.to_numpy())


def test_extrapolation_logs_a_warning(ages, caplog):
    basis = fit_polynomial(ages, 2)
    with caplog.at_level("WARNING", logger="beyond_linear.polynomial"):
        apply_polynomial(basis, [10.0, 50.0, 120.0])
    assert "2 value(s) outside" in caplog.text


def test_round_trip_is_repeatable(ages):
    first = apply_polynomial(fit_polynomial(ages, 4), ages)
    second = apply_polynomial(fit_polynomial(ages, 4), ages)
    np.testing.assert_array_equal(first.to_numpy(), second.to_numpy())
    assert first.index.equals(ages.index)


def test_basis_is_frozen(ages):
    basis = fit_polynomial(ages, 2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        basis.degree = 3


def test_degree_must_be_below_distinct_count():
    with pytest.raises(InsufficientDataError, match="distinct"):
        fit_polynomial([1.0, 2.0, 2.0, 3.0], 3)


@pytest.mark.parametrize("degree", [0, -1, 2.5, True])
def test_invalid_degree(ages, degree):
    with pytest.raises(InvalidConfigurationError, match="degree"):
        fit_polynomial(ages, degree)


@pytest.mark.parametrize("column", [[], [1.0, np.nan, 3.0], [[1.0, 2.0], [3.0, 4.0]]])
def test_malformed_columns(column):
    with pytest.raises(DimensionMismatchError):
        fit_polynomial(column, 1)


def test_apply_rejects_empty_column(ages):
    basis = fit_polynomial(ages, 2)
    with pytest.raises(DimensionMismatchError, match="empty"):
        apply_polynomial(basis, [])
