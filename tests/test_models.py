from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LinearRegression

from beyond_linear import (
    DimensionMismatchError,
    InvalidConfigurationError,
    LinearRegressionOLS,
    LogisticRegressionIRLS,
    ModelFitError,
    PolynomialTransform,
    SplineTransform,
    apply_transforms,
    compare_nested_models,
    fit_transforms,
)


def poly_design(column, degree):
    fitted = fit_transforms([PolynomialTransform(degree=degree)], column)
    return fitted, apply_transforms(fitted, column)


def test_ols_recovers_exact_line():
    x = np.arange(10, dtype=float)
    model = LinearRegressionOLS().fit(x, 2.0 + 3.0 * x + np.sin(x) * 1e-3)
    np.testing.assert_allclose([model.intercept_, *model.coef_], [2.0, 3.0], atol=1e-2)


def test_ols_matches_sklearn(wage_df):
    _, X = poly_design(wage_df["age"], 4)
    ours = LinearRegressionOLS().fit(X, wage_df["wage"])
    reference = LinearRegression().fit(X, wage_df["wage"])

    np.testing.assert_allclose(ours.coef_, reference.coef_, rtol=1e-8)
    np.testing.assert_allclose(ours.intercept_, reference.intercept_, rtol=1e-8)
    np.testing.assert_allclose(ours.predict(X), reference.predict(X), rtol=1e-8)


def test_confidence_band_brackets_the_fit_and_widens_outside(wage_df):
    fitted, X = poly_design(wage_df["age"], 4)
    model = LinearRegressionOLS().fit(X, wage_df["wage"])

    grid = pd.Series([45.0, 80.0, 100.0], name="age")
    band = model.predict(apply_transforms(fitted, grid), mode="conf_int")

    assert list(band.columns) == ["fit", "lower", "upper"]
    assert (band["lower"] < band["fit"]).all() and (band["fit"] < band["upper"]).all()
    width = band["upper"] - band["lower"]
    assert width.iloc[0] < width.iloc[1] < width.iloc[2]
    np.testing.assert_allclose(band["fit"], model.predict(apply_transforms(fitted, grid)))


def test_degree_four_extrapolation_to_age_100(wage_df):
    fitted, X = poly_design(wage_df["age"], 4)
    model = LinearRegressionOLS().fit(X, wage_df["wage"])
    at_100 = model.predict(apply_transforms(fitted, pd.Series([100.0], name="age")))
    assert np.isfinite(at_100).all()
    again = model.predict(apply_transforms(fitted, pd.Series([100.0], name="age")))
    np.testing.assert_array_equal(at_100, again)


def test_wider_level_gives_wider_band(wage_df):
    fitted, X = poly_design(wage_df["age"], 2)
    model = LinearRegressionOLS().fit(X, wage_df["wage"])
    narrow = model.predict(X.iloc[:5], mode="conf_int", level=0.8)
    wide = model.predict(X.iloc[:5], mode="conf_int", level=0.99)
    assert ((wide["upper"] - wide["lower"]) > (narrow["upper"] - narrow["lower"])).all()


def test_rank_deficient_design_is_rejected(wage_df):
    _, X = poly_design(wage_df["age"], 2)
    X["copy"] = X["age_poly_1"]
    with pytest.raises(ModelFitError, match="rank deficient"):
        LinearRegressionOLS().fit(X, wage_df["wage"])


def test_raw_and_orthogonal_degree_six_give_the_same_band(wage_df):
    grid = pd.Series([20.0, 35.0, 50.0, 65.0, 80.0], name="age")
    bands = []
    for orthogonal in (False, True):
        fitted = fit_transforms(
            [PolynomialTransform(degree=6, orthogonal=orthogonal)], wage_df["age"]
        )
        model = LinearRegressionOLS().fit(
            apply_transforms(fitted, wage_df["age"]), wage_df["wage"]
        )
        bands.append(model.predict(apply_transforms(fitted, grid), mode="conf_int"))

    raw_band, orthogonal_band = bands
    np.testing.assert_allclose(raw_band.to_numpy(), orthogonal_band.to_numpy(), rtol=1e-4)


def test_raw_powers_in_logistic_fit_match_orthogonal(wage_df):
    grid = pd.Series([25.0, 45.0, 65.0], name="age")
    bands = []
    for orthogonal in (False, True):
        fitted = fit_transforms(
            [PolynomialTransform(degree=4, orthogonal=orthogonal)], wage_df["age"]
        )
        model = LogisticRegressionIRLS().fit(
            apply_transforms(fitted, wage_df["age"]), wage_df["high_earner"]
        )
        bands.append(model.predict(apply_transforms(fitted, grid), mode="conf_int"))

    np.testing.assert_allclose(bands[0].to_numpy(), bands[1].to_numpy(), rtol=1e-3)


def test_full_bspline_basis_carries_its_own_intercept(wage_df):
    fitted = fit_transforms([SplineTransform(knots=(25.0, 40.0, 60.0))], wage_df["age"])
    X = apply_transforms(fitted, wage_df["age"])
    with pytest.raises(ModelFitError):
        LinearRegressionOLS().fit(X, wage_df["wage"])
    model = LinearRegressionOLS(fit_intercept=False).fit(X, wage_df["wage"])
    assert model.coef_.shape == (7,)


def test_too_few_rows():
    with pytest.raises(ModelFitError, match="more rows"):
        LinearRegressionOLS().fit([[1.0], [2.0]], [1.0, 2.0])


def test_predict_checks_mode_and_width(wage_df):
    _, X = poly_design(wage_df["age"], 2)
    model = LinearRegressionOLS().fit(X, wage_df["wage"])
    with pytest.raises(InvalidConfigurationError, match="mode"):
        model.predict(X, mode="median")
    with pytest.raises(InvalidConfigurationError, match="logistic"):
        model.predict(X, mode="probability")
    with pytest.raises(InvalidConfigurationError, match="level"):
        model.predict(X, mode="conf_int", level=1.5)
    with pytest.raises(DimensionMismatchError, match="expected 2"):
        model.predict(X.iloc[:, :1])


def test_response_length_must_match(wage_df):
    _, X = poly_design(wage_df["age"], 2)
    with pytest.raises(DimensionMismatchError):
        LinearRegressionOLS().fit(X, wage_df["wage"].iloc[:-1])


def test_summary_table(wage_df):
    _, X = poly_design(wage_df["age"], 3)
    table = LinearRegressionOLS().fit(X, wage_df["wage"]).summary()
    assert list(table.index) == ["(intercept)", "age_poly_1", "age_poly_2", "age_poly_3"]
    assert table["p_value"].between(0, 1).all()


def test_logistic_probabilities_and_band(wage_df):
    fitted, X = poly_design(wage_df["age"], 2)
    model = LogisticRegressionIRLS().fit(X, wage_df["high_earner"])

    probs = model.predict(X, mode="probability")
    assert ((probs > 0) & (probs < 1)).all()
    assert set(np.unique(model.predict(X))) <= {0, 1}

    band = model.predict(apply_transforms(fitted, pd.Series([30.0, 50.0, 100.0], name="age")), mode="conf_int")
    assert ((band["lower"] >= 0) & (band["upper"] <= 1)).all()
    assert ((band["lower"] <= band["fit"]) & (band["fit"] <= band["upper"])).all()
    assert model.n_iter >= 1


def test_logistic_score_equations_hold_at_solution(wage_df):
    _, X = poly_design(wage_df["age"], 3)
    y = wage_df["high_earner"].to_numpy()
    model = LogisticRegressionIRLS().fit(X, y)

    probs = model.predict(X, mode="probability")
    X_bias = np.hstack([np.ones((len(X), 1)), X.to_numpy()])
    np.testing.assert_allclose(X_bias.T @ (y - probs), 0.0, atol=1e-5)


def test_logistic_rejects_bad_responses(wage_df):
    _, X = poly_design(wage_df["age"], 2)
    with pytest.raises(InvalidConfigurationError, match="0/1"):
        LogisticRegressionIRLS().fit(X, wage_df["wage"])
    with pytest.raises(ModelFitError, match="single class"):
        LogisticRegressionIRLS().fit(X, np.zeros(len(X)))


def test_logistic_reports_non_convergence(wage_df):
    _, X = poly_design(wage_df["age"], 2)
    with pytest.raises(ModelFitError, match="did not converge"):
        LogisticRegressionIRLS(max_iter=1).fit(X, wage_df["high_earner"])


def test_nested_polynomial_comparison(wage_df):
    age, wage = wage_df["age"], wage_df["wage"]
    fits = [LinearRegressionOLS().fit(poly_design(age, d)[1], wage) for d in range(1, 5)]
    table = compare_nested_models(fits)

    assert list(table["res_df"]) == [len(age) - 2, len(age) - 3, len(age) - 4, len(age) - 5]
    assert table["rss"].is_monotonic_decreasing
    assert np.isnan(table["F"].iloc[0])
    assert table["p_value"].iloc[1:].between(0, 1).all()
    # the simulated curve is quadratic, so degree 2 clearly beats degree 1
    assert table["p_value"].iloc[1] < 1e-4


def test_nested_comparison_validates_order(wage_df):
    age, wage = wage_df["age"], wage_df["wage"]
    small = LinearRegressionOLS().fit(poly_design(age, 1)[1], wage)
    big = LinearRegressionOLS().fit(poly_design(age, 3)[1], wage)
    with pytest.raises(InvalidConfigurationError, match="increasing size"):
        compare_nested_models([big, small])
    with pytest.raises(InvalidConfigurationError):
        compare_nested_models([small])
