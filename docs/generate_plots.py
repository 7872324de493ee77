import sys
import os
from pathlib import Path

# Add parent directory to sys.path
sys.path.append(os.path.abspath(".."))

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from beyond_linear import (
    CutTransform,
    LinearRegressionOLS,
    LogisticRegressionIRLS,
    NaturalSplineTransform,
    PolynomialTransform,
    SplineTransform,
    apply_transforms,
    fit_transforms,
    load_wage,
    make_age_grid,
    simulate_wage,
)
from beyond_linear.constants import (
    AGE_COLUMN,
    DEFAULT_CUT_BREAKS,
    DEFAULT_KNOTS,
    HIGH_EARNER_COLUMN,
    WAGE_COLUMN,
)
from beyond_linear.logging_config import setup_logging
from beyond_linear.plotting import plot_fit_with_band

# Configuration
CSV_PATH = Path("../data/wage.csv")
RANDOM_STATE = 42
EXTEND_TO = 100
LEVEL = 0.95


def load_frame():
    if CSV_PATH.exists():
        return load_wage(CSV_PATH)
    print(f"{CSV_PATH} not found, using a simulated sample.")
    return simulate_wage(random_state=RANDOM_STATE)


def fit_band(transform, df, response, logistic=False, fit_intercept=True):
    fitted = fit_transforms([transform], df[AGE_COLUMN])
    X = apply_transforms(fitted, df[AGE_COLUMN])
    estimator = LogisticRegressionIRLS if logistic else LinearRegressionOLS
    model = estimator(fit_intercept=fit_intercept).fit(X, df[response])
    grid = make_age_grid(df[AGE_COLUMN], extend_to=EXTEND_TO)
    band = model.predict(apply_transforms(fitted, grid), mode="conf_int", level=LEVEL)
    return grid, band


def plot_regression_panels(df):
    print("Generating wage fits (polynomial, step, spline, natural spline)...")
    panels = [
        ("Degree-4 polynomial", PolynomialTransform(degree=4), True),
        ("Step function", CutTransform(breaks=DEFAULT_CUT_BREAKS), True),
        ("Cubic B-spline", SplineTransform(knots=DEFAULT_KNOTS), False),
        ("Natural cubic spline", NaturalSplineTransform(num_knots=3), True),
    ]
    fig, axes = plt.subplots(2, 2, figsize=(12, 9), sharey=True)
    for ax, (title, transform, fit_intercept) in zip(axes.ravel(), panels):
        grid, band = fit_band(transform, df, WAGE_COLUMN, fit_intercept=fit_intercept)
        plot_fit_with_band(
            ax, df[AGE_COLUMN], df[WAGE_COLUMN], grid, band, title=title, level=LEVEL
        )
        ax.axvline(df[AGE_COLUMN].max(), color="red", linestyle=":", lw=1)
    fig.tight_layout()
    fig.savefig("wage_fits.png")
    plt.close(fig)


def plot_logistic(df):
    print("Generating P(high earner) fit...")
    grid, band = fit_band(PolynomialTransform(degree=4), df, HIGH_EARNER_COLUMN, logistic=True)
    ax = plot_fit_with_band(
        None,
        df[AGE_COLUMN],
        df[HIGH_EARNER_COLUMN],
        grid,
        band,
        title="P(wage > 250 | age), degree-4 polynomial",
        ylabel="probability",
        rug=True,
        level=LEVEL,
    )
    ax.figure.tight_layout()
    ax.figure.savefig("high_earner_probability.png")
    plt.close(ax.figure)


if __name__ == "__main__":
    setup_logging("ERROR")
    try:
        frame = load_frame()
        plot_regression_panels(frame)
        plot_logistic(frame)
        print("All plots generated successfully.")
    except Exception as e:
        print(f"Error generating plots: {e}")
        import traceback
        traceback.print_exc()
