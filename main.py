from __future__ import annotations

"""
CLI entrypoint for the wage-vs-age experiments. Pick one via --experiment:
polynomial, step, spline, natural_spline (linear regression on a derived
basis), logistic (P(wage > threshold) on a derived basis) or anova (nested
polynomial degrees compared with F-tests).
"""

import argparse
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from beyond_linear import (
    CutTransform,
    DiscretizeTransform,
    LinearRegressionOLS,
    LogisticRegressionIRLS,
    NaturalSplineTransform,
    PolynomialTransform,
    SplineTransform,
    apply_transforms,
    compare_nested_models,
    fit_transforms,
    load_wage,
    make_train_test_split,
    simulate_wage,
)
from beyond_linear.constants import (
    AGE_COLUMN,
    DEFAULT_KNOTS,
    DEFAULT_NUM_BINS,
    DEFAULT_POLY_DEGREE,
    DEFAULT_SPLINE_DEGREE,
    HIGH_EARNER_COLUMN,
    HIGH_EARNER_THRESHOLD,
    WAGE_COLUMN,
)
from beyond_linear.logging_config import setup_logging
from beyond_linear.metrics import (
    compute_classification_metrics,
    compute_regression_metrics,
    majority_baseline,
    summarize_coefficients,
)

logger = logging.getLogger(__name__)

BASES = ["polynomial", "step", "spline", "natural_spline"]


def parse_floats(text: str) -> tuple[float, ...]:
    """'25, 40,60' -> (25.0, 40.0, 60.0); empty string -> ()."""
    return tuple(float(v.strip()) for v in text.split(",") if v.strip())


def describe_data(df: pd.DataFrame, threshold: float):
    """Print a short summary of sample size, age range and class balance."""
    print(f"Rows: {len(df)}")
    print(f"Age range: {df[AGE_COLUMN].min():.0f} -> {df[AGE_COLUMN].max():.0f}")
    print(f"Mean wage: {df[WAGE_COLUMN].mean():.2f}")
    print(f"Share with wage > {threshold:g}: {df[HIGH_EARNER_COLUMN].mean():.3f}")


def print_regression_metrics(label: str, metrics: dict):
    print(
        f"[{label}] RMSE {metrics['rmse']:.3f} | MAE {metrics['mae']:.3f} | "
        f"R^2 {metrics['r2']:.3f}"
    )


def print_classification_metrics(label: str, metrics: dict):
    """Nicely format the metric dict produced by compute_classification_metrics."""
    cm = metrics["confusion_matrix"]
    print(
        f"[{label}] Acc {metrics['accuracy']:.3f} | "
        f"Prec {metrics['precision']:.3f} | Rec {metrics['recall']:.3f} | "
        f"ROC-AUC {metrics['roc_auc']:.3f} | LogLoss {metrics['log_loss']:.4f}"
    )
    print(f"    Confusion matrix [[TN, FP], [FN, TP]]: {cm.tolist()}")


def build_arg_parser():
    """CLI parser with knobs for the data source, the basis and the model."""
    parser = argparse.ArgumentParser(
        description="Model wage as a non-linear function of age."
    )
    parser.add_argument("--csv-path", type=Path, default=Path("data/wage.csv"))
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use a synthetic Wage-like sample instead of --csv-path.",
    )
    parser.add_argument("--n-samples", type=int, default=3000, help="Rows for --simulate.")
    parser.add_argument(
        "--experiment",
        choices=BASES + ["logistic", "anova"],
        default="polynomial",
    )
    parser.add_argument(
        "--basis",
        choices=BASES,
        default="polynomial",
        help="Feature basis used by the logistic experiment.",
    )
    parser.add_argument("--degree", type=int, default=DEFAULT_POLY_DEGREE)
    parser.add_argument("--raw", action="store_true", help="Raw instead of orthogonal powers.")
    parser.add_argument("--num-bins", type=int, default=DEFAULT_NUM_BINS)
    parser.add_argument(
        "--breaks",
        type=str,
        default="",
        help="Comma-separated cut points; empty means quantile bins (--num-bins).",
    )
    parser.add_argument(
        "--knots",
        type=str,
        default=",".join(f"{k:g}" for k in DEFAULT_KNOTS),
        help="Comma-separated interior spline knots.",
    )
    parser.add_argument(
        "--num-knots",
        type=int,
        default=None,
        help="Place this many knots at training quantiles instead of --knots.",
    )
    parser.add_argument("--spline-degree", type=int, default=DEFAULT_SPLINE_DEGREE)
    parser.add_argument("--threshold", type=float, default=HIGH_EARNER_THRESHOLD)
    parser.add_argument("--test-size", type=float, default=0.2)
    parser.add_argument("--max-iter", type=int, default=100, help="Max IRLS steps.")
    parser.add_argument("--tol", type=float, default=1e-8, help="Relative deviance tolerance.")
    parser.add_argument(
        "--predict-ages",
        type=str,
        default="20,40,60,80,100",
        help="Comma-separated ages to report predictions and bands for.",
    )
    parser.add_argument("--level", type=float, default=0.95, help="Confidence level.")
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument("--log-level", type=str, default="WARNING")
    parser.add_argument("--log-file", type=str, default=None)
    return parser


def build_transform(args: argparse.Namespace, basis: str):
    """Translate CLI options into a single-column transform."""
    if basis == "polynomial":
        return PolynomialTransform(degree=args.degree, orthogonal=not args.raw)
    if basis == "step":
        breaks = parse_floats(args.breaks)
        if breaks:
            return CutTransform(breaks=breaks)
        return DiscretizeTransform(num_breaks=args.num_bins)
    knots = None if args.num_knots is not None else parse_floats(args.knots)
    if basis == "spline":
        return SplineTransform(
            knots=knots, num_knots=args.num_knots, degree=args.spline_degree
        )
    return NaturalSplineTransform(knots=knots, num_knots=args.num_knots)


def load_data(args: argparse.Namespace) -> pd.DataFrame:
    if args.simulate:
        return simulate_wage(args.n_samples, args.random_state, args.threshold)
    return load_wage(args.csv_path, args.threshold)


def report_predictions(fitted_transforms, model, ages: tuple[float, ...], level: float):
    grid = pd.Series(ages, name=AGE_COLUMN)
    band = model.predict(apply_transforms(fitted_transforms, grid), mode="conf_int", level=level)
    band.index = pd.Index(ages, name=AGE_COLUMN)
    print(f"\nPredictions with {level:.0%} confidence bands:")
    print(band.round(4).to_string())
    return band


def run_regression(args: argparse.Namespace, df: pd.DataFrame, basis: str):
    """Linear regression of wage on one derived basis of age."""
    train, test = make_train_test_split(
        df, test_size=args.test_size, random_state=args.random_state
    )
    transform = build_transform(args, basis)
    fitted = fit_transforms([transform], train[AGE_COLUMN])
    X_train = apply_transforms(fitted, train[AGE_COLUMN])
    X_test = apply_transforms(fitted, test[AGE_COLUMN])
    print(f"Train size: {len(train)}, Test size: {len(test)}, features: {X_train.shape[1]}")

    # a full B-spline basis already sums to one, so it carries the intercept
    model = LinearRegressionOLS(fit_intercept=basis != "spline").fit(
        X_train, train[WAGE_COLUMN]
    )
    train_metrics = compute_regression_metrics(train[WAGE_COLUMN], model.predict(X_train))
    test_metrics = compute_regression_metrics(test[WAGE_COLUMN], model.predict(X_test))
    print_regression_metrics(f"{basis} / train", train_metrics)
    print_regression_metrics(f"{basis} / test", test_metrics)

    print("\nCoefficients:")
    print(model.summary().round(4).to_string())

    band = report_predictions(fitted, model, parse_floats(args.predict_ages), args.level)
    return {"model": model, "test_metrics": test_metrics, "band": band}


def run_logistic(args: argparse.Namespace, df: pd.DataFrame):
    """Logistic regression of wage > threshold on one derived basis of age."""
    train, test = make_train_test_split(
        df,
        test_size=args.test_size,
        random_state=args.random_state,
        stratify_column=HIGH_EARNER_COLUMN,
    )
    transform = build_transform(args, args.basis)
    fitted = fit_transforms([transform], train[AGE_COLUMN])
    X_train = apply_transforms(fitted, train[AGE_COLUMN])
    X_test = apply_transforms(fitted, test[AGE_COLUMN])
    print(f"Train size: {len(train)}, Test size: {len(test)}, features: {X_train.shape[1]}")

    model = LogisticRegressionIRLS(
        fit_intercept=args.basis != "spline", max_iter=args.max_iter, tol=args.tol
    ).fit(X_train, train[HIGH_EARNER_COLUMN])
    print(f"    IRLS steps: {model.n_iter}, deviance: {model.deviance:.3f}")

    y_test = test[HIGH_EARNER_COLUMN]
    print_classification_metrics("Majority baseline", majority_baseline(train[HIGH_EARNER_COLUMN], y_test))
    test_metrics = compute_classification_metrics(y_test, model.predict(X_test, mode="probability"))
    print_classification_metrics(f"logistic / {args.basis}", test_metrics)

    top = summarize_coefficients(model.coef_, list(X_train.columns), top_k=5)
    print("\nLargest positive coefficients:")
    print(top["positive"])
    print("\nLargest negative coefficients:")
    print(top["negative"])

    band = report_predictions(fitted, model, parse_floats(args.predict_ages), args.level)
    return {"model": model, "test_metrics": test_metrics, "band": band}


def run_anova(args: argparse.Namespace, df: pd.DataFrame):
    """Compare polynomial degrees 1..--degree with sequential F-tests."""
    age = df[AGE_COLUMN]
    fits = []
    for degree in range(1, args.degree + 1):
        fitted = fit_transforms([PolynomialTransform(degree=degree, orthogonal=not args.raw)], age)
        fits.append(LinearRegressionOLS().fit(apply_transforms(fitted, age), df[WAGE_COLUMN]))

    table = compare_nested_models(fits)
    table.index = pd.Index(np.arange(1, args.degree + 1), name="degree")
    print("Analysis of variance, polynomial degree 1 .. {}:".format(args.degree))
    print(table.round(4).to_string())
    return {"table": table}


def main(args: argparse.Namespace | None = None):
    """Dispatch to the selected experiment."""
    parser = build_arg_parser()
    args = args or parser.parse_args()
    if args.experiment == "anova" and args.degree < 2:
        parser.error("--degree must be >= 2 for the anova experiment")
    setup_logging(args.log_level, args.log_file)

    logger.info("Running experiment %s", args.experiment)
    df = load_data(args)
    describe_data(df, args.threshold)

    if args.experiment == "logistic":
        return run_logistic(args, df)
    if args.experiment == "anova":
        return run_anova(args, df)
    return run_regression(args, df, args.experiment)


if __name__ == "__main__":
    main()
