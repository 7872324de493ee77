from __future__ import annotations

"""
Metric helpers for the regression and classification experiments, plus
coefficient dumps.
"""

import numpy as np
import pandas as pd
from sklearn import metrics


def compute_regression_metrics(y_true: np.ndarray | pd.Series, preds: np.ndarray):
    """RMSE, MAE and R^2 of point predictions."""
    return {
        "rmse": float(np.sqrt(metrics.mean_squared_error(y_true, preds))),
        "mae": float(metrics.mean_absolute_error(y_true, preds)),
        "r2": float(metrics.r2_score(y_true, preds)),
    }


def compute_classification_metrics(
    y_true: np.ndarray | pd.Series, probs: np.ndarray, threshold: float = 0.5
):
    """Compute standard binary metrics given probabilities and a threshold."""
    preds = (probs >= threshold).astype(int)
    precision, recall, f1, _ = metrics.precision_recall_fscore_support(
        y_true, preds, average="binary", zero_division=0
    )
    try:
        roc_auc = metrics.roc_auc_score(y_true, probs)
    except ValueError:
        roc_auc = float("nan")

    return {
        "accuracy": metrics.accuracy_score(y_true, preds),
        "precision": precision,
        "recall": recall,
        "f1": f1,
        "roc_auc": roc_auc,
        "log_loss": metrics.log_loss(y_true, np.clip(probs, 1e-12, 1 - 1e-12), labels=[0, 1]),
        "confusion_matrix": metrics.confusion_matrix(y_true, preds, labels=[0, 1]),
    }


def majority_baseline(y_train: np.ndarray | pd.Series, y_test: np.ndarray | pd.Series):
    """
    Predicts the positive-class rate learned from the training set.
    """
    prob = float(np.mean(y_train))
    probs = np.full(len(y_test), prob, dtype=float)
    return compute_classification_metrics(y_test, probs)


def summarize_coefficients(
    coef: np.ndarray, feature_names: list[str], top_k: int = 8
) -> dict[str, pd.Series]:
    coef_series = pd.Series(coef, index=feature_names)
    coef_sorted = coef_series.sort_values()
    return {
        "positive": coef_sorted.tail(top_k)[::-1],
        "negative": coef_sorted.head(top_k),
    }
