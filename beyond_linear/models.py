from __future__ import annotations

"""
Linear and logistic regression on derived design matrices, with the
standard errors needed for confidence bands and nested-model F-tests.
Fitting returns a separate, read-only fitted model; the transforms that
built the design matrix stay with the caller.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from scipy import linalg, stats

from .constants import PREDICT_MODES
from .exceptions import DimensionMismatchError, InvalidConfigurationError, ModelFitError

logger = logging.getLogger(__name__)


def _sigmoid(z: np.ndarray) -> np.ndarray:
    z = np.clip(z, -500, 500)
    return 1.0 / (1.0 + np.exp(-z))


def _add_bias(X: np.ndarray) -> np.ndarray:
    return np.hstack([np.ones((X.shape[0], 1)), X])


def _as_design(X) -> tuple[np.ndarray, list[str], pd.Index]:
    if isinstance(X, pd.DataFrame):
        names = [str(c) for c in X.columns]
        index = X.index
        X_arr = X.to_numpy(dtype=float)
    else:
        X_arr = np.asarray(X, dtype=float)
        if X_arr.ndim == 1:
            X_arr = X_arr.reshape(-1, 1)
        names, index = None, None
    if X_arr.ndim != 2 or X_arr.shape[0] == 0:
        raise DimensionMismatchError(
            f"design matrix must be a non-empty 2-D array, got shape {X_arr.shape}"
        )
    if not np.isfinite(X_arr).all():
        raise DimensionMismatchError("design matrix contains NaN or infinite values")
    if names is None:
        names = [f"x{j}" for j in range(1, X_arr.shape[1] + 1)]
        index = pd.RangeIndex(X_arr.shape[0])
    return X_arr, names, index


def _as_response(y, n_rows: int) -> np.ndarray:
    y_arr = np.asarray(y, dtype=float).ravel()
    if y_arr.size != n_rows:
        raise DimensionMismatchError(
            f"response has {y_arr.size} rows but the design matrix has {n_rows}"
        )
    if not np.isfinite(y_arr).all():
        raise DimensionMismatchError("response contains NaN or infinite values")
    return y_arr


def _scale_columns(X_bias: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Divide every column by its Euclidean norm; all-zero columns keep norm 1."""
    norms = np.linalg.norm(X_bias, axis=0)
    norms[norms == 0] = 1.0
    return X_bias / norms, norms


def _check_full_rank(X_scaled: np.ndarray):
    # expects unit-norm columns so raw powers of x are not misjudged
    n_rows, n_cols = X_scaled.shape
    rank = np.linalg.matrix_rank(X_scaled)
    if rank < n_cols:
        raise ModelFitError(
            f"design matrix is rank deficient (rank {rank} < {n_cols} columns); "
            "drop collinear columns or the intercept"
        )


def _check_level(level: float):
    if not 0.0 < level < 1.0:
        raise InvalidConfigurationError(f"level must be in (0, 1), got {level}")


@dataclass(frozen=True, eq=False)
class FittedModel:
    """Coefficients (intercept first when fitted) and their covariance."""

    coefficients: np.ndarray
    covariance: np.ndarray
    feature_names: tuple[str, ...]
    fit_intercept: bool
    n_obs: int
    df_resid: int

    @property
    def intercept_(self) -> float:
        return float(self.coefficients[0]) if self.fit_intercept else 0.0

    @property
    def coef_(self) -> np.ndarray:
        return self.coefficients[1:] if self.fit_intercept else self.coefficients

    @property
    def std_errors(self) -> np.ndarray:
        return np.sqrt(np.diag(self.covariance))

    def _prepare(self, X) -> tuple[np.ndarray, pd.Index]:
        X_arr, _, index = _as_design(X)
        if X_arr.shape[1] != len(self.feature_names):
            raise DimensionMismatchError(
                f"expected {len(self.feature_names)} feature columns, got {X_arr.shape[1]}"
            )
        return (_add_bias(X_arr) if self.fit_intercept else X_arr), index

    def _linear_predictor(self, X) -> tuple[np.ndarray, np.ndarray, pd.Index]:
        X_bias, index = self._prepare(X)
        eta = X_bias @ self.coefficients
        se = np.sqrt(np.einsum("ij,jk,ik->i", X_bias, self.covariance, X_bias))
        return eta, se, index

    def predict(self, X, mode: str = "point", level: float = 0.95):
        if mode not in PREDICT_MODES:
            raise InvalidConfigurationError(
                f"mode must be one of {PREDICT_MODES}, got {mode!r}"
            )
        return self._predict(X, mode, level)

    def _predict(self, X, mode: str, level: float):
        raise NotImplementedError

    def summary(self) -> pd.DataFrame:
        """Coefficient table: estimate, std error, test statistic, p-value."""
        names = (["(intercept)"] if self.fit_intercept else []) + list(self.feature_names)
        se = self.std_errors
        stat = self.coefficients / se
        return pd.DataFrame(
            {
                "estimate": self.coefficients,
                "std_error": se,
                "statistic": stat,
                "p_value": self._p_values(stat),
            },
            index=names,
        )

    def _p_values(self, stat: np.ndarray) -> np.ndarray:
        return 2 * stats.norm.sf(np.abs(stat))


@dataclass(frozen=True, eq=False)
class FittedLinearModel(FittedModel):
    rss: float = 0.0

    @property
    def sigma2(self) -> float:
        return self.rss / self.df_resid

    def _p_values(self, stat: np.ndarray) -> np.ndarray:
        return 2 * stats.t.sf(np.abs(stat), self.df_resid)

    def _predict(self, X, mode: str, level: float):
        if mode == "probability":
            raise InvalidConfigurationError(
                "probability predictions need a logistic model, not a linear one"
            )
        if mode == "point":
            X_bias, _ = self._prepare(X)
            return X_bias @ self.coefficients

        _check_level(level)
        fit, se, index = self._linear_predictor(X)
        margin = stats.t.ppf(0.5 + level / 2, self.df_resid) * se
        return pd.DataFrame(
            {"fit": fit, "lower": fit - margin, "upper": fit + margin}, index=index
        )


@dataclass(frozen=True, eq=False)
class FittedLogisticModel(FittedModel):
    deviance: float = 0.0
    n_iter: int = 0

    def _predict(self, X, mode: str, level: float):
        if mode == "point":
            X_bias, _ = self._prepare(X)
            return (_sigmoid(X_bias @ self.coefficients) >= 0.5).astype(int)
        if mode == "probability":
            X_bias, _ = self._prepare(X)
            return _sigmoid(X_bias @ self.coefficients)

        # Wald interval on the logit scale, mapped through the sigmoid
        _check_level(level)
        eta, se, index = self._linear_predictor(X)
        margin = stats.norm.ppf(0.5 + level / 2) * se
        return pd.DataFrame(
            {
                "fit": _sigmoid(eta),
                "lower": _sigmoid(eta - margin),
                "upper": _sigmoid(eta + margin),
            },
            index=index,
        )


class LinearRegressionOLS:
    """Ordinary least squares with classical (homoscedastic) standard errors."""

    def __init__(self, fit_intercept: bool = True):
        self.fit_intercept = fit_intercept

    def fit(self, X, y) -> FittedLinearModel:
        X_arr, names, _ = _as_design(X)
        y_arr = _as_response(y, X_arr.shape[0])
        X_bias = _add_bias(X_arr) if self.fit_intercept else X_arr
        X_scaled, norms = _scale_columns(X_bias)
        _check_full_rank(X_scaled)

        n_obs, n_params = X_bias.shape
        df_resid = n_obs - n_params
        if df_resid <= 0:
            raise ModelFitError(
                f"need more rows than coefficients (rows={n_obs}, coefficients={n_params})"
            )

        # solve on the column-scaled design, then undo the scaling
        q, r = np.linalg.qr(X_scaled)
        scaled_coef = linalg.solve_triangular(r, q.T @ y_arr)
        r_inv = linalg.solve_triangular(r, np.eye(n_params))
        coefficients = scaled_coef / norms
        residuals = y_arr - X_bias @ coefficients
        rss = float(residuals @ residuals)
        covariance = (rss / df_resid) * (r_inv @ r_inv.T) / np.outer(norms, norms)

        logger.debug("OLS fit: %d rows, %d coefficients, RSS=%.4f", n_obs, n_params, rss)
        return FittedLinearModel(
            coefficients=coefficients,
            covariance=covariance,
            feature_names=tuple(names),
            fit_intercept=self.fit_intercept,
            n_obs=n_obs,
            df_resid=df_resid,
            rss=rss,
        )


class LogisticRegressionIRLS:
    """
    Logistic regression fitted by Newton-Raphson (iteratively reweighted
    least squares). Stops when the relative change in deviance drops below
    `tol`; failing to get there in `max_iter` steps is a ModelFitError.
    """

    def __init__(
        self,
        fit_intercept: bool = True,
        max_iter: int = 100,
        tol: float = 1e-8,
        verbose: bool = False,
    ):
        self.fit_intercept = fit_intercept
        self.max_iter = max_iter
        self.tol = tol
        self.verbose = verbose

    @staticmethod
    def _deviance(y: np.ndarray, probs: np.ndarray) -> float:
        return float(
            -2.0 * np.sum(y * np.log(probs + 1e-12) + (1 - y) * np.log(1 - probs + 1e-12))
        )

    def fit(self, X, y) -> FittedLogisticModel:
        X_arr, names, _ = _as_design(X)
        y_arr = _as_response(y, X_arr.shape[0])
        if not np.isin(y_arr, (0.0, 1.0)).all():
            raise InvalidConfigurationError("logistic response must be coded 0/1")
        if np.unique(y_arr).size < 2:
            raise ModelFitError("logistic response has a single class; nothing to separate")

        X_bias = _add_bias(X_arr) if self.fit_intercept else X_arr
        # Newton steps run on unit-norm columns; weights are unscaled at the end
        X_scaled, norms = _scale_columns(X_bias)
        _check_full_rank(X_scaled)

        weights = np.zeros(X_scaled.shape[1])
        deviance = self._deviance(y_arr, _sigmoid(X_scaled @ weights))
        converged = False
        for step in range(1, self.max_iter + 1):
            probs = _sigmoid(X_scaled @ weights)
            irls_weights = probs * (1 - probs)
            hessian = X_scaled.T @ (X_scaled * irls_weights[:, None])
            grad = X_scaled.T @ (y_arr - probs)
            try:
                delta = np.linalg.solve(hessian, grad)
            except np.linalg.LinAlgError as exc:
                raise ModelFitError(f"singular Hessian at IRLS step {step}") from exc

            weights = weights + delta
            new_deviance = self._deviance(y_arr, _sigmoid(X_scaled @ weights))
            if self.verbose:
                logger.debug("[IRLS] step=%d, deviance=%.6f", step, new_deviance)

            if abs(new_deviance - deviance) / (abs(new_deviance) + 0.1) < self.tol:
                deviance = new_deviance
                converged = True
                break
            deviance = new_deviance

        if not converged:
            raise ModelFitError(
                f"logistic regression did not converge in max_iter={self.max_iter} steps"
            )

        probs = _sigmoid(X_scaled @ weights)
        hessian = X_scaled.T @ (X_scaled * (probs * (1 - probs))[:, None])
        try:
            covariance = np.linalg.inv(hessian) / np.outer(norms, norms)
        except np.linalg.LinAlgError as exc:
            raise ModelFitError("singular Hessian at the solution") from exc

        logger.debug("IRLS converged in %d steps, deviance=%.4f", step, deviance)
        return FittedLogisticModel(
            coefficients=weights / norms,
            covariance=covariance,
            feature_names=tuple(names),
            fit_intercept=self.fit_intercept,
            n_obs=X_bias.shape[0],
            df_resid=X_bias.shape[0] - X_bias.shape[1],
            deviance=deviance,
            n_iter=step,
        )


def compare_nested_models(fits: Sequence[FittedLinearModel]) -> pd.DataFrame:
    """
    Sequential analysis of variance for nested linear fits on the same
    response, ordered from smallest to largest. Each F statistic uses the
    residual variance of the largest model.
    """
    if len(fits) < 2:
        raise InvalidConfigurationError("need at least two fitted models to compare")
    if not all(isinstance(f, FittedLinearModel) for f in fits):
        raise InvalidConfigurationError("nested comparison needs linear (OLS) fits")
    if len({f.n_obs for f in fits}) != 1:
        raise DimensionMismatchError("all models must be fitted on the same rows")
    df_resids = [f.df_resid for f in fits]
    if any(later >= earlier for earlier, later in zip(df_resids, df_resids[1:])):
        raise InvalidConfigurationError(
            f"models must be ordered by increasing size, got residual df {df_resids}"
        )

    largest = fits[-1]
    scale = largest.sigma2
    rows = [
        {
            "res_df": fits[0].df_resid,
            "rss": fits[0].rss,
            "df": np.nan,
            "sum_sq": np.nan,
            "F": np.nan,
            "p_value": np.nan,
        }
    ]
    for smaller, bigger in zip(fits, fits[1:]):
        df = smaller.df_resid - bigger.df_resid
        sum_sq = smaller.rss - bigger.rss
        f_stat = (sum_sq / df) / scale
        rows.append(
            {
                "res_df": bigger.df_resid,
                "rss": bigger.rss,
                "df": df,
                "sum_sq": sum_sq,
                "F": f_stat,
                "p_value": float(stats.f.sf(f_stat, df, largest.df_resid)),
            }
        )
    return pd.DataFrame(rows, index=pd.RangeIndex(1, len(fits) + 1, name="model"))
