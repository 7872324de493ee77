"""
Feature transforms for moving beyond linearity in a single predictor.

The package holds polynomial, step-function and spline expansions of a
numeric column, lightweight linear/logistic regression with confidence
bands, and the data and plotting helpers used by main.py.
"""

from .binning import BinSpec, apply_bin, bin_codes, bin_indicators, fit_cut, fit_discretize
from .data_prep import load_wage, make_age_grid, make_train_test_split, simulate_wage
from .exceptions import (
    BeyondLinearError,
    DimensionMismatchError,
    InsufficientDataError,
    InvalidConfigurationError,
    ModelFitError,
)
from .models import (
    FittedLinearModel,
    FittedLogisticModel,
    LinearRegressionOLS,
    LogisticRegressionIRLS,
    compare_nested_models,
)
from .polynomial import PolynomialBasis, apply_polynomial, fit_polynomial
from .splines import (
    NaturalSplineBasis,
    SplineBasis,
    apply_natural_spline,
    apply_spline,
    bspline_design,
    fit_natural_spline,
    fit_spline,
    quantile_knots,
)
from .transforms import (
    CutTransform,
    DiscretizeTransform,
    FittedTransform,
    NaturalSplineTransform,
    PolynomialTransform,
    SplineTransform,
    Transform,
    apply_transforms,
    fit_transforms,
)

__all__ = [
    "BinSpec",
    "apply_bin",
    "bin_codes",
    "bin_indicators",
    "fit_cut",
    "fit_discretize",
    "load_wage",
    "make_age_grid",
    "make_train_test_split",
    "simulate_wage",
    "BeyondLinearError",
    "DimensionMismatchError",
    "InsufficientDataError",
    "InvalidConfigurationError",
    "ModelFitError",
    "FittedLinearModel",
    "FittedLogisticModel",
    "LinearRegressionOLS",
    "LogisticRegressionIRLS",
    "compare_nested_models",
    "PolynomialBasis",
    "apply_polynomial",
    "fit_polynomial",
    "NaturalSplineBasis",
    "SplineBasis",
    "apply_natural_spline",
    "apply_spline",
    "bspline_design",
    "fit_natural_spline",
    "fit_spline",
    "quantile_knots",
    "CutTransform",
    "DiscretizeTransform",
    "FittedTransform",
    "NaturalSplineTransform",
    "PolynomialTransform",
    "SplineTransform",
    "Transform",
    "apply_transforms",
    "fit_transforms",
]
