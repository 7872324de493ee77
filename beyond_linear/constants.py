"""Column names and defaults shared by the CLI, the loaders and the plots."""

AGE_COLUMN = "age"
WAGE_COLUMN = "wage"
HIGH_EARNER_COLUMN = "high_earner"

# Wage is in thousands of dollars; the lab flags earners above 250k.
HIGH_EARNER_THRESHOLD = 250.0

DEFAULT_POLY_DEGREE = 4
DEFAULT_NUM_BINS = 4
DEFAULT_CUT_BREAKS = (30.0, 50.0, 70.0)
DEFAULT_KNOTS = (25.0, 40.0, 60.0)
DEFAULT_SPLINE_DEGREE = 3

EXTRAPOLATION_MODES = ("linear", "polynomial")
PREDICT_MODES = ("point", "probability", "conf_int")
