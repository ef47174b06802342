"""Centralized constants for the lot-sizing model.

This module contains the fixed coefficients, activity thresholds and numeric
tolerances shared by the formulation, the verifier and the command line.
"""

# ============================================================================
# OBJECTIVE CONSTANTS
# ============================================================================

#: Per-unit penalty on starting inventory before the first period.
#: Dominates every legitimate cost so initial inventory is only used when
#: capacity cannot cover demand otherwise.
BIG_PENALTY = 10_000.0


# ============================================================================
# RUN DEFAULTS
# ============================================================================

#: Default hop horizon (number of future periods whose demand may justify
#: carrying inventory)
DEFAULT_HOP_HORIZON = 6

#: Default wall-clock budget passed to the solver (seconds)
DEFAULT_TIME_LIMIT_SECONDS = 180

#: Default file the run record is appended to
DEFAULT_RESULTS_PATH = "result.csv"


# ============================================================================
# SOLUTION ACTIVITY THRESHOLDS
# ============================================================================

#: A setup variable above this value counts as an active setup
SETUP_ACTIVE_THRESHOLD = 0.1

#: Inventory above this value is charged holding cost during verification
INVENTORY_ACTIVE_THRESHOLD = 0.1

#: Values below this are shown as zero in plan reports
REPORT_ZERO_THRESHOLD = 1e-4


# ============================================================================
# VERIFICATION TOLERANCES
# ============================================================================

#: Relative tolerance on period capacity
CAPACITY_REL_TOLERANCE = 1e-6

#: Absolute floor for the capacity tolerance (covers zero capacity)
CAPACITY_ABS_TOLERANCE = 1e-6

#: Relative tolerance between recomputed and reported objective
COST_REL_TOLERANCE = 1e-6

#: Absolute floor for the objective tolerance
COST_ABS_TOLERANCE = 1e-4

#: Tolerance on material balance residuals (units)
BALANCE_TOLERANCE = 1e-5
