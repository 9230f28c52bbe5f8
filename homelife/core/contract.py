"""
HomeLife Decision Contract

This module defines the locked thresholds, weights and versioning for how
HomeLife maps evidence -> install authority -> lifecycle windows -> narrative
and advisor copy policy.

If you change any constants in here, bump HOMELIFE_DECISION_VERSION.
"""

HOMELIFE_DECISION_VERSION = "0.1.0"
HAZARD_MODEL_VERSION = "exp_hazard_v1"

# ----------------------------
# Install authority
# ----------------------------

# Permit-verified installs: baseline + classification boost, capped.
PERMIT_BASE_CONFIDENCE = 0.65
PERMIT_CONFIDENCE_CAP = 0.95
PERMIT_BOOST_INSTALL = 0.30
PERMIT_BOOST_REPLACEMENT = 0.25
PERMIT_BOOST_UNCLASSIFIED = 0.15

# Explicit statements with a specific year.
OWNER_REPORTED_CONFIDENCE = 0.55
INSPECTION_CONFIDENCE = 0.60
STATEMENT_MONTH_BONUS = 0.05
STATEMENT_CONFIDENCE_CAP = 0.60

# Construction-year heuristic.
HEURISTIC_CONFIDENCE = 0.30

# A permit "install" within this many years of construction is the original system.
ORIGINAL_INSTALL_TOLERANCE_YEARS = 1

# ----------------------------
# Hazard / survival
# ----------------------------

MULTIPLIER_MIN = 0.6
MULTIPLIER_MAX = 1.3

# Two-sided 80% band (p10 / p90)
Z_P10_P90 = 1.2816
SIGMA_UNKNOWNS_WIDENING = 0.9
LIFESPAN_BAND_MIN_YEARS = 3.0
LIFESPAN_BAND_MAX_YEARS = 30.0

FAILURE_HORIZONS_MONTHS = (12, 24, 36)
EXHAUSTED_FAILURE_PROBABILITY = 0.99
FAILURE_PROBABILITY_DECIMALS = 4

# Multiplier coefficients (1 - k * index  or  base + k * index)
MAINTENANCE_MULT_BASE = 0.85
MAINTENANCE_MULT_SPAN = 0.25
INSTALL_VERIFIED_BASE = 0.97
INSTALL_VERIFIED_SPAN = 0.06
USAGE_MULT_SPAN = 0.12
ENVIRONMENT_MULT_SPAN = 0.10
UNKNOWNS_MULT_BASE = 0.90
UNKNOWNS_MULT_SPAN = 0.10

# Window confidence weights
WINDOW_CONF_BASE = 0.25
WINDOW_CONF_VERIFIED = 0.30
WINDOW_CONF_MAINTENANCE = 0.25
WINDOW_CONF_COMPLETENESS = 0.10
WINDOW_CONF_USAGE_SIGNAL = 0.10

# Uncertainty class (confidence >= threshold)
UNCERTAINTY_NARROW_MIN_CONFIDENCE = 0.70
UNCERTAINTY_MEDIUM_MIN_CONFIDENCE = 0.45

# Risk level from p50 years remaining
RISK_HIGH_MAX_YEARS_REMAINING = 1.0
RISK_MODERATE_MAX_YEARS_REMAINING = 3.0

# Failure probability tiers (12 month horizon)
FAILURE_TIER_CRITICAL = 0.60
FAILURE_TIER_HIGH = 0.35
FAILURE_TIER_MODERATE = 0.15

# Maintenance recency -> quality score
MAINTENANCE_FRESH_MONTHS = 12
MAINTENANCE_STALE_MONTHS = 36
MAINTENANCE_OVERDUE_MONTHS = 24

# ----------------------------
# Capital exposure
# ----------------------------

EXPOSURE_HORIZONS_YEARS = (3, 5, 10)
POSSIBLE_LOW_WEIGHT = 0.3
POSSIBLE_HIGH_WEIGHT = 0.5

EXPOSURE_METHODOLOGY_NOTE = (
    "Systems whose likely replacement year falls inside the horizon count at full cost; "
    "systems whose earliest year falls inside count at 30% of low and 50% of high cost."
)

# ----------------------------
# Narrative
# ----------------------------

PLANNING_WINDOW_MONTHS = 36
PROGRESS_CONFIDENCE_DELTA = 0.15

# Lifecycle position strip
POSITION_HORIZON_MONTHS = 180
POSITION_DEFAULT_MONTHS = 120

# ----------------------------
# Advisor copy governor
# ----------------------------

CONFIDENCE_BUCKET_LOW_BELOW = 0.5
CONFIDENCE_BUCKET_MEDIUM_BELOW = 0.8

# ----------------------------
# Outlook table actions
# ----------------------------

ACTION_TEXT_HIGH = "Get replacement quotes"
ACTION_TEXT_MODERATE = "Plan & budget"
ACTION_TEXT_LOW = "Monitor (annual)"
ACTION_TEXT_CONFIRM = "Confirm install year"

# Home health score: 100 minus mean 12-month failure probability x this weight.
HEALTH_PENALTY_WEIGHT = 80.0
