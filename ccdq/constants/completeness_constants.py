# ─────────────────────────────────────────────
# CONSTANTS
# ─────────────────────────────────────────────

# Literal text markers that upstream exports use for a missing value.
# Normalised to NA when a ClinicalTable is built, never checked downstream.
MISSING_SENTINELS = {"NULL"}

# Rounding
COMPLETENESS_DECIMALS = 2         # completeness % → 2 dp
TABLE_ONE_DECIMALS = 1            # table one percentages → 1 dp

# Threshold value meaning "no acceptance threshold configured"
THRESHOLD_NOT_SET = 0

# Display strings
NO_DATA_MARKER = "no data"
REJECTION_PAIR_SEPARATOR = ":"    # "<site>:<pct>"
REJECTION_LIST_SEPARATOR = "; "   # "A:60; B:55.5"
MISSING_CATEGORY_LABEL = "Missing"

# Completeness display table headers
COMPLETENESS_COLUMN = "Completeness %"
THRESHOLD_COLUMN = "Accept Completeness %"
REJECTION_COLUMN = "Rejected Sites (Site: %)"
