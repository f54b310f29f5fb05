# =============================================================================
# Market Info used in projections
# =============================================================================

# Long-run averages used when a scenario leaves a rate blank
DEFAULT_INFLATION = 0.025

DEFAULT_PRETAX_RETURN = 0.06
DEFAULT_ROTH_RETURN = 0.06
DEFAULT_SAVINGS_RETURN = 0.03

# Social Security / pension cost-of-living adjustment
DEFAULT_SS_COLA = 0.025
