# engine/rmd_tables.py

"""
RMD factor lookup based on the 2022+ IRS Uniform Lifetime Table.
RMDs begin at age 73 (SECURE 2.0); past 100 the divisor keeps shrinking by
0.1 per year down to a floor of 1.0.
"""

from typing import Dict

RMD_START_AGE = 73
RMD_TABLE_MAX_AGE = 100
RMD_DECAY_PER_YEAR = 0.1
RMD_MIN_DIVISOR = 1.0

# =============================================================================
# IRS UNIFORM LIFETIME TABLE (AGES 73-100)
# =============================================================================
UNIFORM_LIFETIME_TABLE: Dict[int, float] = {
    73: 26.5, 74: 25.5, 75: 24.6, 76: 23.7, 77: 22.9,
    78: 22.0, 79: 21.1, 80: 20.2, 81: 19.4, 82: 18.5, 83: 17.7,
    84: 16.8, 85: 16.0, 86: 15.2, 87: 14.4, 88: 13.7, 89: 12.9,
    90: 12.2, 91: 11.5, 92: 10.8, 93: 10.1, 94: 9.5, 95: 8.9,
    96: 8.4, 97: 7.8, 98: 7.3, 99: 6.8, 100: 6.4,
}


def get_rmd_factor(age: int) -> float:
    """
    Returns the IRS divisor for RMD calculations.

    Parameters
    ----------
    age : int
        Age in the distribution calendar year.

    Returns
    -------
    float
        RMD divisor for the given age, or 0.0 when no RMD is required yet.
    """
    age = int(age)
    if age < RMD_START_AGE:
        return 0.0

    if age <= RMD_TABLE_MAX_AGE:
        return UNIFORM_LIFETIME_TABLE[age]

    # Linear decline after the end of the table
    divisor = UNIFORM_LIFETIME_TABLE[RMD_TABLE_MAX_AGE] - (age - RMD_TABLE_MAX_AGE) * RMD_DECAY_PER_YEAR
    return max(RMD_MIN_DIVISOR, divisor)


def calculate_rmd(age: int, balance: float) -> float:
    """Required distribution for a tax-deferred balance at `age` (0 before the start age)."""
    if balance is None or balance <= 0:
        return 0.0
    factor = get_rmd_factor(age)
    if factor <= 0:
        return 0.0
    return balance / factor


__all__ = ["get_rmd_factor", "calculate_rmd", "RMD_START_AGE"]
