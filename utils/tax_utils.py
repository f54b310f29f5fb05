# utils/tax_utils.py
import numpy as np
from typing import List, Tuple, Dict, Literal

# Define the acceptable set of filing statuses for type hinting
TaxFilingStatus = Literal["single", "married_filing_jointly", "married_separate", "head_of_household"]
TAX_BASE_YEAR = 2025 # Base year for all nominal Federal tables below

# =============================================================================
# 1. Federal Ordinary Income Tax Brackets (2025)
# =============================================================================
# Source: IRS inflation adjustments (effective Jan 1, 2025)
ORDINARY_BRACKETS_2025: Dict[TaxFilingStatus, List[Tuple[float, float, float]]] = {
    "married_filing_jointly": [
        (0, 23_200, 0.10), (23_200, 94_300, 0.12), (94_300, 201_050, 0.22),
        (201_050, 383_900, 0.24), (383_900, 487_450, 0.32), (487_450, 731_200, 0.35),
        (731_200, np.inf, 0.37),
    ],
    "single": [
        (0, 11_600, 0.10), (11_600, 47_150, 0.12), (47_150, 100_525, 0.22),
        (100_525, 191_950, 0.24), (191_950, 243_725, 0.32), (243_725, 609_350, 0.35),
        (609_350, np.inf, 0.37),
    ],
}

# =============================================================================
# 2. Standard Deductions
# =============================================================================
# Indexed deduction used with the bracket tables above
STANDARD_DEDUCTION_2025: Dict[TaxFilingStatus, float] = {
    "single": 14_600,
    "married_filing_jointly": 29_200,
}

# Flat deduction used by the simplified effective-rate estimate (not indexed)
EFFECTIVE_RATE_STANDARD_DEDUCTION: Dict[TaxFilingStatus, float] = {
    "single": 15_000,
    "married_filing_jointly": 32_600,
}

# =============================================================================
# 3. Effective Federal Tax Rate Table (taxable income -> effective %)
# =============================================================================
EFFECTIVE_TAX_RATES: Dict[int, float] = {
    0: 0.0, 5_000: 10.0, 10_000: 10.0, 15_000: 10.0, 20_000: 10.0,
    23_200: 10.0, 30_000: 10.5, 40_000: 10.8, 50_000: 11.1, 60_000: 11.2,
    70_000: 11.3, 74_900: 11.4, 80_000: 11.4, 90_000: 11.5, 94_300: 11.5,
    100_000: 12.1, 110_000: 12.7, 120_000: 13.5, 130_000: 14.1, 140_000: 14.9,
    150_000: 15.5, 160_000: 16.0, 170_000: 16.4, 180_000: 16.9, 190_000: 17.3,
    200_000: 17.6, 201_050: 17.7, 220_000: 18.1, 240_000: 18.5, 260_000: 18.9,
    280_000: 19.2, 300_000: 19.5,
}

# =============================================================================
# 4. Fixed / Non-Indexed Federal Tax Parameters
# =============================================================================

# Social Security Taxation Thresholds (Statutory and NOT indexed)
SS_TAX_THRESHOLDS: Dict[str, Tuple[float, float]] = {
    "single": (25_000, 34_000),
    "married_filing_jointly": (32_000, 44_000),
}
SS_TIER1_RATE = 0.50
SS_TIER2_RATE = 0.85

# Employee elective deferral limits (401k / Roth 401k)
EMPLOYEE_401K_LIMIT_2025 = 23_000
EMPLOYEE_401K_CATCHUP_50 = 7_500
CATCHUP_AGE = 50

# =============================================================================
# 5. Filing status normalization
# =============================================================================
_FILING_STATUS_ALIASES: Dict[str, TaxFilingStatus] = {
    "single": "single",
    "married": "married_filing_jointly",
    "mfj": "married_filing_jointly",
    "married_filing_jointly": "married_filing_jointly",
    "married_joint": "married_filing_jointly",
    "married_separate": "married_separate",
    "married_filing_separately": "married_separate",
    "head_of_household": "head_of_household",
}


def normalize_filing_status(filing_status: str) -> TaxFilingStatus:
    """Maps UI/XML spellings (e.g. 'married', 'MFJ') onto a TaxFilingStatus."""
    key = str(filing_status).strip().lower().replace(" ", "_").replace("-", "_")
    if key not in _FILING_STATUS_ALIASES:
        raise ValueError(f"Unsupported filing status: {filing_status!r}")
    return _FILING_STATUS_ALIASES[key]


def is_married(filing_status: str) -> bool:
    return normalize_filing_status(filing_status) == "married_filing_jointly"


def _table_key(filing_status: str) -> TaxFilingStatus:
    # Only MFJ and single tables exist; everything else files on the single schedule
    return "married_filing_jointly" if is_married(filing_status) else "single"


# =============================================================================
# 6. Indexing helpers
# =============================================================================

def compound_growth(rate: float, periods: float) -> float:
    """(1 + rate) ** periods"""
    return (1.0 + rate) ** periods


def inflation_factor_for_year(year: int, inflation_rate: float) -> float:
    """Cumulative inflation multiplier from TAX_BASE_YEAR; 1.0 at or before the base year."""
    years_from_base = year - TAX_BASE_YEAR
    if years_from_base <= 0:
        return 1.0
    return compound_growth(inflation_rate, years_from_base)


def get_standard_deduction(filing_status: str, year: int, inflation_rate: float) -> float:
    """Standard deduction for `year`, indexed forward from the 2025 base."""
    base = STANDARD_DEDUCTION_2025[_table_key(filing_status)]
    return base * inflation_factor_for_year(year, inflation_rate)


def get_tax_brackets(filing_status: str, year: int, inflation_rate: float) -> List[Tuple[float, float, float]]:
    """
    Returns the ordinary income brackets for `year` as (low, high, rate) tuples,
    with both bounds indexed forward from the 2025 base. The top bracket stays open.
    """
    factor = inflation_factor_for_year(year, inflation_rate)
    indexed = []
    for low, high, rate in ORDINARY_BRACKETS_2025[_table_key(filing_status)]:
        inflated_low = low * factor
        inflated_high = high * factor if np.isfinite(high) else np.inf
        indexed.append((inflated_low, inflated_high, rate))
    return indexed
