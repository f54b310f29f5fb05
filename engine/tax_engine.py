"""
Federal tax math for retirement projections.
It contains the pure tax formulas (taxable income, effective-rate interpolation,
progressive brackets, Social Security taxability), relying entirely on the
constants provided by utils.tax_utils.
"""
from dataclasses import dataclass
from typing import List, Tuple
import numpy as np
import logging

logger = logging.getLogger(__name__)

from utils.tax_utils import (
    EFFECTIVE_TAX_RATES,
    EFFECTIVE_RATE_STANDARD_DEDUCTION,
    SS_TAX_THRESHOLDS,
    SS_TIER1_RATE,
    SS_TIER2_RATE,
    is_married,
)

# Sorted breakpoints for interpolation
_RATE_LEVELS = np.array(sorted(EFFECTIVE_TAX_RATES.keys()), dtype=float)
_RATE_VALUES = np.array([EFFECTIVE_TAX_RATES[k] for k in sorted(EFFECTIVE_TAX_RATES.keys())], dtype=float)


@dataclass(frozen=True)
class SsTaxBreakdown:
    """Worksheet-style detail of how much Social Security is taxable."""
    ss_gross: float
    other_income: float
    provisional_income: float
    threshold1: float
    threshold2: float
    tier1_amount: float
    tier2_amount: float
    taxable_portion: float

    @property
    def non_taxable_portion(self) -> float:
        return self.ss_gross - self.taxable_portion


# --- 1. Effective-rate estimate ---

def calculate_taxable_income(gross_income: float, filing_status: str = "single") -> float:
    """Gross income less the simplified standard deduction, floored at 0."""
    key = "married_filing_jointly" if is_married(filing_status) else "single"
    return max(0.0, gross_income - EFFECTIVE_RATE_STANDARD_DEDUCTION[key])


def get_effective_tax_rate(taxable_income: float) -> float:
    """
    Effective federal rate (percent) for a taxable income, linearly interpolated
    over EFFECTIVE_TAX_RATES. Clamped to the table's first and last rates.
    """
    return float(np.interp(taxable_income, _RATE_LEVELS, _RATE_VALUES))


def calculate_federal_tax(gross_income: float, filing_status: str = "single") -> float:
    taxable_income = calculate_taxable_income(gross_income, filing_status)
    return taxable_income * get_effective_tax_rate(taxable_income) / 100


def get_marginal_tax_rate(current_gross_income: float,
                          additional_income: float = 1000,
                          filing_status: str = "single") -> float:
    """Marginal rate (percent) on `additional_income` stacked on top of current income."""
    if additional_income <= 0:
        raise ValueError("additional_income must be positive")
    current_tax = calculate_federal_tax(current_gross_income, filing_status)
    new_tax = calculate_federal_tax(current_gross_income + additional_income, filing_status)
    return (new_tax - current_tax) / additional_income * 100


# --- 2. Progressive brackets ---

def tax_using_brackets(taxable_income: float, brackets: List[Tuple[float, float, float]]) -> float:
    """Progressive tax over (low, high, rate) brackets."""
    tax = 0.0
    remaining_taxable = taxable_income

    for low, high, rate in brackets:
        if remaining_taxable <= 0:
            break
        bracket_income = min(remaining_taxable, high - low) if np.isfinite(high) else remaining_taxable
        tax += bracket_income * rate
        remaining_taxable -= bracket_income

    return tax


# --- 3. Social Security ---

def ss_taxability(ss_gross: float, other_income: float, married: bool) -> SsTaxBreakdown:
    """
    IRS Worksheet 1 logic using statutory (non-indexed) thresholds.

    Provisional income = other income + 50% of benefits.
      PI <= t1        -> nothing taxable
      t1 < PI <= t2   -> min(50% of SS, 50% of the excess over t1)
      PI > t2         -> min(85% of SS, tier1Max + 85% of the excess over t2),
                         tier1Max = min(50% of SS, 50% of (t2 - t1))
    """
    threshold1, threshold2 = SS_TAX_THRESHOLDS["married_filing_jointly" if married else "single"]
    provisional_income = other_income + 0.5 * ss_gross

    tier1_amount = 0.0
    tier2_amount = 0.0

    if ss_gross <= 0 or provisional_income <= threshold1:
        taxable = 0.0
    elif provisional_income <= threshold2:
        tier1_amount = min(SS_TIER1_RATE * ss_gross, SS_TIER1_RATE * (provisional_income - threshold1))
        taxable = tier1_amount
    else:
        tier1_amount = min(SS_TIER1_RATE * ss_gross, SS_TIER1_RATE * (threshold2 - threshold1))
        excess_over_t2 = SS_TIER2_RATE * (provisional_income - threshold2)
        taxable = min(SS_TIER2_RATE * ss_gross, tier1_amount + excess_over_t2)
        tier2_amount = taxable - tier1_amount

    return SsTaxBreakdown(
        ss_gross=ss_gross,
        other_income=other_income,
        provisional_income=provisional_income,
        threshold1=threshold1,
        threshold2=threshold2,
        tier1_amount=tier1_amount,
        tier2_amount=tier2_amount,
        taxable_portion=taxable,
    )


def calculate_ss_taxable_amount(ss_gross: float, other_taxable_income: float, is_married: bool = False) -> float:
    return ss_taxability(ss_gross, other_taxable_income, is_married).taxable_portion
