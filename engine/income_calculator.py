# income_calculator.py
#
# Resolves one year's taxable income, tax and net income for a candidate
# pre-tax withdrawal on top of the year's fixed income
#

from dataclasses import dataclass
from typing import Tuple
import logging

from engine.solver import DEFAULT_PRECISION
from engine.tax_engine import SsTaxBreakdown, ss_taxability, tax_using_brackets
from utils.tax_utils import is_married, normalize_filing_status

logger = logging.getLogger(__name__)

Bracket = Tuple[float, float, float]


@dataclass(frozen=True)
class FixedIncomeFactors:
    """
    Everything about a year's income that does not depend on the pre-tax
    withdrawal being solved for. Built once per year; never changed while a
    search is running.
    """
    year: int
    interest_earned: float = 0.0        # savings interest, already banked in the account
    my_pension: float = 0.0
    spouse_pension: float = 0.0
    my_ss: float = 0.0                  # gross benefits
    spouse_ss: float = 0.0
    rmd: float = 0.0
    other_taxable: float = 0.0
    tax_free: float = 0.0
    standard_deduction: float = 0.0
    tax_brackets: Tuple[Bracket, ...] = ()
    filing_status: str = "single"
    precision: float = DEFAULT_PRECISION

    def __post_init__(self):
        # Accept any sequence of brackets but store an immutable copy
        object.__setattr__(self, "tax_brackets", tuple(tuple(b) for b in self.tax_brackets))
        object.__setattr__(self, "filing_status", normalize_filing_status(self.filing_status))
        if self.precision <= 0:
            raise ValueError("precision must be positive")

    @property
    def ss_income(self) -> float:
        return self.my_ss + self.spouse_ss

    @property
    def pension_income(self) -> float:
        return self.my_pension + self.spouse_pension

    @property
    def non_ss_income(self) -> float:
        """Taxable income other than Social Security and any pre-tax withdrawal."""
        return self.interest_earned + self.pension_income + self.rmd + self.other_taxable

    @property
    def married(self) -> bool:
        return is_married(self.filing_status)


@dataclass(frozen=True)
class IncomeBreakdown:
    candidate_withdrawal: float
    factors: FixedIncomeFactors
    income_excluding_ss: float
    gross_income: float
    ss_breakdown: SsTaxBreakdown
    adjusted_gross_income: float
    taxable_income: float
    tax: float
    net_income: float
    net_income_less_earned_interest: float

    @property
    def ss_taxable(self) -> float:
        return self.ss_breakdown.taxable_portion

    @property
    def ss_non_taxable(self) -> float:
        return self.ss_breakdown.non_taxable_portion

    @property
    def effective_tax_rate(self) -> float:
        return self.tax / self.gross_income if self.gross_income > 0 else 0.0

    # Each recipient's share of the taxable portion follows their share of benefits
    def _ss_share(self, benefit: float) -> float:
        total = self.factors.ss_income
        return benefit / total if total > 0 else 0.0

    @property
    def my_ss_taxable(self) -> float:
        return self.ss_taxable * self._ss_share(self.factors.my_ss)

    @property
    def spouse_ss_taxable(self) -> float:
        return self.ss_taxable * self._ss_share(self.factors.spouse_ss)

    @property
    def my_ss_non_taxable(self) -> float:
        return self.factors.my_ss - self.my_ss_taxable

    @property
    def spouse_ss_non_taxable(self) -> float:
        return self.factors.spouse_ss - self.spouse_ss_taxable

    def as_dict(self) -> dict:
        return {
            "pretax_withdrawal": self.candidate_withdrawal,
            "gross_income": self.gross_income,
            "ss_taxable": self.ss_taxable,
            "agi": self.adjusted_gross_income,
            "taxable_income": self.taxable_income,
            "tax": self.tax,
            "net_income": self.net_income,
            "net_income_less_interest": self.net_income_less_earned_interest,
            "effective_tax_rate": self.effective_tax_rate,
        }


class IncomeResolver:
    """
    Stateless evaluator: income and tax for a candidate pre-tax withdrawal.
    Safe to call any number of times from inside a search.
    """

    def evaluate(self, candidate_withdrawal: float, factors: FixedIncomeFactors) -> IncomeBreakdown:
        if candidate_withdrawal < 0:
            raise ValueError(f"Candidate pre-tax withdrawal must be non-negative, got {candidate_withdrawal}")

        # 1. Everything taxable except Social Security
        income_excluding_ss = candidate_withdrawal + factors.non_ss_income

        # 2. Social Security taxability uses that as "other income"
        ss_breakdown = ss_taxability(factors.ss_income, income_excluding_ss, factors.married)

        # 3. AGI / taxable income
        agi = income_excluding_ss + ss_breakdown.taxable_portion
        taxable_income = max(0.0, agi - factors.standard_deduction)

        # 4. Tax
        tax = tax_using_brackets(taxable_income, factors.tax_brackets)

        # 5. Net
        gross_income = income_excluding_ss + factors.ss_income
        net_income = gross_income - tax

        return IncomeBreakdown(
            candidate_withdrawal=candidate_withdrawal,
            factors=factors,
            income_excluding_ss=income_excluding_ss,
            gross_income=gross_income,
            ss_breakdown=ss_breakdown,
            adjusted_gross_income=agi,
            taxable_income=taxable_income,
            tax=tax,
            net_income=net_income,
            net_income_less_earned_interest=net_income - factors.interest_earned,
        )
