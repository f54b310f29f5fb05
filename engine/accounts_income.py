# engine/accounts_income.py
#
# Per-year income streams for the retirement phase: pensions, Social Security,
# RMD, savings interest and the per-age adjustments
#

import logging
from typing import Dict

from engine.accounts import AccountLedger
from engine.income_calculator import FixedIncomeFactors
from engine.rmd_tables import calculate_rmd
from models import PlannerInputs
from utils.tax_utils import compound_growth, get_standard_deduction, get_tax_brackets, normalize_filing_status

logger = logging.getLogger(__name__)


def calculate_annual_benefit(monthly_amount: float, start_age: int, age: int, cola: float) -> float:
    """Annual benefit at `age`: 12 x monthly, grown by COLA for each year since the start age."""
    if age < start_age or monthly_amount <= 0:
        return 0.0
    return monthly_amount * 12 * compound_growth(cola, age - start_age)


class IncomeStreams:
    def __init__(self, inputs: PlannerInputs):
        self.inputs = inputs
        self.filing_status = normalize_filing_status(inputs.filing_status)

    # ----------------------------------------------------------------------
    # Pensions / Social Security
    # ----------------------------------------------------------------------
    def my_pension(self, year: int) -> float:
        i = self.inputs
        return calculate_annual_benefit(i.pension_monthly, i.pension_start_age, i.age_in_year(year), i.pension_cola)

    def spouse_pension(self, year: int) -> float:
        i = self.inputs
        if not i.has_spouse:
            return 0.0
        return calculate_annual_benefit(i.spouse_pension_monthly, i.spouse_pension_start_age,
                                        i.spouse_age_in_year(year), i.spouse_pension_cola)

    def my_ss(self, year: int) -> float:
        i = self.inputs
        return calculate_annual_benefit(i.ss_monthly, i.ss_start_age, i.age_in_year(year), i.ss_cola)

    def spouse_ss(self, year: int) -> float:
        i = self.inputs
        if not i.has_spouse:
            return 0.0
        return calculate_annual_benefit(i.spouse_ss_monthly, i.spouse_ss_start_age,
                                        i.spouse_age_in_year(year), i.spouse_ss_cola)

    # ----------------------------------------------------------------------
    # Per-age adjustments
    # ----------------------------------------------------------------------
    def _override(self, table: Dict[int, float], year: int) -> float:
        amount = table.get(self.inputs.age_in_year(year), 0.0) if table else 0.0
        if amount and self.inputs.overrides_in_todays_dollars:
            amount *= compound_growth(self.inputs.inflation, year - self.inputs.current_year)
        return amount

    def additional_spending(self, year: int) -> float:
        return self._override(self.inputs.spending_overrides, year)

    def other_taxable_income(self, year: int) -> float:
        return self._override(self.inputs.taxable_income_overrides, year)

    def tax_free_income(self, year: int) -> float:
        return self._override(self.inputs.tax_free_income_overrides, year)

    # ----------------------------------------------------------------------
    # Spending
    # ----------------------------------------------------------------------
    def spending_target(self, year: int) -> float:
        """Inflated spending for a retirement year, after the real decline, plus that age's extra spending."""
        i = self.inputs
        base = i.spending_today * compound_growth(i.inflation, year - i.current_year)
        years_retired = max(0, i.age_in_year(year) - i.retire_age)
        if i.spending_decline:
            base *= compound_growth(-i.spending_decline, years_retired)
        return base + self.additional_spending(year)

    # ----------------------------------------------------------------------
    # Account-driven income
    # ----------------------------------------------------------------------
    def estimated_interest(self, ledger: AccountLedger, year: int) -> float:
        """
        Taxable interest for the year, estimated from starting balances. The
        amount credited later follows each account's interest basis, so with
        the `ending` or `average` basis the taxed and credited figures differ.
        """
        return ledger.estimated_taxable_interest(year)

    def rmd(self, ledger: AccountLedger, age: int, year: int) -> float:
        if not (self.inputs.use_rmd and self.inputs.use_trad_401k):
            return 0.0
        return calculate_rmd(age, ledger.rmd_balance(year))

    def build_fixed_income_factors(self, year: int, age: int, ledger: AccountLedger) -> FixedIncomeFactors:
        factors = FixedIncomeFactors(
            year=year,
            interest_earned=self.estimated_interest(ledger, year),
            my_pension=self.my_pension(year),
            spouse_pension=self.spouse_pension(year),
            my_ss=self.my_ss(year),
            spouse_ss=self.spouse_ss(year),
            rmd=self.rmd(ledger, age, year),
            other_taxable=self.other_taxable_income(year),
            tax_free=self.tax_free_income(year),
            standard_deduction=get_standard_deduction(self.filing_status, year, self.inputs.inflation),
            tax_brackets=get_tax_brackets(self.filing_status, year, self.inputs.inflation),
            filing_status=self.filing_status,
            precision=self.inputs.precision,
        )
        logger.debug(f"{year} (age {age}): fixed income {factors.non_ss_income + factors.ss_income:,.2f}, "
                     f"rmd {factors.rmd:,.2f}")
        return factors
