# engine/working_simulator.py
#
# Accumulation (working) years: contributions, employer match and growth
#

import logging
from dataclasses import dataclass

from engine.accounts import AccountKind, AccountLedger, InterestBasis, TransactionCategory
from engine.contribution_limits import apply_contribution_limits
from engine.tax_engine import calculate_federal_tax
from models import PlannerInputs
from utils.tax_utils import compound_growth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkingYearResult:
    year: int
    age: int
    salary: float
    pretax_contribution: float
    roth_contribution: float
    employer_match: float
    taxable_savings: float
    taxable_interest: float
    gross_taxable_income: float
    federal_tax: float
    after_tax_income: float

    @property
    def total_contributions(self) -> float:
        return self.pretax_contribution + self.roth_contribution + self.employer_match + self.taxable_savings


def calculate_employer_match(salary: float, employee_contribution: float, match_cap: float, match_rate: float) -> float:
    """Match on the employee's deferral rate, up to `match_cap` of salary."""
    if salary <= 0:
        return 0.0
    contribution_pct = employee_contribution / salary
    return min(contribution_pct, match_cap) * salary * match_rate


def salary_in_year(inputs: PlannerInputs, year: int) -> float:
    return inputs.salary * compound_growth(inputs.salary_growth, year - inputs.current_year)


def calculate_working_year(inputs: PlannerInputs, ledger: AccountLedger, year: int) -> WorkingYearResult:
    """
    Posts one working year to the ledger. Contributions land during the year
    and grow with it, so interest accrues on the post-contribution balance.
    """
    age = inputs.age_in_year(year)
    salary = salary_in_year(inputs, year)

    # -------------------------------------------------
    # 1. Employee deferrals, capped by the 401k limits
    # -------------------------------------------------
    limited = apply_contribution_limits(salary * inputs.pretax_pct, salary * inputs.roth_pct, age)
    if limited.scale < 1.0:
        logger.debug(f"{year}: deferrals scaled by {limited.scale:.3f} to stay within the age-{age} limit")

    match = calculate_employer_match(salary, limited.pretax, inputs.match_cap, inputs.match_rate)

    # -------------------------------------------------
    # 2. Taxes on wages plus savings interest
    # -------------------------------------------------
    taxable_interest = ledger.estimated_taxable_interest(year)
    gross_taxable = salary - limited.pretax + taxable_interest
    if inputs.use_agi_tax:
        federal_tax = calculate_federal_tax(gross_taxable, inputs.filing_status)
    else:
        federal_tax = gross_taxable * inputs.working_tax_rate

    after_tax = salary - limited.pretax - federal_tax - limited.roth
    taxable_savings = min(salary * inputs.taxable_pct, max(0.0, after_tax))

    # -------------------------------------------------
    # 3. Post deposits, then grow each account
    # -------------------------------------------------
    ledger.deposit(limited.pretax, AccountKind.PRETAX, year, TransactionCategory.CONTRIBUTION)
    ledger.deposit(match, AccountKind.PRETAX, year, TransactionCategory.EMPLOYER_MATCH)
    ledger.deposit(limited.roth, AccountKind.ROTH, year, TransactionCategory.CONTRIBUTION)
    ledger.deposit(taxable_savings, AccountKind.SAVINGS, year, TransactionCategory.CONTRIBUTION)

    for kind in ledger.kinds():
        ledger.accrue_interest(kind, year, InterestBasis.ENDING)

    logger.debug(f"{year} (age {age}): salary {salary:,.2f}, contributions "
                 f"{limited.pretax + match + limited.roth + taxable_savings:,.2f}")

    return WorkingYearResult(
        year=year,
        age=age,
        salary=salary,
        pretax_contribution=limited.pretax,
        roth_contribution=limited.roth,
        employer_match=match,
        taxable_savings=taxable_savings,
        taxable_interest=taxable_interest,
        gross_taxable_income=gross_taxable,
        federal_tax=federal_tax,
        after_tax_income=after_tax,
    )
