# models.py
from dataclasses import dataclass, field
from typing import Dict, List

from config.market_assumptions import (
    DEFAULT_INFLATION,
    DEFAULT_PRETAX_RETURN,
    DEFAULT_ROTH_RETURN,
    DEFAULT_SAVINGS_RETURN,
    DEFAULT_SS_COLA,
)


@dataclass
class PlannerInputs:
    # Core
    current_year: int = 2025
    current_age: int = 55
    retire_age: int = 65
    end_age: int = 95
    spouse_age: int = 0                 # 0 = no spouse
    filing_status: str = "married"

    # Starting balances
    balance_pretax: float = 0.0
    balance_roth: float = 0.0
    balance_savings: float = 0.0

    # Rates
    return_pretax: float = DEFAULT_PRETAX_RETURN
    return_roth: float = DEFAULT_ROTH_RETURN
    return_savings: float = DEFAULT_SAVINGS_RETURN
    inflation: float = DEFAULT_INFLATION
    interest_basis: str = "starting"

    # Working years
    salary: float = 0.0
    salary_growth: float = 0.0
    pretax_pct: float = 0.0
    roth_pct: float = 0.0
    taxable_pct: float = 0.0
    match_cap: float = 0.0
    match_rate: float = 0.0
    use_agi_tax: bool = True
    working_tax_rate: float = 0.0       # flat rate when use_agi_tax is off

    # Benefits (monthly, today's start amount)
    ss_monthly: float = 0.0
    ss_start_age: int = 67
    ss_cola: float = DEFAULT_SS_COLA
    pension_monthly: float = 0.0
    pension_start_age: int = 65
    pension_cola: float = 0.0

    spouse_ss_monthly: float = 0.0
    spouse_ss_start_age: int = 67
    spouse_ss_cola: float = DEFAULT_SS_COLA
    spouse_pension_monthly: float = 0.0
    spouse_pension_start_age: int = 65
    spouse_pension_cola: float = 0.0

    # Spending
    spending_today: float = 0.0
    spending_decline: float = 0.0       # real decline per retirement year

    # Per-age adjustments {age: amount}
    spending_overrides: Dict[int, float] = field(default_factory=dict)
    taxable_income_overrides: Dict[int, float] = field(default_factory=dict)
    tax_free_income_overrides: Dict[int, float] = field(default_factory=dict)
    overrides_in_todays_dollars: bool = False

    # Withdrawal strategy
    use_savings: bool = True
    use_trad_401k: bool = True
    use_roth: bool = True
    use_rmd: bool = True
    withdrawal_order: List[str] = field(default_factory=lambda: ["savings", "pretax401k", "rothIra"])
    precision: float = 0.01
    max_iterations: int = 80

    @property
    def has_spouse(self) -> bool:
        return self.spouse_age > 0

    def age_in_year(self, year: int) -> int:
        return self.current_age + (year - self.current_year)

    def spouse_age_in_year(self, year: int) -> int:
        return self.spouse_age + (year - self.current_year) if self.has_spouse else 0

    def year_at_age(self, age: int) -> int:
        return self.current_year + (age - self.current_age)
