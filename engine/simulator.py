# engine.simulator.py

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from models import PlannerInputs
from engine.accounts import AccountKind, AccountLedger, AccountYear, InterestBasis, TransactionCategory
from engine.accounts_income import IncomeStreams
from engine.errors import ProjectionWarning
from engine.income_calculator import IncomeBreakdown
from engine.withdrawal_engine import WithdrawalConfig, WithdrawalEngine
from engine.working_simulator import WorkingYearResult, calculate_working_year

logger = logging.getLogger(__name__)

WORKING = "working"
RETIRED = "retired"


@dataclass
class YearResult:
    year: int
    age: int
    spouse_age: int
    phase: str
    accounts: Dict[str, AccountYear]
    spending_target: float = 0.0
    fixed_income_cash: float = 0.0
    surplus_deposited: float = 0.0
    withdrawal_need: float = 0.0
    rmd: float = 0.0
    gross_withdrawn: Dict[str, float] = field(default_factory=dict)
    net_delivered: Dict[str, float] = field(default_factory=dict)
    income: Optional[IncomeBreakdown] = None
    working: Optional[WorkingYearResult] = None
    residual: float = 0.0
    converged: bool = True
    warnings: List[ProjectionWarning] = field(default_factory=list)

    @property
    def total_balance(self) -> float:
        return sum(a.ending_balance for a in self.accounts.values())

    @property
    def tax(self) -> float:
        if self.income is not None:
            return self.income.tax
        if self.working is not None:
            return self.working.federal_tax
        return 0.0

    def as_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "year": self.year,
            "age": self.age,
            "spouse_age": self.spouse_age,
            "phase": self.phase,
        }
        for kind, acct in self.accounts.items():
            row[f"{kind}_start"] = acct.starting_balance
            row[f"{kind}_deposits"] = acct.deposits
            row[f"{kind}_withdrawals"] = acct.withdrawals
            row[f"{kind}_interest"] = acct.interest_earned
            row[f"{kind}_end"] = acct.ending_balance
        row["total_balance"] = self.total_balance
        row["salary"] = self.working.salary if self.working else 0.0
        row["spending"] = self.spending_target
        row["fixed_income_cash"] = self.fixed_income_cash
        row["rmd"] = self.rmd
        if self.income is not None:
            row.update(self.income.as_dict())
        else:
            row["tax"] = self.tax
        row["residual"] = self.residual
        row["converged"] = self.converged
        row["warnings"] = len(self.warnings)
        return row


@dataclass
class ProjectionResults:
    inputs: PlannerInputs
    years: List[YearResult]

    def __len__(self):
        return len(self.years)

    def __iter__(self):
        return iter(self.years)

    @property
    def warnings(self) -> List[ProjectionWarning]:
        return [w for y in self.years for w in y.warnings]

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame([y.as_row() for y in self.years])
        if df.empty:
            return df
        return df.set_index("year")

    def summary(self) -> Dict[str, Any]:
        if not self.years:
            return {"years": 0}

        df = self.to_dataframe()
        retired = df[df["phase"] == RETIRED]
        # A year counts as short only beyond the search tolerance
        short = retired[retired["residual"] > self.inputs.precision] if not retired.empty else retired
        balances = df["total_balance"].to_numpy()
        depleted = np.flatnonzero(balances <= 0)

        return {
            "years": len(df),
            "final_balance": float(balances[-1]),
            "peak_balance": float(balances.max()),
            "total_tax": float(df["tax"].sum()),
            "total_spending": float(retired["spending"].sum()) if not retired.empty else 0.0,
            "shortfall_years": int(len(short)),
            "first_shortfall_age": int(short["age"].iloc[0]) if len(short) else None,
            "depletion_age": int(df["age"].iloc[depleted[0]]) if depleted.size else None,
            "warnings": len(self.warnings),
        }


class RetirementProjector:
    """
    Deterministic year-by-year projection: working years accumulate into the
    ledger, retirement years draw it down through the WithdrawalEngine.
    """

    def __init__(self, inputs: PlannerInputs):
        # -----------------------
        # STEP 1: Validate timeline
        # -----------------------
        if inputs.end_age < inputs.current_age:
            logger.error(f"end_age {inputs.end_age} is before current_age {inputs.current_age}")
            raise ValueError("end_age must not be before current_age")
        self.inputs = inputs

        # -----------------------
        # STEP 2: Accounts
        # -----------------------
        self.ledger = AccountLedger.from_balances(
            inputs.current_year,
            savings=inputs.balance_savings,
            pretax=inputs.balance_pretax,
            roth=inputs.balance_roth,
            savings_return=inputs.return_savings,
            pretax_return=inputs.return_pretax,
            roth_return=inputs.return_roth,
            interest_basis=InterestBasis(inputs.interest_basis),
        )

        # -----------------------
        # STEP 3: Income streams and withdrawal engine
        # -----------------------
        self.streams = IncomeStreams(inputs)
        self.engine = WithdrawalEngine(
            self.ledger,
            WithdrawalConfig(
                order=inputs.withdrawal_order,
                use_savings=inputs.use_savings,
                use_trad_401k=inputs.use_trad_401k,
                use_roth=inputs.use_roth,
                max_iterations=inputs.max_iterations,
            ),
        )

    # =========================================================================
    # 1. RUNNER
    # =========================================================================
    def run(self) -> ProjectionResults:
        i = self.inputs
        first_year = i.current_year
        last_year = i.year_at_age(i.end_age)
        logger.info(f"Projecting {first_year}-{last_year} (ages {i.current_age}-{i.end_age}), retiring at {i.retire_age}")

        results = []
        for year in range(first_year, last_year + 1):
            if i.age_in_year(year) < i.retire_age:
                results.append(self._run_working_year(year))
            else:
                results.append(self._run_retirement_year(year))

        projection = ProjectionResults(inputs=i, years=results)
        if projection.warnings:
            logger.info(f"Projection finished with {len(projection.warnings)} warning(s)")
        return projection

    # =========================================================================
    # 2. SINGLE YEAR LOGIC
    # =========================================================================
    def _snapshot(self, year: int) -> Dict[str, AccountYear]:
        return {kind: replace(record) for kind, record in self.ledger.snapshot(year).items()}

    def _run_working_year(self, year: int) -> YearResult:
        working = calculate_working_year(self.inputs, self.ledger, year)
        return YearResult(
            year=year,
            age=working.age,
            spouse_age=self.inputs.spouse_age_in_year(year),
            phase=WORKING,
            accounts=self._snapshot(year),
            working=working,
        )

    def _run_retirement_year(self, year: int) -> YearResult:
        age = self.inputs.age_in_year(year)

        # -------------------------------------------------
        # 1. Fixed income and spending need
        # -------------------------------------------------
        factors = self.streams.build_fixed_income_factors(year, age, self.ledger)
        spending = self.streams.spending_target(year)
        fixed_cash = self.engine.fixed_income_cash(factors)

        need = spending - fixed_cash
        surplus = 0.0
        if need < 0:
            # Fixed income covers spending; bank what is left
            surplus = -need
            need = 0.0
            if AccountKind.SAVINGS in self.ledger:
                self.ledger.deposit(surplus, AccountKind.SAVINGS, year, TransactionCategory.SURPLUS)

        # -------------------------------------------------
        # 2. Withdrawals
        # -------------------------------------------------
        session = self.engine.open_session(year, factors, need)
        self.engine.run_year(session)
        income = self.engine.get_final_income_results(session)

        # -------------------------------------------------
        # 3. Growth
        # -------------------------------------------------
        for kind in self.ledger.kinds():
            self.ledger.accrue_interest(kind, year)

        if session.residual > factors.precision:
            logger.info(f"{year} (age {age}): spending short by {session.residual:,.2f}")

        return YearResult(
            year=year,
            age=age,
            spouse_age=self.inputs.spouse_age_in_year(year),
            phase=RETIRED,
            accounts=self._snapshot(year),
            spending_target=spending,
            fixed_income_cash=session.fixed_income_cash,
            surplus_deposited=surplus,
            withdrawal_need=need,
            rmd=session.rmd_taken,
            gross_withdrawn={k.value: v for k, v in session.gross_withdrawn.items()},
            net_delivered={k.value: v for k, v in session.net_delivered.items()},
            income=income,
            residual=session.residual,
            converged=session.converged,
            warnings=list(session.warnings),
        )
