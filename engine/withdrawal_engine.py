# withdrawal_engine.py
#
# Decides, for one retirement year, how much to draw from savings, the pre-tax
# 401k and the Roth IRA to cover a net spending need
#

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence

from engine.accounts import AccountKind, AccountLedger, DEFAULT_ORDER, TransactionCategory
from engine.errors import (
    CONVERGENCE,
    NEGATIVE_BALANCE,
    ProjectionWarning,
    WithdrawalConfigError,
    WithdrawalSessionError,
)
from engine.income_calculator import FixedIncomeFactors, IncomeBreakdown, IncomeResolver
from engine.solver import DEFAULT_MAX_ITERATIONS, BisectionResult, bisect, expand_upper_bound

logger = logging.getLogger(__name__)


@dataclass
class WithdrawalConfig:
    order: Sequence = DEFAULT_ORDER
    use_savings: bool = True
    use_trad_401k: bool = True
    use_roth: bool = True
    max_iterations: int = DEFAULT_MAX_ITERATIONS

    def __post_init__(self):
        kinds = tuple(AccountKind.parse(k) for k in self.order)
        if not kinds:
            raise WithdrawalConfigError("Withdrawal order is empty")
        if len(set(kinds)) != len(kinds):
            raise WithdrawalConfigError(f"Withdrawal order repeats an account kind: {[k.value for k in kinds]}")
        if self.max_iterations < 1:
            raise WithdrawalConfigError("max_iterations must be at least 1")
        self.order = kinds

    def is_enabled(self, kind: AccountKind) -> bool:
        return {
            AccountKind.SAVINGS: self.use_savings,
            AccountKind.PRETAX: self.use_trad_401k,
            AccountKind.ROTH: self.use_roth,
        }[kind]


class SessionState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETE = "complete"


@dataclass
class WithdrawalSession:
    """Withdrawal bookkeeping for a single tax year. Create with WithdrawalEngine.open_session."""
    year: int
    factors: FixedIncomeFactors
    spending_target: float
    baseline: IncomeBreakdown
    fixed_income_cash: float
    shortfall: float
    income: Optional[IncomeBreakdown] = None    # set once the pre-tax account is processed
    recognized: Dict[AccountKind, bool] = field(default_factory=lambda: {k: False for k in AccountKind})
    skipped: List[AccountKind] = field(default_factory=list)
    gross_withdrawn: Dict[AccountKind, float] = field(default_factory=lambda: {k: 0.0 for k in AccountKind})
    net_delivered: Dict[AccountKind, float] = field(default_factory=lambda: {k: 0.0 for k in AccountKind})
    rmd_taken: float = 0.0
    search: Optional[BisectionResult] = None
    converged: bool = True
    warnings: List[ProjectionWarning] = field(default_factory=list)
    state: SessionState = SessionState.IDLE

    @property
    def total_delivered(self) -> float:
        return sum(self.net_delivered.values())

    @property
    def residual(self) -> float:
        """Spending still unmet; negative when the search overshoots by up to its precision."""
        return self.shortfall


class WithdrawalEngine:
    """
    Sequential, idempotent withdrawal processing. Each account kind is
    recognised at most once per session; later calls for the same kind are no-ops.
    """

    def __init__(self, ledger: AccountLedger, config: Optional[WithdrawalConfig] = None,
                 resolver: Optional[IncomeResolver] = None):
        if ledger is None or len(ledger) == 0:
            logger.error("WithdrawalEngine requires a ledger with at least one account")
            raise WithdrawalConfigError("WithdrawalEngine requires a ledger with at least one account")

        self.ledger = ledger
        self.config = config or WithdrawalConfig()
        self.resolver = resolver or IncomeResolver()

        for kind in self.config.order:
            if self.config.is_enabled(kind) and kind not in ledger:
                logger.error(f"{kind.value} is enabled in the withdrawal order but missing from the ledger")
                raise WithdrawalConfigError(f"No {kind.value} account in the ledger")

        # Taxed withdrawals go through the income search; everything else is dollar for dollar
        self._handlers = {}
        for kind in ledger.kinds():
            account = ledger.account(kind)
            self._handlers[kind] = self._withdraw_taxed if account.withdrawals_taxable else self._withdraw_tax_free

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    def _rmd_to_take(self, factors: FixedIncomeFactors) -> float:
        """Portion of the required distribution the ledger can actually pay this year."""
        if factors.rmd <= 0:
            return 0.0
        available = sum(self.ledger.available_funds(kind, factors.year)
                        for kind in self.ledger.rmd_kinds() if self.config.is_enabled(kind))
        return min(factors.rmd, available)

    def _payable_factors(self, factors: FixedIncomeFactors) -> FixedIncomeFactors:
        rmd = self._rmd_to_take(factors)
        if rmd == factors.rmd:
            return factors
        logger.debug(f"{factors.year}: rmd {factors.rmd:,.2f} reduced to {rmd:,.2f} payable")
        return replace(factors, rmd=rmd)

    def fixed_income_cash(self, factors: FixedIncomeFactors) -> float:
        """Spendable cash from fixed income alone, after its tax."""
        factors = self._payable_factors(factors)
        baseline = self.resolver.evaluate(0.0, factors)
        return baseline.net_income_less_earned_interest + factors.tax_free

    def open_session(self, year: int, factors: FixedIncomeFactors, spending_target: float) -> WithdrawalSession:
        factors = self._payable_factors(factors)
        baseline = self.resolver.evaluate(0.0, factors)
        session = WithdrawalSession(
            year=year,
            factors=factors,
            spending_target=spending_target,
            baseline=baseline,
            fixed_income_cash=baseline.net_income_less_earned_interest + factors.tax_free,
            shortfall=spending_target,
        )
        logger.debug(f"{year}: session opened, target {spending_target:,.2f}, "
                     f"fixed income cash {session.fixed_income_cash:,.2f}")
        return session

    def run_year(self, session: WithdrawalSession) -> WithdrawalSession:
        """Visits every kind in the configured order, then closes the session."""
        for kind in self.config.order:
            self.withdraw_from_targeted_account(session, session.shortfall, kind)
        self.close_session(session)
        return session

    def close_session(self, session: WithdrawalSession) -> WithdrawalSession:
        if session.state == SessionState.COMPLETE:
            return session
        # RMD and the year's tax are settled even when the pre-tax account was never asked for cash
        for kind in self.ledger.rmd_kinds():
            if self.config.is_enabled(kind) and not session.recognized[kind]:
                self.withdraw_from_targeted_account(session, 0.0, kind)
        session.state = SessionState.COMPLETE
        logger.debug(f"{session.year}: session closed, delivered {session.total_delivered:,.2f}, "
                     f"residual {session.residual:,.2f}")
        return session

    def get_final_income_results(self, session: WithdrawalSession) -> IncomeBreakdown:
        return session.income if session.income is not None else session.baseline

    # ------------------------------------------------------------------
    # Per-account entry point
    # ------------------------------------------------------------------
    def withdraw_from_targeted_account(self, session: WithdrawalSession, amount: float, kind) -> float:
        """
        Draws from one account kind toward `amount` (net). Returns the unmet residual.
        """
        kind = AccountKind.parse(kind)
        if session.state == SessionState.COMPLETE:
            raise WithdrawalSessionError(f"{session.year}: session is closed")

        if session.recognized[kind]:
            logger.debug(f"{session.year}: {kind.value} already recognized; ignoring request for {amount:,.2f}")
            return amount

        session.state = SessionState.PROCESSING

        if not self.config.is_enabled(kind):
            session.recognized[kind] = True
            session.skipped.append(kind)
            logger.debug(f"{session.year}: {kind.value} disabled; skipped")
            return amount

        if kind not in self._handlers:
            logger.error(f"{session.year}: no {kind.value} account in the ledger")
            raise WithdrawalConfigError(f"No {kind.value} account in the ledger")

        delivered = self._handlers[kind](session, amount, kind)
        session.recognized[kind] = True
        session.net_delivered[kind] += delivered
        session.shortfall -= delivered
        self._check_balance(session, kind)
        return amount - delivered

    # ------------------------------------------------------------------
    # Handlers (return net amount delivered toward spending)
    # ------------------------------------------------------------------
    def _withdraw_tax_free(self, session: WithdrawalSession, amount: float, kind: AccountKind) -> float:
        available = self.ledger.available_funds(kind, session.year)
        withdrawal = min(available, max(0.0, amount))
        self.ledger.withdraw(withdrawal, kind, session.year, TransactionCategory.WITHDRAWAL)
        session.gross_withdrawn[kind] += withdrawal
        logger.debug(f"{session.year}: {kind.value} withdrew {withdrawal:,.2f} of {amount:,.2f} requested")
        return withdrawal

    def _withdraw_taxed(self, session: WithdrawalSession, amount: float, kind: AccountKind) -> float:
        year = session.year
        factors = session.factors
        available = self.ledger.available_funds(kind, year)

        # 1. Mandatory distribution, whatever the need
        rmd = min(factors.rmd, available)
        self.ledger.withdraw(rmd, kind, year, TransactionCategory.RMD)
        session.rmd_taken = rmd

        # 2. Gross withdrawal whose after-tax cash covers the need
        baseline_net = session.baseline.net_income_less_earned_interest

        def delivered(gross: float) -> float:
            return self.resolver.evaluate(gross, factors).net_income_less_earned_interest - baseline_net

        gross_needed = 0.0
        if amount > 0:
            def excess(gross: float) -> float:
                return delivered(gross) - amount

            hi = expand_upper_bound(excess, 0.0, 2 * amount)
            result = bisect(excess, 0.0, hi, precision=factors.precision,
                            max_iterations=self.config.max_iterations)
            session.search = result
            gross_needed = result.root
            logger.debug(f"{year}: pre-tax search for net {amount:,.2f} -> gross {gross_needed:,.2f} "
                         f"({result.reason.value}, {result.iterations} iterations)")
            if not result.converged:
                session.converged = False
                self._warn(session, CONVERGENCE,
                           f"pre-tax search stopped ({result.reason.value}) after {result.iterations} "
                           f"iterations; using gross {gross_needed:,.2f} (off by {result.value:,.2f})")

        # 3. Never dip into the RMD portion or beyond the balance
        actual = min(gross_needed, max(0.0, available - rmd))

        # 4. The year's tax is settled even when nothing discretionary is drawn
        income = self.resolver.evaluate(actual, factors)
        session.income = income
        self.ledger.withdraw(actual, kind, year, TransactionCategory.WITHDRAWAL)
        session.gross_withdrawn[kind] += actual

        net = income.net_income_less_earned_interest - baseline_net
        logger.debug(f"{year}: {kind.value} rmd {rmd:,.2f}, discretionary {actual:,.2f}, "
                     f"net {net:,.2f}, tax {income.tax:,.2f}")
        return net

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------
    def _check_balance(self, session: WithdrawalSession, kind: AccountKind) -> None:
        ending = self.ledger.ending_balance(kind, session.year)
        if ending < 0:
            self._warn(session, NEGATIVE_BALANCE, f"{kind.value} ending balance is negative ({ending:,.2f})")

    def _warn(self, session: WithdrawalSession, kind: str, message: str) -> None:
        warning = ProjectionWarning(kind=kind, year=session.year, message=message)
        session.warnings.append(warning)
        logger.warning(str(warning))
