# engine/accounts.py
#
# Year-by-year account ledger for the three account kinds used by the projection
#

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional

from engine.errors import UnknownAccountKindError, WithdrawalConfigError

logger = logging.getLogger(__name__)


class AccountKind(str, Enum):
    SAVINGS = "savings"
    PRETAX = "pretax401k"
    ROTH = "rothIra"

    @classmethod
    def parse(cls, value) -> "AccountKind":
        """Accepts an AccountKind or any of its string spellings (including legacy '401k'/'roth')."""
        if isinstance(value, AccountKind):
            return value
        if isinstance(value, str):
            kind = _KIND_ALIASES.get(value.strip().lower())
            if kind is not None:
                return kind
        logger.error(f"Unknown account kind {value!r}; expected one of {[k.value for k in cls]}")
        raise UnknownAccountKindError(f"Unknown account kind: {value!r}")


_KIND_ALIASES = {
    "savings": AccountKind.SAVINGS,
    "taxable": AccountKind.SAVINGS,
    "pretax401k": AccountKind.PRETAX,
    "401k": AccountKind.PRETAX,
    "trad401k": AccountKind.PRETAX,
    "traditional401k": AccountKind.PRETAX,
    "traditional": AccountKind.PRETAX,
    "rothira": AccountKind.ROTH,
    "roth": AccountKind.ROTH,
}

DEFAULT_ORDER = (AccountKind.SAVINGS, AccountKind.PRETAX, AccountKind.ROTH)


class TransactionCategory(str, Enum):
    CONTRIBUTION = "contribution"
    EMPLOYER_MATCH = "employer_match"
    INCOME = "income"
    SURPLUS = "surplus"
    RMD = "rmd"
    WITHDRAWAL = "withdrawal"


class InterestBasis(str, Enum):
    STARTING = "starting"   # rate x starting balance
    ENDING = "ending"       # rate x balance after the year's flows
    AVERAGE = "average"     # rate x mean of the two


@dataclass
class AccountYear:
    """One account's activity for one tax year."""
    year: int
    starting_balance: float
    deposits: float = 0.0
    withdrawals: float = 0.0
    interest_earned: float = 0.0
    interest_accrued: bool = False
    deposits_by_category: Dict[str, float] = field(default_factory=dict)
    withdrawals_by_category: Dict[str, float] = field(default_factory=dict)

    @property
    def balance_before_interest(self) -> float:
        return self.starting_balance + self.deposits - self.withdrawals

    @property
    def ending_balance(self) -> float:
        return self.balance_before_interest + self.interest_earned


# ----------------------------------------------------------------------
# Accounts
# ----------------------------------------------------------------------
class Account:
    """
    Base account. Subclasses only differ in how the tax code treats them;
    the balance bookkeeping is shared.
    """
    kind: AccountKind
    withdrawals_taxable = False
    interest_taxable = False
    subject_to_rmd = False

    def __init__(self, opening_balance: float, opening_year: int, rate_of_return: float = 0.0,
                 interest_basis: InterestBasis = InterestBasis.STARTING):
        self.opening_balance = float(opening_balance)
        self.opening_year = int(opening_year)
        self.rate_of_return = float(rate_of_return)
        self.interest_basis = InterestBasis(interest_basis)
        self._years: Dict[int, AccountYear] = {}

    def __repr__(self):
        return f"{type(self).__name__}(opening_balance={self.opening_balance:,.2f}, rate={self.rate_of_return})"

    # --- year records ---
    def _record(self, year: int) -> AccountYear:
        if year < self.opening_year:
            raise ValueError(f"{self.kind.value}: year {year} is before the opening year {self.opening_year}")
        record = self._years.get(year)
        if record is None:
            if year == self.opening_year:
                starting = self.opening_balance
            else:
                starting = self._record(year - 1).ending_balance
            record = AccountYear(year=year, starting_balance=starting)
            self._years[year] = record
        return record

    def _open_record(self, year: int) -> AccountYear:
        """Record that may still be written to: no later year exists yet."""
        if self._years and year < max(self._years):
            raise ValueError(f"{self.kind.value}: year {year} is closed; later years already exist")
        return self._record(year)

    def year(self, year: int) -> AccountYear:
        return self._record(year)

    def years(self) -> Iterator[AccountYear]:
        for y in sorted(self._years):
            yield self._years[y]

    # --- capability set ---
    def starting_balance(self, year: int) -> float:
        return self._record(year).starting_balance

    def ending_balance(self, year: int) -> float:
        return self._record(year).ending_balance

    def available_funds(self, year: int) -> float:
        return max(0.0, self._record(year).ending_balance)

    def deposit(self, amount: float, year: int, category: str = TransactionCategory.INCOME) -> None:
        if amount < 0:
            raise ValueError(f"Deposit amount must be non-negative, got {amount}")
        record = self._open_record(year)
        if amount == 0:
            return
        key = TransactionCategory(category).value
        record.deposits += amount
        record.deposits_by_category[key] = record.deposits_by_category.get(key, 0.0) + amount

    def withdraw(self, amount: float, year: int, category: str = TransactionCategory.WITHDRAWAL) -> None:
        if amount < 0:
            raise ValueError(f"Withdrawal amount must be non-negative, got {amount}")
        record = self._open_record(year)
        if amount == 0:
            return
        key = TransactionCategory(category).value
        record.withdrawals += amount
        record.withdrawals_by_category[key] = record.withdrawals_by_category.get(key, 0.0) + amount

    def balance_subject_to_interest(self, year: int, basis: Optional[InterestBasis] = None) -> float:
        record = self._record(year)
        basis_kind = InterestBasis(basis) if basis is not None else self.interest_basis
        if basis_kind == InterestBasis.STARTING:
            amount = record.starting_balance
        elif basis_kind == InterestBasis.ENDING:
            amount = record.balance_before_interest
        else:
            amount = (record.starting_balance + record.balance_before_interest) / 2
        return max(0.0, amount)

    def estimated_interest(self, year: int) -> float:
        """Interest the year is expected to earn, from the starting balance."""
        return max(0.0, self.starting_balance(year)) * self.rate_of_return

    def accrue_interest(self, year: int, basis: Optional[InterestBasis] = None) -> float:
        """
        Credits the year's interest once; later calls return the amount already credited.
        `basis` overrides the account's interest basis for this year only.
        """
        record = self._open_record(year)
        if record.interest_accrued:
            return record.interest_earned
        record.interest_earned = self.balance_subject_to_interest(year, basis) * self.rate_of_return
        record.interest_accrued = True
        return record.interest_earned


class SavingsAccount(Account):
    kind = AccountKind.SAVINGS
    interest_taxable = True


class PretaxAccount(Account):
    kind = AccountKind.PRETAX
    withdrawals_taxable = True
    subject_to_rmd = True


class RothAccount(Account):
    kind = AccountKind.ROTH


ACCOUNT_CLASSES = {
    AccountKind.SAVINGS: SavingsAccount,
    AccountKind.PRETAX: PretaxAccount,
    AccountKind.ROTH: RothAccount,
}


# ----------------------------------------------------------------------
# Ledger
# ----------------------------------------------------------------------
class AccountLedger:
    """All accounts of a projection, addressable by kind and tax year."""

    def __init__(self, accounts: Optional[Dict[AccountKind, Account]] = None):
        self._accounts: Dict[AccountKind, Account] = {}
        for kind, account in (accounts or {}).items():
            kind = AccountKind.parse(kind)
            if not isinstance(account, ACCOUNT_CLASSES[kind]):
                raise WithdrawalConfigError(
                    f"Account registered as {kind.value} is a {type(account).__name__}"
                )
            self._accounts[kind] = account

    @classmethod
    def from_balances(cls, opening_year: int, savings: float = 0.0, pretax: float = 0.0, roth: float = 0.0,
                      savings_return: float = 0.0, pretax_return: float = 0.0, roth_return: float = 0.0,
                      interest_basis: InterestBasis = InterestBasis.STARTING) -> "AccountLedger":
        return cls({
            AccountKind.SAVINGS: SavingsAccount(savings, opening_year, savings_return, interest_basis),
            AccountKind.PRETAX: PretaxAccount(pretax, opening_year, pretax_return, interest_basis),
            AccountKind.ROTH: RothAccount(roth, opening_year, roth_return, interest_basis),
        })

    def __len__(self):
        return len(self._accounts)

    def __contains__(self, kind):
        return AccountKind.parse(kind) in self._accounts

    def kinds(self):
        return list(self._accounts.keys())

    def account(self, kind) -> Account:
        kind = AccountKind.parse(kind)
        if kind not in self._accounts:
            raise WithdrawalConfigError(f"No {kind.value} account in the ledger")
        return self._accounts[kind]

    # Ledger interface used by the withdrawal engine and the projector
    def starting_balance(self, kind, year: int) -> float:
        return self.account(kind).starting_balance(year)

    def ending_balance(self, kind, year: int) -> float:
        return self.account(kind).ending_balance(year)

    def available_funds(self, kind, year: int) -> float:
        return self.account(kind).available_funds(year)

    def deposit(self, amount: float, kind, year: int, category: str = TransactionCategory.INCOME) -> None:
        self.account(kind).deposit(amount, year, category)

    def withdraw(self, amount: float, kind, year: int, category: str = TransactionCategory.WITHDRAWAL) -> None:
        self.account(kind).withdraw(amount, year, category)

    def accrue_interest(self, kind, year: int, basis: Optional[InterestBasis] = None) -> float:
        return self.account(kind).accrue_interest(year, basis)

    # Tax treatment, read from the account variants
    def rmd_kinds(self):
        return [kind for kind, acct in self._accounts.items() if acct.subject_to_rmd]

    def rmd_balance(self, year: int) -> float:
        """Starting balance of every account that owes a required distribution."""
        return sum(max(0.0, self._accounts[kind].starting_balance(year)) for kind in self.rmd_kinds())

    def estimated_taxable_interest(self, year: int) -> float:
        return sum(acct.estimated_interest(year) for acct in self._accounts.values() if acct.interest_taxable)

    def total_balance(self, year: int) -> float:
        return sum(acct.ending_balance(year) for acct in self._accounts.values())

    def snapshot(self, year: int) -> Dict[str, AccountYear]:
        return {kind.value: acct.year(year) for kind, acct in self._accounts.items()}
