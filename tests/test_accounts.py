import pytest

from conftest import make_ledger
from engine.accounts import (
    AccountKind,
    AccountLedger,
    InterestBasis,
    RothAccount,
    SavingsAccount,
    TransactionCategory,
)
from engine.errors import UnknownAccountKindError, WithdrawalConfigError


class TestAccountKind:
    @pytest.mark.parametrize("raw,kind", [
        ("savings", AccountKind.SAVINGS),
        ("401k", AccountKind.PRETAX),
        ("trad401k", AccountKind.PRETAX),
        ("pretax401k", AccountKind.PRETAX),
        ("Roth", AccountKind.ROTH),
        ("rothIra", AccountKind.ROTH),
        (AccountKind.ROTH, AccountKind.ROTH),
    ])
    def test_parse(self, raw, kind):
        assert AccountKind.parse(raw) is kind

    @pytest.mark.parametrize("raw", ["hsa", "", None, 3])
    def test_unknown_kind(self, raw):
        with pytest.raises(UnknownAccountKindError):
            AccountKind.parse(raw)

    def test_unknown_kind_is_a_value_error(self):
        with pytest.raises(ValueError):
            AccountKind.parse("brokerage2")


class TestLedger:
    def test_year_arithmetic(self):
        ledger = make_ledger(savings=1_000, savings_return=0.05)
        ledger.deposit(500, "savings", 2025)
        ledger.withdraw(200, "savings", 2025)
        assert ledger.ending_balance("savings", 2025) == 1_300

        assert ledger.accrue_interest("savings", 2025) == pytest.approx(50)
        assert ledger.ending_balance("savings", 2025) == pytest.approx(1_350)
        # Second accrual is a no-op
        assert ledger.accrue_interest("savings", 2025) == pytest.approx(50)
        assert ledger.ending_balance("savings", 2025) == pytest.approx(1_350)

        assert ledger.starting_balance("savings", 2026) == pytest.approx(1_350)

    @pytest.mark.parametrize("basis,expected", [
        (InterestBasis.STARTING, 50.0),
        (InterestBasis.ENDING, 65.0),
        (InterestBasis.AVERAGE, 57.5),
    ])
    def test_interest_basis(self, basis, expected):
        ledger = make_ledger(savings=1_000, savings_return=0.05, interest_basis=basis)
        ledger.deposit(500, AccountKind.SAVINGS, 2025)
        ledger.withdraw(200, AccountKind.SAVINGS, 2025)
        assert ledger.accrue_interest(AccountKind.SAVINGS, 2025) == pytest.approx(expected)

    def test_basis_override_for_one_year(self):
        ledger = make_ledger(pretax=1_000, pretax_return=0.10)
        ledger.deposit(1_000, AccountKind.PRETAX, 2025, TransactionCategory.CONTRIBUTION)
        assert ledger.accrue_interest(AccountKind.PRETAX, 2025, InterestBasis.ENDING) == pytest.approx(200)

    def test_roll_forward_identity(self):
        ledger = make_ledger(savings=10_000, pretax=50_000, roth=5_000,
                             savings_return=0.02, pretax_return=0.06, roth_return=0.07)
        for year in range(2025, 2030):
            ledger.deposit(1_000, AccountKind.ROTH, year, TransactionCategory.CONTRIBUTION)
            ledger.withdraw(2_000, AccountKind.PRETAX, year)
            for kind in ledger.kinds():
                ledger.accrue_interest(kind, year)
        for kind in ledger.kinds():
            for record in ledger.account(kind).years():
                assert record.ending_balance == pytest.approx(
                    record.starting_balance + record.deposits - record.withdrawals + record.interest_earned)
            for year in range(2025, 2029):
                assert ledger.starting_balance(kind, year + 1) == ledger.ending_balance(kind, year)

    def test_categories_tracked(self):
        ledger = make_ledger(pretax=100_000)
        ledger.withdraw(4_000, AccountKind.PRETAX, 2025, TransactionCategory.RMD)
        ledger.withdraw(6_000, AccountKind.PRETAX, 2025)
        record = ledger.account(AccountKind.PRETAX).year(2025)
        assert record.withdrawals_by_category == {"rmd": 4_000, "withdrawal": 6_000}
        assert record.withdrawals == 10_000

    def test_available_funds_never_negative(self):
        ledger = make_ledger(savings=1_000)
        ledger.withdraw(5_000, AccountKind.SAVINGS, 2025)
        assert ledger.ending_balance(AccountKind.SAVINGS, 2025) == -4_000
        assert ledger.available_funds(AccountKind.SAVINGS, 2025) == 0.0

    def test_closed_year_rejects_writes(self):
        ledger = make_ledger(savings=1_000)
        ledger.starting_balance(AccountKind.SAVINGS, 2026)
        with pytest.raises(ValueError):
            ledger.deposit(100, AccountKind.SAVINGS, 2025)

    def test_invalid_amounts_and_years(self):
        ledger = make_ledger(savings=1_000)
        with pytest.raises(ValueError):
            ledger.deposit(-1, AccountKind.SAVINGS, 2025)
        with pytest.raises(ValueError):
            ledger.withdraw(-1, AccountKind.SAVINGS, 2025)
        with pytest.raises(ValueError):
            ledger.starting_balance(AccountKind.SAVINGS, 2024)

    def test_account_variants(self):
        ledger = make_ledger()
        assert ledger.account("savings").interest_taxable
        assert ledger.account("401k").withdrawals_taxable
        assert ledger.account("401k").subject_to_rmd
        assert not ledger.account("roth").withdrawals_taxable

    def test_tax_treatment_drives_rmd_and_interest(self):
        ledger = make_ledger(savings=10_000, pretax=200_000, roth=50_000,
                             savings_return=0.05, pretax_return=0.06, roth_return=0.07)
        assert ledger.rmd_kinds() == [AccountKind.PRETAX]
        assert ledger.rmd_balance(2025) == 200_000
        # Only savings interest is taxable
        assert ledger.estimated_taxable_interest(2025) == pytest.approx(500)

        without_pretax = AccountLedger({AccountKind.SAVINGS: SavingsAccount(100, 2025)})
        assert without_pretax.rmd_kinds() == []
        assert without_pretax.rmd_balance(2025) == 0

    def test_kind_class_mismatch_rejected(self):
        with pytest.raises(WithdrawalConfigError):
            AccountLedger({AccountKind.SAVINGS: RothAccount(0, 2025)})

    def test_missing_kind(self):
        ledger = AccountLedger({AccountKind.SAVINGS: SavingsAccount(100, 2025)})
        assert len(ledger) == 1
        assert AccountKind.ROTH not in ledger
        with pytest.raises(WithdrawalConfigError):
            ledger.account(AccountKind.ROTH)
