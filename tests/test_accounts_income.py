import pytest

from conftest import make_ledger
from engine.accounts import AccountKind, InterestBasis
from engine.accounts_income import IncomeStreams, calculate_annual_benefit
from models import PlannerInputs


def make_inputs(**kwargs) -> PlannerInputs:
    values = dict(current_year=2025, current_age=65, retire_age=65, end_age=90, inflation=0.03)
    values.update(kwargs)
    return PlannerInputs(**values)


class TestBenefits:
    def test_annual_benefit_with_cola(self):
        assert calculate_annual_benefit(2_000, 67, 66, 0.02) == 0
        assert calculate_annual_benefit(2_000, 67, 67, 0.02) == pytest.approx(24_000)
        assert calculate_annual_benefit(2_000, 67, 69, 0.02) == pytest.approx(24_969.6)
        assert calculate_annual_benefit(0, 67, 80, 0.02) == 0

    def test_spouse_benefits_follow_spouse_age(self):
        streams = IncomeStreams(make_inputs(
            ss_monthly=2_500, ss_start_age=67, ss_cola=0.0,
            spouse_age=62, spouse_ss_monthly=1_000, spouse_ss_start_age=67, spouse_ss_cola=0.0,
        ))
        # 2027: primary is 67, spouse only 64
        assert streams.my_ss(2027) == pytest.approx(30_000)
        assert streams.spouse_ss(2027) == 0
        assert streams.spouse_ss(2030) == pytest.approx(12_000)

    def test_no_spouse_means_no_spouse_income(self):
        streams = IncomeStreams(make_inputs(spouse_ss_monthly=1_000, spouse_pension_monthly=500))
        assert streams.spouse_ss(2040) == 0
        assert streams.spouse_pension(2040) == 0

    def test_pension(self):
        streams = IncomeStreams(make_inputs(pension_monthly=1_500, pension_start_age=65, pension_cola=0.01))
        assert streams.my_pension(2025) == pytest.approx(18_000)
        assert streams.my_pension(2026) == pytest.approx(18_180)


class TestAdjustments:
    def test_overrides_nominal(self):
        streams = IncomeStreams(make_inputs(current_age=55, taxable_income_overrides={60: 10_000}))
        assert streams.other_taxable_income(2030) == pytest.approx(10_000)
        assert streams.other_taxable_income(2031) == 0

    def test_overrides_in_todays_dollars(self):
        streams = IncomeStreams(make_inputs(
            current_age=55, overrides_in_todays_dollars=True,
            taxable_income_overrides={60: 10_000}, tax_free_income_overrides={61: 5_000},
        ))
        assert streams.other_taxable_income(2030) == pytest.approx(11_592.74, abs=0.01)
        assert streams.tax_free_income(2031) == pytest.approx(5_000 * 1.03 ** 6)

    def test_spending_target_inflates(self):
        streams = IncomeStreams(make_inputs(spending_today=80_000))
        assert streams.spending_target(2027) == pytest.approx(84_872)

    def test_spending_decline_applies_per_retired_year(self):
        streams = IncomeStreams(make_inputs(spending_today=80_000, spending_decline=0.01))
        assert streams.spending_target(2025) == pytest.approx(80_000)
        assert streams.spending_target(2027) == pytest.approx(83_183.05, abs=0.01)

    def test_spending_override_added(self):
        streams = IncomeStreams(make_inputs(spending_today=50_000, inflation=0.0, spending_overrides={66: 7_000}))
        assert streams.spending_target(2026) == pytest.approx(57_000)
        assert streams.spending_target(2027) == pytest.approx(50_000)


class TestAccountDrivenIncome:
    def test_rmd(self):
        ledger = make_ledger(pretax=500_000)
        assert IncomeStreams(make_inputs(current_age=75)).rmd(ledger, 75, 2025) == pytest.approx(20_325.20, abs=0.01)
        assert IncomeStreams(make_inputs()).rmd(ledger, 65, 2025) == 0
        assert IncomeStreams(make_inputs(use_rmd=False)).rmd(ledger, 75, 2025) == 0
        assert IncomeStreams(make_inputs(use_trad_401k=False)).rmd(ledger, 75, 2025) == 0

    def test_estimated_interest(self):
        ledger = make_ledger(savings=100_000, savings_return=0.03)
        assert IncomeStreams(make_inputs()).estimated_interest(ledger, 2025) == pytest.approx(3_000)

    def test_taxed_interest_is_estimated_from_starting_balance(self):
        ledger = make_ledger(savings=100_000, savings_return=0.03, interest_basis=InterestBasis.ENDING)
        ledger.deposit(50_000, AccountKind.SAVINGS, 2025)
        estimate = IncomeStreams(make_inputs()).estimated_interest(ledger, 2025)
        credited = ledger.accrue_interest(AccountKind.SAVINGS, 2025)
        assert estimate == pytest.approx(3_000)
        assert credited == pytest.approx(4_500)

    def test_fixed_income_factors(self):
        inputs = make_inputs(current_age=75, ss_monthly=2_000, ss_start_age=67, ss_cola=0.0,
                             pension_monthly=1_000, pension_start_age=65, filing_status="mfj")
        ledger = make_ledger(savings=50_000, pretax=500_000, savings_return=0.02)
        factors = IncomeStreams(inputs).build_fixed_income_factors(2025, 75, ledger)

        assert factors.year == 2025
        assert factors.my_ss == pytest.approx(24_000)
        assert factors.my_pension == pytest.approx(12_000)
        assert factors.spouse_ss == 0
        assert factors.interest_earned == pytest.approx(1_000)
        assert factors.rmd == pytest.approx(20_325.20, abs=0.01)
        assert factors.standard_deduction == pytest.approx(29_200)
        assert factors.married
        assert factors.precision == inputs.precision
