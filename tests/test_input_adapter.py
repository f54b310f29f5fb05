import pytest

from engine.errors import UnknownAccountKindError
from utils.currency import clean_currency, clean_percent, format_currency_output, format_percent_output
from utils.input_adapter import accounts_to_inputs, get_planner_inputs
from utils.xml_loader import parse_overrides_xml, parse_portfolio_xml, parse_setup_xml, try_cast


class TestPlannerInputs:
    def test_defaults_come_from_xml(self):
        inputs = get_planner_inputs()
        assert inputs.current_age == 55
        assert inputs.salary == 120_000
        assert inputs.spouse_age == 53
        assert inputs.has_spouse
        assert inputs.balance_savings == 150_000
        assert inputs.balance_pretax == 600_000
        assert inputs.return_savings == pytest.approx(0.03)
        assert inputs.withdrawal_order == ["savings", "pretax401k", "rothIra"]
        assert inputs.spending_overrides == {70: 15_000}
        assert inputs.overrides_in_todays_dollars is True

    def test_defaults_not_shared_between_calls(self):
        first = get_planner_inputs()
        first.spending_overrides[80] = 99_999
        first.withdrawal_order.append("rothIra")
        second = get_planner_inputs()
        assert second.spending_overrides == {70: 15_000}
        assert second.withdrawal_order == ["savings", "pretax401k", "rothIra"]

    def test_keyword_values_are_cleaned(self):
        inputs = get_planner_inputs(salary="$90,000", inflation="3%", spending_decline="1%",
                                    withdrawal_order="rothIra, savings")
        assert inputs.salary == 90_000
        assert inputs.inflation == pytest.approx(0.03)
        assert inputs.spending_decline == pytest.approx(0.01)
        assert inputs.withdrawal_order == ["rothIra", "savings"]

    def test_unknown_keywords_ignored(self):
        inputs = get_planner_inputs(favorite_color="blue")
        assert not hasattr(inputs, "favorite_color")

    def test_accounts_are_combined_by_kind(self):
        accounts = {
            "Old 401k": {"tax": "401k", "balance": "$300,000", "return": 0.06},
            "New 401k": {"tax": "pretax401k", "balance": 100_000, "return": "8%"},
            "Brokerage": {"tax": "taxable", "balance": 25_000},
        }
        values = accounts_to_inputs(accounts)
        assert values["balance_pretax"] == 400_000
        assert values["return_pretax"] == pytest.approx(0.065)
        assert values["balance_savings"] == 25_000
        assert "return_savings" not in values
        assert values["balance_roth"] == 0

        inputs = get_planner_inputs(accounts)
        assert inputs.balance_pretax == 400_000
        assert inputs.balance_roth == 0

    def test_unknown_account_kind(self):
        with pytest.raises(UnknownAccountKindError):
            accounts_to_inputs({"HSA": {"tax": "hsa", "balance": 5_000}})


class TestXml:
    def test_try_cast(self):
        assert try_cast(" 42 ") == 42
        assert try_cast("0.5") == 0.5
        assert try_cast("TRUE") is True
        assert try_cast("savings") == "savings"
        assert try_cast(None) is None

    def test_overrides_file(self, tmp_path):
        path = tmp_path / "overrides.xml"
        path.write_text(
            '<overrides todays_dollars="false">'
            '<override age="68" type="spending">5000</override>'
            '<override age="68" type="spending">1000</override>'
            '<override age="70" type="taxable_income">12000</override>'
            '<override age="71" type="tax_free_income">3000</override>'
            '</overrides>'
        )
        parsed = parse_overrides_xml(path)
        assert parsed["spending_overrides"] == {68: 6_000}
        assert parsed["taxable_income_overrides"] == {70: 12_000}
        assert parsed["tax_free_income_overrides"] == {71: 3_000}
        assert parsed["overrides_in_todays_dollars"] is False

        inputs = get_planner_inputs(**parsed)
        assert inputs.spending_overrides == {68: 6_000}

    def test_bad_overrides(self, tmp_path):
        path = tmp_path / "bad.xml"
        path.write_text('<overrides><override age="68" type="lottery">5</override></overrides>')
        with pytest.raises(ValueError):
            parse_overrides_xml(path)

        path.write_text('<setup/>')
        with pytest.raises(ValueError):
            parse_overrides_xml(path)

    def test_setup_groups_flattened(self, tmp_path):
        path = tmp_path / "setup.xml"
        path.write_text(
            "<setup><current_age>60</current_age>"
            "<spouse><age>58</age><ss_monthly>900</ss_monthly></spouse>"
            "<strategy><use_roth>false</use_roth><withdrawal_order>rothIra,savings</withdrawal_order></strategy>"
            "</setup>"
        )
        setup = parse_setup_xml(path)
        assert setup == {
            "current_age": 60,
            "spouse_age": 58,
            "spouse_ss_monthly": 900,
            "use_roth": False,
            "withdrawal_order": ["rothIra", "savings"],
        }

    def test_portfolio(self, tmp_path):
        path = tmp_path / "accounts.xml"
        path.write_text(
            '<portfolio><account name="Roth"><tax> rothIra </tax><balance>1000</balance></account>'
            '<account><tax>savings</tax><balance>50</balance><return>0.01</return></account></portfolio>'
        )
        accounts = parse_portfolio_xml(path)
        assert accounts["Roth"] == {"tax": "rothIra", "balance": 1000.0}
        assert accounts["Account_2"]["return"] == 0.01


class TestCurrency:
    def test_clean_currency(self):
        assert clean_currency("$140,000.00") == 140_000
        assert clean_currency("") == 0
        assert clean_currency(None) == 0
        with pytest.raises(ValueError):
            clean_currency("lots")

    def test_clean_percent(self):
        assert clean_percent("23%") == pytest.approx(0.23)
        assert clean_percent("0.23") == pytest.approx(0.23)
        assert clean_percent(23) == pytest.approx(0.23)
        assert clean_percent(0.5) == 0.5
        assert clean_percent("") is None
        with pytest.raises(ValueError):
            clean_percent("high")

    def test_formatting(self):
        assert format_currency_output(140_000) == "$140,000"
        assert format_currency_output(-1_234.4) == "-$1,234"
        assert format_currency_output(None) == ""
        assert format_percent_output(0.23) == "23.0%"
