"""Pytest configuration for the retirement projection test suite."""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from engine.accounts import AccountLedger
from engine.income_calculator import FixedIncomeFactors
from utils.tax_utils import get_standard_deduction, get_tax_brackets


def make_factors(**overrides) -> FixedIncomeFactors:
    """Married, 2025 tables, no fixed income unless overridden."""
    values = {
        "year": 2025,
        "standard_deduction": get_standard_deduction("married", 2025, 0.0),
        "tax_brackets": get_tax_brackets("married", 2025, 0.0),
        "filing_status": "married",
    }
    values.update(overrides)
    return FixedIncomeFactors(**values)


def make_ledger(savings=0.0, pretax=0.0, roth=0.0, year=2025, **kwargs) -> AccountLedger:
    return AccountLedger.from_balances(year, savings=savings, pretax=pretax, roth=roth, **kwargs)


@pytest.fixture
def factors():
    return make_factors()
