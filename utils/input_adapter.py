import copy
from models import PlannerInputs
from engine.accounts import AccountKind
from utils.currency import clean_currency, clean_percent
from utils.xml_loader import DEFAULT_SETUP, DEFAULT_ACCOUNTS
from dataclasses import fields
from typing import Dict, Any, Optional

# Fields entered as dollar amounts / rates; strings such as "$85,000" or "3%" are accepted
CURRENCY_FIELDS = {
    "balance_pretax", "balance_roth", "balance_savings", "salary", "spending_today",
    "ss_monthly", "pension_monthly", "spouse_ss_monthly", "spouse_pension_monthly",
}
PERCENT_FIELDS = {
    "return_pretax", "return_roth", "return_savings", "inflation", "salary_growth",
    "pretax_pct", "roth_pct", "taxable_pct", "match_cap", "match_rate", "working_tax_rate",
    "ss_cola", "pension_cola", "spouse_ss_cola", "spouse_pension_cola", "spending_decline",
}

_BALANCE_FIELD = {
    AccountKind.SAVINGS: "balance_savings",
    AccountKind.PRETAX: "balance_pretax",
    AccountKind.ROTH: "balance_roth",
}
_RETURN_FIELD = {
    AccountKind.SAVINGS: "return_savings",
    AccountKind.PRETAX: "return_pretax",
    AccountKind.ROTH: "return_roth",
}


def accounts_to_inputs(accounts: Dict[str, Dict]) -> Dict[str, float]:
    """
    Collapses named accounts into one balance and one rate per account kind.
    Several accounts of the same kind are summed; their rates are balance-weighted.
    """
    balances = {kind: 0.0 for kind in AccountKind}
    weighted_returns = {kind: 0.0 for kind in AccountKind}
    has_return = {kind: False for kind in AccountKind}

    for name, acct in accounts.items():
        kind = AccountKind.parse(acct.get("tax"))
        balance = clean_currency(acct.get("balance", 0.0))
        balances[kind] += balance
        if acct.get("return") is not None:
            weighted_returns[kind] += balance * clean_percent(acct["return"])
            has_return[kind] = True

    result: Dict[str, float] = {}
    for kind in AccountKind:
        result[_BALANCE_FIELD[kind]] = balances[kind]
        if has_return[kind] and balances[kind] > 0:
            result[_RETURN_FIELD[kind]] = weighted_returns[kind] / balances[kind]
    return result


def get_planner_inputs(
    accounts: Optional[Dict[str, Dict]] = None,  # Only list arguments that need special processing
    **kwargs: Any                                # Catch all other inputs dynamically
) -> PlannerInputs:
    """
    Dynamically generates PlannerInputs by merging XML defaults, the account
    list and keyword overrides, using reflection (dataclasses.fields) to ensure
    only valid fields are passed.
    """

    # 1. Start with defaults loaded from the XML setup file
    inputs_dict = copy.deepcopy(DEFAULT_SETUP)

    # 2. Account balances and rates (XML accounts unless a list is given)
    inputs_dict.update(accounts_to_inputs(DEFAULT_ACCOUNTS if accounts is None else accounts))

    # 3. Merge ALL keyword inputs into the defaults.
    inputs_dict.update(kwargs)

    # 4. Normalize entry formats
    for key in CURRENCY_FIELDS & inputs_dict.keys():
        inputs_dict[key] = clean_currency(inputs_dict[key])
    for key in PERCENT_FIELDS & inputs_dict.keys():
        if inputs_dict[key] is not None:
            inputs_dict[key] = clean_percent(inputs_dict[key])
    if isinstance(inputs_dict.get("withdrawal_order"), str):
        inputs_dict["withdrawal_order"] = [k.strip() for k in inputs_dict["withdrawal_order"].split(",")]

    # 5. DYNAMIC FIELD MAPPING AND FILTERING (Reflection)
    planner_field_names = {f.name for f in fields(PlannerInputs)}
    final_inputs = {
        key: value
        for key, value in inputs_dict.items()
        if key in planner_field_names
    }

    # 6. Create the PlannerInputs object
    return PlannerInputs(**final_inputs)
