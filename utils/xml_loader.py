# utils/xml_loader.py
import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict
from pathlib import Path

logger = logging.getLogger(__name__)

# Grouping elements whose children are flattened with a prefix (spouse/age -> spouse_age)
PREFIXED_GROUPS = {"spouse": "spouse_"}
# Grouping elements whose children are flattened as-is
PLAIN_GROUPS = {"strategy"}

OVERRIDE_FIELDS = {
    "spending": "spending_overrides",
    "taxable_income": "taxable_income_overrides",
    "tax_free_income": "tax_free_income_overrides",
}


def try_cast(value: str) -> Any:
    """Try to convert string to int or float if possible, else leave as str."""
    if value is None:
        return None
    value = value.strip()
    # Booleans
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    # Integers (try first)
    try:
        if '.' not in value: # Optimization: check for decimal to avoid unnecessary exception
            return int(value)
    except ValueError:
        pass

    # Floats (try second)
    try:
        return float(value)
    except ValueError:
        pass

    return value # Return as string if all else fails


def _parse_overrides(element: ET.Element) -> Dict[str, Any]:
    """<overrides todays_dollars=".."><override age=".." type="..">amount</override></overrides>"""
    parsed: Dict[str, Any] = {name: {} for name in OVERRIDE_FIELDS.values()}
    todays_dollars = element.get("todays_dollars")
    if todays_dollars is not None:
        parsed["overrides_in_todays_dollars"] = try_cast(todays_dollars) is True

    for item in element.findall("override"):
        kind = item.get("type", "spending").strip().lower()
        if kind not in OVERRIDE_FIELDS:
            raise ValueError(f"Unknown override type {kind!r}; expected one of {sorted(OVERRIDE_FIELDS)}")
        if item.get("age") is None:
            raise ValueError("Override is missing its age attribute")
        age = int(item.get("age"))
        amount = float(try_cast(item.text) or 0.0)
        table = parsed[OVERRIDE_FIELDS[kind]]
        table[age] = table.get(age, 0.0) + amount

    return parsed


def parse_setup_xml(file_path) -> Dict[str, Any]:
    tree = ET.parse(file_path)
    root = tree.getroot()

    setup_dict: Dict[str, Any] = {}

    for child in root:
        if child.tag in PREFIXED_GROUPS:
            prefix = PREFIXED_GROUPS[child.tag]
            for sub in child:
                setup_dict[f"{prefix}{sub.tag}"] = try_cast(sub.text)
        elif child.tag in PLAIN_GROUPS:
            for sub in child:
                setup_dict[sub.tag] = try_cast(sub.text)
        elif child.tag == "overrides":
            setup_dict.update(_parse_overrides(child))
        else:
            val = try_cast(child.text)
            if child.tag in ["current_year", "current_age", "retire_age", "end_age"]:
                val = int(val) if val is not None else val
            setup_dict[child.tag] = val

    # Comma-separated order -> list of kinds
    order = setup_dict.get("withdrawal_order")
    if isinstance(order, str):
        setup_dict["withdrawal_order"] = [k.strip() for k in order.split(",") if k.strip()]

    logger.debug(f"Loaded {len(setup_dict)} setup values from {file_path}")
    return setup_dict


def parse_overrides_xml(file_path) -> Dict[str, Any]:
    """Loads a standalone overrides file (root element <overrides>)."""
    root = ET.parse(file_path).getroot()
    if root.tag != "overrides":
        raise ValueError(f"{file_path}: expected <overrides> root, found <{root.tag}>")
    return _parse_overrides(root)


def parse_portfolio_xml(file_path) -> Dict[str, Dict]:
    """Load accounts from XML into a dict of dicts, with normalized values."""
    tree = ET.parse(file_path)
    root = tree.getroot()
    portfolio_dict: Dict[str, Dict] = {}

    for acct in root.findall("account"):
        name = acct.get("name", f"Account_{len(portfolio_dict)+1}")
        acct_dict = {}
        for field in acct:
            value = try_cast(field.text)

            # Normalize key fields
            if field.tag == "tax" and isinstance(value, str):
                value = value.strip()
            if field.tag in ["balance", "return"] and value is not None:
                value = float(value)  # ensure numeric types are floats

            acct_dict[field.tag] = value

        portfolio_dict[name] = acct_dict

    return portfolio_dict


CONFIG_DIR = Path(__file__).parent.parent / "config"

DEFAULT_SETUP = parse_setup_xml(CONFIG_DIR / "default_setup.xml")
DEFAULT_ACCOUNTS = parse_portfolio_xml(CONFIG_DIR / "default_accounts.xml")
