# utils/currency.py
from typing import Union

# ----------------------------------------------------------------------
# Helper Functions
# ----------------------------------------------------------------------

def clean_currency(val) -> float:
    """
    Cleans a currency string (e.g., "$140,000.00") into a float (140000.0).
    Blank values are 0; anything else that is not a number raises ValueError.
    """
    if val is None or val == "":
        return 0.0
    if isinstance(val, (int, float)):
        return float(val)

    cleaned_val = str(val).replace('$', '').replace(',', '').strip()
    if not cleaned_val:
        return 0.0
    try:
        return float(cleaned_val)
    except ValueError:
        raise ValueError(f"Not a currency amount: {val!r}") from None


def clean_percent(raw_input: Union[str, float, int]) -> Union[float, None]:
    """
    Cleans raw input (e.g., '0.23', '23%', '23') and converts it to a float
    where 1.0 represents 100%. Values above 1 and up to 100 are read as percents.
    """
    if raw_input is None:
        return None

    if isinstance(raw_input, (float, int)):
        numeric_val = float(raw_input)
    else:
        s = str(raw_input).strip()
        if not s:
            return None
        is_percent = s.endswith('%')
        s = s.replace('%', '').replace(',', '').replace(' ', '').strip()
        try:
            numeric_val = float(s)
        except ValueError:
            raise ValueError(f"Not a percentage: {raw_input!r}") from None
        if is_percent:
            return numeric_val / 100.0

    if 1.0 < numeric_val <= 100.0:
        return numeric_val / 100.0
    return numeric_val


def format_currency_output(value: Union[float, None]) -> str:
    """Formats 140000.0 as '$140,000'."""
    if value is None:
        return ""
    value = float(value)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def format_percent_output(value: Union[float, None], decimal_places: int = 1) -> str:
    """Formats a float (0.23) to a display string ('23.0%')."""
    if value is None:
        return ""
    value = float(value)
    return f"{value * 100:.{decimal_places}f}%"
