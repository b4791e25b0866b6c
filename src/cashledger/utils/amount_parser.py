"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

LEADING_GROUP = re.compile(r"-?[1-9]\d{0,2}")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles the usual ways amounts are typed:
    - "1234.56"
    - "$1234.56", "ARS 1234.56"
    - "1,234.56" (comma thousands)
    - "1.234,56" (dot thousands, comma decimals)
    - "1234,56"

    When only one kind of separator appears, it is read as a thousands
    separator if it repeats ("1.234.567") or if it sits after a leading
    group of one to three digits and before exactly three digits ("1.234"
    and "1,234" are both 1234). Otherwise it is the decimal separator
    ("0.005", "12,5").

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = re.sub(r"(?i)ars|usd|[$€\s]", "", amount_str.strip())

    if "," in text and "." in text:
        # Whichever separator comes last is the decimal one
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text or "." in text:
        separator = "," if "," in text else "."
        whole, _, fraction = text.rpartition(separator)
        if text.count(separator) > 1 or (
            len(fraction) == 3 and LEADING_GROUP.fullmatch(whole)
        ):
            text = text.replace(separator, "")
        else:
            text = whole + "." + fraction

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return amount


def format_amount(amount: Decimal, currency: str = "") -> str:
    """Format an amount with two decimals and comma thousands, e.g. "ARS 1,234.50"."""
    text = f"{amount:,.2f}"
    return f"{currency} {text}" if currency else text
