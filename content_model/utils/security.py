"""
Security Utilities

Helpers that keep exported values safe to open in spreadsheet software.
"""

from typing import Any

# Leading characters spreadsheets treat as the start of a formula
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r", "\n")


def sanitize_csv_field(value: Any) -> str:
    """
    Sanitize a CSV field value to prevent CSV injection attacks.

    CSV injection occurs when spreadsheet applications interpret
    formulas in CSV cells (starting with =, +, -, @, etc).

    Args:
        value: Field value to sanitize

    Returns:
        Sanitized string safe for CSV export

    Example:
        >>> sanitize_csv_field("=SUM(A1:A10)")
        "'=SUM(A1:A10)"
        >>> sanitize_csv_field("normal text")
        'normal text'
    """
    value_str = str(value) if value is not None else ""

    if value_str and value_str[0] in FORMULA_PREFIXES:
        # Negative numbers are data, not formulas
        if value_str[0] == "-" and _is_number(value_str):
            return value_str
        value_str = "'" + value_str

    return value_str


def _is_number(value: str) -> bool:
    try:
        float(value.replace(",", ""))
    except ValueError:
        return False
    return True
