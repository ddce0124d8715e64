"""
Validation utilities module
Coerces user input into safe non-negative numbers
"""

import math
import re

# Regex patterns
NUMBER_RGX = r"^-?\d+(?:[.,]\d+)?$"
GROUPING_RGX = r"[\s_']"
# 1,000,000 or 1,000.50: commas separate thousands
THOUSANDS_RGX = r"^-?\d{1,3}(?:,\d{3})+(?:\.\d+)?$"


def is_number(s: str) -> bool:
    """
    Validate numeric format (digits with optional comma/dot decimals)

    Args:
        s: String to validate

    Returns:
        True if valid number, False otherwise
    """
    return bool(re.match(NUMBER_RGX, normalize_number(s)))


def normalize_number(s: str) -> str:
    """
    Strip grouping characters and replace decimal comma with dot

    A comma between 3-digit groups is a thousands separator,
    any other comma is a decimal point.

    Args:
        s: Number string to normalize

    Returns:
        Normalized number string
    """
    stripped = re.sub(GROUPING_RGX, "", (s or "").strip())
    if re.match(THOUSANDS_RGX, stripped):
        return stripped.replace(",", "")
    return stripped.replace(",", ".")


def parse_number(s: str) -> float:
    """
    Parse a number, invalid, NaN, infinite or negative input becomes 0

    Args:
        s: Raw user input

    Returns:
        Non-negative float
    """
    if not is_number(s):
        return 0.0
    value = float(normalize_number(s))
    if math.isnan(value) or math.isinf(value) or value < 0:
        return 0.0
    return value


def parse_count(s: str) -> int:
    """Parse an employee count, fractions are truncated"""
    return int(parse_number(s))
