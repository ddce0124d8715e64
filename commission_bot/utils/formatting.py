"""
Display formatting helpers
"""

from commission_bot.config import THOUSANDS_SEPARATOR


def fmt_money(amount: float, separator: str = None) -> str:
    """Round to an integer and group thousands"""
    sep = THOUSANDS_SEPARATOR if separator is None else separator
    return f"{round(amount or 0):,}".replace(",", sep)


def fmt_percent(ratio: float, digits: int = 2) -> str:
    """Ratio as a percentage, 0.885 → 88.50%"""
    return f"{(ratio or 0) * 100:.{digits}f}%"
