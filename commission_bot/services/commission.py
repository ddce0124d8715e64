"""
Commission calculation service
Outlet tiering, per-employee commission and roster totals
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence


class Tier(Enum):
    """Outlet commission tier, value is the outlet rate"""

    TIER_0 = 0.0
    TIER_0_5 = 0.005
    TIER_1 = 0.01
    TIER_2 = 0.02

    @property
    def rate(self) -> float:
        return self.value

    @property
    def scales_with_achievement(self) -> bool:
        """New rule: personal achievement scales the rate (2% and 0.5% only)"""
        return self in NEW_RULE_TIERS


NEW_RULE_TIERS = frozenset({Tier.TIER_2, Tier.TIER_0_5})

# Thresholds: (min_achievement, tier), checked top-down
THRESHOLDS: List[tuple] = [
    (1.0, Tier.TIER_2),     # >=100% → 2%
    (0.9, Tier.TIER_1),     # >=90%  → 1%
    (0.8, Tier.TIER_0_5),   # >=80%  → 0.5%
]


class DistributionError(ValueError):
    """Equal distribution requested without a positive employee count"""


@dataclass(frozen=True)
class RowResult:
    achievement: float
    rate: float
    commission: float


@dataclass(frozen=True)
class Totals:
    total_sales: float = 0.0
    total_targets: float = 0.0
    total_commission: float = 0.0
    avg_achievement: float = 0.0
    avg_rate: float = 0.0
    rows: List[RowResult] = field(default_factory=list)

    def target_difference(self, outlet_target: float) -> float:
        """Sum of employee targets minus the outlet target"""
        return self.total_targets - outlet_target


def tier(achievement: float) -> Tier:
    """
    Pick the outlet tier for an achievement ratio

    Args:
        achievement: Outlet achievement as a ratio (0.88 means 88%)

    Returns:
        Highest tier whose threshold is reached, TIER_0 otherwise
    """
    for threshold, outlet_tier in THRESHOLDS:
        if achievement >= threshold:
            return outlet_tier
    return Tier.TIER_0


def outlet_rate(achievement: float) -> float:
    """Outlet commission rate for an achievement ratio"""
    return tier(achievement).rate


def calc_row(sales: float, target: float, outlet_tier: Tier) -> RowResult:
    """
    Calculate achievement, effective rate and commission for one employee

    Args:
        sales: Employee sales
        target: Employee target, 0 means no achievement
        outlet_tier: Tier derived from the outlet achievement

    Returns:
        RowResult with unrounded values
    """
    achievement = sales / target if target > 0 else 0.0

    if outlet_tier.scales_with_achievement:
        rate = achievement * outlet_tier.rate
    else:
        rate = outlet_tier.rate

    return RowResult(achievement=achievement, rate=rate, commission=sales * rate)


def aggregate(rows: Sequence, outlet_tier: Tier) -> Totals:
    """
    Calculate every row and the roster totals

    Args:
        rows: Employee rows (anything with sales and target attributes)
        outlet_tier: Tier derived from the outlet achievement

    Returns:
        Totals, with per-row results in input order
    """
    results = [calc_row(row.sales or 0, row.target or 0, outlet_tier) for row in rows]
    count = len(results)

    return Totals(
        total_sales=sum(row.sales or 0 for row in rows),
        total_targets=sum(row.target or 0 for row in rows),
        total_commission=sum(r.commission for r in results),
        avg_achievement=sum(r.achievement for r in results) / count if count else 0.0,
        avg_rate=sum(r.rate for r in results) / count if count else 0.0,
        rows=results,
    )


def equal_target(outlet_target: float, count: int) -> int:
    """
    Per-employee target when the outlet target is split equally

    The remainder of an inexact split is dropped (floor).

    Raises:
        DistributionError: if count is not positive
    """
    if not count or count <= 0:
        raise DistributionError("Employee count must be greater than zero")
    return int(math.floor(outlet_target / count))
