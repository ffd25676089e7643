"""
Drawfolio - Portfolio Stress Rules

Structural stress checks used by the fiduciary dispatcher:
1. Cascading prune: which positions to liquidate when the budget is cut
2. Liquidity bottleneck: peak simultaneous floated capital
3. Post-draw reset: waiting periods and once-in-a-lifetime bans
4. Group draw rounding: region-specific averaging of party points
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from ...models.ssot import PointSystem, Region, Roadmap, Severity, format_money
from ...models.regions import get_profile

logger = logging.getLogger(__name__)


# =============================================================================
# 1. CASCADING PRUNE (asset preservation hierarchy)
# =============================================================================

CLOSE_TO_BURN_YEARS = 2

# Preservation score weights
PROTECTED_BONUS = 1000
SUNK_WEIGHT = 0.5
PREFERENCE_POINT_WEIGHT = 50
BONUS_POINT_WEIGHT = 20
EFFICIENCY_WEIGHT = 10


@dataclass(frozen=True)
class PortfolioAsset:
    region: Region
    species_id: str
    current_points: int
    annual_cost: float             # Cost to hold the position per year
    sunk_cost: float               # points x annual cost
    point_system: PointSystem
    estimated_draw_year: int
    is_close_to_burn: bool

    @property
    def label(self) -> str:
        return f"{self.region.value} {self.species_id}"


@dataclass
class PruneResult:
    kept: List[PortfolioAsset] = field(default_factory=list)
    pruned: List[PortfolioAsset] = field(default_factory=list)
    total_saved: float = 0.0
    reasoning: List[str] = field(default_factory=list)


def preservation_score(asset: PortfolioAsset) -> float:
    """Higher = more worth keeping."""
    score = 0.0
    if asset.is_close_to_burn:
        score += PROTECTED_BONUS
    score += asset.sunk_cost * SUNK_WEIGHT

    if asset.point_system == PointSystem.PREFERENCE:
        score += asset.current_points * PREFERENCE_POINT_WEIGHT
    elif asset.point_system in (PointSystem.BONUS, PointSystem.BONUS_SQUARED):
        score += asset.current_points * BONUS_POINT_WEIGHT
    # Lottery positions carry no equity

    efficiency = asset.sunk_cost / asset.annual_cost if asset.annual_cost > 0 else 0
    score += efficiency * EFFICIENCY_WEIGHT
    return score


def cascading_prune(assets: Sequence[PortfolioAsset], new_budget: float) -> PruneResult:
    """
    Greedy fill from the most valuable position down. Anything that no
    longer fits in the remaining budget is pruned.
    """
    result = PruneResult()
    for asset in assets:
        if asset.is_close_to_burn:
            result.reasoning.append(f"{asset.label}: PROTECTED, within {CLOSE_TO_BURN_YEARS} years of burn")

    ranked = sorted(assets, key=preservation_score, reverse=True)
    remaining = new_budget
    for asset in ranked:
        if remaining >= asset.annual_cost:
            result.kept.append(asset)
            remaining -= asset.annual_cost
        else:
            result.pruned.append(asset)
            result.reasoning.append(
                f"PRUNED: {asset.label} ({asset.point_system.value}, {asset.current_points} pts, "
                f"{format_money(asset.annual_cost)}/yr), insufficient budget"
            )

    result.total_saved = sum(a.annual_cost for a in result.pruned)
    return result


# =============================================================================
# 2. LIQUIDITY BOTTLENECK
# =============================================================================

@dataclass(frozen=True)
class FloatEvent:
    region: Region
    species_id: str
    amount: float
    float_start: date      # Money leaves (application deadline)
    float_end: date        # Money returns (refund date)
    is_refundable: bool = True


@dataclass
class LiquidityBottleneck:
    peak_date: Optional[date]
    peak_amount: float
    float_limit: float
    deficit: float
    overlapping_events: List[FloatEvent]
    severity: Optional[Severity]    # None when within the limit

    def to_dict(self) -> Dict:
        return {
            "peak_date": self.peak_date.isoformat() if self.peak_date else None,
            "peak_amount": self.peak_amount,
            "float_limit": self.float_limit,
            "deficit": self.deficit,
            "overlapping": [f"{e.region.value} {e.species_id}" for e in self.overlapping_events],
            "severity": self.severity.value if self.severity else "ok",
        }


# Deficits above this share of the limit are critical
LIQUIDITY_CRITICAL_SHARE = 0.25


def detect_liquidity_bottleneck(events: Sequence[FloatEvent], float_limit: float) -> LiquidityBottleneck:
    """
    Peak capital floated at once. Annual totals can fit the budget while a
    two-week window of overlapping deadlines does not.
    """
    peak_date: Optional[date] = None
    peak_amount = 0.0
    peak_events: List[FloatEvent] = []

    boundaries = sorted({e.float_start for e in events} | {e.float_end for e in events})
    for day in boundaries:
        active = [e for e in events if e.float_start <= day < e.float_end]
        total = sum(e.amount for e in active)
        if total > peak_amount:
            peak_date, peak_amount, peak_events = day, total, active

    deficit = max(0.0, peak_amount - float_limit)
    if deficit == 0:
        severity = None
    elif deficit > float_limit * LIQUIDITY_CRITICAL_SHARE:
        severity = Severity.CRITICAL
    else:
        severity = Severity.WARNING

    return LiquidityBottleneck(
        peak_date=peak_date,
        peak_amount=peak_amount,
        float_limit=float_limit,
        deficit=deficit,
        overlapping_events=peak_events,
        severity=severity,
    )


# =============================================================================
# 3. POST-DRAW RESET
# =============================================================================

@dataclass(frozen=True)
class PostDrawReset:
    region: Region
    species_id: str
    draw_year: int
    points_zeroed: int
    waiting_period_years: int            # 0 when unrestricted or permanent
    next_eligible_year: Optional[int]    # None = permanently ineligible
    affected_roadmap_years: List[int]
    is_once_in_a_lifetime: bool


def compute_post_draw_reset(
    region: Region,
    species_id: str,
    draw_year: int,
    current_points: int,
    roadmap: Roadmap,
) -> PostDrawReset:
    profile = get_profile(region)
    restricted = profile.oil_waiting_years is not None and species_id in profile.oil_species
    wait_years = profile.oil_waiting_years if restricted else 0
    permanent = restricted and wait_years == 0

    affected = [
        yr.year for yr in roadmap
        if yr.year > draw_year and yr.touches((region, species_id))
    ]
    return PostDrawReset(
        region=region,
        species_id=species_id,
        draw_year=draw_year,
        points_zeroed=current_points,
        waiting_period_years=wait_years,
        next_eligible_year=None if permanent else draw_year + 1 + wait_years,
        affected_roadmap_years=affected,
        is_once_in_a_lifetime=permanent,
    )


# =============================================================================
# 4. GROUP DRAW ROUNDING
# =============================================================================

ROUNDING_WARNING_LOSS = 0.5


@dataclass(frozen=True)
class GroupDrawResult:
    region: Region
    species_id: str
    party_points: List[int]
    raw_average: float
    effective_points: float
    rounding_method: str
    point_loss: float
    warning: Optional[str]

    def to_dict(self) -> Dict:
        return {
            "region": self.region.value,
            "species_id": self.species_id,
            "party_points": list(self.party_points),
            "raw_average": self.raw_average,
            "effective_points": self.effective_points,
            "rounding_method": self.rounding_method,
            "point_loss": self.point_loss,
            "warning": self.warning,
        }


def _apply_rounding(value: float, method: str) -> float:
    if method == "exact":
        return value
    if method == "ceiling":
        return math.ceil(value)
    if method == "round":
        return math.floor(value + 0.5)
    return math.floor(value)


def compute_group_draw_points(region: Region, species_id: str, party_points: Sequence[int]) -> GroupDrawResult:
    """
    Effective points for a party application. Floor regions treat a 3.5
    average as 3; exact regions keep 3.5.
    """
    method = get_profile(region).group_rounding
    points = list(party_points)
    if not points:
        return GroupDrawResult(region, species_id, [], 0.0, 0.0, method, 0.0, None)

    raw = sum(points) / len(points)
    effective = _apply_rounding(raw, method)
    loss = raw - effective

    warning = None
    if loss >= ROUNDING_WARNING_LOSS:
        warning = (
            f"Group rounding in {region.value} costs {loss:.1f} effective points. "
            f"{region.value} uses {method} rounding: your party average of {raw:.1f} "
            f"becomes {effective} effective points."
        )
    return GroupDrawResult(region, species_id, points, raw, effective, method, loss, warning)
