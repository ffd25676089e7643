"""
Drawfolio - Capital Allocator

Classifies every dollar in a roadmap by liquidity state:
- Sunk: non-refundable (application fees, point purchases, qualifying licenses)
- Floated: tied up but refunded on an unsuccessful draw (upfront tag fees in
  refund regions)
- Contingent: charged only if drawn (tags elsewhere, travel)

Also builds the per-position Burn Rate Matrix and the annual Status Ticker.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from ...config import PLANNING_HORIZON_YEARS
from ...models.ssot import (
    ActionType, CapitalType, CostCategory, CostLineItem, DrawReference,
    PointSystem, PointsLedgerEntry, PositionKey, Region, Roadmap, RoadmapAction,
    RoadmapYear, ledger_index, parse_enum,
)
from ...models.regions import get_profile, is_lottery_region, point_system_for
from ..projection.point_creep import (
    PcvTrend, compute_pcv, estimate_pcv, pcv_to_rate, time_to_draw,
)
from ..projection.draw_odds import odds_for_position

logger = logging.getLogger(__name__)


# When an action carries no itemised costs, its lump cost is treated as
# the category its action type implies.
ACTION_DEFAULT_CATEGORY: Dict[ActionType, CostCategory] = {
    ActionType.BUY_POINTS: CostCategory.POINTS,
    ActionType.APPLY: CostCategory.APPLICATION,
    ActionType.HUNT: CostCategory.TAG,
    ActionType.SCOUT: CostCategory.TRAVEL,
}

# Hunts with odds above this are treated as over-the-counter dividends
DIVIDEND_ODDS_THRESHOLD = 0.8


# =============================================================================
# FEE CLASSIFICATION
# =============================================================================

@dataclass(frozen=True)
class ClassifiedFee:
    label: str
    amount: float
    region: Region
    species_id: str
    category: CostCategory
    capital_type: CapitalType
    refund_policy: str

    def to_dict(self) -> Dict:
        return {
            "label": self.label,
            "amount": self.amount,
            "region": self.region.value,
            "species_id": self.species_id,
            "category": self.category.value,
            "capital_type": self.capital_type.value,
            "refund_policy": self.refund_policy,
        }


def classify_fee(
    label: str,
    amount: float,
    region: Region,
    species_id: str,
    category: CostCategory,
) -> ClassifiedFee:
    """Classify one fee by capital type using the region's refund policy."""
    category = parse_enum(CostCategory, category, "cost category")

    if category in (CostCategory.LICENSE, CostCategory.APPLICATION, CostCategory.POINTS):
        capital_type, policy = CapitalType.SUNK, "Non-refundable"
    elif category == CostCategory.TAG:
        if get_profile(region).refundable_tag_fees:
            capital_type, policy = CapitalType.FLOATED, "Full refund if not drawn"
        else:
            capital_type, policy = CapitalType.CONTINGENT, "Only charged if drawn"
    else:
        capital_type, policy = CapitalType.CONTINGENT, "Trip cost, only if hunting"

    return ClassifiedFee(
        label=label,
        amount=amount,
        region=region,
        species_id=species_id,
        category=category,
        capital_type=capital_type,
        refund_policy=policy,
    )


def _line_items(action: RoadmapAction) -> Sequence[CostLineItem]:
    if action.cost_line_items:
        return action.cost_line_items
    if action.cost > 0:
        category = ACTION_DEFAULT_CATEGORY[action.type]
        return (CostLineItem(label=f"{action.type.value} cost", amount=action.cost, category=category),)
    return ()


def classify_action(action: RoadmapAction) -> List[ClassifiedFee]:
    return [
        classify_fee(item.label, item.amount, action.region, action.species_id, item.category)
        for item in _line_items(action)
    ]


# =============================================================================
# CAPITAL SUMMARY
# =============================================================================

@dataclass
class RegionCapital:
    region: Region
    sunk: float = 0.0
    floated: float = 0.0
    contingent: float = 0.0

    def add(self, fee: ClassifiedFee) -> None:
        if fee.capital_type == CapitalType.SUNK:
            self.sunk += fee.amount
        elif fee.capital_type == CapitalType.FLOATED:
            self.floated += fee.amount
        else:
            self.contingent += fee.amount

    def to_dict(self) -> Dict:
        return {
            "region": self.region.value,
            "sunk": round(self.sunk, 2),
            "floated": round(self.floated, 2),
            "contingent": round(self.contingent, 2),
        }


@dataclass
class CapitalSummary:
    sunk_capital: float
    floated_capital: float
    contingent_capital: float
    by_region: List[RegionCapital] = field(default_factory=list)
    classified_fees: List[ClassifiedFee] = field(default_factory=list)

    @property
    def total_deployed(self) -> float:
        return round(self.sunk_capital + self.floated_capital, 2)

    @property
    def total_exposure(self) -> float:
        return round(self.sunk_capital + self.floated_capital + self.contingent_capital, 2)

    def region(self, region: Region) -> Optional[RegionCapital]:
        return next((r for r in self.by_region if r.region == region), None)

    def to_dict(self) -> Dict:
        return {
            "sunk_capital": self.sunk_capital,
            "floated_capital": self.floated_capital,
            "contingent_capital": self.contingent_capital,
            "total_deployed": self.total_deployed,
            "total_exposure": self.total_exposure,
            "by_region": [r.to_dict() for r in self.by_region],
            "classified_fees": [f.to_dict() for f in self.classified_fees],
        }


def compute_capital_summary(roadmap: Roadmap) -> CapitalSummary:
    """Walk every action in the roadmap and classify each cost item."""
    fees: List[ClassifiedFee] = []
    by_region: Dict[Region, RegionCapital] = {}

    for yr in roadmap:
        for action in yr.actions:
            for fee in classify_action(action):
                fees.append(fee)
                by_region.setdefault(fee.region, RegionCapital(fee.region)).add(fee)

    def total(capital_type: CapitalType) -> float:
        return round(sum(f.amount for f in fees if f.capital_type == capital_type), 2)

    summary = CapitalSummary(
        sunk_capital=total(CapitalType.SUNK),
        floated_capital=total(CapitalType.FLOATED),
        contingent_capital=total(CapitalType.CONTINGENT),
        by_region=list(by_region.values()),
        classified_fees=fees,
    )
    logger.info(
        f"Capital summary: sunk={summary.sunk_capital} floated={summary.floated_capital} "
        f"contingent={summary.contingent_capital}"
    )
    return summary


# =============================================================================
# BURN RATE MATRIX
# =============================================================================

@dataclass(frozen=True)
class BurnRateEntry:
    region: Region
    species_id: str
    current_points: int
    required_points: Optional[int]     # None for lottery systems
    pcv: float
    pcv_trend: PcvTrend
    eta_year: Optional[int]            # None for lottery or never-reachable
    is_dead_asset: bool
    point_system: PointSystem
    cumulative_odds: Optional[float] = None

    @property
    def key(self) -> PositionKey:
        return (self.region, self.species_id)

    @property
    def required_display(self) -> str:
        return "—" if self.required_points is None else str(self.required_points)

    def to_dict(self) -> Dict:
        return {
            "region": self.region.value,
            "species_id": self.species_id,
            "current_points": self.current_points,
            "required_points": self.required_points,
            "required_display": self.required_display,
            "pcv": self.pcv,
            "pcv_trend": self.pcv_trend.value,
            "eta_year": self.eta_year,
            "is_dead_asset": self.is_dead_asset,
            "point_system": self.point_system.value,
            "cumulative_odds": self.cumulative_odds,
        }


def compute_burn_rate_matrix(
    roadmap: Roadmap,
    ledger: Sequence[PointsLedgerEntry],
    references: Mapping[PositionKey, DrawReference],
    as_of_year: int,
    horizon_years: int = PLANNING_HORIZON_YEARS,
) -> List[BurnRateEntry]:
    """
    One row per (region, species) held in the ledger or planned in the
    roadmap. Ledger positions come first, then roadmap-only positions.
    """
    points = ledger_index(ledger)
    keys: Dict[PositionKey, None] = dict.fromkeys(points)
    for key in roadmap.keys():
        keys.setdefault(key, None)

    entries: List[BurnRateEntry] = []
    for key in keys:
        region, species_id = key
        reference = references.get(key, DrawReference())
        current = points.get(key, 0)
        system = point_system_for(region)

        if len(reference.requirement_history) >= 2:
            pcv_result = compute_pcv(reference.requirement_history)
        else:
            pcv_result = estimate_pcv(reference.competitiveness)

        if is_lottery_region(region):
            odds = odds_for_position(region, current, reference, horizon_years)
            entries.append(BurnRateEntry(
                region=region,
                species_id=species_id,
                current_points=current,
                required_points=None,
                pcv=pcv_result.pcv,
                pcv_trend=pcv_result.trend,
                eta_year=None,
                is_dead_asset=False,
                point_system=system,
                cumulative_odds=odds.cumulative_odds,
            ))
            continue

        required = reference.required_points
        eta_year = None
        if required is not None:
            rate = pcv_to_rate(pcv_result.pcv, required)
            eta_year = time_to_draw(current, required, rate, as_of_year).target_year

        entries.append(BurnRateEntry(
            region=region,
            species_id=species_id,
            current_points=current,
            required_points=required,
            pcv=pcv_result.pcv,
            pcv_trend=pcv_result.trend,
            eta_year=eta_year,
            is_dead_asset=pcv_result.is_dead_asset,
            point_system=system,
        ))

    logger.debug(f"Burn rate matrix: {len(entries)} positions")
    return entries


# =============================================================================
# STATUS TICKER
# =============================================================================

class StatusTag(str, Enum):
    BURN = "burn"
    DIVIDEND = "dividend"
    LOTTERY = "lottery"
    BUILD = "build"


# Higher wins when a region has several actions in one year
TAG_PRIORITY: Dict[StatusTag, int] = {
    StatusTag.BURN: 4,
    StatusTag.DIVIDEND: 3,
    StatusTag.LOTTERY: 2,
    StatusTag.BUILD: 1,
}

TAG_DISPLAY_ORDER = [StatusTag.BURN, StatusTag.DIVIDEND, StatusTag.LOTTERY, StatusTag.BUILD]


@dataclass(frozen=True)
class StatusEntry:
    region: Region
    tag: StatusTag


@dataclass(frozen=True)
class YearStatusTicker:
    year: int
    entries: List[StatusEntry]
    summary: str

    def to_dict(self) -> Dict:
        return {
            "year": self.year,
            "entries": [{"region": e.region.value, "tag": e.tag.value} for e in self.entries],
            "summary": self.summary,
        }


def _tag_action(action: RoadmapAction) -> StatusTag:
    if action.type == ActionType.HUNT:
        odds = action.estimated_draw_odds
        if odds is not None and odds > DIVIDEND_ODDS_THRESHOLD:
            return StatusTag.DIVIDEND
        return StatusTag.BURN
    if action.type in (ActionType.APPLY, ActionType.BUY_POINTS) and is_lottery_region(action.region):
        return StatusTag.LOTTERY
    return StatusTag.BUILD


def _ticker_for_year(yr: RoadmapYear) -> YearStatusTicker:
    best: Dict[Region, StatusTag] = {}
    for action in yr.actions:
        tag = _tag_action(action)
        existing = best.get(action.region)
        if existing is None or TAG_PRIORITY[tag] > TAG_PRIORITY[existing]:
            best[action.region] = tag

    parts = []
    for tag in TAG_DISPLAY_ORDER:
        regions = [r.value for r, t in best.items() if t == tag]
        if regions:
            parts.append(f"{tag.value.upper()} ({', '.join(regions)})")

    return YearStatusTicker(
        year=yr.year,
        entries=[StatusEntry(region=r, tag=t) for r, t in best.items()],
        summary=" + ".join(parts) or "—",
    )


def compute_status_ticker(roadmap: Roadmap) -> List[YearStatusTicker]:
    """Per year: one status tag per region plus a one-line summary."""
    return [_ticker_for_year(yr) for yr in roadmap]
