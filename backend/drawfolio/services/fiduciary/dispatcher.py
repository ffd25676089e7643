"""
Drawfolio - Fiduciary Dispatcher

Cross-cutting temporal and financial alarms:
- Missed application deadlines relative to a caller-supplied "as of" date
- Success disaster: drawn tags in one year exceed the budget or time off
- Event cascades for draw outcomes, missed deadlines and budget changes

Nothing here reads the clock. Every entry point takes the date or year
it should evaluate against.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from ...models.ssot import (
    ActionType, CapitalType, DrawOutcome, Milestone, MilestoneType,
    PointsLedgerEntry, PositionKey, Region, Roadmap, Severity, format_money,
    format_species, ledger_index, parse_enum, parse_region,
)
from ...models.regions import (
    POINT_PURGE_RULES, REGION_PROFILES, get_profile, is_lottery_region, point_system_for,
)
from .portfolio_stress import (
    CLOSE_TO_BURN_YEARS, GroupDrawResult, PortfolioAsset, PostDrawReset,
    cascading_prune, compute_group_draw_points, compute_post_draw_reset,
)

logger = logging.getLogger(__name__)


DAYS_PER_DRAWN_HUNT = 6
# Regions that hold an upfront tag fee and release it on an unsuccessful draw
FLOAT_RELEASE_REGIONS = tuple(r for r, p in REGION_PROFILES.items() if p.refundable_tag_fees)
CREEP_REVIEW_POINTS = 5
# Draw year assumed for a position with no hunt in the roadmap
UNPLANNED_DRAW_OFFSET = 10


class FiduciaryEventType(str, Enum):
    DRAW_OUTCOME = "draw_outcome"
    BUDGET_CHANGE = "budget_change"
    DEADLINE_MISSED = "deadline_missed"
    PARTY_CHANGE = "party_change"


class InvalidationAction(str, Enum):
    REMOVE = "remove"
    RECALCULATE = "recalculate"


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class MissedDeadline:
    milestone_id: str
    region: Region
    species_id: str
    deadline: date
    year: int

    def to_dict(self) -> Dict:
        return {
            "milestone_id": self.milestone_id,
            "region": self.region.value,
            "species_id": self.species_id,
            "deadline": self.deadline.isoformat(),
            "year": self.year,
        }


@dataclass(frozen=True)
class FiduciaryAlert:
    id: str
    severity: Severity
    title: str
    description: str
    event_type: FiduciaryEventType
    recommendation: Optional[str] = None
    region: Optional[Region] = None
    species_id: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "event_type": self.event_type.value,
            "recommendation": self.recommendation,
            "region": self.region.value if self.region else None,
            "species_id": self.species_id,
        }


@dataclass(frozen=True)
class PointMutation:
    region: Region
    species_id: str
    new_points: int
    delta: int
    reason: str


@dataclass(frozen=True)
class CapitalReclassification:
    region: Region
    species_id: str
    from_type: CapitalType
    to_type: CapitalType
    amount: float              # Negative = capital returned to the holder
    reason: str


@dataclass(frozen=True)
class RoadmapInvalidation:
    year: int
    region: Region
    species_id: str
    reason: str
    action: InvalidationAction


@dataclass(frozen=True)
class ScheduleConflict:
    region: Region
    species_id: str
    conflict_type: str         # time_off_overlap | success_disaster
    severity: Severity
    message: str
    affected_year: Optional[int] = None


@dataclass
class CascadeResult:
    """Mutations an event implies. The caller applies them to its stores."""
    point_mutations: List[PointMutation] = field(default_factory=list)
    capital_reclassifications: List[CapitalReclassification] = field(default_factory=list)
    roadmap_invalidations: List[RoadmapInvalidation] = field(default_factory=list)
    alerts: List[FiduciaryAlert] = field(default_factory=list)
    schedule_conflicts: List[ScheduleConflict] = field(default_factory=list)
    post_draw_reset: Optional[PostDrawReset] = None
    group_draw_result: Optional[GroupDrawResult] = None

    def to_dict(self) -> Dict:
        return {
            "point_mutations": [
                {"region": m.region.value, "species_id": m.species_id,
                 "new_points": m.new_points, "delta": m.delta, "reason": m.reason}
                for m in self.point_mutations
            ],
            "capital_reclassifications": [
                {"region": c.region.value, "species_id": c.species_id,
                 "from": c.from_type.value, "to": c.to_type.value,
                 "amount": c.amount, "reason": c.reason}
                for c in self.capital_reclassifications
            ],
            "roadmap_invalidations": [
                {"year": r.year, "region": r.region.value, "species_id": r.species_id,
                 "reason": r.reason, "action": r.action.value}
                for r in self.roadmap_invalidations
            ],
            "alerts": [a.to_dict() for a in self.alerts],
            "schedule_conflicts": [
                {"region": s.region.value, "species_id": s.species_id,
                 "conflict_type": s.conflict_type, "severity": s.severity.value,
                 "message": s.message, "affected_year": s.affected_year}
                for s in self.schedule_conflicts
            ],
            "group_draw_result": self.group_draw_result.to_dict() if self.group_draw_result else None,
        }


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class DrawOutcomeEvent:
    milestone_id: str
    outcome: DrawOutcome
    region: Region
    species_id: str
    year: int
    current_points: int
    tag_cost: float = 0.0      # Resolved by the caller from the fee schedule

    def __post_init__(self):
        object.__setattr__(self, "outcome", parse_enum(DrawOutcome, self.outcome, "draw outcome"))
        object.__setattr__(self, "region", parse_region(self.region))


@dataclass(frozen=True)
class BudgetChangeEvent:
    old_point_year_budget: float
    new_point_year_budget: float
    old_hunt_year_budget: float = 0.0
    new_hunt_year_budget: float = 0.0


# =============================================================================
# DEADLINE SCANNER
# =============================================================================

def detect_missed_deadlines(milestones: Sequence[Milestone], as_of: date) -> List[MissedDeadline]:
    """
    Every apply-type milestone whose due date is strictly before as_of and
    which is not completed. No other milestone type carries deadline
    semantics.
    """
    missed = [
        MissedDeadline(
            milestone_id=m.id,
            region=m.region,
            species_id=m.species_id,
            deadline=m.due_date,
            year=m.year,
        )
        for m in milestones
        if m.type == MilestoneType.APPLY
        and m.due_date is not None
        and m.due_date < as_of
        and not m.completed
    ]
    if missed:
        logger.info(f"Missed deadlines as of {as_of.isoformat()}: {len(missed)}")
    return missed


# =============================================================================
# SUCCESS DISASTER
# =============================================================================

def detect_success_disaster(
    milestones: Sequence[Milestone],
    hunt_year_budget: float,
    pto_days_available: int,
    year: int,
) -> List[FiduciaryAlert]:
    """
    Budget and time-off check over the tags actually drawn in one year.
    Only milestones with a drew outcome contribute.
    """
    drawn = [m for m in milestones if m.year == year and m.draw_outcome == DrawOutcome.DREW]
    alerts: List[FiduciaryAlert] = []

    total_cost = sum(m.total_cost for m in drawn)
    tags = ", ".join(f"{m.region.value} {format_species(m.species_id)}" for m in drawn)

    if total_cost > hunt_year_budget:
        over_by = total_cost - hunt_year_budget
        alerts.append(FiduciaryAlert(
            id=f"success-disaster-{year}",
            severity=Severity.CRITICAL,
            title=f"Success Disaster: {format_money(over_by)} Over Budget",
            description=(
                f"You drew {len(drawn)} tag(s) in {year} totaling {format_money(total_cost)}, "
                f"exceeding your {format_money(hunt_year_budget)} hunt-year budget by "
                f"{format_money(over_by)}."
            ),
            recommendation=(
                f"Consider deferring one hunt to next year, or adjusting your budget. "
                f"Tags drawn: {tags}."
            ),
            event_type=FiduciaryEventType.DRAW_OUTCOME,
        ))

    days_needed = len(drawn) * DAYS_PER_DRAWN_HUNT
    if days_needed > pto_days_available:
        alerts.append(FiduciaryAlert(
            id=f"success-disaster-pto-{year}",
            severity=Severity.WARNING,
            title=f"Time-Off Shortage: {days_needed} Days Needed",
            description=(
                f"Drawing {len(drawn)} tag(s) requires ~{days_needed} hunt days, but you "
                f"only have {pto_days_available} days available."
            ),
            recommendation="Prioritize which tags to use this year.",
            event_type=FiduciaryEventType.DRAW_OUTCOME,
        ))

    return alerts


# =============================================================================
# DRAW OUTCOME CASCADE
# =============================================================================

def dispatch_draw_outcome(
    event: DrawOutcomeEvent,
    roadmap: Roadmap,
    hunt_days_per_year: int,
    hunt_year_budget: float,
) -> CascadeResult:
    """
    Drew: points zeroed, waiting-period reset, floated -> sunk, schedule checks.
    Didn't draw: +1 point (none for lottery regions), float released,
    creep review once a position is deep.
    """
    logger.info(
        f"Draw outcome {event.outcome.value}: {event.region.value} {event.species_id} {event.year}"
    )
    if event.outcome == DrawOutcome.DREW:
        return _drew_cascade(event, roadmap, hunt_days_per_year, hunt_year_budget)
    return _didnt_draw_cascade(event, roadmap)


def _drew_cascade(
    event: DrawOutcomeEvent,
    roadmap: Roadmap,
    hunt_days_per_year: int,
    hunt_year_budget: float,
) -> CascadeResult:
    result = CascadeResult()
    label = f"{event.region.value} {format_species(event.species_id)}"

    result.point_mutations.append(PointMutation(
        region=event.region,
        species_id=event.species_id,
        new_points=0,
        delta=-event.current_points,
        reason=f"Drew {label} in {event.year}: points zeroed",
    ))

    reset = compute_post_draw_reset(
        event.region, event.species_id, event.year, event.current_points, roadmap,
    )
    result.post_draw_reset = reset

    for affected_year in reset.affected_roadmap_years:
        if reset.is_once_in_a_lifetime:
            reason = f"Permanently ineligible for {label} (once-in-a-lifetime)"
        elif reset.waiting_period_years > 0:
            reason = f"{reset.waiting_period_years}-year waiting period after drawing {label}"
        else:
            reason = "Points reset to 0, recalculate timeline"
        result.roadmap_invalidations.append(RoadmapInvalidation(
            year=affected_year,
            region=event.region,
            species_id=event.species_id,
            reason=reason,
            action=InvalidationAction.REMOVE if reset.is_once_in_a_lifetime else InvalidationAction.RECALCULATE,
        ))

    if reset.is_once_in_a_lifetime:
        result.alerts.append(FiduciaryAlert(
            id=f"oil-permanent-{event.region.value}-{event.species_id}",
            severity=Severity.CRITICAL,
            title=f"{label}: Once-in-a-Lifetime Tag Drawn",
            description=(
                f"You drew a once-in-a-lifetime tag for {label}. You are permanently "
                f"ineligible to re-apply for this species in this region."
            ),
            recommendation=f"Remove all future {label} entries from your roadmap.",
            event_type=FiduciaryEventType.DRAW_OUTCOME,
            region=event.region,
            species_id=event.species_id,
        ))
    elif reset.waiting_period_years > 0:
        result.alerts.append(FiduciaryAlert(
            id=f"oil-wait-{event.region.value}-{event.species_id}",
            severity=Severity.WARNING,
            title=f"{label}: {reset.waiting_period_years}-Year Waiting Period",
            description=(
                f"After drawing {label}, you cannot re-apply until {reset.next_eligible_year}."
            ),
            recommendation="Focus on other positions during the waiting period.",
            event_type=FiduciaryEventType.DRAW_OUTCOME,
            region=event.region,
            species_id=event.species_id,
        ))

    if event.tag_cost > 0:
        result.capital_reclassifications.append(CapitalReclassification(
            region=event.region,
            species_id=event.species_id,
            from_type=CapitalType.FLOATED,
            to_type=CapitalType.SUNK,
            amount=event.tag_cost,
            reason=f"Drew tag: {format_money(event.tag_cost)} tag fee is now committed",
        ))

    year_row = next((yr for yr in roadmap if yr.year == event.year), None)
    if year_row is None:
        return result

    other_hunts = [a for a in year_row.hunt_actions if a.region != event.region]
    if other_hunts:
        names = ", ".join(f"{a.region.value} {format_species(a.species_id)}" for a in other_hunts)
        result.schedule_conflicts.append(ScheduleConflict(
            region=event.region,
            species_id=event.species_id,
            conflict_type="time_off_overlap",
            severity=Severity.WARNING,
            message=(
                f"You drew {label} and also have hunts planned for {names} in {event.year}. "
                f"Verify your time off can accommodate both."
            ),
            affected_year=event.year,
        ))

    committed = sum(
        a.cost for a in year_row.actions if a.type in (ActionType.HUNT, ActionType.APPLY)
    )
    if hunt_year_budget > 0 and committed > hunt_year_budget * 1.2:
        over_pct = round((committed / hunt_year_budget - 1) * 100)
        result.schedule_conflicts.append(ScheduleConflict(
            region=event.region,
            species_id=event.species_id,
            conflict_type="success_disaster",
            severity=Severity.CRITICAL,
            message=(
                f"Drawing {label} pushes your {event.year} costs to ~{format_money(committed)}, "
                f"exceeding your {format_money(hunt_year_budget)} hunt-year budget by {over_pct}%."
            ),
            affected_year=event.year,
        ))
        result.alerts.append(FiduciaryAlert(
            id=f"success-disaster-{event.region.value}-{event.species_id}-{event.year}",
            severity=Severity.CRITICAL,
            title="Success Disaster: Over Budget",
            description=(
                f"Drawing {label} puts you ~{format_money(committed - hunt_year_budget)} over "
                f"your hunt-year budget. You may need to defer another planned hunt."
            ),
            recommendation=f"Review your {event.year} hunt schedule and defer lower-priority hunts.",
            event_type=FiduciaryEventType.DRAW_OUTCOME,
            region=event.region,
            species_id=event.species_id,
        ))

    days_needed = len(year_row.hunt_actions) * DAYS_PER_DRAWN_HUNT
    if hunt_days_per_year > 0 and days_needed > hunt_days_per_year:
        result.schedule_conflicts.append(ScheduleConflict(
            region=event.region,
            species_id=event.species_id,
            conflict_type="time_off_overlap",
            severity=Severity.WARNING,
            message=(
                f"With {len(year_row.hunt_actions)} hunts planned in {event.year}, you'll need "
                f"~{days_needed} days but only have {hunt_days_per_year} days available."
            ),
            affected_year=event.year,
        ))

    return result


def _didnt_draw_cascade(event: DrawOutcomeEvent, roadmap: Roadmap) -> CascadeResult:
    result = CascadeResult()
    label = f"{event.region.value} {format_species(event.species_id)}"
    increment = 0 if is_lottery_region(event.region) else 1
    new_points = event.current_points + increment

    result.point_mutations.append(PointMutation(
        region=event.region,
        species_id=event.species_id,
        new_points=new_points,
        delta=increment,
        reason=(
            f"{event.region.value} is a random draw region: no point accumulation"
            if increment == 0
            else f"Didn't draw {label}: earned +1 point (now {new_points})"
        ),
    ))

    if event.region in FLOAT_RELEASE_REGIONS and event.tag_cost > 0:
        result.capital_reclassifications.append(CapitalReclassification(
            region=event.region,
            species_id=event.species_id,
            from_type=CapitalType.FLOATED,
            to_type=CapitalType.SUNK,
            amount=-event.tag_cost,
            reason=f"Didn't draw: {format_money(event.tag_cost)} upfront tag fee refunded",
        ))

    next_year = event.year + 1
    if not any(yr.year == next_year for yr in roadmap):
        result.roadmap_invalidations.append(RoadmapInvalidation(
            year=next_year,
            region=event.region,
            species_id=event.species_id,
            reason=f"Didn't draw in {event.year}: roadmap needs a {next_year} entry",
            action=InvalidationAction.RECALCULATE,
        ))

    if event.current_points >= CREEP_REVIEW_POINTS:
        result.alerts.append(FiduciaryAlert(
            id=f"creep-check-{event.region.value}-{event.species_id}",
            severity=Severity.INFO,
            title=f"{label}: {new_points} Points Accumulated",
            description=(
                f"You now have {new_points} points in {label}. Review the burn rate "
                f"matrix to check whether point creep is eroding your position."
            ),
            recommendation="Verify your projected draw year hasn't shifted.",
            event_type=FiduciaryEventType.DRAW_OUTCOME,
            region=event.region,
            species_id=event.species_id,
        ))

    return result


# =============================================================================
# MISSED DEADLINE CASCADE
# =============================================================================

def dispatch_deadline_missed(
    missed: MissedDeadline,
    ledger: Sequence[PointsLedgerEntry],
) -> CascadeResult:
    result = CascadeResult()
    label = f"{missed.region.value} {format_species(missed.species_id)}"
    points = ledger_index(ledger).get((missed.region, missed.species_id), 0)
    rule = POINT_PURGE_RULES.get(missed.region)

    if points > 0 and rule:
        recommendation = f"This counts as an inactive year for {missed.region.value}. {rule.description}"
    else:
        recommendation = "Update your milestone status if you did apply, or adjust your roadmap."

    result.alerts.append(FiduciaryAlert(
        id=f"missed-deadline-{missed.region.value}-{missed.species_id}-{missed.year}",
        severity=Severity.CRITICAL if points > 0 else Severity.WARNING,
        title=f"Missed Deadline: {label}",
        description=(
            f"The {label} application deadline ({missed.deadline.isoformat()}) has passed "
            f"without an application recorded."
            + (f" You have {points} points at risk." if points > 0 else "")
        ),
        recommendation=recommendation,
        event_type=FiduciaryEventType.DEADLINE_MISSED,
        region=missed.region,
        species_id=missed.species_id,
    ))

    if rule and points > 0:
        result.alerts.append(FiduciaryAlert(
            id=f"purge-risk-{missed.region.value}-{missed.species_id}",
            severity=Severity.CRITICAL,
            title=f"Inactivity Counter: {label}",
            description=(
                f"Missing the {missed.year} application counts toward the "
                f"{rule.max_inactive_years}-year inactivity purge threshold. {rule.description}"
            ),
            recommendation="Apply or buy points before the next deadline to reset the inactivity counter.",
            event_type=FiduciaryEventType.DEADLINE_MISSED,
            region=missed.region,
            species_id=missed.species_id,
        ))

    result.roadmap_invalidations.append(RoadmapInvalidation(
        year=missed.year,
        region=missed.region,
        species_id=missed.species_id,
        reason=f"Deadline missed: cannot apply for {label} in {missed.year}",
        action=InvalidationAction.RECALCULATE,
    ))
    return result


# =============================================================================
# BUDGET CHANGE CASCADE
# =============================================================================

def _build_assets(
    roadmap: Roadmap,
    ledger: Sequence[PointsLedgerEntry],
    annual_costs: Mapping[PositionKey, float],
    as_of_year: int,
) -> List[PortfolioAsset]:
    points = ledger_index(ledger)
    assets = []
    for key in roadmap.keys():
        region, species_id = key
        pts = points.get(key, 0)
        annual_cost = annual_costs.get(key, 0.0)
        hunt_year = next(
            (yr.year for yr in roadmap
             if any(a.key == key and a.type == ActionType.HUNT for a in yr.actions)),
            as_of_year + UNPLANNED_DRAW_OFFSET,
        )
        assets.append(PortfolioAsset(
            region=region,
            species_id=species_id,
            current_points=pts,
            annual_cost=annual_cost,
            sunk_cost=pts * annual_cost,
            point_system=point_system_for(region),
            estimated_draw_year=hunt_year,
            is_close_to_burn=hunt_year - as_of_year <= CLOSE_TO_BURN_YEARS,
        ))
    return assets


def dispatch_budget_change(
    event: BudgetChangeEvent,
    roadmap: Roadmap,
    ledger: Sequence[PointsLedgerEntry],
    annual_costs: Mapping[PositionKey, float],
    as_of_year: int,
) -> CascadeResult:
    """
    A budget cut runs the cascading prune and reports what it removed.
    A budget increase yields one informational alert.
    """
    result = CascadeResult()
    old, new = event.old_point_year_budget, event.new_point_year_budget

    if new >= old:
        if new > old:
            result.alerts.append(FiduciaryAlert(
                id="budget-increase",
                severity=Severity.INFO,
                title="Budget Increased",
                description=(
                    f"Point-year budget increased from {format_money(old)} to {format_money(new)}. "
                    f"Review your roadmap for new opportunities."
                ),
                recommendation="Consider adding lottery plays or accelerating your timeline.",
                event_type=FiduciaryEventType.BUDGET_CHANGE,
            ))
        return result

    assets = _build_assets(roadmap, ledger, annual_costs, as_of_year)
    if not assets:
        return result

    prune = cascading_prune(assets, new)
    logger.info(f"Budget cut {old} -> {new}: pruned {len(prune.pruned)} of {len(assets)} positions")

    for asset in prune.pruned:
        key = (asset.region, asset.species_id)
        for yr in roadmap:
            if yr.touches(key):
                result.roadmap_invalidations.append(RoadmapInvalidation(
                    year=yr.year,
                    region=asset.region,
                    species_id=asset.species_id,
                    reason=(
                        f"Budget pruned: {asset.label} "
                        f"({asset.point_system.value}, {asset.current_points} pts)"
                    ),
                    action=InvalidationAction.REMOVE,
                ))

        if asset.current_points > 0:
            description = (
                f"{asset.label} removed from roadmap to meet the new budget. You have "
                f"{asset.current_points} points invested; keep the position active to avoid a purge."
            )
            recommendation = (
                f"Buy a point ({format_money(asset.annual_cost)}/yr) to preserve your "
                f"{asset.current_points}-point investment."
            )
        else:
            description = (
                f"{asset.label} ({asset.point_system.value}) removed from roadmap to meet the new budget."
            )
            recommendation = None

        result.alerts.append(FiduciaryAlert(
            id=f"prune-{asset.region.value}-{asset.species_id}",
            severity=Severity.WARNING if asset.current_points > 0 else Severity.INFO,
            title=f"Pruned: {asset.label}",
            description=description,
            recommendation=recommendation,
            event_type=FiduciaryEventType.BUDGET_CHANGE,
            region=asset.region,
            species_id=asset.species_id,
        ))

    if prune.pruned:
        count = len(prune.pruned)
        result.alerts.insert(0, FiduciaryAlert(
            id="budget-prune-summary",
            severity=Severity.CRITICAL,
            title=f"Budget Cut: {count} Position{'s' if count > 1 else ''} Pruned",
            description=(
                f"Budget reduced from {format_money(old)} to {format_money(new)}. "
                f"Removed {count} position{'s' if count > 1 else ''}, saving "
                f"{format_money(prune.total_saved)}/yr. {len(prune.kept)} preserved."
            ),
            recommendation="Confirm the preserved positions match your priorities.",
            event_type=FiduciaryEventType.BUDGET_CHANGE,
        ))

    return result


# =============================================================================
# PARTY CHANGE
# =============================================================================

def dispatch_party_change(region: Region, species_id: str, party_points: Sequence[int]) -> CascadeResult:
    """Group-averaging effects of a party composition change."""
    result = CascadeResult()
    group = compute_group_draw_points(region, species_id, party_points)
    result.group_draw_result = group

    if group.warning:
        result.alerts.append(FiduciaryAlert(
            id=f"group-rounding-{region.value}-{species_id}",
            severity=Severity.WARNING,
            title=f"Group Draw Rounding: {region.value} {format_species(species_id)}",
            description=group.warning,
            recommendation=(
                f"{get_profile(region).name} uses {group.rounding_method} rounding. "
                f"Your effective points are {group.effective_points}."
            ),
            event_type=FiduciaryEventType.PARTY_CHANGE,
            region=region,
            species_id=species_id,
        ))
    return result
