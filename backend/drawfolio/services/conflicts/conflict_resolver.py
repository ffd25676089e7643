"""
Drawfolio - Conflict Resolver

Five independent detectors over a full roadmap:
- Overdraw: too many hunts in one year
- Time off: more hunt-days than the yearly allowance
- Budget overflow: year cost well above the applicable budget
- Schedule overlap: hunts in different regions whose seasons may collide
- Point abandonment: banked points with no hunt anywhere in the horizon

Detector outputs are concatenated, never deduplicated against each other.
A single year may carry several conflict types.
"""
from __future__ import annotations

import logging
from itertools import combinations
from typing import Callable, List, Sequence, Tuple

from ...config import HUNT_DAYS_PER_YEAR, MAX_HUNTS_PER_YEAR
from ...models.ssot import (
    AffectedAction, ConflictType, PlanConflict, PointsLedgerEntry, Roadmap,
    RoadmapAction, Severity, format_money, format_species,
)
from ...models.regions import region_name

logger = logging.getLogger(__name__)


DAYS_PER_HUNT = 7

BUDGET_WARNING_FACTOR = 1.2
BUDGET_CRITICAL_FACTOR = 1.5
# Actions above this share of the budget are named in a budget conflict
BUDGET_AFFECTED_SHARE = 0.3

ABANDON_INFO_POINTS = 3
ABANDON_WARNING_POINTS = 5

# Early seasons that fall outside the autumn rifle window
EARLY_SEASON_MARKERS = ("archery",)


def _label(action: RoadmapAction) -> str:
    return f"{action.region.value} {format_species(action.species_id)}"


def _affected(actions: Sequence[RoadmapAction]) -> Tuple[AffectedAction, ...]:
    return tuple(AffectedAction(a.region, a.species_id) for a in actions)


class ConflictResolver:
    """
    Runs every conflict detector against one roadmap.

    Each _detect_* method is independent and order-independent; resolve()
    concatenates their outputs.
    """

    def __init__(
        self,
        point_year_budget: float,
        hunt_year_budget: float,
        as_of_year: int,
        max_hunts_per_year: int = MAX_HUNTS_PER_YEAR,
        hunt_days_per_year: int = HUNT_DAYS_PER_YEAR,
    ):
        self.point_year_budget = point_year_budget
        self.hunt_year_budget = hunt_year_budget
        self.as_of_year = as_of_year
        self.max_hunts_per_year = max_hunts_per_year
        self.hunt_days_per_year = hunt_days_per_year

    def detectors(
        self,
        roadmap: Roadmap,
        ledger: Sequence[PointsLedgerEntry],
    ) -> List[Tuple[str, Callable[[], List[PlanConflict]]]]:
        """Named zero-arg detector callables, for callers that isolate failures."""
        return [
            ("overdraw", lambda: self._detect_overdraw(roadmap)),
            ("time_off_conflict", lambda: self._detect_time_off(roadmap)),
            ("budget_overflow", lambda: self._detect_budget_overflow(roadmap)),
            ("schedule_overlap", lambda: self._detect_schedule_overlap(roadmap)),
            ("point_abandon", lambda: self._detect_point_abandonment(roadmap, ledger)),
        ]

    def resolve(self, roadmap: Roadmap, ledger: Sequence[PointsLedgerEntry]) -> List[PlanConflict]:
        conflicts: List[PlanConflict] = []
        for _name, detect in self.detectors(roadmap, ledger):
            conflicts.extend(detect())
        logger.info(f"Conflict scan complete: {len(conflicts)} conflicts across {len(roadmap)} years")
        return conflicts

    # =========================================================================
    # OVERDRAW / TIME OFF
    # =========================================================================

    def _detect_overdraw(self, roadmap: Roadmap) -> List[PlanConflict]:
        conflicts = []
        for yr in roadmap:
            hunts = yr.hunt_actions
            if not hunts:
                continue

            if len(hunts) > self.max_hunts_per_year:
                conflicts.append(PlanConflict(
                    id=f"overdraw-{yr.year}",
                    type=ConflictType.OVERDRAW,
                    severity=Severity.CRITICAL,
                    year=yr.year,
                    title=f"Overdraw: {len(hunts)} hunts in {yr.year}",
                    description=(
                        f"You're scheduled for {len(hunts)} hunts in {yr.year}: "
                        f"{', '.join(_label(a) for a in hunts)}. "
                        f"This exceeds your {self.max_hunts_per_year}-hunt max."
                    ),
                    resolution=(
                        f'Move the lowest-priority hunt to "Points Only" for {yr.year} '
                        f"and reschedule to {yr.year + 1}."
                    ),
                    affected_actions=_affected(hunts),
                ))
        return conflicts

    def _detect_time_off(self, roadmap: Roadmap) -> List[PlanConflict]:
        conflicts = []
        for yr in roadmap:
            hunts = yr.hunt_actions
            days_needed = len(hunts) * DAYS_PER_HUNT
            if days_needed > self.hunt_days_per_year:
                conflicts.append(PlanConflict(
                    id=f"pto-{yr.year}",
                    type=ConflictType.TIME_OFF_CONFLICT,
                    severity=Severity.WARNING,
                    year=yr.year,
                    title=f"Time-Off Conflict: {days_needed} days needed in {yr.year}",
                    description=(
                        f"{len(hunts)} hunts x ~{DAYS_PER_HUNT} days = {days_needed} days required. "
                        f"You have {self.hunt_days_per_year} days available per year."
                    ),
                    resolution=(
                        "Combine hunts in the same region into one trip, or shift one "
                        'hunt to "Points Only" for this year.'
                    ),
                    affected_actions=_affected(hunts),
                ))
        return conflicts

    # =========================================================================
    # BUDGET OVERFLOW
    # =========================================================================

    def _detect_budget_overflow(self, roadmap: Roadmap) -> List[PlanConflict]:
        conflicts = []
        for yr in roadmap:
            is_hunt_year = bool(yr.hunt_actions)
            budget = self.hunt_year_budget if is_hunt_year else self.point_year_budget
            if budget <= 0:
                continue

            year_cost = yr.action_cost
            if year_cost <= budget * BUDGET_WARNING_FACTOR:
                continue

            overage_pct = round((year_cost - budget) / budget * 100)
            severity = (
                Severity.CRITICAL if year_cost > budget * BUDGET_CRITICAL_FACTOR
                else Severity.WARNING
            )
            budget_kind = "hunt year" if is_hunt_year else "point year"
            conflicts.append(PlanConflict(
                id=f"budget-{yr.year}",
                type=ConflictType.BUDGET_OVERFLOW,
                severity=severity,
                year=yr.year,
                title=f"Budget Overflow: {yr.year} costs {overage_pct}% over cap",
                description=(
                    f"{yr.year} projected cost: {format_money(year_cost)} vs your "
                    f"{format_money(budget)} {budget_kind} budget."
                ),
                resolution=(
                    f"Drop the most expensive region from {yr.year} applications, "
                    'or reduce one region to "Points Only".'
                ),
                affected_actions=_affected(
                    [a for a in yr.actions if a.cost > budget * BUDGET_AFFECTED_SHARE]
                ),
            ))
        return conflicts

    # =========================================================================
    # SCHEDULE OVERLAP
    # =========================================================================

    def _detect_schedule_overlap(self, roadmap: Roadmap) -> List[PlanConflict]:
        conflicts = []
        for yr in roadmap:
            for a1, a2 in combinations(yr.hunt_actions, 2):
                if a1.region == a2.region:
                    continue
                conflict = self._check_pair(yr.year, a1, a2)
                if conflict:
                    conflicts.append(conflict)
        return conflicts

    def _check_pair(self, year: int, a1: RoadmapAction, a2: RoadmapAction):
        conflict_id = (
            f"schedule-{year}-{a1.region.value}-{a1.species_id}-{a2.region.value}-{a2.species_id}"
        )
        affected = _affected([a1, a2])

        if a1.has_season_dates and a2.has_season_dates:
            overlaps = a1.season_start <= a2.season_end and a2.season_start <= a1.season_end
            if not overlaps:
                return None
            return PlanConflict(
                id=conflict_id,
                type=ConflictType.SCHEDULE_OVERLAP,
                severity=Severity.WARNING,
                year=year,
                title=f"Season Overlap: {a1.region.value} + {a2.region.value} ({year})",
                description=(
                    f"{_label(a1)} ({a1.season_start:%b %d}-{a1.season_end:%b %d}) overlaps "
                    f"{_label(a2)} ({a2.season_start:%b %d}-{a2.season_end:%b %d})."
                ),
                resolution="Pick a different season for one hunt or move it to another year.",
                affected_actions=affected,
            )

        # Heuristic: without season data, anything not marked as an early
        # season is assumed to sit in the Oct-Nov rifle window.
        if self._is_early_season(a1) or self._is_early_season(a2):
            return None
        return PlanConflict(
            id=conflict_id,
            type=ConflictType.SCHEDULE_OVERLAP,
            severity=Severity.INFO,
            year=year,
            title=f"Season Overlap Risk: {a1.region.value} + {a2.region.value} ({year})",
            description=(
                f"Both {_label(a1)} and {_label(a2)} likely fall in the Oct-Nov rifle "
                f"season. Verify dates don't overlap."
            ),
            resolution=(
                "Consider archery for one species (earlier season) or confirm "
                "specific season dates don't conflict."
            ),
            affected_actions=affected,
        )

    @staticmethod
    def _is_early_season(action: RoadmapAction) -> bool:
        text = (action.description or "").lower()
        return any(marker in text for marker in EARLY_SEASON_MARKERS)

    # =========================================================================
    # POINT ABANDONMENT
    # =========================================================================

    def _detect_point_abandonment(
        self,
        roadmap: Roadmap,
        ledger: Sequence[PointsLedgerEntry],
    ) -> List[PlanConflict]:
        conflicts = []
        last_year = max(roadmap.last_year or self.as_of_year, self.as_of_year)
        horizon = last_year - self.as_of_year + 1

        for entry in ledger:
            if entry.points < ABANDON_INFO_POINTS:
                continue
            if roadmap.has_hunt(entry.key):
                continue

            species = format_species(entry.species_id)
            conflicts.append(PlanConflict(
                id=f"abandon-{entry.region.value}-{entry.species_id}",
                type=ConflictType.POINT_ABANDON,
                severity=(
                    Severity.WARNING if entry.points >= ABANDON_WARNING_POINTS
                    else Severity.INFO
                ),
                year=self.as_of_year,
                title=f"Stale Points: {entry.points} pts in {entry.region.value} {species}",
                description=(
                    f"You have {entry.points} {entry.point_type.value} points in "
                    f"{region_name(entry.region)} for {species} but no hunt is planned "
                    f"within your {horizon}-year horizon."
                ),
                resolution=(
                    f"Either add a {species} hunt to your plan, or stop buying points "
                    f"to free up budget."
                ),
                affected_actions=(AffectedAction(entry.region, entry.species_id),),
            ))
        return conflicts


def detect_all_conflicts(
    roadmap: Roadmap,
    ledger: Sequence[PointsLedgerEntry],
    point_year_budget: float,
    hunt_year_budget: float,
    as_of_year: int,
    max_hunts_per_year: int = MAX_HUNTS_PER_YEAR,
    hunt_days_per_year: int = HUNT_DAYS_PER_YEAR,
) -> List[PlanConflict]:
    """Factory function to run every conflict detector."""
    resolver = ConflictResolver(
        point_year_budget=point_year_budget,
        hunt_year_budget=hunt_year_budget,
        as_of_year=as_of_year,
        max_hunts_per_year=max_hunts_per_year,
        hunt_days_per_year=hunt_days_per_year,
    )
    return resolver.resolve(roadmap, ledger)
