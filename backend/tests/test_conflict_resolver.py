"""
Tests for the Conflict Resolver.

Each detector is exercised on its own, then the combined scan checks that
one year may carry several conflict types.
"""
from datetime import date

import pytest

from conftest import action, year
from drawfolio.models import ConflictType, PointsLedgerEntry, Region, Roadmap, Severity
from drawfolio.services.conflicts import ConflictResolver, detect_all_conflicts


def _scan(roadmap, ledger=(), point_budget=500.0, hunt_budget=3000.0, as_of_year=2026, **kwargs):
    return detect_all_conflicts(roadmap, list(ledger), point_budget, hunt_budget, as_of_year, **kwargs)


def _of_type(conflicts, conflict_type):
    return [c for c in conflicts if c.type == conflict_type]


# =============================================================================
# TEST: OVERDRAW / TIME OFF
# =============================================================================

class TestOverdrawAndTimeOff:

    def test_three_hunts_overdraw_and_time_off(self):
        roadmap = Roadmap.from_years([
            year(
                2028,
                action("hunt", "WY", "elk", 100.0),
                action("hunt", "CO", "elk", 100.0, description="archery"),
                action("hunt", "MT", "mule_deer", 100.0, description="archery"),
            ),
        ])
        conflicts = _scan(roadmap)

        overdraw = _of_type(conflicts, ConflictType.OVERDRAW)
        assert len(overdraw) == 1
        assert overdraw[0].id == "overdraw-2028"
        assert overdraw[0].severity == Severity.CRITICAL
        assert len(overdraw[0].affected_actions) == 3

        pto = _of_type(conflicts, ConflictType.TIME_OFF_CONFLICT)
        assert [c.id for c in pto] == ["pto-2028"]
        assert pto[0].severity == Severity.WARNING

    def test_two_hunts_within_limits(self):
        roadmap = Roadmap.from_years([
            year(2028, action("hunt", "WY", "elk", 100.0), action("hunt", "WY", "deer", 100.0)),
        ])
        conflicts = _scan(roadmap)
        assert _of_type(conflicts, ConflictType.OVERDRAW) == []
        assert _of_type(conflicts, ConflictType.TIME_OFF_CONFLICT) == []

    def test_single_hunt_exceeding_small_allowance(self):
        roadmap = Roadmap.from_years([year(2028, action("hunt", "WY", "elk", 100.0))])
        conflicts = _scan(roadmap, hunt_days_per_year=5)
        assert [c.id for c in _of_type(conflicts, ConflictType.TIME_OFF_CONFLICT)] == ["pto-2028"]


# =============================================================================
# TEST: BUDGET OVERFLOW
# =============================================================================

class TestBudgetOverflow:

    def test_point_year_warning(self):
        roadmap = Roadmap.from_years([
            year(2026, action("apply", "CO", "elk", 400.0), action("buy_points", "WY", "elk", 250.0)),
        ])
        found = _of_type(_scan(roadmap, point_budget=500.0), ConflictType.BUDGET_OVERFLOW)
        assert len(found) == 1
        assert found[0].id == "budget-2026"
        assert found[0].severity == Severity.WARNING
        assert {a.region for a in found[0].affected_actions} == {Region.CO, Region.WY}

    def test_hunt_year_uses_hunt_budget_and_goes_critical(self):
        roadmap = Roadmap.from_years([year(2027, action("hunt", "WY", "elk", 2000.0))])
        found = _of_type(_scan(roadmap, hunt_budget=1000.0), ConflictType.BUDGET_OVERFLOW)
        assert found[0].severity == Severity.CRITICAL

    def test_within_tolerance_is_silent(self):
        roadmap = Roadmap.from_years([year(2026, action("apply", "CO", "elk", 590.0))])
        assert _of_type(_scan(roadmap, point_budget=500.0), ConflictType.BUDGET_OVERFLOW) == []

    def test_zero_budget_skipped(self):
        roadmap = Roadmap.from_years([year(2026, action("apply", "CO", "elk", 590.0))])
        assert _of_type(_scan(roadmap, point_budget=0.0), ConflictType.BUDGET_OVERFLOW) == []


# =============================================================================
# TEST: SCHEDULE OVERLAP
# =============================================================================

class TestScheduleOverlap:

    def test_heuristic_flags_rifle_hunts_as_info(self):
        roadmap = Roadmap.from_years([
            year(2028, action("hunt", "WY", "elk", 100.0), action("hunt", "CO", "elk", 100.0)),
        ])
        found = _of_type(_scan(roadmap), ConflictType.SCHEDULE_OVERLAP)
        assert [c.id for c in found] == ["schedule-2028-WY-elk-CO-elk"]
        assert found[0].severity == Severity.INFO

    def test_crossed_species_pairs_get_distinct_ids(self):
        roadmap = Roadmap.from_years([
            year(
                2028,
                action("hunt", "CO", "elk", 100.0),
                action("hunt", "WY", "deer", 100.0),
                action("hunt", "CO", "deer", 100.0),
                action("hunt", "WY", "elk", 100.0),
            ),
        ])
        ids = [c.id for c in _of_type(_scan(roadmap), ConflictType.SCHEDULE_OVERLAP)]
        assert len(ids) == 4
        assert len(set(ids)) == 4
        assert {"schedule-2028-CO-elk-WY-deer", "schedule-2028-WY-deer-CO-deer"} <= set(ids)

    def test_archery_description_suppresses_heuristic(self):
        roadmap = Roadmap.from_years([
            year(
                2028,
                action("hunt", "WY", "elk", 100.0),
                action("hunt", "CO", "elk", 100.0, description="Unit 61 Archery"),
            ),
        ])
        assert _of_type(_scan(roadmap), ConflictType.SCHEDULE_OVERLAP) == []

    def test_same_region_pair_ignored(self):
        roadmap = Roadmap.from_years([
            year(2028, action("hunt", "WY", "elk", 100.0), action("hunt", "WY", "antelope", 100.0)),
        ])
        assert _of_type(_scan(roadmap), ConflictType.SCHEDULE_OVERLAP) == []

    def test_structured_dates_overlap_is_warning(self):
        roadmap = Roadmap.from_years([
            year(
                2028,
                action("hunt", "WY", "elk", 100.0,
                       season_start=date(2028, 10, 1), season_end=date(2028, 10, 14)),
                action("hunt", "CO", "elk", 100.0,
                       season_start=date(2028, 10, 10), season_end=date(2028, 10, 18)),
            ),
        ])
        found = _of_type(_scan(roadmap), ConflictType.SCHEDULE_OVERLAP)
        assert len(found) == 1
        assert found[0].severity == Severity.WARNING

    def test_structured_dates_without_overlap_are_silent(self):
        roadmap = Roadmap.from_years([
            year(
                2028,
                action("hunt", "WY", "elk", 100.0,
                       season_start=date(2028, 9, 1), season_end=date(2028, 9, 20)),
                action("hunt", "CO", "elk", 100.0,
                       season_start=date(2028, 10, 10), season_end=date(2028, 10, 18)),
            ),
        ])
        assert _of_type(_scan(roadmap), ConflictType.SCHEDULE_OVERLAP) == []


# =============================================================================
# TEST: POINT ABANDONMENT
# =============================================================================

class TestPointAbandonment:

    def test_severity_by_points_held(self):
        roadmap = Roadmap.from_years([year(2026), year(2027)])
        ledger = [
            PointsLedgerEntry(region="WY", species_id="elk", points=6),
            PointsLedgerEntry(region="CO", species_id="elk", points=3),
            PointsLedgerEntry(region="MT", species_id="elk", points=2),
        ]
        found = _of_type(_scan(roadmap, ledger), ConflictType.POINT_ABANDON)
        assert [(c.id, c.severity) for c in found] == [
            ("abandon-WY-elk", Severity.WARNING),
            ("abandon-CO-elk", Severity.INFO),
        ]
        assert found[0].year == 2026
        assert "2-year horizon" in found[0].description

    def test_planned_hunt_clears_abandonment(self):
        roadmap = Roadmap.from_years([year(2026), year(2027, action("hunt", "WY", "elk", 700.0))])
        ledger = [PointsLedgerEntry(region="WY", species_id="elk", points=6)]
        assert _of_type(_scan(roadmap, ledger), ConflictType.POINT_ABANDON) == []


# =============================================================================
# TEST: COMBINED SCAN
# =============================================================================

class TestCombinedScan:

    def test_one_year_can_carry_several_types(self):
        roadmap = Roadmap.from_years([
            year(
                2028,
                action("hunt", "WY", "elk", 1500.0),
                action("hunt", "CO", "elk", 1500.0),
                action("hunt", "MT", "elk", 1500.0),
            ),
        ])
        types = {c.type for c in _scan(roadmap, hunt_budget=2000.0)}
        assert {
            ConflictType.OVERDRAW,
            ConflictType.TIME_OFF_CONFLICT,
            ConflictType.BUDGET_OVERFLOW,
            ConflictType.SCHEDULE_OVERLAP,
        } <= types

    def test_detectors_are_named(self):
        resolver = ConflictResolver(500.0, 3000.0, 2026)
        names = [name for name, _ in resolver.detectors(Roadmap(), [])]
        assert names == [
            "overdraw", "time_off_conflict", "budget_overflow", "schedule_overlap", "point_abandon",
        ]

    @pytest.mark.parametrize("budget", [500.0, 5000.0])
    def test_empty_roadmap_is_clean(self, budget):
        assert _scan(Roadmap(), point_budget=budget, hunt_budget=budget) == []
