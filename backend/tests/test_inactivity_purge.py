"""
Tests for the Inactivity Purge Detector.

Purge rules delete banked points after N consecutive years without an
application or point purchase. CO 10, WY 2, NV/UT/OR/KS 1; no rule elsewhere.
"""
import pytest

from conftest import action, year
from drawfolio.models import PointsLedgerEntry, PurgeRule, Region, Roadmap, Severity
from drawfolio.services.fiduciary import InactivityPurgeDetector, detect_inactivity_purges


def _roadmap(start, end, active_years, region="WY", species="elk"):
    return Roadmap.from_years(
        year(y, action("buy_points", region, species, 52.0)) if y in active_years else year(y)
        for y in range(start, end + 1)
    )


class TestInactivityPurge:

    def test_wyoming_two_year_gap(self):
        roadmap = _roadmap(2026, 2032, active_years={2026, 2027, 2028, 2029, 2030})
        ledger = [PointsLedgerEntry(region="WY", species_id="elk", points=5)]

        alerts = detect_inactivity_purges(roadmap, ledger, {(Region.WY, "elk"): 52.0})

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.year_of_purge == 2032
        assert alert.sunk_value == 260.0
        assert alert.severity == Severity.CRITICAL
        assert alert.max_inactive_years == 2
        assert alert.message.startswith("PERMANENT DELETION")
        assert "$260" in alert.message
        assert "2 consecutive years" in alert.message

    def test_single_gap_year_not_enough_for_two_year_rule(self):
        roadmap = _roadmap(2026, 2030, active_years={2026, 2027, 2029, 2030})
        ledger = [PointsLedgerEntry(region="WY", species_id="elk", points=5)]
        assert detect_inactivity_purges(roadmap, ledger) == []

    def test_one_year_rule_fires_on_first_gap(self):
        roadmap = _roadmap(2026, 2029, active_years={2026}, region="NV", species="mule_deer")
        ledger = [PointsLedgerEntry(region="NV", species_id="mule_deer", points=8)]

        alerts = detect_inactivity_purges(roadmap, ledger)

        assert [a.year_of_purge for a in alerts] == [2027]
        assert "after a year without" in alerts[0].message

    @pytest.mark.parametrize("region,max_inactive", [("WY", 2), ("NV", 1), ("CO", 10)])
    def test_purge_year_is_first_year_reaching_limit(self, region, max_inactive):
        roadmap = _roadmap(2026, 2040, active_years={2026}, region=region)
        ledger = [PointsLedgerEntry(region=region, species_id="elk", points=3)]

        alerts = detect_inactivity_purges(roadmap, ledger)

        assert len(alerts) == 1
        assert alerts[0].year_of_purge == 2026 + max_inactive

    def test_active_every_year_never_alerts(self):
        roadmap = _roadmap(2026, 2035, active_years=set(range(2026, 2036)), region="NV")
        ledger = [PointsLedgerEntry(region="NV", species_id="elk", points=4)]
        assert detect_inactivity_purges(roadmap, ledger) == []

    def test_region_without_rule_never_alerts(self):
        roadmap = _roadmap(2026, 2035, active_years=set(), region="AZ")
        ledger = [PointsLedgerEntry(region="AZ", species_id="elk", points=12, point_type="bonus")]
        assert detect_inactivity_purges(roadmap, ledger) == []

    def test_zero_points_skipped(self):
        roadmap = _roadmap(2026, 2030, active_years=set())
        ledger = [PointsLedgerEntry(region="WY", species_id="elk", points=0)]
        assert detect_inactivity_purges(roadmap, ledger) == []

    def test_other_species_does_not_reset_counter(self):
        roadmap = _roadmap(2026, 2028, active_years={2026, 2027, 2028}, species="moose")
        ledger = [PointsLedgerEntry(region="WY", species_id="elk", points=2)]
        alerts = detect_inactivity_purges(roadmap, ledger)
        assert [a.year_of_purge for a in alerts] == [2027]

    def test_deterministic(self):
        roadmap = _roadmap(2026, 2032, active_years={2026, 2028})
        ledger = [PointsLedgerEntry(region="WY", species_id="elk", points=5)]
        first = detect_inactivity_purges(roadmap, ledger)
        second = detect_inactivity_purges(roadmap, ledger)
        assert first == second

    def test_custom_rules_override_defaults(self):
        detector = InactivityPurgeDetector(rules={Region.AZ: PurgeRule(Region.AZ, 3)})
        roadmap = _roadmap(2026, 2030, active_years={2026}, region="AZ")
        ledger = [
            PointsLedgerEntry(region="AZ", species_id="elk", points=4),
            PointsLedgerEntry(region="WY", species_id="elk", points=4),
        ]
        alerts = detector.detect(roadmap, ledger)
        assert [(a.region, a.year_of_purge) for a in alerts] == [(Region.AZ, 2029)]

    def test_invalid_rule_rejected(self):
        with pytest.raises(ValueError):
            PurgeRule(Region.WY, 0)
