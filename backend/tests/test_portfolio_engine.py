"""
Tests for the Portfolio Analysis Orchestrator.

A full run over one snapshot, then detector isolation: a failing detector
is recorded in report.errors and every other output is still produced.
"""
from datetime import date

import pytest

from conftest import action, year
from drawfolio.models import (
    DrawReference,
    Milestone,
    PointsLedgerEntry,
    PortfolioValidationError,
    Region,
    Roadmap,
    Urgency,
)
from drawfolio.services import portfolio_engine
from drawfolio.services.portfolio_engine import PortfolioRequest, analyze_portfolio


AS_OF = date(2026, 4, 1)


@pytest.fixture
def request_snapshot():
    roadmap = Roadmap.from_years([
        year(2026, action("buy_points", "CO", "elk", 50.0)),
        year(
            2027,
            action("hunt", "CO", "elk", 1000.0),
            action("hunt", "MT", "elk", 1000.0),
            action("hunt", "NM", "elk", 1000.0),
        ),
    ])
    ledger = [
        PointsLedgerEntry(region="WY", species_id="elk", points=5),
        PointsLedgerEntry(region="CO", species_id="elk", points=4),
    ]
    milestones = [
        Milestone("m1", "apply", "WY", "elk", 2026, due_date=date(2026, 3, 1), total_cost=600.0),
        Milestone("d1", "hunt", "CO", "elk", 2026, total_cost=2000.0, draw_outcome="drew"),
        Milestone("d2", "hunt", "MT", "elk", 2026, total_cost=2000.0, draw_outcome="drew"),
    ]
    references = {
        (Region.CO, "elk"): DrawReference(
            required_points=8, requirement_history=(5, 6, 7, 8), annual_cost=50.0
        ),
        (Region.WY, "elk"): DrawReference(required_points=5, annual_cost=52.0),
    }
    return PortfolioRequest(
        roadmap=roadmap,
        as_of=AS_OF,
        point_year_budget=500.0,
        hunt_year_budget=3000.0,
        ledger=ledger,
        milestones=milestones,
        references=references,
    )


class TestPortfolioAnalyzer:

    def test_full_run(self, request_snapshot):
        report = analyze_portfolio(request_snapshot)

        assert report.errors == []
        assert "overdraw-2027" in {c.id for c in report.conflicts}
        assert [(a.region, a.sunk_value > 0) for a in report.purge_alerts] == [(Region.WY, True)]
        assert [m.milestone_id for m in report.missed_deadlines] == ["m1"]
        assert [a.id for a in report.success_disaster_alerts] == ["success-disaster-2026"]
        assert report.capital is not None
        assert {(e.region, e.is_dead_asset) for e in report.burn_rate} >= {(Region.CO, True)}
        assert [t.year for t in report.status_ticker] == [2026, 2027]
        assert report.health is not None
        assert 0 <= report.health.composite <= 100

    def test_violations_feed_advisor(self, request_snapshot):
        report = analyze_portfolio(request_snapshot)

        assert len(report.violations) == (
            len(report.conflicts) + len(report.purge_alerts) + len(report.success_disaster_alerts)
        )
        ids = [i.id for i in report.insights]
        assert "missed-m1" in ids
        assert report.insights[0].urgency == Urgency.IMMEDIATE
        assert len(report.insights) <= 7

    def test_report_serializes(self, request_snapshot):
        payload = analyze_portfolio(request_snapshot).to_dict()
        assert payload["as_of"] == "2026-04-01"
        assert payload["missed_deadlines"][0]["deadline"] == "2026-03-01"
        assert set(payload) >= {"conflicts", "capital", "burn_rate", "health", "insights", "errors"}

    def test_empty_portfolio(self):
        report = analyze_portfolio(PortfolioRequest(
            roadmap=Roadmap(), as_of=AS_OF, point_year_budget=0.0, hunt_year_budget=0.0
        ))
        assert report.errors == []
        assert report.conflicts == []
        assert report.purge_alerts == []

    def test_negative_budget_rejected(self):
        with pytest.raises(PortfolioValidationError):
            PortfolioRequest(roadmap=Roadmap(), as_of=AS_OF, point_year_budget=-1.0, hunt_year_budget=0.0)


class TestDetectorIsolation:

    def test_failing_capital_detector_is_recorded(self, request_snapshot, monkeypatch):
        def boom(roadmap):
            raise RuntimeError("capital ledger unavailable")

        monkeypatch.setattr(portfolio_engine, "compute_capital_summary", boom)
        report = analyze_portfolio(request_snapshot)

        assert report.errors == [{"detector": "capital_summary", "error": "capital ledger unavailable"}]
        assert report.capital is None
        assert report.conflicts
        assert report.health is not None
        assert report.insights

    def test_failing_deadline_detector_does_not_block_advisor(self, request_snapshot, monkeypatch):
        def boom(milestones, as_of):
            raise ValueError("bad milestone")

        monkeypatch.setattr(portfolio_engine, "detect_missed_deadlines", boom)
        report = analyze_portfolio(request_snapshot)

        assert [e["detector"] for e in report.errors] == ["missed_deadlines"]
        assert report.missed_deadlines == []
        assert "missed-m1" not in {i.id for i in report.insights}
        assert report.success_disaster_alerts
