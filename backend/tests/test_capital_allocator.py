"""
Tests for the Capital Allocator.

Covers:
1. Fee classification by region refund policy
2. Roadmap capital summary totals
3. Burn rate matrix rows per position
4. Status ticker summaries
"""
import pytest

from conftest import action, year
from drawfolio.models import (
    CapitalType,
    CostCategory,
    CostLineItem,
    DrawReference,
    PointsLedgerEntry,
    Region,
    Roadmap,
)
from drawfolio.services.capital import (
    StatusTag,
    classify_action,
    classify_fee,
    compute_burn_rate_matrix,
    compute_capital_summary,
    compute_status_ticker,
)


# =============================================================================
# TEST: FEE CLASSIFICATION
# =============================================================================

class TestClassifyFee:

    def test_application_fee_is_sunk(self):
        fee = classify_fee("App fee", 15.0, Region.CO, "elk", CostCategory.APPLICATION)
        assert fee.capital_type == CapitalType.SUNK
        assert fee.refund_policy == "Non-refundable"

    def test_tag_in_refund_region_is_floated(self):
        fee = classify_fee("Tag", 780.0, Region.NM, "elk", CostCategory.TAG)
        assert fee.capital_type == CapitalType.FLOATED

    def test_tag_elsewhere_is_contingent(self):
        fee = classify_fee("Tag", 692.0, Region.WY, "elk", "tag")
        assert fee.capital_type == CapitalType.CONTINGENT

    def test_lump_cost_uses_action_type(self):
        fees = classify_action(action("buy_points", "WY", "elk", 52.0))
        assert len(fees) == 1
        assert fees[0].category == CostCategory.POINTS
        assert fees[0].capital_type == CapitalType.SUNK

    def test_zero_cost_action_has_no_fees(self):
        assert classify_action(action("scout", "MT", "elk")) == []


# =============================================================================
# TEST: CAPITAL SUMMARY
# =============================================================================

class TestCapitalSummary:

    def test_totals_by_type_and_region(self):
        nm_apply = action(
            "apply", "NM", "elk", 793.0,
            cost_line_items=(
                CostLineItem("License", 65.0, "license"),
                CostLineItem("Application", 13.0, "application"),
                CostLineItem("Tag", 715.0, "tag"),
            ),
        )
        roadmap = Roadmap.from_years([
            year(2026, nm_apply, action("buy_points", "WY", "elk", 52.0)),
            year(2027, action("hunt", "WY", "elk", 692.0)),
        ])

        summary = compute_capital_summary(roadmap)

        assert summary.sunk_capital == 130.0
        assert summary.floated_capital == 715.0
        assert summary.contingent_capital == 692.0
        assert summary.total_deployed == 845.0
        assert summary.total_exposure == 1537.0
        assert summary.region(Region.WY).sunk == 52.0
        assert summary.region(Region.CO) is None

    def test_empty_roadmap(self):
        summary = compute_capital_summary(Roadmap())
        assert summary.total_exposure == 0.0
        assert summary.to_dict()["by_region"] == []


# =============================================================================
# TEST: BURN RATE MATRIX
# =============================================================================

class TestBurnRateMatrix:

    @pytest.fixture
    def matrix(self):
        ledger = [
            PointsLedgerEntry(region="CO", species_id="elk", points=4),
            PointsLedgerEntry(region="WY", species_id="elk", points=3),
            PointsLedgerEntry(region="NM", species_id="elk", points=0),
        ]
        references = {
            (Region.CO, "elk"): DrawReference(required_points=8, requirement_history=(5, 6, 7, 8)),
            (Region.WY, "elk"): DrawReference(required_points=5, competitiveness=2),
            (Region.NM, "elk"): DrawReference(single_year_odds=0.1),
        }
        roadmap = Roadmap.from_years([year(2026, action("buy_points", "MT", "mule_deer", 100.0))])
        rows = compute_burn_rate_matrix(roadmap, ledger, references, as_of_year=2026, horizon_years=10)
        return {row.key: row for row in rows}, rows

    def test_ledger_rows_first_then_roadmap_only(self, matrix):
        _, rows = matrix
        assert [r.region for r in rows] == [Region.CO, Region.WY, Region.NM, Region.MT]
        assert rows[-1].current_points == 0

    def test_dead_asset_has_no_eta(self, matrix):
        by_key, _ = matrix
        co = by_key[(Region.CO, "elk")]
        assert co.pcv == 1.0
        assert co.is_dead_asset is True
        assert co.eta_year is None

    def test_reachable_position_has_eta(self, matrix):
        by_key, _ = matrix
        wy = by_key[(Region.WY, "elk")]
        assert wy.is_dead_asset is False
        assert wy.eta_year == 2029

    def test_lottery_row_reports_cumulative_odds(self, matrix):
        by_key, _ = matrix
        nm = by_key[(Region.NM, "elk")]
        assert nm.required_points is None
        assert nm.required_display == "—"
        assert nm.eta_year is None
        assert nm.cumulative_odds == pytest.approx(0.6513)


# =============================================================================
# TEST: STATUS TICKER
# =============================================================================

class TestStatusTicker:

    def test_summary_groups_regions_by_tag(self):
        roadmap = Roadmap.from_years([
            year(
                2026,
                action("hunt", "WY", "elk", 692.0),
                action("apply", "CO", "elk", 60.0),
                action("buy_points", "MT", "elk", 100.0),
            ),
        ])
        ticker = compute_status_ticker(roadmap)
        assert ticker[0].summary == "BURN (WY) + BUILD (CO, MT)"

    def test_high_odds_hunt_is_dividend_and_lottery_apply(self):
        roadmap = Roadmap.from_years([
            year(
                2026,
                action("hunt", "CO", "pronghorn", 300.0, estimated_draw_odds=0.95),
                action("apply", "NM", "elk", 13.0),
            ),
        ])
        entries = {e.region: e.tag for e in compute_status_ticker(roadmap)[0].entries}
        assert entries == {Region.CO: StatusTag.DIVIDEND, Region.NM: StatusTag.LOTTERY}

    def test_hunt_outranks_build_for_same_region(self):
        roadmap = Roadmap.from_years([
            year(2026, action("buy_points", "WY", "elk", 52.0), action("hunt", "WY", "elk", 692.0)),
        ])
        assert compute_status_ticker(roadmap)[0].summary == "BURN (WY)"

    def test_empty_year_summary(self):
        roadmap = Roadmap.from_years([year(2026)])
        assert compute_status_ticker(roadmap)[0].summary == "—"
