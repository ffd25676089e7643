"""
Tests for SSOT model validation.

Closed-set fields accept their string values and reject anything else with
PortfolioValidationError naming the field.
"""
import pytest

from drawfolio.models import (
    ActionType,
    CostCategory,
    CostLineItem,
    Milestone,
    MilestoneType,
    Phase,
    PointsLedgerEntry,
    PortfolioValidationError,
    RoadmapAction,
    RoadmapYear,
    parse_enum,
)


class TestParseEnum:

    def test_accepts_value_and_member(self):
        assert parse_enum(Phase, "burn", "phase") == Phase.BURN
        assert parse_enum(Phase, Phase.GAP, "phase") is Phase.GAP

    def test_unknown_value_names_field_and_choices(self):
        with pytest.raises(PortfolioValidationError) as exc:
            parse_enum(ActionType, "bogus", "action type")
        message = str(exc.value)
        assert "Unknown action type 'bogus'" in message
        assert "buy_points" in message


class TestModelEnumValidation:

    def test_string_values_coerced(self):
        item = RoadmapAction(type="hunt", region="wy", species_id="elk")
        assert item.type == ActionType.HUNT
        assert Milestone("m1", "apply", "WY", "elk", 2026).type == MilestoneType.APPLY
        assert CostLineItem("Tag", 692.0, "tag").category == CostCategory.TAG

    @pytest.mark.parametrize("build", [
        lambda: RoadmapAction(type="bogus", region="WY", species_id="elk"),
        lambda: RoadmapYear(year=2026, phase="harvest"),
        lambda: CostLineItem("Tag", 692.0, "souvenir"),
        lambda: PointsLedgerEntry(region="WY", species_id="elk", points=3, point_type="gold"),
        lambda: Milestone("m1", "bogus", "WY", "elk", 2026),
        lambda: Milestone("m1", "hunt", "WY", "elk", 2026, draw_outcome="maybe"),
    ])
    def test_unknown_values_are_validation_errors(self, build):
        with pytest.raises(PortfolioValidationError):
            build()
