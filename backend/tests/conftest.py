"""Shared fixtures for the drawfolio test suite."""
import pytest

from drawfolio.models import (
    PointsLedgerEntry,
    Roadmap,
    RoadmapAction,
    RoadmapYear,
)


def action(action_type, region, species_id, cost=0.0, **kwargs):
    return RoadmapAction(type=action_type, region=region, species_id=species_id, cost=cost, **kwargs)


def year(year_value, *actions, **kwargs):
    return RoadmapYear(year=year_value, actions=tuple(actions), **kwargs)


@pytest.fixture
def build_roadmap():
    """Roadmap with one point purchase per listed region in every year."""
    def _build(start_year, years, positions=()):
        return Roadmap.from_years(
            year(start_year + i, *[action("buy_points", r, s, 50.0) for r, s in positions])
            for i in range(years)
        )
    return _build


@pytest.fixture
def sample_ledger():
    """Standard points ledger."""
    return [
        PointsLedgerEntry(region="WY", species_id="elk", points=5),
        PointsLedgerEntry(region="CO", species_id="elk", points=4),
        PointsLedgerEntry(region="AZ", species_id="elk", points=6, point_type="bonus"),
    ]
