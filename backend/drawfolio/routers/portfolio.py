"""
Drawfolio - Portfolio API Router

Thin HTTP wrapper over the engine. Payloads are validated with pydantic,
converted to engine types, and PortfolioValidationError becomes a 422.
"""
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from ..config import PLANNING_HORIZON_YEARS
from ..models.ssot import (
    CostLineItem,
    DrawReference,
    Mandate,
    Milestone,
    PointsLedgerEntry,
    PortfolioValidationError,
    Roadmap,
    RoadmapAction,
    RoadmapYear,
    SavingsGoal,
    UserGoal,
    parse_region,
)
from ..models.regions import point_system_for
from ..services.conflicts import detect_all_conflicts
from ..services.fiduciary import detect_missed_deadlines
from ..services.health import calculate_portfolio_health
from ..services.portfolio_engine import PortfolioRequest, analyze_portfolio
from ..services.projection import calculate_draw_odds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CostLineItemIn(BaseModel):
    label: str
    amount: float
    category: str


class RoadmapActionIn(BaseModel):
    type: str
    region: str
    species_id: str
    cost: float = 0.0
    cost_line_items: List[CostLineItemIn] = []
    unit_id: Optional[str] = None
    estimated_draw_odds: Optional[float] = None
    description: str = ""
    season_start: Optional[date] = None
    season_end: Optional[date] = None

    def to_domain(self) -> RoadmapAction:
        return RoadmapAction(
            type=self.type,
            region=self.region,
            species_id=self.species_id,
            cost=self.cost,
            cost_line_items=tuple(
                CostLineItem(label=i.label, amount=i.amount, category=i.category)
                for i in self.cost_line_items
            ),
            unit_id=self.unit_id,
            estimated_draw_odds=self.estimated_draw_odds,
            description=self.description,
            season_start=self.season_start,
            season_end=self.season_end,
        )


class RoadmapYearIn(BaseModel):
    year: int
    phase: str = "build"
    actions: List[RoadmapActionIn] = []
    estimated_cost: float = 0.0
    is_hunt_year: bool = False

    def to_domain(self) -> RoadmapYear:
        return RoadmapYear(
            year=self.year,
            phase=self.phase,
            actions=tuple(a.to_domain() for a in self.actions),
            estimated_cost=self.estimated_cost,
            is_hunt_year=self.is_hunt_year,
        )


class LedgerEntryIn(BaseModel):
    region: str
    species_id: str
    points: int
    point_type: str = "preference"

    def to_domain(self) -> PointsLedgerEntry:
        return PointsLedgerEntry(
            region=self.region,
            species_id=self.species_id,
            points=self.points,
            point_type=self.point_type,
        )


class MilestoneIn(BaseModel):
    id: str
    type: str
    region: str
    species_id: str
    year: int
    due_date: Optional[date] = None
    total_cost: float = 0.0
    completed: bool = False
    draw_outcome: Optional[str] = None
    plan_id: Optional[str] = None
    title: str = ""

    def to_domain(self) -> Milestone:
        return Milestone(**self.model_dump())


class MandateIn(BaseModel):
    annual_budget_ceiling: float
    time_horizon_years: int
    youth_toggle: bool = False
    youth_age: Optional[int] = None
    current_age: Optional[int] = None

    def to_domain(self) -> Mandate:
        return Mandate(**self.model_dump())


class DrawReferenceIn(BaseModel):
    region: str
    species_id: str
    required_points: Optional[int] = None
    requirement_history: List[float] = []
    competitiveness: float = 5.0
    single_year_odds: Optional[float] = None
    tag_quota: Optional[int] = None
    applicants: Optional[int] = None
    annual_cost: float = 0.0

    def to_domain(self) -> DrawReference:
        return DrawReference(**self.model_dump(exclude={"region", "species_id"}))


class SavingsGoalIn(BaseModel):
    goal_id: str
    current_saved: float
    monthly_savings: float


class UserGoalIn(BaseModel):
    id: str
    region: str
    species_id: str
    target_year: int
    title: str = ""


class AnalyzeRequest(BaseModel):
    as_of: date
    point_year_budget: float
    hunt_year_budget: float
    roadmap: List[RoadmapYearIn] = []
    ledger: List[LedgerEntryIn] = []
    milestones: List[MilestoneIn] = []
    references: List[DrawReferenceIn] = []
    mandate: Optional[MandateIn] = None
    pto_days_available: Optional[int] = None
    max_hunts_per_year: Optional[int] = None
    horizon_years: int = PLANNING_HORIZON_YEARS
    savings_goals: List[SavingsGoalIn] = []
    user_goals: List[UserGoalIn] = []
    last_visit: Optional[date] = None


class DrawOddsRequest(BaseModel):
    system: Optional[str] = Field(None, description="Allocation system; inferred from region when omitted")
    region: Optional[str] = None
    current_points: int
    required_points: Optional[int] = None
    creep_rate: float = 0.0
    tag_quota: Optional[int] = None
    applicants: Optional[int] = None
    single_year_odds: Optional[float] = None
    horizon_years: int = PLANNING_HORIZON_YEARS


class ConflictsRequest(BaseModel):
    as_of_year: int
    point_year_budget: float
    hunt_year_budget: float
    roadmap: List[RoadmapYearIn] = []
    ledger: List[LedgerEntryIn] = []
    max_hunts_per_year: Optional[int] = None
    hunt_days_per_year: Optional[int] = None


class HealthRequest(BaseModel):
    roadmap: List[RoadmapYearIn] = []
    mandate: Optional[MandateIn] = None
    as_of_year: Optional[int] = None


class MissedDeadlinesRequest(BaseModel):
    as_of: date
    milestones: List[MilestoneIn] = []


# =============================================================================
# HELPERS
# =============================================================================

def _roadmap(years: List[RoadmapYearIn]) -> Roadmap:
    return Roadmap.from_years(y.to_domain() for y in years)


def _optional(**kwargs) -> Dict[str, Any]:
    """Drop None values so engine defaults apply."""
    return {k: v for k, v in kwargs.items() if v is not None}


def _handle(fn: Callable[[], Any]) -> Any:
    try:
        return fn()
    except PortfolioValidationError as e:
        logger.info(f"Rejected portfolio payload: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/analyze")
async def analyze(request: AnalyzeRequest):
    """Run every detector over the portfolio and return the full report."""
    def run():
        portfolio = PortfolioRequest(
            roadmap=_roadmap(request.roadmap),
            as_of=request.as_of,
            point_year_budget=request.point_year_budget,
            hunt_year_budget=request.hunt_year_budget,
            ledger=[e.to_domain() for e in request.ledger],
            milestones=[m.to_domain() for m in request.milestones],
            references={
                (parse_region(r.region), r.species_id): r.to_domain()
                for r in request.references
            },
            mandate=request.mandate.to_domain() if request.mandate else None,
            horizon_years=request.horizon_years,
            savings_goals=[SavingsGoal(**g.model_dump()) for g in request.savings_goals],
            user_goals=[UserGoal(**g.model_dump()) for g in request.user_goals],
            last_visit=request.last_visit,
            **_optional(
                pto_days_available=request.pto_days_available,
                max_hunts_per_year=request.max_hunts_per_year,
            ),
        )
        return analyze_portfolio(portfolio).to_dict()

    return _handle(run)


@router.post("/draw-odds")
async def draw_odds(request: DrawOddsRequest):
    def run():
        if request.system:
            system = request.system
        elif request.region:
            system = point_system_for(parse_region(request.region))
        else:
            raise PortfolioValidationError("Either system or region is required")

        result = calculate_draw_odds(
            system,
            request.current_points,
            request.required_points,
            creep_rate=request.creep_rate,
            tag_quota=request.tag_quota,
            applicants=request.applicants,
            single_year_odds=request.single_year_odds,
            horizon_years=request.horizon_years,
        )
        return result.to_dict()

    return _handle(run)


@router.post("/conflicts")
async def conflicts(request: ConflictsRequest):
    def run():
        found = detect_all_conflicts(
            _roadmap(request.roadmap),
            [e.to_domain() for e in request.ledger],
            request.point_year_budget,
            request.hunt_year_budget,
            request.as_of_year,
            **_optional(
                max_hunts_per_year=request.max_hunts_per_year,
                hunt_days_per_year=request.hunt_days_per_year,
            ),
        )
        return {"conflicts": [c.to_dict() for c in found], "count": len(found)}

    return _handle(run)


@router.post("/health")
async def health(request: HealthRequest):
    def run():
        breakdown = calculate_portfolio_health(
            _roadmap(request.roadmap),
            request.mandate.to_domain() if request.mandate else None,
            as_of_year=request.as_of_year,
        )
        return breakdown.to_dict()

    return _handle(run)


@router.post("/deadlines/missed")
async def missed_deadlines(request: MissedDeadlinesRequest):
    def run():
        missed = detect_missed_deadlines(
            [m.to_domain() for m in request.milestones], request.as_of
        )
        return {"missed": [m.to_dict() for m in missed], "count": len(missed)}

    return _handle(run)
