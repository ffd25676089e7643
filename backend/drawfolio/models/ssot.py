"""
Drawfolio - Single Source of Truth Models

Immutable value objects shared by every engine component.
Relationships are expressed only through (region, species, year) keys.
No component holds a reference to another component's output.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple


# =============================================================================
# ERRORS
# =============================================================================

class PortfolioValidationError(ValueError):
    """Malformed engine input. Raised at the boundary, never swallowed."""


class UnknownRegionError(PortfolioValidationError):
    """Region code outside the supported set."""


class UnknownPointSystemError(PortfolioValidationError):
    """Allocation-system identifier outside the supported set."""


# =============================================================================
# ENUMS
# =============================================================================

class Region(str, Enum):
    AK = "AK"
    AZ = "AZ"
    CO = "CO"
    ID = "ID"
    KS = "KS"
    MT = "MT"
    ND = "ND"
    NE = "NE"
    NM = "NM"
    NV = "NV"
    OR = "OR"
    UT = "UT"
    WA = "WA"
    WY = "WY"


class PointSystem(str, Enum):
    """How a region allocates licenses among applicants."""
    PREFERENCE = "preference"          # Queue position, threshold guarantees
    BONUS = "bonus"                    # points + 1 entries, linear
    BONUS_SQUARED = "bonus_squared"    # (points + 1)^2 entries
    RANDOM_LOTTERY = "random_lottery"  # Flat odds, points irrelevant


class Phase(str, Enum):
    BUILD = "build"
    BURN = "burn"
    GAP = "gap"
    TROPHY = "trophy"


class ActionType(str, Enum):
    BUY_POINTS = "buy_points"
    APPLY = "apply"
    HUNT = "hunt"
    SCOUT = "scout"


class MilestoneType(str, Enum):
    BUY_POINTS = "buy_points"
    APPLY = "apply"
    HUNT = "hunt"
    SCOUT = "scout"
    DEADLINE = "deadline"


class DrawOutcome(str, Enum):
    DREW = "drew"
    DIDNT_DRAW = "didnt_draw"


class PointType(str, Enum):
    PREFERENCE = "preference"
    BONUS = "bonus"


class CostCategory(str, Enum):
    LICENSE = "license"
    APPLICATION = "application"
    POINTS = "points"
    TAG = "tag"
    TRAVEL = "travel"


class CapitalType(str, Enum):
    SUNK = "sunk"              # Non-refundable
    FLOATED = "floated"        # Refunded on an unsuccessful draw
    CONTINGENT = "contingent"  # Only charged if drawn


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class Urgency(str, Enum):
    IMMEDIATE = "immediate"
    SOON = "soon"
    INFORMATIONAL = "informational"
    POSITIVE = "positive"


class ConflictType(str, Enum):
    OVERDRAW = "overdraw"
    TIME_OFF_CONFLICT = "time_off_conflict"
    BUDGET_OVERFLOW = "budget_overflow"
    SCHEDULE_OVERLAP = "schedule_overlap"
    POINT_ABANDON = "point_abandon"


# =============================================================================
# TOTAL ORDERS (the only place ranks are defined)
# =============================================================================

SEVERITY_ORDER: Dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}

URGENCY_ORDER: Dict[Urgency, int] = {
    Urgency.IMMEDIATE: 0,
    Urgency.SOON: 1,
    Urgency.INFORMATIONAL: 2,
    Urgency.POSITIVE: 3,
}


def severity_rank(severity: Severity) -> int:
    return SEVERITY_ORDER[Severity(severity)]


def urgency_rank(urgency: Urgency) -> int:
    return URGENCY_ORDER[Urgency(urgency)]


# =============================================================================
# PARSING HELPERS
# =============================================================================

def parse_region(code) -> Region:
    """Resolve a region code (case-insensitive) or raise UnknownRegionError."""
    if isinstance(code, Region):
        return code
    try:
        return Region(str(code).strip().upper())
    except ValueError:
        raise UnknownRegionError(
            f"Unknown region '{code}'. Supported: {', '.join(r.value for r in Region)}"
        ) from None


def parse_point_system(value) -> PointSystem:
    if isinstance(value, PointSystem):
        return value
    try:
        return PointSystem(str(value).strip().lower())
    except ValueError:
        raise UnknownPointSystemError(
            f"Unknown allocation system '{value}'. "
            f"Supported: {', '.join(p.value for p in PointSystem)}"
        ) from None


def parse_enum(enum_cls, value, field: str):
    """Coerce a closed-set value or raise PortfolioValidationError naming the field."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise PortfolioValidationError(
            f"Unknown {field} '{value}'. Supported: {', '.join(m.value for m in enum_cls)}"
        ) from None


def _require_non_negative(name: str, value: float) -> None:
    if value is None or value < 0:
        raise PortfolioValidationError(f"{name} must be >= 0 (got {value!r})")


def format_species(species_id: str) -> str:
    """'mule_deer' -> 'Mule Deer'"""
    return species_id.replace("_", " ").title()


def format_money(amount: float) -> str:
    if float(amount).is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"


# Key used for every cross-entity lookup
PositionKey = Tuple[Region, str]


# =============================================================================
# ROADMAP
# =============================================================================

@dataclass(frozen=True)
class CostLineItem:
    """A single fee inside an action's cost."""
    label: str
    amount: float
    category: CostCategory

    def __post_init__(self):
        object.__setattr__(self, "category", parse_enum(CostCategory, self.category, "cost category"))
        _require_non_negative(f"Cost line '{self.label}'", self.amount)


@dataclass(frozen=True)
class RoadmapAction:
    type: ActionType
    region: Region
    species_id: str
    cost: float = 0.0
    cost_line_items: Tuple[CostLineItem, ...] = ()
    unit_id: Optional[str] = None
    estimated_draw_odds: Optional[float] = None  # 0..1, resolved by the caller
    description: str = ""
    # Structured season window; when absent, overlap checks fall back to text
    season_start: Optional[date] = None
    season_end: Optional[date] = None

    def __post_init__(self):
        object.__setattr__(self, "type", parse_enum(ActionType, self.type, "action type"))
        object.__setattr__(self, "region", parse_region(self.region))
        object.__setattr__(self, "cost_line_items", tuple(self.cost_line_items))
        if not self.species_id:
            raise PortfolioValidationError("RoadmapAction.species_id is required")
        _require_non_negative(f"{self.region.value} {self.species_id} cost", self.cost)
        if self.estimated_draw_odds is not None and not 0 <= self.estimated_draw_odds <= 1:
            raise PortfolioValidationError(
                f"estimated_draw_odds must be within [0, 1] (got {self.estimated_draw_odds})"
            )
        if self.season_start and self.season_end and self.season_end < self.season_start:
            raise PortfolioValidationError(
                f"Season for {self.region.value} {self.species_id} ends before it starts"
            )

    @property
    def key(self) -> PositionKey:
        return (self.region, self.species_id)

    @property
    def has_season_dates(self) -> bool:
        return self.season_start is not None and self.season_end is not None


@dataclass(frozen=True)
class RoadmapYear:
    year: int
    phase: Phase = Phase.BUILD
    actions: Tuple[RoadmapAction, ...] = ()
    estimated_cost: float = 0.0
    is_hunt_year: bool = False

    def __post_init__(self):
        object.__setattr__(self, "phase", parse_enum(Phase, self.phase, "phase"))
        object.__setattr__(self, "actions", tuple(self.actions))
        _require_non_negative(f"estimated_cost for {self.year}", self.estimated_cost)

    @property
    def hunt_actions(self) -> List[RoadmapAction]:
        return [a for a in self.actions if a.type == ActionType.HUNT]

    @property
    def action_cost(self) -> float:
        return sum(a.cost for a in self.actions)

    def touches(self, key: PositionKey) -> bool:
        return any(a.key == key for a in self.actions)


@dataclass(frozen=True)
class Roadmap:
    """
    Ordered planning years. Years must be strictly increasing and contiguous:
    one entry per covered calendar year.
    """
    years: Tuple[RoadmapYear, ...] = ()

    def __post_init__(self):
        years = tuple(self.years)
        object.__setattr__(self, "years", years)
        for prev, curr in zip(years, years[1:]):
            if curr.year != prev.year + 1:
                raise PortfolioValidationError(
                    f"Roadmap years must be contiguous and increasing: "
                    f"{prev.year} is followed by {curr.year}"
                )

    @classmethod
    def from_years(cls, years: Iterable[RoadmapYear]) -> "Roadmap":
        return cls(years=tuple(years))

    def __iter__(self) -> Iterator[RoadmapYear]:
        return iter(self.years)

    def __len__(self) -> int:
        return len(self.years)

    def __getitem__(self, index: int) -> RoadmapYear:
        return self.years[index]

    @property
    def first_year(self) -> Optional[int]:
        return self.years[0].year if self.years else None

    @property
    def last_year(self) -> Optional[int]:
        return self.years[-1].year if self.years else None

    def keys(self) -> List[PositionKey]:
        """Every (region, species) pair that appears, in first-seen order."""
        seen: Dict[PositionKey, None] = {}
        for yr in self.years:
            for action in yr.actions:
                seen.setdefault(action.key, None)
        return list(seen)

    def has_hunt(self, key: PositionKey) -> bool:
        return any(
            a.key == key and a.type == ActionType.HUNT
            for yr in self.years for a in yr.actions
        )


# =============================================================================
# LEDGER / MILESTONES / MANDATE
# =============================================================================

@dataclass(frozen=True)
class PointsLedgerEntry:
    """Read-only to the engine. Owned by the persistence layer."""
    region: Region
    species_id: str
    points: int
    point_type: PointType = PointType.PREFERENCE

    def __post_init__(self):
        object.__setattr__(self, "region", parse_region(self.region))
        object.__setattr__(self, "point_type", parse_enum(PointType, self.point_type, "point type"))
        if isinstance(self.points, bool) or not isinstance(self.points, int):
            raise PortfolioValidationError(
                f"Points for {self.region.value} {self.species_id} must be an integer"
            )
        _require_non_negative(f"Points for {self.region.value} {self.species_id}", self.points)

    @property
    def key(self) -> PositionKey:
        return (self.region, self.species_id)


def ledger_index(ledger: Sequence[PointsLedgerEntry]) -> Dict[PositionKey, int]:
    """Map (region, species) -> points. Later duplicates overwrite earlier ones."""
    return {entry.key: entry.points for entry in ledger}


@dataclass(frozen=True)
class Milestone:
    id: str
    type: MilestoneType
    region: Region
    species_id: str
    year: int
    due_date: Optional[date] = None
    total_cost: float = 0.0
    completed: bool = False
    draw_outcome: Optional[DrawOutcome] = None
    plan_id: Optional[str] = None  # Links to a UserGoal for savings tracking
    title: str = ""

    def __post_init__(self):
        object.__setattr__(self, "type", parse_enum(MilestoneType, self.type, "milestone type"))
        object.__setattr__(self, "region", parse_region(self.region))
        if self.draw_outcome is not None:
            object.__setattr__(self, "draw_outcome", parse_enum(DrawOutcome, self.draw_outcome, "draw outcome"))
        _require_non_negative(f"Milestone {self.id} total_cost", self.total_cost)


@dataclass(frozen=True)
class Mandate:
    annual_budget_ceiling: float
    time_horizon_years: int
    youth_toggle: bool = False
    youth_age: Optional[int] = None
    current_age: Optional[int] = None

    def __post_init__(self):
        _require_non_negative("annual_budget_ceiling", self.annual_budget_ceiling)
        if self.time_horizon_years < 1:
            raise PortfolioValidationError(
                f"time_horizon_years must be >= 1 (got {self.time_horizon_years})"
            )


@dataclass(frozen=True)
class PurgeRule:
    region: Region
    max_inactive_years: int
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "region", parse_region(self.region))
        if self.max_inactive_years < 1:
            raise PortfolioValidationError(
                f"max_inactive_years for {self.region.value} must be >= 1"
            )


# =============================================================================
# REFERENCE DATA (resolved by the caller, never fetched here)
# =============================================================================

@dataclass(frozen=True)
class DrawReference:
    """Per (region, species) draw statistics supplied by the data layer."""
    required_points: Optional[int] = None           # None for lottery systems
    requirement_history: Tuple[float, ...] = ()     # Chronological thresholds
    competitiveness: float = 5.0                    # 0..10 quality signal
    single_year_odds: Optional[float] = None        # Lottery odds, 0..1
    tag_quota: Optional[int] = None
    applicants: Optional[int] = None
    annual_cost: float = 0.0                        # Cost to hold the position for a year

    def __post_init__(self):
        object.__setattr__(self, "requirement_history", tuple(self.requirement_history))
        if self.required_points is not None:
            _require_non_negative("required_points", self.required_points)
        if not 0 <= self.competitiveness <= 10:
            raise PortfolioValidationError(
                f"competitiveness must be within [0, 10] (got {self.competitiveness})"
            )
        if self.single_year_odds is not None and not 0 <= self.single_year_odds <= 1:
            raise PortfolioValidationError(
                f"single_year_odds must be within [0, 1] (got {self.single_year_odds})"
            )
        _require_non_negative("annual_cost", self.annual_cost)


# =============================================================================
# ENGINE OUTPUTS
# =============================================================================

@dataclass(frozen=True)
class AffectedAction:
    region: Region
    species_id: str


@dataclass(frozen=True)
class PlanConflict:
    id: str
    type: ConflictType
    severity: Severity
    year: int
    title: str
    description: str
    resolution: str
    affected_actions: Tuple[AffectedAction, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "year": self.year,
            "title": self.title,
            "description": self.description,
            "resolution": self.resolution,
            "affected_actions": [
                {"region": a.region.value, "species_id": a.species_id}
                for a in self.affected_actions
            ],
        }


@dataclass(frozen=True)
class PurgeAlert:
    region: Region
    species_id: str
    year_of_purge: int
    current_points: int
    sunk_value: float
    message: str
    max_inactive_years: int
    severity: Severity = Severity.CRITICAL

    def to_dict(self) -> Dict:
        return {
            "region": self.region.value,
            "species_id": self.species_id,
            "severity": self.severity.value,
            "year_of_purge": self.year_of_purge,
            "current_points": self.current_points,
            "sunk_value": self.sunk_value,
            "max_inactive_years": self.max_inactive_years,
            "message": self.message,
        }


@dataclass(frozen=True)
class HealthScoreBreakdown:
    budget: float
    frequency: float
    exposure: float
    horizon: float
    discipline: float
    composite: float

    def to_dict(self) -> Dict:
        return {
            "budget": self.budget,
            "frequency": self.frequency,
            "exposure": self.exposure,
            "horizon": self.horizon,
            "discipline": self.discipline,
            "composite": self.composite,
        }


@dataclass(frozen=True)
class CallToAction:
    label: str
    target: str


@dataclass(frozen=True)
class AdvisorInsight:
    id: str
    category: str
    urgency: Urgency
    interpretation: str
    recommendation: str
    call_to_action: CallToAction
    portfolio_context: Optional[str] = None
    temporal_context: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "category": self.category,
            "urgency": self.urgency.value,
            "interpretation": self.interpretation,
            "recommendation": self.recommendation,
            "call_to_action": {
                "label": self.call_to_action.label,
                "target": self.call_to_action.target,
            },
            "portfolio_context": self.portfolio_context,
            "temporal_context": self.temporal_context,
        }


@dataclass(frozen=True)
class SavingsGoal:
    goal_id: str
    current_saved: float
    monthly_savings: float

    def __post_init__(self):
        _require_non_negative(f"current_saved for {self.goal_id}", self.current_saved)
        _require_non_negative(f"monthly_savings for {self.goal_id}", self.monthly_savings)


@dataclass(frozen=True)
class UserGoal:
    id: str
    region: Region
    species_id: str
    target_year: int
    title: str = ""

    def __post_init__(self):
        object.__setattr__(self, "region", parse_region(self.region))
