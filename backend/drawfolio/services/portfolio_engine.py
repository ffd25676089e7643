"""
Drawfolio - Portfolio Analysis Orchestrator

Runs every engine component over one portfolio snapshot and collects the
results into a single PortfolioReport.

Each detector runs in isolation: a detector that raises is logged and
recorded in report.errors, and the remaining detectors still run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar

from ..config import HUNT_DAYS_PER_YEAR, MAX_HUNTS_PER_YEAR, PLANNING_HORIZON_YEARS
from ..models.ssot import (
    AdvisorInsight,
    DrawOutcome,
    DrawReference,
    HealthScoreBreakdown,
    Mandate,
    Milestone,
    PlanConflict,
    PointsLedgerEntry,
    PortfolioValidationError,
    PositionKey,
    PurgeAlert,
    Roadmap,
    SavingsGoal,
    UserGoal,
)
from .advisor import TemporalContext, generate_advisor_insights
from .capital import (
    BurnRateEntry,
    CapitalSummary,
    YearStatusTicker,
    compute_burn_rate_matrix,
    compute_capital_summary,
    compute_status_ticker,
)
from .conflicts import ConflictResolver
from .fiduciary import (
    FiduciaryAlert,
    MissedDeadline,
    detect_inactivity_purges,
    detect_missed_deadlines,
    detect_success_disaster,
)
from .health import calculate_portfolio_health

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PortfolioRequest:
    """One portfolio snapshot plus the caller's notion of "now"."""
    roadmap: Roadmap
    as_of: date
    point_year_budget: float
    hunt_year_budget: float
    ledger: Sequence[PointsLedgerEntry] = ()
    milestones: Sequence[Milestone] = ()
    references: Mapping[PositionKey, DrawReference] = field(default_factory=dict)
    mandate: Optional[Mandate] = None
    pto_days_available: int = HUNT_DAYS_PER_YEAR
    max_hunts_per_year: int = MAX_HUNTS_PER_YEAR
    horizon_years: int = PLANNING_HORIZON_YEARS
    savings_goals: Sequence[SavingsGoal] = ()
    user_goals: Sequence[UserGoal] = ()
    last_visit: Optional[date] = None

    def __post_init__(self):
        for name in ("point_year_budget", "hunt_year_budget"):
            if getattr(self, name) < 0:
                raise PortfolioValidationError(f"{name} must be >= 0 (got {getattr(self, name)})")
        if self.pto_days_available < 0:
            raise PortfolioValidationError(
                f"pto_days_available must be >= 0 (got {self.pto_days_available})"
            )

    @property
    def annual_costs(self) -> Dict[PositionKey, float]:
        return {key: ref.annual_cost for key, ref in self.references.items()}


@dataclass
class PortfolioReport:
    as_of: date
    conflicts: List[PlanConflict] = field(default_factory=list)
    purge_alerts: List[PurgeAlert] = field(default_factory=list)
    missed_deadlines: List[MissedDeadline] = field(default_factory=list)
    success_disaster_alerts: List[FiduciaryAlert] = field(default_factory=list)
    capital: Optional[CapitalSummary] = None
    burn_rate: List[BurnRateEntry] = field(default_factory=list)
    status_ticker: List[YearStatusTicker] = field(default_factory=list)
    health: Optional[HealthScoreBreakdown] = None
    insights: List[AdvisorInsight] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def violations(self) -> List[Any]:
        """Everything that counts against portfolio discipline."""
        return [*self.conflicts, *self.purge_alerts, *self.success_disaster_alerts]

    def to_dict(self) -> Dict:
        return {
            "as_of": self.as_of.isoformat(),
            "conflicts": [c.to_dict() for c in self.conflicts],
            "purge_alerts": [a.to_dict() for a in self.purge_alerts],
            "missed_deadlines": [m.to_dict() for m in self.missed_deadlines],
            "success_disaster_alerts": [a.to_dict() for a in self.success_disaster_alerts],
            "capital": self.capital.to_dict() if self.capital else None,
            "burn_rate": [e.to_dict() for e in self.burn_rate],
            "status_ticker": [t.to_dict() for t in self.status_ticker],
            "health": self.health.to_dict() if self.health else None,
            "insights": [i.to_dict() for i in self.insights],
            "errors": list(self.errors),
        }


class PortfolioAnalyzer:
    """Runs the full engine over a PortfolioRequest."""

    def analyze(self, request: PortfolioRequest) -> PortfolioReport:
        report = PortfolioReport(as_of=request.as_of)
        as_of_year = request.as_of.year

        # =====================================================================
        # DETECTORS
        # =====================================================================

        resolver = ConflictResolver(
            point_year_budget=request.point_year_budget,
            hunt_year_budget=request.hunt_year_budget,
            as_of_year=as_of_year,
            max_hunts_per_year=request.max_hunts_per_year,
            hunt_days_per_year=request.pto_days_available,
        )
        for name, detect in resolver.detectors(request.roadmap, request.ledger):
            report.conflicts.extend(self._run(report, name, detect, []))

        report.purge_alerts = self._run(
            report, "inactivity_purge",
            lambda: detect_inactivity_purges(request.roadmap, request.ledger, request.annual_costs),
            [],
        )
        report.missed_deadlines = self._run(
            report, "missed_deadlines",
            lambda: detect_missed_deadlines(request.milestones, request.as_of),
            [],
        )
        report.success_disaster_alerts = self._run(
            report, "success_disaster",
            lambda: self._success_disasters(request),
            [],
        )

        # =====================================================================
        # CAPITAL / PROJECTION
        # =====================================================================

        report.capital = self._run(
            report, "capital_summary",
            lambda: compute_capital_summary(request.roadmap),
            None,
        )
        report.burn_rate = self._run(
            report, "burn_rate",
            lambda: compute_burn_rate_matrix(
                request.roadmap, request.ledger, request.references,
                as_of_year, request.horizon_years,
            ),
            [],
        )
        report.status_ticker = self._run(
            report, "status_ticker",
            lambda: compute_status_ticker(request.roadmap),
            [],
        )

        # =====================================================================
        # HEALTH / ADVISOR
        # =====================================================================

        report.health = self._run(
            report, "health",
            lambda: calculate_portfolio_health(
                request.roadmap, request.mandate, report.violations, as_of_year
            ),
            None,
        )
        report.insights = self._run(
            report, "advisor",
            lambda: generate_advisor_insights(
                as_of=request.as_of,
                milestones=request.milestones,
                missed_deadlines=report.missed_deadlines,
                violations=report.violations,
                health=report.health,
                burn_rate=report.burn_rate,
                savings_goals=request.savings_goals,
                user_goals=request.user_goals,
                temporal=TemporalContext(last_visit=request.last_visit),
            ),
            [],
        )

        logger.info(
            f"Portfolio analysis as of {request.as_of}: {len(report.conflicts)} conflicts, "
            f"{len(report.purge_alerts)} purge alerts, {len(report.insights)} insights, "
            f"{len(report.errors)} errors"
        )
        return report

    def _success_disasters(self, request: PortfolioRequest) -> List[FiduciaryAlert]:
        drawn_years = sorted({
            m.year for m in request.milestones if m.draw_outcome == DrawOutcome.DREW
        })
        alerts: List[FiduciaryAlert] = []
        for year in drawn_years:
            alerts.extend(detect_success_disaster(
                request.milestones, request.hunt_year_budget, request.pto_days_available, year
            ))
        return alerts

    def _run(self, report: PortfolioReport, name: str, fn: Callable[[], T], default: T) -> T:
        try:
            return fn()
        except Exception as e:
            logger.exception(f"Detector {name} failed")
            report.errors.append({"detector": name, "error": str(e)})
            return default


def analyze_portfolio(request: PortfolioRequest) -> PortfolioReport:
    """Factory function to analyze one portfolio snapshot."""
    return PortfolioAnalyzer().analyze(request)
