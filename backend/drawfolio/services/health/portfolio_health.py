"""
Drawfolio - Portfolio Health Score (0-100 composite)

Weighted across five dimensions:
    Budget alignment    25%
    Hunt frequency      20%
    Low-odds exposure   20%
    Age horizon         20%
    Discipline          15%

Each sub-score is clamped to [0, 100] before weighting.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Tuple

from ...models.ssot import HealthScoreBreakdown, Mandate, Roadmap, Severity

logger = logging.getLogger(__name__)


WEIGHTS: Dict[str, float] = {
    "budget": 0.25,
    "frequency": 0.20,
    "exposure": 0.20,
    "horizon": 0.20,
    "discipline": 0.15,
}

FREQUENCY_PENALTY_PER_YEAR = 8
LOW_ODDS_THRESHOLD = 0.05
OVER_CEILING_PENALTY = 50

NO_MANDATE_HORIZON_SCORE = 75
NO_HUNT_HORIZON_SCORE = 50
HORIZON_PENALTY_PER_YEAR = 10
HORIZON_MAX_PENALTY_YEARS = 10

DISCIPLINE_PENALTIES: Dict[Severity, int] = {
    Severity.CRITICAL: 25,
    Severity.WARNING: 15,
    Severity.INFO: 5,
}

# Physically demanding species get a narrower window
IDEAL_BURN_WINDOWS: Dict[str, Tuple[int, int]] = {
    "bighorn_sheep": (35, 55),
    "dall_sheep": (35, 55),
    "mountain_goat": (35, 55),
}
DEFAULT_BURN_WINDOW = (30, 60)

# Rough age implied by the planning horizon when no age is recorded
HORIZON_AGE_MAP: Dict[int, int] = {5: 55, 10: 45, 15: 40, 20: 35, 25: 30}
YOUTH_PARENT_AGE_GAP = 28


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def ideal_window(species_id: str) -> Tuple[int, int]:
    return IDEAL_BURN_WINDOWS.get(species_id, DEFAULT_BURN_WINDOW)


def age_from_mandate(mandate: Mandate) -> Optional[int]:
    """Best-effort age: explicit age, else youth age + gap, else horizon bracket."""
    if mandate.current_age is not None:
        return mandate.current_age
    if mandate.youth_toggle and mandate.youth_age:
        return mandate.youth_age + YOUTH_PARENT_AGE_GAP
    return HORIZON_AGE_MAP.get(mandate.time_horizon_years)


def composite_score(
    budget: float,
    frequency: float,
    exposure: float,
    horizon: float,
    discipline: float,
) -> float:
    """Weighted sum of clamped sub-scores, itself clamped to [0, 100]."""
    total = (
        clamp(budget) * WEIGHTS["budget"]
        + clamp(frequency) * WEIGHTS["frequency"]
        + clamp(exposure) * WEIGHTS["exposure"]
        + clamp(horizon) * WEIGHTS["horizon"]
        + clamp(discipline) * WEIGHTS["discipline"]
    )
    return round(clamp(total), 2)


class PortfolioHealthScorer:
    """Pure scorer. Each _score_* method returns a value in [0, 100]."""

    def score(
        self,
        roadmap: Roadmap,
        mandate: Optional[Mandate],
        violations: Iterable = (),
        as_of_year: Optional[int] = None,
    ) -> HealthScoreBreakdown:
        if as_of_year is None:
            as_of_year = roadmap.first_year or 0

        budget = self._score_budget(roadmap, mandate)
        frequency = self._score_frequency(roadmap)
        exposure = self._score_exposure(roadmap)
        horizon = self._score_horizon(roadmap, mandate, as_of_year)
        discipline = self._score_discipline(violations)

        breakdown = HealthScoreBreakdown(
            budget=budget,
            frequency=frequency,
            exposure=exposure,
            horizon=horizon,
            discipline=discipline,
            composite=composite_score(budget, frequency, exposure, horizon, discipline),
        )
        logger.info(f"Portfolio health: {breakdown.composite}")
        return breakdown

    # -------------------------------------------------------------------------

    def _score_budget(self, roadmap: Roadmap, mandate: Optional[Mandate]) -> float:
        """
        Deviation of each region's average annual spend from an equal-weight
        allocation, plus a penalty for exceeding the mandate ceiling.
        """
        if not len(roadmap):
            return 100.0

        spend: Dict = {}
        for yr in roadmap:
            for action in yr.actions:
                spend[action.region] = spend.get(action.region, 0.0) + action.cost
        annual = {region: total / len(roadmap) for region, total in spend.items()}

        total_cost = sum(annual.values())
        if not annual or total_cost == 0:
            return 100.0

        baseline = total_cost / len(annual)
        avg_deviation = sum(abs(v - baseline) / baseline for v in annual.values()) / len(annual)
        score = 100 - avg_deviation * 100

        ceiling = mandate.annual_budget_ceiling if mandate else 0
        if ceiling > 0 and total_cost > ceiling:
            over_pct = (total_cost - ceiling) / ceiling
            score -= over_pct * OVER_CEILING_PENALTY

        return round(clamp(score), 2)

    def _score_frequency(self, roadmap: Roadmap) -> float:
        if not len(roadmap):
            return 0.0

        years_until = len(roadmap)
        for yr in roadmap:
            if yr.hunt_actions:
                years_until = yr.year - roadmap.first_year
                break
        return clamp(100 - FREQUENCY_PENALTY_PER_YEAR * years_until)

    def _score_exposure(self, roadmap: Roadmap) -> float:
        """Share of year-1 spend placed on actions below 5% odds."""
        if not len(roadmap):
            return 100.0

        year_one = roadmap[0]
        total_spend = year_one.estimated_cost or year_one.action_cost
        if total_spend == 0:
            return 100.0

        low_odds_spend = sum(
            a.cost for a in year_one.actions
            if a.estimated_draw_odds is not None and a.estimated_draw_odds < LOW_ODDS_THRESHOLD
        )
        return round(clamp(100 - low_odds_spend / total_spend * 100), 2)

    def _score_horizon(self, roadmap: Roadmap, mandate: Optional[Mandate], as_of_year: int) -> float:
        if mandate is None:
            return float(NO_MANDATE_HORIZON_SCORE)
        age = age_from_mandate(mandate)
        if age is None:
            return float(NO_MANDATE_HORIZON_SCORE)

        first_hunt = next(
            ((yr.year, yr.hunt_actions[0].species_id) for yr in roadmap if yr.hunt_actions),
            None,
        )
        if first_hunt is None:
            return float(NO_HUNT_HORIZON_SCORE)

        hunt_year, species_id = first_hunt
        projected_age = age + (hunt_year - as_of_year)
        low, high = ideal_window(species_id)
        if low <= projected_age <= high:
            return 100.0

        deviation = low - projected_age if projected_age < low else projected_age - high
        penalty = min(deviation, HORIZON_MAX_PENALTY_YEARS) * HORIZON_PENALTY_PER_YEAR
        return clamp(100 - penalty)

    def _score_discipline(self, violations: Iterable) -> float:
        """Anything carrying a severity counts: conflicts, purge alerts, fiduciary alerts."""
        score = 100
        for violation in violations:
            score -= DISCIPLINE_PENALTIES.get(Severity(violation.severity), 0)
        return clamp(score)


def calculate_portfolio_health(
    roadmap: Roadmap,
    mandate: Optional[Mandate] = None,
    violations: Iterable = (),
    as_of_year: Optional[int] = None,
) -> HealthScoreBreakdown:
    """Factory function to score a portfolio."""
    return PortfolioHealthScorer().score(roadmap, mandate, violations, as_of_year)
