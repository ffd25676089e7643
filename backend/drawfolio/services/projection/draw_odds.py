"""
Drawfolio - Draw-Odds Calculator

Single-year and multi-year selection probability, branching on the
region's allocation system:

- preference:     binary eligibility; the useful output is years-to-draw
- bonus:          (points + 1) entries against the field, never guaranteed
- bonus_squared:  (points + 1)^2 entries against the field, never guaranteed
- random_lottery: flat odds, reported only as cumulative odds over a horizon
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ...config import PLANNING_HORIZON_YEARS
from ...models.ssot import (
    DrawReference, PointSystem, PortfolioValidationError, Region, parse_point_system,
)
from ...models.regions import point_system_for
from .point_creep import (
    MAX_PROJECTION_YEARS, compute_pcv, estimate_creep_rate, pcv_to_rate, years_to_draw,
)

logger = logging.getLogger(__name__)


# Bonus systems never reach certainty
MAX_BONUS_ODDS = 0.99
LIKELY_DRAW_THRESHOLD = 0.5

SYSTEM_LABELS = {
    PointSystem.PREFERENCE: "True Preference",
    PointSystem.BONUS: "Bonus (Not Squared)",
    PointSystem.BONUS_SQUARED: "Bonus Squared",
    PointSystem.RANDOM_LOTTERY: "Pure Random",
}

# (default tag quota, applicants per tag) when the field size is unknown
FIELD_DEFAULTS = {
    PointSystem.BONUS: (15, 15),
    PointSystem.BONUS_SQUARED: (5, 20),
    PointSystem.RANDOM_LOTTERY: (50, 10),
}


@dataclass(frozen=True)
class DrawOddsResult:
    current_odds: float
    years_to_likely_draw: Optional[int]   # Never set for lottery systems
    cumulative_odds: Optional[float]
    points_at_draw: int
    system: PointSystem
    explanation: str

    @property
    def label(self) -> str:
        return SYSTEM_LABELS[self.system]

    def to_dict(self) -> Dict:
        return {
            "current_odds": self.current_odds,
            "years_to_likely_draw": self.years_to_likely_draw,
            "cumulative_odds": self.cumulative_odds,
            "points_at_draw": self.points_at_draw,
            "system": self.system.value,
            "system_label": self.label,
            "explanation": self.explanation,
        }


def cumulative_odds(single_year_odds: float, horizon_years: int) -> float:
    """Probability of at least one success in horizon_years independent draws."""
    if not 0 <= single_year_odds <= 1:
        raise PortfolioValidationError(
            f"single_year_odds must be within [0, 1] (got {single_year_odds})"
        )
    if horizon_years < 0:
        raise PortfolioValidationError(f"horizon_years must be >= 0 (got {horizon_years})")
    return 1 - (1 - single_year_odds) ** horizon_years


class DrawOddsCalculator:
    """
    Stateless odds model. One public entry point; each allocation
    system has its own private branch.
    """

    def calculate(
        self,
        system: PointSystem,
        current_points: int,
        required_points: Optional[int] = None,
        creep_rate: float = 0.0,
        tag_quota: Optional[int] = None,
        applicants: Optional[int] = None,
        single_year_odds: Optional[float] = None,
        horizon_years: int = PLANNING_HORIZON_YEARS,
    ) -> DrawOddsResult:
        system = parse_point_system(system)
        if isinstance(current_points, bool) or not isinstance(current_points, int) or current_points < 0:
            raise PortfolioValidationError(
                f"current_points must be a non-negative integer (got {current_points!r})"
            )
        if required_points is not None and required_points < 0:
            raise PortfolioValidationError(f"required_points must be >= 0 (got {required_points})")
        if horizon_years < 1:
            raise PortfolioValidationError(f"horizon_years must be >= 1 (got {horizon_years})")

        if system == PointSystem.PREFERENCE:
            return self._preference(current_points, required_points, creep_rate)
        if system == PointSystem.RANDOM_LOTTERY:
            return self._lottery(tag_quota, applicants, single_year_odds, horizon_years)
        return self._bonus(system, current_points, required_points, tag_quota, applicants, horizon_years)

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    def _preference(self, current: int, required: Optional[int], creep_rate: float) -> DrawOddsResult:
        if required is None:
            raise PortfolioValidationError("Preference draws need required_points")

        if current >= required:
            return DrawOddsResult(
                current_odds=1.0,
                years_to_likely_draw=0,
                cumulative_odds=None,
                points_at_draw=current,
                system=PointSystem.PREFERENCE,
                explanation=f"You have enough points ({current} >= {required}). Eligible this year.",
            )

        years = years_to_draw(current, required, creep_rate)
        if creep_rate > 0 and years >= MAX_PROJECTION_YEARS:
            explanation = (
                f"The requirement is inflating faster than you gain points. "
                f"No draw projected within {MAX_PROJECTION_YEARS} years."
            )
        else:
            explanation = f"Need {years} more year(s) to catch the requirement ({required} today)."
        return DrawOddsResult(
            current_odds=0.0,
            years_to_likely_draw=years,
            cumulative_odds=None,
            points_at_draw=current + years,
            system=PointSystem.PREFERENCE,
            explanation=explanation,
        )

    def _bonus(
        self,
        system: PointSystem,
        current: int,
        required: Optional[int],
        tag_quota: Optional[int],
        applicants: Optional[int],
        horizon_years: int,
    ) -> DrawOddsResult:
        default_tags, per_tag = FIELD_DEFAULTS[system]
        tags = default_tags if tag_quota is None else tag_quota
        field = tags * per_tag if applicants is None else applicants
        typical_points = required if required is not None else current

        def entries(points: int) -> float:
            if system == PointSystem.BONUS_SQUARED:
                return (points + 1) ** 2
            return points + 1

        total_entries = max(field * entries_of_average(system, typical_points), 1)

        def odds_at(points: int) -> float:
            return min(MAX_BONUS_ODDS, entries(points) * tags / total_entries)

        current_odds = odds_at(current)

        years = 0
        points = current
        while years < MAX_PROJECTION_YEARS and odds_at(points) < LIKELY_DRAW_THRESHOLD:
            points += 1
            years += 1

        miss_all = 1.0
        for i in range(horizon_years):
            miss_all *= 1 - odds_at(current + i)

        return DrawOddsResult(
            current_odds=round(current_odds, 4),
            years_to_likely_draw=years,
            cumulative_odds=round(1 - miss_all, 4),
            points_at_draw=points,
            system=system,
            explanation=(
                f"{int(entries(current))} entries at {current} points. "
                f"{current_odds * 100:.1f}% estimated odds this year."
            ),
        )

    def _lottery(
        self,
        tag_quota: Optional[int],
        applicants: Optional[int],
        single_year_odds: Optional[float],
        horizon_years: int,
    ) -> DrawOddsResult:
        if single_year_odds is None:
            default_tags, per_tag = FIELD_DEFAULTS[PointSystem.RANDOM_LOTTERY]
            tags = default_tags if tag_quota is None else tag_quota
            field = tags * per_tag if applicants is None else applicants
            single_year_odds = min(1.0, tags / max(field, 1))

        total = cumulative_odds(single_year_odds, horizon_years)
        return DrawOddsResult(
            current_odds=round(single_year_odds, 4),
            years_to_likely_draw=None,
            cumulative_odds=round(total, 4),
            points_at_draw=0,
            system=PointSystem.RANDOM_LOTTERY,
            explanation=(
                f"{single_year_odds * 100:.1f}% chance every year regardless of points. "
                f"{total * 100:.1f}% chance of at least one draw over {horizon_years} years."
            ),
        )


def entries_of_average(system: PointSystem, typical_points: int) -> float:
    """Entries held by an average applicant, assumed to sit at half the requirement."""
    avg = typical_points / 2 + 1
    if system == PointSystem.BONUS_SQUARED:
        return avg ** 2
    return avg


def creep_rate_for(reference: DrawReference) -> float:
    """Fractional creep rate from history when available, else from the signal."""
    if len(reference.requirement_history) >= 2:
        pcv = compute_pcv(reference.requirement_history).pcv
        return pcv_to_rate(pcv, reference.required_points)
    return estimate_creep_rate(reference.competitiveness)


def calculate_draw_odds(
    system: PointSystem,
    current_points: int,
    required_points: Optional[int] = None,
    **kwargs,
) -> DrawOddsResult:
    """Factory function for a one-off odds calculation."""
    return DrawOddsCalculator().calculate(system, current_points, required_points, **kwargs)


def odds_for_position(
    region: Region,
    current_points: int,
    reference: DrawReference,
    horizon_years: int = PLANNING_HORIZON_YEARS,
) -> DrawOddsResult:
    """Odds for a held position using the region's allocation system."""
    system = point_system_for(region)
    logger.debug(f"Odds for {region.value}: {system.value} at {current_points} pts")
    return DrawOddsCalculator().calculate(
        system,
        current_points,
        reference.required_points,
        creep_rate=creep_rate_for(reference) if system == PointSystem.PREFERENCE else 0.0,
        tag_quota=reference.tag_quota,
        applicants=reference.applicants,
        single_year_odds=reference.single_year_odds,
        horizon_years=horizon_years,
    )
