"""
Drawfolio - Point-Creep Projector

Models year-over-year inflation of the points required to draw a unit.
The holder gains one point per year while the requirement compounds at
the creep rate. Every projection is bounded by MAX_PROJECTION_YEARS.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from statistics import mean
from typing import Dict, List, Optional, Sequence, Tuple

from ...models.ssot import PortfolioValidationError

logger = logging.getLogger(__name__)


# Hard ceiling on any iterative projection. A result equal to this value
# means "never catches up".
MAX_PROJECTION_YEARS = 30

# Dead asset: requirement inflates at least one point per year
DEAD_ASSET_PCV = 1.0

# Trend classification sensitivity (points/year difference between halves)
TREND_THRESHOLD = 0.1


class PcvTrend(str, Enum):
    ACCELERATING = "accelerating"
    STABLE = "stable"
    DECELERATING = "decelerating"


@dataclass(frozen=True)
class PcvResult:
    """Point-creep velocity: average yearly increase in the requirement."""
    pcv: float
    trend: PcvTrend
    is_dead_asset: bool
    samples: int

    def to_dict(self) -> Dict:
        return {
            "pcv": self.pcv,
            "trend": self.trend.value,
            "is_dead_asset": self.is_dead_asset,
            "samples": self.samples,
        }


@dataclass(frozen=True)
class TimeToDraw:
    years: int
    target_year: Optional[int]   # None when capped
    capped: bool


def _validate_signal(signal: float) -> None:
    if signal is None or not 0 <= signal <= 10:
        raise PortfolioValidationError(
            f"Competitiveness signal must be within [0, 10] (got {signal!r})"
        )


# =============================================================================
# CREEP RATE
# =============================================================================

def estimate_creep_rate(signal: float) -> float:
    """
    Map a 0..10 competitiveness signal to a fractional annual inflation rate.

    Trophy units (8-10) inflate fastest; general units barely move.
    Non-decreasing in the signal.
    """
    _validate_signal(signal)
    if signal >= 8:
        return 0.07
    if signal >= 6:
        return 0.04
    if signal >= 4:
        return 0.02
    return 0.005


def estimate_pcv(signal: float) -> PcvResult:
    """Fallback velocity (points/year) when no requirement history exists."""
    _validate_signal(signal)
    if signal >= 8:
        pcv = 0.7
    elif signal >= 6:
        pcv = 0.4
    elif signal >= 4:
        pcv = 0.2
    else:
        pcv = 0.05
    return PcvResult(pcv=pcv, trend=PcvTrend.STABLE, is_dead_asset=pcv >= DEAD_ASSET_PCV, samples=0)


def compute_pcv(history: Sequence[float]) -> PcvResult:
    """
    Velocity from a chronological requirement history.

    PCV is the mean of the year-over-year increases. Trend compares the
    mean increase of the second half of the samples against the first half.
    """
    values = [float(v) for v in history]
    if any(v < 0 for v in values):
        raise PortfolioValidationError("Requirement history cannot contain negative values")

    diffs = [b - a for a, b in zip(values, values[1:])]
    if not diffs:
        return PcvResult(pcv=0.0, trend=PcvTrend.STABLE, is_dead_asset=False, samples=0)

    pcv = round(mean(diffs), 3)

    trend = PcvTrend.STABLE
    if len(diffs) >= 2:
        half = len(diffs) // 2
        delta = mean(diffs[half:]) - mean(diffs[:half])
        if delta >= TREND_THRESHOLD:
            trend = PcvTrend.ACCELERATING
        elif delta <= -TREND_THRESHOLD:
            trend = PcvTrend.DECELERATING

    return PcvResult(pcv=pcv, trend=trend, is_dead_asset=pcv >= DEAD_ASSET_PCV, samples=len(diffs))


# =============================================================================
# PROJECTION
# =============================================================================

def years_to_draw(current_points: int, required_points: int, creep_rate: float) -> int:
    """
    Smallest n with current + n >= required * (1 + rate)^n.

    Returns 0 when already eligible and MAX_PROJECTION_YEARS when the
    holder never catches up inside the horizon.
    """
    if current_points < 0 or required_points < 0:
        raise PortfolioValidationError("Point values must be >= 0")
    if creep_rate < 0:
        raise PortfolioValidationError(f"creep_rate must be >= 0 (got {creep_rate})")

    if current_points >= required_points:
        return 0
    if creep_rate == 0:
        return required_points - current_points

    for n in range(1, MAX_PROJECTION_YEARS):
        if current_points + n >= required_points * (1 + creep_rate) ** n:
            return n

    logger.debug(
        f"Projection capped: {current_points} -> {required_points} at {creep_rate:.3f}/yr"
    )
    return MAX_PROJECTION_YEARS


def time_to_draw(
    current_points: int,
    required_points: int,
    creep_rate: float,
    as_of_year: int,
) -> TimeToDraw:
    years = years_to_draw(current_points, required_points, creep_rate)
    capped = creep_rate > 0 and years >= MAX_PROJECTION_YEARS
    return TimeToDraw(
        years=years,
        target_year=None if capped else as_of_year + years,
        capped=capped,
    )


def pcv_to_rate(pcv: float, required_points: Optional[float]) -> float:
    """Convert an absolute velocity (points/year) to a fractional rate."""
    if not required_points or pcv <= 0:
        return 0.0
    return pcv / required_points


def project_point_creep(
    current_required: float,
    creep_rate: float,
    start_year: int,
    years_forward: int = 10,
) -> List[Tuple[int, float]]:
    """Projected requirement for start_year..start_year + years_forward."""
    if current_required < 0 or creep_rate < 0 or years_forward < 0:
        raise PortfolioValidationError("Projection inputs must be >= 0")
    years_forward = min(years_forward, MAX_PROJECTION_YEARS)
    return [
        (start_year + i, round(current_required * (1 + creep_rate) ** i, 2))
        for i in range(years_forward + 1)
    ]
