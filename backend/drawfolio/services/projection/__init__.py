"""Drawfolio - Projection Layer

Point-creep projection and draw-odds modelling. Pure functions, consumed
internally by the capital, conflict and health components and directly by
callers for exploratory queries.
"""
from .point_creep import (
    MAX_PROJECTION_YEARS,
    PcvTrend,
    PcvResult,
    TimeToDraw,
    estimate_creep_rate,
    estimate_pcv,
    compute_pcv,
    years_to_draw,
    time_to_draw,
    pcv_to_rate,
    project_point_creep,
)
from .draw_odds import (
    DrawOddsCalculator,
    DrawOddsResult,
    calculate_draw_odds,
    cumulative_odds,
    creep_rate_for,
    odds_for_position,
)

__all__ = [
    "MAX_PROJECTION_YEARS",
    "PcvTrend",
    "PcvResult",
    "TimeToDraw",
    "estimate_creep_rate",
    "estimate_pcv",
    "compute_pcv",
    "years_to_draw",
    "time_to_draw",
    "pcv_to_rate",
    "project_point_creep",
    "DrawOddsCalculator",
    "DrawOddsResult",
    "calculate_draw_odds",
    "cumulative_odds",
    "creep_rate_for",
    "odds_for_position",
]
