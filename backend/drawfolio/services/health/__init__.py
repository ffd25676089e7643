"""Drawfolio - Portfolio Health Scorer"""
from .portfolio_health import (
    PortfolioHealthScorer,
    calculate_portfolio_health,
    composite_score,
    age_from_mandate,
    ideal_window,
)

__all__ = [
    "PortfolioHealthScorer",
    "calculate_portfolio_health",
    "composite_score",
    "age_from_mandate",
    "ideal_window",
]
