"""Drawfolio - Fiduciary Layer

Inactivity purges, missed deadlines, success disasters and the event
cascades that follow draw outcomes and budget changes.
"""
from .inactivity_purge import InactivityPurgeDetector, detect_inactivity_purges
from .dispatcher import (
    BudgetChangeEvent,
    CascadeResult,
    DrawOutcomeEvent,
    FiduciaryAlert,
    FiduciaryEventType,
    MissedDeadline,
    detect_missed_deadlines,
    detect_success_disaster,
    dispatch_budget_change,
    dispatch_deadline_missed,
    dispatch_draw_outcome,
    dispatch_party_change,
)
from .portfolio_stress import (
    FloatEvent,
    LiquidityBottleneck,
    PortfolioAsset,
    PruneResult,
    cascading_prune,
    compute_group_draw_points,
    compute_post_draw_reset,
    detect_liquidity_bottleneck,
)

__all__ = [
    "InactivityPurgeDetector",
    "detect_inactivity_purges",
    "BudgetChangeEvent",
    "CascadeResult",
    "DrawOutcomeEvent",
    "FiduciaryAlert",
    "FiduciaryEventType",
    "MissedDeadline",
    "detect_missed_deadlines",
    "detect_success_disaster",
    "dispatch_budget_change",
    "dispatch_deadline_missed",
    "dispatch_draw_outcome",
    "dispatch_party_change",
    "FloatEvent",
    "LiquidityBottleneck",
    "PortfolioAsset",
    "PruneResult",
    "cascading_prune",
    "compute_group_draw_points",
    "compute_post_draw_reset",
    "detect_liquidity_bottleneck",
]
