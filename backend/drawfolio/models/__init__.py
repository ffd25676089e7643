"""Drawfolio - Data Models"""
from .ssot import (
    # Errors
    PortfolioValidationError, UnknownRegionError, UnknownPointSystemError,
    # Enums
    Region, PointSystem, Phase, ActionType, MilestoneType, DrawOutcome, PointType,
    CostCategory, CapitalType, Severity, Urgency, ConflictType,
    # Orders / helpers
    SEVERITY_ORDER, URGENCY_ORDER, severity_rank, urgency_rank,
    parse_region, parse_point_system, parse_enum, format_species, format_money, PositionKey,
    # Inputs
    CostLineItem, RoadmapAction, RoadmapYear, Roadmap,
    PointsLedgerEntry, ledger_index, Milestone, Mandate, PurgeRule, DrawReference,
    SavingsGoal, UserGoal,
    # Outputs
    AffectedAction, PlanConflict, PurgeAlert, HealthScoreBreakdown,
    CallToAction, AdvisorInsight,
)
from .regions import (
    RegionProfile, REGION_PROFILES, POINT_PURGE_RULES,
    get_profile, point_system_for, region_name, is_lottery_region,
)

__all__ = [
    "PortfolioValidationError", "UnknownRegionError", "UnknownPointSystemError",
    "Region", "PointSystem", "Phase", "ActionType", "MilestoneType", "DrawOutcome", "PointType",
    "CostCategory", "CapitalType", "Severity", "Urgency", "ConflictType",
    "SEVERITY_ORDER", "URGENCY_ORDER", "severity_rank", "urgency_rank",
    "parse_region", "parse_point_system", "parse_enum", "format_species", "format_money", "PositionKey",
    "CostLineItem", "RoadmapAction", "RoadmapYear", "Roadmap",
    "PointsLedgerEntry", "ledger_index", "Milestone", "Mandate", "PurgeRule", "DrawReference",
    "SavingsGoal", "UserGoal",
    "AffectedAction", "PlanConflict", "PurgeAlert", "HealthScoreBreakdown",
    "CallToAction", "AdvisorInsight",
    "RegionProfile", "REGION_PROFILES", "POINT_PURGE_RULES",
    "get_profile", "point_system_for", "region_name", "is_lottery_region",
]
