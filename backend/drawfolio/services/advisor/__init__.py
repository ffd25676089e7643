"""Drawfolio - Advisor Insights and Savings"""
from .advisor_engine import (
    AdvisorEngine,
    TemporalContext,
    MAX_VISIBLE_INSIGHTS,
    format_temporal_prefix,
    generate_advisor_insights,
)
from .savings import (
    AnnualSpendForecast,
    SavingsStatus,
    calculate_annual_spend_forecast,
    calculate_catch_up_delta,
    calculate_funded_date,
    calculate_monthly_savings_target,
    calculate_savings_status,
    derive_target_cost,
    target_date_for,
)

__all__ = [
    "AdvisorEngine",
    "TemporalContext",
    "MAX_VISIBLE_INSIGHTS",
    "format_temporal_prefix",
    "generate_advisor_insights",
    "AnnualSpendForecast",
    "SavingsStatus",
    "calculate_annual_spend_forecast",
    "calculate_catch_up_delta",
    "calculate_funded_date",
    "calculate_monthly_savings_target",
    "calculate_savings_status",
    "derive_target_cost",
    "target_date_for",
]
