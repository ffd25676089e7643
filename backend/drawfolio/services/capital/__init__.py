"""Drawfolio - Capital Allocator"""
from .capital_allocator import (
    ClassifiedFee,
    RegionCapital,
    CapitalSummary,
    BurnRateEntry,
    StatusTag,
    StatusEntry,
    YearStatusTicker,
    classify_fee,
    classify_action,
    compute_capital_summary,
    compute_burn_rate_matrix,
    compute_status_ticker,
)

__all__ = [
    "ClassifiedFee",
    "RegionCapital",
    "CapitalSummary",
    "BurnRateEntry",
    "StatusTag",
    "StatusEntry",
    "YearStatusTicker",
    "classify_fee",
    "classify_action",
    "compute_capital_summary",
    "compute_burn_rate_matrix",
    "compute_status_ticker",
]
