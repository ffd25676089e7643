"""Drawfolio - Conflict Resolver"""
from .conflict_resolver import ConflictResolver, detect_all_conflicts

__all__ = [
    "ConflictResolver",
    "detect_all_conflicts",
]
