"""
Drawfolio - Inactivity-Purge Detector ("use it or lose it")

Applies per-region forfeiture rules to a roadmap's activity pattern.
Any action for a (region, species) resets its skip counter; a year with
no action for that key increments it. When the counter reaches the
region's max_inactive_years, one critical PurgeAlert is raised at that
year and the key is not re-flagged.

Points are taken verbatim from the ledger. Accrual across years is not
modelled here.
"""
from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence

from ...models.ssot import (
    PointsLedgerEntry, PositionKey, PurgeAlert, PurgeRule, Region, Roadmap,
    Severity, format_money, format_species,
)
from ...models.regions import POINT_PURGE_RULES, region_name

logger = logging.getLogger(__name__)


class InactivityPurgeDetector:
    """Walks the roadmap chronologically once per tracked ledger key."""

    def __init__(self, rules: Optional[Mapping[Region, PurgeRule]] = None):
        self.rules = POINT_PURGE_RULES if rules is None else rules

    def detect(
        self,
        roadmap: Roadmap,
        ledger: Sequence[PointsLedgerEntry],
        annual_costs: Optional[Mapping[PositionKey, float]] = None,
    ) -> List[PurgeAlert]:
        annual_costs = annual_costs or {}
        alerts: List[PurgeAlert] = []

        for entry in ledger:
            rule = self.rules.get(entry.region)
            if rule is None or entry.points <= 0:
                continue

            alert = self._walk(roadmap, entry, rule, annual_costs.get(entry.key, 0.0))
            if alert:
                alerts.append(alert)

        logger.info(f"Purge scan complete: {len(alerts)} alerts for {len(ledger)} ledger positions")
        return alerts

    def _walk(
        self,
        roadmap: Roadmap,
        entry: PointsLedgerEntry,
        rule: PurgeRule,
        annual_cost: float,
    ) -> Optional[PurgeAlert]:
        skipped = 0
        for yr in roadmap:
            if yr.touches(entry.key):
                skipped = 0
                continue

            skipped += 1
            if skipped == rule.max_inactive_years:
                logger.debug(
                    f"Purge: {entry.region.value} {entry.species_id} at {yr.year} "
                    f"after {skipped} inactive year(s)"
                )
                return self._build_alert(entry, rule, yr.year, annual_cost)
        return None

    @staticmethod
    def _build_alert(
        entry: PointsLedgerEntry,
        rule: PurgeRule,
        year: int,
        annual_cost: float,
    ) -> PurgeAlert:
        sunk_value = entry.points * annual_cost
        species = format_species(entry.species_id)
        years_text = "a year" if rule.max_inactive_years == 1 else f"{rule.max_inactive_years} consecutive years"
        message = (
            f"PERMANENT DELETION: your {entry.points} {region_name(entry.region)} {species} "
            f"points will be purged in {year} after {years_text} without an application "
            f"or point purchase. {format_money(sunk_value)} of sunk value would be lost."
        )
        return PurgeAlert(
            region=entry.region,
            species_id=entry.species_id,
            year_of_purge=year,
            current_points=entry.points,
            sunk_value=sunk_value,
            message=message,
            max_inactive_years=rule.max_inactive_years,
            severity=Severity.CRITICAL,
        )


def detect_inactivity_purges(
    roadmap: Roadmap,
    ledger: Sequence[PointsLedgerEntry],
    annual_costs: Optional[Mapping[PositionKey, float]] = None,
    rules: Optional[Mapping[Region, PurgeRule]] = None,
) -> List[PurgeAlert]:
    """Factory function to scan a roadmap for inactivity purges."""
    return InactivityPurgeDetector(rules).detect(roadmap, ledger, annual_costs)
