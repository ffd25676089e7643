"""
Drawfolio - Savings Calculator

Savings arithmetic consumed by the advisor: monthly targets, projected
funded dates, traffic-light status and catch-up amounts. Every function
takes the "as of" date explicitly.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from ...models.ssot import Milestone, Region, UserGoal

DAYS_PER_MONTH = 30.44
# Funded up to this many months late is amber; later is red
AMBER_MONTHS_LATE = 3
# Hunt-season date each goal is funded for
TARGET_MONTH, TARGET_DAY = 9, 1


class SavingsStatus(str, Enum):
    GREEN = "green"
    AMBER = "amber"
    RED = "red"


def _months_between(start: date, end: date) -> float:
    return (end - start).days / DAYS_PER_MONTH


def target_date_for(goal: UserGoal) -> date:
    return date(goal.target_year, TARGET_MONTH, TARGET_DAY)


def calculate_monthly_savings_target(
    target_cost: float,
    target_date: date,
    current_saved: float,
    as_of: date,
) -> float:
    """Remaining cost spread over the months left (at least one)."""
    remaining = target_cost - current_saved
    if remaining <= 0:
        return 0.0
    months = max(1.0, _months_between(as_of, target_date))
    return remaining / months


def calculate_funded_date(
    target_cost: float,
    current_saved: float,
    monthly_savings: float,
    as_of: date,
) -> Optional[date]:
    """Date the goal is funded at the current rate; None if it never is."""
    remaining = target_cost - current_saved
    if remaining <= 0:
        return as_of
    if monthly_savings <= 0:
        return None
    return as_of + relativedelta(months=math.ceil(remaining / monthly_savings))


def calculate_savings_status(
    target_cost: float,
    current_saved: float,
    monthly_savings: float,
    target_date: date,
    as_of: date,
) -> SavingsStatus:
    if current_saved >= target_cost:
        return SavingsStatus.GREEN

    funded = calculate_funded_date(target_cost, current_saved, monthly_savings, as_of)
    if funded is None:
        return SavingsStatus.RED

    months_late = _months_between(target_date, funded)
    if months_late <= 0:
        return SavingsStatus.GREEN
    if months_late <= AMBER_MONTHS_LATE:
        return SavingsStatus.AMBER
    return SavingsStatus.RED


def calculate_catch_up_delta(
    target_cost: float,
    current_saved: float,
    monthly_savings: float,
    target_date: date,
    as_of: date,
) -> float:
    needed = calculate_monthly_savings_target(target_cost, target_date, current_saved, as_of)
    return max(0.0, needed - monthly_savings)


def derive_target_cost(milestones: Sequence[Milestone], goal_id: str) -> float:
    return sum(m.total_cost for m in milestones if m.plan_id == goal_id)


@dataclass
class SpendForecastItem:
    goal_title: str
    region: Region
    species_id: str
    cost: float


@dataclass
class AnnualSpendForecast:
    year: int
    items: List[SpendForecastItem] = field(default_factory=list)

    @property
    def total_cost(self) -> float:
        return sum(item.cost for item in self.items)

    def to_dict(self) -> Dict:
        return {
            "year": self.year,
            "total_cost": self.total_cost,
            "items": [
                {"goal_title": i.goal_title, "region": i.region.value,
                 "species_id": i.species_id, "cost": i.cost}
                for i in self.items
            ],
        }


def calculate_annual_spend_forecast(
    user_goals: Sequence[UserGoal],
    milestones: Sequence[Milestone],
    as_of_year: int,
    years_ahead: int = 5,
) -> List[AnnualSpendForecast]:
    """Incomplete milestones grouped by year for the next years_ahead years."""
    titles = {g.id: g.title for g in user_goals}
    forecasts = []
    for year in range(as_of_year, as_of_year + years_ahead):
        forecast = AnnualSpendForecast(year=year)
        for m in milestones:
            if m.year == year and not m.completed:
                forecast.items.append(SpendForecastItem(
                    goal_title=titles.get(m.plan_id) or m.title,
                    region=m.region,
                    species_id=m.species_id,
                    cost=m.total_cost,
                ))
        forecasts.append(forecast)
    return forecasts
