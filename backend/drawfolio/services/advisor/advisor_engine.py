"""
Drawfolio - Advisor Insight Engine

Turns detector outputs into a short, ranked list of AdvisorInsight records.

Sub-generators (each capped on its own):
- Upcoming deadlines      max 3, nearest first
- Missed deadlines        always immediate
- Discipline alerts       max 2, most severe first
- Portfolio health        max 1
- Dead-asset point creep  max 3
- Temporal recap          max 1, returning users only
- Savings shortfalls      max 2, never immediate

The pipeline merges them, drops duplicate ids (first wins), sorts stably by
urgency rank and keeps MAX_VISIBLE_INSIGHTS. "Now" is always passed in.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from ...models.ssot import (
    AdvisorInsight,
    CallToAction,
    HealthScoreBreakdown,
    Milestone,
    PlanConflict,
    PurgeAlert,
    SavingsGoal,
    Severity,
    Urgency,
    UserGoal,
    format_money,
    format_species,
    severity_rank,
    urgency_rank,
)
from ..capital.capital_allocator import BurnRateEntry
from ..fiduciary.dispatcher import FiduciaryAlert, MissedDeadline
from .savings import (
    SavingsStatus,
    calculate_catch_up_delta,
    calculate_savings_status,
    derive_target_cost,
    target_date_for,
)

logger = logging.getLogger(__name__)


MAX_VISIBLE_INSIGHTS = 7
MAX_DEADLINE_INSIGHTS = 3
MAX_DISCIPLINE_INSIGHTS = 2
MAX_CREEP_INSIGHTS = 3
MAX_SAVINGS_INSIGHTS = 2

# Days-until-due thresholds
RED_DEADLINE_DAYS = 14
AMBER_DEADLINE_DAYS = 30

HEALTH_LOW = 60
HEALTH_STRONG = 80

LONG_ABSENCE_DAYS = 30

SEVERITY_TO_URGENCY = {
    Severity.CRITICAL: Urgency.IMMEDIATE,
    Severity.WARNING: Urgency.SOON,
    Severity.INFO: Urgency.INFORMATIONAL,
}

HEALTH_DIMENSIONS: Tuple[Tuple[str, str], ...] = (
    ("budget", "budget alignment"),
    ("frequency", "hunt frequency"),
    ("exposure", "low-odds exposure"),
    ("horizon", "age horizon"),
    ("discipline", "discipline"),
)

HEALTH_RECOMMENDATIONS = {
    "budget alignment": "Rebalance your region allocations to spread budget more evenly across your portfolio.",
    "hunt frequency": "Add an opportunity hunt in a build year to keep time in the field.",
    "low-odds exposure": "Reduce allocation to sub-5% draw odds. Add high-odds regions to balance risk.",
    "age horizon": "Review your burn year timing to align with your physical peak for the target species.",
    "discipline": "Address the open conflicts and alerts in your portfolio to improve overall health.",
}

CTA_DEADLINES = CallToAction(label="View Deadlines", target="/deadlines")
CTA_STRATEGY = CallToAction(label="View Strategy", target="/plan-builder")
CTA_POINTS = CallToAction(label="Review Points", target="/points")


@dataclass(frozen=True)
class TemporalContext:
    """When the user last looked at the portfolio (None on a first visit)."""
    last_visit: Optional[date] = None

    def days_since_last_visit(self, as_of: date) -> Optional[int]:
        if self.last_visit is None:
            return None
        return (as_of - self.last_visit).days


def format_temporal_prefix(days_since_last_visit: Optional[int]) -> Optional[str]:
    if days_since_last_visit is None or days_since_last_visit < 1:
        return None
    days = days_since_last_visit
    if days == 1:
        return "Since yesterday"
    if days < 7:
        return f"Since your last visit ({days} days ago)"
    if days < 30:
        return f"Since your last visit ({days // 7} weeks ago)"
    return f"Since your last visit ({days // 30} months ago)"


def _label(region, species_id: str) -> str:
    return f"{region.value} {format_species(species_id)}"


def _by_urgency(insights: Iterable[AdvisorInsight]) -> List[AdvisorInsight]:
    return sorted(insights, key=lambda i: urgency_rank(i.urgency))


class AdvisorEngine:
    """Stateless insight generator; every method is a pure function of its inputs."""

    # ==========================================================================
    # PUBLIC API
    # ==========================================================================

    def generate(
        self,
        *,
        as_of: date,
        milestones: Sequence[Milestone] = (),
        missed_deadlines: Sequence[MissedDeadline] = (),
        violations: Sequence = (),
        health: Optional[HealthScoreBreakdown] = None,
        burn_rate: Sequence[BurnRateEntry] = (),
        savings_goals: Sequence[SavingsGoal] = (),
        user_goals: Sequence[UserGoal] = (),
        temporal: Optional[TemporalContext] = None,
    ) -> List[AdvisorInsight]:
        candidates: List[AdvisorInsight] = []
        candidates.extend(self._deadline_insights(milestones, as_of))
        candidates.extend(self._missed_deadline_insights(missed_deadlines))
        if health is not None:
            candidates.extend(self._health_insights(health))
        candidates.extend(self._discipline_insights(violations))
        if temporal is not None:
            candidates.extend(self._temporal_insights(temporal, milestones, as_of))
        candidates.extend(self._creep_insights(burn_rate))
        candidates.extend(self._savings_insights(savings_goals, user_goals, milestones, as_of))

        seen = set()
        unique = []
        for insight in candidates:
            if insight.id in seen:
                continue
            seen.add(insight.id)
            unique.append(insight)

        ranked = _by_urgency(unique)[:MAX_VISIBLE_INSIGHTS]
        logger.info(f"Advisor: {len(ranked)} of {len(unique)} insights visible")
        return ranked

    # ==========================================================================
    # SUB-GENERATORS
    # ==========================================================================

    def _deadline_insights(self, milestones: Sequence[Milestone], as_of: date) -> List[AdvisorInsight]:
        upcoming = [
            m for m in milestones
            if m.due_date is not None and not m.completed and (m.due_date - as_of).days > 0
        ]
        upcoming.sort(key=lambda m: m.due_date)

        insights = []
        for m in upcoming[:MAX_DEADLINE_INSIGHTS]:
            days = (m.due_date - as_of).days
            label = _label(m.region, m.species_id)
            if days <= RED_DEADLINE_DAYS:
                urgency = Urgency.IMMEDIATE
                interpretation = f"{label} closes in {days} days. Miss this and you lose a year of point building."
                recommendation = f"Submit your application today. Cost: {format_money(m.total_cost)}."
            elif days <= AMBER_DEADLINE_DAYS:
                urgency = Urgency.SOON
                interpretation = f"{label} deadline is {days} days out. Time to finalize your unit choices."
                recommendation = "Review your unit selections and budget, then apply before the deadline."
            else:
                urgency = Urgency.INFORMATIONAL
                interpretation = f"{label} closes in ~{days} days. No rush, but start thinking about your approach."
                recommendation = "Use this time to research units and confirm your strategy."

            insights.append(AdvisorInsight(
                id=f"deadline-{m.id}",
                category="deadline",
                urgency=urgency,
                interpretation=interpretation,
                recommendation=recommendation,
                call_to_action=CTA_DEADLINES,
            ))
        return insights

    def _missed_deadline_insights(self, missed: Sequence[MissedDeadline]) -> List[AdvisorInsight]:
        return [
            AdvisorInsight(
                id=f"missed-{m.milestone_id}",
                category="deadline",
                urgency=Urgency.IMMEDIATE,
                interpretation=(
                    f"The {m.year} {_label(m.region, m.species_id)} application closed on "
                    f"{m.deadline.isoformat()} without being marked complete."
                ),
                recommendation="Confirm whether you applied. If not, buy a point where the region allows it.",
                call_to_action=CTA_DEADLINES,
            )
            for m in missed
        ]

    def _discipline_insights(self, violations: Sequence) -> List[AdvisorInsight]:
        ordered = sorted(violations, key=lambda v: severity_rank(v.severity))
        insights = []
        for violation in ordered[:MAX_DISCIPLINE_INSIGHTS]:
            insight_id, interpretation, recommendation, cta, context = self._describe_violation(violation)
            insights.append(AdvisorInsight(
                id=insight_id,
                category="discipline",
                urgency=SEVERITY_TO_URGENCY[Severity(violation.severity)],
                interpretation=interpretation,
                recommendation=recommendation,
                call_to_action=cta,
                portfolio_context=context,
            ))
        return insights

    def _describe_violation(self, violation):
        if isinstance(violation, PlanConflict):
            regions = sorted({a.region.value for a in violation.affected_actions})
            context = f"Affected: {', '.join(regions)}" if regions else None
            return (f"discipline-{violation.id}", violation.description,
                    violation.resolution, CTA_STRATEGY, context)
        if isinstance(violation, PurgeAlert):
            return (f"discipline-purge-{violation.region.value}-{violation.species_id}",
                    violation.message,
                    "Apply or buy a point before the purge year to keep the position alive.",
                    CTA_POINTS, f"{violation.current_points} points at risk")
        if isinstance(violation, FiduciaryAlert):
            return (f"discipline-{violation.id}", violation.description,
                    violation.recommendation or "Review the affected positions.",
                    CTA_STRATEGY, None)
        raise TypeError(f"Unsupported violation type: {type(violation).__name__}")

    def _health_insights(self, health: HealthScoreBreakdown) -> List[AdvisorInsight]:
        score = health.composite
        weakest_name, weakest_score = min(
            ((label, getattr(health, attr)) for attr, label in HEALTH_DIMENSIONS),
            key=lambda pair: pair[1],
        )

        if score < HEALTH_LOW:
            insight = AdvisorInsight(
                id="portfolio-health-low",
                category="portfolio",
                urgency=Urgency.SOON,
                interpretation=(
                    f"Your portfolio health is {score:g}/100. "
                    f"Weakest dimension: {weakest_name} at {weakest_score:g}/100."
                ),
                recommendation=HEALTH_RECOMMENDATIONS[weakest_name],
                call_to_action=CTA_STRATEGY,
            )
        elif score >= HEALTH_STRONG:
            insight = AdvisorInsight(
                id="portfolio-health-strong",
                category="portfolio",
                urgency=Urgency.POSITIVE,
                interpretation=f"Your portfolio is in strong shape at {score:g}/100.",
                recommendation="Maintain your current course. Focus on executing upcoming deadlines.",
                call_to_action=CTA_STRATEGY,
            )
        else:
            insight = AdvisorInsight(
                id="portfolio-health-mid",
                category="portfolio",
                urgency=Urgency.INFORMATIONAL,
                interpretation=(
                    f"Your portfolio health is {score:g}/100. "
                    f"Room for improvement in {weakest_name} ({weakest_score:g}/100)."
                ),
                recommendation=HEALTH_RECOMMENDATIONS[weakest_name],
                call_to_action=CTA_STRATEGY,
            )
        return [insight]

    def _creep_insights(self, burn_rate: Sequence[BurnRateEntry]) -> List[AdvisorInsight]:
        dead = sorted(
            (e for e in burn_rate if e.is_dead_asset),
            key=lambda e: e.pcv,
            reverse=True,
        )
        return [
            AdvisorInsight(
                id=f"creep-{e.region.value}-{e.species_id}",
                category="point_creep",
                urgency=Urgency.SOON,
                interpretation=(
                    f"{_label(e.region, e.species_id)} requirements are climbing {e.pcv:g} pts/yr, "
                    f"as fast as you can earn points. At {e.current_points} points "
                    f"you will not catch the {e.required_display}-point line."
                ),
                recommendation="Stop buying points here or redirect the spend to a unit you can still reach.",
                call_to_action=CTA_POINTS,
                portfolio_context=f"{e.current_points} points held",
            )
            for e in dead[:MAX_CREEP_INSIGHTS]
        ]

    def _temporal_insights(
        self,
        temporal: TemporalContext,
        milestones: Sequence[Milestone],
        as_of: date,
    ) -> List[AdvisorInsight]:
        days_away = temporal.days_since_last_visit(as_of)
        prefix = format_temporal_prefix(days_away)
        if prefix is None:
            return []

        # Outside the amber window at the last visit, inside it now
        newly_urgent = [
            m for m in milestones
            if m.due_date is not None
            and 0 < (m.due_date - as_of).days <= AMBER_DEADLINE_DAYS
            and (m.due_date - temporal.last_visit).days > AMBER_DEADLINE_DAYS
        ]

        if days_away > LONG_ABSENCE_DAYS:
            pending = sum(1 for m in milestones if not m.completed)
            completed = len(milestones) - pending
            if newly_urgent:
                change = f"{len(newly_urgent)} deadline(s) became urgent while you were away."
            else:
                change = "No urgent changes."
            return [AdvisorInsight(
                id="temporal-welcome-back",
                category="temporal",
                urgency=Urgency.INFORMATIONAL,
                interpretation=f"{prefix}, {pending} milestone(s) are pending and {completed} completed. {change}",
                recommendation="Review your upcoming deadlines and confirm your strategy is still on track.",
                call_to_action=CTA_DEADLINES,
                temporal_context=prefix,
            )]

        if newly_urgent:
            labels = ", ".join(_label(m.region, m.species_id) for m in newly_urgent[:3])
            verb = "has" if len(newly_urgent) == 1 else "have"
            return [AdvisorInsight(
                id="temporal-urgency-change",
                category="temporal",
                urgency=Urgency.SOON,
                interpretation=f"{prefix}, {labels} {verb} moved into the 30-day window.",
                recommendation="Check these deadlines now so no application window slips by.",
                call_to_action=CTA_DEADLINES,
                temporal_context=prefix,
            )]
        return []

    def _savings_insights(
        self,
        savings_goals: Sequence[SavingsGoal],
        user_goals: Sequence[UserGoal],
        milestones: Sequence[Milestone],
        as_of: date,
    ) -> List[AdvisorInsight]:
        """Red -> soon, amber -> informational, green suppressed. Never immediate."""
        goals = {g.id: g for g in user_goals}
        insights = []
        for sg in savings_goals:
            goal = goals.get(sg.goal_id)
            if goal is None:
                continue
            target_cost = derive_target_cost(milestones, sg.goal_id)
            if target_cost <= 0:
                continue

            target_date = target_date_for(goal)
            status = calculate_savings_status(
                target_cost, sg.current_saved, sg.monthly_savings, target_date, as_of
            )
            if status == SavingsStatus.GREEN:
                continue

            delta = calculate_catch_up_delta(
                target_cost, sg.current_saved, sg.monthly_savings, target_date, as_of
            )
            label = _label(goal.region, goal.species_id)
            context = f"{format_money(sg.current_saved)} of {format_money(target_cost)} saved"
            extra = format_money(round(delta))

            if status == SavingsStatus.RED:
                insights.append(AdvisorInsight(
                    id=f"savings-behind-{sg.goal_id}",
                    category="savings",
                    urgency=Urgency.SOON,
                    interpretation=(
                        f"You're {format_money(target_cost - sg.current_saved)} short on your {label} fund. "
                        f"Add {extra}/mo to get back on track."
                    ),
                    recommendation=(
                        f"Raise monthly savings from {format_money(sg.monthly_savings)} to "
                        f"{format_money(round(sg.monthly_savings + delta))} to meet your {goal.target_year} target."
                    ),
                    call_to_action=CallToAction(label="Update Savings", target="/budget"),
                    portfolio_context=context,
                ))
            else:
                insights.append(AdvisorInsight(
                    id=f"savings-warning-{sg.goal_id}",
                    category="savings",
                    urgency=Urgency.INFORMATIONAL,
                    interpretation=f"Your {label} fund is slightly behind. {extra} extra per month closes the gap.",
                    recommendation=f"Increase monthly savings by {extra} to stay on track for {goal.target_year}.",
                    call_to_action=CallToAction(label="View Savings", target="/budget"),
                    portfolio_context=context,
                ))

        return _by_urgency(insights)[:MAX_SAVINGS_INSIGHTS]


def generate_advisor_insights(
    *,
    as_of: date,
    milestones: Sequence[Milestone] = (),
    missed_deadlines: Sequence[MissedDeadline] = (),
    violations: Sequence = (),
    health: Optional[HealthScoreBreakdown] = None,
    burn_rate: Sequence[BurnRateEntry] = (),
    savings_goals: Sequence[SavingsGoal] = (),
    user_goals: Sequence[UserGoal] = (),
    temporal: Optional[TemporalContext] = None,
) -> List[AdvisorInsight]:
    """Factory function to run the full advisor pipeline."""
    return AdvisorEngine().generate(
        as_of=as_of,
        milestones=milestones,
        missed_deadlines=missed_deadlines,
        violations=violations,
        health=health,
        burn_rate=burn_rate,
        savings_goals=savings_goals,
        user_goals=user_goals,
        temporal=temporal,
    )
