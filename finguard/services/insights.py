"""Month-to-date insights: pace projection, savings outlook and a health label."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from finguard.schemas.common import SpendingHealth
from finguard.schemas.insights import InsightsResult, InsightsSnapshot
from finguard.utils.money import pct, round_half_up, rs

# Upper bounds (exclusive) of budget used, in %, for each health label
HEALTH_BANDS = (
    (50.0, SpendingHealth.EXCELLENT),
    (80.0, SpendingHealth.GOOD),
    (100.0, SpendingHealth.FAIR),
)
ON_TRACK_PCT = 80.0

SAFE_DEFAULT_INSIGHTS = (
    "Analysis temporarily unavailable.",
    "Your spending data is unchanged; try again in a moment.",
    "Keep logging expenses so the next analysis stays accurate.",
)


@dataclass(frozen=True)
class PeriodFacts:
    budget_pct: float
    daily_avg: float
    projected_spend: float
    projected_save: float
    days_left: int
    budget_remaining: float
    daily_budget_left: int
    category_ranking: Tuple[Tuple[str, float], ...]
    health: SpendingHealth


def spending_health(budget_pct: float) -> SpendingHealth:
    for upper, label in HEALTH_BANDS:
        if budget_pct < upper:
            return label
    return SpendingHealth.POOR


def months_to_goal(savings_target: float, monthly_save: float) -> Optional[int]:
    if monthly_save <= 0:
        return None
    months = savings_target / monthly_save
    if math.isinf(months):
        return None
    return math.ceil(months)


def compute_period_facts(s: InsightsSnapshot) -> PeriodFacts:
    budget_pct = s.month_total / s.monthly_budget * 100
    daily_avg = s.month_total / max(s.days_elapsed, 1)
    projected_spend = float(round_half_up(daily_avg * s.days_in_month))
    projected_save = max(s.monthly_income - projected_spend, 0)
    days_left = max(s.days_in_month - s.days_elapsed, 1)
    budget_remaining = max(s.monthly_budget - s.month_total, 0)
    ranking = tuple(
        sorted(
            ((cat.value, amount) for cat, amount in s.category_breakdown.items()),
            key=lambda kv: (-kv[1], kv[0]),
        )
    )
    return PeriodFacts(
        budget_pct=budget_pct,
        daily_avg=daily_avg,
        projected_spend=projected_spend,
        projected_save=projected_save,
        days_left=days_left,
        budget_remaining=budget_remaining,
        daily_budget_left=int(round_half_up(max(budget_remaining / days_left, 0))),
        category_ranking=ranking,
        health=spending_health(budget_pct),
    )


def result_from_facts(s: InsightsSnapshot, f: PeriodFacts) -> InsightsResult:
    used = pct(f.budget_pct, 1)
    if f.budget_pct < ON_TRACK_PCT:
        utilization = f"Budget utilization is {used}%, so you're on track. Keep it up."
    else:
        utilization = (
            f"Budget utilization is {used}%, so tighten spending for the remaining "
            f"{f.days_left} days."
        )
    insights = [
        f"You've spent {rs(s.month_total)} in {s.days_elapsed} days, averaging "
        f"{rs(f.daily_avg)}/day.",
        f"At this pace, month-end spending will be {rs(f.projected_spend)}, "
        f"saving {rs(f.projected_save)}.",
        utilization,
    ]
    forecast = (
        f"Projected: {rs(f.projected_spend)} spending, {rs(f.projected_save)} "
        f"savings by month-end."
    )
    months = months_to_goal(s.savings_target, f.projected_save)
    if months is not None:
        unit = "month" if months == 1 else "months"
        advice = (
            f"At {rs(f.projected_save)}/month, you'll reach your {s.savings_goal} "
            f"goal of {rs(s.savings_target)} in {months} {unit}."
        )
    else:
        advice = f"Reduce spending to start saving towards your {s.savings_goal} goal."
    return InsightsResult(
        insights=insights,
        month_end_forecast=forecast,
        savings_advice=advice,
        spending_health=f.health,
    )


def summarize_period(s: InsightsSnapshot) -> InsightsResult:
    return result_from_facts(s, compute_period_facts(s))


def safe_default_insights() -> InsightsResult:
    return InsightsResult(
        insights=list(SAFE_DEFAULT_INSIGHTS),
        month_end_forecast="Forecast unavailable right now.",
        savings_advice="Savings advice unavailable right now.",
        spending_health=SpendingHealth.GOOD,
    )


__all__ = [
    "PeriodFacts",
    "spending_health",
    "months_to_goal",
    "compute_period_facts",
    "result_from_facts",
    "summarize_period",
    "safe_default_insights",
]
