"""
Deterministic pre-purchase intervention engine.

assess_expense() computes every fact about a proposed purchase (budget
projection, category frequency, today's spend, item price sanity) and
classify_expense() turns those facts into a Verdict. Both are pure: no I/O,
no clock reads unless ``now`` is omitted, no mutation of the inputs.

Precedence: a price flag (amount >= 1.5x the matched item's typical max)
decides the verdict on its own; budget thresholds only apply when the price
looks normal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Tuple

from finguard.config import settings
from finguard.core.price_ranges import PriceRange, lookup_price_range
from finguard.schemas.common import Recommendation, Severity
from finguard.schemas.intervention import (
    ExpenseProposal,
    RecentExpense,
    SpendingSnapshot,
    Verdict,
)
from finguard.utils.dates import same_day, utcnow
from finguard.utils.money import pct, rs

# price ratio = amount / matched range max
PRICEY_RATIO = 1.5
OVERPRICED_RATIO = 3.0
EXTREME_RATIO = 5.0

# afterPurchase % thresholds (strictly greater than)
CRITICAL_PCT = 100.0
HIGH_PCT = 85.0
MEDIUM_PCT = 60.0
PRICEY_HIGH_PCT = 80.0

PATTERN_MIN_COUNT = 3
FREQUENCY_REMARK_MIN_COUNT = 2
HIGH_SPEND_DAY_SHARE = 0.1

SAFE_DEFAULT_MESSAGE = "Could not analyze this expense right now. Use your own judgment."


@dataclass(frozen=True)
class PriceCheck:
    matched: str
    range: PriceRange
    ratio: float

    @property
    def level(self) -> str:
        if self.ratio >= EXTREME_RATIO:
            return "extreme"
        if self.ratio >= OVERPRICED_RATIO:
            return "overpriced"
        if self.ratio >= PRICEY_RATIO:
            return "pricey"
        return "ok"

    @property
    def flagged(self) -> bool:
        return self.level != "ok"

    def range_label(self) -> str:
        return f"{settings.CURRENCY_PREFIX}{self.range.label()}"


@dataclass(frozen=True)
class ExpenseAssessment:
    proposal: ExpenseProposal
    snapshot: SpendingSnapshot
    percent_used: float
    after_purchase: float
    remaining: float
    same_category_count: int
    today_spent: float
    expenses_considered: int
    price_check: PriceCheck

    @property
    def pattern(self) -> Optional[str]:
        if self.same_category_count >= PATTERN_MIN_COUNT:
            return f"Frequent {self.proposal.category.value} spending detected"
        return None

    @property
    def budget_after(self) -> str:
        return pct(self.after_purchase)


def recent_window(
    expenses: Sequence[RecentExpense], window: int
) -> Tuple[RecentExpense, ...]:
    """Most recent ``window`` entries of a chronological (newest last) history."""
    if window <= 0:
        return ()
    return tuple(expenses[-window:])


def assess_expense(
    proposal: ExpenseProposal,
    snapshot: SpendingSnapshot,
    *,
    now: Optional[datetime] = None,
    window: Optional[int] = None,
) -> ExpenseAssessment:
    now = now or utcnow()
    history = recent_window(
        snapshot.recent_expenses,
        settings.RECENT_EXPENSES_WINDOW if window is None else window,
    )
    budget = snapshot.monthly_budget
    percent_used = snapshot.monthly_spending / budget * 100
    after_purchase = percent_used + proposal.amount / budget * 100

    same_category = sum(1 for e in history if e.category == proposal.category)
    today_spent = sum(e.amount for e in history if same_day(e.date, now))

    matched, price_range = lookup_price_range(proposal.description, proposal.category.value)
    price_check = PriceCheck(
        matched=matched, range=price_range, ratio=proposal.amount / price_range.max
    )
    return ExpenseAssessment(
        proposal=proposal,
        snapshot=snapshot,
        percent_used=percent_used,
        after_purchase=after_purchase,
        remaining=budget - snapshot.monthly_spending,
        same_category_count=same_category,
        today_spent=today_spent,
        expenses_considered=len(history),
        price_check=price_check,
    )


def _left_phrase(remaining: float) -> str:
    if remaining > 0:
        return f"You have {rs(remaining)} left in your budget"
    return f"You're already {rs(-remaining)} over budget"


def _price_verdict(a: ExpenseAssessment) -> Tuple[Severity, Recommendation, str]:
    pc = a.price_check
    p = a.proposal
    what = (p.description or "").strip() or p.category.value
    if pc.level in ("extreme", "overpriced"):
        message = (
            f"{rs(p.amount)} for {what}? That's way above typical pricing for "
            f"{pc.matched} ({pc.range_label()}). Double-check this amount."
        )
        if pc.level == "extreme":
            return Severity.CRITICAL, Recommendation.STOP, message
        return Severity.HIGH, Recommendation.CAUTION, message
    # pricey: 1.5x-3x, budget context decides between medium and high
    severity = Severity.HIGH if a.after_purchase > PRICEY_HIGH_PCT else Severity.MEDIUM
    message = (
        f"{rs(p.amount)} is on the higher side for {pc.matched} "
        f"(typical: {pc.range_label()}). {_left_phrase(a.remaining)} and this would "
        f"take you to {pct(a.after_purchase)}%, so make sure it's worth it."
    )
    return severity, Recommendation.CAUTION, message


def _budget_verdict(a: ExpenseAssessment) -> Tuple[Severity, Recommendation, str]:
    p = a.proposal
    s = a.snapshot
    cat = p.category.value
    used, after = pct(a.percent_used), pct(a.after_purchase)

    if a.after_purchase > CRITICAL_PCT:
        return (
            Severity.CRITICAL,
            Recommendation.STOP,
            f"This purchase of {rs(p.amount)} will push you over your "
            f"{rs(s.monthly_budget)} budget. You've already used {used}% and would "
            f"reach {after}%. I strongly recommend reconsidering.",
        )
    if a.after_purchase > HIGH_PCT:
        frequency = ""
        if a.same_category_count >= FREQUENCY_REMARK_MIN_COUNT:
            frequency = (
                f" You've made {a.same_category_count} {cat} purchases recently."
            )
        return (
            Severity.HIGH,
            Recommendation.CAUTION,
            f"You're at {used}% of your budget with {rs(a.remaining)} remaining. "
            f"This {rs(p.amount)} {cat} expense will bring you to {after}%."
            f"{frequency} Consider if this is essential.",
        )
    if a.after_purchase > MEDIUM_PCT or a.same_category_count >= PATTERN_MIN_COUNT:
        if a.today_spent > s.monthly_budget * HIGH_SPEND_DAY_SHARE:
            message = (
                f"You've already spent {rs(a.today_spent)} today. Adding "
                f"{rs(p.amount)} for {cat} makes today a high-spend day. Your budget "
                f"is at {used}% and would reach {after}%, so be mindful of the pattern."
            )
        elif a.same_category_count >= PATTERN_MIN_COUNT:
            message = (
                f"You've logged {a.same_category_count} {cat} expenses recently. "
                f"This is becoming a pattern. {_left_phrase(a.remaining)}, so you "
                f"can afford it, but watch this category closely."
            )
        else:
            message = (
                f"Your budget is at {used}% with {rs(a.remaining)} remaining. This "
                f"{rs(p.amount)} purchase takes you to {after}%. Stay consistent."
            )
        return Severity.MEDIUM, Recommendation.CAUTION, message

    return (
        Severity.LOW,
        Recommendation.PROCEED,
        f"You're well within your budget at {used}%. {rs(p.amount)} for {cat} is "
        f"perfectly fine. You still have {rs(a.remaining)} available. Go ahead!",
    )


def verdict_from_assessment(a: ExpenseAssessment) -> Verdict:
    if a.price_check.flagged:
        severity, recommendation, message = _price_verdict(a)
    else:
        severity, recommendation, message = _budget_verdict(a)
    return Verdict(
        severity=severity,
        recommendation=recommendation,
        message=message,
        pattern=a.pattern,
        budget_after=a.budget_after,
    )


def classify_expense(
    proposal: ExpenseProposal,
    snapshot: SpendingSnapshot,
    *,
    now: Optional[datetime] = None,
    window: Optional[int] = None,
) -> Verdict:
    """Classify one proposed expense against the month so far."""
    return verdict_from_assessment(
        assess_expense(proposal, snapshot, now=now, window=window)
    )


def safe_default_verdict(budget_after: str = "0") -> Verdict:
    """Low/proceed verdict returned when the pipeline itself fails."""
    return Verdict(
        severity=Severity.LOW,
        recommendation=Recommendation.PROCEED,
        message=SAFE_DEFAULT_MESSAGE,
        pattern=None,
        budget_after=budget_after,
    )


__all__ = [
    "PriceCheck",
    "ExpenseAssessment",
    "assess_expense",
    "classify_expense",
    "verdict_from_assessment",
    "recent_window",
    "safe_default_verdict",
]
