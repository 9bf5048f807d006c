"""
Best-effort narrative rewrite of deterministic results.

The provider may reword the prose of a Verdict or InsightsResult, but never
the decision: severity, recommendation, budgetAfter and spendingHealth always
keep their computed values. Any failure (no client, timeout, transport, bad
status, unparseable or incomplete reply, unexpected error) returns the
original object unchanged with source=rule-engine, counted and logged with a
short reason.
"""

from __future__ import annotations

import json
import logging
import random
import re
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from finguard.config import Settings
from finguard.errors import ProviderError
from finguard.metrics import narrative_fallback_total, narrative_rewrites_total
from finguard.providers.google_ai import Sampling
from finguard.schemas.common import Recommendation, Severity, Source, SpendingHealth, WireModel
from finguard.schemas.insights import InsightsResult, InsightsSnapshot
from finguard.schemas.intervention import Verdict
from finguard.services.insights import PeriodFacts
from finguard.services.intervention import ExpenseAssessment
from finguard.services.prompts.narrative_prompts import (
    INSIGHTS_SYSTEM,
    INSIGHTS_TEMPLATE,
    INTERVENTION_SYSTEM,
    INTERVENTION_TEMPLATE,
)
from finguard.utils.money import format_compact, pct, rs

logger = logging.getLogger(__name__)

MAX_PROSE_LEN = 600
_JSON_OBJECT = re.compile(r"\{.*\}", re.S)
_ENUM_FIELDS = {"severity", "recommendation", "spendingHealth", "spending_health"}


class TextProvider(Protocol):
    async def generate(self, prompt: str, sampling: Sampling) -> str: ...


class _VerdictReply(WireModel):
    severity: Severity
    message: str
    recommendation: Recommendation
    pattern: Optional[str] = None


class _InsightsReply(WireModel):
    insights: List[str]
    month_end_forecast: str
    savings_advice: str
    spending_health: SpendingHealth


def extract_json_object(text: str) -> Dict[str, Any]:
    """Pull the outermost ``{...}`` out of a model reply (code fences, chatter)."""
    m = _JSON_OBJECT.search(text or "")
    if not m:
        raise ProviderError("no_json")
    try:
        data = json.loads(m.group(0))
    except (ValueError, RecursionError) as e:
        raise ProviderError("bad_json", str(e)) from e
    if not isinstance(data, dict):
        raise ProviderError("bad_json", "reply is not an object")
    return data


def _parse_reply(model: type, data: Dict[str, Any]):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        for err in e.errors():
            loc = err.get("loc") or ("",)
            if loc[0] in _ENUM_FIELDS and err.get("type") == "enum":
                raise ProviderError("invalid_enum", str(loc[0])) from e
        raise ProviderError("incomplete", "reply does not match the response shape") from e


def _prose(value: Optional[str]) -> str:
    text = (value or "").strip()
    if not text or len(text) > MAX_PROSE_LEN:
        raise ProviderError("incomplete", "prose field empty or too long")
    return text


def _provider_pattern(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    if not text or text.lower() == "null":
        return None
    return text[:MAX_PROSE_LEN]


class NarrativeRewriter:
    def __init__(
        self,
        client: Optional[TextProvider],
        *,
        intervention_sampling: Sampling,
        insights_sampling: Sampling,
        rng: Optional[random.Random] = None,
    ):
        self.client = client
        self.intervention_sampling = intervention_sampling
        self.insights_sampling = insights_sampling
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(
        cls,
        s: Settings,
        client: Optional[TextProvider],
        rng: Optional[random.Random] = None,
    ) -> "NarrativeRewriter":
        return cls(
            client,
            intervention_sampling=Sampling(
                temperature=s.INTERVENTION_TEMPERATURE,
                top_p=s.INTERVENTION_TOP_P,
                top_k=s.INTERVENTION_TOP_K,
                max_output_tokens=s.INTERVENTION_MAX_TOKENS,
            ),
            insights_sampling=Sampling(
                temperature=s.INSIGHTS_TEMPERATURE,
                top_p=s.INSIGHTS_TOP_P,
                top_k=s.INSIGHTS_TOP_K,
                max_output_tokens=s.INSIGHTS_MAX_TOKENS,
            ),
            rng=rng,
        )

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _seed(self) -> int:
        return self.rng.randint(0, 999_999)

    async def _ask(self, prompt: str, sampling: Sampling) -> Dict[str, Any]:
        if self.client is None:
            raise ProviderError("disabled")
        text = await self.client.generate(prompt, sampling)
        return extract_json_object(text)

    def _fallback(self, kind: str, err: ProviderError) -> None:
        outcome = "skipped" if err.reason == "disabled" else "fallback"
        narrative_rewrites_total.labels(kind=kind, outcome=outcome).inc()
        narrative_fallback_total.labels(kind=kind, reason=err.reason).inc()
        if outcome == "fallback":
            logger.info("narrative %s fallback: %s", kind, err)

    # ---- intervention ------------------------------------------------------

    def verdict_prompt(self, verdict: Verdict, a: ExpenseAssessment) -> str:
        p = a.proposal
        s = a.snapshot
        pc = a.price_check
        return INTERVENTION_TEMPLATE.format(
            system=INTERVENTION_SYSTEM.format(seed=self._seed()),
            monthly_budget=rs(s.monthly_budget),
            monthly_spending=rs(s.monthly_spending),
            percent_used=pct(a.percent_used),
            remaining=rs(a.remaining),
            amount=rs(p.amount),
            category=p.category.value,
            description=f" ({p.description})" if p.description else "",
            budget_after=verdict.budget_after,
            same_category_count=a.same_category_count,
            today_spent=rs(a.today_spent),
            expenses_considered=a.expenses_considered,
            matched=pc.matched,
            price_range=pc.range_label(),
            price_ratio=pct(pc.ratio, 1),
            severity=verdict.severity.value,
            recommendation=verdict.recommendation.value,
            pattern=verdict.pattern or "null",
            message=verdict.message,
        )

    async def rewrite_verdict(self, verdict: Verdict, assessment: ExpenseAssessment) -> Verdict:
        try:
            data = await self._ask(
                self.verdict_prompt(verdict, assessment), self.intervention_sampling
            )
            reply = _parse_reply(_VerdictReply, data)
            message = _prose(reply.message)
        except ProviderError as e:
            self._fallback("intervention", e)
            return verdict
        except Exception as e:
            logger.exception("narrative intervention rewrite failed")
            self._fallback("intervention", ProviderError("unexpected", type(e).__name__))
            return verdict

        update: Dict[str, Any] = {"message": message, "source": Source.NARRATIVE_PROVIDER}
        pattern = _provider_pattern(reply.pattern)
        if verdict.pattern is not None and pattern is not None:
            update["pattern"] = pattern
        narrative_rewrites_total.labels(kind="intervention", outcome="rewritten").inc()
        return verdict.model_copy(update=update)

    # ---- insights ----------------------------------------------------------

    def insights_prompt(
        self, result: InsightsResult, s: InsightsSnapshot, f: PeriodFacts
    ) -> str:
        categories = ", ".join(f"{cat}: {format_compact(amount)}" for cat, amount in f.category_ranking)
        draft = "\n".join(
            [f"- {line}" for line in result.insights]
            + [f"- Forecast: {result.month_end_forecast}", f"- Savings: {result.savings_advice}"]
        )
        return INSIGHTS_TEMPLATE.format(
            system=INSIGHTS_SYSTEM.format(seed=self._seed()),
            monthly_income=rs(s.monthly_income),
            monthly_budget=rs(s.monthly_budget),
            month_total=rs(s.month_total),
            budget_pct=pct(f.budget_pct, 1),
            days_elapsed=s.days_elapsed,
            days_in_month=s.days_in_month,
            days_left=f.days_left,
            budget_remaining=rs(f.budget_remaining),
            daily_budget_left=rs(f.daily_budget_left),
            daily_avg=rs(f.daily_avg),
            projected_spend=rs(f.projected_spend),
            projected_save=rs(f.projected_save),
            categories=categories or "no expenses yet",
            savings_goal=s.savings_goal,
            savings_target=rs(s.savings_target),
            transaction_count=s.transaction_count,
            spending_health=result.spending_health.value,
            draft=draft,
        )

    async def rewrite_insights(
        self, result: InsightsResult, snapshot: InsightsSnapshot, facts: PeriodFacts
    ) -> InsightsResult:
        try:
            data = await self._ask(
                self.insights_prompt(result, snapshot, facts), self.insights_sampling
            )
            reply = _parse_reply(_InsightsReply, data)
            if len(reply.insights) != 3:
                raise ProviderError("incomplete", f"{len(reply.insights)} insights")
            insights = [_prose(line) for line in reply.insights]
            forecast = _prose(reply.month_end_forecast)
            advice = _prose(reply.savings_advice)
        except ProviderError as e:
            self._fallback("insights", e)
            return result
        except Exception as e:
            logger.exception("narrative insights rewrite failed")
            self._fallback("insights", ProviderError("unexpected", type(e).__name__))
            return result

        narrative_rewrites_total.labels(kind="insights", outcome="rewritten").inc()
        return result.model_copy(
            update={
                "insights": insights,
                "month_end_forecast": forecast,
                "savings_advice": advice,
                "source": Source.NARRATIVE_PROVIDER,
            }
        )


__all__ = ["NarrativeRewriter", "TextProvider", "extract_json_object", "MAX_PROSE_LEN"]
