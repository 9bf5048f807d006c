import logging

from fastapi import APIRouter, Depends

from finguard.deps.narrative import get_narrative
from finguard.errors import InternalError
from finguard.metrics import intervention_verdicts_total
from finguard.schemas.common import Severity
from finguard.schemas.intervention import ClassifyExpenseRequest, Verdict
from finguard.services.intervention import (
    assess_expense,
    safe_default_verdict,
    verdict_from_assessment,
)
from finguard.services.narrative import NarrativeRewriter
from finguard.utils.dates import utcnow
from finguard.utils.money import pct

logger = logging.getLogger(__name__)

router = APIRouter(tags=["intervention"])


def _fallback_budget_after(req: ClassifyExpenseRequest) -> str:
    try:
        return pct((req.monthly_spending + req.amount) / req.monthly_budget * 100)
    except (ArithmeticError, TypeError, ValueError):
        return "0"


@router.post("/intervention", response_model=Verdict)
async def intervention(
    req: ClassifyExpenseRequest,
    narrative: NarrativeRewriter = Depends(get_narrative),
) -> Verdict:
    """Classify a proposed purchase before it is committed.

    The verdict is decided by the rule engine; the narrative provider, when
    configured, may only reword its message and pattern.
    """
    try:
        assessment = assess_expense(req.to_proposal(utcnow()), req.to_snapshot())
        verdict = verdict_from_assessment(assessment)
    except Exception as e:
        logger.exception("intervention pipeline failed")
        fallback = safe_default_verdict(_fallback_budget_after(req))
        raise InternalError(
            "analyze expense", fallback.model_dump(by_alias=True, mode="json")
        ) from e

    verdict = await narrative.rewrite_verdict(verdict, assessment)

    if verdict.severity.rank >= Severity.HIGH.rank:
        logger.info(
            "intervention %s/%s budgetAfter=%s source=%s",
            verdict.severity.value,
            verdict.recommendation.value,
            verdict.budget_after,
            verdict.source.value,
        )
    intervention_verdicts_total.labels(
        severity=verdict.severity.value,
        recommendation=verdict.recommendation.value,
        source=verdict.source.value,
    ).inc()
    return verdict
