import logging

from fastapi import APIRouter, Depends

from finguard.deps.narrative import get_narrative
from finguard.errors import InternalError
from finguard.metrics import insights_results_total
from finguard.schemas.insights import InsightsResult, InsightsSnapshot
from finguard.services.insights import (
    compute_period_facts,
    result_from_facts,
    safe_default_insights,
)
from finguard.services.narrative import NarrativeRewriter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["insights"])


@router.post("/insights", response_model=InsightsResult)
async def insights(
    snapshot: InsightsSnapshot,
    narrative: NarrativeRewriter = Depends(get_narrative),
) -> InsightsResult:
    """Month-to-date insights, forecast and savings outlook."""
    try:
        facts = compute_period_facts(snapshot)
        result = result_from_facts(snapshot, facts)
    except Exception as e:
        logger.exception("insights pipeline failed")
        fallback = safe_default_insights()
        raise InternalError(
            "generate insights", fallback.model_dump(by_alias=True, mode="json")
        ) from e

    result = await narrative.rewrite_insights(result, snapshot, facts)

    insights_results_total.labels(
        health=result.spending_health.value, source=result.source.value
    ).inc()
    return result
