from fastapi import Request

from finguard.config import Settings, settings
from finguard.services.narrative import NarrativeRewriter


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or settings


def get_narrative(request: Request) -> NarrativeRewriter:
    """Rewriter built at startup; rule-engine only when the app runs without lifespan."""
    rewriter = getattr(request.app.state, "narrative", None)
    if rewriter is None:
        rewriter = NarrativeRewriter.from_settings(get_settings(request), None)
        request.app.state.narrative = rewriter
    return rewriter
