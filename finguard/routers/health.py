from fastapi import APIRouter, Depends

from finguard.config import Settings
from finguard.deps.narrative import get_narrative, get_settings
from finguard.services.narrative import NarrativeRewriter
from finguard.version import version_info

router = APIRouter(tags=["health"])


@router.get("/health")
def health(
    narrative: NarrativeRewriter = Depends(get_narrative),
    s: Settings = Depends(get_settings),
):
    # Only whether a provider is wired in; the credential itself is never echoed
    return {
        "ok": True,
        "narrative": {"configured": narrative.enabled, "model": s.NARRATIVE_MODEL},
        "version": version_info(),
    }
