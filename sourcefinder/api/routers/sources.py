import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from sourcefinder.api.dependencies import get_discovery
from sourcefinder.api.models import SuggestRequest, SuggestResponse
from sourcefinder.discovery.orchestrator import SourceDiscovery

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/suggest", response_model=SuggestResponse)
async def suggest_sources(
    payload: SuggestRequest,
    discovery: SourceDiscovery = Depends(get_discovery),
) -> SuggestResponse:
    # Provider calls block; keep them off the event loop
    result = await run_in_threadpool(
        discovery.suggest,
        payload.claim,
        style=payload.style,
        max_results=payload.max_results,
        context=payload.context,
    )
    return SuggestResponse(
        claim=result.claim,
        style=result.style,
        suggestions=result.suggestions,
    )
