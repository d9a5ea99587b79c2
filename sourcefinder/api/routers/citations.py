from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from sourcefinder.api.dependencies import get_discovery, get_settings
from sourcefinder.api.models import CiteRequest
from sourcefinder.citation.page_metadata import generate_citation_from_url
from sourcefinder.core.settings import Settings
from sourcefinder.discovery.orchestrator import SourceDiscovery

router = APIRouter()


@router.post("/cite")
async def cite_url(
    payload: CiteRequest,
    settings: Settings = Depends(get_settings),
    discovery: SourceDiscovery = Depends(get_discovery),
) -> dict:
    return await run_in_threadpool(
        generate_citation_from_url,
        payload.url,
        payload.style,
        discovery.styles,
        discovery.formatter,
        settings.providers.page_fetch_timeout_seconds,
        settings.providers.user_agent,
    )
