from fastapi import APIRouter, Depends

from sourcefinder.api.dependencies import get_discovery
from sourcefinder.api.models import StylesResponse
from sourcefinder.discovery.orchestrator import SourceDiscovery

router = APIRouter()


@router.get("/styles", response_model=StylesResponse)
async def list_styles(discovery: SourceDiscovery = Depends(get_discovery)) -> StylesResponse:
    return StylesResponse(styles=discovery.styles.options())
