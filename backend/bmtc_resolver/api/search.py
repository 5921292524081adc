from fastapi import APIRouter, Depends, Query

from bmtc_resolver.api.deps import get_service
from bmtc_resolver.core.transit_service import TransitService
from bmtc_resolver.schemas.route import SearchAllResult

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("", response_model=SearchAllResult)
async def search_all(
    q: str,
    limit: int = Query(5, ge=1, le=50),
    service: TransitService = Depends(get_service),
):
    """Combined stop and route search."""
    return await service.search_all(q, limit)
