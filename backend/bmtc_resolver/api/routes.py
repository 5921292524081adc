"""Route REST API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from bmtc_resolver.api.deps import get_service
from bmtc_resolver.core.errors import RouteNotFoundError, UpstreamError
from bmtc_resolver.core.transit_service import TransitService
from bmtc_resolver.schemas.route import RouteEndpoints, RouteSearchResult

router = APIRouter(prefix="/api/routes", tags=["routes"])


@router.get("/search", response_model=RouteSearchResult)
async def search_routes(
    q: str,
    limit: int = Query(10, ge=1, le=100),
    service: TransitService = Depends(get_service),
):
    return await service.search_routes(q, limit)


@router.get("/{route_id}")
async def get_route(route_id: str, service: TransitService = Depends(get_service)):
    """Route stop features, possibly synthesized from the stop index (meta.fallback)."""
    try:
        return await service.get_route_details(route_id)
    except RouteNotFoundError:
        raise HTTPException(status_code=404, detail="Route not found")


@router.get("/{route_id}/endpoints", response_model=RouteEndpoints)
async def get_route_endpoints(route_id: str, service: TransitService = Depends(get_service)):
    """First and last stop of the route's main direction."""
    try:
        return await service.get_route_endpoints(route_id)
    except RouteNotFoundError:
        raise HTTPException(status_code=404, detail="Route not found")
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
