"""Stop REST API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from bmtc_resolver.api.deps import get_service
from bmtc_resolver.core.errors import UpstreamError
from bmtc_resolver.core.transit_service import TransitService
from bmtc_resolver.schemas.route import RouteEndpoints
from bmtc_resolver.schemas.stop import NearbyStop, Stop, StopSearchResult

router = APIRouter(prefix="/api/stops", tags=["stops"])


@router.get("/search", response_model=StopSearchResult)
async def search_stops(
    q: str,
    limit: int = Query(10, ge=1, le=100),
    service: TransitService = Depends(get_service),
):
    """Ranked substring search over stop names."""
    return await service.search_stops(q, limit)


@router.get("/nearby", response_model=list[NearbyStop])
async def nearby_stops(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(1.0, gt=0),
    limit: int = Query(20, ge=1, le=200),
    service: TransitService = Depends(get_service),
):
    """Stops within radius_km of a point, closest first."""
    try:
        return await service.nearest_stops(lat, lon, radius_km=radius_km, limit=limit)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/by-name", response_model=Stop)
async def get_stop_by_name(name: str, service: TransitService = Depends(get_service)):
    try:
        stop = await service.get_stop_by_name(name)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if stop is None:
        raise HTTPException(status_code=404, detail="Stop not found")
    return stop


@router.get("/{stop_id}", response_model=Stop)
async def get_stop(stop_id: str, service: TransitService = Depends(get_service)):
    try:
        stop = await service.get_stop_by_id(stop_id)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if stop is None:
        raise HTTPException(status_code=404, detail="Stop not found")
    return stop


@router.get("/{stop_id}/routes", response_model=dict[str, RouteEndpoints])
async def get_stop_routes(stop_id: str, service: TransitService = Depends(get_service)):
    """Endpoint summaries for every route serving a stop."""
    try:
        stop = await service.get_stop_by_id(stop_id)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if stop is None:
        raise HTTPException(status_code=404, detail="Stop not found")
    return await service.get_stop_route_summaries(stop)
