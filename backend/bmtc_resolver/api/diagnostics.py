"""Diagnostics API: cache state and upstream status passthrough."""

from fastapi import APIRouter, Depends, HTTPException

from bmtc_resolver.api.deps import get_service
from bmtc_resolver.core.errors import UpstreamError
from bmtc_resolver.core.transit_service import TransitService

router = APIRouter(prefix="/api/diagnostics", tags=["diagnostics"])


@router.get("")
async def get_diagnostics(service: TransitService = Depends(get_service)):
    """Age and size of the stop index and route endpoint caches."""
    return service.get_diagnostics()


@router.get("/upstream/health")
async def get_upstream_health(service: TransitService = Depends(get_service)):
    try:
        return await service.get_api_health()
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/upstream/meta")
async def get_upstream_meta(service: TransitService = Depends(get_service)):
    try:
        return await service.get_api_meta()
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
