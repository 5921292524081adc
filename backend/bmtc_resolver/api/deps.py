from fastapi import HTTPException, Request

from bmtc_resolver.core.transit_service import TransitService


def get_service(request: Request) -> TransitService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service
