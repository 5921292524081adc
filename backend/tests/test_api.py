"""Tests for the REST API over an in-memory TransitService."""

import httpx
import pytest

from bmtc_resolver.core.transit_service import TransitService
from bmtc_resolver.main import app
from factories import route_feature, stop_feature


@pytest.fixture
def api(client, store, clock, upstream):
    upstream.stops = [
        stop_feature("Majestic", ["500-D", "999-Z"], stop_id="S1", lon=77.5713, lat=12.9772),
        stop_feature("Hebbal", ["500-D"], stop_id="S2", lon=77.5970, lat=13.0358),
    ]
    upstream.routes["500-D"] = [route_feature("Hebbal", 1), route_feature("Silk Board", 2)]
    app.state.service = TransitService(client, store, clock=clock)
    yield httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    del app.state.service


@pytest.mark.asyncio
async def test_health(api):
    """Test the service health endpoint."""
    resp = await api.get("/api/health")
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_stop_search(api):
    """Test stop search over HTTP."""
    resp = await api.get("/api/stops/search", params={"q": "maj"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["total"] == 1
    assert body["stops"][0]["id"] == "S1"


@pytest.mark.asyncio
async def test_stop_lookup_and_missing(api):
    """Test stop lookup by id and name, with 404 for unknown stops."""
    assert (await api.get("/api/stops/S2")).json()["name"] == "Hebbal"
    assert (await api.get("/api/stops/by-name", params={"name": "majestic"})).json()["id"] == "S1"
    assert (await api.get("/api/stops/NOPE")).status_code == 404
    assert (await api.get("/api/stops/by-name", params={"name": "Nowhere"})).status_code == 404


@pytest.mark.asyncio
async def test_nearby(api):
    """Test the nearby stops endpoint."""
    resp = await api.get("/api/stops/nearby", params={"lat": 12.9772, "lon": 77.5713, "radius_km": 2})
    assert [item["stop"]["name"] for item in resp.json()] == ["Majestic"]


@pytest.mark.asyncio
async def test_route_endpoints_use_wire_names(api):
    """Test that route endpoints are served with camelCase names."""
    resp = await api.get("/api/routes/500-D/endpoints")
    body = resp.json()
    assert body["routeId"] == "500-D"
    assert body["from"] == "Hebbal"
    assert body["to"] == "Silk Board"
    assert body["isCircular"] is False
    assert body["stopCount"] == 2


@pytest.mark.asyncio
async def test_route_detail_fallback_and_not_found(api):
    """Test fallback route detail and 404 for unknown routes."""
    resp = await api.get("/api/routes/999-Z")
    assert resp.status_code == 200
    assert resp.json()["meta"]["fallback"] is True

    assert (await api.get("/api/routes/000")).status_code == 404
    assert (await api.get("/api/routes/000/endpoints")).status_code == 404


@pytest.mark.asyncio
async def test_stop_routes(api):
    """Test route summaries for every route at a stop."""
    resp = await api.get("/api/stops/S1/routes")
    body = resp.json()
    assert set(body) == {"500-D", "999-Z"}
    assert body["999-Z"]["from"] == "Majestic"


@pytest.mark.asyncio
async def test_combined_search(api):
    """Test combined stop and route search."""
    resp = await api.get("/api/search", params={"q": "hebbal"})
    body = resp.json()
    assert body["totalStops"] == 1
    assert body["totalRoutes"] == 0


@pytest.mark.asyncio
async def test_diagnostics(api):
    """Test cache diagnostics and upstream health passthrough."""
    await api.get("/api/stops/S1")
    body = (await api.get("/api/diagnostics")).json()
    assert body["caches"][0]["key"] == "all_stops_cache_v1"
    assert body["caches"][0]["entries"] == 2
    assert (await api.get("/api/diagnostics/upstream/health")).json() == {"status": "ok"}
