"""Tests for BmtcClient and upstream feature mapping."""

import httpx
import pytest

from bmtc_resolver.core.bmtc_client import BmtcClient, stop_from_feature
from bmtc_resolver.core.errors import UpstreamError
from factories import route_feature, stop_feature


def test_stop_from_feature_maps_properties():
    """Test that id, name, routes and point geometry are carried over."""
    stop = stop_from_feature(stop_feature("Majestic", ["500-D", "335-E"], stop_id="S1", lon=77.57, lat=12.97))
    assert stop.id == "S1"
    assert stop.name == "Majestic"
    assert stop.route_list == ["500-D", "335-E"]
    assert stop.route_count == 2
    assert stop.geometry.lon == 77.57
    assert stop.geometry.lat == 12.97


def test_stop_id_falls_back_to_name():
    """Test that a missing id falls back to the stop name."""
    assert stop_from_feature(stop_feature("Hebbal")).id == "Hebbal"
    assert stop_from_feature(stop_feature("Hebbal", stop_id=17)).id == "17"


def test_stop_without_name_is_dropped():
    """Test that blank or missing names give no stop."""
    assert stop_from_feature(stop_feature("   ")) is None
    assert stop_from_feature({"type": "Feature"}) is None
    assert stop_from_feature("garbage") is None


def test_non_object_properties_are_dropped():
    """Test that properties which are not an object give no stop instead of raising."""
    assert stop_from_feature({"type": "Feature", "properties": ["junk"]}) is None
    assert stop_from_feature({"type": "Feature", "properties": "Majestic"}) is None


def test_string_route_list_is_not_split_into_characters():
    """Test that a route_list sent as a plain string is ignored."""
    feature = stop_feature("Majestic")
    feature["properties"]["route_list"] = "500-D"
    feature["properties"]["trip_list"] = "T1"
    stop = stop_from_feature(feature)
    assert stop.route_list == []
    assert stop.trip_list == []


def test_bad_geometry_becomes_none():
    """Test that non-point geometry is dropped."""
    feature = stop_feature("Hebbal")
    feature["geometry"] = {"type": "LineString", "coordinates": [[77.5, 12.9], [77.6, 13.0]]}
    assert stop_from_feature(feature).geometry is None


@pytest.mark.asyncio
async def test_fetch_all_stops_skips_unnamed(client, upstream):
    """Test that unnamed stops are left out of the fetched list."""
    upstream.stops = [stop_feature("Majestic"), stop_feature(""), stop_feature("Hebbal")]
    stops = await client.fetch_all_stops()
    assert [s.name for s in stops] == ["Majestic", "Hebbal"]


@pytest.mark.asyncio
async def test_fetch_all_stops_skips_malformed_records(client, upstream):
    """Test that one malformed record does not fail the whole load."""
    upstream.stops = [stop_feature("Majestic"), {"type": "Feature", "properties": ["junk"]}, stop_feature("Hebbal")]
    stops = await client.fetch_all_stops()
    assert [s.name for s in stops] == ["Majestic", "Hebbal"]


@pytest.mark.asyncio
async def test_fetch_aggregated_passes_route_id(client, upstream):
    """Test that the route id is sent as the routeId query parameter."""
    upstream.routes["500-D"] = [route_feature("Hebbal", 1)]
    data = await client.fetch_aggregated("500-D")
    assert data["features"][0]["properties"]["name"] == "Hebbal"
    assert upstream.requests[0].url.params["routeId"] == "500-D"


@pytest.mark.asyncio
async def test_http_error_is_normalized(client, upstream):
    """Test that an HTTP error status becomes UpstreamError with the status code."""
    upstream.route_status["nope"] = 404
    with pytest.raises(UpstreamError) as exc_info:
        await client.fetch_aggregated("nope")
    assert exc_info.value.status_code == 404
    assert exc_info.value.is_not_found


@pytest.mark.asyncio
async def test_network_error_is_normalized(client, upstream):
    """Test that a transport failure becomes UpstreamError without a status."""
    upstream.route_errors.add("500-D")
    with pytest.raises(UpstreamError) as exc_info:
        await client.fetch_aggregated("500-D")
    assert exc_info.value.status_code is None
    assert not exc_info.value.is_not_found
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_invalid_json_is_normalized():
    """Test that a non-JSON body becomes UpstreamError."""
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
    client = BmtcClient(base_url="https://bmtc.test/api", transport=transport)
    with pytest.raises(UpstreamError):
        await client.fetch_health()
    await client.close()


@pytest.mark.asyncio
async def test_no_retry_on_server_error(client, upstream):
    """Test that a server error is raised after a single request."""
    upstream.stops_status = 503
    with pytest.raises(UpstreamError):
        await client.fetch_all_stops()
    assert upstream.count("/bmtc/stops") == 1


@pytest.mark.asyncio
async def test_health_and_meta_passthrough(client, upstream):
    """Test that health and meta bodies are returned as decoded."""
    assert await client.fetch_health() == {"status": "ok"}
    assert (await client.fetch_meta())["source"] == "bmtc"
