"""Async client for the Open BMTC API."""

import logging
from typing import Any

import httpx
import orjson
from pydantic import ValidationError

from bmtc_resolver.config import settings
from bmtc_resolver.core.errors import UpstreamError
from bmtc_resolver.schemas.stop import PointGeometry, Stop

logger = logging.getLogger(__name__)


def empty_feature_collection() -> dict:
    return {"type": "FeatureCollection", "features": []}


def feature_list(payload: Any) -> list:
    """Features of a feature collection, or [] for anything that is not one."""
    if not isinstance(payload, dict):
        return []
    features = payload.get("features")
    return features if isinstance(features, list) else []


def _parse_point(raw: Any) -> PointGeometry | None:
    if not isinstance(raw, dict):
        return None
    try:
        return PointGeometry.model_validate(raw)
    except ValidationError:
        return None


def feature_properties(feature: Any) -> dict:
    """Properties of a feature, or {} when the feature or its properties are not objects."""
    if isinstance(feature, dict) and isinstance(feature.get("properties"), dict):
        return feature["properties"]
    return {}


def _str_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw]


def stop_from_feature(feature: Any) -> Stop | None:
    """Map one upstream stop feature to a Stop; None when it has no usable name."""
    if not isinstance(feature, dict):
        return None
    props = feature_properties(feature)
    name = str(props.get("name") or "").strip()
    if not name:
        return None
    stop_id = props.get("id") or props.get("name") or feature.get("id") or ""
    return Stop(
        id=str(stop_id),
        name=name,
        trip_count=int(props.get("trip_count") or 0),
        trip_list=_str_list(props.get("trip_list")),
        route_count=int(props.get("route_count") or 0),
        route_list=_str_list(props.get("route_list")),
        geometry=_parse_point(feature.get("geometry")),
    )


class BmtcClient:
    """Thin wrapper over the upstream API; every failure surfaces as UpstreamError."""

    def __init__(self, base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.bmtc_base_url,
            timeout=settings.request_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(
        self,
        path: str,
        label: str,
        params: dict | None = None,
        timeout: float | None = None,
    ) -> Any:
        """GET a path and decode its JSON body. No retries."""
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = params
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = await self._client.get(path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("%s got HTTP %d from BMTC API", label, status)
            raise UpstreamError(label, status_code=status) from e
        except httpx.HTTPError as e:
            logger.warning("%s request to BMTC API failed (%s)", label, type(e).__name__)
            raise UpstreamError(label, message=type(e).__name__) from e

        try:
            return orjson.loads(resp.content)
        except orjson.JSONDecodeError as e:
            logger.error("Failed to parse %s response from BMTC API", label)
            raise UpstreamError(label, status_code=resp.status_code, message="invalid JSON body") from e

    async def fetch_all_stops(self) -> list[Stop]:
        """Fetch every stop; features without a name are dropped."""
        data = await self._get_json("/bmtc/stops", "all stops", timeout=settings.stops_timeout_seconds)

        stops = []
        for feature in feature_list(data):
            try:
                stop = stop_from_feature(feature)
            except (ValueError, TypeError) as e:
                logger.debug("Skipping malformed stop feature: %s", e)
                continue
            if stop is not None:
                stops.append(stop)

        logger.info("Fetched %d stops from BMTC API", len(stops))
        return stops

    async def fetch_aggregated(self, route_id: str, timeout: float | None = None) -> dict:
        """Fetch the aggregated stop features for a route id."""
        data = await self._get_json(
            "/bmtc/aggregated", f"aggregated route {route_id}",
            params={"routeId": route_id}, timeout=timeout,
        )
        if not isinstance(data, dict):
            return empty_feature_collection()
        return data

    async def fetch_health(self) -> Any:
        return await self._get_json("/health", "health")

    async def fetch_meta(self) -> Any:
        return await self._get_json("/meta", "meta")
