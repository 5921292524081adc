"""Route detail lookup with stop-index fallback, and route id search."""

import logging
from collections.abc import Iterable

from bmtc_resolver.config import settings
from bmtc_resolver.core.bmtc_client import BmtcClient, feature_list, feature_properties
from bmtc_resolver.core.errors import RouteNotFoundError, UpstreamError
from bmtc_resolver.core.stop_index import StopIndex
from bmtc_resolver.core.stop_search import collation_key
from bmtc_resolver.schemas.route import RouteSearchResult, RouteStub
from bmtc_resolver.schemas.stop import Stop

logger = logging.getLogger(__name__)


def synthesize_route_features(stops: Iterable[Stop], route_id: str) -> list[dict]:
    """Build stand-in route features from the stops that list this route id.

    Matching is exact on the trimmed id. Stops come out in name order with
    stop_sequence 1..n; that order is reproducible but is not the real order
    along the route, and no direction is set.
    """
    wanted = route_id.strip()
    matches = [stop for stop in stops if wanted in stop.route_list]
    matches.sort(key=lambda stop: collation_key(stop.name))
    return [
        {
            "type": "Feature",
            "geometry": stop.geometry.model_dump() if stop.geometry else None,
            "properties": {
                "name": stop.name,
                "stop_sequence": position,
            },
        }
        for position, stop in enumerate(matches, start=1)
    ]


def fallback_collection(route_id: str, features: list[dict]) -> dict:
    return {
        "type": "FeatureCollection",
        "features": features,
        "meta": {
            "routeId": route_id,
            "fallback": True,
            "count": len(features),
        },
    }


class RouteDetailService:
    def __init__(self, client: BmtcClient, stop_index: StopIndex) -> None:
        self.client = client
        self.stop_index = stop_index

    async def synthesize(self, route_id: str) -> list[dict]:
        return synthesize_route_features(await self.stop_index.get_all(), route_id)

    async def get_route_detail(self, route_id: str) -> dict:
        """Stop features for a route id.

        Returns the upstream payload as-is when it has features. When it is
        empty or the request fails, falls back to features synthesized from
        the stop index (tagged meta.fallback). Raises RouteNotFoundError when
        both come up empty.
        """
        route_id = route_id.strip()
        primary_error: UpstreamError | None = None
        try:
            data = await self.client.fetch_aggregated(route_id)
        except UpstreamError as e:
            primary_error = e
        else:
            if feature_list(data):
                return data

        try:
            features = await self.synthesize(route_id)
        except UpstreamError:
            logger.exception("Error building fallback route details for %s", route_id)
            features = []

        if features:
            logger.info("Route %s served from stop index fallback (%d stops)", route_id, len(features))
            return fallback_collection(route_id, features)

        logger.error("Route details not found for %s", route_id)
        raise RouteNotFoundError(route_id) from primary_error

    async def search_routes(self, query: str, limit: int = 10) -> RouteSearchResult:
        """Route ids containing the query, taken from the aggregated endpoint.

        Results are placeholder stubs with zero counts. A 404 or any other
        upstream failure yields an empty result.
        """
        needle = query.strip()
        if not needle:
            return RouteSearchResult()
        try:
            data = await self.client.fetch_aggregated(needle, timeout=settings.search_timeout_seconds)
        except UpstreamError as e:
            if not e.is_not_found:
                logger.error("Error searching routes for %r: %s", needle, e)
            return RouteSearchResult()

        lowered = needle.lower()
        route_ids: dict[str, None] = {}
        for feature in feature_list(data):
            route_list = feature_properties(feature).get("route_list")
            if not isinstance(route_list, list):
                continue
            for route in route_list:
                route = str(route)
                if lowered in route.lower():
                    route_ids[route] = None

        routes = [RouteStub.for_route_id(route_id) for route_id in list(route_ids)[:limit]]
        return RouteSearchResult(routes=routes, total=len(routes))
