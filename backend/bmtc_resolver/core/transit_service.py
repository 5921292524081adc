"""Composition root: owns the caches and wires the resolution components together."""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from bmtc_resolver.core.bmtc_client import BmtcClient
from bmtc_resolver.core.cancellation import CancelToken
from bmtc_resolver.core.errors import UpstreamError
from bmtc_resolver.core.kv_store import KeyValueStore
from bmtc_resolver.core.route_detail import RouteDetailService
from bmtc_resolver.core.route_endpoints import RouteEndpointResolver
from bmtc_resolver.core.stop_index import StopIndex
from bmtc_resolver.schemas.route import RouteEndpoints, RouteSearchResult, SearchAllResult
from bmtc_resolver.schemas.stop import NearbyStop, Stop, StopSearchResult

logger = logging.getLogger(__name__)


class TransitService:
    """Everything the UI asks for: stop lookups, searches, route details and endpoints."""

    def __init__(
        self,
        client: BmtcClient,
        store: KeyValueStore,
        clock: Callable[[], float] = time.time,
        batch_size: int | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.stop_index = StopIndex(client, store, clock=clock)
        self.route_details = RouteDetailService(client, self.stop_index)
        self.endpoints = RouteEndpointResolver(self.route_details, store, batch_size=batch_size, clock=clock)

    async def init(self) -> None:
        """Seed both in-process caches from persisted storage."""
        await self.stop_index.init()
        await self.endpoints.init()

    async def refresh_stop_index(self) -> None:
        try:
            await self.stop_index.refresh()
        except UpstreamError:
            logger.exception("Failed to refresh stop index")

    async def get_stop_by_name(self, name: str) -> Stop | None:
        return await self.stop_index.get_by_name(name)

    async def get_stop_by_id(self, stop_id: str) -> Stop | None:
        return await self.stop_index.get_by_id(stop_id)

    async def nearest_stops(
        self,
        lat: float,
        lon: float,
        radius_km: float | None = None,
        limit: int | None = None,
    ) -> list[NearbyStop]:
        return await self.stop_index.nearest(lat, lon, radius_km=radius_km, limit=limit)

    async def get_route_endpoints(self, route_id: str) -> RouteEndpoints:
        return await self.endpoints.resolve(route_id)

    async def get_stop_route_summaries(
        self,
        stop: Stop,
        token: CancelToken | None = None,
        on_batch: Callable[[dict[str, RouteEndpoints]], None] | None = None,
    ) -> dict[str, RouteEndpoints]:
        return await self.endpoints.resolve_many(stop.route_list, token=token, on_batch=on_batch)

    async def get_route_details(self, route_id: str) -> dict:
        return await self.route_details.get_route_detail(route_id)

    async def search_stops(self, query: str, limit: int = 10) -> StopSearchResult:
        return await self.stop_index.search(query, limit)

    async def search_routes(self, query: str, limit: int = 10) -> RouteSearchResult:
        return await self.route_details.search_routes(query, limit)

    async def search_all(self, query: str, limit: int = 5) -> SearchAllResult:
        """Stop and route search side by side; a failing half comes back empty."""
        stops_result, routes_result = await asyncio.gather(
            self.search_stops(query, limit),
            self.search_routes(query, limit),
            return_exceptions=True,
        )
        if isinstance(stops_result, Exception):
            logger.error("Stop search failed in combined search: %s", stops_result)
            stops_result = StopSearchResult()
        if isinstance(routes_result, Exception):
            logger.error("Route search failed in combined search: %s", routes_result)
            routes_result = RouteSearchResult()

        return SearchAllResult(
            stops=stops_result.stops,
            routes=routes_result.routes,
            total_stops=stops_result.total,
            total_routes=routes_result.total,
        )

    async def get_api_health(self) -> Any:
        return await self.client.fetch_health()

    async def get_api_meta(self) -> Any:
        return await self.client.fetch_meta()

    def get_diagnostics(self) -> dict:
        return {
            "caches": [
                self.stop_index.cache.status(),
                self.endpoints.cache.status(),
            ],
        }
