"""Full stop index: the complete stop list, cached for a day."""

import logging
import time
from collections.abc import Callable

from bmtc_resolver.config import settings
from bmtc_resolver.core.bmtc_client import BmtcClient
from bmtc_resolver.core.cache import TimedCache
from bmtc_resolver.core.errors import UpstreamError
from bmtc_resolver.core.inflight import InflightRegistry
from bmtc_resolver.core.kv_store import KeyValueStore
from bmtc_resolver.core.stop_search import nearest_stops, normalize_query, rank_stops
from bmtc_resolver.schemas.cache import StopsCacheEnvelope
from bmtc_resolver.schemas.stop import NearbyStop, Stop, StopSearchResult

logger = logging.getLogger(__name__)

ALL_STOPS_CACHE_KEY = "all_stops_cache_v1"


class StopIndex:
    """Serves the full stop list from cache, fetching it whole on a miss."""

    def __init__(
        self,
        client: BmtcClient,
        store: KeyValueStore,
        ttl_hours: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        ttl = ttl_hours if ttl_hours is not None else settings.stops_cache_ttl_hours
        self.cache: TimedCache[StopsCacheEnvelope] = TimedCache(
            store, ALL_STOPS_CACHE_KEY, StopsCacheEnvelope, ttl * 3600, clock,
        )
        self._inflight: InflightRegistry[list[Stop]] = InflightRegistry()

    async def init(self) -> None:
        """Seed the in-process copy from the persisted cache, if fresh."""
        envelope = await self.cache.load_fresh()
        if envelope is not None:
            logger.info("Loaded %d stops from persisted cache", len(envelope.stops))

    async def get_all(self) -> list[Stop]:
        cached = await self.cache.load_fresh()
        if cached is not None:
            return cached.stops
        return await self._inflight.run(ALL_STOPS_CACHE_KEY, self._fetch_and_save)

    async def refresh(self) -> list[Stop]:
        """Refetch the whole index regardless of freshness."""
        return await self._inflight.run(ALL_STOPS_CACHE_KEY, self._fetch_and_save)

    async def _fetch_and_save(self) -> list[Stop]:
        stops = await self.client.fetch_all_stops()
        await self.cache.save(stops)
        logger.info("Stop index refreshed with %d stops", len(stops))
        return stops

    async def get_by_name(self, name: str) -> Stop | None:
        wanted = normalize_query(name)
        for stop in await self.get_all():
            if normalize_query(stop.name) == wanted:
                return stop
        return None

    async def get_by_id(self, stop_id: str) -> Stop | None:
        wanted = stop_id.strip()
        for stop in await self.get_all():
            if stop.id == wanted:
                return stop
        return None

    async def search(self, query: str, limit: int = 10) -> StopSearchResult:
        """Ranked substring search; failures degrade to an empty result."""
        try:
            stops = await self.get_all()
        except UpstreamError:
            logger.exception("Error searching stops for %r", query)
            return StopSearchResult()

        matches = rank_stops(stops, query)
        return StopSearchResult(stops=matches[:limit], total=len(matches))

    async def nearest(
        self,
        lat: float,
        lon: float,
        radius_km: float | None = None,
        limit: int | None = None,
    ) -> list[NearbyStop]:
        return nearest_stops(await self.get_all(), lat, lon, radius_km=radius_km, limit=limit)
