"""Canonical first/last stop per route, picked from the majority direction."""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable

from bmtc_resolver.config import settings
from bmtc_resolver.core.bmtc_client import feature_list, feature_properties
from bmtc_resolver.core.cache import TimedCache
from bmtc_resolver.core.cancellation import CancelToken
from bmtc_resolver.core.errors import RouteNotFoundError, UpstreamError
from bmtc_resolver.core.inflight import InflightRegistry
from bmtc_resolver.core.kv_store import KeyValueStore
from bmtc_resolver.core.route_detail import RouteDetailService
from bmtc_resolver.schemas.cache import RouteEndpointsCacheEnvelope
from bmtc_resolver.schemas.route import RouteEndpoints

logger = logging.getLogger(__name__)

ROUTE_ENDPOINTS_CACHE_KEY = "route_endpoints_cache_v1"
DEFAULT_DIRECTION = "0"


def _direction(feature) -> str:
    props = feature_properties(feature)
    return str(props.get("direction_id") or props.get("direction") or DEFAULT_DIRECTION)


def _sequence(feature) -> float:
    raw = feature_properties(feature).get("stop_sequence") or 0
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def _name(feature) -> str:
    return str(feature_properties(feature).get("name") or "")


def extract_route_endpoints(route_id: str, route_detail: dict) -> RouteEndpoints:
    """Summarize a route detail collection by its largest direction group.

    Features are grouped by direction label; the biggest group wins, ties
    going to the group seen first. That group is ordered by stop_sequence
    (stable) and its first and last names become the endpoints.
    """
    features = feature_list(route_detail)
    if not features:
        return RouteEndpoints.empty(route_id)

    by_direction: dict[str, list] = {}
    for feature in features:
        by_direction.setdefault(_direction(feature), []).append(feature)

    # max() keeps the first of equally sized groups
    selected = max(by_direction.values(), key=len)
    ordered = sorted(selected, key=_sequence)

    first = _name(ordered[0])
    last = _name(ordered[-1])
    return RouteEndpoints(
        route_id=route_id,
        from_stop=first,
        to_stop=last,
        is_circular=first != "" and first == last,
        stop_count=len(ordered),
    )


class RouteEndpointResolver:
    """Resolves and caches RouteEndpoints per route id."""

    def __init__(
        self,
        route_details: RouteDetailService,
        store: KeyValueStore,
        ttl_hours: float | None = None,
        batch_size: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.route_details = route_details
        ttl = ttl_hours if ttl_hours is not None else settings.route_endpoints_ttl_hours
        self.cache: TimedCache[RouteEndpointsCacheEnvelope] = TimedCache(
            store, ROUTE_ENDPOINTS_CACHE_KEY, RouteEndpointsCacheEnvelope, ttl * 3600, clock,
        )
        self.batch_size = batch_size or settings.route_batch_size
        self._inflight: InflightRegistry[RouteEndpoints] = InflightRegistry()

    async def init(self) -> None:
        envelope = await self.cache.load_fresh()
        if envelope is not None:
            logger.info("Loaded endpoints for %d routes from persisted cache", len(envelope.by_route))

    async def resolve(self, route_id: str) -> RouteEndpoints:
        route_id = route_id.strip()
        cached = await self.cache.load_fresh()
        if cached is not None and route_id in cached.by_route:
            return cached.by_route[route_id]
        return await self._inflight.run(route_id, lambda: self._compute(route_id))

    async def _compute(self, route_id: str) -> RouteEndpoints:
        detail = await self.route_details.get_route_detail(route_id)
        endpoints = extract_route_endpoints(route_id, detail)

        # Merge into whatever is cached now, not what was cached before the fetch
        current = await self.cache.load_fresh()
        by_route = dict(current.by_route) if current is not None else {}
        by_route[route_id] = endpoints
        await self.cache.save(by_route)
        return endpoints

    async def _resolve_or_placeholder(self, route_id: str) -> RouteEndpoints:
        try:
            return await self.resolve(route_id)
        except (RouteNotFoundError, UpstreamError) as e:
            logger.error("Error loading route %s: %s", route_id, e)
            return RouteEndpoints.empty(route_id, error=True)

    async def resolve_many(
        self,
        route_ids: Iterable[str],
        token: CancelToken | None = None,
        on_batch: Callable[[dict[str, RouteEndpoints]], None] | None = None,
    ) -> dict[str, RouteEndpoints]:
        """Resolve distinct route ids in fixed-size concurrent batches.

        Each batch completes before the next starts. The token is checked
        before every batch and before merging its results; once cancelled,
        nothing further is fetched or merged. on_batch receives the
        accumulated map after each merge.
        """
        token = token or CancelToken()
        unique = list(dict.fromkeys(r.strip() for r in route_ids if r and r.strip()))
        summaries: dict[str, RouteEndpoints] = {}

        for start in range(0, len(unique), self.batch_size):
            if token.cancelled:
                break
            batch = unique[start:start + self.batch_size]
            results = await asyncio.gather(*(self._resolve_or_placeholder(r) for r in batch))
            if token.cancelled:
                break
            for result in results:
                summaries[result.route_id] = result
            if on_batch is not None:
                on_batch(dict(summaries))

        return summaries
