"""Ranking and distance helpers over a list of stops."""

import math
import unicodedata
from collections.abc import Iterable

from bmtc_resolver.schemas.stop import NearbyStop, Stop

EARTH_RADIUS_KM = 6371.0


def normalize_query(query: str) -> str:
    return query.strip().lower()


def collation_key(text: str) -> tuple[str, str]:
    """Sort key approximating locale collation: case and accents ignored first."""
    folded = unicodedata.normalize("NFKD", text.casefold())
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return (base, text)


def rank_stops(stops: Iterable[Stop], query: str) -> list[Stop]:
    """Stops whose name contains the query, best match first.

    Ordered by position of the first match in the name, then name length,
    then collation order, so prefix-like hits on short names come first.
    """
    needle = normalize_query(query)
    matches = [stop for stop in stops if needle in stop.name.lower()]

    def rank(stop: Stop) -> tuple:
        name = stop.name.lower()
        return (name.find(needle), len(name), collation_key(name))

    matches.sort(key=rank)
    return matches


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def nearest_stops(
    stops: Iterable[Stop],
    lat: float,
    lon: float,
    radius_km: float | None = None,
    limit: int | None = None,
) -> list[NearbyStop]:
    """Stops with a geometry sorted by distance from (lat, lon)."""
    nearby = []
    for stop in stops:
        if stop.geometry is None:
            continue
        distance = haversine_km(lat, lon, stop.geometry.lat, stop.geometry.lon)
        if radius_km is not None and distance > radius_km:
            continue
        nearby.append(NearbyStop(stop=stop, distance_km=distance))

    nearby.sort(key=lambda item: item.distance_km)
    if limit is not None:
        nearby = nearby[:limit]
    return nearby
