"""Time-bounded two-tier cache: a process-local envelope backed by a persisted blob."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import orjson
from pydantic import ValidationError

from bmtc_resolver.core.kv_store import KeyValueStore
from bmtc_resolver.schemas.cache import CacheEnvelope

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=CacheEnvelope)


@dataclass
class DecodeResult(Generic[E]):
    envelope: E | None = None
    error: str | None = None

    @property
    def valid(self) -> bool:
        return self.envelope is not None


def decode_envelope(envelope_type: type[E], raw: bytes | str) -> DecodeResult[E]:
    """Parse and validate a persisted blob into a typed envelope."""
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        return DecodeResult(error=f"invalid JSON: {e}")
    if not isinstance(data, dict):
        return DecodeResult(error=f"expected an object, got {type(data).__name__}")
    try:
        return DecodeResult(envelope=envelope_type.model_validate(data))
    except ValidationError as e:
        return DecodeResult(error=f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}")


class TimedCache(Generic[E]):
    """Cache-aside store for one named envelope with a fixed TTL.

    Fresh reads are served from the in-process copy without touching the
    store. A stale or missing in-process copy is reseeded from the store;
    malformed or expired persisted blobs are deleted. Writes always replace
    the in-process copy and then persist it best-effort.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        envelope_type: type[E],
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.key = key
        self._store = store
        self._envelope_type = envelope_type
        self._ttl_ms = int(ttl_seconds * 1000)
        self._clock = clock
        self._current: E | None = None

    @property
    def current(self) -> E | None:
        """In-process envelope, fresh or not (for diagnostics)."""
        return self._current

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def is_fresh(self, envelope: CacheEnvelope) -> bool:
        return self.now_ms() - envelope.updated_at <= self._ttl_ms

    async def load_fresh(self) -> E | None:
        if self._current is not None:
            if self.is_fresh(self._current):
                return self._current
            self._current = None

        try:
            raw = await self._store.get(self.key)
        except Exception:
            logger.exception("Failed to read %s from store", self.key)
            raw = None

        # A save() that landed while the store read was pending is newer than the blob
        if self._current is not None and self.is_fresh(self._current):
            return self._current
        if raw is None:
            return None

        result = decode_envelope(self._envelope_type, raw)
        if not result.valid:
            logger.warning("Discarding malformed cache %s: %s", self.key, result.error)
            await self._discard()
            return None

        envelope = result.envelope
        if not self.is_fresh(envelope):
            logger.info("Cache %s expired (updatedAt=%s), discarding", self.key, envelope.updated_at)
            await self._discard()
            return None

        self._current = envelope
        return envelope

    async def save(self, payload: Any) -> E:
        envelope = self._envelope_type.wrap(payload, self.now_ms())
        self._current = envelope
        try:
            await self._store.set(self.key, orjson.dumps(envelope.model_dump(mode="json", by_alias=True)))
        except Exception:
            logger.exception("Failed to persist cache %s", self.key)
        return envelope

    async def _discard(self) -> None:
        try:
            await self._store.delete(self.key)
        except Exception:
            logger.exception("Failed to delete cache %s from store", self.key)

    def status(self) -> dict:
        envelope = self._current
        if envelope is None:
            return {"key": self.key, "loaded": False}
        return {
            "key": self.key,
            "loaded": True,
            "updated_at": envelope.updated_at,
            "age_seconds": round((self.now_ms() - envelope.updated_at) / 1000, 1),
            "fresh": self.is_fresh(envelope),
            "entries": len(envelope.payload),
        }
