"""Persisted cache envelopes: a payload plus the epoch-millis time it was saved."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

from bmtc_resolver.schemas.route import RouteEndpoints
from bmtc_resolver.schemas.stop import Stop


class CacheEnvelope(BaseModel, ABC):
    model_config = ConfigDict(populate_by_name=True)

    updated_at: StrictInt | StrictFloat = Field(alias="updatedAt")

    @property
    @abstractmethod
    def payload(self) -> Any: ...

    @classmethod
    @abstractmethod
    def wrap(cls, payload: Any, updated_at: int) -> "CacheEnvelope": ...


class StopsCacheEnvelope(CacheEnvelope):
    stops: list[Stop]

    @property
    def payload(self) -> list[Stop]:
        return self.stops

    @classmethod
    def wrap(cls, payload: list[Stop], updated_at: int) -> "StopsCacheEnvelope":
        return cls(updated_at=updated_at, stops=payload)


class RouteEndpointsCacheEnvelope(CacheEnvelope):
    by_route: dict[str, RouteEndpoints] = Field(alias="byRoute")

    @property
    def payload(self) -> dict[str, RouteEndpoints]:
        return self.by_route

    @classmethod
    def wrap(cls, payload: dict[str, RouteEndpoints], updated_at: int) -> "RouteEndpointsCacheEnvelope":
        return cls(updated_at=updated_at, by_route=payload)
