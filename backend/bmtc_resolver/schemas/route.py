from pydantic import BaseModel, ConfigDict, Field, model_validator

from bmtc_resolver.schemas.stop import Stop


class RouteEndpoints(BaseModel):
    """First/last stop of a route's majority direction."""

    model_config = ConfigDict(populate_by_name=True)

    route_id: str = Field(alias="routeId")
    from_stop: str = Field("", alias="from")
    to_stop: str = Field("", alias="to")
    is_circular: bool = Field(False, alias="isCircular")
    stop_count: int = Field(0, alias="stopCount")
    # Set only on placeholders for routes that failed to resolve; never cached
    error: bool = False

    @model_validator(mode="after")
    def check_circular_flag(self) -> "RouteEndpoints":
        expected = bool(self.from_stop) and self.from_stop == self.to_stop
        if self.is_circular != expected:
            raise ValueError("isCircular must be true exactly when from == to and non-empty")
        return self

    @classmethod
    def empty(cls, route_id: str, error: bool = False) -> "RouteEndpoints":
        return cls(route_id=route_id, error=error)


class RouteStub(BaseModel):
    """Placeholder route record built from route search hits."""

    id: str
    name: str
    full_name: str
    trip_count: int = 0
    trip_list: list[str] = []
    stop_count: int = 0
    stop_list: list[str] = []
    direction_id: int = 0

    @classmethod
    def for_route_id(cls, route_id: str) -> "RouteStub":
        return cls(id=route_id, name=route_id, full_name=f"Route {route_id}")


class RouteSearchResult(BaseModel):
    routes: list[RouteStub] = []
    total: int = 0


class SearchAllResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stops: list[Stop] = []
    routes: list[RouteStub] = []
    total_stops: int = Field(0, alias="totalStops")
    total_routes: int = Field(0, alias="totalRoutes")
