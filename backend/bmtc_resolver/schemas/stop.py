from pydantic import BaseModel, field_validator


class PointGeometry(BaseModel):
    type: str = "Point"
    coordinates: list[float]  # [lon, lat]

    @field_validator("coordinates")
    @classmethod
    def check_lon_lat_pair(cls, value: list[float]) -> list[float]:
        if len(value) < 2:
            raise ValueError("point needs a longitude/latitude pair")
        return value

    @property
    def lon(self) -> float:
        return self.coordinates[0]

    @property
    def lat(self) -> float:
        return self.coordinates[1]


class Stop(BaseModel):
    id: str
    name: str
    trip_count: int = 0
    trip_list: list[str] = []
    route_count: int = 0
    route_list: list[str] = []
    geometry: PointGeometry | None = None

    @field_validator("name")
    @classmethod
    def check_name_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("stop name is empty")
        return value


class StopSearchResult(BaseModel):
    stops: list[Stop] = []
    total: int = 0


class NearbyStop(BaseModel):
    stop: Stop
    distance_km: float
