from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    bmtc_base_url: str = "https://open-bmtc-api.vercel.app/api"
    redis_url: str = "redis://localhost:6379/0"
    cache_scope: str = "bmtc"
    stops_cache_ttl_hours: int = 24
    route_endpoints_ttl_hours: int = 24
    request_timeout_seconds: float = 30.0
    stops_timeout_seconds: float = 15.0
    search_timeout_seconds: float = 10.0
    route_batch_size: int = 6
    stops_refresh_hours: int = 6
    log_level: str = "INFO"

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()
