"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bmtc_resolver.api import diagnostics, routes, search, stops
from bmtc_resolver.config import settings
from bmtc_resolver.core.bmtc_client import BmtcClient
from bmtc_resolver.core.kv_store import RedisStore
from bmtc_resolver.core.scheduler import create_scheduler
from bmtc_resolver.core.transit_service import TransitService

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    store = RedisStore()
    await store.connect()
    client = BmtcClient()

    service = TransitService(client, store)
    app.state.service = service

    # Seed caches from Redis; a cold cache just means the first request fetches
    try:
        await service.init()
    except Exception:
        logger.exception("Failed to seed caches from store - starting cold")

    scheduler = create_scheduler(service)
    scheduler.start()
    logger.info("BMTC resolver started - stop index refresh every %dh", settings.stops_refresh_hours)

    yield

    # Shutdown
    scheduler.shutdown(wait=False)
    await client.close()
    await store.close()
    logger.info("BMTC resolver shut down")


app = FastAPI(
    title="BMTC Transit Resolver",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stops.router)
app.include_router(routes.router)
app.include_router(search.router)
app.include_router(diagnostics.router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
