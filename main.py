import logging
from contextlib import asynccontextmanager

from anyio import to_thread
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.application.use_cases.alerts import AlertNotificationPipeline
from app.config import get_settings
from app.infrastructure.change_feed import ChangeFeedWorkers
from app.infrastructure.database import SessionLocal, engine, initialize_database
from app.infrastructure.notifications import (
    ConnectionRegistry,
    LiveDeliveryGateway,
    OfflineCache,
    OutOfBandDispatcher,
    create_redis_client,
)
from app.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the delivery pipeline at startup and release its resources at shutdown."""

    settings = get_settings()
    if settings.db_create_tables:
        initialize_database()

    redis_client = create_redis_client(settings)
    cache = OfflineCache(
        redis_client,
        depth=settings.offline_cache_depth,
        key_prefix=settings.offline_cache_key_prefix,
    )
    registry = ConnectionRegistry()
    gateway = LiveDeliveryGateway(registry, cache, max_queue_size=settings.stream_queue_size)
    out_of_band = OutOfBandDispatcher(max_workers=settings.out_of_band_workers)
    pipeline = AlertNotificationPipeline(SessionLocal, cache, gateway, out_of_band)

    workers = None
    if settings.change_feed_enabled:
        workers = ChangeFeedWorkers(settings, pipeline)
        workers.start()
    else:
        logger.info("Change feed disabled; only stream and history endpoints are served")

    app.state.offline_cache = cache
    app.state.registry = registry
    app.state.gateway = gateway
    app.state.pipeline = pipeline
    app.state.change_feed_workers = workers
    try:
        yield
    finally:
        if workers is not None:
            await to_thread.run_sync(workers.stop)
        registry.close_all()
        out_of_band.shutdown()
        redis_client.close()
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(lifespan=lifespan)

    # Browser clients open the event stream from another origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
