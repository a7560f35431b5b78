from fastapi import APIRouter, Depends

from app.infrastructure.change_feed import ChangeFeedWorkers
from app.infrastructure.notifications import ConnectionRegistry
from app.interfaces.api.dependencies import get_change_feed_workers, get_registry
from app.interfaces.api.schemas import ServiceStatusRead

router = APIRouter(prefix="/api", tags=["status"])


@router.get("/status", response_model=ServiceStatusRead)
async def service_status(
    registry: ConnectionRegistry = Depends(get_registry),
    workers: ChangeFeedWorkers | None = Depends(get_change_feed_workers),
) -> ServiceStatusRead:
    return ServiceStatusRead(
        message="Alert notification service is running",
        open_streams=registry.connection_count(),
        running_consumers=workers.running_count() if workers is not None else 0,
    )
