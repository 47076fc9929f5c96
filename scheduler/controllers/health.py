import logging
from typing import Any, Dict

from fastapi import APIRouter

from scheduler.dependencies import OptionalStore

logger = logging.getLogger("scheduler.health")
router = APIRouter()


@router.get("/health")
async def health(store: OptionalStore) -> Dict[str, Any]:
    if store is None:
        return {"status": "ok", "store": "disconnected"}

    store_status = "healthy"
    try:
        await store.ping()
    except Exception as e:
        logger.warning("Store health check failed: %s", e)
        store_status = "unhealthy"

    body: Dict[str, Any] = {"status": "ok", "backend": store.backend, "store": store_status}
    stats = store.stats()
    if stats is not None:
        body["pool"] = stats
    return body
