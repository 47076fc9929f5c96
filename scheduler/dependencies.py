"""Dependency injection for FastAPI endpoints.

Usage in controllers:
    from scheduler.dependencies import Store

    @router.get("/events/{event_id}")
    async def get_event(event_id: str, store: Store):
        ...
"""

from typing import Annotated

from fastapi import Depends

from scheduler import state
from scheduler.db.store import EventStore
from scheduler.errors import ServiceUnavailableError


def get_store() -> EventStore:
    """Get the configured event store.

    Raises:
        ServiceUnavailableError: If no store has been initialized.
    """
    if state.store is None:
        raise ServiceUnavailableError(detail="Event store not initialized")
    return state.store


def get_optional_store() -> EventStore | None:
    return state.store


Store = Annotated[EventStore, Depends(get_store)]
OptionalStore = Annotated[EventStore | None, Depends(get_optional_store)]
