import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scheduler import __version__
from scheduler.config import get_settings
from scheduler.controllers.events import router as events_router
from scheduler.controllers.health import router as health_router
from scheduler.errors import register_exception_handlers
from scheduler.lifespan import cleanup_resources, setup_resources
from scheduler.middleware import HTTPLogMiddleware

settings = get_settings()

logging.basicConfig(
    level=settings.debug.log_level.upper(),
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)


app = FastAPI(title="Availability Scheduler API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("scheduler.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(events_router)
