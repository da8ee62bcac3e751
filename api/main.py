"""FastAPI service for the Contact Manager."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import (
    ALLOWED_ORIGINS,
    EXTENSION_ORIGIN_REGEX,
    get_settings,
    get_store,
)
from api.routers import (
    backups_router,
    contacts_router,
    maintenance_router,
    messages_router,
)
from contact_manager import __version__

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Only close a store that was actually opened.
    if get_store.cache_info().currsize:
        logger.info("[API] Closing contact store")
        get_store().close()


app = FastAPI(
    title="Contact Manager API",
    version=__version__,
    description="Contact store shared by the browser extensions and the desktop app.",
    lifespan=lifespan,
)

origins = [origin for origin in ALLOWED_ORIGINS if origin]
if get_settings().allowed_frontend:
    origins.append(get_settings().allowed_frontend)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_origin_regex=EXTENSION_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(contacts_router, prefix="/contacts", tags=["contacts"])
app.include_router(messages_router, prefix="/messages", tags=["messages"])
app.include_router(backups_router, prefix="/backups", tags=["backups"])
app.include_router(maintenance_router, prefix="/maintenance", tags=["maintenance"])


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint with storage configuration."""
    settings = get_settings()
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "storage": settings.storage_backend,
        "slot": settings.slot,
    }
