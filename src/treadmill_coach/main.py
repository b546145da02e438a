"""FastAPI application for Treadmill Coach."""

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.deps import get_adapter
from .api.exception_handlers import register_exception_handlers
from .api.routes import plans, profiles, sessions
from .config import get_settings
from .db.adapters import DatabaseAdapter


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    logger.info(f"Starting Treadmill Coach v{__version__}")
    logger.info(f"Storage backend: {settings.database_backend}")
    logger.info(f"Plan generation strategy: {settings.plan_generation_strategy}")
    yield
    if get_adapter.cache_info().currsize:
        get_adapter().close()
    logger.info("Shutting down Treadmill Coach")


app = FastAPI(
    title="Treadmill Coach API",
    description="Treadmill training plans, progress and session analytics",
    version=__version__,
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(profiles.router, prefix="/api/v1/profiles", tags=["profiles"])
app.include_router(plans.router, prefix="/api/v1/plans", tags=["plans"])
app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["sessions"])


@app.get("/")
async def root():
    return {
        "name": "Treadmill Coach API",
        "version": __version__,
        "status": "healthy",
    }


@app.get("/health")
async def health(adapter: DatabaseAdapter = Depends(get_adapter)):
    """Health check endpoint, including storage."""
    database = adapter.health_check()
    return {"status": "healthy" if database.get("healthy") else "degraded", "database": database}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
