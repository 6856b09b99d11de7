"""
Plura FastAPI application.

Entry point for the compiler API: generation, preview, code download and
deployments.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend import db
from backend.config import settings
from backend.middleware.rate_limit import rate_limiter
from backend.routes import deployments as deployment_routes
from backend.routes import generate as generate_routes
from backend.routes import preview as preview_routes
from backend.services.deployer import DeploymentPipeline
from compiler.kernel.assembly import CompilerAssembly, MemoryBundleStorage
from compiler.kernel.postgres_storage import PostgresBundleStorage

logger = logging.getLogger(__name__)


# Background task for cleanup
async def cleanup_task(pipeline: DeploymentPipeline):
    """
    Remove workspaces stranded in the trash and old rate limit entries.

    Runs every 60 seconds.
    """
    while True:
        try:
            purged = await pipeline.purge_trash()
            if purged > 0:
                logger.info("Cleaned up %d stranded deployment workspaces", purged)

            rate_limiter.cleanup_old_entries(max_age_hours=2)

        except OSError as e:
            logger.warning("Error in cleanup task: %s", e)

        await asyncio.sleep(60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Configure logging
    - Choose the bundle cache (Postgres when DATABASE_URL is set)
    - Create the deployment pipeline and its cleanup task
    - Cancel running builds and close the pool on shutdown
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Startup
    if settings.DATABASE_URL:
        await db.init_pool()
        storage = PostgresBundleStorage(db.get_pool())
        logger.info("Database pool initialized")
    else:
        storage = MemoryBundleStorage()
        logger.info("DATABASE_URL not set, bundle cache kept in memory")

    app.state.assembly = CompilerAssembly(storage)
    app.state.pipeline = DeploymentPipeline(
        settings.DEPLOYMENTS_DIR,
        build_timeout=settings.BUILD_TIMEOUT_SECONDS,
        build_enabled=settings.BUILD_ENABLED,
        npm_binary=settings.NPM_BINARY,
    )

    cleanup_task_handle = asyncio.create_task(cleanup_task(app.state.pipeline))
    logger.info("Background cleanup task started")

    yield

    # Shutdown
    cleanup_task_handle.cancel()
    try:
        await cleanup_task_handle
    except asyncio.CancelledError:
        logger.info("Background cleanup task stopped")

    await app.state.pipeline.shutdown()

    await db.close_pool()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Plura Compiler",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(generate_routes.router)
app.include_router(preview_routes.router)
app.include_router(deployment_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
