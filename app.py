import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

import config
from db import create_db_and_tables
from enums.runtime_environment import RuntimeEnvironment
from jobs.outbox_dispatch_job import outbox_dispatcher
from utils.error_handler import register_exception_handlers
from web.admin_router import admin_router
from web.api_router import api_router

logger = logging.getLogger(__name__)


# Background tasks
outbox_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    global outbox_task

    # Startup
    await create_db_and_tables()
    app.state.redis = Redis(host=config.REDIS_HOST, port=config.REDIS_PORT, password=config.REDIS_PASSWORD)

    if config.RUNTIME_ENVIRONMENT != RuntimeEnvironment.TEST:
        outbox_task = asyncio.create_task(outbox_dispatcher())
        logger.info("[Startup] Outbox dispatcher started")
    else:
        logger.info("[Startup] Outbox dispatcher disabled in TEST environment")

    yield

    # Shutdown
    logger.warning('Shutting down..')

    if outbox_task is not None:
        outbox_task.cancel()
        try:
            await outbox_task
        except asyncio.CancelledError:
            logger.info("[Shutdown] Outbox dispatcher stopped")
        outbox_task = None

    await app.state.redis.aclose()
    logger.warning('Bye!')


app = FastAPI(lifespan=lifespan)

if config.CORS_ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Admin-Token"],
    )
    logger.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
else:
    logger.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

register_exception_handlers(app)
app.include_router(api_router)
app.include_router(admin_router)


# Health check endpoint (for Docker container monitoring)
@app.get("/health")
async def health_check():
    """Health check endpoint for Docker healthcheck."""
    return {"status": "healthy"}


def main() -> None:
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT)
