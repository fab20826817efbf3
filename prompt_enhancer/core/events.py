"""
FastAPI lifespan event handlers.
Clean separation of application lifecycle events.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from prompt_enhancer.core.startup import startup_orchestrator
from prompt_enhancer.api.routes.enhancement import shutdown_enhancement_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.
    Handles application startup and shutdown events cleanly.
    """
    try:
        startup_success = await startup_orchestrator.startup()

        if not startup_success:
            logger.error("Application startup failed")
            raise RuntimeError("Failed to start application")

    except Exception as e:
        logger.error(f"Critical startup error: {e}", exc_info=True)
        raise

    yield

    try:
        await startup_orchestrator.shutdown()

    except Exception as e:
        logger.error(f"Shutdown error: {e}", exc_info=True)


_configured = False


def configure_lifecycle_tasks():
    """Register the enhancement service teardown once per process"""
    global _configured

    if _configured:
        return
    startup_orchestrator.add_shutdown_task(shutdown_enhancement_service, "enhancement_service_shutdown")
    _configured = True
