"""
Application startup orchestration.
Coordinates the initialization and teardown of application components.
"""

import asyncio
import logging
from typing import List, Callable, Tuple
from prompt_enhancer.config import settings

logger = logging.getLogger(__name__)


class StartupOrchestrator:
    """
    Runs registered startup tasks in order and shutdown tasks in reverse.
    """

    def __init__(self):
        self._startup_tasks: List[Tuple[Callable, str]] = []
        self._shutdown_tasks: List[Tuple[Callable, str]] = []
        self._is_started = False

    def add_startup_task(self, task: Callable, name: str = None):
        """Add a startup task to the orchestrator."""
        self._startup_tasks.append((task, name or task.__name__))

    def add_shutdown_task(self, task: Callable, name: str = None):
        """Add a shutdown task to the orchestrator."""
        self._shutdown_tasks.append((task, name or task.__name__))

    async def startup(self) -> bool:
        """
        Execute startup sequence for all application components.

        Returns:
            bool: True if all startup tasks successful
        """
        if self._is_started:
            logger.warning("Application already started")
            return True

        logger.info("Starting Prompt Enhancement Service")
        logger.info(f"   - Host: {settings.HOST}:{settings.PORT}")
        logger.info(f"   - Debug Mode: {settings.DEBUG}")
        logger.info(f"   - Log Level: {settings.LOG_LEVEL}")
        logger.info(f"   - Cache: {'enabled' if settings.CACHE_ENABLED else 'disabled'} ({settings.CACHE_BACKEND})")
        logger.info(f"   - AI Enhancement: {'enabled' if settings.AI_ENHANCEMENT_ENABLED else 'disabled'}")

        for task, name in self._startup_tasks:
            try:
                logger.info(f"Executing startup task: {name}")
                result = await task() if asyncio.iscoroutinefunction(task) else task()
                if result is False:
                    logger.error(f"Startup task failed: {name}")
                    return False

            except Exception as e:
                logger.error(f"Startup task '{name}' failed: {e}", exc_info=True)
                return False

        self._is_started = True
        logger.info("Prompt Enhancement Service started successfully")
        logger.info(f"API Documentation: http://{settings.HOST}:{settings.PORT}/docs")

        return True

    async def shutdown(self) -> bool:
        """
        Execute shutdown sequence for all application components.

        Returns:
            bool: True when shutdown completed
        """
        if not self._is_started:
            logger.info("Application not started, skipping shutdown")
            return True

        logger.info("Shutting down Prompt Enhancement Service...")

        for task, name in reversed(self._shutdown_tasks):
            try:
                logger.info(f"Executing shutdown task: {name}")
                await task() if asyncio.iscoroutinefunction(task) else task()

            except Exception as e:
                logger.error(f"Shutdown task '{name}' failed: {e}", exc_info=True)

        self._is_started = False
        logger.info("Server shutdown completed")

        return True

    @property
    def is_started(self) -> bool:
        """Check if application is started."""
        return self._is_started


# Global startup orchestrator instance
startup_orchestrator = StartupOrchestrator()
