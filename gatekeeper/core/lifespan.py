"""Startup and shutdown sequence for the gatekeeper application."""

import asyncio
import logging

from gatekeeper.core.config import settings
from gatekeeper.core.logging import get_logger, setup_logging
from gatekeeper.middleware import rate_limit_cleanup_loop
from gatekeeper.services.tokens import TokenServices

_logger = get_logger("lifespan")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _logger.error(f"Background task {task.get_name()} failed: {exc}")


async def startup(logger: logging.Logger) -> list[asyncio.Task]:
    """Configure logging, report configuration problems and start background work.

    Returns the managed background tasks that ``shutdown`` must cancel.
    """
    setup_logging(
        level=settings.log_level,
        format_type="structured" if settings.is_production else "dev",
    )

    for warning in settings.check_security_configuration():
        logger.warning(f"WARNING: {warning}")

    # Only a prefix, and never in production
    if not settings.is_production and settings.api_key:
        logger.info(f"API Key: {settings.api_key_preview}")
    if settings.is_production:
        logger.info("Production mode - API keys will not be logged")

    await TokenServices.get_instance().reclaimer.start()

    tasks: list[asyncio.Task] = []

    rate_limit_task = asyncio.create_task(rate_limit_cleanup_loop(), name="rate-limit-cleanup")
    rate_limit_task.add_done_callback(task_done_callback)
    tasks.append(rate_limit_task)

    return tasks


async def shutdown(logger: logging.Logger, tasks: list[asyncio.Task]) -> None:
    """Cancel managed background tasks and stop the reclaimer."""
    for task in tasks:
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    await TokenServices.get_instance().reclaimer.stop()
    logger.info("Background tasks stopped")
