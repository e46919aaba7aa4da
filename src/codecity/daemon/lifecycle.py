"""Daemon lifecycle management."""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

import structlog
import uvicorn

from codecity.daemon.app import create_app

if TYPE_CHECKING:
    from codecity.context import AppContext

logger = structlog.get_logger()


async def run_server(context: AppContext) -> None:
    """Run the daemon until shutdown signal.

    The first SIGINT/SIGTERM asks uvicorn to exit gracefully and schedules
    a forced exit after ``server.shutdown_timeout_sec``; a second signal
    forces exit immediately.
    """
    server_config = context.config.server
    app = create_app(context)

    uvicorn_config = uvicorn.Config(
        app,
        host=server_config.host,
        port=server_config.port,
        log_level="warning",  # Use structlog instead
        ws="none",
    )
    server = uvicorn.Server(uvicorn_config)

    loop = asyncio.get_running_loop()
    shutdown_count = 0
    force_exit_task: asyncio.Task[None] | None = None

    async def force_exit_after_timeout() -> None:
        """Force exit if graceful shutdown takes too long."""
        await asyncio.sleep(server_config.shutdown_timeout_sec)
        logger.info("daemon.forcing_exit_after_timeout")
        server.force_exit = True

    def signal_handler() -> None:
        nonlocal shutdown_count, force_exit_task
        shutdown_count += 1
        logger.info("daemon.shutdown_signal_received", count=shutdown_count)
        server.should_exit = True
        if shutdown_count == 1:
            force_exit_task = loop.create_task(force_exit_after_timeout())
        else:
            # Second signal - force immediate exit
            server.force_exit = True
            if force_exit_task:
                force_exit_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    base_url = f"http://{server_config.host}:{server_config.port}"
    logger.info("daemon.starting", url=base_url)
    logger.info("endpoint", name="health", url=f"{base_url}/health")
    logger.info("endpoint", name="status", url=f"{base_url}/status")
    logger.info("endpoint", name="trees", url=f"{base_url}/trees")

    try:
        await server.serve()
    finally:
        if force_exit_task:
            force_exit_task.cancel()
        context.close()
        logger.info("daemon.stopped")
