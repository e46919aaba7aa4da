"""Starlette application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette

from codecity.core.errors import CodeCityError
from codecity.daemon.middleware import RequestIdMiddleware
from codecity.daemon.routes import create_routes, error_response, unexpected_error_response

if TYPE_CHECKING:
    from codecity.context import AppContext

logger = structlog.get_logger()


def create_app(context: AppContext) -> Starlette:
    """Create the Starlette application bound to an application context."""

    @asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        logger.info("daemon.app_started", database=str(context.database.db_path))
        yield
        # Cached trees are dropped with the process; connections are
        # released by run_server
        logger.info("daemon.app_stopped", trees=context.cache.size())

    app = Starlette(
        routes=create_routes(context),
        exception_handlers={
            CodeCityError: error_response,
            Exception: unexpected_error_response,
        },
        lifespan=lifespan,
    )
    app.add_middleware(RequestIdMiddleware)
    return app
