"""HTTP daemon serving visualization trees."""

from codecity.daemon.app import create_app
from codecity.daemon.lifecycle import run_server
from codecity.daemon.middleware import REQUEST_ID_HEADER, RequestIdMiddleware
from codecity.daemon.routes import create_routes, status_code_for

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestIdMiddleware",
    "create_app",
    "create_routes",
    "run_server",
    "status_code_for",
]
