"""HTTP routes for the CodeCity daemon.

Health/status diagnostics plus the tree endpoints. Handlers are async and
push the (blocking) tree service calls onto the threadpool; domain errors
propagate as ``CodeCityError`` and are rendered by ``error_response``.
"""

from __future__ import annotations

import importlib.metadata
import json
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from codecity.config.constants import TREE_DEPTH_MAX
from codecity.core.errors import CodeCityError, ErrorCode, InternalError, TreeError
from codecity.tree.models import VisualizationRequest
from codecity.tree.serialize import node_to_dict, tree_to_dict

if TYPE_CHECKING:
    from codecity.context import AppContext

logger = structlog.get_logger()

_NOT_FOUND_CODES = frozenset(
    {
        ErrorCode.TREE_NOT_FOUND,
        ErrorCode.NODE_NOT_FOUND,
        ErrorCode.INTERFACE_LEAF_NOT_FOUND,
        ErrorCode.METRIC_NOT_FOUND,
    }
)
_BAD_REQUEST_CODES = frozenset(
    {
        ErrorCode.INVALID_REQUEST,
        ErrorCode.CONFIG_PARSE_ERROR,
        ErrorCode.CONFIG_INVALID_VALUE,
        ErrorCode.CONFIG_FILE_NOT_FOUND,
        ErrorCode.SNAPSHOT_INVALID_DOCUMENT,
    }
)


def _get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return importlib.metadata.version("codecity")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _get_db_stats(db_path: Path) -> dict[str, Any]:
    """Get SQLite database statistics."""
    stats: dict[str, Any] = {
        "path": str(db_path),
        "exists": db_path.exists(),
    }
    if db_path.exists():
        stats["size_bytes"] = db_path.stat().st_size

        wal_path = Path(str(db_path) + "-wal")
        if wal_path.exists():
            stats["wal_size_bytes"] = wal_path.stat().st_size
    return stats


def _get_runtime_info() -> dict[str, Any]:
    """Get Python runtime information."""
    return {
        "python_version": sys.version.split()[0],
        "pid": os.getpid(),
    }


def status_code_for(error: CodeCityError) -> int:
    """HTTP status for a domain error."""
    if error.code in _NOT_FOUND_CODES:
        return 404
    if error.code in _BAD_REQUEST_CODES:
        return 400
    return 500


async def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler rendering CodeCityError as JSON."""
    assert isinstance(exc, CodeCityError)
    status = status_code_for(exc)
    log = logger.warning if status < 500 else logger.error
    log(
        "http.error",
        path=request.url.path,
        code=exc.code.value,
        error=exc.error_name,
        status=status,
    )
    return JSONResponse(exc.to_dict(), status_code=status)


async def unexpected_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: any other exception becomes a 500 INTERNAL_ERROR body."""
    logger.error("http.unhandled_error", path=request.url.path, exc_info=exc)
    error = InternalError.unexpected(str(exc), path=request.url.path, type=type(exc).__name__)
    return JSONResponse(error.to_dict(), status_code=500)


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TreeError.invalid_request("body", None, f"invalid JSON: {e}") from e
    if not isinstance(body, dict):
        raise TreeError.invalid_request("body", body, "must be a JSON object")
    return body


def _path_int(request: Request, name: str) -> int:
    value = request.path_params[name]
    assert isinstance(value, int)
    return value


def _depth_param(request: Request) -> int | None:
    raw = request.query_params.get("depth")
    if raw is None:
        return None
    try:
        depth = int(raw)
    except ValueError as e:
        raise TreeError.invalid_request("depth", raw, "must be an integer") from e
    if not 0 <= depth <= TREE_DEPTH_MAX:
        raise TreeError.invalid_request("depth", raw, f"must be between 0 and {TREE_DEPTH_MAX}")
    return depth


def create_routes(context: AppContext) -> list[Route]:
    """Create HTTP routes bound to the application context."""
    version = _get_version()
    service = context.tree_service

    async def health(request: Request) -> JSONResponse:
        """Health check endpoint.

        Returns a quick status suitable for liveness probes.
        For detailed diagnostics, use /status instead.
        """
        _ = request  # unused
        return JSONResponse(
            {
                "status": "healthy",
                "version": version,
                "uptime_seconds": round(context.uptime_seconds, 1),
            }
        )

    async def status(request: Request) -> JSONResponse:
        """Detailed status endpoint with cache and database diagnostics."""
        _ = request  # unused
        keys = service.tree_keys()
        return JSONResponse(
            {
                "version": version,
                "uptime_seconds": round(context.uptime_seconds, 1),
                "runtime": _get_runtime_info(),
                "trees": {
                    "count": len(keys),
                    "keys": keys,
                },
                "database": _get_db_stats(context.database.db_path),
            }
        )

    # -----------------------------------------------------------------
    # Tree routes
    # -----------------------------------------------------------------

    async def create_tree(request: Request) -> JSONResponse:
        """Build (or reuse) the tree for a visualization request."""
        body = await _json_body(request)
        viz_request = VisualizationRequest.from_values(
            root_snapshot_id=body.get("root_snapshot_id"),
            view_type=body.get("view_type", "city"),
            footprint_metric_id=body.get("footprint_metric_id"),
            height_metric_id=body.get("height_metric_id"),
        )
        key = await run_in_threadpool(service.get_or_create_tree_structure, viz_request)
        return JSONResponse({"key": key})

    async def get_tree(request: Request) -> JSONResponse:
        key = request.path_params["key"]
        depth = _depth_param(request)
        root = await run_in_threadpool(service.get_tree_structure, key)
        return JSONResponse(await run_in_threadpool(tree_to_dict, root, depth))

    async def delete_tree(request: Request) -> JSONResponse:
        key = request.path_params["key"]
        if not service.evict_tree(key):
            raise TreeError.tree_not_found(key)
        return JSONResponse({"key": key, "evicted": True})

    async def get_node(request: Request) -> JSONResponse:
        key = request.path_params["key"]
        node = await run_in_threadpool(service.find_node, key, _path_int(request, "node_id"))
        return JSONResponse(node_to_dict(node))

    async def get_child_nodes(request: Request) -> JSONResponse:
        """Children of a node that have children of their own."""
        key = request.path_params["key"]
        nodes = await run_in_threadpool(
            service.get_children_node_ids, key, _path_int(request, "node_id")
        )
        return JSONResponse({"nodes": [node_to_dict(n) for n in nodes]})

    async def get_child_leaves(request: Request) -> JSONResponse:
        """Children of a node that are leaves."""
        key = request.path_params["key"]
        nodes = await run_in_threadpool(
            service.get_children_leaf_ids, key, _path_int(request, "node_id")
        )
        return JSONResponse({"nodes": [node_to_dict(n) for n in nodes]})

    async def add_interface_leaf(request: Request) -> JSONResponse:
        key = request.path_params["key"]
        body = await _json_body(request)
        label = body.get("label")
        if not isinstance(label, str):
            raise TreeError.invalid_request("label", label, "must be a string")
        parent_id = body.get("parent_id")
        if isinstance(parent_id, bool) or not isinstance(parent_id, int):
            raise TreeError.invalid_request("parent_id", parent_id, "must be an integer")
        node = await run_in_threadpool(service.add_interface_leaf_node, key, label, parent_id)
        return JSONResponse(node_to_dict(node))

    async def get_interface_leaf(request: Request) -> JSONResponse:
        key = request.path_params["key"]
        label = request.path_params["label"]
        node = await run_in_threadpool(service.find_interface_leaf_node, key, label)
        return JSONResponse(node_to_dict(node))

    return [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/trees", create_tree, methods=["POST"]),
        Route("/trees/{key}", get_tree, methods=["GET"]),
        Route("/trees/{key}", delete_tree, methods=["DELETE"]),
        Route("/trees/{key}/nodes/{node_id:int}", get_node, methods=["GET"]),
        Route("/trees/{key}/nodes/{node_id:int}/children", get_child_nodes, methods=["GET"]),
        Route("/trees/{key}/nodes/{node_id:int}/leaves", get_child_leaves, methods=["GET"]),
        Route("/trees/{key}/interface-leaves", add_interface_leaf, methods=["POST"]),
        Route(
            "/trees/{key}/interface-leaves/{label:path}",
            get_interface_leaf,
            methods=["GET"],
        ),
    ]
