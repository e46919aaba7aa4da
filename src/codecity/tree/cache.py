"""In-memory cache of built visualization trees.

Design:
- Keyed by the request fingerprint string
- Reads go straight to a dict and never take a lock
- Builds for a missing key are serialized by a per-key lock, so at most one
  build runs per key; other callers for that key wait and reuse the result
- A failing build stores nothing; the next caller builds again
- A key's lock entry is dropped once no caller holds or awaits it
- No TTL, no size bound: entries live until ``remove`` or ``clear``
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

import structlog

from codecity.tree.models import TreeNode

log = structlog.get_logger(__name__)

TreeBuilder = Callable[[], TreeNode]


class _BuildSlot:
    """Per-key build lock and the number of callers currently holding or awaiting it."""

    __slots__ = ("holders", "lock")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class TreeCache:
    """Process-lifetime map from fingerprint to tree root.

    Owned by the application context and shared by every request handler.
    """

    def __init__(self) -> None:
        self._trees: dict[str, TreeNode] = {}
        self._registry_lock = threading.Lock()
        self._build_locks: dict[str, _BuildSlot] = {}

    def get_or_build(self, key: str, build_fn: TreeBuilder) -> TreeNode:
        """Return the cached tree for key, building it at most once."""
        tree = self._trees.get(key)
        if tree is not None:
            log.debug("tree_cache.hit", key=key)
            return tree

        with self._registry_lock:
            slot = self._build_locks.setdefault(key, _BuildSlot())
            slot.holders += 1

        try:
            with slot.lock:
                # Another caller may have published while we waited
                tree = self._trees.get(key)
                if tree is not None:
                    log.debug("tree_cache.hit_after_wait", key=key)
                    return tree

                started = time.perf_counter()
                try:
                    tree = build_fn()
                except Exception:
                    log.warning("tree_cache.build_failed", key=key, exc_info=True)
                    raise
                self._trees[key] = tree
        finally:
            with self._registry_lock:
                slot.holders -= 1
                if slot.holders == 0:
                    del self._build_locks[key]

        log.info(
            "tree_cache.built",
            key=key,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            size=len(self._trees),
        )
        return tree

    def contains(self, key: str) -> bool:
        return key in self._trees

    def get(self, key: str) -> TreeNode | None:
        return self._trees.get(key)

    def remove(self, key: str) -> bool:
        """Evict key. Returns True if an entry was removed."""
        removed = self._trees.pop(key, None) is not None
        if removed:
            log.info("tree_cache.removed", key=key, size=len(self._trees))
        return removed

    def clear(self) -> None:
        count = len(self._trees)
        self._trees.clear()
        log.info("tree_cache.cleared", count=count)

    def size(self) -> int:
        return len(self._trees)

    def keys(self) -> list[str]:
        return sorted(self._trees)

    def __contains__(self, key: object) -> bool:
        return key in self._trees

    def __len__(self) -> int:
        return len(self._trees)
