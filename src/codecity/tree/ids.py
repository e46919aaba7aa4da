"""Generated id allocation for synthetic tree nodes."""

from __future__ import annotations

import threading

from codecity.config.constants import GENERATED_ID_HIGH_WATER, GENERATED_ID_RESERVED
from codecity.core.errors import InternalError


class GeneratedIdSequence:
    """Descending, thread-safe id sequence in a reserved high range.

    Ids are issued from ``high_water - 1`` downwards and never reach below
    ``floor``. Real snapshot ids must be smaller than ``floor``.
    """

    def __init__(
        self,
        high_water: int = GENERATED_ID_HIGH_WATER,
        reserved: int = GENERATED_ID_RESERVED,
    ) -> None:
        if reserved <= 0 or reserved >= high_water:
            raise ValueError(f"reserved must be in (0, {high_water}), got {reserved}")
        self._high_water = high_water
        self._floor = high_water - reserved
        self._next = high_water - 1
        self._lock = threading.Lock()

    @property
    def high_water(self) -> int:
        return self._high_water

    @property
    def floor(self) -> int:
        return self._floor

    def next_id(self) -> int:
        with self._lock:
            if self._next < self._floor:
                raise InternalError.id_sequence_exhausted(self._floor)
            value = self._next
            self._next -= 1
            return value

    def is_generated(self, node_id: int) -> bool:
        return self._floor <= node_id < self._high_water

    @property
    def issued(self) -> int:
        with self._lock:
            return self._high_water - 1 - self._next
