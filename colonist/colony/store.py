"""Key-value store seam and the strategic-state repository built on it.

The host owns the shared store; the core only sees the small
:class:`KeyValueStore` protocol.  :class:`StrategicStateRepository`
namespaces keys per colony and turns anything it cannot use (absent,
malformed, or too old) into the default plan.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from colonist.colony.strategic import StrategicState

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal interface to the host's shared memory."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class InMemoryStore:
    """Dict-backed store used by the simulation harness and tests."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._data


class StrategicStateRepository:
    """Reads and writes one colony's strategic plan in a shared store.

    Args:
        store: The host's key-value store.
        max_age: Oldest plan, in ticks, that readers will still accept.
    """

    def __init__(self, store: KeyValueStore, max_age: int = 100) -> None:
        self.store = store
        self.max_age = max_age

    @staticmethod
    def key(colony: str) -> str:
        return f"colony/{colony}/strategic"

    def save(self, colony: str, state: StrategicState) -> None:
        self.store.set(self.key(colony), state.to_dict())

    def load(self, colony: str, now: int) -> StrategicState:
        """Return the stored plan, or the default when it is unusable."""
        raw = self.store.get(self.key(colony))
        if raw is None:
            return StrategicState.default()
        try:
            state = StrategicState.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding malformed strategic state for %s: %s", colony, exc)
            return StrategicState.default()
        age = now - state.updated_at
        if age > self.max_age:
            logger.debug(
                "Strategic state for %s is %d ticks old; using defaults",
                colony,
                age,
            )
            return StrategicState.default()
        return state
