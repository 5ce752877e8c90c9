"""Lightweight in-memory registries scoped to one evaluation run.

The executor owns an `EvaluationRun`; handlers receive its registries and
consult them before doing work. Entries are keyed by target identity and the
first value stored for a key is authoritative until the run is reset.
Persistence across runs is out of scope.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from concat_file.core.types import Fragment

log = logging.getLogger(__name__)

_run_ids = itertools.count(1)


class SimpleRegistry(Protocol):
    """Minimal get/set registry protocol used by pipeline handlers."""

    def get(self, key: str) -> Any | None:
        """Return the value for `key`, if present."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Associate a key with a value."""
        ...


class MatchRegistry:
    """Maps target identities to the fragments matched for them."""

    def __init__(self) -> None:
        """Initialize an empty mapping."""
        self._matches: dict[str, tuple[Fragment, ...]] = {}

    def get(self, key: str) -> tuple[Fragment, ...] | None:
        """Return the matched fragments for `key`, if computed this run."""
        return self._matches.get(key)

    def set(self, key: str, value: tuple[Fragment, ...]) -> None:
        """Store the first match result for `key`; later writes are ignored."""
        self._matches.setdefault(key, value)

    def clear(self) -> None:
        self._matches.clear()


class ContentRegistry:
    """Maps target identities to their assembled content."""

    def __init__(self) -> None:
        """Initialize an empty mapping."""
        self._contents: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        """Return the assembled content for `key`, if computed this run."""
        return self._contents.get(key)

    def set(self, key: str, value: str) -> None:
        """Store the first assembled content for `key`; later writes are ignored."""
        self._contents.setdefault(key, value)

    def clear(self) -> None:
        self._contents.clear()


class EvaluationRun:
    """Per-run caches shared by the pipeline handlers.

    `reset()` starts a new run in place so handlers holding the registries
    observe the cleared state.
    """

    def __init__(self) -> None:
        """Create the registries for a fresh run."""
        self.matches = MatchRegistry()
        self.contents = ContentRegistry()
        self.run_id = next(_run_ids)

    def reset(self) -> int:
        """Discard all cached state and return the new run id."""
        self.matches.clear()
        self.contents.clear()
        self.run_id = next(_run_ids)
        log.debug("Started evaluation run %d", self.run_id)
        return self.run_id
