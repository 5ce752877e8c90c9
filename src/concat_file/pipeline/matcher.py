"""Fragment matching stage of the pipeline."""

from __future__ import annotations

from collections.abc import Iterable
import logging

from concat_file.core.exceptions import ConcatFileError
from concat_file.core.types import (
    Fragment,
    InitialCommand,
    MatchedCommand,
    Result,
    Success,
    Target,
)
from concat_file.pipeline.base import BaseAsyncHandler
from concat_file.pipeline.registries import MatchRegistry

log = logging.getLogger(__name__)


def belongs_to(fragment: Fragment, target: Target) -> bool:
    """Return True if `fragment` references `target` by path, title or tag.

    Matching is exact equality only. A tag matches only when it is non-empty.
    """
    if fragment.target is not None and fragment.target in (target.path, target.title):
        return True
    return bool(fragment.tag) and fragment.tag == target.tag


def match_fragments(
    target: Target, population: Iterable[Fragment]
) -> tuple[Fragment, ...]:
    """Select the fragments of `population` that belong to `target`."""
    return tuple(f for f in population if belongs_to(f, target))


class FragmentMatcher(BaseAsyncHandler[InitialCommand, MatchedCommand, ConcatFileError]):
    """Selects the fragments that contribute to the command's target.

    The first match computed for a target within a run is stored in the
    registry and reused by later calls in the same run without re-scanning.
    """

    stage_name = "match"

    def __init__(self, registry: MatchRegistry | None = None) -> None:
        """Initialize with an optional per-run match registry."""
        self._registry = registry

    async def handle(
        self, command: InitialCommand
    ) -> Result[MatchedCommand, ConcatFileError]:
        """Return the matched fragments for the command's target."""
        target = command.target
        if self._registry is not None:
            cached = self._registry.get(target.ref)
            if cached is not None:
                log.debug("Reusing %d matched fragments for %s", len(cached), target.ref)
                return Success(MatchedCommand(initial=command, fragments=cached))

        matched = match_fragments(target, command.fragments)
        log.debug(
            "Matched %d of %d fragments for %s",
            len(matched),
            len(command.fragments),
            target.ref,
        )
        if self._registry is not None:
            self._registry.set(target.ref, matched)
        return Success(MatchedCommand(initial=command, fragments=matched))
