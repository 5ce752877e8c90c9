"""Order keys and the sorting stage.

A fragment's sort key is its order value joined to its name with
`KEY_SEPARATOR`. Two total orders are supported:

- numeric: an all-digit order part compares as an integer, anything else as
  a string; integer order parts sort before string ones. Ties fall back to
  the name part, compared as a string.
- alpha: both parts compare as strings, so "10" sorts before "2".
"""

from __future__ import annotations

from collections.abc import Iterable
import logging

from concat_file.core.exceptions import ConcatFileError
from concat_file.core.types import (
    KEY_SEPARATOR,
    OrderMode,
    ResolvedCommand,
    ResolvedFragment,
    Result,
    SortedCommand,
    Success,
)
from concat_file.pipeline.base import BaseAsyncHandler

log = logging.getLogger(__name__)

# Alpha mode historically split keys on two underscores while keys are built
# with three; only used when `legacy_alpha_split` is enabled.
LEGACY_ALPHA_SEPARATOR = "__"


def build_order_key(order: str, name: str) -> str:
    """Join an order value and a fragment name into a composite key."""
    return f"{order}{KEY_SEPARATOR}{name}"


def decompose_key(key: str, separator: str = KEY_SEPARATOR) -> tuple[str, str]:
    """Split a composite key at the first `separator` into (order, name)."""
    order, _, name = key.partition(separator)
    return order, name


def numeric_sort_key(key: str) -> tuple[int, int | str, str]:
    """Sort key for numeric mode."""
    order, name = decompose_key(key)
    if order.isascii() and order.isdigit():
        return (0, int(order), name)
    return (1, order, name)


def alpha_sort_key(key: str, *, legacy_split: bool = False) -> tuple[str, str]:
    """Sort key for alpha mode."""
    separator = LEGACY_ALPHA_SEPARATOR if legacy_split else KEY_SEPARATOR
    return decompose_key(key, separator)


def sort_fragments(
    fragments: Iterable[ResolvedFragment],
    mode: OrderMode = "numeric",
    *,
    legacy_alpha_split: bool = False,
) -> tuple[ResolvedFragment, ...]:
    """Return `fragments` in output order for `mode`.

    The sort is stable, so fragments with identical keys keep their
    declaration order.
    """
    keyed = [(build_order_key(f.order, f.name), f) for f in fragments]
    if mode == "numeric":
        keyed.sort(key=lambda item: numeric_sort_key(item[0]))
    else:
        keyed.sort(
            key=lambda item: alpha_sort_key(item[0], legacy_split=legacy_alpha_split)
        )
    return tuple(f for _, f in keyed)


class Sorter(BaseAsyncHandler[ResolvedCommand, SortedCommand, ConcatFileError]):
    """Orders resolved fragments according to the target's order mode."""

    stage_name = "sort"

    async def handle(
        self, command: ResolvedCommand
    ) -> Result[SortedCommand, ConcatFileError]:
        """Sort the resolved fragments of the command."""
        config = command.matched.initial.config
        ordered = sort_fragments(
            command.resolved,
            command.target.order,
            legacy_alpha_split=config.legacy_alpha_split,
        )
        log.debug(
            "Sorted %s (%s): %s",
            command.target.ref,
            command.target.order,
            [f.name for f in ordered],
        )
        return Success(SortedCommand(resolved=command, ordered=ordered))
