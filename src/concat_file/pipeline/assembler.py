"""Assembly stage: the terminal step of the pipeline."""

from __future__ import annotations

import logging

from concat_file.core.exceptions import ConcatFileError
from concat_file.core.types import AssembledCommand, Result, SortedCommand, Success
from concat_file.pipeline.base import BaseAsyncHandler
from concat_file.pipeline.registries import ContentRegistry

log = logging.getLogger(__name__)


class Assembler(BaseAsyncHandler[SortedCommand, AssembledCommand, ConcatFileError]):
    """Concatenates sorted fragment contents with no separators.

    The result is stored in the run's content registry; the first value
    stored for a target stays authoritative for the rest of the run.
    """

    stage_name = "assemble"

    def __init__(self, registry: ContentRegistry | None = None) -> None:
        """Initialize with an optional per-run content registry."""
        self._registry = registry

    async def handle(
        self, command: SortedCommand
    ) -> Result[AssembledCommand, ConcatFileError]:
        """Join the ordered contents into the target's content."""
        content = "".join(f.content for f in command.ordered)
        if self._registry is not None:
            cached = self._registry.get(command.target.ref)
            if cached is not None:
                content = cached
            else:
                self._registry.set(command.target.ref, content)
        log.debug(
            "Assembled %d fragments (%d chars) for %s",
            len(command.ordered),
            len(content),
            command.target.ref,
        )
        return Success(AssembledCommand(sorted=command, content=content))
