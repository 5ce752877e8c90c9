"""Content resolution stage of the pipeline."""

from __future__ import annotations

import logging

from concat_file.core.exceptions import ContentResolutionError
from concat_file.core.sources import ContentSource
from concat_file.core.types import (
    Failure,
    Fragment,
    MatchedCommand,
    ResolvedCommand,
    ResolvedFragment,
    Result,
    Success,
)
from concat_file.pipeline.base import BaseAsyncHandler

log = logging.getLogger(__name__)


def ensure_trailing_newline(content: str) -> str:
    """Append a newline unless `content` already ends with one."""
    return content if content.endswith("\n") else content + "\n"


class ContentResolver(
    BaseAsyncHandler[MatchedCommand, ResolvedCommand, ContentResolutionError]
):
    """Turns each matched fragment into concrete content.

    Literal content is used verbatim and the source list is then never
    consulted. Otherwise locators are probed in declaration order and the
    first one that exists is fetched; the remainder are not examined.
    """

    stage_name = "resolve"

    def __init__(self, source: ContentSource) -> None:
        """Initialize with the content source used for locator lookups."""
        self._source = source

    async def handle(
        self, command: MatchedCommand
    ) -> Result[ResolvedCommand, ContentResolutionError]:
        """Resolve every matched fragment, failing on the first unresolvable one."""
        config = command.initial.config
        target = command.target
        resolved: list[ResolvedFragment] = []
        for fragment in command.fragments:
            try:
                content = self.resolve_fragment(fragment, encoding=config.encoding)
            except ContentResolutionError as e:
                return Failure(e)
            if target.ensure_newline:
                content = ensure_trailing_newline(content)
            order = (
                fragment.order
                if fragment.order is not None
                else config.default_fragment_order
            )
            resolved.append(
                ResolvedFragment(order=order, name=fragment.name, content=content)
            )
        return Success(ResolvedCommand(matched=command, resolved=tuple(resolved)))

    def resolve_fragment(self, fragment: Fragment, *, encoding: str = "utf-8") -> str:
        """Return the content of a single fragment.

        Raises:
            ContentResolutionError: If no declared locator exists, a lookup
                fails, or fetched bytes cannot be decoded.
        """
        if fragment.content is not None:
            return fragment.content

        locators = fragment.source or ()
        for locator in locators:
            try:
                found = self._source.exists(locator)
                if not found:
                    log.debug("Source %s not found for %s", locator, fragment.name)
                    continue
                data = self._source.fetch(locator)
            except OSError as e:
                raise ContentResolutionError(
                    f"Could not retrieve source {locator} for fragment "
                    f"'{fragment.name}': {e}",
                    fragment=fragment.name,
                    locators=locators,
                ) from e
            except Exception as e:  # Defensive guardrail
                raise ContentResolutionError(
                    f"Content source failed on {locator} for fragment "
                    f"'{fragment.name}': {e}",
                    fragment=fragment.name,
                    locators=locators,
                ) from e
            log.debug("Fetched %s for %s", locator, fragment.name)
            try:
                return data.decode(encoding)
            except UnicodeDecodeError as e:
                raise ContentResolutionError(
                    f"Source {locator} for fragment '{fragment.name}' is not "
                    f"valid {encoding}: {e}",
                    fragment=fragment.name,
                    locators=locators,
                ) from e

        raise ContentResolutionError(
            f"Could not retrieve source(s) {', '.join(locators)} "
            f"for fragment '{fragment.name}'",
            fragment=fragment.name,
            locators=locators,
        )
