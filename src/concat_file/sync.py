"""Two-phase handoff of assembled content into the companion file resource.

Phase 1 (`generate`) registers a `FileResource` for the target with its
passthrough attributes and no content, because not every fragment may be
known yet. Phase 2 (`eval_generate`) runs once the fragment population is
final: it assembles the content and injects it into the registered resource.

Content is only written after assembly fully succeeds, and empty content
never overwrites whatever the resource already holds.
"""

from __future__ import annotations

from enum import Enum, auto
import logging
from typing import TYPE_CHECKING, Protocol

from concat_file.core.exceptions import ConcatFileError, InvariantViolationError
from concat_file.core.types import FileResource, Fragment, Target

if TYPE_CHECKING:
    from concat_file.executor import ConcatExecutor

log = logging.getLogger(__name__)


class ResourceGraph(Protocol):
    """The parts of a resource graph the sync adapter relies on."""

    def add(self, resource: FileResource) -> None:
        """Register a new resource."""
        ...

    def resource(self, ref: str) -> FileResource | None:
        """Return an already registered resource by identity."""
        ...

    def fragments(self) -> tuple[Fragment, ...]:
        """Return every fragment declaration currently visible."""
        ...


class TargetState(Enum):
    """Lifecycle of a target during one evaluation run."""

    DECLARED = auto()
    GENERATED = auto()
    RESOLVED = auto()
    SYNCED = auto()
    FAILED = auto()


def build_file_resource(target: Target) -> FileResource:
    """Describe the companion file resource for `target`, without content."""
    return FileResource(
        path=target.path,
        ensure="file" if target.exists() else "absent",
        attributes=target.passthrough(),
        metaparams=target.forwarded_metaparams(),
    )


class SyncAdapter:
    """Drives one target through generate and eval_generate."""

    def __init__(
        self, target: Target, graph: ResourceGraph, executor: ConcatExecutor
    ) -> None:
        """Bind the adapter to a target, its graph and an executor."""
        self.target = target
        self.graph = graph
        self.executor = executor
        self.state = TargetState.DECLARED

    def generate(self) -> FileResource:
        """Phase 1: register the companion resource with content unset."""
        if self.state is not TargetState.DECLARED:
            raise InvariantViolationError(
                f"{self.target.ref} was already generated (state: {self.state.name})"
            )
        resource = build_file_resource(self.target)
        self.graph.add(resource)
        self.state = TargetState.GENERATED
        log.debug("Registered %s for %s", resource.ref, self.target.ref)
        return resource

    async def eval_generate(self) -> FileResource:
        """Phase 2: assemble content and inject it into the companion resource.

        Raises:
            InvariantViolationError: If phase 1 has not run or the companion
                resource is no longer registered.
            ConcatFileError: If assembly fails; the resource is left untouched.
        """
        if self.state is not TargetState.GENERATED:
            raise InvariantViolationError(
                f"{self.target.ref} must be generated before evaluation "
                f"(state: {self.state.name})"
            )
        resource = self.graph.resource(self.target.file_ref)
        if resource is None:
            raise InvariantViolationError(
                f"{self.target.file_ref} is not registered in the resource graph"
            )

        try:
            content = await self.executor.assemble(self.target, self.graph.fragments())
        except ConcatFileError:
            self.state = TargetState.FAILED
            raise
        self.state = TargetState.RESOLVED

        if content:
            resource.content = content
            log.info("Synced %d chars into %s", len(content), resource.ref)
        else:
            log.warning(
                "No content assembled for %s; leaving %s unchanged",
                self.target.ref,
                resource.ref,
            )
        self.state = TargetState.SYNCED
        return resource
