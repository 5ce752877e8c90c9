"""The primary entry point for assembling a target's content.

The executor chains the pipeline stages (match, resolve, sort, assemble),
converts a stage `Failure` into a single `PipelineError` for the target, and
owns the `EvaluationRun` whose caches make assembly happen at most once per
target per run.
"""

from __future__ import annotations

import logging
from time import perf_counter
from typing import TYPE_CHECKING, Any

from concat_file.config import FrozenConfig, resolve_config
from concat_file.core.exceptions import InvariantViolationError, PipelineError
from concat_file.core.sources import ContentSource, FilesystemContentSource
from concat_file.core.types import (
    AssembledCommand,
    Failure,
    Fragment,
    InitialCommand,
    Success,
    Target,
)
from concat_file.pipeline.assembler import Assembler
from concat_file.pipeline.content_resolver import ContentResolver
from concat_file.pipeline.matcher import FragmentMatcher
from concat_file.pipeline.ordering import Sorter
from concat_file.pipeline.registries import EvaluationRun
from concat_file.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Iterable

    from concat_file.pipeline.base import BaseAsyncHandler
    from concat_file.telemetry import TelemetryReporter

log = logging.getLogger(__name__)


class ConcatExecutor:
    """Executes assembly commands through a pipeline of handlers.

    The fragment population is always passed in explicitly; the executor
    never looks fragments up on its own.
    """

    def __init__(
        self,
        config: FrozenConfig,
        source: ContentSource | None = None,
        pipeline_handlers: Iterable[BaseAsyncHandler[Any, Any, Any]] | None = None,
        *,
        reporters: tuple[TelemetryReporter, ...] = (),
    ):
        """Initialize the executor.

        Args:
            config: Frozen configuration for the pipeline.
            source: Content source for fragment locators. Defaults to the
                local filesystem rooted at `config.source_root`.
            pipeline_handlers: Optional handlers replacing the default pipeline.
            reporters: Telemetry reporters, used when telemetry is enabled.
        """
        self.config = config
        self.source = (
            source if source is not None else FilesystemContentSource(config.source_root)
        )
        self.run = EvaluationRun()
        self._reporters = reporters
        self._pipeline = list(pipeline_handlers or self._build_default_pipeline())

    def _build_default_pipeline(self) -> list[Any]:
        return [
            FragmentMatcher(self.run.matches),
            ContentResolver(self.source),
            Sorter(),
            Assembler(self.run.contents),
        ]

    def start_run(self) -> int:
        """Discard per-run caches and begin a new evaluation run."""
        return self.run.reset()

    async def execute(self, command: InitialCommand) -> AssembledCommand:
        """Run a command through every stage.

        Raises:
            PipelineError: If any stage returns a failure result.
            InvariantViolationError: If a stage returns a non-Result value or
                the pipeline does not end with assembled content.
        """
        current: Any = command
        target = command.target
        stage_name = None
        ctx = TelemetryContext(*self._reporters, enabled=self.config.telemetry or None)

        for handler in self._pipeline:
            stage_name = getattr(handler, "stage_name", type(handler).__name__)
            with ctx("pipeline.stage", stage=stage_name):
                start = perf_counter()
                result = await handler.handle(current)
                duration = perf_counter() - start
            log.debug("Stage %s finished in %.6fs for %s", stage_name, duration, target.ref)

            if not isinstance(result, Success | Failure):
                raise InvariantViolationError(
                    "Handler returned a non-Result value; expected Success|Failure.",
                    stage_name=stage_name,
                )
            if isinstance(result, Failure):
                ctx.count("pipeline.error", stage=stage_name)
                raise PipelineError(
                    str(result.error), stage_name, result.error, target=target.path
                )
            current = result.value

        if not isinstance(current, AssembledCommand):
            raise InvariantViolationError(
                "Pipeline ended without assembled content; the final stage must "
                "produce an AssembledCommand (e.g., Assembler).",
                stage_name=stage_name,
            )
        return current

    async def assemble(self, target: Target, fragments: Iterable[Fragment]) -> str:
        """Return the assembled content for `target` in the current run.

        Content already assembled for the target during this run is returned
        as is, without re-resolving any fragment.
        """
        cached = self.run.contents.get(target.ref)
        if cached is not None:
            log.debug("Reusing assembled content for %s", target.ref)
            return cached
        command = InitialCommand(
            target=target, fragments=tuple(fragments), config=self.config
        )
        assembled = await self.execute(command)
        return assembled.content

    @property
    def stage_names(self) -> tuple[str, ...]:
        """Return the pipeline's stage names in execution order."""
        return tuple(
            getattr(h, "stage_name", type(h).__name__) for h in self._pipeline
        )


def create_executor(
    config: FrozenConfig | None = None,
    source: ContentSource | None = None,
    *,
    reporters: tuple[TelemetryReporter, ...] = (),
) -> ConcatExecutor:
    """Create an executor, resolving configuration when none is given.

    This is the only place where ambient configuration is resolved.
    """
    final_config = config if config is not None else resolve_config().to_frozen()
    return ConcatExecutor(final_config, source, reporters=reporters)
