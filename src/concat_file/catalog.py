"""In-memory resource graph with a two-phase compile.

`Catalog` holds target and fragment declarations, exported fragments waiting
to be collected, and the companion file resources registered by the sync
adapters. `compile()` evaluates in a fixed order:

1. phase 1 for every target (register companion resources),
2. collection of exported fragments,
3. phase 2 for every target, once the fragment population is final.

A failure in phase 2 is recorded for its target only; the other targets are
still evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING

from concat_file.core.exceptions import ConcatFileError, ValidationError
from concat_file.core.types import FileResource, Fragment, Target
from concat_file.sync import SyncAdapter, TargetState

if TYPE_CHECKING:
    from concat_file.executor import ConcatExecutor

log = logging.getLogger(__name__)


@dataclass
class CompileReport:
    """Outcome of a catalog compile, keyed by target path."""

    synced: dict[str, FileResource] = field(default_factory=dict)
    failed: dict[str, ConcatFileError] = field(default_factory=dict)
    states: dict[str, TargetState] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class Catalog:
    """A minimal resource graph for targets, fragments and file resources."""

    def __init__(self) -> None:
        """Initialize an empty catalog."""
        self._targets: dict[str, Target] = {}
        self._fragments: dict[str, Fragment] = {}
        self._exported: list[Fragment] = []
        self._collectors: list[str] = []
        self._resources: dict[str, FileResource] = {}
        self.edges: list[tuple[str, str]] = []

    # --- Declarations ---

    def add_target(self, target: Target) -> None:
        """Declare a target; titles and paths must be unique."""
        if target.ref in self._targets:
            raise ValidationError(f"Duplicate declaration: {target.ref} is already declared")
        if any(t.path == target.path for t in self._targets.values()):
            raise ValidationError(
                f"Duplicate declaration: path {target.path} is already managed"
            )
        self._targets[target.ref] = target

    def add_fragment(self, fragment: Fragment) -> None:
        """Declare a fragment; names must be unique."""
        if fragment.name in self._fragments:
            raise ValidationError(
                f"Duplicate declaration: fragment '{fragment.name}' is already declared"
            )
        self._fragments[fragment.name] = fragment

    def export(self, fragment: Fragment) -> None:
        """Store a fragment for later collection by tag."""
        self._exported.append(fragment)

    def collect(self, tag: str) -> None:
        """Collect exported fragments carrying `tag` during the next compile."""
        if not tag:
            raise ValidationError("Collection requires a non-empty tag")
        self._collectors.append(tag)

    def realize_collected(self) -> int:
        """Move matching exported fragments into the catalog.

        Fragments whose name is already declared are skipped. Returns the
        number of fragments realized.
        """
        realized = 0
        for fragment in self._exported:
            if fragment.tag not in self._collectors:
                continue
            if fragment.name in self._fragments:
                log.debug("Exported fragment %s already declared", fragment.name)
                continue
            self._fragments[fragment.name] = fragment
            realized += 1
        log.debug("Realized %d exported fragments", realized)
        return realized

    def targets(self) -> tuple[Target, ...]:
        return tuple(self._targets.values())

    # --- ResourceGraph ---

    def add(self, resource: FileResource) -> None:
        """Register a companion resource."""
        if resource.ref in self._resources:
            raise ValidationError(
                f"Duplicate declaration: {resource.ref} is already declared"
            )
        self._resources[resource.ref] = resource

    def resource(self, ref: str) -> FileResource | None:
        """Return a registered resource by identity."""
        return self._resources.get(ref)

    def fragments(self) -> tuple[Fragment, ...]:
        """Return every fragment visible in the catalog, in declaration order."""
        return tuple(self._fragments.values())

    # --- Evaluation ---

    async def compile(self, executor: ConcatExecutor) -> CompileReport:
        """Evaluate every target in two phases and report the outcome."""
        executor.start_run()
        self._resources.clear()
        self.edges.clear()
        report = CompileReport()

        adapters = [SyncAdapter(t, self, executor) for t in self._targets.values()]
        for adapter in adapters:
            adapter.generate()
            self.edges.extend(
                (adapter.target.ref, ref) for ref in adapter.target.autorequire()
            )

        self.realize_collected()

        for adapter in adapters:
            path = adapter.target.path
            try:
                report.synced[path] = await adapter.eval_generate()
            except ConcatFileError as e:
                log.error("Failed to sync %s: %s", adapter.target.ref, e)
                report.failed[path] = e
            report.states[path] = adapter.state
        return report
