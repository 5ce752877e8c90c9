"""Core configuration data types.

Configuration follows a resolve-once, freeze-then-flow pattern: a
`ResolvedConfig` carries audit metadata, and its `FrozenConfig` form is what
the pipeline receives.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, NamedTuple

from .schema import ENV_PREFIX

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing."""

    default_fragment_order: str
    encoding: str
    source_root: Path | None
    legacy_alpha_split: bool
    telemetry: bool

    # Tracks where each field value came from
    origin: SourceMap

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration used in the pipeline."""
        return FrozenConfig(
            default_fragment_order=self.default_fragment_order,
            encoding=self.encoding,
            source_root=self.source_root,
            legacy_alpha_split=self.legacy_alpha_split,
            telemetry=self.telemetry,
        )

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Return a copy with programmatic overrides applied.

        Unknown fields are ignored.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)
        for field, value in overrides.items():
            if field in new_values and field != "origin":
                new_values[field] = value
                new_origin[field] = "programmatic"
        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Return a report showing the origin of each field."""
        lines = []
        for field in self._fields:
            if field == "origin" or field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if origin == "env":
                value_display = f"env:{ENV_PREFIX}{field.upper()}={value}"
            else:
                value_display = f"{origin}:{value}"
            lines.append(f"{field}: {value_display}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration attached to commands in the pipeline."""

    default_fragment_order: str = "10"
    encoding: str = "utf-8"
    source_root: Path | None = None
    legacy_alpha_split: bool = False
    telemetry: bool = False
