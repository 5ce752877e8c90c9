"""Manifest files declaring targets and fragments.

A manifest is a YAML or TOML document with these top-level keys, all
optional:

    targets:    list of target attribute mappings (``path`` required)
    fragments:  list of fragment attribute mappings (``name`` required)
    exported:   fragments stored for collection by tag
    collect:    list of tags whose exported fragments are collected
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import tomllib
from typing import Any, TypeVar

import yaml

from concat_file.catalog import Catalog
from concat_file.core.exceptions import ManifestError, ValidationError
from concat_file.core.types import Fragment, Target

log = logging.getLogger(__name__)

T = TypeVar("T")

_TOP_LEVEL_KEYS = frozenset({"targets", "fragments", "exported", "collect"})


@dataclass(frozen=True)
class Manifest:
    """Declarations read from a manifest file."""

    targets: tuple[Target, ...] = ()
    fragments: tuple[Fragment, ...] = ()
    exported: tuple[Fragment, ...] = ()
    collect: tuple[str, ...] = ()
    base_dir: Path | None = field(default=None, compare=False)

    def build_catalog(self) -> Catalog:
        """Return a catalog holding every declaration of the manifest."""
        catalog = Catalog()
        for target in self.targets:
            catalog.add_target(target)
        for fragment in self.fragments:
            catalog.add_fragment(fragment)
        for fragment in self.exported:
            catalog.export(fragment)
        for tag in self.collect:
            catalog.collect(tag)
        return catalog


def _read(path: Path) -> Any:
    try:
        if path.suffix == ".toml":
            with path.open("rb") as f:
                return tomllib.load(f)
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ManifestError(f"Cannot parse manifest {path}: {e}") from e


def _entries(data: dict[str, Any], key: str, path: Path) -> list[dict[str, Any]]:
    entries = data.get(key) or []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ManifestError(f"{path}: '{key}' must be a list of mappings")
    return entries


def _build(cls: type[T], entry: dict[str, Any], where: str) -> T:
    try:
        return cls(**entry)
    except TypeError as e:
        raise ManifestError(f"{where}: {e}") from e
    except ValidationError as e:
        raise ManifestError(f"{where}: {e}") from e


def parse_manifest(data: Any, path: Path) -> Manifest:
    """Build a Manifest from already-parsed data."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError(f"{path}: top level must be a mapping")
    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        raise ManifestError(f"{path}: unknown keys {sorted(unknown)}")

    targets = tuple(
        _build(Target, e, f"{path}: targets[{i}]")
        for i, e in enumerate(_entries(data, "targets", path))
    )
    fragments = tuple(
        _build(Fragment, e, f"{path}: fragments[{i}]")
        for i, e in enumerate(_entries(data, "fragments", path))
    )
    exported = tuple(
        _build(Fragment, e, f"{path}: exported[{i}]")
        for i, e in enumerate(_entries(data, "exported", path))
    )
    collect = data.get("collect") or []
    if not isinstance(collect, list) or not all(isinstance(t, str) for t in collect):
        raise ManifestError(f"{path}: 'collect' must be a list of tags")

    return Manifest(
        targets=targets,
        fragments=fragments,
        exported=exported,
        collect=tuple(collect),
        base_dir=path.parent,
    )


def load_manifest(path: str | Path) -> Manifest:
    """Read a YAML (.yaml/.yml) or TOML (.toml) manifest.

    Raises:
        ManifestError: If the file cannot be read, parsed or validated.
    """
    manifest_path = Path(path)
    manifest = parse_manifest(_read(manifest_path), manifest_path)
    log.debug(
        "Loaded %d targets and %d fragments from %s",
        len(manifest.targets),
        len(manifest.fragments),
        manifest_path,
    )
    return manifest
