"""Configuration management for concat_file.

Resolve-once, freeze-then-flow configuration:
- ResolvedConfig: post-resolution configuration with audit metadata
- FrozenConfig: immutable configuration for pipeline execution
- SourceMap: origin of each configuration value
"""

from .api import list_available_profiles, resolve_config
from .audit import SourceTracker, summarize_origins
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import ConcatSettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [  # noqa: RUF022
    "resolve_config",
    "list_available_profiles",
    # Core types
    "ResolvedConfig",
    "FrozenConfig",
    "SourceMap",
    "ConfigOrigin",
    # Advanced usage
    "ConcatSettings",
    "ConfigResolver",
    "FileConfigLoader",
    "ConfigFileError",
    "SourceTracker",
    "summarize_origins",
]
