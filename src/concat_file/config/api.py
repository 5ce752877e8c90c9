"""Public API for the configuration system."""

from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .types import ResolvedConfig

_resolver = ConfigResolver()


def resolve_config(
    overrides: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Precedence: Programmatic > Environment > Project file > Home file >
    Defaults.

    Args:
        overrides: Programmatic overrides. Only known fields are used.
        profile: Profile name to load from configuration files. If None,
            CONCAT_FILE_PROFILE is used when set.
        project_root: Directory to search for pyproject.toml. If None, the
            current directory and its parents are searched.

    Returns:
        ResolvedConfig with merged values and per-field origins.

    Raises:
        ConfigurationError: If validation fails.
        ConfigFileError: If the project configuration file is malformed.

    Example:
        config = resolve_config({"default_fragment_order": "50"})
        executor = create_executor(config.to_frozen())
    """
    return _resolver.resolve(overrides, profile=profile, project_root=project_root)


def list_available_profiles(project_root: Path | None = None) -> dict[str, list[str]]:
    """Return profile names found in the project and home files."""
    return _resolver.list_available_profiles(project_root)
