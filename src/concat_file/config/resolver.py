"""Configuration resolution with precedence handling.

Merges configuration from all sources in the documented precedence order:
Programmatic > Environment > Project file > Home file > Defaults
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from concat_file.core.exceptions import ConfigurationError

from .audit import SourceTracker
from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import ConcatSettings
from .types import ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)

PROFILE_ENV = "CONCAT_FILE_PROFILE"


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self) -> None:
        """Initialize the configuration resolver."""
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        overrides: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources.

        Args:
            overrides: Programmatic overrides (highest precedence).
            profile: Profile name to load from files; defaults to
                CONCAT_FILE_PROFILE when unset.
            project_root: Directory to search for pyproject.toml.

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ConfigurationError: If validation fails.
            ConfigFileError: If the project file is malformed.
        """
        source_tracker = SourceTracker()
        merged: dict[str, Any] = {}

        if profile is None:
            profile = os.getenv(PROFILE_ENV)

        def apply(values: dict[str, Any], origin: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in merged:  # Only override known fields
                    merged[field] = value
                    source_tracker.set_origin(field, origin)
                else:
                    log.debug("Ignoring unknown config field %r from %s", field, origin)

        # Field defaults only; instantiating the settings would read the env
        for field, info in ConcatSettings.model_fields.items():
            merged[field] = info.get_default(call_default_factory=True)
            source_tracker.set_origin(field, "default")

        # Home config errors are non-fatal
        try:
            apply(self.file_loader.load_home_config(profile=profile), "file")
        except ConfigFileError as e:
            log.warning("Skipping home configuration: %s", e)

        apply(
            self.file_loader.load_project_config(
                project_root=project_root, profile=profile
            ),
            "file",
        )

        try:
            apply(self.env_loader.load_env_config(), "env")
        except ValueError as e:
            raise ConfigurationError(f"Environment configuration error: {e}") from e

        if overrides:
            apply(overrides, "programmatic")

        try:
            validated = ConcatSettings(**merged).to_dict()
        except PydanticValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(**validated, origin=source_tracker.get_source_map())

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        """List all available profiles from project and home files."""
        return self.file_loader.list_available_profiles(project_root)
