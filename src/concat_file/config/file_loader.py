"""File-based configuration loading with profile support.

Configuration is read from the project's `pyproject.toml`
(`[tool.concat_file]`) and from a home-level `~/.config/concat_file.toml`.
Both support named profiles under a `profiles` table.
"""

import os
from pathlib import Path
import tomllib
from typing import Any

from concat_file.core.exceptions import ConcatFileError

HOME_CONFIG_ENV = "CONCAT_FILE_CONFIG_HOME"


class ConfigFileError(ConcatFileError):
    """Raised when configuration file loading fails."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        """Initialize with file path, message, and optional cause."""
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


class FileConfigLoader:
    """Loads configuration from TOML files with profile support."""

    def load_project_config(
        self, project_root: Path | None = None, profile: str | None = None
    ) -> dict[str, Any]:
        """Load configuration from the nearest pyproject.toml.

        Args:
            project_root: Directory to start searching from. If None, the
                current directory and its parents are searched.
            profile: Optional profile under [tool.concat_file.profiles.<name>].

        Returns:
            Configuration values; empty if there is no file or section.

        Raises:
            ConfigFileError: If the file cannot be parsed or the profile is
                missing.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}

        data = self._read_toml(pyproject_path)
        section = data.get("tool", {}).get("concat_file", {})
        if not section:
            return {}
        return self._select_profile(pyproject_path, section, profile)

    def load_home_config(self, profile: str | None = None) -> dict[str, Any]:
        """Load configuration from the home config file.

        Raises:
            ConfigFileError: If the file exists but cannot be parsed or the
                profile is missing.
        """
        home_config_path = self.home_config_path()
        if not home_config_path.exists():
            return {}
        data = self._read_toml(home_config_path)
        return self._select_profile(home_config_path, data, profile)

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        """List profile names from the project and home files."""
        profiles: dict[str, list[str]] = {"project": [], "home": []}

        pyproject_path = self._find_pyproject_toml(project_root)
        if pyproject_path:
            try:
                data = self._read_toml(pyproject_path)
            except ConfigFileError:
                data = {}
            section = data.get("tool", {}).get("concat_file", {})
            profiles["project"] = list(section.get("profiles", {}))

        home_config_path = self.home_config_path()
        if home_config_path.exists():
            try:
                data = self._read_toml(home_config_path)
            except ConfigFileError:
                data = {}
            profiles["home"] = list(data.get("profiles", {}))

        return profiles

    def home_config_path(self) -> Path:
        """Return the home config path, honoring CONCAT_FILE_CONFIG_HOME."""
        override = os.getenv(HOME_CONFIG_ENV)
        if override:
            return Path(override)
        return Path.home() / ".config" / "concat_file.toml"

    def _read_toml(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(mode="rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(path, f"Failed to parse TOML: {e}", cause=e) from e

    def _select_profile(
        self, path: Path, section: dict[str, Any], profile: str | None
    ) -> dict[str, Any]:
        if profile:
            profiles = section.get("profiles", {})
            if profile not in profiles:
                raise ConfigFileError(
                    path,
                    f"Profile '{profile}' not found. Available profiles: {list(profiles)}",
                )
            return dict(profiles[profile])
        config = dict(section)
        config.pop("profiles", None)
        return config

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        """Find pyproject.toml by searching up the directory tree."""
        current = Path(start_dir or Path.cwd()).resolve()
        while True:
            candidate = current / "pyproject.toml"
            if candidate.exists():
                return candidate
            if current == current.parent:
                return None
            current = current.parent
