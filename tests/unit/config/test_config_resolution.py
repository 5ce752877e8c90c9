"""Configuration resolution across defaults, files, environment and overrides."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from concat_file.config import (
    ConfigFileError,
    FrozenConfig,
    list_available_profiles,
    resolve_config,
    summarize_origins,
)
from concat_file.core.exceptions import ConfigurationError


def _write_pyproject(root: Path, body: str) -> Path:
    path = root / "pyproject.toml"
    path.write_text(body)
    return path


def _home_file() -> Path:
    return Path(os.environ["CONCAT_FILE_CONFIG_HOME"])


class TestConfigResolution:
    """Precedence: programmatic > env > project file > home file > defaults."""

    @pytest.mark.unit
    def test_defaults(self):
        resolved = resolve_config()
        assert resolved.default_fragment_order == "10"
        assert resolved.encoding == "utf-8"
        assert resolved.source_root is None
        assert resolved.legacy_alpha_split is False
        assert resolved.telemetry is False
        assert set(resolved.origin.values()) == {"default"}

    @pytest.mark.unit
    def test_environment_values_are_coerced(self):
        with patch.dict(
            os.environ,
            {
                "CONCAT_FILE_DEFAULT_FRAGMENT_ORDER": "20",
                "CONCAT_FILE_LEGACY_ALPHA_SPLIT": "true",
                "CONCAT_FILE_SOURCE_ROOT": "/srv/fragments",
            },
        ):
            resolved = resolve_config()

        assert resolved.default_fragment_order == "20"
        assert resolved.legacy_alpha_split is True
        assert resolved.source_root == Path("/srv/fragments")
        assert resolved.origin["legacy_alpha_split"] == "env"
        assert resolved.origin["encoding"] == "default"

    @pytest.mark.unit
    def test_invalid_environment_value(self):
        with (
            patch.dict(os.environ, {"CONCAT_FILE_LEGACY_ALPHA_SPLIT": "maybe"}),
            pytest.raises(ConfigurationError, match="CONCAT_FILE_LEGACY_ALPHA_SPLIT"),
        ):
            resolve_config()

    @pytest.mark.unit
    def test_project_file(self, tmp_path):
        _write_pyproject(
            tmp_path,
            "[tool.concat_file]\ndefault_fragment_order = 30\nencoding = 'latin-1'\n",
        )
        resolved = resolve_config(project_root=tmp_path)
        assert resolved.default_fragment_order == "30"
        assert resolved.encoding == "latin-1"
        assert resolved.origin["default_fragment_order"] == "file"

    @pytest.mark.unit
    def test_project_file_found_from_subdirectory(self, tmp_path):
        _write_pyproject(tmp_path, "[tool.concat_file]\ntelemetry = true\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert resolve_config(project_root=nested).telemetry is True

    @pytest.mark.unit
    def test_project_file_overrides_home_file(self, tmp_path):
        _home_file().write_text("default_fragment_order = '40'\nencoding = 'ascii'\n")
        _write_pyproject(tmp_path, "[tool.concat_file]\ndefault_fragment_order = '30'\n")
        resolved = resolve_config(project_root=tmp_path)
        assert resolved.default_fragment_order == "30"
        assert resolved.encoding == "ascii"

    @pytest.mark.unit
    def test_environment_overrides_files(self, tmp_path):
        _write_pyproject(tmp_path, "[tool.concat_file]\ndefault_fragment_order = '30'\n")
        with patch.dict(os.environ, {"CONCAT_FILE_DEFAULT_FRAGMENT_ORDER": "20"}):
            resolved = resolve_config(project_root=tmp_path)
        assert resolved.default_fragment_order == "20"

    @pytest.mark.unit
    def test_programmatic_overrides_everything(self, tmp_path):
        _write_pyproject(tmp_path, "[tool.concat_file]\ndefault_fragment_order = '30'\n")
        with patch.dict(os.environ, {"CONCAT_FILE_DEFAULT_FRAGMENT_ORDER": "20"}):
            resolved = resolve_config(
                {"default_fragment_order": "5", "not_a_field": 1},
                project_root=tmp_path,
            )
        assert resolved.default_fragment_order == "5"
        assert resolved.origin["default_fragment_order"] == "programmatic"
        assert "not_a_field" not in resolved.origin

    @pytest.mark.unit
    def test_profiles(self, tmp_path):
        _write_pyproject(
            tmp_path,
            "[tool.concat_file]\n"
            "default_fragment_order = '30'\n"
            "[tool.concat_file.profiles.legacy]\n"
            "legacy_alpha_split = true\n",
        )
        resolved = resolve_config(profile="legacy", project_root=tmp_path)
        assert resolved.legacy_alpha_split is True
        assert resolved.default_fragment_order == "10"

        assert list_available_profiles(tmp_path)["project"] == ["legacy"]

    @pytest.mark.unit
    def test_profile_from_environment(self, tmp_path):
        _write_pyproject(
            tmp_path,
            "[tool.concat_file.profiles.ci]\ntelemetry = true\n",
        )
        with patch.dict(os.environ, {"CONCAT_FILE_PROFILE": "ci"}):
            assert resolve_config(project_root=tmp_path).telemetry is True

    @pytest.mark.unit
    def test_missing_project_profile(self, tmp_path):
        _write_pyproject(tmp_path, "[tool.concat_file.profiles.ci]\ntelemetry = true\n")
        with pytest.raises(ConfigFileError, match="Profile 'prod' not found"):
            resolve_config(profile="prod", project_root=tmp_path)

    @pytest.mark.unit
    def test_malformed_project_file(self, tmp_path):
        _write_pyproject(tmp_path, "[tool.concat_file\n")
        with pytest.raises(ConfigFileError):
            resolve_config(project_root=tmp_path)

    @pytest.mark.unit
    def test_malformed_home_file_is_skipped(self, caplog):
        _home_file().write_text("not = [valid")
        with caplog.at_level("WARNING", logger="concat_file.config.resolver"):
            resolved = resolve_config()
        assert resolved.default_fragment_order == "10"
        assert "Skipping home configuration" in caplog.text

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "overrides",
        [
            {"default_fragment_order": "1/2"},
            {"default_fragment_order": ""},
            {"encoding": "no-such-codec"},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigurationError):
            resolve_config(overrides)


@pytest.mark.unit
class TestResolvedConfig:
    def test_to_frozen(self):
        frozen = resolve_config({"telemetry": True}).to_frozen()
        assert frozen == FrozenConfig(telemetry=True)

    def test_frozen_is_immutable(self):
        frozen = FrozenConfig()
        with pytest.raises(AttributeError):
            frozen.encoding = "ascii"  # type: ignore[misc]

    def test_with_overrides(self):
        resolved = resolve_config().with_overrides(encoding="ascii", bogus=1)
        assert resolved.encoding == "ascii"
        assert resolved.origin["encoding"] == "programmatic"

    def test_audit_shows_env_variable_names(self):
        with patch.dict(os.environ, {"CONCAT_FILE_TELEMETRY": "1"}):
            audit = resolve_config().audit()
        assert "telemetry: env:CONCAT_FILE_TELEMETRY=True" in audit
        assert "encoding: default:utf-8" in audit

    def test_summarize_origins(self):
        assert summarize_origins({"a": "env", "b": "default", "c": "default"}) == {
            "env": 1,
            "default": 2,
        }
