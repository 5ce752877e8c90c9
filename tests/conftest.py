"""
Global test configuration.
"""

import logging
import os

import pytest

from concat_file.config import FrozenConfig
from concat_file.core.sources import MappingContentSource
from concat_file.core.types import Fragment, InitialCommand, MatchedCommand, Target


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_concat_env(request, monkeypatch):
    """Ensure a clean CONCAT_FILE_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the environment.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("CONCAT_FILE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_home_config(request, monkeypatch, tmp_path):
    """Point the home config file at an isolated temp path.

    Prevents reading a developer's real ~/.config/concat_file.toml.
    """
    if request.node.get_closest_marker("allow_real_home_config"):
        return
    fake_home_dir = tmp_path / "home_config_isolated"
    fake_home_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("CONCAT_FILE_CONFIG_HOME", str(fake_home_dir / "concat_file.toml"))


@pytest.fixture(autouse=True)
def isolated_cwd(monkeypatch, tmp_path):
    """Run each test from a temp dir so no stray pyproject.toml is picked up."""
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Catalog, manifest and CLI workflows",
        "allow_env_pollution: keep CONCAT_FILE_* environment variables",
        "allow_real_home_config: read the real home configuration file",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def config():
    """Default frozen configuration."""
    return FrozenConfig()


@pytest.fixture
def memory_source():
    """In-memory content source with two existing locators."""
    return MappingContentSource({"present": b"from present\n", "other": "other\n"})


@pytest.fixture
def motd():
    """A plain present target."""
    return Target(path="/etc/motd", tag="motd")


@pytest.fixture
def make_matched(config):
    """Build a MatchedCommand for a target and fragments."""

    def _make(target: Target, *fragments: Fragment, cfg: FrozenConfig | None = None):
        initial = InitialCommand(
            target=target, fragments=tuple(fragments), config=cfg or config
        )
        return MatchedCommand(initial=initial, fragments=tuple(fragments))

    return _make
