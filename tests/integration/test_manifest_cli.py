"""Manifest loading and the command line interface."""

import json
from pathlib import Path
import textwrap

import pytest

from concat_file.cli import main
from concat_file.core.exceptions import ManifestError
from concat_file.manifest import load_manifest

MOTD_YAML = """\
targets:
  - path: /etc/motd
    tag: motd
    mode: "0644"
    ensure_newline: true
fragments:
  - name: header
    tag: motd
    order: 1
    content: Welcome
  - name: body
    target: /etc/motd
    source: [missing.txt, fragments/body.txt]
exported:
  - name: remote
    tag: motd
    order: 99
    content: from another node
collect: [motd]
"""


@pytest.fixture
def motd_manifest(tmp_path: Path) -> Path:
    (tmp_path / "fragments").mkdir()
    (tmp_path / "fragments" / "body.txt").write_text("Body text\n")
    path = tmp_path / "site.yaml"
    path.write_text(MOTD_YAML)
    return path


@pytest.mark.integration
class TestLoadManifest:
    def test_yaml(self, motd_manifest):
        manifest = load_manifest(motd_manifest)
        assert [t.path for t in manifest.targets] == ["/etc/motd"]
        assert [f.name for f in manifest.fragments] == ["header", "body"]
        assert manifest.fragments[0].order == "1"
        assert manifest.fragments[1].source == ("missing.txt", "fragments/body.txt")
        assert [f.name for f in manifest.exported] == ["remote"]
        assert manifest.collect == ("motd",)
        assert manifest.base_dir == motd_manifest.parent

    def test_toml(self, tmp_path):
        path = tmp_path / "site.toml"
        path.write_text(
            textwrap.dedent(
                """\
                [[targets]]
                path = "/etc/issue"
                order = "alpha"

                [[fragments]]
                name = "a"
                target = "/etc/issue"
                content = "hello"
                """
            )
        )
        manifest = load_manifest(path)
        assert manifest.targets[0].order == "alpha"
        assert manifest.fragments[0].content == "hello"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_manifest(path).targets == ()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError, match="Cannot read manifest"):
            load_manifest(tmp_path / "nope.yaml")

    def test_unparsable_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("targets: [\n")
        with pytest.raises(ManifestError, match="Cannot parse manifest"):
            load_manifest(path)

    def test_unknown_top_level_key(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("files: []\n")
        with pytest.raises(ManifestError, match="unknown keys"):
            load_manifest(path)

    def test_unknown_attribute(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("targets:\n  - path: /etc/x\n    colour: blue\n")
        with pytest.raises(ManifestError, match=r"targets\[0\]"):
            load_manifest(path)

    def test_invalid_declaration(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("fragments:\n  - name: a\n    tag: t\n")
        with pytest.raises(ManifestError, match="Must specify either source or content"):
            load_manifest(path)

    def test_entries_must_be_mappings(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("targets: [/etc/motd]\n")
        with pytest.raises(ManifestError, match="list of mappings"):
            load_manifest(path)


@pytest.mark.integration
class TestRenderCommand:
    def test_render_text(self, motd_manifest, capsys):
        assert main(["render", str(motd_manifest)]) == 0
        out = capsys.readouterr().out
        assert out == (
            "==> /etc/motd (file)\nWelcome\nBody text\nfrom another node\n"
        )

    def test_render_json(self, motd_manifest, capsys):
        assert main(["render", str(motd_manifest), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["/etc/motd"]["mode"] == "0644"
        assert data["/etc/motd"]["ensure"] == "file"
        assert data["/etc/motd"]["content"].startswith("Welcome\n")

    def test_render_failure_exits_nonzero(self, tmp_path, capsys):
        path = tmp_path / "site.yaml"
        path.write_text(
            "targets:\n  - path: /etc/a\n"
            "fragments:\n  - name: x\n    target: /etc/a\n    source: gone.txt\n"
        )
        assert main(["render", str(path)]) == 1
        err = capsys.readouterr().err
        assert "/etc/a (failed)" in err
        assert "gone.txt" in err

    def test_render_unknown_target(self, motd_manifest, capsys):
        assert main(["render", str(motd_manifest), "--target", "/etc/issue"]) == 1
        assert "No target declared for /etc/issue" in capsys.readouterr().err

    def test_render_invalid_manifest(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("targets:\n  - path: relative\n")
        assert main(["render", str(path)]) == 1
        assert "File paths must be fully qualified" in capsys.readouterr().err

    def test_source_root_from_environment(self, motd_manifest, tmp_path, monkeypatch, capsys):
        other = tmp_path / "elsewhere" / "fragments"
        other.mkdir(parents=True)
        (other / "body.txt").write_text("Other body\n")
        monkeypatch.setenv("CONCAT_FILE_SOURCE_ROOT", str(tmp_path / "elsewhere"))

        assert main(["render", str(motd_manifest)]) == 0
        assert "Other body\n" in capsys.readouterr().out


@pytest.mark.integration
class TestConfigCommand:
    def test_config_text(self, monkeypatch, capsys):
        monkeypatch.setenv("CONCAT_FILE_DEFAULT_FRAGMENT_ORDER", "20")
        assert main(["config"]) == 0
        out = capsys.readouterr().out
        assert "=== Effective Configuration ===" in out
        assert "default_fragment_order: env:CONCAT_FILE_DEFAULT_FRAGMENT_ORDER=20" in out

    def test_config_json(self, capsys):
        assert main(["config", "--json"]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["values"]["encoding"] == "utf-8"
        assert info["origin"]["encoding"] == "default"
        assert info["summary"] == {"default": 5}

    def test_invalid_configuration(self, monkeypatch, capsys):
        monkeypatch.setenv("CONCAT_FILE_ENCODING", "no-such-codec")
        assert main(["config"]) == 1
        assert capsys.readouterr().err.startswith("Error: ")


@pytest.mark.integration
class TestProfileOption:
    @pytest.fixture(autouse=True)
    def ci_profile(self):
        Path("pyproject.toml").write_text(
            "[tool.concat_file.profiles.ci]\n"
            "telemetry = true\n"
            "default_fragment_order = '50'\n"
        )

    def test_profile_after_subcommand(self, capsys):
        assert main(["config", "--profile", "ci", "--json"]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["values"]["telemetry"] is True
        assert info["values"]["default_fragment_order"] == "50"
        assert info["origin"]["telemetry"] == "file"

    def test_profile_before_subcommand(self, capsys):
        assert main(["--profile", "ci", "config", "--json"]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["values"]["telemetry"] is True

    def test_unknown_profile(self, capsys):
        assert main(["config", "--profile", "prod"]) == 1
        assert "Profile 'prod' not found" in capsys.readouterr().err

    def test_render_with_profile_reports_stage_timings(self, motd_manifest, capsys):
        assert main(["render", str(motd_manifest), "--profile", "ci"]) == 0
        captured = capsys.readouterr()
        assert captured.out.startswith("==> /etc/motd (file)\n")
        assert "=== Telemetry Report ===" in captured.err
        assert "pipeline.stage" in captured.err


@pytest.mark.integration
def test_very_verbose_render_prints_telemetry_report(motd_manifest, capsys):
    assert main(["-vv", "render", str(motd_manifest)]) == 0
    err = capsys.readouterr().err
    assert "=== Telemetry Report ===" in err
    assert "pipeline.stage" in err
    assert "pipeline.error" not in err


@pytest.mark.integration
def test_render_without_telemetry_prints_no_report(motd_manifest, capsys):
    assert main(["render", str(motd_manifest)]) == 0
    assert "Telemetry Report" not in capsys.readouterr().err
