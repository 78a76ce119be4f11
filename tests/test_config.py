"""Tests for src/config.py — QuireConfig, TOML loading, env and CLI overrides."""

from pathlib import Path

import pytest

from quire.config import QuireConfig, load_config, merge_cli_overrides
from quire.errors import ConfigError
from quire.publish import OutputFormat, SortOrder
from quire.revisions import RevisionDetector


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove env vars that _apply_env_vars reads so tests see TOML values."""
    for key in (
        "QUIRE_OUTPUT_DIR",
        "QUIRE_OUTPUT_FORMAT",
        "QUIRE_THRESHOLD",
        "QUIRE_WORKERS",
        "QUIRE_INCLUDE_DRAFTS",
    ):
        monkeypatch.delenv(key, raising=False)


class TestQuireConfigDefaults:
    def test_defaults(self):
        cfg = QuireConfig()
        assert cfg.sources.published_dir == "_posts"
        assert cfg.sources.drafts_dir == "_drafts"
        assert cfg.output.directory == "./_site"
        assert cfg.output.format == OutputFormat.HTML
        assert cfg.detector.threshold == 0.6
        assert cfg.publish.include_drafts is False
        assert cfg.publish.sort_order == SortOrder.NEWEST_FIRST
        assert cfg.pipeline.workers is None

    def test_detector_build(self):
        detector = QuireConfig().detector.build()
        assert isinstance(detector, RevisionDetector)
        assert detector.threshold == 0.6


class TestLoadConfig:
    def test_explicit_file(self, tmp_path: Path):
        path = tmp_path / "site.toml"
        path.write_text(
            '[detector]\nthreshold = 0.8\n\n[publish]\nsort_order = "oldest-first"\n'
            '\n[output]\nformat = "json"\n',
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.detector.threshold == 0.8
        assert cfg.publish.sort_order == SortOrder.OLDEST_FIRST
        assert cfg.output.format == OutputFormat.JSON

    def test_missing_file_uses_defaults(self, tmp_path: Path):
        assert load_config(tmp_path / "absent.toml") == QuireConfig()

    def test_cwd_file(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".quire.toml").write_text("[publish]\ninclude_drafts = true\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert load_config().publish.include_drafts is True

    def test_undecodable_toml_warns(self, tmp_path: Path, caplog):
        path = tmp_path / "bad.toml"
        path.write_text("[detector\nthreshold = ", encoding="utf-8")
        with caplog.at_level("WARNING"):
            cfg = load_config(path)
        assert cfg == QuireConfig()
        assert any("Failed to parse" in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize(
        "body",
        [
            "[detector]\nthreshold = 1.5\n",
            "[detector]\nthreshold = -0.2\n",
            '[publish]\nsort_order = "sideways"\n',
            '[output]\nformat = "pdf"\n',
            "[publish]\nunknown = true\n",
            "[pipeline]\nworkers = 0\n",
        ],
    )
    def test_invalid_values_raise(self, tmp_path: Path, body: str):
        path = tmp_path / "cfg.toml"
        path.write_text(body, encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)


class TestEnvVars:
    def test_overrides(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("QUIRE_THRESHOLD", "0.75")
        monkeypatch.setenv("QUIRE_OUTPUT_DIR", "/tmp/out")
        monkeypatch.setenv("QUIRE_INCLUDE_DRAFTS", "yes")
        monkeypatch.setenv("QUIRE_WORKERS", "3")
        cfg = load_config(tmp_path / "absent.toml")
        assert cfg.detector.threshold == 0.75
        assert cfg.output.directory == "/tmp/out"
        assert cfg.publish.include_drafts is True
        assert cfg.pipeline.workers == 3

    def test_invalid_env_threshold(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("QUIRE_THRESHOLD", "lots")
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.toml")


class TestMergeCliOverrides:
    def test_none_values_ignored(self):
        cfg = merge_cli_overrides(QuireConfig(), threshold=None, include_drafts=None)
        assert cfg == QuireConfig()

    def test_overrides_applied(self):
        cfg = merge_cli_overrides(
            QuireConfig(),
            threshold=0.9,
            include_drafts=True,
            sort_order="oldest-first",
            output_format="json",
            workers=2,
        )
        assert cfg.detector.threshold == 0.9
        assert cfg.publish.include_drafts is True
        assert cfg.publish.sort_order == SortOrder.OLDEST_FIRST
        assert cfg.output.format == OutputFormat.JSON
        assert cfg.pipeline.workers == 2

    def test_invalid_override(self):
        with pytest.raises(ConfigError):
            merge_cli_overrides(QuireConfig(), threshold=2.0)

    def test_unknown_flag(self):
        with pytest.raises(ConfigError):
            merge_cli_overrides(QuireConfig(), colour="blue")
