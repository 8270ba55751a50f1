"""Tests for worker configuration loading."""

from __future__ import annotations

import pytest

from relayscript.config import (
    ENV_CONFIG,
    ENV_LOG_SEVERITY,
    ENV_PRELOAD,
    ENV_TERMINATOR,
    WorkerConfig,
    load_config_file,
    load_worker_config,
)
from relayscript.core.types import Severity


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (ENV_CONFIG, ENV_LOG_SEVERITY, ENV_PRELOAD, ENV_TERMINATOR):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "relayscript.yaml"
    path.write_text("log_severity: debug\nterminator: quit\npreload:\n  - pkg.ops\n  - ./more.py\n")
    return path


class TestWorkerConfig:
    """Tests for WorkerConfig validation."""

    def test_defaults(self) -> None:
        config = WorkerConfig()

        assert config.log_severity is Severity.INFO
        assert config.terminator == "done"
        assert config.preload == []

    def test_severity_name_is_parsed(self) -> None:
        assert WorkerConfig(log_severity="warn").log_severity is Severity.WARN

    def test_empty_terminator_rejected(self) -> None:
        with pytest.raises(ValueError, match="terminator"):
            WorkerConfig(terminator="")


class TestLoadWorkerConfig:
    """Tests for argument > environment > file > default resolution."""

    def test_defaults_without_sources(self) -> None:
        assert load_worker_config() == WorkerConfig()

    def test_file_values(self, config_file) -> None:
        config = load_worker_config(config_file=str(config_file))

        assert config.log_severity is Severity.DEBUG
        assert config.terminator == "quit"
        assert config.preload == ["pkg.ops", "./more.py"]

    def test_config_path_from_environment(self, config_file, monkeypatch) -> None:
        monkeypatch.setenv(ENV_CONFIG, str(config_file))

        assert load_worker_config().terminator == "quit"

    def test_environment_overrides_file(self, config_file, monkeypatch) -> None:
        monkeypatch.setenv(ENV_LOG_SEVERITY, "error")
        monkeypatch.setenv(ENV_TERMINATOR, "stop")
        monkeypatch.setenv(ENV_PRELOAD, "a.ops, b.ops,")

        config = load_worker_config(config_file=str(config_file))

        assert config.log_severity is Severity.ERROR
        assert config.terminator == "stop"
        assert config.preload == ["a.ops", "b.ops"]

    def test_arguments_override_everything(self, config_file, monkeypatch) -> None:
        monkeypatch.setenv(ENV_LOG_SEVERITY, "error")

        config = load_worker_config(
            log_severity="warn",
            terminator="end",
            preload=("cli.ops",),
            config_file=str(config_file),
        )

        assert config.log_severity is Severity.WARN
        assert config.terminator == "end"
        assert config.preload == ["cli.ops"]

    def test_single_preload_string_in_file(self, tmp_path) -> None:
        path = tmp_path / "single.yaml"
        path.write_text("preload: pkg.ops\n")

        assert load_worker_config(config_file=str(path)).preload == ["pkg.ops"]

    def test_invalid_severity(self) -> None:
        with pytest.raises(ValueError, match="Unknown severity"):
            load_worker_config(log_severity="loud")


class TestLoadConfigFile:
    """Tests for load_config_file."""

    def test_no_file_configured(self) -> None:
        assert load_config_file(None) == {}

    def test_missing_file(self, tmp_path) -> None:
        assert load_config_file(str(tmp_path / "absent.yaml")) == {}

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config_file(str(path)) == {}

    def test_non_mapping_rejected(self, tmp_path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            load_config_file(str(path))
