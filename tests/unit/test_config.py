"""Unit tests for app/config.py: file loading, validation and env overrides.

Covers:
  - Missing config file → Config.defaults(), no exception
  - Missing / unsupported 'version' → SystemExit(1)
  - Invalid YAML / non-mapping YAML → SystemExit(1)
  - detection.engine validation, frame_count and poll interval validation
  - AUTHENTICHECK_CONFIG, AUTHENTICHECK_PORT, AUTHENTICHECK_ENGINE,
    AUTHENTICHECK_BACKEND_URL, EDENAI_API_KEY / API_KEY overrides
  - API key never appears in repr(config)
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from app.config import (
    ENGINE_BACKEND,
    ENGINE_EDENAI,
    SUPPORTED_VERSIONS,
    VALID_ENGINES,
    BackendConfig,
    Config,
    EdenAIConfig,
    load_config,
)
from app.constants import DEFAULT_FRAME_COUNT, DEFAULT_POLL_INTERVAL_S, DEFAULT_POLL_TIMEOUT_S


def _write_config(tmp_path: Path, content: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(content))
    return str(path)


# ─── Missing config file → defaults ───────────────────────────────────────────


class TestMissingConfigFile:
    def test_nonexistent_path_returns_defaults(self) -> None:
        config = load_config(config_path="/nonexistent/path/to/config.yaml")
        assert isinstance(config, Config)
        assert config.version == 1
        assert config.path is None

    def test_defaults(self) -> None:
        config = Config.defaults()
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 8000
        assert config.detection.engine == ENGINE_EDENAI
        assert config.detection.frame_count == DEFAULT_FRAME_COUNT
        assert config.edenai.base_url == "https://api.edenai.run"
        assert config.edenai.text_providers == "winstonai,originalityai"
        assert config.edenai.image_providers == "winstonai,illuminarty"
        assert config.edenai.video_providers == "sensity"
        assert config.edenai.poll_interval_s == DEFAULT_POLL_INTERVAL_S
        assert config.edenai.poll_timeout_s == DEFAULT_POLL_TIMEOUT_S
        assert config.edenai.api_key is None
        assert config.backend.analysis_url == BackendConfig().analysis_url

    def test_supported_versions(self) -> None:
        assert SUPPORTED_VERSIONS == frozenset({1})
        assert VALID_ENGINES == frozenset({"edenai", "backend"})


# ─── Version validation ───────────────────────────────────────────────────────


class TestVersionValidation:
    def test_missing_version_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        path = _write_config(tmp_path, "server:\n  port: 9000\n")
        with pytest.raises(SystemExit) as exc_info:
            load_config(config_path=path)
        assert exc_info.value.code == 1
        assert "version" in capsys.readouterr().err

    def test_empty_file_exits(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, "")
        with pytest.raises(SystemExit):
            load_config(config_path=path)

    def test_unsupported_version_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        path = _write_config(tmp_path, "version: 2\n")
        with pytest.raises(SystemExit) as exc_info:
            load_config(config_path=path)
        assert exc_info.value.code == 1
        assert "Unsupported config version" in capsys.readouterr().err

    def test_invalid_yaml_exits(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, "version: 1\nserver: [unclosed\n")
        with pytest.raises(SystemExit):
            load_config(config_path=path)

    def test_non_mapping_yaml_exits(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, "- just\n- a list\n")
        with pytest.raises(SystemExit):
            load_config(config_path=path)


# ─── Section parsing ──────────────────────────────────────────────────────────


class TestConfigSections:
    def test_full_file(self, tmp_path: Path) -> None:
        path = _write_config(
            tmp_path,
            """
            version: 1
            server:
              host: 127.0.0.1
              port: 9001
            detection:
              engine: backend
              frame_count: 8
              request_timeout_s: 30
            edenai:
              base_url: https://eden.example.com/
              text_providers: winstonai
              poll_interval_s: 2
              poll_timeout_s: 120
            backend:
              analysis_url: http://analysis.internal/api/analyze
            """,
        )
        config = load_config(config_path=path)
        assert config.path == path
        assert config.server.port == 9001
        assert config.detection.engine == ENGINE_BACKEND
        assert config.detection.frame_count == 8
        assert config.detection.request_timeout_s == 30.0
        assert config.edenai.base_url == "https://eden.example.com"
        assert config.edenai.text_providers == "winstonai"
        assert config.edenai.image_providers == EdenAIConfig().image_providers
        assert config.edenai.poll_interval_s == 2.0
        assert config.edenai.poll_timeout_s == 120.0
        assert config.backend.analysis_url == "http://analysis.internal/api/analyze"

    def test_engine_is_case_insensitive(self) -> None:
        config = Config.from_dict({"version": 1, "detection": {"engine": "Backend"}})
        assert config.detection.engine == ENGINE_BACKEND

    def test_invalid_engine_exits(self) -> None:
        with pytest.raises(SystemExit):
            Config.from_dict({"version": 1, "detection": {"engine": "local-model"}})

    @pytest.mark.parametrize("frame_count", [0, -3, "five"])
    def test_invalid_frame_count_exits(self, frame_count: object) -> None:
        with pytest.raises(SystemExit):
            Config.from_dict({"version": 1, "detection": {"frame_count": frame_count}})

    def test_non_positive_poll_interval_exits(self) -> None:
        with pytest.raises(SystemExit):
            Config.from_dict({"version": 1, "edenai": {"poll_interval_s": 0}})

    def test_unknown_keys_ignored(self) -> None:
        config = Config.from_dict({"version": 1, "telemetry": {"enabled": True}})
        assert config.detection.engine == ENGINE_EDENAI


# ─── Environment overrides ────────────────────────────────────────────────────


class TestEnvOverrides:
    def test_config_path_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write_config(tmp_path, "version: 1\nserver:\n  port: 9123\n")
        monkeypatch.setenv("AUTHENTICHECK_CONFIG", path)
        config = load_config()
        assert config.server.port == 9123
        assert config.path == path

    def test_port_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTHENTICHECK_PORT", "8765")
        config = load_config(config_path="/nonexistent/config.yaml")
        assert config.server.port == 8765

    def test_port_override_wins_over_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = _write_config(tmp_path, "version: 1\nserver:\n  port: 9000\n")
        monkeypatch.setenv("AUTHENTICHECK_PORT", "9999")
        assert load_config(config_path=path).server.port == 9999

    def test_invalid_port_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTHENTICHECK_PORT", "eighty")
        with pytest.raises(SystemExit):
            load_config(config_path="/nonexistent/config.yaml")

    def test_engine_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTHENTICHECK_ENGINE", "BACKEND")
        config = load_config(config_path="/nonexistent/config.yaml")
        assert config.detection.engine == ENGINE_BACKEND

    def test_invalid_engine_override_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTHENTICHECK_ENGINE", "openai")
        with pytest.raises(SystemExit):
            load_config(config_path="/nonexistent/config.yaml")

    def test_backend_url_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTHENTICHECK_BACKEND_URL", "https://detector.example.com/api/analyze")
        config = load_config(config_path="/nonexistent/config.yaml")
        assert config.backend.analysis_url == "https://detector.example.com/api/analyze"

    def test_api_key_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EDENAI_API_KEY", "  eden-secret  ")
        config = load_config(config_path="/nonexistent/config.yaml")
        assert config.edenai.api_key == "eden-secret"

    def test_api_key_fallback_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_KEY", "fallback-secret")
        config = load_config(config_path="/nonexistent/config.yaml")
        assert config.edenai.api_key == "fallback-secret"

    def test_api_key_not_in_repr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EDENAI_API_KEY", "eden-secret")
        config = load_config(config_path="/nonexistent/config.yaml")
        assert "eden-secret" not in repr(config)
