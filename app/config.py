"""Config loading for AuthentiCheck.

Reads `.authenticheck/config.yaml` (or `~/.authenticheck/config.yaml`).
Raises SystemExit on parse errors or missing `version` field.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (if provided — for testing or explicit override)
  2. AUTHENTICHECK_CONFIG environment variable (if set)
  3. `.authenticheck/config.yaml` (working directory — for development)
  4. `~/.authenticheck/config.yaml` (home directory — for production deployments)

Environment variable overrides (applied after the file, always win):
  AUTHENTICHECK_PORT        — overrides server.port
  AUTHENTICHECK_ENGINE      — overrides detection.engine ("edenai" | "backend")
  AUTHENTICHECK_BACKEND_URL — overrides backend.analysis_url
  EDENAI_API_KEY            — EdenAI bearer token (API_KEY accepted as a fallback)

The EdenAI API key is only ever read from the environment. It is never stored
in the config file and never logged.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import NoReturn, Optional

import yaml

from app.constants import (
    DEFAULT_FRAME_COUNT,
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_POLL_TIMEOUT_S,
    DEFAULT_REQUEST_TIMEOUT_S,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# ─── Validation sets ─────────────────────────────────────────────────────────

ENGINE_EDENAI = "edenai"
ENGINE_BACKEND = "backend"

VALID_ENGINES: frozenset[str] = frozenset({ENGINE_EDENAI, ENGINE_BACKEND})

DEFAULT_CONFIG_PATHS = [
    ".authenticheck/config.yaml",
    os.path.expanduser("~/.authenticheck/config.yaml"),
]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class EdenAIConfig:
    """EdenAI engine configuration.

    text_providers / image_providers / video_providers are the comma-separated
    provider lists sent in the ``providers`` field of each request.
    api_key is populated from the environment only.
    """

    base_url: str = "https://api.edenai.run"
    text_providers: str = "winstonai,originalityai"
    image_providers: str = "winstonai,illuminarty"
    video_providers: str = "sensity"
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    poll_timeout_s: float = DEFAULT_POLL_TIMEOUT_S
    api_key: Optional[str] = field(default=None, repr=False)


@dataclass
class BackendConfig:
    """Backend proxy engine configuration."""

    analysis_url: str = "http://127.0.0.1:8080/api/analyze"


@dataclass
class DetectionConfig:
    engine: str = ENGINE_EDENAI  # "edenai" | "backend"
    frame_count: int = DEFAULT_FRAME_COUNT
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class Config:
    """Root configuration object populated from .authenticheck/config.yaml.

    All fields have safe defaults — AuthentiCheck can start without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    server: ServerConfig = field(default_factory=ServerConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    edenai: EdenAIConfig = field(default_factory=EdenAIConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            SystemExit(1): On invalid detection.engine or a non-positive
                           frame_count / poll interval.
        """
        # ── Detection ─────────────────────────────────────────────────────────
        detection_raw = raw.get("detection") or {}
        engine = str(detection_raw.get("engine", ENGINE_EDENAI)).lower()
        if engine not in VALID_ENGINES:
            _config_error(
                f"CONFIG ERROR: Invalid detection.engine: '{engine}'. "
                f"Supported values: {sorted(VALID_ENGINES)}."
            )
        frame_count = detection_raw.get("frame_count", DEFAULT_FRAME_COUNT)
        if not isinstance(frame_count, int) or frame_count < 1:
            _config_error(
                f"CONFIG ERROR: detection.frame_count must be a positive integer, got '{frame_count}'."
            )
        detection = DetectionConfig(
            engine=engine,
            frame_count=frame_count,
            request_timeout_s=float(
                detection_raw.get("request_timeout_s", DEFAULT_REQUEST_TIMEOUT_S)
            ),
        )

        # ── EdenAI ────────────────────────────────────────────────────────────
        edenai_raw = raw.get("edenai") or {}
        defaults = EdenAIConfig()
        poll_interval = float(edenai_raw.get("poll_interval_s", DEFAULT_POLL_INTERVAL_S))
        if poll_interval <= 0:
            _config_error("CONFIG ERROR: edenai.poll_interval_s must be greater than 0.")
        edenai = EdenAIConfig(
            base_url=str(edenai_raw.get("base_url", defaults.base_url)).rstrip("/"),
            text_providers=edenai_raw.get("text_providers", defaults.text_providers),
            image_providers=edenai_raw.get("image_providers", defaults.image_providers),
            video_providers=edenai_raw.get("video_providers", defaults.video_providers),
            poll_interval_s=poll_interval,
            poll_timeout_s=float(edenai_raw.get("poll_timeout_s", DEFAULT_POLL_TIMEOUT_S)),
        )

        # ── Backend ───────────────────────────────────────────────────────────
        backend_raw = raw.get("backend") or {}
        backend = BackendConfig(
            analysis_url=backend_raw.get("analysis_url", BackendConfig().analysis_url),
        )

        # ── Server ────────────────────────────────────────────────────────────
        server_raw = raw.get("server") or {}
        server = ServerConfig(
            host=server_raw.get("host", "127.0.0.1"),
            port=server_raw.get("port", 8000),
        )

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            server=server,
            detection=detection,
            edenai=edenai,
            backend=backend,
            path=path,
        )


def _config_error(msg: str) -> NoReturn:
    print(msg, file=sys.stderr)
    raise SystemExit(1)


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate AuthentiCheck configuration.

    If no file is found at any search path, returns default Config (not an error).
    If a file is found but invalid, writes error to stderr and raises SystemExit(1).
    Environment overrides are applied in both cases.

    Raises:
        SystemExit(1): On YAML parse error, missing ``version`` field, unsupported
                       version, invalid ``detection.engine``, or invalid
                       ``AUTHENTICHECK_PORT`` / ``AUTHENTICHECK_ENGINE``.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("AUTHENTICHECK_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    # ── No config file found ─────────────────────────────────────────────────
    if found_path is None:
        logger.info("No config file found — using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    # ── Parse config file ─────────────────────────────────────────────────────
    logger.info("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _config_error(
            f"CONFIG ERROR: Failed to parse {found_path}: {exc}\n"
            "AuthentiCheck refuses to start with an invalid config. "
            "Check the YAML syntax and try again."
        )
    except OSError as exc:
        _config_error(f"CONFIG ERROR: Could not read {found_path}: {exc}")

    if not isinstance(raw, dict):
        if raw is None:
            _config_error(
                f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        _config_error(
            f"CONFIG ERROR: {found_path} is not a valid YAML mapping.\n"
            "The config file must be a YAML dictionary at the top level."
        )

    # ── Version validation ────────────────────────────────────────────────────
    version = raw.get("version")
    if version is None:
        _config_error(
            f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
    if version not in SUPPORTED_VERSIONS:
        _config_error(
            f"CONFIG ERROR: Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )

    config = Config.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    if config.server.host == "0.0.0.0":
        logger.warning(
            "AuthentiCheck is configured to bind on 0.0.0.0 (all interfaces). "
            "Uploads and the detection API key budget are exposed to the network."
        )

    logger.info(
        "Config loaded",
        path=found_path,
        version=config.version,
        engine=config.detection.engine,
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Raises:
        SystemExit(1): If AUTHENTICHECK_PORT is not an integer or
                       AUTHENTICHECK_ENGINE names no engine.
    """
    env_port = os.environ.get("AUTHENTICHECK_PORT")
    if env_port is not None:
        try:
            config.server.port = int(env_port)
        except ValueError:
            _config_error(
                "CONFIG ERROR: AUTHENTICHECK_PORT environment variable is not a valid "
                f"integer: '{env_port}'"
            )

    env_engine = os.environ.get("AUTHENTICHECK_ENGINE")
    if env_engine:
        engine = env_engine.strip().lower()
        if engine not in VALID_ENGINES:
            _config_error(
                f"CONFIG ERROR: AUTHENTICHECK_ENGINE must be one of "
                f"{sorted(VALID_ENGINES)}, got '{env_engine}'"
            )
        config.detection.engine = engine

    env_backend = os.environ.get("AUTHENTICHECK_BACKEND_URL")
    if env_backend:
        config.backend.analysis_url = env_backend

    api_key = os.environ.get("EDENAI_API_KEY") or os.environ.get("API_KEY")
    if api_key:
        config.edenai.api_key = api_key.strip()
