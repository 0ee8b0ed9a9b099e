"""sflux configuration.

Loads from sflux.yaml if present, with environment variable overrides.
Environment variables use the pattern: SFLUX_<SECTION>_<KEY> (uppercase).
Command-line flags are applied on top by sflux.main.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from sflux.core.errors import ConfigError


@dataclass
class StoreConfig:
    host: str = "localhost"
    port: int = 8086
    username: str = ""
    password: str = ""
    database: str = ""  # required
    retention_policy: str = "default"
    timeout_seconds: float = 10.0


@dataclass
class PipelineConfig:
    chunk_size: int = 100
    write_retries: int = 0  # 0 = log and drop on first failure
    retry_backoff_seconds: float = 1.0


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"
    file: str = ""  # stderr when empty


@dataclass
class AppConfig:
    store: StoreConfig = field(default_factory=StoreConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Numeric levels accepted for compatibility with the old -loglevel flag.
_NUMERIC_LEVELS = {"0": "error", "1": "warning", "2": "info", "3": "debug"}
_LEVEL_ALIASES = {"warn": "warning"}
LOG_LEVELS = ("error", "warning", "info", "debug")
LOG_FORMATS = ("console", "json")


def normalize_log_level(level: str | int) -> str:
    """Map "WARN", "2", 3, ... onto one of LOG_LEVELS."""
    name = str(level).strip().lower()
    name = _NUMERIC_LEVELS.get(name, name)
    name = _LEVEL_ALIASES.get(name, name)
    if name not in LOG_LEVELS:
        raise ConfigError(f"unknown log level {level!r}, expected one of {LOG_LEVELS}")
    return name


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "SFLUX_STORE_HOST": lambda v: setattr(config.store, "host", v),
        "SFLUX_STORE_PORT": lambda v: setattr(config.store, "port", int(v)),
        "SFLUX_STORE_USERNAME": lambda v: setattr(config.store, "username", v),
        "SFLUX_STORE_PASSWORD": lambda v: setattr(config.store, "password", v),
        "SFLUX_STORE_DATABASE": lambda v: setattr(config.store, "database", v),
        "SFLUX_STORE_RETENTION_POLICY": lambda v: setattr(config.store, "retention_policy", v),
        "SFLUX_STORE_TIMEOUT": lambda v: setattr(config.store, "timeout_seconds", float(v)),
        "SFLUX_PIPELINE_CHUNK_SIZE": lambda v: setattr(config.pipeline, "chunk_size", int(v)),
        "SFLUX_PIPELINE_WRITE_RETRIES": lambda v: setattr(config.pipeline, "write_retries", int(v)),
        "SFLUX_PIPELINE_RETRY_BACKOFF": lambda v: setattr(config.pipeline, "retry_backoff_seconds", float(v)),
        "SFLUX_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "SFLUX_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
        "SFLUX_LOG_FILE": lambda v: setattr(config.logging, "file", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            try:
                setter(val)
            except ValueError as exc:
                raise ConfigError(f"{env_key}={val!r}: {exc}") from exc


def _coerce(section: str, key: str, value, kind: type):
    """Convert a YAML value to the type of the field it overrides."""
    if value is None and kind is str:
        return ""
    if value is None or isinstance(value, (dict, list)):
        raise ConfigError(f"{section}.{key}: expected {kind.__name__}, got {value!r}")
    if isinstance(value, bool) and kind is not bool:
        raise ConfigError(f"{section}.{key}: expected {kind.__name__}, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{section}.{key}: {exc}") from exc


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides.

    An explicitly passed path must exist; the default sflux.yaml is optional.
    """
    config = AppConfig()

    if config_path is None:
        config_path = Path("sflux.yaml")
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"config file not found: {config_path}")

    if config_path.exists():
        try:
            with open(config_path) as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {config_path}: {exc}") from exc

        for section in ("store", "pipeline", "logging"):
            target = getattr(config, section)
            for k, v in (raw.get(section) or {}).items():
                if hasattr(target, k):
                    setattr(target, k, _coerce(section, k, v, type(getattr(target, k))))

    # Environment overrides always win over the file
    _apply_env_overrides(config)
    return config


def validate_config(config: AppConfig) -> None:
    """Raise ConfigError for values the pipeline cannot run with."""
    for section in ("store", "pipeline", "logging"):
        target = getattr(config, section)
        defaults = type(target)()
        for k, default in vars(defaults).items():
            setattr(target, k, _coerce(section, k, getattr(target, k), type(default)))

    if not config.store.database:
        raise ConfigError("a database name is required")
    if not 1 <= config.store.port <= 65535:
        raise ConfigError(f"store port out of range: {config.store.port}")
    if config.store.timeout_seconds <= 0:
        raise ConfigError(f"store timeout must be positive: {config.store.timeout_seconds}")
    if config.pipeline.chunk_size < 1:
        raise ConfigError(f"chunk size must be >= 1: {config.pipeline.chunk_size}")
    if config.pipeline.write_retries < 0:
        raise ConfigError(f"write retries must be >= 0: {config.pipeline.write_retries}")
    if config.pipeline.retry_backoff_seconds < 0:
        raise ConfigError(f"retry backoff must be >= 0: {config.pipeline.retry_backoff_seconds}")
    config.logging.level = normalize_log_level(config.logging.level)
    if config.logging.format not in LOG_FORMATS:
        raise ConfigError(f"unknown log format {config.logging.format!r}, expected one of {LOG_FORMATS}")
