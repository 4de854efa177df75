"""Server configuration loaded from YAML files in a config directory."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

SERVER_FILE = "server.yaml"
FALLBACK_FILE = "fallback_global.yaml"


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or understood."""


def _parse_yaml(text: str, what: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse {what}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"failed to parse {what}: top level must be a mapping")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping")
    return value


def _int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer")
    return value


def _float(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number")
    return float(value)


def _bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be a boolean")
    return value


def _scalar_text(value: Any, key: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigError(f"{key} must be a string")


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return _scalar_text(value, key)


def _str_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    return [_scalar_text(item, key) for item in value if item is not None]


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = ""
    port: int = 0
    read_timeout_sec: int = 0
    write_timeout_sec: int = 0
    stream_write_timeout_sec: int = 0
    shutdown_timeout_sec: int = 0

    def addr(self) -> str:
        """Bind address as host:port."""
        return f"{self.host}:{self.port}"


@dataclass
class RedisConfig:
    """Redis connection settings."""

    addr: str = ""
    password: str = ""
    db: int = 0
    pool_size: int = 0


@dataclass
class DatabaseConfig:
    """Database file locations."""

    logs_path: str = ""
    keys_path: str = ""


@dataclass
class AuthConfig:
    """Authentication settings."""

    trusted_cidrs: list[str] = field(default_factory=list)
    rate_limit_per_minute: int = 0


@dataclass
class ProviderConfig:
    """Settings for one provider."""

    enabled: bool = False
    location: str = ""
    base_url: str = ""


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker thresholds."""

    failure_threshold: int = 0
    recovery_timeout_sec: int = 0
    half_open_requests: int = 0


@dataclass
class ProviderFallbackConfig:
    """Per-provider concurrency and timeout."""

    max_concurrent: int = 0
    timeout_ms: int = 0


@dataclass
class FallbackGlobalConfig:
    """Global fallback and circuit breaker settings."""

    circuit_breaker: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    providers: dict[str, ProviderFallbackConfig] = field(default_factory=dict)


@dataclass
class FallbackChainEntry:
    """One provider/model pair in a fallback chain."""

    provider: str = ""
    model: str = ""


@dataclass
class ProjectFallbackConfig:
    """Fallback defaults for a single project."""

    default_chain: list[FallbackChainEntry] = field(default_factory=list)
    policy: str = ""
    timeout_ms: int = 0
    max_retries: int = 0


@dataclass
class Config:
    """Complete gateway configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    fallback: FallbackGlobalConfig | None = None


def _mapping_of(data: dict[str, Any], key: str) -> dict[str, dict[str, Any]]:
    out: dict[str, dict[str, Any]] = {}
    for name, value in _section(data, key).items():
        if value is None:
            value = {}
        if not isinstance(value, dict):
            raise ConfigError(f"{key}.{name} must be a mapping")
        out[str(name)] = value
    return out


def _server_from(data: dict[str, Any]) -> ServerConfig:
    return ServerConfig(
        host=_str(data, "host"),
        port=_int(data, "port"),
        read_timeout_sec=_int(data, "read_timeout_sec"),
        write_timeout_sec=_int(data, "write_timeout_sec"),
        stream_write_timeout_sec=_int(data, "stream_write_timeout_sec"),
        shutdown_timeout_sec=_int(data, "shutdown_timeout_sec"),
    )


def _config_from(data: dict[str, Any]) -> Config:
    redis = _section(data, "redis")
    database = _section(data, "database")
    auth = _section(data, "auth")
    return Config(
        server=_server_from(_section(data, "server")),
        redis=RedisConfig(
            addr=_str(redis, "addr"),
            password=_str(redis, "password"),
            db=_int(redis, "db"),
            pool_size=_int(redis, "pool_size"),
        ),
        database=DatabaseConfig(
            logs_path=_str(database, "logs_path"),
            keys_path=_str(database, "keys_path"),
        ),
        auth=AuthConfig(
            trusted_cidrs=_str_list(auth, "trusted_cidrs"),
            rate_limit_per_minute=_int(auth, "rate_limit_per_minute"),
        ),
        providers={
            name: ProviderConfig(
                enabled=_bool(value, "enabled"),
                location=_str(value, "location"),
                base_url=_str(value, "base_url"),
            )
            for name, value in _mapping_of(data, "providers").items()
        },
    )


def _fallback_from(data: dict[str, Any]) -> FallbackGlobalConfig:
    breaker = _section(data, "circuit_breaker")
    return FallbackGlobalConfig(
        circuit_breaker=CircuitBreakerConfig(
            failure_threshold=_int(breaker, "failure_threshold"),
            recovery_timeout_sec=_int(breaker, "recovery_timeout_sec"),
            half_open_requests=_int(breaker, "half_open_requests"),
        ),
        providers={
            name: ProviderFallbackConfig(
                max_concurrent=_int(value, "max_concurrent"),
                timeout_ms=_int(value, "timeout_ms"),
            )
            for name, value in _mapping_of(data, "providers").items()
        },
    )


def _apply_defaults(cfg: Config) -> None:
    server = cfg.server
    if server.port == 0:
        server.port = 8080
    if server.read_timeout_sec == 0:
        server.read_timeout_sec = 30
    if server.write_timeout_sec == 0:
        server.write_timeout_sec = 120
    if server.stream_write_timeout_sec == 0:
        server.stream_write_timeout_sec = 600
    if server.shutdown_timeout_sec == 0:
        server.shutdown_timeout_sec = 30
    if cfg.auth.rate_limit_per_minute == 0:
        cfg.auth.rate_limit_per_minute = 120


def load_config(config_dir: str | os.PathLike[str]) -> Config:
    """Load server.yaml and, when present, fallback_global.yaml."""
    base = Path(config_dir)
    try:
        text = (base / SERVER_FILE).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc
    cfg = _config_from(_parse_yaml(text, "config file"))
    _apply_defaults(cfg)

    try:
        fallback_text = (base / FALLBACK_FILE).read_text(encoding="utf-8")
    except OSError:
        return cfg
    cfg.fallback = _fallback_from(_parse_yaml(fallback_text, "fallback config"))
    return cfg


def _check_name(name: str) -> None:
    if ".." in name or os.path.isabs(name) or any(c in name for c in "/\\"):
        raise ConfigError(f"invalid project name: {name!r} (path separators not allowed)")


def load_project_fallback(
    config_dir: str | os.PathLike[str], project: str
) -> ProjectFallbackConfig:
    """Load projects/<project>.yaml; a missing file raises FileNotFoundError."""
    _check_name(project)
    path = Path(config_dir) / "projects" / f"{project}.yaml"
    text = path.read_text(encoding="utf-8")
    data = _parse_yaml(text, "project fallback config")
    fallback = _section(data, "fallback")
    chain = fallback.get("default_chain") or []
    if not isinstance(chain, list):
        raise ConfigError("default_chain must be a list")
    entries = []
    for item in chain:
        if item is None:
            item = {}
        if not isinstance(item, dict):
            raise ConfigError("default_chain entries must be mappings")
        entries.append(
            FallbackChainEntry(provider=_str(item, "provider"), model=_str(item, "model"))
        )
    return ProjectFallbackConfig(
        default_chain=entries,
        policy=_str(fallback, "policy"),
        timeout_ms=_int(fallback, "timeout_ms"),
        max_retries=_int(fallback, "max_retries"),
    )