import pytest

from ezai.settings import (
    ConfigError,
    FallbackChainEntry,
    ServerConfig,
    load_config,
    load_project_fallback,
)


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_defaults_applied_when_missing(tmp_path):
    _write(tmp_path / "server.yaml", "server:\n  host: 127.0.0.1\n")
    cfg = load_config(tmp_path)
    assert cfg.server.port == 8080
    assert cfg.server.read_timeout_sec == 30
    assert cfg.server.write_timeout_sec == 120
    assert cfg.server.stream_write_timeout_sec == 600
    assert cfg.server.shutdown_timeout_sec == 30
    assert cfg.auth.rate_limit_per_minute == 120
    assert cfg.fallback is None


def test_explicit_values_kept(tmp_path):
    _write(
        tmp_path / "server.yaml",
        "server:\n  host: 0.0.0.0\n  port: 9000\n  write_timeout_sec: 45\n"
        "auth:\n  trusted_cidrs: ['10.0.0.0/8']\n  rate_limit_per_minute: 7\n"
        "database:\n  logs_path: data/logs.db\n  keys_path: data/keys.db\n"
        "providers:\n  claude:\n    enabled: true\n  ollama:\n    enabled: false\n"
        "    base_url: http://localhost:11434\n",
    )
    cfg = load_config(tmp_path)
    assert cfg.server.port == 9000
    assert cfg.server.write_timeout_sec == 45
    assert cfg.server.addr() == "0.0.0.0:9000"
    assert cfg.auth.trusted_cidrs == ["10.0.0.0/8"]
    assert cfg.auth.rate_limit_per_minute == 7
    assert cfg.database.keys_path == "data/keys.db"
    assert cfg.providers["claude"].enabled is True
    assert cfg.providers["ollama"].enabled is False
    assert cfg.providers["ollama"].base_url == "http://localhost:11434"


def test_addr_joins_host_and_port():
    assert ServerConfig(host="example.com", port=81).addr() == "example.com:81"


def test_fallback_file_loaded(tmp_path):
    _write(tmp_path / "server.yaml", "")
    _write(
        tmp_path / "fallback_global.yaml",
        "circuit_breaker:\n  failure_threshold: 5\n  recovery_timeout_sec: 30\n"
        "providers:\n  gpt:\n    max_concurrent: 4\n    timeout_ms: 1500\n",
    )
    cfg = load_config(tmp_path)
    assert cfg.fallback is not None
    assert cfg.fallback.circuit_breaker.failure_threshold == 5
    assert cfg.fallback.circuit_breaker.recovery_timeout_sec == 30
    assert cfg.fallback.providers["gpt"].max_concurrent == 4
    assert cfg.fallback.providers["gpt"].timeout_ms == 1500


def test_missing_server_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_bad_yaml_raises(tmp_path):
    _write(tmp_path / "server.yaml", "server: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_bad_fallback_yaml_raises(tmp_path):
    _write(tmp_path / "server.yaml", "")
    _write(tmp_path / "fallback_global.yaml", "circuit_breaker: [oops\n")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_wrong_type_raises(tmp_path):
    _write(tmp_path / "server.yaml", "server:\n  port: not-a-number\n")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_project_fallback_loaded(tmp_path):
    _write(
        tmp_path / "projects" / "demo.yaml",
        "fallback:\n  default_chain:\n    - provider: claude\n      model: m1\n"
        "    - provider: gpt\n      model: m2\n  policy: on_error\n  max_retries: 2\n",
    )
    pcfg = load_project_fallback(tmp_path, "demo")
    assert pcfg.default_chain == [
        FallbackChainEntry(provider="claude", model="m1"),
        FallbackChainEntry(provider="gpt", model="m2"),
    ]
    assert pcfg.policy == "on_error"
    assert pcfg.max_retries == 2


@pytest.mark.parametrize("name", ["../etc", "a/b", "a\\b", "/abs"])
def test_project_name_traversal_rejected(tmp_path, name):
    with pytest.raises(ConfigError):
        load_project_fallback(tmp_path, name)


def test_missing_project_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_project_fallback(tmp_path, "absent")