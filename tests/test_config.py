"""Tests for config loading precedence."""
from core.config import load_config


def test_defaults_without_file(tmp_path):
    cfg = load_config(tmp_path / "missing.yaml", environ={})
    assert cfg["base_url"] == "http://127.0.0.1:8090"
    assert cfg["topmost"] is False


def test_yaml_then_env_override(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("base_url: http://pb:8090\nrequest_timeout: 3\nunknown_key: 1\n", encoding="utf-8")
    cfg = load_config(path, environ={"PB_TODO_REQUEST_TIMEOUT": "7", "PB_TODO_TOPMOST": "yes"})
    assert cfg["base_url"] == "http://pb:8090"
    assert cfg["request_timeout"] == 7
    assert cfg["topmost"] is True
    assert "unknown_key" not in cfg


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path, environ={})["log_level"] == "INFO"
