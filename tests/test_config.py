import json

import pytest

from lingualink import config
from lingualink.models import Config


def test_load_default_config_when_missing(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.json"
    monkeypatch.setattr(config, "CONFIG_PATH", cfg_path)

    cfg = config.load_config()
    assert isinstance(cfg, Config)
    assert cfg.source_language == "en"
    assert cfg.target_language == "es"
    assert cfg.auto_play is False


def test_save_and_load_config(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.json"
    monkeypatch.setattr(config, "CONFIG_PATH", cfg_path)

    cfg = Config(server_url="https://relay.example", target_language="fr", auto_play=True)
    config.save_config(cfg)

    loaded = config.load_config()
    assert loaded.server_url == "https://relay.example"
    assert loaded.target_language == "fr"
    assert loaded.auto_play is True


def test_update_config_validates_keys(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.json"
    monkeypatch.setattr(config, "CONFIG_PATH", cfg_path)

    config.update_config(api_timeout=5.0)
    assert config.load_config().api_timeout == 5.0

    with pytest.raises(config.ConfigError):
        config.update_config(unknown="value")


def test_load_config_rejects_invalid_json(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text("{not json")
    monkeypatch.setattr(config, "CONFIG_PATH", cfg_path)

    with pytest.raises(config.ConfigError):
        config.load_config()


def test_load_config_rejects_unknown_keys(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps({"backend": "whisper"}))
    monkeypatch.setattr(config, "CONFIG_PATH", cfg_path)

    with pytest.raises(config.ConfigError):
        config.load_config()


def test_server_default_ignores_blank_values(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "   ")
    assert config.server_default("OPENAI_API_KEY") is None

    monkeypatch.setenv("OPENAI_API_KEY", "sk-server")
    assert config.server_default("OPENAI_API_KEY") == "sk-server"
