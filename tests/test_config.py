from __future__ import annotations

import yaml

from utils.config import Config


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.delenv("FALLBACK_EMAIL", raising=False)
    config = Config(config_file=str(tmp_path / "missing.yaml"), write_defaults=False)

    assert config.scraping["target_unique_profiles"] == 30
    assert config.scraping["max_search_pages"] == 20
    assert config.delay_range("page_settle_delay") == (5.0, 8.0)
    assert config.FALLBACK_EMAIL == "no-reply@example.com"
    assert not (tmp_path / "missing.yaml").exists()


def test_yaml_overrides_are_deep_merged(tmp_path, monkeypatch):
    monkeypatch.delenv("USE_PROXY", raising=False)
    monkeypatch.delenv("PROXY_SERVER", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({
        "scraping": {"target_unique_profiles": 50},
        "browser": {"use_proxy": True, "proxy_server": "http://proxy:8080"},
    }))

    config = Config(config_file=str(path))

    assert config.scraping["target_unique_profiles"] == 50
    assert config.scraping["max_search_pages"] == 20
    assert config.proxy == "http://proxy:8080"
    assert config.get("history.retention_days") == 180
    assert config.get("history.missing", "x") == "x"


def test_environment_wins_over_file(tmp_path, monkeypatch):
    monkeypatch.setenv("FALLBACK_EMAIL", "leads@agency.example")
    monkeypatch.setenv("HEADLESS", "false")

    config = Config(config_file=str(tmp_path / "settings.yaml"))

    assert config.FALLBACK_EMAIL == "leads@agency.example"
    assert config.HEADLESS is False
    assert (tmp_path / "settings.yaml").exists()
