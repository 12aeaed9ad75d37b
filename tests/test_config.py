"""Tests for the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from metrika.config import DEFAULT_BASE_URL, detect_env, load_config

CONFIG_YAML = """
counter_id: "${METRIKA_COUNTER_ID}"
token: "${METRIKA_TOKEN}"
timeout: 12
cache:
  ttl: 900
  directory: "/tmp/metrika-cache"
"""


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir()
    (cfg_dir / "metrika.dev.yaml").write_text(CONFIG_YAML)
    (cfg_dir / "metrika.prod.yaml").write_text('counter_id: "99"\ntoken: "literal"\n')
    return cfg_dir


def test_detect_env_priority(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRIKA_ENV", "staging")
    assert detect_env() == "staging"
    assert detect_env("prod") == "prod"
    monkeypatch.delenv("METRIKA_ENV")
    assert detect_env() == "dev"


def test_detect_env_rejects_unknown() -> None:
    with pytest.raises(ValueError, match="Invalid environment"):
        detect_env("qa")


def test_load_config_resolves_env_vars(config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRIKA_COUNTER_ID", "44147844")
    monkeypatch.setenv("METRIKA_TOKEN", "secret")

    config = load_config("dev", config_dir=config_dir)

    assert config.env == "dev"
    assert config.counter_id == "44147844"
    assert config.token == "secret"
    assert config.timeout == 12
    assert config.base_url == DEFAULT_BASE_URL
    assert config.cache.ttl == 900
    assert config.cache.directory == "/tmp/metrika-cache"


def test_load_config_defaults(config_dir: Path) -> None:
    config = load_config("prod", config_dir=config_dir)
    assert config.counter_id == "99"
    assert config.timeout == 30
    assert config.cache.ttl == 3600


def test_load_config_missing_credentials(config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRIKA_COUNTER_ID", "44147844")
    monkeypatch.delenv("METRIKA_TOKEN", raising=False)
    with pytest.raises(ValueError, match="token"):
        load_config("dev", config_dir=config_dir)


def test_load_config_missing_file(config_dir: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config("staging", config_dir=config_dir)


def test_bundled_configs_exist() -> None:
    root = Path(__file__).resolve().parent.parent / "config"
    for env in ("dev", "staging", "prod"):
        assert (root / f"metrika.{env}.yaml").exists()
