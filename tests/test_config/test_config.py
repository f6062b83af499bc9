"""
Tests for configuration loading and validation.

What we test
------------
1. Defaults match the production thresholds.
2. load_config(): TOML file, local.toml deep merge, env var overrides.
3. Validators reject out-of-range thresholds.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from bazaar_valuator.config import AppConfig, ValuationConfig, _deep_merge, load_config

_MINIMAL_TOML = """
[project]
debug = false

[database]
db_path = "data/db/from_toml.db"

[valuation]
level_window = 150
"""


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "default.toml"
    path.write_text(_MINIMAL_TOML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in ("BAZAAR_VALUATOR_DB_PATH", "BAZAAR_VALUATOR_LOG_LEVEL", "BAZAAR_VALUATOR_DEBUG"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_valuation_defaults(self):
        cfg = ValuationConfig()
        assert cfg.level_window == 200
        assert cfg.min_similarity == 0.30
        assert cfg.max_comparables == 30
        assert cfg.min_sample_size == 3
        assert cfg.item_bonus_ratio == 0.30
        assert cfg.points_to_currency == 2
        assert cfg.display_comparables == 5

    def test_app_config_is_frozen(self):
        cfg = AppConfig()
        with pytest.raises(ValidationError):
            cfg.debug = True  # type: ignore[misc]

    def test_committed_default_toml_loads(self):
        cfg = load_config()
        assert cfg.valuation == ValuationConfig()
        assert cfg.deals.min_discount_pct == 20


class TestLoadConfig:
    def test_reads_toml(self, config_file):
        cfg = load_config(config_file)
        assert cfg.database.db_path == "data/db/from_toml.db"
        assert cfg.valuation.level_window == 150
        assert cfg.valuation.max_comparables == 30

    def test_local_toml_overrides(self, config_file):
        (config_file.parent / "local.toml").write_text(
            "[valuation]\nmin_sample_size = 5\n", encoding="utf-8"
        )
        cfg = load_config(config_file)
        assert cfg.valuation.min_sample_size == 5
        assert cfg.valuation.level_window == 150

    def test_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("BAZAAR_VALUATOR_DB_PATH", "/tmp/env.db")
        monkeypatch.setenv("BAZAAR_VALUATOR_LOG_LEVEL", "debug")
        monkeypatch.setenv("BAZAAR_VALUATOR_DEBUG", "true")
        cfg = load_config(config_file)
        assert cfg.database.db_path == "/tmp/env.db"
        assert cfg.logging.level == "DEBUG"
        assert cfg.debug is True

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_invalid_value_raises(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[valuation]\nmin_similarity = 1.5\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(path)


class TestValidators:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"min_similarity": 0.0},
            {"item_bonus_ratio": 1.0},
            {"level_window": 0},
            {"max_comparables": -1},
            {"display_comparables": -1},
            {"min_sample_size": 40},
        ],
    )
    def test_rejects_out_of_range(self, overrides):
        with pytest.raises(ValidationError):
            ValuationConfig(**overrides)

    def test_bad_log_level(self):
        from bazaar_valuator.config import LoggingConfig

        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")


def test_deep_merge_nested():
    merged = _deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}, "c": 4})
    assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
