"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``BAZAAR_VALUATOR_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The valuation engine, pipeline stages and CLI commands receive an
``AppConfig`` (or its ``ValuationConfig`` section) — never raw dicts or
individual env var lookups scattered through the codebase.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/bazaar_valuator.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class DataConfig(BaseModel):
    """Filesystem paths for imports and exports."""

    model_config = ConfigDict(frozen=True)

    raw_dir: str = "data/raw"
    export_dir: str = "data/outputs/valuations"


class ValuationConfig(BaseModel):
    """Similarity valuation thresholds.

    Defaults reproduce the production behaviour; changing them changes
    user-visible price bands, so overrides belong in ``local.toml`` only.
    """

    model_config = ConfigDict(frozen=True)

    level_window: int = 200            # candidates within ±level_window levels
    min_similarity: float = 0.30       # strictly greater than this survives
    max_comparables: int = 30          # top-N kept after ranking
    min_sample_size: int = 3           # below this → no estimate
    item_bonus_ratio: float = 0.30     # bonus cap as a fraction of base estimate
    points_to_currency: int = 2        # display-item point → currency units
    display_comparables: int = 5       # comparables attached to each result

    @field_validator("min_similarity", "item_bonus_ratio")
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"Ratio must be in (0.0, 1.0), got {v}.")
        return v

    @field_validator(
        "level_window", "max_comparables", "min_sample_size", "points_to_currency"
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Value must be a positive integer, got {v}.")
        return v

    @field_validator("display_comparables")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"display_comparables must be >= 0, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_sample_bounds(self) -> "ValuationConfig":
        if self.min_sample_size > self.max_comparables:
            raise ValueError(
                f"min_sample_size ({self.min_sample_size}) cannot exceed "
                f"max_comparables ({self.max_comparables})."
            )
        return self


class DealsConfig(BaseModel):
    """Deal screen settings."""

    model_config = ConfigDict(frozen=True)

    min_discount_pct: int = 20
    max_results: int = 50


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/bazaar_valuator.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    data: DataConfig = DataConfig()
    valuation: ValuationConfig = ValuationConfig()
    deals: DealsConfig = DealsConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply BAZAAR_VALUATOR_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply BAZAAR_VALUATOR_* env vars to the raw config dict.

    Supported overrides:
      BAZAAR_VALUATOR_DB_PATH    → raw["database"]["db_path"]
      BAZAAR_VALUATOR_LOG_LEVEL  → raw["logging"]["level"]
      BAZAAR_VALUATOR_DEBUG      → raw["debug"]
    """
    if db_path := os.environ.get("BAZAAR_VALUATOR_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("BAZAAR_VALUATOR_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("BAZAAR_VALUATOR_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        data=DataConfig(**raw.get("data", {})),
        valuation=ValuationConfig(**raw.get("valuation", {})),
        deals=DealsConfig(**raw.get("deals", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
