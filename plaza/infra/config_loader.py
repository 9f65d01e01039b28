from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from plaza.infra.logging_config import get_logger

logger = get_logger(__name__)


# =========================
# CONFIG MODELS
# =========================


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class HealthWeights(BaseModel):
    """
    Weight of each sub-score in the overall business health score.

    Must add up to 1.0; equal weights unless configured otherwise.
    """

    profitability: float = Field(default=0.25, ge=0.0, le=1.0)
    liquidity: float = Field(default=0.25, ge=0.0, le=1.0)
    efficiency: float = Field(default=0.25, ge=0.0, le=1.0)
    demand: float = Field(default=0.25, ge=0.0, le=1.0)

    def total(self) -> float:
        return self.profitability + self.liquidity + self.efficiency + self.demand

    @model_validator(mode="after")
    def _sum_to_one(self) -> "HealthWeights":
        t = self.total()
        if abs(t - 1.0) > 1e-6:
            raise ValueError(f"HealthWeights must sum to 1.0 +/- 1e-6, got {t}")
        return self


class HealthBenchmarks(BaseModel):
    """Metric values (in percent) that earn a full 100-point sub-score."""

    net_margin_pct: float = 15.0
    cash_margin_pct: float = 10.0
    gross_margin_pct: float = 50.0
    sell_through_pct: float = 80.0

    @field_validator("*")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("benchmarks must be > 0")
        return v


class HealthConfig(BaseModel):
    weights: HealthWeights = Field(default_factory=HealthWeights)
    benchmarks: HealthBenchmarks = Field(default_factory=HealthBenchmarks)


class AppConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)


# =========================
# LOADER
# =========================

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "default.yml"


def _read_raw_yaml(path: Path) -> Dict[str, Any]:
    """Read YAML safely; on any problem return an empty mapping and log why."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(
            "Config file not found, using defaults",
            extra={"extra_data": {"config_path": str(path)}},
        )
        return {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error(
            "Error reading config file, using defaults",
            extra={"extra_data": {"config_path": str(path), "error": str(exc)}},
        )
        return {}

    if not isinstance(data, dict):
        logger.error(
            "Config YAML root is not a mapping, falling back to defaults",
            extra={"extra_data": {"config_path": str(path)}},
        )
        return {}
    return data


def _apply_env_overrides(raw: Dict[str, Any], env: Dict[str, str]) -> Dict[str, Any]:
    out = dict(raw)
    log_section = dict(out.get("logging") or {})
    if env.get("PLAZA_LOG_LEVEL"):
        log_section["level"] = env["PLAZA_LOG_LEVEL"]
    if env.get("PLAZA_LOG_FORMAT"):
        log_section["format"] = env["PLAZA_LOG_FORMAT"].lower()
    if log_section:
        out["logging"] = log_section
    return out


def load_config(path: Optional[Path] = None, env: Optional[Dict[str, str]] = None) -> AppConfig:
    """
    Load configuration from YAML and validate it with pydantic.

    - No file: defaults.
    - Malformed file or invalid values: defaults, with the reason logged.
    - `PLAZA_CONFIG` selects the file when `path` is not given;
      `PLAZA_LOG_LEVEL` / `PLAZA_LOG_FORMAT` override the logging section.

    Nothing is cached: every call reads the file again.
    """
    environ = dict(os.environ) if env is None else env

    if path is None:
        path = Path(environ["PLAZA_CONFIG"]) if environ.get("PLAZA_CONFIG") else DEFAULT_CONFIG_PATH

    raw = _apply_env_overrides(_read_raw_yaml(path), environ)

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        logger.error(
            "Invalid config values, using defaults",
            extra={"extra_data": {"config_path": str(path), "errors": exc.errors(include_url=False)}},
        )
        return AppConfig()
