from __future__ import annotations

import logging
from pathlib import Path

import pytest

from plaza.infra.config_loader import DEFAULT_CONFIG_PATH, AppConfig, load_config


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "plaza.yml"
    p.write_text(text, encoding="utf-8")
    return p


def test_bundled_defaults_match_model_defaults() -> None:
    assert DEFAULT_CONFIG_PATH.exists()
    assert load_config(env={}) == AppConfig()


def test_reads_yaml_values(tmp_path: Path) -> None:
    p = _write(
        tmp_path,
        """
logging:
  level: DEBUG
  format: text
health:
  weights: {profitability: 0.4, liquidity: 0.2, efficiency: 0.2, demand: 0.2}
  benchmarks: {net_margin_pct: 20}
""",
    )
    cfg = load_config(p, env={})

    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.format == "text"
    assert cfg.health.weights.profitability == pytest.approx(0.4)
    assert cfg.health.benchmarks.net_margin_pct == 20
    assert cfg.health.benchmarks.gross_margin_pct == 50


def test_missing_file_falls_back_to_defaults(tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="plaza.infra.config_loader"):
        cfg = load_config(tmp_path / "nope.yml", env={})

    assert cfg == AppConfig()
    assert any("not found" in r.getMessage() for r in caplog.records)


def test_invalid_values_fall_back_to_defaults(tmp_path: Path, caplog) -> None:
    p = _write(tmp_path, "health:\n  weights: {profitability: 0.9, liquidity: 0.9, efficiency: 0.0, demand: 0.0}\n")
    with caplog.at_level(logging.ERROR, logger="plaza.infra.config_loader"):
        cfg = load_config(p, env={})

    assert cfg == AppConfig()
    assert any("Invalid config values" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("text", ["- just\n- a list\n", "logging: [unclosed\n"])
def test_unusable_yaml_falls_back_to_defaults(tmp_path: Path, text: str) -> None:
    assert load_config(_write(tmp_path, text), env={}) == AppConfig()


def test_env_selects_file_and_overrides_logging(tmp_path: Path) -> None:
    p = _write(tmp_path, "logging:\n  level: WARNING\n")

    cfg = load_config(env={"PLAZA_CONFIG": str(p)})
    assert cfg.logging.level == "WARNING"

    cfg = load_config(env={"PLAZA_CONFIG": str(p), "PLAZA_LOG_LEVEL": "DEBUG", "PLAZA_LOG_FORMAT": "TEXT"})
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.format == "text"
