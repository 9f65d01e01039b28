from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict

from plaza.cli.commands._io import read_json, write_text
from plaza.core.errors import ForecastError, InputValidationError
from plaza.forecast.engine import run_forecast
from plaza.forecast.model import EngineOutput, to_wire
from plaza.infra.config_loader import load_config
from plaza.infra.logging_config import get_logger, log_kv, setup_logging


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("forecast", help="Run the forecast engine on an input JSON file.")
    p.add_argument("--input", required=True, help="Input JSON path ('-' for stdin).")
    p.add_argument("--out", default=None, help="Output JSON path (stdout if omitted).")
    p.add_argument("--config", default=None, help="YAML config path (default: bundled defaults).")
    p.add_argument("--summary", action="store_true", help="Only emit the summaries and the health score.")
    p.set_defaults(_fn=_run)


def _summary_only(out: EngineOutput) -> Dict[str, Any]:
    return {
        "revenueSummary": to_wire(out.revenue_summary),
        "costSummary": to_wire(out.cost_summary),
        "profitSummary": to_wire(out.profit_summary),
        "cashFlowSummary": to_wire(out.cash_flow_summary),
        "businessHealth": to_wire(out.business_health),
    }


def _run(args: argparse.Namespace) -> int:
    cfg = load_config(Path(args.config) if args.config else None)
    setup_logging(cfg.logging)
    lg = get_logger("plaza.cli.forecast")

    raw = read_json(args.input)
    try:
        out = run_forecast(raw, cfg.health)
    except InputValidationError as e:
        print(f"plaza: INVALID - {e.message}", flush=True)
        return 2
    except ForecastError as e:
        print(f"plaza: ERROR - {e.message}", flush=True)
        return 1

    payload = _summary_only(out) if args.summary else out.to_dict()
    write_text(args.out, json.dumps(payload, indent=2, allow_nan=True))
    log_kv(
        lg,
        "forecast: done",
        months=len(out.monthly_profit),
        score=round(out.business_health.score, 1) if out.business_health else None,
        out=args.out or "stdout",
    )
    return 0
