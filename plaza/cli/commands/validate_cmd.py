from __future__ import annotations

import argparse

from plaza.cli.commands._io import read_json
from plaza.core.result import Err
from plaza.forecast.schema import validate


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("validate", help="Check a forecast input file and report the first problem.")
    p.add_argument("--input", required=True, help="Input JSON path ('-' for stdin).")
    p.set_defaults(_fn=_run)


def _run(args: argparse.Namespace) -> int:
    result = validate(read_json(args.input))
    if isinstance(result, Err):
        print(f"plaza: INVALID - {result.error.message}", flush=True)
        return 2
    print("OK", flush=True)
    return 0
