from __future__ import annotations

import argparse
from typing import Sequence

from dotenv import find_dotenv, load_dotenv

from plaza.cli.commands import forecast_cmd, validate_cmd
from plaza.infra.logging_config import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="plaza.cli",
        description="Plaza forecasting CLI (forecast, validate).",
    )
    sub = p.add_subparsers(dest="command", required=True)

    forecast_cmd.register(sub)
    validate_cmd.register(sub)

    return p


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    fn = getattr(args, "_fn", None)
    if fn is None:
        parser.print_help()
        return 2

    try:
        rc = fn(args)
        return rc if isinstance(rc, int) else 0

    except KeyboardInterrupt:
        print("plaza: CANCELLED (KeyboardInterrupt)", flush=True)
        return 130

    except (OSError, ValueError) as e:
        # unreadable file or malformed JSON
        print(f"plaza: ERROR - {type(e).__name__}: {e}", flush=True)
        return 3

    except Exception as e:
        logger.exception("Unhandled CLI error")
        print(f"plaza: ERROR - {type(e).__name__}: {e}", flush=True)
        return 3
