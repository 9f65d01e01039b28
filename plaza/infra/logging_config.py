from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from plaza.infra.config_loader import LoggingConfig


_TEXT_FMT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_entry.update(getattr(record, "extra_data"))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(config: Optional["LoggingConfig"] = None) -> None:
    """
    Configure the root logger once.

    Importing this module does nothing; the CLI calls this explicitly. If the
    root logger already has handlers (pytest, host app) they are left alone.
    """
    level_name = (config.level if config else "INFO").upper()
    log_format = config.format if config else "json"

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(getattr(logging, level_name, logging.INFO))
        return

    if log_format == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(_TEXT_FMT)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), handlers=[handler])


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_kv(logger: logging.Logger, msg: str, **kv: Any) -> None:
    if not kv:
        logger.info(msg)
        return
    extra = " ".join([f"{k}={kv[k]!r}" for k in sorted(kv.keys())])
    logger.info("%s | %s", msg, extra)
