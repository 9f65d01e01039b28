from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any


def read_json(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text(encoding="utf-8"))


def write_text(path: str | None, text: str) -> None:
    if not path or path == "-":
        sys.stdout.write(text + "\n")
        sys.stdout.flush()
        return
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text + "\n", encoding="utf-8")
