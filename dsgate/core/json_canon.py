from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def pretty_json_text(obj: Any) -> str:
    # Key order is preserved: registries are authored documents.
    return json.dumps(obj, indent=2, ensure_ascii=False) + "\n"


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8", errors="strict"))


def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", errors="strict", newline="\n") as f:
        f.write(pretty_json_text(obj))


def append_jsonl(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    line = json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    with path.open("a", encoding="utf-8", errors="strict", newline="\n") as f:
        f.write(line + "\n")
