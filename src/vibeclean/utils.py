from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from fnmatch import fnmatch
from pathlib import Path
from typing import Any


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _expand_braces(pattern: str) -> list[str]:
    match = re.search(r"\{([^{}]+)\}", pattern)
    if not match:
        return [pattern]
    options = [item.strip() for item in match.group(1).split(",") if item.strip()]
    if not options:
        return [pattern]
    prefix = pattern[: match.start()]
    suffix = pattern[match.end() :]
    expanded: list[str] = []
    for option in options:
        expanded.extend(_expand_braces(f"{prefix}{option}{suffix}"))
    return expanded


def path_matches(path: str, patterns: Iterable[str]) -> bool:
    expanded_patterns: list[str] = []
    for pattern in patterns:
        expanded_patterns.extend(_expand_braces(pattern))
    for pattern in expanded_patterns:
        if fnmatch(path, pattern):
            return True
        # "**/x/**" should also match "x/..." at the root.
        if pattern.startswith("**/") and fnmatch(path, pattern[3:]):
            return True
    return False


def line_number_at(content: str, index: int) -> int:
    return content.count("\n", 0, index) + 1


def line_snippet(content: str, line_number: int, width: int = 160) -> str:
    lines = content.split("\n")
    if line_number < 1 or line_number > len(lines):
        return ""
    return lines[line_number - 1].strip()[:width]


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
