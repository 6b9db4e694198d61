from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vibeclean.config import AuditConfig
from vibeclean.schemas import Location, SourceFile
from vibeclean.utils import line_number_at, line_snippet, round_half_up

MAX_LOCATIONS = 12

IMPORT_RE = re.compile(r"""import\s+[^"'`]*?from\s+["'`]([^"'`]+)["'`]|import\s+["'`]([^"'`]+)["'`]""")
REQUIRE_RE = re.compile(r"""require\(\s*["'`]([^"'`]+)["'`]\s*\)""")


@dataclass(slots=True)
class AnalyzerContext:
    root: Path | None = None
    package_json: dict[str, Any] | None = None
    config: AuditConfig = field(default_factory=AuditConfig)


def severity_from_score(score: int) -> str:
    if score >= 7:
        return "high"
    if score >= 4:
        return "medium"
    return "low"


def score_from_ratio(ratio: float, weight: int = 10) -> int:
    bounded = min(1.0, max(0.0, ratio))
    return min(weight, round_half_up(bounded * weight))


def count_matches(content: str, pattern: re.Pattern[str]) -> int:
    return sum(1 for _ in pattern.finditer(content))


def collect_import_specifiers(content: str) -> list[str]:
    """All module specifiers from import/require forms, first occurrence order."""
    imports: dict[str, None] = {}
    for match in IMPORT_RE.finditer(content):
        spec = match.group(1) or match.group(2)
        if spec:
            imports.setdefault(spec, None)
    for match in REQUIRE_RE.finditer(content):
        imports.setdefault(match.group(1), None)
    return list(imports)


def package_root(specifier: str) -> str | None:
    if not specifier or specifier.startswith((".", "/")):
        return None
    if specifier.startswith("@"):
        parts = specifier.split("/")
        return f"{parts[0]}/{parts[1]}" if len(parts) >= 2 else specifier
    return specifier.split("/")[0]


def collect_locations(
    file: SourceFile,
    pattern: re.Pattern[str],
    limit: int = MAX_LOCATIONS,
) -> tuple[int, list[Location]]:
    """Count matches of ``pattern`` and keep up to ``limit`` distinct line locations."""
    count = 0
    locations: list[Location] = []
    seen: set[int] = set()
    for match in pattern.finditer(file.content):
        count += 1
        if len(locations) >= limit:
            continue
        line = line_number_at(file.content, match.start())
        if line in seen:
            continue
        seen.add(line)
        locations.append(Location(file=file.relative_path, line=line, snippet=line_snippet(file.content, line)))
    return count, locations
