from __future__ import annotations

import re

from vibeclean.analyzers.common import (
    MAX_LOCATIONS,
    AnalyzerContext,
    collect_locations,
    score_from_ratio,
    severity_from_score,
)
from vibeclean.schemas import Category, Finding, Location, SourceFile

CONSOLE_DEBUG_RE = re.compile(r"\bconsole\.(?:log|debug|info|trace|dir)\s*\(")
DEBUGGER_RE = re.compile(r"^\s*debugger\s*;?\s*$", re.MULTILINE)
TODO_RE = re.compile(r"(?://|/\*|^\s*\*)[^\n]*?\b(?:TODO|FIXME|HACK|XXX)\b", re.MULTILINE)
# A line comment whose body reads like a statement that was switched off.
COMMENTED_CODE_RE = re.compile(
    r"^\s*//\s*(?:"
    r"(?:const|let|var|return|import|export|if|for|while|await|function|class)\b"
    r"|[A-Za-z_$][\w$.]*\s*\([^)]*\)\s*;\s*$"
    r"|[A-Za-z_$][\w$.]*\s*=[^=][^;]*;\s*$"
    r"|[{}]\s*$"
    r")",
    re.MULTILINE,
)


def _merge(target: list[Location], extra: list[Location]) -> None:
    target.extend(extra[: MAX_LOCATIONS - len(target)])


def analyze_leftovers(files: list[SourceFile], context: AnalyzerContext | None = None) -> Category:
    totals = {"console": 0, "debugger": 0, "todo": 0, "commented": 0}
    locations: dict[str, list[Location]] = {key: [] for key in totals}
    files_with_console: set[str] = set()

    for file in files:
        for key, pattern in (
            ("console", CONSOLE_DEBUG_RE),
            ("debugger", DEBUGGER_RE),
            ("todo", TODO_RE),
            ("commented", COMMENTED_CODE_RE),
        ):
            count, hits = collect_locations(file, pattern, MAX_LOCATIONS - len(locations[key]))
            totals[key] += count
            _merge(locations[key], hits)
            if key == "console" and count:
                files_with_console.add(file.relative_path)

    findings: list[Finding] = []
    if totals["debugger"]:
        findings.append(
            Finding(
                severity="high",
                message=f"{totals['debugger']} debugger statements left in source.",
                locations=locations["debugger"],
            )
        )
    if totals["console"]:
        findings.append(
            Finding(
                severity="medium" if totals["console"] > 5 else "low",
                message=f"{totals['console']} debug console calls found across {len(files_with_console)} files.",
                locations=locations["console"],
            )
        )
    if totals["commented"]:
        findings.append(
            Finding(
                severity="medium" if totals["commented"] > 10 else "low",
                message=f"{totals['commented']} lines of commented-out code found.",
                locations=locations["commented"],
            )
        )
    if totals["todo"]:
        findings.append(
            Finding(
                severity="low",
                message=f"{totals['todo']} TODO/FIXME/HACK markers found.",
                locations=locations["todo"],
            )
        )

    signal = totals["console"] * 0.5 + totals["debugger"] * 2 + totals["todo"] * 0.3 + totals["commented"] * 0.6
    score = score_from_ratio(signal / max(len(files) * 1.2, 1))
    total = sum(totals.values())

    return Category(
        id="leftovers",
        title="AI LEFTOVERS",
        score=score,
        severity=severity_from_score(score),
        total_issues=total,
        summary=f"{total} leftover debug artifacts and markers found." if total else "No obvious AI leftovers detected.",
        findings=findings,
        metrics={
            "consoleCalls": totals["console"],
            "debuggerStatements": totals["debugger"],
            "todoComments": totals["todo"],
            "commentedCodeLines": totals["commented"],
            "filesWithConsole": len(files_with_console),
        },
        recommendations=[
            "Remove debug console calls or route them through a logger.",
            "Delete debugger statements before committing.",
            "Resolve or ticket TODO/FIXME markers and delete commented-out code.",
        ],
    )
