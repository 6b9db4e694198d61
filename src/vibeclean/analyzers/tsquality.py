from __future__ import annotations

import re

from vibeclean.analyzers.common import AnalyzerContext, count_matches, score_from_ratio, severity_from_score
from vibeclean.schemas import Category, Finding, SourceFile

TS_EXTENSIONS = {".ts", ".tsx"}

ANY_PATTERNS = (
    re.compile(r":\s*any\b"),
    re.compile(r"\bas\s+any\b"),
    re.compile(r"<\s*any\s*>"),
)
SUPPRESSION_RE = re.compile(r"//\s*@ts-(?:ignore|expect-error)\b")
AS_ASSERTION_RE = re.compile(r"\bas\s+[A-Za-z_$][A-Za-z0-9_$<>,\s.\[\]|&?:]*")
ANGLE_ASSERTION_RE = re.compile(r"<\s*[A-Za-z_$][A-Za-z0-9_$<>,\s.\[\]|&?:]*>\s*[A-Za-z_$][A-Za-z0-9_$]*")
UNTYPED_EXPORT_PATTERNS = (
    re.compile(r"export\s+(?:async\s+)?function\s+[A-Za-z_$][A-Za-z0-9_$]*\s*\([^)]*\)\s*\{"),
    re.compile(r"export\s+const\s+[A-Za-z_$][A-Za-z0-9_$]*\s*=\s*(?:async\s*)?\([^)]*\)\s*=>\s*\{"),
)
NON_NULL_RE = re.compile(r"\b[A-Za-z_$][A-Za-z0-9_$]*!(?=[.\[)\];,])")

RECOMMENDATIONS = [
    "Replace explicit any with specific types or generics.",
    "Use @ts-ignore/@ts-expect-error only with issue-linked justification.",
    "Keep one type assertion style and prefer explicit return types for exported APIs.",
]


def _empty_metrics() -> dict[str, int]:
    return {
        "tsFileCount": 0,
        "explicitAnyCount": 0,
        "suppressionCount": 0,
        "asAssertions": 0,
        "angleAssertions": 0,
        "missingReturnTypeCount": 0,
        "nonNullAssertionCount": 0,
    }


def analyze_ts_quality(files: list[SourceFile], context: AnalyzerContext | None = None) -> Category:
    ts_files = [file for file in files if file.extension in TS_EXTENSIONS]
    if not ts_files:
        return Category(
            id="tsquality",
            title="TYPESCRIPT QUALITY",
            score=0,
            severity="low",
            total_issues=0,
            summary="No TypeScript files detected. TS-specific checks were skipped.",
            metrics=_empty_metrics(),
            recommendations=["Add TypeScript files to enable TS-specific consistency checks."],
            skipped=True,
        )

    metrics = _empty_metrics()
    metrics["tsFileCount"] = len(ts_files)
    files_with_any: list[str] = []
    files_with_suppressions: list[str] = []

    for file in ts_files:
        content = file.content
        any_signals = sum(count_matches(content, pattern) for pattern in ANY_PATTERNS)
        if any_signals:
            metrics["explicitAnyCount"] += any_signals
            files_with_any.append(file.relative_path)

        suppressions = count_matches(content, SUPPRESSION_RE)
        if suppressions:
            metrics["suppressionCount"] += suppressions
            files_with_suppressions.append(file.relative_path)

        metrics["asAssertions"] += count_matches(content, AS_ASSERTION_RE)
        # Angle-bracket assertions are JSX in .tsx files.
        if file.extension == ".ts":
            metrics["angleAssertions"] += count_matches(content, ANGLE_ASSERTION_RE)

        metrics["missingReturnTypeCount"] += sum(count_matches(content, pattern) for pattern in UNTYPED_EXPORT_PATTERNS)
        metrics["nonNullAssertionCount"] += count_matches(content, NON_NULL_RE)

    explicit_any = metrics["explicitAnyCount"]
    suppressions = metrics["suppressionCount"]
    missing_returns = metrics["missingReturnTypeCount"]
    non_null = metrics["nonNullAssertionCount"]
    mixed_assertions = metrics["asAssertions"] > 0 and metrics["angleAssertions"] > 0

    findings: list[Finding] = []
    if explicit_any:
        findings.append(
            Finding(
                severity="high" if explicit_any >= 6 else "medium",
                message=f"{explicit_any} explicit any usages detected across {len(files_with_any)} TS files.",
                files=files_with_any[:20],
            )
        )
    if suppressions:
        findings.append(
            Finding(
                severity="high" if suppressions >= 4 else "medium",
                message=f"{suppressions} @ts-ignore/@ts-expect-error suppressions found.",
                files=files_with_suppressions[:20],
            )
        )
    if mixed_assertions:
        findings.append(
            Finding(
                severity="medium",
                message=(
                    f'Mixed type assertion styles detected: "as" ({metrics["asAssertions"]}) '
                    f'and angle-bracket ({metrics["angleAssertions"]}).'
                ),
            )
        )
    if missing_returns:
        findings.append(
            Finding(
                severity="medium" if missing_returns >= 8 else "low",
                message=f"{missing_returns} exported TS functions appear to omit explicit return types.",
            )
        )
    if non_null:
        findings.append(
            Finding(
                severity="medium" if non_null >= 10 else "low",
                message=f'{non_null} non-null assertions found ("!").',
            )
        )

    signal = (
        explicit_any * 1.6
        + suppressions * 1.8
        + missing_returns * 0.7
        + non_null * 0.5
        + (3 if mixed_assertions else 0)
    )
    score = score_from_ratio(signal / max(len(ts_files) * 2.5, 1))

    return Category(
        id="tsquality",
        title="TYPESCRIPT QUALITY",
        score=score,
        severity=severity_from_score(score),
        total_issues=len(findings),
        summary=(
            "TypeScript consistency and strictness issues detected."
            if findings
            else "TypeScript quality signals look consistent."
        ),
        findings=findings,
        metrics=metrics,
        recommendations=list(RECOMMENDATIONS),
    )
