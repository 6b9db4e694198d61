from __future__ import annotations

import json
from pathlib import Path

from vibeclean.schemas import Category, Report, severity_rank
from vibeclean.utils import write_json

TOP_FINDINGS = 8
MAX_WARNINGS = 10


def _escape_pipes(value: str) -> str:
    return value.replace("|", "\\|")


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def top_findings(categories: list[Category], limit: int = TOP_FINDINGS) -> list[tuple[str, str, str]]:
    rows = [
        (category.id, finding.severity or "low", finding.message)
        for category in categories
        for finding in category.findings
    ]
    rows.sort(key=lambda row: -severity_rank(row[1]))
    return rows[:limit]


def render_json_report(report: Report) -> str:
    return json.dumps(report.to_dict(), ensure_ascii=False, indent=2)


def write_report_json(report: Report, output_path: Path) -> None:
    write_json(output_path, report.to_dict())


def render_markdown_report(report: Report) -> str:
    lines: list[str] = []
    lines.append("# Vibeclean PR Report")
    lines.append("")
    lines.append(f"- **Score:** {report.overall_score}/100")
    lines.append(f"- **Total Issues:** {report.total_issues}")
    lines.append(f"- **Files Scanned:** {report.file_count}")
    lines.append(f"- **Quality Gates:** {'PASS' if report.passed_gates else 'FAIL'}")

    comparison = report.baseline_comparison
    if comparison is not None and comparison.missing:
        lines.append(f"- **Baseline:** missing ({comparison.path})")
    elif comparison is not None:
        lines.append(
            f"- **Baseline:** score {comparison.baseline_score} -> {comparison.current_score} "
            f"({_signed(comparison.deltas.get('score', 0))}), "
            f"issues {comparison.baseline_total_issues} -> {comparison.current_total_issues} "
            f"({_signed(comparison.deltas.get('totalIssues', 0))})"
        )

    lines.append("")
    lines.append("## Category Summary")
    lines.append("")
    lines.append("| Category | Score | Severity | Issues |")
    lines.append("|---|---:|---|---:|")
    for category in report.categories:
        lines.append(
            f"| {_escape_pipes(category.title)} | {category.score}/10 | "
            f"{category.severity.upper()} | {category.total_issues} |"
        )

    def section(title: str, items: list[str]) -> None:
        if not items:
            return
        lines.append("")
        lines.append(f"## {title}")
        lines.append("")
        lines.extend(f"- {item}" for item in items)

    section(
        "Top Findings",
        [f"[{severity.upper()}] `{category_id}` {message}" for category_id, severity, message in top_findings(report.categories)],
    )
    section("Gate Failures", report.gate_failures)
    section("Scan Warnings", report.warnings[:MAX_WARNINGS])

    return "\n".join(lines) + "\n"


def write_report_markdown(report: Report, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_markdown_report(report), encoding="utf-8")


def render_text_summary(report: Report) -> list[str]:
    """Compact plain-text lines for the terminal."""
    lines = [
        f"[vibeclean] score={report.overall_score}/100 issues={report.total_issues} files={report.file_count}",
        f"[vibeclean] {report.overall_message}",
    ]
    for category in report.categories:
        suffix = " (skipped)" if category.skipped else ""
        lines.append(
            f"[vibeclean] {category.id}: {category.score}/10 {category.severity} "
            f"issues={category.total_issues}{suffix} - {category.summary}"
        )
    for warning in report.warnings[:MAX_WARNINGS]:
        lines.append(f"[vibeclean] warning: {warning}")
    if len(report.warnings) > MAX_WARNINGS:
        lines.append(f"[vibeclean] ... {len(report.warnings) - MAX_WARNINGS} more warnings")
    comparison = report.baseline_comparison
    if comparison is not None:
        if comparison.missing:
            lines.append(f"[vibeclean] baseline missing: {comparison.path}")
        else:
            lines.append(
                f"[vibeclean] baseline score {comparison.baseline_score} -> {comparison.current_score} "
                f"({_signed(comparison.deltas.get('score', 0))})"
            )
    return lines
