from __future__ import annotations

import json
from pathlib import Path

from vibeclean.schemas import BaselineComparison, BaselineSnapshot, Report
from vibeclean.scoring import count_findings_by_severity
from vibeclean.utils import read_json, utc_now_iso, write_json

DEFAULT_BASELINE_FILE = ".vibeclean-baseline.json"


class BaselineError(RuntimeError):
    """Raised when a baseline snapshot is missing or unreadable."""


def resolve_baseline_path(root: Path, baseline_file: str | Path | None = None) -> Path:
    path = Path(baseline_file or DEFAULT_BASELINE_FILE)
    return path if path.is_absolute() else root / path


def build_baseline_snapshot(report: Report) -> BaselineSnapshot:
    return BaselineSnapshot(
        overall_score=report.overall_score,
        total_issues=report.total_issues,
        finding_counts=count_findings_by_severity(report.categories),
        categories={
            category.id: {
                "score": category.score,
                "totalIssues": category.total_issues,
                "severity": category.severity,
            }
            for category in report.categories
        },
        generated_at=utc_now_iso(),
    )


def read_baseline_snapshot(path: Path) -> BaselineSnapshot:
    if not path.exists():
        raise BaselineError(f"Baseline file not found: {path}")
    try:
        data = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BaselineError(f"Baseline file is not valid JSON: {path}") from exc
    if not isinstance(data, dict):
        raise BaselineError(f"Baseline file must contain a JSON object: {path}")
    try:
        return BaselineSnapshot.from_dict(data)
    except (TypeError, ValueError, AttributeError) as exc:
        raise BaselineError(f"Baseline file has an unexpected shape: {path}") from exc


def write_baseline_snapshot(path: Path, report: Report) -> BaselineSnapshot:
    snapshot = build_baseline_snapshot(report)
    write_json(path, snapshot.to_dict())
    return snapshot


def compare_against_baseline(report: Report, snapshot: BaselineSnapshot, path: Path | str = "") -> BaselineComparison:
    current_counts = count_findings_by_severity(report.categories)
    deltas = {
        "score": report.overall_score - snapshot.overall_score,
        "totalIssues": report.total_issues - snapshot.total_issues,
        "highFindings": current_counts["high"] - snapshot.finding_counts.get("high", 0),
        "mediumFindings": current_counts["medium"] - snapshot.finding_counts.get("medium", 0),
    }

    regressions: list[str] = []
    if deltas["score"] < 0:
        regressions.append(
            f"Baseline regression: overall score dropped by {abs(deltas['score'])} "
            f"(from {snapshot.overall_score} to {report.overall_score})."
        )
    if deltas["totalIssues"] > 0:
        regressions.append(
            f"Baseline regression: total issues increased by {deltas['totalIssues']} "
            f"(from {snapshot.total_issues} to {report.total_issues})."
        )
    if deltas["highFindings"] > 0:
        regressions.append(f"Baseline regression: high-severity findings increased by {deltas['highFindings']}.")

    worsened: list[str] = []
    for category in report.categories:
        previous = snapshot.categories.get(category.id)
        if previous is None:
            continue
        delta = category.score - int(previous.get("score") or 0)
        if delta > 0:
            worsened.append(f"{category.id} (+{delta})")
    if worsened:
        regressions.append(f"Baseline regression: category scores worsened in {', '.join(worsened)}.")

    return BaselineComparison(
        path=str(path),
        baseline_generated_at=snapshot.generated_at,
        baseline_score=snapshot.overall_score,
        baseline_total_issues=snapshot.total_issues,
        current_score=report.overall_score,
        current_total_issues=report.total_issues,
        deltas=deltas,
        regressions=regressions,
    )


def missing_baseline(path: Path | str) -> BaselineComparison:
    return BaselineComparison(path=str(path), missing=True)
