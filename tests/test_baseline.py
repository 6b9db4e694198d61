from __future__ import annotations

from pathlib import Path

import pytest

from vibeclean.baseline import (
    BaselineError,
    build_baseline_snapshot,
    compare_against_baseline,
    read_baseline_snapshot,
    resolve_baseline_path,
    write_baseline_snapshot,
)
from vibeclean.schemas import Category, Finding, Report


def _report(score: int, issues: int, category_score: int = 2, high: int = 0) -> Report:
    findings = [Finding(severity="high", message=f"issue {index}") for index in range(high)]
    category = Category(
        id="naming",
        title="NAMING INCONSISTENCY",
        score=category_score,
        severity="low",
        total_issues=len(findings),
        summary="",
        findings=findings,
    )
    return Report(overall_score=score, total_issues=issues, categories=[category])


def test_identical_report_has_no_regressions() -> None:
    report = _report(80, 4)

    comparison = compare_against_baseline(report, build_baseline_snapshot(report), "base.json")

    assert comparison.regressions == []
    assert comparison.deltas == {"score": 0, "totalIssues": 0, "highFindings": 0, "mediumFindings": 0}
    assert comparison.missing is False


def test_each_regression_condition_is_reported() -> None:
    snapshot = build_baseline_snapshot(_report(80, 4, category_score=2))
    current = _report(70, 6, category_score=5, high=1)

    regressions = compare_against_baseline(current, snapshot).regressions

    assert regressions == [
        "Baseline regression: overall score dropped by 10 (from 80 to 70).",
        "Baseline regression: total issues increased by 2 (from 4 to 6).",
        "Baseline regression: high-severity findings increased by 1.",
        "Baseline regression: category scores worsened in naming (+3).",
    ]


def test_improvements_are_not_regressions() -> None:
    snapshot = build_baseline_snapshot(_report(60, 9, category_score=6, high=2))

    comparison = compare_against_baseline(_report(75, 3, category_score=3), snapshot)

    assert comparison.regressions == []
    assert comparison.deltas["score"] == 15


def test_write_then_read_snapshot(tmp_path: Path) -> None:
    path = tmp_path / "nested" / ".vibeclean-baseline.json"

    written = write_baseline_snapshot(path, _report(88, 2, high=1))
    loaded = read_baseline_snapshot(path)

    assert loaded.overall_score == 88
    assert loaded.total_issues == 2
    assert loaded.finding_counts == {"low": 0, "medium": 0, "high": 1}
    assert loaded.categories == written.categories


def test_missing_and_corrupt_baselines_raise(tmp_path: Path) -> None:
    with pytest.raises(BaselineError):
        read_baseline_snapshot(tmp_path / "missing.json")

    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    with pytest.raises(BaselineError):
        read_baseline_snapshot(corrupt)

    array = tmp_path / "array.json"
    array.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(BaselineError):
        read_baseline_snapshot(array)


def test_baseline_path_resolution(tmp_path: Path) -> None:
    assert resolve_baseline_path(tmp_path) == tmp_path / ".vibeclean-baseline.json"
    assert resolve_baseline_path(tmp_path, "ci/base.json") == tmp_path / "ci" / "base.json"
    absolute = tmp_path / "abs.json"
    assert resolve_baseline_path(tmp_path, absolute) == absolute


def test_snapshot_with_non_numeric_category_score_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text('{"categories": {"naming": {"score": "bad"}}}', encoding="utf-8")

    with pytest.raises(BaselineError):
        read_baseline_snapshot(path)

    path.write_text('{"categories": ["naming"]}', encoding="utf-8")
    with pytest.raises(BaselineError):
        read_baseline_snapshot(path)
