from __future__ import annotations

from pathlib import Path

from vibeclean.analyzers.common import score_from_ratio, severity_from_score
from vibeclean.config import AuditConfig
from vibeclean.pipeline import run_audit
from vibeclean.schemas import Category, Finding, Report
from vibeclean.scoring import (
    apply_severity_filter,
    collect_gate_failures,
    count_findings_by_severity,
    overall_message,
    overall_score,
)


def _category(category_id: str, score: int, findings: list[Finding] | None = None) -> Category:
    findings = findings or []
    return Category(
        id=category_id,
        title=category_id.upper(),
        score=score,
        severity=severity_from_score(score),
        total_issues=len(findings),
        summary=f"{category_id} summary",
        findings=findings,
    )


def test_score_from_ratio_clamps_and_rounds_half_up() -> None:
    assert score_from_ratio(0.25) == 3
    assert score_from_ratio(0.05) == 1
    assert score_from_ratio(-1.0) == 0
    assert score_from_ratio(3.5) == 10


def test_severity_bands() -> None:
    assert severity_from_score(0) == "low"
    assert severity_from_score(3) == "low"
    assert severity_from_score(4) == "medium"
    assert severity_from_score(6) == "medium"
    assert severity_from_score(7) == "high"
    assert severity_from_score(10) == "high"


def test_overall_score_is_inverse_of_mean_category_score() -> None:
    assert overall_score([]) == 100
    assert overall_score([_category("a", 0), _category("b", 0)]) == 100
    assert overall_score([_category("a", 10), _category("b", 10)]) == 0
    assert overall_score([_category("a", 3), _category("b", 4)]) == 65
    assert overall_message(90).startswith("Clean and consistent")
    assert overall_message(30).startswith("Your codebase has significant")


def test_severity_filter_keeps_categories_and_scores() -> None:
    categories = [
        _category("a", 6, [Finding(severity="low", message="minor"), Finding(severity="high", message="major")]),
        _category("b", 2, [Finding(severity="medium", message="meh")]),
    ]

    filtered = apply_severity_filter(categories, "high")

    assert [item.id for item in filtered] == ["a", "b"]
    assert [item.score for item in filtered] == [6, 2]
    assert [finding.message for finding in filtered[0].findings] == ["major"]
    assert filtered[0].total_issues == 1
    assert filtered[1].findings == []
    assert filtered[1].summary == "No high+ findings for this category."
    assert apply_severity_filter(categories, "low") == categories
    assert len(categories[0].findings) == 2


def test_findings_counted_by_severity() -> None:
    categories = [
        _category("a", 5, [Finding(severity="high", message="x"), Finding(severity="weird", message="y")]),
        _category("b", 5, [Finding(severity="medium", message="z")]),
    ]

    assert count_findings_by_severity(categories) == {"low": 1, "medium": 1, "high": 1}


def test_gate_failure_messages() -> None:
    report = Report(
        overall_score=55,
        total_issues=12,
        categories=[_category("a", 5, [Finding(severity="high", message="x"), Finding(severity="medium", message="y")])],
    )
    config = AuditConfig(min_score=70, max_issues=10, fail_on="medium")

    failures = collect_gate_failures(report, config)

    assert failures == [
        "Score gate failed: overall score 55 is below minimum 70.",
        "Issue gate failed: total issues 12 exceeds maximum 10.",
        "Severity gate failed: found 2 finding(s) at medium severity or higher.",
    ]
    assert collect_gate_failures(report, AuditConfig()) == []


def test_empty_directory_scores_perfectly(tmp_path: Path) -> None:
    result = run_audit(tmp_path, AuditConfig())

    assert result.report.overall_score == 100
    assert result.report.total_issues == 0
    assert result.report.categories == []
    assert result.report.file_count == 0
    assert result.report.overall_message == "No JS/TS source files found. Nothing to clean yet."
