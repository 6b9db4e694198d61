from __future__ import annotations

from dataclasses import replace

from vibeclean.config import AuditConfig
from vibeclean.schemas import SEVERITY_RANK, Category, Report, severity_rank
from vibeclean.utils import round_half_up


def overall_score(categories: list[Category]) -> int:
    """100 minus ten times the mean category score, clamped to [0, 100]."""
    if not categories:
        return 100
    mean = sum(category.score for category in categories) / len(categories)
    return max(0, min(100, round_half_up(100 - mean * 10)))


def overall_message(score: int) -> str:
    if score >= 85:
        return "Clean and consistent. Keep the vibe under control."
    if score >= 65:
        return "Some inconsistency debt exists. A cleanup pass is worth it."
    if score >= 40:
        return "Your codebase has visible vibe coding debt and mixed patterns."
    return "Your codebase has significant vibe coding debt. Time for a cleanup sprint."


def apply_severity_filter(categories: list[Category], minimum: str = "low") -> list[Category]:
    """Drop findings below ``minimum``; scores are left untouched."""
    threshold = severity_rank(minimum)
    if threshold <= SEVERITY_RANK["low"]:
        return list(categories)

    filtered: list[Category] = []
    for category in categories:
        findings = [finding for finding in category.findings if severity_rank(finding.severity) >= threshold]
        filtered.append(
            replace(
                category,
                findings=findings,
                total_issues=len(findings),
                summary=category.summary if findings else f"No {minimum.lower()}+ findings for this category.",
            )
        )
    return filtered


def count_findings_by_severity(categories: list[Category]) -> dict[str, int]:
    counts = {"low": 0, "medium": 0, "high": 0}
    for category in categories:
        for finding in category.findings:
            severity = finding.severity if finding.severity in counts else "low"
            counts[severity] += 1
    return counts


def collect_gate_failures(report: Report, config: AuditConfig) -> list[str]:
    failures: list[str] = []

    if config.min_score is not None and report.overall_score < config.min_score:
        failures.append(
            f"Score gate failed: overall score {report.overall_score} is below minimum {config.min_score}."
        )

    if config.max_issues is not None and report.total_issues > config.max_issues:
        failures.append(
            f"Issue gate failed: total issues {report.total_issues} exceeds maximum {config.max_issues}."
        )

    if config.fail_on:
        threshold = severity_rank(config.fail_on)
        matched = sum(
            1
            for category in report.categories
            for finding in category.findings
            if severity_rank(finding.severity) >= threshold
        )
        if matched:
            failures.append(
                f"Severity gate failed: found {matched} finding(s) at {config.fail_on} severity or higher."
            )

    comparison = report.baseline_comparison
    if config.baseline.fail_on_regression and comparison is not None and comparison.regressions:
        failures.extend(comparison.regressions)

    return failures
