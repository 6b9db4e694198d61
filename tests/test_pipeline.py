from __future__ import annotations

from pathlib import Path

from vibeclean.config import AuditConfig
from vibeclean.pipeline import collect_parse_warnings, load_package_json, run_audit
from vibeclean.schemas import SourceFile


def _categories(report) -> dict:
    return {category.id: category for category in report.categories}


def test_full_audit_of_sample_repo(sample_repo: Path) -> None:
    report = run_audit(sample_repo, AuditConfig()).report

    assert report.file_count == 5
    assert [category.id for category in report.categories] == [
        "naming",
        "patterns",
        "leftovers",
        "security",
        "dependencies",
        "deadcode",
        "errorhandling",
        "tsquality",
    ]
    assert 0 <= report.overall_score <= 100
    assert report.total_issues == sum(category.total_issues for category in report.categories)
    assert report.gate_failures == []
    assert report.baseline_comparison is None


def test_sample_repo_findings(sample_repo: Path) -> None:
    categories = _categories(run_audit(sample_repo, AuditConfig()).report)

    deadcode = categories["deadcode"].metrics
    assert "src/utils/legacy_helper.js" in deadcode["orphanFiles"]
    assert "src/api/client.js" not in deadcode["orphanFiles"]
    assert {"file": "src/api/client.js", "name": "fetchUser"} in deadcode["unusedExports"]
    assert {"file": "src/api/client.js", "name": "fetchUsers"} not in deadcode["unusedExports"]

    errors = categories["errorhandling"].metrics
    assert errors["totalAwait"] == 3
    assert errors["unhandledAwait"] == 2
    assert errors["catchLogOnly"] == 1

    assert categories["dependencies"].metrics["unusedPackages"] == ["moment"]
    assert categories["leftovers"].metrics["todoComments"] == 1
    assert categories["tsquality"].skipped is False
    assert "src/utils/legacy_helper.js" in categories["naming"].metrics["minorityFiles"]


def test_type_stripping_is_reported_as_warning(sample_repo: Path) -> None:
    report = run_audit(sample_repo, AuditConfig()).report

    assert "Parsed src/types.ts with TypeScript syntax fallback." in report.warnings


def test_parse_warnings_are_capped() -> None:
    files = [SourceFile(f"src/bad{index}.js", "const = ;", ".js") for index in range(5)]

    warnings = collect_parse_warnings(files, limit=2)

    assert warnings == [
        "Skipped AST analysis for src/bad0.js (syntax not parseable).",
        "Skipped AST analysis for src/bad1.js (syntax not parseable).",
        "3 additional parse warnings were suppressed.",
    ]


def test_severity_filter_does_not_change_the_score(sample_repo: Path) -> None:
    full = run_audit(sample_repo, AuditConfig()).report
    high_only = run_audit(sample_repo, AuditConfig(severity="high")).report

    assert high_only.overall_score == full.overall_score
    assert len(high_only.categories) == len(full.categories)
    for category in high_only.categories:
        assert all(finding.severity == "high" for finding in category.findings)


def test_missing_baseline_is_a_warning(sample_repo: Path) -> None:
    config = AuditConfig().with_overrides(baseline=True)

    report = run_audit(sample_repo, config).report

    assert report.baseline_comparison is not None
    assert report.baseline_comparison.missing is True
    expected = f"Baseline file not found or invalid: {sample_repo.resolve() / '.vibeclean-baseline.json'}"
    assert expected in report.warnings
    assert report.gate_failures == []


def test_package_json_is_optional(tmp_path: Path) -> None:
    assert load_package_json(tmp_path) is None
    (tmp_path / "package.json").write_text("{broken", encoding="utf-8")
    assert load_package_json(tmp_path) is None


def test_baseline_with_bad_values_is_treated_as_missing(sample_repo: Path) -> None:
    (sample_repo / ".vibeclean-baseline.json").write_text(
        '{"overallScore": 90, "totalIssues": 1, "categories": {"naming": {"score": "bad"}}}',
        encoding="utf-8",
    )

    report = run_audit(sample_repo, AuditConfig().with_overrides(baseline=True)).report

    assert report.baseline_comparison is not None
    assert report.baseline_comparison.missing is True
    assert report.gate_failures == []
