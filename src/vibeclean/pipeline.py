from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vibeclean.analyzers.common import AnalyzerContext
from vibeclean.analyzers.engine import run_analyzers
from vibeclean.analyzers.syntax import parse_source
from vibeclean.baseline import BaselineError, compare_against_baseline, missing_baseline, read_baseline_snapshot, resolve_baseline_path
from vibeclean.config import AuditConfig
from vibeclean.logging import get_logger
from vibeclean.scanner import scan_project
from vibeclean.schemas import Report, SourceFile
from vibeclean.scoring import apply_severity_filter, collect_gate_failures, overall_message, overall_score
from vibeclean.utils import read_json, utc_now_iso

MAX_PARSE_WARNINGS = 40

logger = get_logger("pipeline")


@dataclass(slots=True)
class AuditResult:
    report: Report
    config: AuditConfig


def load_package_json(root: Path) -> dict[str, Any] | None:
    path = root / "package.json"
    if not path.is_file():
        return None
    try:
        data = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("ignoring unreadable package.json: %s", exc)
        return None
    return data if isinstance(data, dict) else None


def collect_parse_warnings(files: list[SourceFile], limit: int = MAX_PARSE_WARNINGS) -> list[str]:
    warnings: list[str] = []
    hidden = 0
    for file in files:
        result = parse_source(file.content, file.extension)
        if result.tree is None:
            message = f"Skipped AST analysis for {file.relative_path} (syntax not parseable)."
        elif result.used_type_stripping:
            message = f"Parsed {file.relative_path} with TypeScript syntax fallback."
        else:
            continue
        logger.debug("%s: %s", file.relative_path, result.error)
        if len(warnings) < limit:
            warnings.append(message)
        else:
            hidden += 1
    if hidden:
        warnings.append(f"{hidden} additional parse warnings were suppressed.")
    return warnings


def run_audit(root: Path, config: AuditConfig) -> AuditResult:
    root = root.resolve()
    scan = scan_project(root, config)
    warnings = [*scan.warnings, *collect_parse_warnings(scan.files)]

    report = Report(
        overall_score=100,
        total_issues=0,
        file_count=len(scan.files),
        generated_at=utc_now_iso(),
        root_dir=str(root),
        warnings=warnings,
    )

    if not scan.files:
        report.overall_message = (
            "No changed JS/TS source files found. Nothing to clean yet."
            if config.changed_only
            else "No JS/TS source files found. Nothing to clean yet."
        )
    else:
        context = AnalyzerContext(root=root, package_json=load_package_json(root), config=config)
        categories = run_analyzers(scan.files, context)
        # Scores come from the unfiltered categories.
        report.overall_score = overall_score(categories)
        report.overall_message = overall_message(report.overall_score)
        report.categories = apply_severity_filter(categories, config.severity)
        report.total_issues = sum(category.total_issues for category in report.categories)

    if config.baseline.enabled:
        baseline_path = resolve_baseline_path(root, config.baseline.file)
        try:
            snapshot = read_baseline_snapshot(baseline_path)
        except BaselineError as exc:
            logger.warning("%s", exc)
            report.warnings.append(f"Baseline file not found or invalid: {baseline_path}")
            report.baseline_comparison = missing_baseline(baseline_path)
        else:
            report.baseline_comparison = compare_against_baseline(report, snapshot, baseline_path)

    report.gate_failures = collect_gate_failures(report, config)
    logger.debug(
        "audit finished: score=%d issues=%d gates=%d",
        report.overall_score,
        report.total_issues,
        len(report.gate_failures),
    )
    return AuditResult(report=report, config=config)
