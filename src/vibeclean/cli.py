from __future__ import annotations

from pathlib import Path

import typer

from vibeclean.baseline import resolve_baseline_path, write_baseline_snapshot
from vibeclean.config import AuditConfig, ConfigError, config_path_for, ensure_config, load_config
from vibeclean.logging import configure_logging
from vibeclean.pipeline import AuditResult, run_audit
from vibeclean.report_writer import (
    render_json_report,
    render_markdown_report,
    render_text_summary,
    write_report_json,
    write_report_markdown,
)

app = typer.Typer(help="vibeclean: audit JS/TS codebases for cross-file consistency drift")

REPORT_FORMATS = ("text", "json", "markdown")


def _load(repo: Path, config_path: Path | None) -> AuditConfig:
    try:
        return load_config(repo, config_path)
    except ConfigError as exc:
        typer.echo(f"[vibeclean] config error: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def _emit(result: AuditResult, report_format: str, report_file: Path | None) -> None:
    report = result.report
    if report_format == "json":
        if report_file is not None:
            write_report_json(report, report_file)
            typer.echo(f"[vibeclean] saved JSON report to {report_file}")
        else:
            typer.echo(render_json_report(report))
        return
    if report_format == "markdown":
        if report_file is not None:
            write_report_markdown(report, report_file)
            typer.echo(f"[vibeclean] saved Markdown report to {report_file}")
        else:
            typer.echo(render_markdown_report(report), nl=False)
        return
    for line in render_text_summary(report):
        typer.echo(line)


@app.command()
def init(
    repo: Path = typer.Option(Path("."), help="Project root"),
    force: bool = typer.Option(False, help="Overwrite an existing config"),
) -> None:
    repo = repo.resolve()
    path = config_path_for(repo)
    if ensure_config(path, force=force):
        typer.echo(f"[vibeclean] wrote config to {path}")
    else:
        typer.echo(f"[vibeclean] config already exists at {path} (use --force to overwrite)")


@app.command()
def scan(
    repo: Path = typer.Option(Path("."), help="Project root"),
    config: Path | None = typer.Option(None, help="Config file path (default: .vibeclean.yaml)"),
    json_output: bool = typer.Option(False, "--json", help="Shortcut for --report json"),
    report: str = typer.Option("text", help="text|json|markdown"),
    report_file: Path | None = typer.Option(None, help="Write the json/markdown report to this file"),
    min_severity: str | None = typer.Option(None, help="Minimum reported severity: low|medium|high"),
    fail_on: str | None = typer.Option(None, help="Fail when a finding reaches this severity"),
    max_issues: int | None = typer.Option(None, help="Fail when total issues exceed this number"),
    min_score: int | None = typer.Option(None, help="Fail when the overall score is below this number"),
    ignore: str | None = typer.Option(None, help="Extra comma-separated ignore globs"),
    max_files: int | None = typer.Option(None, help="Maximum number of files to analyze"),
    changed: bool = typer.Option(False, "--changed", help="Only analyze files changed against --base"),
    base: str | None = typer.Option(None, help="Git ref used by --changed"),
    baseline: bool | None = typer.Option(None, "--baseline/--no-baseline", help="Compare against the baseline"),
    baseline_file: str | None = typer.Option(None, help="Baseline snapshot path"),
    write_baseline: bool = typer.Option(False, "--write-baseline", help="Save this run as the new baseline"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_file: Path | None = typer.Option(None, help="Also write logs to this file"),
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)
    repo = repo.resolve()
    report_format = "json" if json_output else report.lower()
    if report_format not in REPORT_FORMATS:
        typer.echo(f"[vibeclean] unknown report format: {report}", err=True)
        raise typer.Exit(code=2)

    audit_config = _load(repo, config).with_overrides(
        ignore=ignore,
        max_files=max_files,
        max_issues=max_issues,
        min_score=min_score,
        severity=min_severity,
        fail_on=fail_on,
        changed_only=True if changed else None,
        changed_base=base,
        baseline=baseline,
        baseline_file=baseline_file,
    )
    result = run_audit(repo, audit_config)
    _emit(result, report_format, report_file)

    if write_baseline:
        path = resolve_baseline_path(repo, audit_config.baseline.file)
        write_baseline_snapshot(path, result.report)
        typer.echo(f"[vibeclean] baseline updated: {path}", err=report_format != "text")

    if result.report.gate_failures:
        if report_format == "text":
            typer.echo("[vibeclean] quality gates failed")
            for failure in result.report.gate_failures:
                typer.echo(f"- {failure}")
        raise typer.Exit(code=1)


@app.command("baseline")
def baseline_command(
    repo: Path = typer.Option(Path("."), help="Project root"),
    config: Path | None = typer.Option(None, help="Config file path (default: .vibeclean.yaml)"),
    baseline_file: str | None = typer.Option(None, help="Baseline snapshot path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_file: Path | None = typer.Option(None, help="Also write logs to this file"),
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)
    repo = repo.resolve()
    audit_config = _load(repo, config).with_overrides(baseline=False, baseline_file=baseline_file)
    result = run_audit(repo, audit_config)
    path = resolve_baseline_path(repo, audit_config.baseline.file)
    snapshot = write_baseline_snapshot(path, result.report)
    typer.echo(f"[vibeclean] baseline written to {path}")
    typer.echo(f"- score: {snapshot.overall_score}")
    typer.echo(f"- issues: {snapshot.total_issues}")


if __name__ == "__main__":
    app()
