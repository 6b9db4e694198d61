import json
from pathlib import Path

from typer.testing import CliRunner

from vibeclean.cli import app

runner = CliRunner()


def test_init_writes_config_once(tmp_path: Path) -> None:
    first = runner.invoke(app, ["init", "--repo", str(tmp_path)])
    second = runner.invoke(app, ["init", "--repo", str(tmp_path)])

    assert first.exit_code == 0
    assert "wrote config" in first.stdout
    assert (tmp_path / ".vibeclean.yaml").exists()
    assert second.exit_code == 0
    assert "already exists" in second.stdout


def test_scan_json_output(sample_repo: Path) -> None:
    result = runner.invoke(app, ["scan", "--repo", str(sample_repo), "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["fileCount"] == 5
    assert payload["passedGates"] is True
    assert len(payload["categories"]) == 8


def test_scan_text_summary(sample_repo: Path) -> None:
    result = runner.invoke(app, ["scan", "--repo", str(sample_repo)])

    assert result.exit_code == 0
    assert result.stdout.startswith("[vibeclean] score=")
    assert "[vibeclean] deadcode:" in result.stdout


def test_score_gate_exits_non_zero(sample_repo: Path) -> None:
    result = runner.invoke(app, ["scan", "--repo", str(sample_repo), "--min-score", "100"])

    assert result.exit_code == 1
    assert "quality gates failed" in result.stdout
    assert "Score gate failed" in result.stdout


def test_baseline_round_trip_passes(sample_repo: Path) -> None:
    written = runner.invoke(app, ["baseline", "--repo", str(sample_repo)])
    assert written.exit_code == 0
    assert (sample_repo / ".vibeclean-baseline.json").exists()

    result = runner.invoke(app, ["scan", "--repo", str(sample_repo), "--baseline"])

    assert result.exit_code == 0
    assert "baseline score" in result.stdout


def test_markdown_report_to_file(sample_repo: Path, tmp_path: Path) -> None:
    output = tmp_path / "out" / "report.md"

    result = runner.invoke(
        app,
        ["scan", "--repo", str(sample_repo), "--report", "markdown", "--report-file", str(output)],
    )

    assert result.exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert text.startswith("# Vibeclean PR Report")
    assert "## Category Summary" in text


def test_unknown_report_format(sample_repo: Path) -> None:
    result = runner.invoke(app, ["scan", "--repo", str(sample_repo), "--report", "xml"])

    assert result.exit_code == 2


def test_invalid_config_exits_with_usage_error(sample_repo: Path) -> None:
    (sample_repo / ".vibeclean.yaml").write_text("rules: [oops\n", encoding="utf-8")

    result = runner.invoke(app, ["scan", "--repo", str(sample_repo)])

    assert result.exit_code == 2


def test_malformed_rules_section_exits_with_usage_error(sample_repo: Path) -> None:
    (sample_repo / ".vibeclean.yaml").write_text("rules:\n  - naming\n", encoding="utf-8")

    result = runner.invoke(app, ["scan", "--repo", str(sample_repo)])

    assert result.exit_code == 2
    assert not isinstance(result.exception, AttributeError)


def test_log_file_receives_debug_output(sample_repo: Path, tmp_path: Path) -> None:
    log_path = tmp_path / "run.log"

    result = runner.invoke(app, ["scan", "--repo", str(sample_repo), "--verbose", "--log-file", str(log_path)])

    assert result.exit_code == 0
    assert log_path.exists()
    assert "scored" in log_path.read_text(encoding="utf-8")
