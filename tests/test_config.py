from __future__ import annotations

import logging
from pathlib import Path

import pytest

from vibeclean.config import AuditConfig, ConfigError, config_path_for, ensure_config, load_config
from vibeclean.logging import configure_logging


def test_defaults_without_config_file(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.max_files == 500
    assert config.max_file_size_kb == 100
    assert config.severity == "low"
    assert config.baseline.enabled is False
    assert config.baseline.file == ".vibeclean-baseline.json"
    assert config.deadcode.entrypoint_names == ["index", "main", "app"]
    assert all(config.rules.values())


def test_yaml_values_are_loaded(tmp_path: Path) -> None:
    (tmp_path / ".vibeclean.yaml").write_text(
        "max_files: 20\n"
        "ignore: ['legacy/**']\n"
        "severity: MEDIUM\n"
        "fail_on: high\n"
        "min_score: 150\n"
        "rules:\n"
        "  tsquality: false\n"
        "baseline: true\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.max_files == 20
    assert config.ignore == ["legacy/**"]
    assert config.severity == "medium"
    assert config.fail_on == "high"
    assert config.min_score == 100
    assert config.rule_enabled("tsquality") is False
    assert config.rule_enabled("naming") is True
    assert config.baseline.enabled is True


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    bad = tmp_path / ".vibeclean.yaml"
    bad.write_text("rules: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)

    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_overrides_ignore_invalid_values() -> None:
    base = AuditConfig(ignore=["a/**"])

    updated = base.with_overrides(
        ignore="b/**, c/**",
        max_files=0,
        min_score=-5,
        severity="critical",
        fail_on="medium",
        baseline=True,
        baseline_file="ci/base.json",
    )

    assert updated.ignore == ["a/**", "b/**", "c/**"]
    assert updated.max_files == 500
    assert updated.min_score == 0
    assert updated.severity == "low"
    assert updated.fail_on == "medium"
    assert updated.baseline.enabled is True
    assert updated.baseline.file == "ci/base.json"
    assert base.ignore == ["a/**"]
    assert base.baseline.enabled is False


def test_ensure_config_respects_force(tmp_path: Path) -> None:
    path = config_path_for(tmp_path)

    assert ensure_config(path) is True
    path.write_text("max_files: 3\n", encoding="utf-8")
    assert ensure_config(path) is False
    assert load_config(tmp_path).max_files == 3
    assert ensure_config(path, force=True) is True
    assert load_config(tmp_path).max_files == 500


def test_configure_logging_does_not_stack_handlers(tmp_path: Path) -> None:
    configure_logging()
    logger = configure_logging(verbose=True, log_file=tmp_path / "run.log")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    logger = configure_logging()
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1


def test_sections_with_the_wrong_shape_raise_config_error(tmp_path: Path) -> None:
    config_file = tmp_path / ".vibeclean.yaml"
    for body in ("rules:\n  - naming\n", "baseline: x\n", "deadcode:\n  - index\n", "ignore: 5\n"):
        config_file.write_text(body, encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(tmp_path)


def test_scalar_entrypoint_lists_are_split_not_iterated() -> None:
    config = AuditConfig.from_dict({"deadcode": {"entrypoint_names": "server", "entrypoint_dirs": "api, jobs"}})

    assert config.deadcode.entrypoint_names == ["server"]
    assert config.deadcode.entrypoint_dirs == ["api", "jobs"]
