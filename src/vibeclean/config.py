from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from vibeclean.schemas import SEVERITIES

CONFIG_FILENAME = ".vibeclean.yaml"

DEFAULT_CONFIG = """max_files: 500
max_file_size_kb: 100
ignore: []
severity: low
changed_only: false
changed_base: HEAD
fail_on: null
max_issues: null
min_score: null
baseline:
  enabled: false
  file: .vibeclean-baseline.json
  fail_on_regression: true
rules:
  naming: true
  patterns: true
  leftovers: true
  security: true
  dependencies: true
  deadcode: true
  errorhandling: true
  tsquality: true
deadcode:
  source_root: auto
  entrypoint_names:
    - index
    - main
    - app
  entrypoint_dirs:
    - pages
    - routes
  min_code_lines: 5
"""

RULE_NAMES = (
    "naming",
    "patterns",
    "leftovers",
    "security",
    "dependencies",
    "deadcode",
    "errorhandling",
    "tsquality",
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(slots=True)
class BaselineConfig:
    enabled: bool = False
    file: str = ".vibeclean-baseline.json"
    fail_on_regression: bool = True


@dataclass(slots=True)
class DeadCodeConfig:
    source_root: str = "auto"
    entrypoint_names: list[str] = field(default_factory=lambda: ["index", "main", "app"])
    entrypoint_dirs: list[str] = field(default_factory=lambda: ["pages", "routes"])
    min_code_lines: int = 5


@dataclass(slots=True)
class AuditConfig:
    max_files: int = 500
    max_file_size_kb: int = 100
    ignore: list[str] = field(default_factory=list)
    severity: str = "low"
    changed_only: bool = False
    changed_base: str = "HEAD"
    fail_on: str | None = None
    max_issues: int | None = None
    min_score: int | None = None
    baseline: BaselineConfig = field(default_factory=BaselineConfig)
    rules: dict[str, bool] = field(default_factory=lambda: {name: True for name in RULE_NAMES})
    deadcode: DeadCodeConfig = field(default_factory=DeadCodeConfig)

    @classmethod
    def default(cls) -> AuditConfig:
        data = yaml.safe_load(DEFAULT_CONFIG)
        return cls.from_dict(data)

    @classmethod
    def from_path(cls, path: Path) -> AuditConfig:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path.name} must contain a mapping at the root")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditConfig:
        baseline_data = data.get("baseline") or {}
        if isinstance(baseline_data, bool):
            baseline_data = {"enabled": baseline_data}
        baseline_data = _section(baseline_data, "baseline")
        baseline = BaselineConfig(
            enabled=bool(baseline_data.get("enabled", False)),
            file=str(baseline_data.get("file") or ".vibeclean-baseline.json"),
            fail_on_regression=bool(baseline_data.get("fail_on_regression", True)),
        )

        rules = {name: True for name in RULE_NAMES}
        for name, enabled in _section(data.get("rules") or {}, "rules").items():
            rules[str(name).lower()] = bool(enabled)

        deadcode_data = _section(data.get("deadcode") or {}, "deadcode")
        deadcode = DeadCodeConfig(
            source_root=str(deadcode_data.get("source_root", "auto")),
            entrypoint_names=_as_list(deadcode_data.get("entrypoint_names", ["index", "main", "app"])),
            entrypoint_dirs=_as_list(deadcode_data.get("entrypoint_dirs", ["pages", "routes"])),
            min_code_lines=_positive_int(deadcode_data.get("min_code_lines"), 5),
        )

        severity = str(data.get("severity") or "low").lower()
        return cls(
            max_files=_positive_int(data.get("max_files"), 500),
            max_file_size_kb=_positive_int(data.get("max_file_size_kb"), 100),
            ignore=_as_list(data.get("ignore")),
            severity=severity if severity in SEVERITIES else "low",
            changed_only=bool(data.get("changed_only", False)),
            changed_base=str(data.get("changed_base") or "HEAD"),
            fail_on=_severity_or_none(data.get("fail_on")),
            max_issues=_non_negative_or_none(data.get("max_issues")),
            min_score=_score_or_none(data.get("min_score")),
            baseline=baseline,
            rules=rules,
            deadcode=deadcode,
        )

    def with_overrides(self, **overrides: Any) -> AuditConfig:
        """Merge CLI-style overrides; invalid values leave the current setting untouched."""
        updated = replace(self, baseline=replace(self.baseline), deadcode=replace(self.deadcode), rules=dict(self.rules))

        ignore = overrides.get("ignore")
        if isinstance(ignore, str):
            ignore = [item.strip() for item in ignore.split(",") if item.strip()]
        if ignore:
            updated.ignore = [*updated.ignore, *ignore]

        max_files = _positive_int(overrides.get("max_files"), None)
        if max_files is not None:
            updated.max_files = max_files

        if overrides.get("max_issues") is not None:
            max_issues = _non_negative_or_none(overrides["max_issues"])
            if max_issues is not None:
                updated.max_issues = max_issues

        if overrides.get("min_score") is not None:
            min_score = _score_or_none(overrides["min_score"])
            if min_score is not None:
                updated.min_score = min_score

        severity = overrides.get("severity")
        if isinstance(severity, str) and severity.lower() in SEVERITIES:
            updated.severity = severity.lower()

        if "fail_on" in overrides and overrides["fail_on"] is not None:
            updated.fail_on = _severity_or_none(overrides["fail_on"])

        if overrides.get("changed_only") is not None:
            updated.changed_only = bool(overrides["changed_only"])
        if overrides.get("changed_base"):
            updated.changed_base = str(overrides["changed_base"]).strip() or "HEAD"

        if overrides.get("baseline") is not None:
            updated.baseline.enabled = bool(overrides["baseline"])
        if overrides.get("baseline_file"):
            updated.baseline.file = str(overrides["baseline_file"])
        if overrides.get("fail_on_regression") is not None:
            updated.baseline.fail_on_regression = bool(overrides["fail_on_regression"])

        return updated

    def rule_enabled(self, name: str) -> bool:
        return self.rules.get(name, True)


def _section(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"expected a list or comma-separated string, got {type(value).__name__}")
    return [str(item) for item in value if str(item).strip()]


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _positive_int(value: Any, fallback: int | None) -> int | None:
    number = _to_int(value)
    if number is None or number <= 0:
        return fallback
    return number


def _non_negative_or_none(value: Any) -> int | None:
    number = _to_int(value)
    if number is None or number < 0:
        return None
    return number


def _score_or_none(value: Any) -> int | None:
    number = _to_int(value)
    if number is None:
        return None
    return max(0, min(100, number))


def _severity_or_none(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    return lowered if lowered in SEVERITIES else None


def config_path_for(root: Path, path: Path | None = None) -> Path:
    if path is None:
        return root / CONFIG_FILENAME
    return path if path.is_absolute() else root / path


def load_config(root: Path, path: Path | None = None) -> AuditConfig:
    config_file = config_path_for(root, path)
    if not config_file.exists():
        return AuditConfig.default()
    return AuditConfig.from_path(config_file)


def ensure_config(path: Path, force: bool = False) -> bool:
    if path.exists() and not force:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    return True
