from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

SEVERITY_RANK = {"low": 1, "medium": 2, "high": 3}
SEVERITIES = ("low", "medium", "high")


def severity_rank(value: str | None) -> int:
    return SEVERITY_RANK.get((value or "").lower(), SEVERITY_RANK["low"])


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {(_camel(key) if isinstance(key, str) else key): _camelize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_camelize(item) for item in value]
    return value


class Serializable:
    def to_dict(self) -> dict[str, Any]:
        # Field names are camelCased; metrics payloads keep their own keys.
        return _camelize(asdict(self))


@dataclass(slots=True, frozen=True)
class SourceFile:
    relative_path: str
    content: str
    extension: str


@dataclass(slots=True)
class Location(Serializable):
    file: str
    line: int
    snippet: str


@dataclass(slots=True)
class Finding(Serializable):
    severity: str
    message: str
    locations: list[Location] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    packages: list[Any] = field(default_factory=list)


@dataclass(slots=True)
class Category(Serializable):
    id: str
    title: str
    score: int
    severity: str
    total_issues: int
    summary: str
    findings: list[Finding] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.id,
            "title": self.title,
            "score": self.score,
            "severity": self.severity,
            "totalIssues": self.total_issues,
            "summary": self.summary,
            "findings": [item.to_dict() for item in self.findings],
            "metrics": self.metrics,
            "recommendations": list(self.recommendations),
        }
        if self.skipped:
            payload["skipped"] = True
        return payload


@dataclass(slots=True)
class BaselineComparison(Serializable):
    path: str
    missing: bool = False
    baseline_generated_at: str | None = None
    baseline_score: int | None = None
    baseline_total_issues: int | None = None
    current_score: int | None = None
    current_total_issues: int | None = None
    deltas: dict[str, int] = field(default_factory=dict)
    regressions: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Report(Serializable):
    overall_score: int
    total_issues: int
    categories: list[Category] = field(default_factory=list)
    gate_failures: list[str] = field(default_factory=list)
    file_count: int = 0
    overall_message: str = ""
    generated_at: str = ""
    root_dir: str = ""
    warnings: list[str] = field(default_factory=list)
    baseline_comparison: BaselineComparison | None = None

    @property
    def passed_gates(self) -> bool:
        return not self.gate_failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "rootDir": self.root_dir,
            "generatedAt": self.generated_at,
            "fileCount": self.file_count,
            "overallScore": self.overall_score,
            "overallMessage": self.overall_message,
            "totalIssues": self.total_issues,
            "categories": [item.to_dict() for item in self.categories],
            "gateFailures": list(self.gate_failures),
            "passedGates": self.passed_gates,
            "warnings": list(self.warnings),
            "baselineComparison": self.baseline_comparison.to_dict() if self.baseline_comparison else None,
        }


@dataclass(slots=True)
class BaselineSnapshot(Serializable):
    overall_score: int
    total_issues: int
    finding_counts: dict[str, int] = field(default_factory=lambda: {"low": 0, "medium": 0, "high": 0})
    categories: dict[str, dict[str, Any]] = field(default_factory=dict)
    version: int = 1
    generated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "generatedAt": self.generated_at,
            "overallScore": self.overall_score,
            "totalIssues": self.total_issues,
            "findingCounts": dict(self.finding_counts),
            "categories": {
                key: {
                    "score": value.get("score", 0),
                    "totalIssues": value.get("totalIssues", 0),
                    "severity": value.get("severity", "low"),
                }
                for key, value in self.categories.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BaselineSnapshot:
        counts = data.get("findingCounts") or {}
        categories = data.get("categories") or {}
        return cls(
            overall_score=int(data.get("overallScore") or 0),
            total_issues=int(data.get("totalIssues") or 0),
            finding_counts={key: int(counts.get(key) or 0) for key in SEVERITIES},
            categories={
                str(key): {
                    "score": int(value.get("score") or 0),
                    "totalIssues": int(value.get("totalIssues") or 0),
                    "severity": str(value.get("severity") or "low"),
                }
                for key, value in categories.items()
                if isinstance(value, dict)
            },
            version=int(data.get("version") or 1),
            generated_at=data.get("generatedAt"),
        )
