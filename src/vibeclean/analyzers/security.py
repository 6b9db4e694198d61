from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass

from vibeclean.analyzers.common import MAX_LOCATIONS, AnalyzerContext, score_from_ratio, severity_from_score
from vibeclean.schemas import Category, Finding, Location, SourceFile
from vibeclean.utils import line_number_at, line_snippet

ENTROPY_THRESHOLD = 3.8


@dataclass(frozen=True, slots=True)
class SecretPattern:
    id: str
    severity: str
    label: str
    regex: re.Pattern[str]


SECRET_PATTERNS = (
    SecretPattern("privateKey", "high", "private key material", re.compile(r"-----BEGIN(?: [A-Z]+)? PRIVATE KEY-----")),
    SecretPattern("awsAccessKey", "high", "AWS access keys", re.compile(r"\bAKIA[0-9A-Z]{16}\b")),
    SecretPattern("npmToken", "high", "npm tokens", re.compile(r"\bnpm_[A-Za-z0-9]{36}\b")),
    SecretPattern("githubPat", "high", "GitHub personal access tokens", re.compile(r"\bghp_[A-Za-z0-9]{36}\b")),
    SecretPattern(
        "dbCredentialsUrl",
        "high",
        "database URLs with inline credentials",
        re.compile(r"\b(?:postgres(?:ql)?|mysql|mongodb(?:\+srv)?)://[^:\s]+:[^@\s]+@", re.IGNORECASE),
    ),
    SecretPattern(
        "slackWebhook",
        "high",
        "Slack webhook URLs",
        re.compile(r"https://hooks\.slack\.com/services/[A-Za-z0-9/_-]+"),
    ),
    SecretPattern(
        "jwtLike",
        "medium",
        "JWT-like tokens",
        re.compile(r"\beyJ[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\b"),
    ),
    SecretPattern(
        "genericSecretAssignment",
        "medium",
        "hardcoded credential assignments",
        re.compile(r"""\b(?:api[_-]?key|secret|token|password|passwd)\b\s*[:=]\s*["'`][^"'`\n]{8,}["'`]""", re.IGNORECASE),
    ),
)

PLACEHOLDER_RE = re.compile(r"\b(example|dummy|replace_me|your-|test|localhost)\b", re.IGNORECASE)
QUOTED_TOKEN_RE = re.compile(r"""["'`]([A-Za-z0-9+/=_-]{24,})["'`]""")
BENIGN_TOKEN_RE = re.compile(r"^(?:[a-f0-9]{32,}|[0-9a-f]{8}-[0-9a-f-]{27,}|[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)$")
DETECTOR_LINE_RE = re.compile(r"^const\s+[A-Z_]+(?:_RE|_PATTERN)\s*=")
DETECTOR_OPEN_RE = re.compile(r"^const\s+[A-Z_]+(?:_RE|_PATTERN)\s*=\s*$")
REGEX_LITERAL_TAIL_RE = re.compile(r"/.+/[gimsuy]*;?$")
REGEX_LITERAL_LINE_RE = re.compile(r"^/.+/[gimsuy]*;?$")


def shannon_entropy(value: str) -> float:
    if not value:
        return 0.0
    length = len(value)
    return -sum((count / length) * math.log2(count / length) for count in Counter(value).values())


def is_detector_definition_line(lines: list[str], line: int) -> bool:
    """Lines that define secret-detection regexes are not secrets themselves."""
    current = lines[line - 1].strip() if 0 < line <= len(lines) else ""
    previous = lines[line - 2].strip() if 1 < line <= len(lines) + 1 else ""
    if DETECTOR_LINE_RE.match(current) and REGEX_LITERAL_TAIL_RE.search(current):
        return True
    return bool(REGEX_LITERAL_LINE_RE.match(current) and DETECTOR_OPEN_RE.match(previous))


class _Hits:
    def __init__(self, capacity: int) -> None:
        self.count = 0
        self.capacity = capacity
        self.locations: list[Location] = []
        self._seen: set[tuple[str, int]] = set()

    def add(self, file: SourceFile, line: int) -> None:
        self.count += 1
        if len(self.locations) >= self.capacity or (file.relative_path, line) in self._seen:
            return
        self._seen.add((file.relative_path, line))
        self.locations.append(Location(file=file.relative_path, line=line, snippet=line_snippet(file.content, line)))


def _scan_pattern(file: SourceFile, lines: list[str], pattern: SecretPattern, hits: _Hits) -> int:
    before = hits.count
    for match in pattern.regex.finditer(file.content):
        line = line_number_at(file.content, match.start())
        if is_detector_definition_line(lines, line):
            continue
        if pattern.id == "genericSecretAssignment" and PLACEHOLDER_RE.search(match.group(0)):
            continue
        hits.add(file, line)
    return hits.count - before


def _scan_entropy(file: SourceFile, lines: list[str], hits: _Hits) -> int:
    before = hits.count
    for match in QUOTED_TOKEN_RE.finditer(file.content):
        candidate = match.group(1)
        if BENIGN_TOKEN_RE.match(candidate) or shannon_entropy(candidate) < ENTROPY_THRESHOLD:
            continue
        line = line_number_at(file.content, match.start())
        if is_detector_definition_line(lines, line):
            continue
        hits.add(file, line)
    return hits.count - before


def analyze_security(files: list[SourceFile], context: AnalyzerContext | None = None) -> Category:
    findings: list[Finding] = []
    high_count = 0
    medium_count = 0
    flagged_files: set[str] = set()
    split_lines = {file.relative_path: file.content.split("\n") for file in files}

    for pattern in SECRET_PATTERNS:
        hits = _Hits(MAX_LOCATIONS)
        for file in files:
            if _scan_pattern(file, split_lines[file.relative_path], pattern, hits):
                flagged_files.add(file.relative_path)
        if not hits.count:
            continue
        if pattern.severity == "high":
            high_count += hits.count
        else:
            medium_count += hits.count
        findings.append(
            Finding(
                severity=pattern.severity,
                message=f"{hits.count} potential {pattern.label} detected.",
                locations=hits.locations,
            )
        )

    entropy_hits = _Hits(MAX_LOCATIONS)
    for file in files:
        if _scan_entropy(file, split_lines[file.relative_path], entropy_hits):
            flagged_files.add(file.relative_path)
    if entropy_hits.count:
        medium_count += entropy_hits.count
        findings.append(
            Finding(
                severity="medium",
                message=f"{entropy_hits.count} high-entropy hardcoded strings found (review for secrets).",
                locations=entropy_hits.locations,
            )
        )

    total = high_count + medium_count
    score = score_from_ratio((high_count * 2 + medium_count) / max(len(files) * 0.8, 1))

    return Category(
        id="security",
        title="SECURITY EXPOSURE",
        score=score,
        severity=severity_from_score(score),
        total_issues=total,
        summary=(
            f"{total} potential secret exposure signals detected."
            if total
            else "No obvious hardcoded secret exposure detected."
        ),
        findings=findings,
        metrics={
            "highSeveritySignals": high_count,
            "mediumSeveritySignals": medium_count,
            "entropySignals": entropy_hits.count,
            "filesWithSignals": len(flagged_files),
        },
        recommendations=[
            "Move secrets into environment variables or secret managers.",
            "Rotate exposed credentials immediately and revoke compromised tokens.",
            "Use runtime configuration injection instead of hardcoding credentials.",
        ],
    )
