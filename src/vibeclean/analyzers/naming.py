from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field

from vibeclean.analyzers.common import AnalyzerContext, score_from_ratio, severity_from_score
from vibeclean.analyzers.syntax import ParseResult, SyntaxTree, collect_identifiers, parse_source
from vibeclean.schemas import Category, Finding, SourceFile
from vibeclean.utils import round_half_up

# Priority order matters: the first matching style wins.
IDENTIFIER_STYLES = (
    ("camelCase", re.compile(r"^[a-z][a-zA-Z0-9]*$")),
    ("snake_case", re.compile(r"^[a-z][a-z0-9]*(?:_[a-z0-9]+)+$")),
    ("PascalCase", re.compile(r"^[A-Z][a-zA-Z0-9]*$")),
    ("SCREAMING_SNAKE", re.compile(r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*$")),
)

FILE_STYLES = (
    ("kebab-case", re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")),
    ("snake_case", re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")),
    ("camelCase", re.compile(r"^[a-z][a-zA-Z0-9]*$")),
    ("PascalCase", re.compile(r"^[A-Z][a-zA-Z0-9]*$")),
)

COMPONENT_EXTENSIONS = {".jsx", ".tsx", ".vue", ".svelte"}

EXPORTED_COMPONENT_RE = re.compile(r"export\s+(?:default\s+)?(?:function|class|const)\s+([A-Z][A-Za-z0-9_]*)")

MAX_LISTED_FILES = 15

FILE_STYLE_ORDER = [name for name, _ in FILE_STYLES] + ["other"]


@dataclass(slots=True)
class DominantStyle:
    name: str | None
    total: int
    ratio: float
    ranking: list[tuple[str, int]] = field(default_factory=list)


def style_of(value: str, styles: tuple[tuple[str, re.Pattern[str]], ...]) -> str | None:
    for name, pattern in styles:
        if pattern.match(value):
            return name
    return None


def dominant_from_counts(counts: dict[str, int]) -> DominantStyle:
    """Highest count wins; ties go to the earlier style in priority order."""
    order = [name for name, _ in IDENTIFIER_STYLES]
    ranking = sorted(counts.items(), key=lambda item: (-item[1], order.index(item[0]) if item[0] in order else len(order)))
    total = sum(counts.values())
    if not total:
        return DominantStyle(name=None, total=0, ratio=0.0, ranking=ranking)
    name, count = ranking[0]
    return DominantStyle(name=name, total=total, ratio=count / total, ranking=ranking)


def normalize_name(value: str) -> str:
    return value.replace("-", "").replace("_", "").lower()


def _exported_components_from_tree(tree: SyntaxTree) -> list[str]:
    names: dict[str, None] = {}
    for node in tree.nodes_of_type("export_statement"):
        declaration = node.child_by_field_name("declaration")
        if declaration is None:
            continue
        candidates = []
        if declaration.type in {"function_declaration", "generator_function_declaration", "class_declaration"}:
            candidates.append(declaration.child_by_field_name("name"))
        elif declaration.type in {"lexical_declaration", "variable_declaration"}:
            for declarator in declaration.named_children:
                if declarator.type == "variable_declarator":
                    candidates.append(declarator.child_by_field_name("name"))
        for candidate in candidates:
            if candidate is None or candidate.type != "identifier":
                continue
            name = tree.text(candidate)
            if name[:1].isupper():
                names.setdefault(name, None)
    return list(names)


def extract_exported_component_names(
    content: str, extension: str | None = None, parsed: ParseResult | None = None
) -> list[str]:
    parsed = parsed or parse_source(content, extension)
    if parsed.tree is None:
        return list(dict.fromkeys(match.group(1) for match in EXPORTED_COMPONENT_RE.finditer(content)))
    return _exported_components_from_tree(parsed.tree)


def _basename(file: SourceFile) -> str:
    name = posixpath.basename(file.relative_path)
    if file.extension and name.lower().endswith(file.extension):
        return name[: -len(file.extension)]
    return name


def analyze_naming(files: list[SourceFile], context: AnalyzerContext | None = None) -> Category:
    identifier_counts = {name: 0 for name, _ in IDENTIFIER_STYLES}
    files_by_style: dict[str, set[str]] = {name: set() for name, _ in IDENTIFIER_STYLES}
    directory_styles: dict[str, dict[str, int]] = {}
    component_mismatches: list[dict[str, str]] = []
    fallback_files: list[str] = []

    for file in files:
        parsed = parse_source(file.content, file.extension)
        if parsed.tree is None:
            fallback_files.append(file.relative_path)
        identifiers = collect_identifiers(file.content, parsed=parsed)
        components = extract_exported_component_names(file.content, parsed=parsed)

        for identifier in identifiers:
            style = style_of(identifier, IDENTIFIER_STYLES)
            if style is None:
                continue
            identifier_counts[style] += 1
            files_by_style[style].add(file.relative_path)

        base_name = _basename(file)
        file_style = style_of(base_name, FILE_STYLES) or "other"
        directory = posixpath.dirname(file.relative_path) or "."
        bucket = directory_styles.setdefault(directory, {})
        bucket[file_style] = bucket.get(file_style, 0) + 1

        if file.extension in COMPONENT_EXTENSIONS:
            for component in components:
                if normalize_name(component) != normalize_name(base_name):
                    component_mismatches.append({"file": file.relative_path, "component": component})

    dominant = dominant_from_counts(identifier_counts)
    style_breakdown = [
        {
            "style": style,
            "count": count,
            "percent": round_half_up(count / dominant.total * 100) if dominant.total else 0,
            "files": len(files_by_style[style]),
        }
        for style, count in dominant.ranking
    ]

    minority_files: set[str] = set()
    if dominant.name:
        for style, style_files in files_by_style.items():
            if style != dominant.name:
                minority_files.update(style_files)
    minority = sorted(minority_files)

    mixed_directories = [
        {
            "directory": directory,
            "styles": [
                f"{style} ({count})"
                for style, count in sorted(styles.items(), key=lambda item: FILE_STYLE_ORDER.index(item[0]))
            ],
        }
        for directory, styles in sorted(directory_styles.items())
        if len(styles) > 1
    ]

    imbalance = 1 - dominant.ratio if dominant.total else 0.0
    issue_count = len(minority) + len(mixed_directories) + len(component_mismatches)
    score = score_from_ratio(imbalance + issue_count / 120)

    findings: list[Finding] = []
    if minority and dominant.name:
        findings.append(
            Finding(
                severity="high" if score >= 7 else "medium",
                message=f"{len(minority)} files use a minority naming convention instead of {dominant.name}.",
                files=minority[:MAX_LISTED_FILES],
            )
        )
    if mixed_directories:
        findings.append(
            Finding(
                severity="medium",
                message=f"{len(mixed_directories)} directories mix filename conventions.",
                files=[item["directory"] for item in mixed_directories][:MAX_LISTED_FILES],
            )
        )
    if component_mismatches:
        findings.append(
            Finding(
                severity="medium",
                message=f"{len(component_mismatches)} components do not match filename conventions.",
                files=[item["file"] for item in component_mismatches][:MAX_LISTED_FILES],
            )
        )

    if dominant.name and dominant.total:
        share = round_half_up(dominant.ratio * 100)
        if issue_count:
            summary = f"{dominant.name} is dominant ({share}%), but naming conventions are mixed."
        else:
            summary = f"{dominant.name} is dominant ({share}%) and naming looks consistent."
    else:
        summary = "Not enough identifiers found to determine a dominant naming convention."

    return Category(
        id="naming",
        title="NAMING INCONSISTENCY",
        score=score,
        severity=severity_from_score(score),
        total_issues=issue_count,
        summary=summary,
        findings=findings,
        metrics={
            "identifierStyles": style_breakdown,
            "dominantIdentifierStyle": dominant.name,
            "dominantShare": round(dominant.ratio, 4),
            "minorityFiles": minority[:50],
            "mixedDirectories": mixed_directories[:25],
            "mixedDirectoryCount": len(mixed_directories),
            "componentMismatches": component_mismatches[:25],
            "componentMismatchCount": len(component_mismatches),
            "regexFallbackFiles": fallback_files,
        },
        recommendations=[
            f"Standardize function and variable names on {dominant.name}."
            if dominant.name
            else "Pick one naming convention and enforce it consistently.",
            "Keep one filename style per directory (kebab-case recommended for files).",
            "Make component names match their filenames.",
        ],
    )
