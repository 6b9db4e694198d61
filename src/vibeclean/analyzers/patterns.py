from __future__ import annotations

import re

from vibeclean.analyzers.common import (
    AnalyzerContext,
    collect_import_specifiers,
    count_matches,
    package_root,
    score_from_ratio,
    severity_from_score,
)
from vibeclean.analyzers.syntax import SyntaxTree, parse_source
from vibeclean.schemas import Category, Finding, SourceFile

HTTP_CLIENT_PACKAGES = {"axios", "got", "node-fetch", "ky", "superagent", "undici"}
HTTP_CLIENT_IDENTIFIERS = {"axios", "got", "ky", "superagent"}
FETCH_POLYFILLS = {"node-fetch", "undici"}

STATE_LIBS = ("redux", "@reduxjs/toolkit", "zustand", "jotai", "recoil", "mobx")
DATA_FETCHING_LIBS = ("swr", "react-query", "@tanstack/react-query", "@trpc/client", "@trpc/react-query")
STYLING_LIBS = ("styled-components", "@emotion/react", "@emotion/styled", "tailwindcss")

FETCH_CALL_RE = re.compile(r"\bfetch\s*\(")
AWAIT_RE = re.compile(r"\bawait\b")
THEN_RE = re.compile(r"\.then\s*\(")
ERROR_FIRST_CALLBACK_RE = re.compile(r"\bfunction\s*\([^)]*(?:err|error)[^)]*\)")
IMPORT_KEYWORD_RE = re.compile(r"\bimport\s+")
REQUIRE_KEYWORD_RE = re.compile(r"\brequire\s*\(")
IMPORT_LINE_RE = re.compile(r"import\s+[^;\n]+")
IMPORT_FROM_RE = re.compile(r"""from\s+["'`]([^"'`]+)["'`]""")
NAMED_CLAUSE_RE = re.compile(r"\{[^}]+\}")
DEFAULT_CLAUSE_RE = re.compile(r"^import\s+[\w$]+\s+from")

STATE_HOOKS = (
    ("useState", re.compile(r"\buseState\s*\(")),
    ("useReducer", re.compile(r"\buseReducer\s*\(")),
    ("context", re.compile(r"\b(?:createContext|useContext)\s*\(")),
)
STYLING_MARKERS = (
    ("inline-styles", re.compile(r"style\s*=\s*\{\{")),
    ("css-modules", re.compile(r"""\.module\.(css|scss|sass|less)["'`]""")),
    ("tailwind-utility-classes", re.compile(r"""class(Name)?\s*=\s*["'`][^"'`]*(?:text-|bg-|flex|grid|px-|py-|mx-|my-)""")),
)

Usage = dict[str, set[str]]


def _add_usage(usage: Usage, key: str, path: str) -> None:
    usage.setdefault(key, set()).add(path)


def _dominant_key(usage: Usage) -> str | None:
    if not usage:
        return None
    return sorted(usage, key=lambda key: -len(usage[key]))[0]


def _http_calls_from_tree(tree: SyntaxTree) -> set[str]:
    used: set[str] = set()
    for node in tree.nodes_of_type("call_expression"):
        callee = node.child_by_field_name("function")
        if callee is None:
            continue
        if callee.type == "identifier":
            name = tree.text(callee)
            if name == "fetch" or name in HTTP_CLIENT_IDENTIFIERS:
                used.add(name)
        elif callee.type == "member_expression":
            target = callee.child_by_field_name("object")
            if target is None or target.type != "identifier":
                continue
            name = tree.text(target)
            if name in HTTP_CLIENT_IDENTIFIERS or name == "undici":
                used.add(name)
    return used


def detect_http_calls(content: str, extension: str | None = None) -> set[str]:
    parsed = parse_source(content, extension)
    if parsed.tree is None:
        return {"fetch"} if FETCH_CALL_RE.search(content) else set()
    return _http_calls_from_tree(parsed.tree)


def mixed_import_styles(content: str) -> list[str]:
    """Libraries imported with more than one clause style within one file."""
    styles: dict[str, set[str]] = {}
    for line in IMPORT_LINE_RE.findall(content):
        source = IMPORT_FROM_RE.search(line)
        if not source:
            continue
        if NAMED_CLAUSE_RE.search(line):
            style = "named"
        elif DEFAULT_CLAUSE_RE.match(line):
            style = "default"
        else:
            style = "other"
        styles.setdefault(source.group(1), set()).add(style)
    return [lib for lib, found in styles.items() if len(found) > 1]


def _all_files(usage: Usage, limit: int = 20) -> list[str]:
    paths: dict[str, None] = {}
    for files in usage.values():
        for path in sorted(files):
            paths.setdefault(path, None)
    return list(paths)[:limit]


def analyze_patterns(files: list[SourceFile], context: AnalyzerContext | None = None) -> Category:
    context = context or AnalyzerContext()
    http_usage: Usage = {}
    state_usage: Usage = {}
    data_fetching_usage: Usage = {}
    styling_usage: Usage = {}

    async_await_ops = 0
    then_chains = 0
    callback_style = 0
    files_using_import = 0
    files_using_require = 0
    mixed_libs: dict[str, None] = {}

    for file in files:
        content = file.content
        path = file.relative_path
        imported: set[str] = set()

        for spec in collect_import_specifiers(content):
            pkg = package_root(spec)
            if not pkg:
                continue
            imported.add(pkg)
            if pkg in HTTP_CLIENT_PACKAGES:
                _add_usage(http_usage, pkg, path)
            if pkg in STATE_LIBS:
                _add_usage(state_usage, pkg, path)
            if pkg in DATA_FETCHING_LIBS:
                _add_usage(data_fetching_usage, pkg, path)
            if pkg in STYLING_LIBS:
                _add_usage(styling_usage, pkg, path)

        polyfilled = bool(imported & FETCH_POLYFILLS)
        for client in sorted(detect_http_calls(content, file.extension)):
            if client == "fetch" and polyfilled:
                continue
            _add_usage(http_usage, client, path)

        for name, pattern in STATE_HOOKS:
            if pattern.search(content):
                _add_usage(state_usage, name, path)
        if FETCH_CALL_RE.search(content):
            _add_usage(data_fetching_usage, "raw-fetch", path)
        for name, pattern in STYLING_MARKERS:
            if pattern.search(content):
                _add_usage(styling_usage, name, path)

        async_await_ops += count_matches(content, AWAIT_RE)
        then_chains += count_matches(content, THEN_RE)
        callback_style += count_matches(content, ERROR_FIRST_CALLBACK_RE)
        if IMPORT_KEYWORD_RE.search(content):
            files_using_import += 1
        if REQUIRE_KEYWORD_RE.search(content):
            files_using_require += 1
        for lib in mixed_import_styles(content):
            mixed_libs.setdefault(lib, None)

    package_json = context.package_json or {}
    deps = {**(package_json.get("dependencies") or {}), **(package_json.get("devDependencies") or {})}
    # Installed but unused libraries still count as a competing approach.
    for lib in STATE_LIBS:
        if lib in deps:
            state_usage.setdefault(lib, set())
    for lib in STYLING_LIBS:
        if lib in deps:
            styling_usage.setdefault(lib, set())

    mixed_async = then_chains > 0 and async_await_ops > 0
    mixed_modules = files_using_import > 0 and files_using_require > 0

    findings: list[Finding] = []
    if len(http_usage) > 1:
        detail = ", ".join(f"{name} ({len(paths)} files)" for name, paths in http_usage.items())
        findings.append(
            Finding(severity="high", message=f"Multiple HTTP clients detected: {detail}", files=_all_files(http_usage))
        )
    if len(state_usage) > 2:
        findings.append(
            Finding(
                severity="medium",
                message=f"State management patterns are mixed across {len(state_usage)} approaches.",
                files=_all_files(state_usage),
            )
        )
    if mixed_async:
        findings.append(
            Finding(
                severity="medium",
                message=f"Mixed async styles: async/await ({async_await_ops}) and .then() chains ({then_chains}).",
            )
        )
    if mixed_modules:
        findings.append(
            Finding(
                severity="medium",
                message=(
                    f"Mixed module systems: ES modules in {files_using_import} files "
                    f"and require() in {files_using_require} files."
                ),
            )
        )
    if mixed_libs:
        findings.append(
            Finding(
                severity="low",
                message=f"{len(mixed_libs)} libraries are imported with both default and named styles.",
            )
        )
    if len(styling_usage) > 2:
        findings.append(
            Finding(severity="medium", message=f"Multiple styling approaches detected ({len(styling_usage)} patterns).")
        )
    if len(data_fetching_usage) > 1:
        findings.append(
            Finding(
                severity="medium",
                message=f"Data fetching is split across {len(data_fetching_usage)} patterns.",
            )
        )

    inconsistencies = (
        max(0, len(http_usage) - 1)
        + max(0, len(state_usage) - 2)
        + max(0, len(styling_usage) - 2)
        + int(mixed_modules)
        + int(mixed_async)
        + max(0, len(data_fetching_usage) - 1)
    )
    async_total = async_await_ops + then_chains + callback_style
    score = score_from_ratio(inconsistencies / 8 + (then_chains / async_total if async_total else 0.0))

    dominant_client = _dominant_key(http_usage)
    prefer_await = async_await_ops >= then_chains

    return Category(
        id="patterns",
        title="PATTERN INCONSISTENCY",
        score=score,
        severity=severity_from_score(score),
        total_issues=len(findings),
        summary=(
            f"Detected {len(findings)} pattern inconsistency signals across the codebase."
            if findings
            else "No major pattern inconsistencies detected."
        ),
        findings=findings,
        metrics={
            "httpClients": {name: len(paths) for name, paths in http_usage.items()},
            "stateManagement": {name: len(paths) for name, paths in state_usage.items()},
            "dataFetching": {name: len(paths) for name, paths in data_fetching_usage.items()},
            "styling": {name: len(paths) for name, paths in styling_usage.items()},
            "asyncAwaitOps": async_await_ops,
            "thenChains": then_chains,
            "callbackStyle": callback_style,
            "filesUsingImport": files_using_import,
            "filesUsingRequire": files_using_require,
            "mixedImportStyleLibraries": list(mixed_libs),
        },
        recommendations=[
            f"Standardize HTTP requests on {dominant_client}."
            if dominant_client
            else "No explicit HTTP client detected. Keep one client choice once network calls are added.",
            f"Prefer {'async/await' if prefer_await else '.then() chains'} for async consistency.",
            "Use one module system (ES modules recommended).",
            "Reduce mixed styling and data-fetching patterns.",
        ],
    )
