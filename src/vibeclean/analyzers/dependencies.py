from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from vibeclean.analyzers.common import (
    AnalyzerContext,
    collect_import_specifiers,
    package_root,
    score_from_ratio,
    severity_from_score,
)
from vibeclean.schemas import Category, Finding, SourceFile

DUPLICATE_GROUPS = (
    ("lodash", "underscore"),
    ("moment", "dayjs"),
    ("moment", "date-fns"),
    ("express", "koa"),
    ("express", "fastify"),
    ("jest", "vitest"),
    ("jest", "mocha"),
    ("vitest", "mocha"),
)

OUTDATED_PACKAGES = {
    "moment": "Consider migrating to dayjs or date-fns for lighter bundles.",
    "request": "request is deprecated. Prefer fetch or undici.",
    "lodash": "Consider lodash-es or native methods where possible.",
}

ESTIMATED_MB = {
    "lodash": 0.5,
    "moment": 0.6,
    "request": 0.3,
    "axios": 0.2,
    "express": 1.0,
    "jest": 1.7,
    "mocha": 0.8,
    "chalk": 0.08,
    "uuid": 0.05,
    "cors": 0.04,
    "dotenv": 0.03,
}
DEFAULT_ESTIMATED_MB = 0.05

CLI_PACKAGE_ALIASES = {
    "jest": "jest",
    "vitest": "vitest",
    "mocha": "mocha",
    "eslint": "eslint",
    "prettier": "prettier",
    "tsc": "typescript",
    "vite": "vite",
    "webpack": "webpack",
    "rollup": "rollup",
    "nodemon": "nodemon",
    "ava": "ava",
    "nyc": "nyc",
    "ts-node": "ts-node",
}

CONFIG_FILE_HINTS = {
    "tailwindcss": ("tailwind.config.js", "tailwind.config.cjs", "tailwind.config.mjs"),
    "postcss": ("postcss.config.js", "postcss.config.cjs", "postcss.config.mjs"),
    "autoprefixer": ("postcss.config.js", "postcss.config.cjs", "postcss.config.mjs"),
    "@babel/core": ("babel.config.js", ".babelrc", ".babelrc.json"),
    "eslint": (".eslintrc", ".eslintrc.json", ".eslintrc.js", "eslint.config.js"),
    "prettier": (".prettierrc", ".prettierrc.json", "prettier.config.js"),
    "jest": ("jest.config.js", "jest.config.cjs", "jest.config.mjs"),
    "vitest": ("vitest.config.js", "vitest.config.ts", "vite.config.js", "vite.config.ts"),
}

SAFE_DEV_TOOLS = {
    "typescript",
    "@types/node",
    "@types/react",
    "@types/react-dom",
    "husky",
    "lint-staged",
    "rimraf",
    "cross-env",
    "npm-run-all",
    "concurrently",
}

_COMMAND_SPLIT_RE = re.compile(r"&&|\|\||;")


def script_command_packages(scripts: dict[str, Any]) -> set[str]:
    """Packages invoked as the first command of a package.json script."""
    used: set[str] = set()
    for script in scripts.values():
        if not isinstance(script, str):
            continue
        parts = _COMMAND_SPLIT_RE.split(script)[0].split()
        token = parts[0] if parts else ""
        if token == "npx":
            token = parts[1] if len(parts) > 1 else ""
        elif token in {"pnpm", "yarn", "npm"} and len(parts) > 1 and parts[1] == "run":
            token = parts[2] if len(parts) > 2 else ""
        if token in CLI_PACKAGE_ALIASES:
            used.add(CLI_PACKAGE_ALIASES[token])
    return used


def config_hint_packages(root: Path | None) -> set[str]:
    if root is None:
        return set()
    return {pkg for pkg, names in CONFIG_FILE_HINTS.items() if any((root / name).exists() for name in names)}


def skipped_dependencies_category() -> Category:
    return Category(
        id="dependencies",
        title="DEPENDENCY ISSUES",
        score=0,
        severity="low",
        total_issues=0,
        summary="No package.json found. Dependency analysis was skipped.",
        recommendations=["Add a package.json if you want dependency auditing."],
        skipped=True,
    )


def analyze_dependencies(files: list[SourceFile], context: AnalyzerContext | None = None) -> Category:
    context = context or AnalyzerContext()
    package_json = context.package_json
    if not package_json:
        return skipped_dependencies_category()

    dependencies = package_json.get("dependencies") or {}
    dev_dependencies = package_json.get("devDependencies") or {}
    all_deps = list(dict.fromkeys([*dependencies, *dev_dependencies]))

    imported: set[str] = set()
    for file in files:
        for specifier in collect_import_specifiers(file.content):
            root = package_root(specifier)
            if root:
                imported.add(root)

    used_by_script = script_command_packages(package_json.get("scripts") or {})
    used_by_config = config_hint_packages(context.root)

    unused = [
        dep
        for dep in all_deps
        if dep not in imported
        and dep not in used_by_script
        and dep not in used_by_config
        and dep not in SAFE_DEV_TOOLS
        and not dep.startswith("@types/")
    ]
    duplicates = [present for group in DUPLICATE_GROUPS if len(present := [name for name in group if name in all_deps]) > 1]
    outdated = [{"dep": dep, "note": OUTDATED_PACKAGES[dep]} for dep in all_deps if dep in OUTDATED_PACKAGES]
    savings = sum(ESTIMATED_MB.get(dep, DEFAULT_ESTIMATED_MB) for dep in unused)

    findings: list[Finding] = []
    if unused:
        findings.append(
            Finding(
                severity="high" if len(unused) >= 5 else "medium",
                message=f"{len(unused)} unused packages detected.",
                packages=unused[:30],
            )
        )
    if duplicates:
        findings.append(
            Finding(
                severity="medium",
                message=f"{len(duplicates)} duplicate functionality groups found.",
                packages=duplicates,
            )
        )
    if outdated:
        findings.append(
            Finding(
                severity="medium",
                message=f"{len(outdated)} outdated or heavy packages detected.",
                packages=[item["dep"] for item in outdated],
            )
        )

    score = score_from_ratio((len(unused) + len(duplicates) * 2 + len(outdated)) / max(len(all_deps) * 0.5, 1))

    return Category(
        id="dependencies",
        title="DEPENDENCY ISSUES",
        score=score,
        severity=severity_from_score(score),
        total_issues=len(unused) + len(duplicates) + len(outdated),
        summary=(
            f"{len(findings)} dependency risk areas found." if findings else "No major dependency bloat or overlap detected."
        ),
        findings=findings,
        metrics={
            "dependencyCount": len(dependencies),
            "devDependencyCount": len(dev_dependencies),
            "unusedCount": len(unused),
            "unusedPackages": unused,
            "duplicateGroups": duplicates,
            "outdated": outdated,
            "estimatedSavingsMb": round(savings, 2),
        },
        recommendations=[
            "Remove unused dependencies to reduce install time and attack surface.",
            "Keep one package per concern where possible (date, test runner, web framework).",
            "Replace deprecated packages with actively maintained alternatives.",
        ],
    )
