from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from vibeclean.config import AuditConfig
from vibeclean.git_utils import GitError, changed_paths
from vibeclean.logging import get_logger
from vibeclean.schemas import SourceFile
from vibeclean.utils import path_matches

# Order is the resolution priority used by the reference graph.
SUPPORTED_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".vue", ".svelte")

BUILTIN_IGNORE_GLOBS = [
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/build/**",
    "**/.next/**",
    "**/.cache/**",
    "**/coverage/**",
    "**/__pycache__/**",
    "**/*.lock",
    "**/package-lock.json",
    "**/pnpm-lock.yaml",
    "**/yarn.lock",
    "**/*.min.js",
    "**/*.bundle.js",
    "**/.env",
    "**/.env.*",
]

logger = get_logger("scanner")


@dataclass(slots=True)
class ScanResult:
    files: list[SourceFile] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    matched: int = 0


def extension_of(rel_path: str) -> str:
    return PurePosixPath(rel_path).suffix.lower()


def gitignore_patterns(repo_root: Path) -> list[str]:
    path = repo_root / ".gitignore"
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    patterns: list[str] = []
    for line in raw.splitlines():
        entry = line.strip()
        # Negations are not supported.
        if not entry or entry.startswith(("#", "!")):
            continue
        anchored = entry.startswith("/")
        entry = entry.strip("/")
        if not entry:
            continue
        if anchored:
            patterns.extend([entry, f"{entry}/**"])
        else:
            patterns.extend([entry, f"**/{entry}", f"{entry}/**", f"**/{entry}/**"])
    return patterns


def _walk_candidates(repo_root: Path) -> list[str]:
    candidates: list[str] = []
    for path in repo_root.rglob("*"):
        rel = path.relative_to(repo_root)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if not path.is_file():
            continue
        candidates.append(rel.as_posix())
    return candidates


def _read_source(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def scan_project(repo_root: Path, config: AuditConfig) -> ScanResult:
    result = ScanResult()

    candidates: list[str] | None = None
    if config.changed_only:
        try:
            candidates = changed_paths(repo_root, config.changed_base)
        except GitError as exc:
            logger.warning("changed-file selection failed: %s", exc)
            result.warnings.append(
                f"Could not resolve changed files against \"{config.changed_base}\". Scanning full project instead."
            )
        else:
            if not candidates:
                result.warnings.append(f"No changed files found relative to \"{config.changed_base}\".")

    if candidates is None:
        candidates = _walk_candidates(repo_root)

    ignore_patterns = [*BUILTIN_IGNORE_GLOBS, *gitignore_patterns(repo_root), *config.ignore]
    filtered = sorted(
        rel
        for rel in set(candidates)
        if extension_of(rel) in SUPPORTED_EXTENSIONS and not path_matches(rel, ignore_patterns)
    )
    result.matched = len(filtered)

    limited = filtered[: config.max_files]
    if len(filtered) > config.max_files:
        result.warnings.append(
            f"Scan capped at {config.max_files} files. {len(filtered) - config.max_files} files were not analyzed."
        )

    max_bytes = config.max_file_size_kb * 1024
    for rel in limited:
        path = repo_root / rel
        try:
            if not path.is_file():
                continue
            size = path.stat().st_size
            if size > max_bytes:
                result.warnings.append(f"Skipped large file: {rel} ({-(-size // 1024)}KB)")
                continue
            content = _read_source(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("could not read %s: %s", rel, exc)
            result.warnings.append(f"Could not read file: {rel}")
            continue

        if "\x00" in content:
            result.warnings.append(f"Skipped binary-like file: {rel}")
            continue

        result.files.append(SourceFile(relative_path=rel, content=content, extension=extension_of(rel)))

    logger.debug("scanned %d of %d matching files", len(result.files), result.matched)
    return result
