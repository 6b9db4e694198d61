from __future__ import annotations

import subprocess
from pathlib import Path


class GitError(RuntimeError):
    pass


def _run_git(repo: Path, args: list[str]) -> str:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=repo,
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise GitError(str(exc)) from exc
    if proc.returncode != 0:
        raise GitError(proc.stderr.strip() or proc.stdout.strip())
    return proc.stdout.strip()


def _split_lines(raw: str) -> list[str]:
    return [line.strip() for line in raw.splitlines() if line.strip()]


def is_work_tree(repo: Path) -> bool:
    try:
        return _run_git(repo, ["rev-parse", "--is-inside-work-tree"]) == "true"
    except GitError:
        return False


def changed_files(repo: Path, base: str) -> list[str]:
    out = _run_git(repo, ["diff", "--name-only", "--diff-filter=ACMRTUXB", base])
    return _split_lines(out)


def untracked_files(repo: Path) -> list[str]:
    out = _run_git(repo, ["ls-files", "--others", "--exclude-standard"])
    return _split_lines(out)


def changed_paths(repo: Path, base: str) -> list[str]:
    """Files changed against ``base`` plus untracked files, deduplicated in order."""
    if not is_work_tree(repo):
        raise GitError(f"{repo} is not inside a git work tree")
    paths = changed_files(repo, base)
    try:
        paths.extend(untracked_files(repo))
    except GitError:
        pass
    return list(dict.fromkeys(paths))
