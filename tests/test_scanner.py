from __future__ import annotations

from pathlib import Path

from vibeclean.config import AuditConfig
from vibeclean.scanner import gitignore_patterns, scan_project


def _write(root: Path, rel: str, content: str | bytes) -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")


def test_scan_filters_extensions_and_builtin_ignores(tmp_path: Path) -> None:
    _write(tmp_path, "src/app.ts", "export const a = 1;\n")
    _write(tmp_path, "src/View.VUE", "<script>export default {};</script>\n")
    _write(tmp_path, "src/readme.md", "# nope\n")
    _write(tmp_path, "node_modules/lib/index.js", "module.exports = 1;\n")
    _write(tmp_path, "dist/bundle.js", "var a = 1;\n")
    _write(tmp_path, "vendor/jquery.min.js", "var $ = 1;\n")
    _write(tmp_path, ".hidden/secret.js", "var s = 1;\n")

    result = scan_project(tmp_path, AuditConfig())

    assert [file.relative_path for file in result.files] == ["src/View.VUE", "src/app.ts"]
    assert [file.extension for file in result.files] == [".vue", ".ts"]
    assert result.warnings == []


def test_gitignore_and_config_ignores_apply(tmp_path: Path) -> None:
    _write(tmp_path, ".gitignore", "# comment\ngenerated/\n/tmp\n!keep.js\n")
    _write(tmp_path, "generated/api.js", "export const x = 1;\n")
    _write(tmp_path, "tmp/scratch.js", "export const y = 1;\n")
    _write(tmp_path, "legacy/old.js", "export const z = 1;\n")
    _write(tmp_path, "src/keep.js", "export const k = 1;\n")

    result = scan_project(tmp_path, AuditConfig(ignore=["legacy/**"]))

    assert [file.relative_path for file in result.files] == ["src/keep.js"]
    assert "generated/**" in gitignore_patterns(tmp_path)


def test_max_files_cap_adds_warning(tmp_path: Path) -> None:
    for index in range(5):
        _write(tmp_path, f"src/f{index}.js", "const a = 1;\n")

    result = scan_project(tmp_path, AuditConfig(max_files=3))

    assert [file.relative_path for file in result.files] == ["src/f0.js", "src/f1.js", "src/f2.js"]
    assert result.matched == 5
    assert result.warnings == ["Scan capped at 3 files. 2 files were not analyzed."]


def test_large_and_binary_files_are_skipped(tmp_path: Path) -> None:
    _write(tmp_path, "src/big.js", "a" * 2048 + "\n")
    _write(tmp_path, "src/blob.js", b"var a = 1;\x00\x00\n")
    _write(tmp_path, "src/ok.js", "const ok = 1;\n")

    result = scan_project(tmp_path, AuditConfig(max_file_size_kb=1))

    assert [file.relative_path for file in result.files] == ["src/ok.js"]
    assert "Skipped large file: src/big.js (3KB)" in result.warnings
    assert "Skipped binary-like file: src/blob.js" in result.warnings


def test_changed_only_outside_git_scans_everything(tmp_path: Path) -> None:
    _write(tmp_path, "src/a.js", "const a = 1;\n")

    result = scan_project(tmp_path, AuditConfig(changed_only=True, changed_base="main"))

    assert [file.relative_path for file in result.files] == ["src/a.js"]
    assert result.warnings == [
        'Could not resolve changed files against "main". Scanning full project instead.'
    ]
