from __future__ import annotations

from vibeclean.analyzers.tsquality import analyze_ts_quality
from vibeclean.schemas import SourceFile


def test_skipped_without_typescript_files() -> None:
    category = analyze_ts_quality([SourceFile("src/a.js", "const a = 1;\n", ".js")])

    assert category.skipped is True
    assert category.score == 0
    assert category.to_dict()["skipped"] is True


def test_typescript_strictness_signals() -> None:
    content = (
        "export function load(id: any) {\n"
        "  // @ts-ignore\n"
        "  const el = maybe!.value;\n"
        "  return el as HTMLElement;\n"
        "}\n"
    )

    category = analyze_ts_quality([SourceFile("src/load.ts", content, ".ts")])

    assert category.metrics["explicitAnyCount"] == 1
    assert category.metrics["suppressionCount"] == 1
    assert category.metrics["asAssertions"] == 1
    assert category.metrics["missingReturnTypeCount"] == 1
    assert category.metrics["nonNullAssertionCount"] == 1
    assert category.total_issues == 4
    assert category.skipped is False
