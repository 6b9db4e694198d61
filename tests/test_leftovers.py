from vibeclean.analyzers.leftovers import analyze_leftovers
from vibeclean.schemas import SourceFile


def test_counts_each_kind_of_leftover() -> None:
    content = "console.log('x');\ndebugger;\n// TODO: fix\n// const old = 1;\nconst kept = 2;\n"

    category = analyze_leftovers([SourceFile("src/a.js", content, ".js")])

    assert category.metrics == {
        "consoleCalls": 1,
        "debuggerStatements": 1,
        "todoComments": 1,
        "commentedCodeLines": 1,
        "filesWithConsole": 1,
    }
    assert category.total_issues == 4
    debugger = next(item for item in category.findings if "debugger" in item.message)
    assert debugger.severity == "high"
    assert debugger.locations[0].line == 2


def test_console_error_and_prose_comments_are_not_leftovers() -> None:
    content = "// Formats the user name for display.\ntry {\n  run();\n} catch (e) {\n  console.error(e);\n}\n"

    category = analyze_leftovers([SourceFile("src/b.js", content, ".js")])

    assert category.total_issues == 0
    assert category.summary == "No obvious AI leftovers detected."
