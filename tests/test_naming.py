from __future__ import annotations

from vibeclean.analyzers.naming import (
    FILE_STYLES,
    IDENTIFIER_STYLES,
    analyze_naming,
    dominant_from_counts,
    extract_exported_component_names,
    style_of,
)
from vibeclean.analyzers.syntax import parse_source
from vibeclean.schemas import SourceFile


def _file(path: str, content: str) -> SourceFile:
    return SourceFile(relative_path=path, content=content, extension="." + path.rsplit(".", 1)[-1])


def test_single_snake_case_file_is_the_minority() -> None:
    files = [_file(f"src/file{index}.js", "const fooBar = 1;\n") for index in range(9)]
    files.append(_file("src/file9.js", "const foo_bar = 1;\n"))

    category = analyze_naming(files)

    assert category.metrics["dominantIdentifierStyle"] == "camelCase"
    assert category.metrics["dominantShare"] == 0.9
    assert category.metrics["minorityFiles"] == ["src/file9.js"]
    assert category.summary == "camelCase is dominant (90%), but naming conventions are mixed."


def test_result_does_not_depend_on_file_order() -> None:
    files = [
        _file("src/a.js", "const fooBar = 1;\nconst bazQux = 2;\n"),
        _file("src/b.js", "const foo_bar = 1;\n"),
        _file("src/c.js", "const Widget = 1;\n"),
    ]

    forward = analyze_naming(files)
    backward = analyze_naming(list(reversed(files)))

    assert forward.metrics == backward.metrics
    assert forward.score == backward.score


def test_ties_follow_priority_order() -> None:
    assert dominant_from_counts({"snake_case": 2, "camelCase": 2}).name == "camelCase"
    assert dominant_from_counts({"SCREAMING_SNAKE": 1, "PascalCase": 1}).name == "PascalCase"
    assert dominant_from_counts({"camelCase": 0}).name is None


def test_identifier_style_classification() -> None:
    assert style_of("fooBar", IDENTIFIER_STYLES) == "camelCase"
    assert style_of("foo", IDENTIFIER_STYLES) == "camelCase"
    assert style_of("foo_bar", IDENTIFIER_STYLES) == "snake_case"
    assert style_of("FooBar", IDENTIFIER_STYLES) == "PascalCase"
    assert style_of("FOO", IDENTIFIER_STYLES) == "PascalCase"
    assert style_of("MAX_SIZE", IDENTIFIER_STYLES) == "SCREAMING_SNAKE"
    assert style_of("_private", IDENTIFIER_STYLES) is None
    assert style_of("$el", IDENTIFIER_STYLES) is None


def test_file_style_classification() -> None:
    assert style_of("user-card", FILE_STYLES) == "kebab-case"
    assert style_of("utils", FILE_STYLES) == "kebab-case"
    assert style_of("user_card", FILE_STYLES) == "snake_case"
    assert style_of("userCard", FILE_STYLES) == "camelCase"
    assert style_of("UserCard", FILE_STYLES) == "PascalCase"


def test_mixed_filename_conventions_per_directory() -> None:
    files = [
        _file("src/user-card.js", "const a = 1;\n"),
        _file("src/UserList.js", "const b = 1;\n"),
        _file("lib/one-thing.js", "const c = 1;\n"),
    ]

    category = analyze_naming(files)

    directories = [item["directory"] for item in category.metrics["mixedDirectories"]]
    assert directories == ["src"]


def test_component_name_must_match_filename() -> None:
    files = [
        _file("src/Profile.jsx", "export function Avatar() {\n  return <img />;\n}\n"),
        _file("src/user-card.jsx", "export default function UserCard() {\n  return <div />;\n}\n"),
    ]

    category = analyze_naming(files)

    assert category.metrics["componentMismatches"] == [{"file": "src/Profile.jsx", "component": "Avatar"}]
    assert extract_exported_component_names("export const Button = () => null;\n", ".jsx") == ["Button"]


def test_mixed_directory_styles_are_listed_in_a_stable_order() -> None:
    files = [
        _file("src/UserList.js", "const b = 1;\n"),
        _file("src/user-card.js", "const a = 1;\n"),
        _file("src/user_row.js", "const c = 1;\n"),
    ]

    forward = analyze_naming(files).metrics["mixedDirectories"]
    backward = analyze_naming(list(reversed(files))).metrics["mixedDirectories"]

    assert forward == backward
    assert forward[0]["styles"] == ["kebab-case (1)", "snake_case (1)", "PascalCase (1)"]


def test_component_extraction_reuses_a_given_parse() -> None:
    content = "export default function UserCard() {\n  return <div />;\n}\n"
    parsed = parse_source(content, ".jsx")

    assert extract_exported_component_names(content, parsed=parsed) == ["UserCard"]
    assert extract_exported_component_names(content, ".jsx") == ["UserCard"]
