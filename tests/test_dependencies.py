from __future__ import annotations

from pathlib import Path

from vibeclean.analyzers.common import AnalyzerContext
from vibeclean.analyzers.dependencies import analyze_dependencies, config_hint_packages, script_command_packages
from vibeclean.schemas import SourceFile


def test_skipped_without_package_json() -> None:
    category = analyze_dependencies([], AnalyzerContext())

    assert category.skipped is True
    assert category.summary == "No package.json found. Dependency analysis was skipped."


def test_script_commands_count_as_usage() -> None:
    scripts = {
        "build": "npx tsc -p .",
        "lint": "pnpm run eslint",
        "start": "node server.js && jest",
        "broken": 5,
    }

    assert script_command_packages(scripts) == {"typescript", "eslint"}


def test_unused_outdated_and_config_hinted_packages(tmp_path: Path) -> None:
    (tmp_path / "tailwind.config.js").write_text("module.exports = {};\n", encoding="utf-8")
    package_json = {
        "dependencies": {"axios": "^1.0.0", "moment": "^2.0.0"},
        "devDependencies": {"jest": "^29.0.0", "@types/node": "^20.0.0", "tailwindcss": "^3.0.0"},
        "scripts": {"test": "jest --coverage"},
    }
    files = [SourceFile("src/api.js", "import axios from 'axios';\n", ".js")]

    category = analyze_dependencies(files, AnalyzerContext(root=tmp_path, package_json=package_json))

    assert config_hint_packages(tmp_path) == {"tailwindcss"}
    assert category.metrics["unusedPackages"] == ["moment"]
    assert category.metrics["outdated"][0]["dep"] == "moment"
    assert category.metrics["estimatedSavingsMb"] == 0.6
    assert category.total_issues == 2
