from vibeclean.analyzers.patterns import analyze_patterns, detect_http_calls, mixed_import_styles
from vibeclean.schemas import SourceFile


def _file(path: str, content: str) -> SourceFile:
    return SourceFile(relative_path=path, content=content, extension="." + path.rsplit(".", 1)[-1])


def test_multiple_http_clients() -> None:
    files = [
        _file("src/a.js", "import axios from 'axios';\nexport async function a() {\n  return axios.get('/x');\n}\n"),
        _file("src/b.js", "export async function b() {\n  const r = await fetch('/y');\n  return r.json();\n}\n"),
    ]

    category = analyze_patterns(files)

    assert category.metrics["httpClients"] == {"axios": 1, "fetch": 1}
    assert category.findings[0].severity == "high"
    assert category.findings[0].message.startswith("Multiple HTTP clients detected")


def test_fetch_polyfill_is_not_a_second_client() -> None:
    files = [_file("src/a.js", "import fetch from 'node-fetch';\nfetch('/x');\n")]

    category = analyze_patterns(files)

    assert category.metrics["httpClients"] == {"node-fetch": 1}


def test_mixed_module_systems() -> None:
    files = [
        _file("src/a.js", "import x from './x';\nx();\n"),
        _file("src/b.js", "const y = require('./y');\ny();\n"),
    ]

    category = analyze_patterns(files)

    assert category.metrics["filesUsingImport"] == 1
    assert category.metrics["filesUsingRequire"] == 1
    assert any(item.message.startswith("Mixed module systems") for item in category.findings)


def test_http_calls_and_import_styles() -> None:
    assert detect_http_calls("got.post('/a');\nky('/b');\n", ".js") == {"got", "ky"}
    assert mixed_import_styles("import React from 'react';\nimport { useState } from 'react';\n") == ["react"]
    assert mixed_import_styles("import { a } from './a';\n") == []
