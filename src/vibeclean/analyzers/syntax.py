"""Tiered JavaScript syntax resolution on top of tree-sitter.

Attempts run in a fixed order and the first clean tree wins:

1. the text as an ES module (strict: sloppy-mode-only statements are rejected),
2. the text as a classic script,
3. both goals again after stripping type-only TypeScript constructs.

When every attempt fails the caller receives ``tree=None`` and is expected to
use the regex helpers for that file. Parsing never raises.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from vibeclean.logging import get_logger

logger = get_logger("syntax")

JS_LANGUAGE = Language(tree_sitter_javascript.language())

SFC_EXTENSIONS = {".vue", ".svelte"}

# Statements that are syntax errors once strict mode applies, as it does in modules.
SLOPPY_ONLY_NODES = frozenset({"with_statement"})

IDENTIFIER_NODES = frozenset(
    {
        "identifier",
        "property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
    }
)

# JSX tag and attribute names are markup, not program identifiers.
JSX_NAME_PARENTS = frozenset(
    {
        "jsx_opening_element",
        "jsx_closing_element",
        "jsx_self_closing_element",
        "jsx_attribute",
        "jsx_namespace_name",
        "nested_identifier",
    }
)

_RESERVED_WORDS = frozenset(
    {
        "if",
        "for",
        "while",
        "switch",
        "catch",
        "return",
        "function",
        "class",
        "const",
        "let",
        "var",
        "import",
        "export",
        "default",
        "new",
        "typeof",
    }
)

_FALLBACK_IDENTIFIER_PATTERNS = (
    re.compile(r"\b(?:const|let|var|function|class|interface|type|enum)\s+([A-Za-z_$][A-Za-z0-9_$]*)"),
    re.compile(r"\b([A-Za-z_$][A-Za-z0-9_$]*)\s*=\s*(?:async\s*)?\([^)]*\)\s*=>"),
    re.compile(r"\b([A-Za-z_$][A-Za-z0-9_$]*)\s*\([^)]*\)\s*\{"),
)

_SCRIPT_BLOCK_RE = re.compile(r"<script\b[^>]*>(.*?)</script>", re.DOTALL | re.IGNORECASE)


def _keep_lines(replacement: str) -> Callable[[re.Match[str]], str]:
    def _sub(match: re.Match[str]) -> str:
        return replacement + "\n" * match.group(0).count("\n")

    return _sub


_TYPE_ONLY_RULES = (
    (re.compile(r"\bimport\s+type\s+"), _keep_lines("import ")),
    (re.compile(r"""\bexport\s+type\s+\{[^}]*\}\s+from\s+["'`][^"'`]+["'`];?"""), _keep_lines("")),
    (re.compile(r"\b(?:export\s+)?interface\s+[A-Za-z_$][A-Za-z0-9_$]*[\s\S]*?\}\s*"), _keep_lines("")),
    (re.compile(r"\b(?:export\s+)?type\s+[A-Za-z_$][A-Za-z0-9_$]*\s*=\s*[^;]+;"), _keep_lines("")),
    (re.compile(r"\s+as\s+const\b"), _keep_lines("")),
)


class SourceGoal(StrEnum):
    MODULE = "module"
    SCRIPT = "script"


class ParseTier(StrEnum):
    MODULE = "module"
    SCRIPT = "script"
    STRIPPED_MODULE = "stripped-module"
    STRIPPED_SCRIPT = "stripped-script"
    REGEX = "regex"


@dataclass(slots=True)
class SyntaxTree:
    root: Node
    source: bytes
    goal: SourceGoal

    def text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def walk(self, node: Node | None = None) -> Iterator[Node]:
        """Pre-order traversal over every child, named or anonymous."""
        stack = [self.root if node is None else node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def nodes_of_type(self, *types: str) -> Iterator[Node]:
        wanted = set(types)
        return (node for node in self.walk() if node.type in wanted)

    @staticmethod
    def line_of(node: Node) -> int:
        return node.start_point[0] + 1


@dataclass(slots=True)
class ParseResult:
    tree: SyntaxTree | None
    tier: ParseTier
    error: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.tier not in (ParseTier.MODULE, ParseTier.SCRIPT)

    @property
    def used_type_stripping(self) -> bool:
        return self.tier in (ParseTier.STRIPPED_MODULE, ParseTier.STRIPPED_SCRIPT)


@lru_cache(maxsize=1)
def _parser() -> Parser:
    return Parser(JS_LANGUAGE)


def script_source(content: str, extension: str | None) -> str:
    """Keep only ``<script>`` bodies of single-file components, preserving line numbers."""
    if (extension or "").lower() not in SFC_EXTENSIONS:
        return content
    pieces: list[str] = []
    cursor = 0
    for match in _SCRIPT_BLOCK_RE.finditer(content):
        pieces.append("\n" * content.count("\n", cursor, match.start(1)))
        pieces.append(match.group(1))
        cursor = match.end(1)
    pieces.append("\n" * content.count("\n", cursor))
    return "".join(pieces)


def strip_type_only_syntax(content: str) -> str:
    stripped = content
    for pattern, replacement in _TYPE_ONLY_RULES:
        stripped = pattern.sub(replacement, stripped)
    return stripped


def _first_error_line(tree: SyntaxTree) -> int:
    for node in tree.walk():
        if node.type == "ERROR" or node.is_missing:
            return tree.line_of(node)
    return 1


def _try_parse(content: str, goal: SourceGoal) -> tuple[SyntaxTree | None, str | None]:
    source = content.encode("utf-8")
    try:
        parsed = _parser().parse(source)
    except Exception as exc:  # noqa: BLE001
        return None, f"parser failure: {exc}"

    tree = SyntaxTree(root=parsed.root_node, source=source, goal=goal)
    if tree.root.has_error:
        return None, f"syntax error near line {_first_error_line(tree)}"
    if goal is SourceGoal.MODULE:
        for node in tree.walk():
            if node.type in SLOPPY_ONLY_NODES:
                return None, f"'{node.type}' is not allowed in module code (line {tree.line_of(node)})"
    return tree, None


def parse_source(content: str, extension: str | None = None) -> ParseResult:
    source = script_source(content, extension)

    first_error: str | None = None
    for goal, tier in ((SourceGoal.MODULE, ParseTier.MODULE), (SourceGoal.SCRIPT, ParseTier.SCRIPT)):
        tree, error = _try_parse(source, goal)
        if tree is not None:
            return ParseResult(tree=tree, tier=tier)
        first_error = first_error or error

    stripped = strip_type_only_syntax(source)
    if stripped != source:
        for goal, tier in (
            (SourceGoal.MODULE, ParseTier.STRIPPED_MODULE),
            (SourceGoal.SCRIPT, ParseTier.STRIPPED_SCRIPT),
        ):
            tree, _ = _try_parse(stripped, goal)
            if tree is not None:
                logger.debug("parsed with type-only syntax stripped (%s)", tier)
                return ParseResult(tree=tree, tier=tier, error=first_error)

    logger.debug("no syntax tree, falling back to regex extraction: %s", first_error)
    return ParseResult(tree=None, tier=ParseTier.REGEX, error=first_error)


def unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def identifiers_from_tree(tree: SyntaxTree) -> list[str]:
    names: list[str] = []
    for node in tree.walk():
        if node.type not in IDENTIFIER_NODES:
            continue
        parent = node.parent
        if parent is not None and parent.type in JSX_NAME_PARENTS:
            continue
        names.append(tree.text(node))
    return names


def collect_identifiers_fallback(content: str) -> list[str]:
    names: dict[str, None] = {}
    for pattern in _FALLBACK_IDENTIFIER_PATTERNS:
        for match in pattern.finditer(content):
            value = match.group(1)
            if value not in _RESERVED_WORDS:
                names.setdefault(value, None)
    return list(names)


def collect_identifiers(content: str, extension: str | None = None, parsed: ParseResult | None = None) -> list[str]:
    result = parsed or parse_source(content, extension)
    if result.tree is None:
        return collect_identifiers_fallback(content)
    return identifiers_from_tree(result.tree)
