from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from tree_sitter import Node

from vibeclean.analyzers.common import AnalyzerContext, score_from_ratio, severity_from_score
from vibeclean.analyzers.syntax import SyntaxTree, parse_source, unquote
from vibeclean.config import DeadCodeConfig
from vibeclean.logging import get_logger
from vibeclean.scanner import SUPPORTED_EXTENSIONS
from vibeclean.schemas import Category, Finding, SourceFile

logger = get_logger("deadcode")

MAX_LISTED_FILES = 25

_NAME = r"[A-Za-z_$][A-Za-z0-9_$]*"

RELATIVE_IMPORT_FROM_RE = re.compile(r"""import\s+[^"'`]*?from\s+["'`]([^"'`]+)["'`]""")
SIDE_EFFECT_IMPORT_RE = re.compile(r"""import\s+["'`]([^"'`]+)["'`]""")
REQUIRE_CALL_RE = re.compile(r"""require\(\s*["'`]([^"'`]+)["'`]\s*\)""")

DEFAULT_IMPORT_RE = re.compile(rf"""import\s+({_NAME})\s*(?:,\s*(?:\{{([^}}]+)\}}|\*\s+as\s+{_NAME}))?\s+from\s+["'`]([^"'`]+)["'`]""")
NAMED_IMPORT_RE = re.compile(r"""import\s+\{([^}]+)\}\s+from\s+["'`]([^"'`]+)["'`]""")
NAMESPACE_IMPORT_RE = re.compile(rf"""import\s+(?:{_NAME}\s*,\s*)?\*\s+as\s+{_NAME}\s+from\s+["'`]([^"'`]+)["'`]""")
REQUIRE_DEFAULT_RE = re.compile(rf"""(?:const|let|var)\s+{_NAME}\s*=\s*require\(\s*["'`]([^"'`]+)["'`]\s*\)""")
REQUIRE_DESTRUCTURE_RE = re.compile(r"""(?:const|let|var)\s+\{([^}]+)\}\s*=\s*require\(\s*["'`]([^"'`]+)["'`]\s*\)""")

EXPORT_DECLARATION_RE = re.compile(
    rf"export\s+(?:(?:const|let|var|class)\s+|(?:async\s+)?function\s*\*?\s*)({_NAME})"
)
EXPORT_CLAUSE_RE = re.compile(r"export\s*\{([^}]*)\}")
EXPORT_SPECIFIER_RE = re.compile(rf"^({_NAME})(?:\s+as\s+({_NAME}))?$")
EXPORT_DEFAULT_RE = re.compile(r"\bexport\s+default\b")

REEXPORT_LINE_RE = re.compile(r"^export\s+(\*|\{)")
BRACE_ONLY_RE = re.compile(r"^[{}]+;?$")


@dataclass(slots=True)
class ExportSet:
    named: set[str] = field(default_factory=set)
    has_default: bool = False

    @property
    def empty(self) -> bool:
        return not self.named and not self.has_default


@dataclass(slots=True)
class ImportBinding:
    specifier: str
    names: list[str] = field(default_factory=list)
    default_import: bool = False
    namespace_import: bool = False


@dataclass(slots=True)
class ImportUsage:
    named: set[str] = field(default_factory=set)
    default_import: bool = False
    namespace_import: bool = False

    def merge(self, binding: ImportBinding) -> None:
        self.named.update(binding.names)
        self.default_import = self.default_import or binding.default_import
        self.namespace_import = self.namespace_import or binding.namespace_import


@dataclass(slots=True)
class ModuleFacts:
    specifiers: list[str]
    bindings: list[ImportBinding]
    exports: ExportSet
    used_fallback: bool = False


@dataclass(slots=True)
class ReferenceGraph:
    """Closed-world import graph over the scanned files."""

    incoming: dict[str, set[str]] = field(default_factory=dict)
    exports: dict[str, ExportSet] = field(default_factory=dict)
    usage: dict[str, ImportUsage] = field(default_factory=dict)
    fallback_files: list[str] = field(default_factory=list)

    @classmethod
    def for_paths(cls, paths: Iterable[str]) -> ReferenceGraph:
        return cls(incoming={path: set() for path in paths})

    def add_edge(self, importer: str, target: str) -> None:
        # Only scanned files are nodes.
        refs = self.incoming.get(target)
        if refs is not None:
            refs.add(importer)

    def record_usage(self, target: str, binding: ImportBinding) -> None:
        self.usage.setdefault(target, ImportUsage()).merge(binding)

    def usage_for(self, target: str) -> ImportUsage:
        return self.usage.get(target) or ImportUsage()


def resolve_relative_import(from_file: str, specifier: str, existing: set[str] | dict[str, object]) -> str | None:
    direct = posixpath.normpath(posixpath.join(posixpath.dirname(from_file), specifier))
    if direct in existing:
        return direct
    for ext in SUPPORTED_EXTENSIONS:
        candidate = f"{direct}{ext}"
        if candidate in existing:
            return candidate
    for ext in SUPPORTED_EXTENSIONS:
        candidate = posixpath.join(direct, f"index{ext}")
        if candidate in existing:
            return candidate
    return None


def _split_names(raw: str, separator: str) -> list[str]:
    names: list[str] = []
    for item in raw.split(","):
        name = re.split(separator, item.strip(), maxsplit=1)[0].strip()
        if name:
            names.append(name)
    return names


def extract_relative_specifiers(content: str) -> list[str]:
    specifiers: list[str] = []
    for pattern in (RELATIVE_IMPORT_FROM_RE, SIDE_EFFECT_IMPORT_RE, REQUIRE_CALL_RE):
        specifiers.extend(match.group(1) for match in pattern.finditer(content))
    return [item for item in specifiers if item.startswith(".")]


def extract_import_bindings(content: str) -> list[ImportBinding]:
    bindings: list[ImportBinding] = []

    for match in DEFAULT_IMPORT_RE.finditer(content):
        bindings.append(
            ImportBinding(
                specifier=match.group(3),
                names=_named_import_names(match.group(2) or ""),
                default_import=True,
            )
        )

    for match in NAMED_IMPORT_RE.finditer(content):
        names = _named_import_names(match.group(1))
        default_import = "default" in names
        bindings.append(
            ImportBinding(
                specifier=match.group(2),
                names=[name for name in names if name != "default"],
                default_import=default_import,
            )
        )

    for match in NAMESPACE_IMPORT_RE.finditer(content):
        bindings.append(ImportBinding(specifier=match.group(1), namespace_import=True))

    for match in REQUIRE_DEFAULT_RE.finditer(content):
        bindings.append(ImportBinding(specifier=match.group(1), default_import=True))

    for match in REQUIRE_DESTRUCTURE_RE.finditer(content):
        raw = match.group(1)
        bindings.append(
            ImportBinding(
                specifier=match.group(2),
                names=[name for name in _split_names(raw, r"\s*:\s*") if not name.startswith("...")],
                namespace_import="..." in raw,
            )
        )

    return bindings


def _named_import_names(raw: str) -> list[str]:
    return [unquote(name) for name in _split_names(raw, r"\s+as\s+") if not name.startswith("type ")]


def extract_exports(content: str) -> ExportSet:
    exports = ExportSet(has_default=bool(EXPORT_DEFAULT_RE.search(content)))
    for match in EXPORT_DECLARATION_RE.finditer(content):
        exports.named.add(match.group(1))
    for match in EXPORT_CLAUSE_RE.finditer(content):
        for part in match.group(1).split(","):
            spec = EXPORT_SPECIFIER_RE.match(part.strip())
            if not spec:
                continue
            exported = spec.group(2) or spec.group(1)
            if exported == "default":
                exports.has_default = True
            else:
                exports.named.add(exported)
    return exports


def _string_value(tree: SyntaxTree, node: Node | None) -> str | None:
    if node is None:
        return None
    if node.type == "string":
        return unquote(tree.text(node))
    if node.type == "template_string" and not any(child.type == "template_substitution" for child in node.children):
        return unquote(tree.text(node))
    return None


def _require_specifier(tree: SyntaxTree, node: Node) -> str | None:
    if node.type != "call_expression":
        return None
    function = node.child_by_field_name("function")
    if function is None or function.type != "identifier" or tree.text(function) != "require":
        return None
    arguments = node.child_by_field_name("arguments")
    if arguments is None or arguments.named_child_count != 1:
        return None
    return _string_value(tree, arguments.named_children[0])


def _child_of_type(node: Node, node_type: str) -> Node | None:
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def _pattern_names(tree: SyntaxTree, node: Node | None) -> list[str]:
    if node is None:
        return []
    if node.type in {"identifier", "shorthand_property_identifier_pattern"}:
        return [tree.text(node)]
    if node.type == "pair_pattern":
        return _pattern_names(tree, node.child_by_field_name("value"))
    if node.type in {"object_assignment_pattern", "assignment_pattern"}:
        return _pattern_names(tree, node.child_by_field_name("left"))
    names: list[str] = []
    if node.type in {"object_pattern", "array_pattern", "rest_pattern"}:
        for child in node.named_children:
            names.extend(_pattern_names(tree, child))
    return names


def _declared_names(tree: SyntaxTree, declaration: Node) -> list[str]:
    if declaration.type in {"lexical_declaration", "variable_declaration"}:
        names: list[str] = []
        for declarator in declaration.named_children:
            if declarator.type == "variable_declarator":
                names.extend(_pattern_names(tree, declarator.child_by_field_name("name")))
        return names
    name = declaration.child_by_field_name("name")
    return [tree.text(name)] if name is not None else []


def _tree_exports(tree: SyntaxTree) -> ExportSet:
    exports = ExportSet()
    for node in tree.nodes_of_type("export_statement"):
        if any(child.type == "default" for child in node.children):
            exports.has_default = True
            continue
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            exports.named.update(_declared_names(tree, declaration))
            continue
        namespace = _child_of_type(node, "namespace_export")
        if namespace is not None and namespace.named_children:
            exports.named.add(unquote(tree.text(namespace.named_children[-1])))
            continue
        clause = _child_of_type(node, "export_clause")
        if clause is None:
            continue
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            alias = spec.child_by_field_name("alias")
            exported = unquote(tree.text(alias if alias is not None else spec.child_by_field_name("name")))
            if exported == "default":
                exports.has_default = True
            elif exported:
                exports.named.add(exported)
    return exports


def _import_statement_binding(tree: SyntaxTree, node: Node, specifier: str) -> ImportBinding | None:
    clause = _child_of_type(node, "import_clause")
    if clause is None:
        return None
    binding = ImportBinding(specifier=specifier)
    for child in clause.named_children:
        if child.type == "identifier":
            binding.default_import = True
        elif child.type == "namespace_import":
            binding.namespace_import = True
        elif child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                name = unquote(tree.text(spec.child_by_field_name("name")))
                if name == "default":
                    binding.default_import = True
                elif name:
                    binding.names.append(name)
    return binding


def _require_binding(tree: SyntaxTree, declarator: Node, specifier: str) -> ImportBinding:
    target = declarator.child_by_field_name("name")
    if target is None or target.type != "object_pattern":
        return ImportBinding(specifier=specifier, default_import=True)
    binding = ImportBinding(specifier=specifier)
    for child in target.named_children:
        if child.type == "shorthand_property_identifier_pattern":
            binding.names.append(tree.text(child))
        elif child.type == "pair_pattern":
            binding.names.append(unquote(tree.text(child.child_by_field_name("key"))))
        elif child.type == "object_assignment_pattern":
            binding.names.append(tree.text(child.child_by_field_name("left")))
        elif child.type == "rest_pattern":
            binding.namespace_import = True
    return binding


def _tree_imports(tree: SyntaxTree) -> tuple[list[str], list[ImportBinding]]:
    specifiers: list[str] = []
    bindings: list[ImportBinding] = []
    for node in tree.walk():
        if node.type == "import_statement":
            specifier = _string_value(tree, node.child_by_field_name("source"))
            if specifier is None:
                continue
            specifiers.append(specifier)
            binding = _import_statement_binding(tree, node, specifier)
            if binding is not None:
                bindings.append(binding)
        elif node.type == "call_expression":
            specifier = _require_specifier(tree, node)
            if specifier is None:
                continue
            specifiers.append(specifier)
            parent = node.parent
            if parent is not None and parent.type == "variable_declarator" and parent.child_by_field_name("value") == node:
                bindings.append(_require_binding(tree, parent, specifier))
    return specifiers, bindings


def extract_module_facts(file: SourceFile) -> ModuleFacts:
    parsed = parse_source(file.content, file.extension)
    if parsed.tree is None:
        return ModuleFacts(
            specifiers=extract_relative_specifiers(file.content),
            bindings=extract_import_bindings(file.content),
            exports=extract_exports(file.content),
            used_fallback=True,
        )
    specifiers, bindings = _tree_imports(parsed.tree)
    return ModuleFacts(
        specifiers=[item for item in specifiers if item.startswith(".")],
        bindings=bindings,
        exports=_tree_exports(parsed.tree),
        used_fallback=parsed.used_fallback,
    )


def build_reference_graph(files: list[SourceFile]) -> ReferenceGraph:
    graph = ReferenceGraph.for_paths(file.relative_path for file in files)
    for file in files:
        facts = extract_module_facts(file)
        if facts.used_fallback:
            graph.fallback_files.append(file.relative_path)

        for specifier in facts.specifiers:
            resolved = resolve_relative_import(file.relative_path, specifier, graph.incoming)
            if resolved is not None:
                graph.add_edge(file.relative_path, resolved)

        graph.exports[file.relative_path] = facts.exports

        for binding in facts.bindings:
            if not binding.specifier.startswith("."):
                continue
            resolved = resolve_relative_import(file.relative_path, binding.specifier, graph.incoming)
            if resolved is not None:
                graph.record_usage(resolved, binding)
    return graph


def entrypoint_matcher(config: DeadCodeConfig):
    names = "|".join(re.escape(name) for name in config.entrypoint_names) or r"(?!)"
    dirs = "|".join(re.escape(name.strip("/")) for name in config.entrypoint_dirs) or r"(?!)"
    name_re = re.compile(rf"(^|/)({names})\.(js|jsx|ts|tsx|mjs|cjs)$")
    dir_re = re.compile(rf"(^|/)({dirs})/")

    def is_entrypoint(relative_path: str) -> bool:
        return bool(name_re.search(relative_path) or dir_re.search(relative_path))

    return is_entrypoint


def is_entrypoint(relative_path: str, config: DeadCodeConfig | None = None) -> bool:
    return entrypoint_matcher(config or DeadCodeConfig())(relative_path)


def source_root_prefix(files: list[SourceFile], config: DeadCodeConfig) -> str:
    root = config.source_root.strip().strip("/")
    if root == "auto":
        return "src/" if any(file.relative_path.startswith("src/") for file in files) else ""
    if root in {"", "."}:
        return ""
    return f"{root}/"


def code_line_count(content: str) -> int:
    count = 0
    for line in content.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(("//", "/*", "*")) or BRACE_ONLY_RE.match(trimmed):
            continue
        count += 1
    return count


def is_reexport_only(content: str) -> bool:
    lines = [line.strip() for line in content.split("\n") if line.strip()]
    return bool(lines) and all(REEXPORT_LINE_RE.match(line) for line in lines)


def _dedupe(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def analyze_dead_code(files: list[SourceFile], context: AnalyzerContext | None = None) -> Category:
    config = (context or AnalyzerContext()).config.deadcode
    entrypoint = entrypoint_matcher(config)
    prefix = source_root_prefix(files, config)

    graph = build_reference_graph(files)

    orphan_files = [
        file.relative_path
        for file in files
        if file.relative_path.startswith(prefix)
        and not graph.incoming[file.relative_path]
        and not entrypoint(file.relative_path)
    ]

    unused_exports: list[dict[str, str]] = []
    for path, exports in graph.exports.items():
        if exports.empty or entrypoint(path):
            continue
        used = graph.usage_for(path)
        if used.namespace_import:
            continue
        for name in sorted(exports.named):
            if name not in used.named:
                unused_exports.append({"file": path, "name": name})
        if exports.has_default and not used.default_import:
            unused_exports.append({"file": path, "name": "default"})

    stub_files: list[dict[str, object]] = []
    for file in files:
        lines = code_line_count(file.content)
        if lines < config.min_code_lines or is_reexport_only(file.content):
            stub_files.append({"file": file.relative_path, "lines": lines})

    findings: list[Finding] = []
    if orphan_files:
        findings.append(
            Finding(
                severity="high" if len(orphan_files) > 5 else "medium",
                message=f"{len(orphan_files)} orphan files are not imported anywhere.",
                files=orphan_files[:MAX_LISTED_FILES],
            )
        )
    if unused_exports:
        findings.append(
            Finding(
                severity="medium",
                message=f"{len(unused_exports)} exports are never imported.",
                files=_dedupe(item["file"] for item in unused_exports)[:MAX_LISTED_FILES],
            )
        )
    if stub_files:
        findings.append(
            Finding(
                severity="low",
                message=f"{len(stub_files)} files look like stubs or thin re-export shells.",
                files=[str(item["file"]) for item in stub_files][:MAX_LISTED_FILES],
            )
        )

    signal = len(orphan_files) * 2 + len(unused_exports) + len(stub_files)
    score = score_from_ratio(signal / max(len(files) * 0.6, 1))
    logger.debug(
        "dead code: %d orphans, %d unused exports, %d stubs, %d regex-only files",
        len(orphan_files),
        len(unused_exports),
        len(stub_files),
        len(graph.fallback_files),
    )

    return Category(
        id="deadcode",
        title="DEAD CODE",
        score=score,
        severity=severity_from_score(score),
        total_issues=len(orphan_files) + len(unused_exports) + len(stub_files),
        summary=f"{len(findings)} dead-code signals found." if findings else "No major dead-code hotspots detected.",
        findings=findings,
        metrics={
            "orphanFiles": orphan_files,
            "unusedExports": unused_exports,
            "stubFiles": stub_files,
            "sourceRoot": prefix.rstrip("/") or ".",
            "regexFallbackFiles": graph.fallback_files,
        },
        recommendations=[
            "Delete or wire orphan files into active code paths.",
            "Remove unused exports or consume them where needed.",
            "Consolidate stub/re-export files where they do not add structure.",
        ],
    )
