from __future__ import annotations

import re
from dataclasses import dataclass, field

from tree_sitter import Node

from vibeclean.analyzers.common import (
    MAX_LOCATIONS,
    AnalyzerContext,
    count_matches,
    score_from_ratio,
    severity_from_score,
)
from vibeclean.analyzers.syntax import ParseResult, SyntaxTree, parse_source
from vibeclean.schemas import Category, Finding, Location, SourceFile
from vibeclean.utils import line_snippet, round_half_up

AWAIT_RE = re.compile(r"\bawait\b")
FUNCTION_RE = re.compile(
    r"(?:async\s+)?function\s+[A-Za-z_$][A-Za-z0-9_$]*\s*\("
    r"|\b[A-Za-z_$][A-Za-z0-9_$]*\s*=\s*(?:async\s*)?\([^)]*\)\s*=>"
    r"|\([^)]*\)\s*=>\s*\{"
)
TRY_RE = re.compile(r"\btry\s*\{")
CATCH_RE = re.compile(r"\bcatch\s*[({]")
EMPTY_CATCH_RE = re.compile(r"catch\s*(?:\([^)]*\))?\s*\{\s*\}", re.DOTALL)
LOG_ONLY_CATCH_RE = re.compile(
    r"catch\s*(?:\([^)]*\))?\s*\{\s*console\.(?:log|warn|error|debug)\([^)]*\);?\s*\}",
    re.DOTALL,
)
THEN_RE = re.compile(r"\.then\s*\(")
CATCH_CHAIN_RE = re.compile(r"\.catch\s*\(")
THROW_RE = re.compile(r"\bthrow\b")
RETURN_NULL_RE = re.compile(r"return\s+null\b")
RETURN_ERROR_RE = re.compile(r"return\s+\{\s*error\s*[:}]|return\s+error\b")

LOG_METHODS = {"log", "warn", "error", "debug"}


@dataclass(slots=True)
class AwaitStats:
    total_await: int = 0
    unhandled_await: int = 0
    unhandled_lines: list[int] = field(default_factory=list)
    used_fallback: bool = False


@dataclass(slots=True)
class CatchStats:
    empty_lines: list[int] = field(default_factory=list)
    log_only_lines: list[int] = field(default_factory=list)


def _first_named(node: Node) -> Node | None:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def has_catch_chain(tree: SyntaxTree, node: Node | None) -> bool:
    """True when any link of the awaited member/call chain accesses ``.catch``."""
    current = node
    while current is not None:
        if current.type == "parenthesized_expression":
            current = _first_named(current)
        elif current.type == "call_expression":
            current = current.child_by_field_name("function")
        elif current.type == "member_expression":
            prop = current.child_by_field_name("property")
            if prop is not None and tree.text(prop) == "catch":
                return True
            current = current.child_by_field_name("object")
        else:
            return False
    return False


def await_stats_from_tree(tree: SyntaxTree) -> AwaitStats:
    stats = AwaitStats()
    stack: list[tuple[Node, bool]] = [(tree.root, False)]
    while stack:
        node, in_try = stack.pop()

        if node.type == "await_expression":
            stats.total_await += 1
            if not in_try and not has_catch_chain(tree, _first_named(node)):
                stats.unhandled_await += 1
                stats.unhandled_lines.append(tree.line_of(node))

        if node.type == "try_statement":
            # The catch and finally bodies are not themselves protected.
            for field_name, protected in (("finalizer", False), ("handler", False), ("body", True)):
                child = node.child_by_field_name(field_name)
                if child is not None:
                    stack.append((child, protected))
            continue

        stack.extend((child, in_try) for child in reversed(node.named_children))
    stats.unhandled_lines.sort()
    return stats


def count_await_stats(content: str, extension: str | None = None, parsed: ParseResult | None = None) -> AwaitStats:
    parsed = parsed or parse_source(content, extension)
    if parsed.tree is None:
        return AwaitStats(total_await=count_matches(content, AWAIT_RE), unhandled_await=0, used_fallback=True)
    return await_stats_from_tree(parsed.tree)


def _is_console_log(tree: SyntaxTree, statement: Node) -> bool:
    if statement.type != "expression_statement":
        return False
    call = _first_named(statement)
    if call is None or call.type != "call_expression":
        return False
    function = call.child_by_field_name("function")
    if function is None or function.type != "member_expression":
        return False
    target = function.child_by_field_name("object")
    prop = function.child_by_field_name("property")
    return tree.text(target) == "console" and tree.text(prop) in LOG_METHODS


def catch_stats_from_tree(tree: SyntaxTree) -> CatchStats:
    stats = CatchStats()
    for clause in tree.nodes_of_type("catch_clause"):
        body = clause.child_by_field_name("body")
        if body is None:
            continue
        statements = body.named_children
        if not statements:
            stats.empty_lines.append(tree.line_of(clause))
        elif len(statements) == 1 and _is_console_log(tree, statements[0]):
            stats.log_only_lines.append(tree.line_of(clause))
    return stats


def _catch_stats_fallback(content: str) -> CatchStats:
    stats = CatchStats()
    for pattern, bucket in ((EMPTY_CATCH_RE, stats.empty_lines), (LOG_ONLY_CATCH_RE, stats.log_only_lines)):
        bucket.extend(content.count("\n", 0, match.start()) + 1 for match in pattern.finditer(content))
    return stats


def _locations(file: SourceFile, lines: list[int], sink: list[Location]) -> None:
    for line in lines:
        if len(sink) >= MAX_LOCATIONS:
            return
        sink.append(Location(file=file.relative_path, line=line, snippet=line_snippet(file.content, line)))


def analyze_error_handling(files: list[SourceFile], context: AnalyzerContext | None = None) -> Category:
    total_functions = 0
    try_blocks = 0
    catch_blocks = 0
    empty_catch = 0
    catch_log_only = 0
    total_await = 0
    unhandled_await = 0
    then_chains = 0
    catch_chains = 0
    throw_count = 0
    return_null_count = 0
    return_error_object_count = 0
    fallback_files: list[str] = []

    await_locations: list[Location] = []
    empty_catch_locations: list[Location] = []
    log_only_locations: list[Location] = []

    for file in files:
        content = file.content
        total_functions += count_matches(content, FUNCTION_RE)
        try_blocks += count_matches(content, TRY_RE)
        catch_blocks += count_matches(content, CATCH_RE)

        parsed = parse_source(content, file.extension)
        awaits = count_await_stats(content, parsed=parsed)
        if parsed.tree is None:
            fallback_files.append(file.relative_path)
            catches = _catch_stats_fallback(content)
        else:
            catches = catch_stats_from_tree(parsed.tree)

        total_await += awaits.total_await
        unhandled_await += awaits.unhandled_await
        empty_catch += len(catches.empty_lines)
        catch_log_only += len(catches.log_only_lines)
        _locations(file, awaits.unhandled_lines, await_locations)
        _locations(file, catches.empty_lines, empty_catch_locations)
        _locations(file, catches.log_only_lines, log_only_locations)

        then_chains += count_matches(content, THEN_RE)
        catch_chains += count_matches(content, CATCH_CHAIN_RE)
        throw_count += count_matches(content, THROW_RE)
        return_null_count += count_matches(content, RETURN_NULL_RE)
        return_error_object_count += count_matches(content, RETURN_ERROR_RE)

    functions_with_try = min(total_functions, try_blocks)
    handled_rate = round_half_up(functions_with_try / total_functions * 100) if total_functions else 100
    promise_without_catch = max(0, then_chains - catch_chains)

    findings: list[Finding] = []
    if handled_rate < 60:
        findings.append(
            Finding(
                severity="high" if handled_rate < 40 else "medium",
                message=f"Only {handled_rate}% of detected functions use try/catch.",
            )
        )
    if empty_catch:
        findings.append(
            Finding(
                severity="high",
                message=f"{empty_catch} empty catch blocks found.",
                locations=empty_catch_locations,
            )
        )
    if catch_log_only:
        findings.append(
            Finding(
                severity="medium",
                message=f"{catch_log_only} catch blocks only log errors and do not recover or rethrow.",
                locations=log_only_locations,
            )
        )
    if unhandled_await:
        findings.append(
            Finding(
                severity="high",
                message=f"{unhandled_await} await calls appear to be outside local try/catch context.",
                locations=await_locations,
            )
        )
    if promise_without_catch:
        findings.append(
            Finding(
                severity="medium",
                message=f"{promise_without_catch} promise chains appear to miss .catch() handling.",
            )
        )

    propagation_styles = sum(1 for count in (throw_count, return_null_count, return_error_object_count) if count)
    if propagation_styles > 1:
        findings.append(
            Finding(
                severity="medium",
                message="Mixed error return patterns detected (throw, return null, and/or return error objects).",
            )
        )

    await_risk = unhandled_await / total_await * 2 if total_await else 0.0
    promise_risk = promise_without_catch / then_chains * 2 if then_chains else 0.0
    signal = (
        ((50 - handled_rate) / 18 if handled_rate < 50 else 0.0)
        + empty_catch * 1.5
        + catch_log_only
        + await_risk
        + promise_risk
    )
    score = score_from_ratio(signal / max(len(files) * 0.8, 1))

    return Category(
        id="errorhandling",
        title="ERROR HANDLING",
        score=score,
        severity=severity_from_score(score),
        total_issues=len(findings),
        summary=(
            "Inconsistent error handling patterns detected in async and promise code paths."
            if findings
            else "Error handling patterns look reasonably consistent."
        ),
        findings=findings,
        metrics={
            "totalFunctions": total_functions,
            "functionsWithTry": functions_with_try,
            "handledRate": handled_rate,
            "tryBlocks": try_blocks,
            "catchBlocks": catch_blocks,
            "emptyCatch": empty_catch,
            "catchLogOnly": catch_log_only,
            "totalAwait": total_await,
            "unhandledAwait": unhandled_await,
            "promiseWithoutCatch": promise_without_catch,
            "throwCount": throw_count,
            "returnNullCount": return_null_count,
            "returnErrorObjectCount": return_error_object_count,
            "regexFallbackFiles": fallback_files,
        },
        recommendations=[
            "Wrap async operations in try/catch and surface errors consistently.",
            "Avoid empty catch blocks and catch-and-log-only handlers.",
            "Use one error propagation pattern across the codebase.",
        ],
    )
