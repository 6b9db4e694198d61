from __future__ import annotations

from collections.abc import Callable

from vibeclean.analyzers.common import AnalyzerContext
from vibeclean.analyzers.deadcode import analyze_dead_code
from vibeclean.analyzers.dependencies import analyze_dependencies
from vibeclean.analyzers.errorhandling import analyze_error_handling
from vibeclean.analyzers.leftovers import analyze_leftovers
from vibeclean.analyzers.naming import analyze_naming
from vibeclean.analyzers.patterns import analyze_patterns
from vibeclean.analyzers.security import analyze_security
from vibeclean.analyzers.tsquality import analyze_ts_quality
from vibeclean.logging import get_logger
from vibeclean.schemas import Category, SourceFile

Analyzer = Callable[[list[SourceFile], AnalyzerContext], Category]

logger = get_logger("engine")

ANALYZERS: tuple[tuple[str, Analyzer], ...] = (
    ("naming", analyze_naming),
    ("patterns", analyze_patterns),
    ("leftovers", analyze_leftovers),
    ("security", analyze_security),
    ("dependencies", analyze_dependencies),
    ("deadcode", analyze_dead_code),
    ("errorhandling", analyze_error_handling),
    ("tsquality", analyze_ts_quality),
)


def run_analyzers(files: list[SourceFile], context: AnalyzerContext) -> list[Category]:
    """Run every enabled analyzer in a fixed order over the same read-only file list."""
    categories: list[Category] = []
    for name, analyzer in ANALYZERS:
        if not context.config.rule_enabled(name):
            logger.debug("rule disabled: %s", name)
            continue
        category = analyzer(files, context)
        logger.debug("%s scored %d with %d issues", name, category.score, category.total_issues)
        categories.append(category)
    return categories
