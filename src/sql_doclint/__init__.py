# Classification
from .classify import Dialect, classify, parse_dialect

# Configuration
from .config import LinterConfig, load_config

# Observability
from .observability import LoggingMetricsHook, MetricsHook, NoOpMetricsHook

# Parsers
from .parsers import (
    DocumentIndex,
    Heading,
    MarkdownParser,
    ParsedDocument,
    ParseError,
    Snippet,
    splice_snippets,
)

# Pipeline
from .pipeline import LintRun, lint_document, lint_file

# Report
from .report import Report, build_report, build_toc, regenerate_toc, render_text

# Validation
from .validation import Outcome, SyntaxValidator, ValidationResult

__all__ = [
    # Classification
    "Dialect",
    "classify",
    "parse_dialect",
    # Configuration
    "LinterConfig",
    "load_config",
    # Observability
    "LoggingMetricsHook",
    "MetricsHook",
    "NoOpMetricsHook",
    # Parsers
    "DocumentIndex",
    "Heading",
    "MarkdownParser",
    "ParseError",
    "ParsedDocument",
    "Snippet",
    "splice_snippets",
    # Pipeline
    "LintRun",
    "lint_document",
    "lint_file",
    # Report
    "Report",
    "build_report",
    "build_toc",
    "regenerate_toc",
    "render_text",
    # Validation
    "Outcome",
    "SyntaxValidator",
    "ValidationResult",
]
