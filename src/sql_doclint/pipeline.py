# src/sql_doclint/pipeline.py

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from time import monotonic

from sql_doclint.classify.classifier import classify
from sql_doclint.config import LinterConfig
from sql_doclint.observability import names
from sql_doclint.observability.base import MetricsHook, NoOpMetricsHook
from sql_doclint.parsers.markdown_parser import MarkdownParser
from sql_doclint.parsers.models import ParsedDocument, Snippet
from sql_doclint.report.report import Report, build_report
from sql_doclint.report.toc import regenerate_toc
from sql_doclint.validation.features import default_registry
from sql_doclint.validation.validator import SyntaxValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LintRun:
    """Everything produced by one pass over a document."""

    document: ParsedDocument
    report: Report
    rewritten: str

    @property
    def toc_changed(self) -> bool:
        return self.rewritten != self.document.source


def select_snippets(snippets: Iterable[Snippet], config: LinterConfig) -> list[Snippet]:
    """SQL snippets only: tagged with a SQL language, or untagged if allowed."""
    languages = set(config.sql_languages)
    selected = []
    for snippet in snippets:
        if snippet.language in languages:
            selected.append(snippet)
        elif not snippet.language and config.include_untagged:
            selected.append(snippet)
    return selected


def lint_document(
    text: str,
    config: LinterConfig = LinterConfig(),
    *,
    source: str = "",
    validator: SyntaxValidator | None = None,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> LintRun:
    """Extract, classify and validate every SQL snippet of a document.

    The whole document is extracted before anything is validated, so a
    ParseError never leaves a partial report behind.

    Raises:
        ParseError: If a code fence is never closed.
    """
    start = monotonic()
    parser = MarkdownParser(
        toc_start_marker=config.toc_start_marker,
        toc_end_marker=config.toc_end_marker,
    )
    document = parser.parse(text)
    elapsed_ms = 1000 * (monotonic() - start)
    metrics_hook.record_latency(names.EXTRACTION_DURATION, elapsed_ms)
    metrics_hook.increment(names.SNIPPETS_EXTRACTED, len(document.snippets))

    snippets = select_snippets(document.snippets, config)
    metrics_hook.increment(names.SNIPPETS_SELECTED, len(snippets))
    logger.info(
        "Extracted %d snippets (%d SQL) from %s",
        len(document.snippets),
        len(snippets),
        source or "document",
    )

    validator = validator or SyntaxValidator(
        registry=default_registry(config.allow_features), metrics_hook=metrics_hook
    )
    pairs = []
    for snippet in snippets:
        dialect = config.dialect or classify(
            snippet, use_heading_hints=config.use_heading_hints
        )
        pairs.append((snippet, validator.validate(snippet, dialect)))

    report = build_report(pairs, source=source)
    rewritten = regenerate_toc(text, config, metrics_hook=metrics_hook)
    logger.info(
        "Validated %d snippets: %s",
        report.total,
        ", ".join(f"{count} {outcome}" for outcome, count in report.counts.items()),
    )
    return LintRun(document=document, report=report, rewritten=rewritten)


def lint_file(
    path: str | Path,
    config: LinterConfig = LinterConfig(),
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> LintRun:
    """Lint a markdown file, writing the regenerated TOC back when asked.

    The file is only rewritten when config.write_toc is set and the TOC
    actually changed.
    """
    path = Path(path)
    with open(path, encoding="utf-8", newline="") as f:
        text = f.read()
    run = lint_document(text, config, source=str(path), metrics_hook=metrics_hook)
    if config.write_toc and run.toc_changed:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(run.rewritten)
        logger.info("Rewrote table of contents in %s", path)
    return run
