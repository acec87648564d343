# src/sql_doclint/report/toc.py

import logging
from time import monotonic

from sql_doclint.config import LinterConfig
from sql_doclint.observability import names
from sql_doclint.observability.base import MetricsHook, NoOpMetricsHook
from sql_doclint.parsers.markdown_parser import MarkdownParser, heading_text
from sql_doclint.parsers.models import DocumentIndex

logger = logging.getLogger(__name__)


def build_toc(index: DocumentIndex, *, min_level: int = 2, max_level: int = 3) -> str:
    """Render headings as a nested markdown list of anchor links."""
    headings = [h for h in index if min_level <= h.level <= max_level]
    if not headings:
        return ""
    base = min(h.level for h in headings)
    lines = [
        f"{'  ' * (h.level - base)}- [{heading_text(h.title)}](#{h.slug})"
        for h in headings
    ]
    return "\n".join(lines) + "\n"


def _newline(lines: list[str]) -> str:
    for line in lines:
        if line.endswith("\r\n"):
            return "\r\n"
        if line.endswith("\n"):
            return "\n"
    return "\n"


def _with_newline(line: str, newline: str) -> str:
    return line if line.endswith(("\n", "\r")) else line + newline


def regenerate_toc(
    text: str,
    config: LinterConfig = LinterConfig(),
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> str:
    """Replace the TOC between the markers with one built from the headings.

    Idempotent: running it on its own output changes nothing. Documents
    without markers are returned unchanged unless insert_toc_if_missing is
    set.
    """
    start = monotonic()
    parser = MarkdownParser(
        toc_start_marker=config.toc_start_marker,
        toc_end_marker=config.toc_end_marker,
    )
    span = parser.find_toc_span(text)
    index = DocumentIndex(headings=tuple(parser.iter_headings(text)))

    lines = text.splitlines(keepends=True)
    newline = _newline(lines)
    toc = build_toc(
        index, min_level=config.toc_min_level, max_level=config.toc_max_level
    )
    toc_lines = [line + newline for line in toc.splitlines()]

    if span is not None:
        result = lines[: span.start_line + 1] + toc_lines + lines[span.end_line :]
    elif config.insert_toc_if_missing:
        at = next((h.line + 1 for h in index if h.level == 1), 0)
        head = lines[:at]
        if head:
            head[-1] = _with_newline(head[-1], newline)
        block = [
            newline,
            config.toc_start_marker + newline,
            *toc_lines,
            config.toc_end_marker + newline,
        ]
        result = head + block + lines[at:]
        logger.info("Inserted TOC markers after line %d", at)
    else:
        logger.warning("No TOC markers found; leaving the document unchanged")
        result = lines

    elapsed_ms = 1000 * (monotonic() - start)
    metrics_hook.record_latency(names.TOC_REGENERATION_DURATION, elapsed_ms)
    metrics_hook.increment(names.TOC_HEADINGS_TOTAL, len(toc_lines))
    return "".join(result)


def toc_is_current(text: str, config: LinterConfig = LinterConfig()) -> bool:
    return regenerate_toc(text, config) == text
