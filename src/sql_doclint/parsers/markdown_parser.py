# parsers/markdown_parser.py

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .base import DocumentParser, ParseError
from .models import DocumentIndex, Heading, ParsedDocument, Snippet, TocSpan

logger = logging.getLogger(__name__)

DEFAULT_TOC_START = "<!-- toc -->"
DEFAULT_TOC_END = "<!-- tocstop -->"

_FENCE_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
_ATX_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_CLOSING_HASHES_RE = re.compile(r"(?:^|[ \t]+)#+$")
_LINK_RE = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")
_SLUG_DROP_RE = re.compile(r"[^\w\- ]", re.UNICODE)


def slugify(title: str) -> str:
    """GitHub-style anchor for a heading title (without duplicate suffix)."""
    text = _LINK_RE.sub(r"\1", title).strip().lower()
    text = _SLUG_DROP_RE.sub("", text)
    return text.replace(" ", "-")


def heading_text(title: str) -> str:
    """Heading title with inline links reduced to their label."""
    return _LINK_RE.sub(r"\1", title).strip()


@dataclass(frozen=True)
class _Line:
    number: int
    offset: int
    raw: str

    @property
    def content(self) -> str:
        return self.raw.rstrip("\r\n")

    @property
    def end(self) -> int:
        return self.offset + len(self.raw)


@dataclass
class _OpenFence:
    line: _Line
    char: str
    length: int
    info: str


def _split_lines(text: str) -> list[_Line]:
    lines = []
    offset = 0
    for number, raw in enumerate(text.splitlines(keepends=True)):
        lines.append(_Line(number=number, offset=offset, raw=raw))
        offset += len(raw)
    return lines


def _opening_fence(line: _Line) -> _OpenFence | None:
    match = _FENCE_RE.match(line.content)
    if not match:
        return None
    marker, info = match.group(2), match.group(3).strip()
    # Backtick fences cannot carry backticks in their info string.
    if marker[0] == "`" and "`" in info:
        return None
    return _OpenFence(line=line, char=marker[0], length=len(marker), info=info)


def _closes(fence: _OpenFence, line: _Line) -> bool:
    match = _FENCE_RE.match(line.content)
    if not match:
        return False
    marker, rest = match.group(2), match.group(3)
    return marker[0] == fence.char and len(marker) >= fence.length and not rest.strip()


def _parse_heading(line: _Line) -> tuple[int, str] | None:
    match = _ATX_RE.match(line.content)
    if not match:
        return None
    title = match.group(2) or ""
    title = _CLOSING_HASHES_RE.sub("", title).strip()
    return len(match.group(1)), title


@dataclass(frozen=True)
class _FenceScan:
    """Lines covered by fences and the fenced blocks keyed by opening line."""

    covered: frozenset[int]
    blocks: dict[int, tuple[_OpenFence, _Line]]


class MarkdownParser(DocumentParser):
    """
    Deterministic markdown block extractor.
    - Fenced blocks only (backtick and tilde fences)
    - ATX headings drive the heading path
    - Headings inside fences or the TOC region are ignored
    """

    def __init__(
        self,
        toc_start_marker: str = DEFAULT_TOC_START,
        toc_end_marker: str = DEFAULT_TOC_END,
    ) -> None:
        self.toc_start_marker = toc_start_marker
        self.toc_end_marker = toc_end_marker

    def iter_snippets(self, text: str) -> Iterator[Snippet]:
        lines = _split_lines(text)
        scan = self._scan_fences(text, lines)
        toc_span = self._find_toc_span(lines, scan)

        stack: list[tuple[int, str]] = []
        index = 0
        for line in lines:
            if line.number not in scan.covered:
                if _in_span(toc_span, line.number):
                    continue
                heading = _parse_heading(line)
                if heading is not None:
                    level, title = heading
                    while stack and stack[-1][0] >= level:
                        stack.pop()
                    stack.append((level, title))
                continue

            block = scan.blocks.get(line.number)
            if block is None:
                continue
            fence, close_line = block
            body_start = fence.line.end
            body_end = close_line.offset
            language = fence.info.split()[0].lower() if fence.info else ""
            snippet = Snippet(
                index=index,
                heading_path=tuple(title for _, title in stack),
                language=language,
                info=fence.info,
                text=text[body_start:body_end],
                offset_start=body_start,
                offset_end=body_end,
                line=fence.line.number,
                fence=fence.char * fence.length,
            )
            logger.debug(
                "Extracted snippet %d (%s) at line %d",
                index,
                language or "untagged",
                fence.line.number + 1,
            )
            index += 1
            yield snippet

    def iter_headings(self, text: str) -> Iterator[Heading]:
        lines = _split_lines(text)
        scan = self._scan_fences(text, lines)
        toc_span = self._find_toc_span(lines, scan)

        seen: dict[str, int] = {}
        for line in lines:
            if line.number in scan.covered or _in_span(toc_span, line.number):
                continue
            heading = _parse_heading(line)
            if heading is None:
                continue
            level, title = heading
            base = slugify(title)
            count = seen.get(base, 0)
            seen[base] = count + 1
            slug = base if count == 0 else f"{base}-{count}"
            yield Heading(level=level, title=title, line=line.number, slug=slug)

    def find_toc_span(self, text: str) -> TocSpan | None:
        lines = _split_lines(text)
        return self._find_toc_span(lines, self._scan_fences(text, lines))

    def parse(self, text: str) -> ParsedDocument:
        snippets = tuple(self.iter_snippets(text))
        index = DocumentIndex(headings=tuple(self.iter_headings(text)))
        return ParsedDocument(
            source=text,
            snippets=snippets,
            index=index,
            toc_span=self.find_toc_span(text),
            metadata={"source_type": "markdown"},
        )

    def _scan_fences(self, text: str, lines: list[_Line]) -> _FenceScan:
        covered: set[int] = set()
        blocks: dict[int, tuple[_OpenFence, _Line]] = {}
        fence: _OpenFence | None = None
        for line in lines:
            if fence is None:
                fence = _opening_fence(line)
                if fence is not None:
                    covered.add(line.number)
                continue
            covered.add(line.number)
            if _closes(fence, line):
                blocks[fence.line.number] = (fence, line)
                fence = None

        if fence is not None:
            byte_offset = len(text[: fence.line.offset].encode("utf-8"))
            logger.error(
                "Unterminated fence opened at line %d", fence.line.number + 1
            )
            raise ParseError(
                f"Unterminated code fence {fence.char * fence.length!r}",
                line=fence.line.number,
                byte_offset=byte_offset,
            )
        return _FenceScan(covered=frozenset(covered), blocks=blocks)

    def _find_toc_span(self, lines: list[_Line], scan: _FenceScan) -> TocSpan | None:
        start: int | None = None
        for line in lines:
            if line.number in scan.covered:
                continue
            content = line.content.strip()
            if start is None and content == self.toc_start_marker:
                start = line.number
            elif start is not None and content == self.toc_end_marker:
                return TocSpan(start_line=start, end_line=line.number)
        if start is not None:
            logger.warning(
                "TOC start marker at line %d has no end marker; ignoring it",
                start + 1,
            )
        return None


def _in_span(span: TocSpan | None, line_number: int) -> bool:
    return span is not None and span.start_line <= line_number <= span.end_line


def splice_snippets(source: str, snippets: Iterable[Snippet]) -> str:
    """Write snippet bodies back into the source at their offsets."""
    parts = []
    cursor = 0
    for snippet in sorted(snippets, key=lambda s: s.offset_start):
        parts.append(source[cursor : snippet.offset_start])
        parts.append(snippet.text)
        cursor = snippet.offset_end
    parts.append(source[cursor:])
    return "".join(parts)
