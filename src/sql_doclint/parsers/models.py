# parsers/models.py

from dataclasses import dataclass, field

HEADING_PATH_SEPARATOR = " > "


@dataclass(frozen=True)
class Heading:
    level: int
    title: str
    line: int
    slug: str


@dataclass(frozen=True)
class DocumentIndex:
    """Ordered headings of a document.

    Derived from the markdown, never authoritative: the heading lines
    themselves are.
    """

    headings: tuple[Heading, ...] = ()

    def __len__(self) -> int:
        return len(self.headings)

    def __iter__(self):
        return iter(self.headings)


@dataclass(frozen=True)
class Snippet:
    index: int
    heading_path: tuple[str, ...]
    language: str
    info: str
    text: str
    offset_start: int
    offset_end: int
    line: int
    fence: str = "```"

    @property
    def section(self) -> str:
        return HEADING_PATH_SEPARATOR.join(self.heading_path) or "(top)"


@dataclass(frozen=True)
class TocSpan:
    """Zero-based line numbers of the TOC start and end markers."""

    start_line: int
    end_line: int


@dataclass(frozen=True)
class ParsedDocument:
    source: str
    snippets: tuple[Snippet, ...]
    index: DocumentIndex
    toc_span: TocSpan | None = None
    metadata: dict = field(default_factory=dict)
