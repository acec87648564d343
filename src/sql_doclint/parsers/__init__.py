from .base import DocumentParser, ParseError
from .markdown_parser import MarkdownParser, heading_text, slugify, splice_snippets
from .models import DocumentIndex, Heading, ParsedDocument, Snippet, TocSpan

__all__ = [
    "DocumentIndex",
    "DocumentParser",
    "Heading",
    "MarkdownParser",
    "ParseError",
    "ParsedDocument",
    "Snippet",
    "TocSpan",
    "heading_text",
    "slugify",
    "splice_snippets",
]
