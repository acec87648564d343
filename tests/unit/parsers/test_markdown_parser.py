import logging
from dataclasses import replace

import pytest

from sql_doclint.parsers.base import ParseError
from sql_doclint.parsers.markdown_parser import (
    MarkdownParser,
    heading_text,
    slugify,
    splice_snippets,
)
from sql_doclint.parsers.models import TocSpan

DOC = (
    "# Guide\n"
    "\n"
    "## Setup\n"
    "\n"
    "```sql\n"
    "SELECT 1;\n"
    "```\n"
    "\n"
    "### PostgreSQL notes\n"
    "\n"
    "```postgresql title=example\n"
    "SELECT now();\n"
    "```\n"
    "\n"
    "## Usage\n"
    "\n"
    "```\n"
    "plain text\n"
    "```\n"
)


@pytest.fixture
def parser() -> MarkdownParser:
    return MarkdownParser()


class TestIterSnippets:
    def test_extracts_every_fenced_block_in_order(self, parser: MarkdownParser) -> None:
        """All fenced blocks are yielded with sequential indexes."""
        snippets = list(parser.iter_snippets(DOC))

        assert [s.index for s in snippets] == [0, 1, 2]
        assert [s.text for s in snippets] == [
            "SELECT 1;\n",
            "SELECT now();\n",
            "plain text\n",
        ]

    def test_language_and_info_are_preserved(self, parser: MarkdownParser) -> None:
        """The first info word is the language; the full info string is kept."""
        snippets = list(parser.iter_snippets(DOC))

        assert [s.language for s in snippets] == ["sql", "postgresql", ""]
        assert snippets[1].info == "postgresql title=example"

    def test_heading_path_follows_heading_levels(self, parser: MarkdownParser) -> None:
        """Deeper headings nest; a shallower heading pops the stack."""
        snippets = list(parser.iter_snippets(DOC))

        assert snippets[0].heading_path == ("Guide", "Setup")
        assert snippets[1].heading_path == ("Guide", "Setup", "PostgreSQL notes")
        assert snippets[2].heading_path == ("Guide", "Usage")
        assert snippets[2].section == "Guide > Usage"

    def test_offsets_point_into_document(self, parser: MarkdownParser) -> None:
        """Offsets slice the snippet body out of the original text."""
        for snippet in parser.iter_snippets(DOC):
            assert DOC[snippet.offset_start : snippet.offset_end] == snippet.text

    def test_line_is_zero_based_opening_fence(self, parser: MarkdownParser) -> None:
        """Snippet line is the opening fence line."""
        snippets = list(parser.iter_snippets(DOC))

        assert DOC.splitlines()[snippets[0].line] == "```sql"

    def test_snippet_before_any_heading_is_top_level(
        self, parser: MarkdownParser
    ) -> None:
        """Snippets before the first heading have an empty heading path."""
        snippets = list(parser.iter_snippets("```sql\nSELECT 1;\n```\n"))

        assert snippets[0].heading_path == ()
        assert snippets[0].section == "(top)"

    def test_sequence_is_restartable(self, parser: MarkdownParser) -> None:
        """Each call scans the document afresh."""
        assert list(parser.iter_snippets(DOC)) == list(parser.iter_snippets(DOC))

    def test_headings_inside_fences_are_ignored(self, parser: MarkdownParser) -> None:
        """A '#' line inside a fence does not change the heading path."""
        text = "## Real\n\n```bash\n# not a heading\n```\n\n```sql\nSELECT 1;\n```\n"

        snippets = list(parser.iter_snippets(text))

        assert snippets[1].heading_path == ("Real",)

    def test_tilde_fence_can_contain_backticks(self, parser: MarkdownParser) -> None:
        """A backtick line does not close a tilde fence."""
        text = "~~~sql\n```\nSELECT 1;\n~~~\n"

        snippets = list(parser.iter_snippets(text))

        assert len(snippets) == 1
        assert snippets[0].text == "```\nSELECT 1;\n"
        assert snippets[0].fence == "~~~"

    def test_longer_fence_needs_longer_close(self, parser: MarkdownParser) -> None:
        """A closing fence must be at least as long as the opening one."""
        text = "````markdown\n```sql\nSELECT 1;\n```\n````\n"

        snippets = list(parser.iter_snippets(text))

        assert len(snippets) == 1
        assert snippets[0].text == "```sql\nSELECT 1;\n```\n"

    def test_empty_block(self, parser: MarkdownParser) -> None:
        snippets = list(parser.iter_snippets("```sql\n```\n"))

        assert snippets[0].text == ""

    def test_crlf_line_endings(self, parser: MarkdownParser) -> None:
        """Windows line endings are handled and kept in snippet text."""
        text = "## A\r\n```sql\r\nSELECT 1;\r\n```\r\n"

        snippets = list(parser.iter_snippets(text))

        assert snippets[0].text == "SELECT 1;\r\n"
        assert snippets[0].heading_path == ("A",)

    def test_closing_hashes_are_stripped(self, parser: MarkdownParser) -> None:
        snippets = list(parser.iter_snippets("## Title ##\n```sql\nSELECT 1;\n```\n"))

        assert snippets[0].heading_path == ("Title",)


class TestUnterminatedFence:
    def test_raises_parse_error(self, parser: MarkdownParser) -> None:
        """A fence left open at end of document is fatal."""
        with pytest.raises(ParseError, match="Unterminated code fence"):
            list(parser.iter_snippets("# T\n\n```sql\nSELECT 1;\n"))

    def test_reports_line_and_byte_offset(self, parser: MarkdownParser) -> None:
        """The byte offset counts UTF-8 bytes up to the opening fence."""
        text = "# Café\n```sql\nSELECT 1;\n"

        with pytest.raises(ParseError) as exc_info:
            parser.parse(text)

        assert exc_info.value.line == 1
        assert exc_info.value.byte_offset == 8
        assert "(line 2, byte offset 8)" in str(exc_info.value)

    def test_no_snippets_are_yielded_before_error(self, parser: MarkdownParser) -> None:
        """Extraction fails before yielding anything."""
        text = "```sql\nSELECT 1;\n```\n\n```sql\nSELECT 2;\n"
        snippets = parser.iter_snippets(text)

        with pytest.raises(ParseError):
            next(snippets)

    def test_parse_error_is_a_value_error(self) -> None:
        assert issubclass(ParseError, ValueError)


class TestHeadings:
    def test_iter_headings(self, parser: MarkdownParser) -> None:
        headings = list(parser.iter_headings(DOC))

        assert [(h.level, h.title) for h in headings] == [
            (1, "Guide"),
            (2, "Setup"),
            (3, "PostgreSQL notes"),
            (2, "Usage"),
        ]
        assert headings[2].slug == "postgresql-notes"
        assert headings[1].line == 2

    def test_duplicate_slugs_get_suffixes(self, parser: MarkdownParser) -> None:
        """Repeated titles get -1, -2 suffixes like GitHub anchors."""
        text = "## Example\n## Example\n## Example\n"

        slugs = [h.slug for h in parser.iter_headings(text)]

        assert slugs == ["example", "example-1", "example-2"]

    def test_slugify(self) -> None:
        assert slugify("Hello, World!") == "hello-world"
        assert slugify("Using [links](http://example.com) here") == "using-links-here"
        assert slugify("snake_case-name") == "snake_case-name"

    def test_heading_text_keeps_link_labels(self) -> None:
        assert heading_text("See [the docs](docs.md)") == "See the docs"

    def test_parse_builds_index_and_metadata(self, parser: MarkdownParser) -> None:
        document = parser.parse(DOC)

        assert document.source == DOC
        assert len(document.snippets) == 3
        assert len(document.index) == 4
        assert document.metadata == {"source_type": "markdown"}
        assert document.toc_span is None


class TestTocSpan:
    def test_finds_marker_lines(self, parser: MarkdownParser) -> None:
        text = "# T\n<!-- toc -->\n- [Old](#old)\n<!-- tocstop -->\n## New\n"

        assert parser.find_toc_span(text) == TocSpan(start_line=1, end_line=3)

    def test_headings_inside_toc_are_ignored(self, parser: MarkdownParser) -> None:
        text = "<!-- toc -->\n## Fake\n<!-- tocstop -->\n## Real\n"

        assert [h.title for h in parser.iter_headings(text)] == ["Real"]

    def test_markers_inside_fences_are_ignored(self, parser: MarkdownParser) -> None:
        text = "```\n<!-- toc -->\n<!-- tocstop -->\n```\n"

        assert parser.find_toc_span(text) is None

    def test_missing_end_marker_warns(
        self, parser: MarkdownParser, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            span = parser.find_toc_span("<!-- toc -->\n## A\n")

        assert span is None
        assert "no end marker" in caplog.text

    def test_custom_markers(self) -> None:
        parser = MarkdownParser(toc_start_marker="[[toc]]", toc_end_marker="[[/toc]]")

        assert parser.find_toc_span("[[toc]]\n[[/toc]]\n") == TocSpan(0, 1)


class TestSplice:
    def test_round_trip_is_identity(self, parser: MarkdownParser) -> None:
        """Writing unchanged snippets back reproduces the document."""
        snippets = list(parser.iter_snippets(DOC))

        assert splice_snippets(DOC, snippets) == DOC

    def test_round_trip_without_trailing_newline(self, parser: MarkdownParser) -> None:
        text = "## A\n```sql\nSELECT 1;\n```"

        assert splice_snippets(text, parser.iter_snippets(text)) == text

    def test_replaced_body_is_written_in_place(self, parser: MarkdownParser) -> None:
        snippets = list(parser.iter_snippets(DOC))
        edited = [replace(snippets[0], text="SELECT 2;\n"), *snippets[1:]]

        result = splice_snippets(DOC, edited)

        assert "```sql\nSELECT 2;\n```" in result
        assert result.replace("SELECT 2;", "SELECT 1;") == DOC
