from pathlib import Path
from unittest.mock import Mock

import pytest

from sql_doclint.classify.dialects import Dialect
from sql_doclint.config import LinterConfig
from sql_doclint.observability import names
from sql_doclint.parsers.base import ParseError
from sql_doclint.parsers.markdown_parser import MarkdownParser
from sql_doclint.pipeline import lint_document, lint_file, select_snippets
from sql_doclint.report.report import render_json, render_text
from sql_doclint.validation.types import Outcome

GUIDE = """# Guide

<!-- toc -->
<!-- tocstop -->

## Queries

```sql
SELECT * FROM employees;
```

### SQL Server

```sql
SELECT TOP 10 * FROM employees;
```

### Broken

```postgresql
SELECT * FROM employees WHERE;
```

## Shell

```bash
ls -la
```

```
SELECT 1;
```
"""

GUIDE_TOC = (
    "- [Queries](#queries)\n"
    "  - [SQL Server](#sql-server)\n"
    "  - [Broken](#broken)\n"
    "- [Shell](#shell)\n"
)


@pytest.fixture
def guide_file(tmp_path: Path) -> Path:
    path = tmp_path / "guide.md"
    path.write_text(GUIDE, encoding="utf-8")
    return path


class TestSelectSnippets:
    def test_only_sql_languages_are_selected(self) -> None:
        snippets = list(MarkdownParser().iter_snippets(GUIDE))

        selected = select_snippets(snippets, LinterConfig())

        assert [s.index for s in selected] == [0, 1, 2]

    def test_untagged_blocks_can_be_included(self) -> None:
        snippets = list(MarkdownParser().iter_snippets(GUIDE))

        selected = select_snippets(snippets, LinterConfig(include_untagged=True))

        assert [s.index for s in selected] == [0, 1, 2, 4]

    def test_custom_languages(self) -> None:
        snippets = list(MarkdownParser().iter_snippets(GUIDE))

        selected = select_snippets(snippets, LinterConfig(sql_languages=("bash",)))

        assert [s.language for s in selected] == ["bash"]


class TestLintDocument:
    def test_classifies_and_validates_each_sql_snippet(self) -> None:
        run = lint_document(GUIDE, source="guide.md")
        results = [e.result for e in run.report.entries]

        assert [r.dialect for r in results] == [
            Dialect.GENERIC,
            Dialect.SQLSERVER,
            Dialect.POSTGRESQL,
        ]
        assert [r.outcome for r in results] == [
            Outcome.VALID,
            Outcome.VALID,
            Outcome.INVALID,
        ]
        assert run.report.source == "guide.md"
        assert run.report.has_invalid

    def test_results_are_one_to_one_with_snippets(self) -> None:
        run = lint_document(GUIDE)

        for entry in run.report.entries:
            assert entry.result.snippet_index == entry.snippet.index

    def test_dialect_override(self) -> None:
        run = lint_document(GUIDE, LinterConfig(dialect=Dialect.POSTGRESQL))

        assert run.report.counts == {
            "valid": 1,
            "invalid": 1,
            "unsupported-dialect": 1,
        }

    def test_allowed_features_are_accepted_in_every_dialect(self) -> None:
        config = LinterConfig(dialect=Dialect.POSTGRESQL, allow_features=("top",))

        run = lint_document(GUIDE, config)

        assert run.report.counts == {
            "valid": 2,
            "invalid": 1,
            "unsupported-dialect": 0,
        }

    def test_heading_hints_can_be_disabled(self) -> None:
        run = lint_document(GUIDE, LinterConfig(use_heading_hints=False))

        assert run.report.entries[1].result.dialect is Dialect.GENERIC

    def test_toc_is_regenerated(self) -> None:
        run = lint_document(GUIDE)

        assert run.toc_changed
        assert "<!-- toc -->\n" + GUIDE_TOC + "<!-- tocstop -->\n" in run.rewritten
        assert run.document.source == GUIDE

    def test_unterminated_fence_raises_before_any_report(self) -> None:
        validator = Mock()
        text = "## A\n```sql\nSELECT 1;\n```\n\n```sql\nSELECT 2;\n"

        with pytest.raises(ParseError, match="byte offset"):
            lint_document(text, validator=validator)

        validator.validate.assert_not_called()

    def test_is_deterministic(self) -> None:
        first = lint_document(GUIDE, source="guide.md")
        second = lint_document(GUIDE, source="guide.md")

        assert first == second
        assert render_text(first.report) == render_text(second.report)
        assert render_json(first.report) == render_json(second.report)

    def test_records_metrics(self) -> None:
        hook = Mock()

        lint_document(GUIDE, metrics_hook=hook)

        hook.increment.assert_any_call(names.SNIPPETS_EXTRACTED, 5)
        hook.increment.assert_any_call(names.SNIPPETS_SELECTED, 3)
        latencies = [c.args[0] for c in hook.record_latency.call_args_list]
        assert names.EXTRACTION_DURATION in latencies
        assert latencies.count(names.VALIDATION_DURATION) == 3


class TestLintFile:
    def test_reads_file(self, guide_file: Path) -> None:
        run = lint_file(guide_file)

        assert run.report.source == str(guide_file)
        assert run.report.total == 3

    def test_does_not_write_by_default(self, guide_file: Path) -> None:
        lint_file(guide_file)

        assert guide_file.read_text(encoding="utf-8") == GUIDE

    def test_writes_regenerated_toc(self, guide_file: Path) -> None:
        config = LinterConfig(write_toc=True)

        first = lint_file(guide_file, config)
        second = lint_file(guide_file, config)

        assert first.toc_changed
        assert GUIDE_TOC in guide_file.read_text(encoding="utf-8")
        assert not second.toc_changed

    def test_preserves_crlf(self, tmp_path: Path) -> None:
        path = tmp_path / "windows.md"
        path.write_bytes(b"## A\r\n<!-- toc -->\r\n<!-- tocstop -->\r\n")

        lint_file(path, LinterConfig(write_toc=True))

        assert path.read_bytes() == (
            b"## A\r\n<!-- toc -->\r\n- [A](#a)\r\n<!-- tocstop -->\r\n"
        )

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            lint_file(tmp_path / "missing.md")
