import logging

import pytest

from sql_doclint.classify.classifier import classify, leading_comments
from sql_doclint.classify.dialects import (
    Dialect,
    find_dialect_keyword,
    parse_dialect,
)
from sql_doclint.parsers.models import Snippet


def make_snippet(
    text: str = "SELECT 1;\n",
    info: str = "sql",
    heading_path: tuple[str, ...] = (),
) -> Snippet:
    return Snippet(
        index=0,
        heading_path=heading_path,
        language=info.split()[0].lower() if info else "",
        info=info,
        text=text,
        offset_start=0,
        offset_end=len(text),
        line=0,
    )


class TestParseDialect:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("generic", Dialect.GENERIC),
            ("sql", Dialect.GENERIC),
            ("MySQL", Dialect.MYSQL),
            ("mariadb", Dialect.MYSQL),
            ("Postgres", Dialect.POSTGRESQL),
            ("plpgsql", Dialect.POSTGRESQL),
            ("tsql", Dialect.SQLSERVER),
            ("sqlserver", Dialect.SQLSERVER),
            ("plsql", Dialect.ORACLE),
            (" oracle ", Dialect.ORACLE),
        ],
    )
    def test_aliases(self, name: str, expected: Dialect) -> None:
        assert parse_dialect(name) is expected

    def test_unknown_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown SQL dialect: db2"):
            parse_dialect("db2")

    def test_labels(self) -> None:
        assert Dialect.SQLSERVER.label == "SQL Server"
        assert Dialect.POSTGRESQL.label == "PostgreSQL"


class TestFindDialectKeyword:
    def test_first_keyword_in_text_wins(self) -> None:
        assert find_dialect_keyword("Oracle, unlike MySQL") is Dialect.ORACLE

    def test_plpgsql_is_not_plsql(self) -> None:
        assert find_dialect_keyword("A PL/pgSQL function") is Dialect.POSTGRESQL
        assert find_dialect_keyword("A PL/SQL block") is Dialect.ORACLE

    def test_multi_word_names(self) -> None:
        assert find_dialect_keyword("On SQL Server 2019") is Dialect.SQLSERVER
        assert find_dialect_keyword("Transact-SQL") is Dialect.SQLSERVER

    def test_no_keyword(self) -> None:
        assert find_dialect_keyword("Selecting rows") is None
        assert find_dialect_keyword("mysqldump usage") is None


class TestLeadingComments:
    def test_collects_comments_until_first_code_line(self) -> None:
        text = "-- first\n/* second */\n\nSELECT 1; -- not leading\n"

        assert leading_comments(text) == [" first", " second "]

    def test_multiline_block_comment(self) -> None:
        text = "/*\n  Oracle only\n*/\nSELECT 1 FROM dual;\n"

        assert leading_comments(text) == ["", "Oracle only", ""]

    def test_hash_comment_but_not_temp_table(self) -> None:
        assert leading_comments("# MySQL\nSELECT 1;") == [" MySQL"]
        assert leading_comments("#temp\nSELECT 1;") == []


class TestClassify:
    def test_defaults_to_generic(self) -> None:
        assert classify(make_snippet()) is Dialect.GENERIC

    def test_explicit_comment_hint(self) -> None:
        snippet = make_snippet(text="-- dialect: mysql\nSELECT 1;\n")

        assert classify(snippet) is Dialect.MYSQL

    def test_comment_mentioning_dialect(self) -> None:
        snippet = make_snippet(text="/* T-SQL example */\nSELECT TOP 1 * FROM t;\n")

        assert classify(snippet) is Dialect.SQLSERVER

    def test_fence_tag(self) -> None:
        assert classify(make_snippet(info="tsql")) is Dialect.SQLSERVER
        assert classify(make_snippet(info="postgres")) is Dialect.POSTGRESQL

    def test_fence_info_words(self) -> None:
        """Generic tags fall back to keywords in the rest of the info string."""
        assert classify(make_snippet(info="sql title=Oracle")) is Dialect.ORACLE

    def test_heading_hint_uses_deepest_heading(self) -> None:
        snippet = make_snippet(heading_path=("MySQL", "Migrating to PostgreSQL"))

        assert classify(snippet) is Dialect.POSTGRESQL

    def test_heading_hints_can_be_disabled(self) -> None:
        snippet = make_snippet(heading_path=("Oracle",))

        assert classify(snippet, use_heading_hints=False) is Dialect.GENERIC

    def test_comment_beats_fence_beats_heading(self) -> None:
        snippet = make_snippet(
            text="-- dialect: oracle\nSELECT 1 FROM dual;\n",
            info="mysql",
            heading_path=("PostgreSQL",),
        )

        assert classify(snippet) is Dialect.ORACLE

        snippet = make_snippet(info="mysql", heading_path=("Oracle",))
        assert classify(snippet) is Dialect.MYSQL

    def test_unknown_explicit_hint_is_ignored(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        snippet = make_snippet(text="-- dialect: sybase\nSELECT 1;\n")

        with caplog.at_level(logging.WARNING):
            dialect = classify(snippet)

        assert dialect is Dialect.GENERIC
        assert "Unknown dialect hint 'sybase'" in caplog.text

    def test_deterministic(self) -> None:
        snippet = make_snippet(text="-- MySQL or Oracle\nSELECT 1;\n")

        assert {classify(snippet) for _ in range(5)} == {Dialect.MYSQL}
