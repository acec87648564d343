# src/sql_doclint/validation/features.py

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence

from sql_doclint.classify.dialects import Dialect

from .tokenizer import Token, TokenKind

logger = logging.getLogger(__name__)

Matcher = Callable[[Sequence[Token], int], bool]

MYSQL = Dialect.MYSQL
POSTGRESQL = Dialect.POSTGRESQL
SQLSERVER = Dialect.SQLSERVER
ORACLE = Dialect.ORACLE


class Feature:
    """A dialect-specific construct and the dialects that accept it."""

    def __init__(
        self,
        *,
        name: str,
        description: str,
        dialects: frozenset[Dialect],
        matcher: Matcher,
    ) -> None:
        self.name = name
        self.description = description
        self.dialects = dialects
        self.matcher = matcher

    def supported_by(self, dialect: Dialect) -> bool:
        return dialect is Dialect.GENERIC or dialect in self.dialects

    def supporters(self) -> str:
        ordered = [d for d in Dialect if d in self.dialects]
        return ", ".join(d.label for d in ordered)


class FeatureRegistry:
    def __init__(self) -> None:
        self._features: dict[str, Feature] = {}

    def register(self, feature: Feature) -> None:
        if feature.name in self._features:
            raise ValueError(f"Feature '{feature.name}' already registered")

        self._features[feature.name] = feature
        logger.debug("Registered feature: %s", feature.name)

    def get(self, name: str) -> Feature:
        try:
            return self._features[name]
        except KeyError:
            logger.error("Feature not found: %s", name)
            raise KeyError(f"Feature '{name}' not found")

    def remove(self, name: str) -> None:
        try:
            del self._features[name]
            logger.debug("Removed feature: %s", name)
        except KeyError:
            logger.error("Cannot remove feature, not found: %s", name)
            raise KeyError(f"Feature '{name}' not found")

    def list(self) -> dict[str, Feature]:
        # return a shallow copy to avoid mutation
        return dict(self._features)

    def detect(self, tokens: Sequence[Token]) -> Iterator[tuple[Feature, Token]]:
        """Yield every feature occurrence in token order."""
        features = list(self._features.values())
        for i, token in enumerate(tokens):
            for feature in features:
                if feature.matcher(tokens, i):
                    yield feature, token


# ----------------------------------------------------------------------------
# Matcher builders
# ----------------------------------------------------------------------------


def _at(tokens: Sequence[Token], i: int) -> Token | None:
    return tokens[i] if 0 <= i < len(tokens) else None


def _starts_statement(tokens: Sequence[Token], i: int) -> bool:
    previous = _at(tokens, i - 1)
    if previous is None:
        return True
    if previous.kind in (
        TokenKind.DELIMITER,
        TokenKind.BATCH,
        TokenKind.DELIMITER_COMMAND,
        TokenKind.META,
    ):
        return True
    return previous.is_punct(";") or previous.is_word("BEGIN", "THEN", "ELSE")


def words(*sequence: str) -> Matcher:
    """Match consecutive words starting at the token."""

    def match(tokens: Sequence[Token], i: int) -> bool:
        for offset, word in enumerate(sequence):
            token = _at(tokens, i + offset)
            if token is None or not token.is_word(word):
                return False
        return True

    return match


def any_word(*names: str) -> Matcher:
    def match(tokens: Sequence[Token], i: int) -> bool:
        return tokens[i].is_word(*names)

    return match


def call(*names: str) -> Matcher:
    """Match a function name followed by an opening parenthesis."""

    def match(tokens: Sequence[Token], i: int) -> bool:
        following = _at(tokens, i + 1)
        return (
            tokens[i].is_word(*names)
            and following is not None
            and following.is_punct("(")
        )

    return match


def statement(*sequence: str) -> Matcher:
    """Match words that open a statement."""
    inner = words(*sequence)

    def match(tokens: Sequence[Token], i: int) -> bool:
        return inner(tokens, i) and _starts_statement(tokens, i)

    return match


def kind(
    token_kind: TokenKind, value: str | None = None, quote: str | None = None
) -> Matcher:
    def match(tokens: Sequence[Token], i: int) -> bool:
        token = tokens[i]
        if token.kind is not token_kind:
            return False
        if value is not None and token.value != value:
            return False
        return quote is None or token.quote == quote

    return match


def _top(tokens: Sequence[Token], i: int) -> bool:
    if not tokens[i].is_word("TOP"):
        return False
    previous = _at(tokens, i - 1)
    if previous is None:
        return False
    if previous.is_word("DISTINCT", "ALL"):
        previous = _at(tokens, i - 2)
    return previous is not None and previous.is_word(
        "SELECT", "DELETE", "UPDATE", "INSERT"
    )


def _limit(tokens: Sequence[Token], i: int) -> bool:
    following = _at(tokens, i + 1)
    return (
        tokens[i].is_word("LIMIT")
        and following is not None
        and (
            following.kind in (TokenKind.NUMBER, TokenKind.PARAM)
            or following.is_word("ALL")
        )
    )


def _followed_by_rows(tokens: Sequence[Token], i: int) -> bool:
    for offset in (2, 3):
        token = _at(tokens, i + offset)
        if token is not None and token.is_word("ROW", "ROWS"):
            return True
    return False


def _fetch_first(tokens: Sequence[Token], i: int) -> bool:
    opens = words("FETCH", "FIRST")(tokens, i) or words("FETCH", "NEXT")(tokens, i)
    return opens and _followed_by_rows(tokens, i)


def _offset_rows(tokens: Sequence[Token], i: int) -> bool:
    following = _at(tokens, i + 2)
    return (
        tokens[i].is_word("OFFSET")
        and following is not None
        and following.is_word("ROW", "ROWS")
    )


def _create_if_not_exists(tokens: Sequence[Token], i: int) -> bool:
    if not words("IF", "NOT", "EXISTS")(tokens, i):
        return False
    return any(tokens[j].is_word("CREATE") for j in range(max(0, i - 5), i))


def _drop_if_exists(tokens: Sequence[Token], i: int) -> bool:
    if not words("IF", "EXISTS")(tokens, i):
        return False
    return any(tokens[j].is_word("DROP") for j in range(max(0, i - 4), i))


def _table_option(name: str) -> Matcher:
    def match(tokens: Sequence[Token], i: int) -> bool:
        following = _at(tokens, i + 1)
        return (
            tokens[i].is_word(name)
            and following is not None
            and following.kind is TokenKind.OPERATOR
            and following.value == "="
        )

    return match


def _after(previous_words: tuple[str, ...], word: str) -> Matcher:
    def match(tokens: Sequence[Token], i: int) -> bool:
        previous = _at(tokens, i - 1)
        return (
            tokens[i].is_word(word)
            and previous is not None
            and previous.is_word(*previous_words)
        )

    return match


def _variable(tokens: Sequence[Token], i: int) -> bool:
    token = tokens[i]
    return (
        token.kind is TokenKind.PARAM
        and token.value.startswith("@")
        and not token.value.startswith("@@")
    )


def _system_variable(tokens: Sequence[Token], i: int) -> bool:
    token = tokens[i]
    return token.kind is TokenKind.PARAM and token.value.startswith("@@")


def _prefixed_param(prefix: str) -> Matcher:
    def match(tokens: Sequence[Token], i: int) -> bool:
        token = tokens[i]
        return token.kind is TokenKind.PARAM and token.value.startswith(prefix)

    return match


def _array_constructor(tokens: Sequence[Token], i: int) -> bool:
    following = _at(tokens, i + 1)
    return (
        tokens[i].is_word("ARRAY")
        and following is not None
        and following.is_punct("[")
    )


def _nextval_pseudo_column(tokens: Sequence[Token], i: int) -> bool:
    previous = _at(tokens, i - 1)
    return (
        tokens[i].is_word("NEXTVAL", "CURRVAL")
        and previous is not None
        and previous.is_punct(".")
    )


def _string_concat(tokens: Sequence[Token], i: int) -> bool:
    token = tokens[i]
    return token.kind is TokenKind.OPERATOR and token.value == "||"


# ----------------------------------------------------------------------------
# Default feature table
# ----------------------------------------------------------------------------


def _feature(
    name: str, description: str, dialects: tuple[Dialect, ...], matcher: Matcher
) -> Feature:
    return Feature(
        name=name,
        description=description,
        dialects=frozenset(dialects),
        matcher=matcher,
    )


def _json_arrow(tokens: Sequence[Token], i: int) -> bool:
    token = tokens[i]
    return token.kind is TokenKind.OPERATOR and token.value in ("->", "->>")


def _either(*matchers: Matcher) -> Matcher:
    def match(tokens: Sequence[Token], i: int) -> bool:
        return any(matcher(tokens, i) for matcher in matchers)

    return match


_ROW_LIMITING = [
    _feature("top", "SELECT TOP", (SQLSERVER,), _top),
    _feature("limit", "LIMIT clause", (MYSQL, POSTGRESQL), _limit),
    _feature(
        "fetch-first",
        "FETCH FIRST/NEXT ... ROWS",
        (POSTGRESQL, SQLSERVER, ORACLE),
        _fetch_first,
    ),
    _feature(
        "offset-rows",
        "OFFSET ... ROWS",
        (POSTGRESQL, SQLSERVER, ORACLE),
        _offset_rows,
    ),
    _feature("rownum", "ROWNUM pseudo-column", (ORACLE,), any_word("ROWNUM")),
]

_LEXICAL = [
    _feature(
        "backtick-identifier",
        "Backtick-quoted identifiers",
        (MYSQL,),
        kind(TokenKind.QUOTED_IDENT, quote="`"),
    ),
    _feature(
        "bracket-identifier",
        "Bracket-quoted identifiers",
        (SQLSERVER,),
        kind(TokenKind.QUOTED_IDENT, quote="["),
    ),
    _feature(
        "dollar-quoting",
        "Dollar-quoted strings",
        (POSTGRESQL,),
        kind(TokenKind.DOLLAR_BODY),
    ),
    _feature(
        "q-quoting",
        "Alternative quoting q'[...]'",
        (ORACLE,),
        kind(TokenKind.STRING, quote="q"),
    ),
    _feature(
        "backslash-escape",
        "Backslash string escapes",
        (MYSQL,),
        kind(TokenKind.STRING, quote="\\"),
    ),
    _feature("variable", "@variables", (SQLSERVER, MYSQL), _variable),
    _feature(
        "system-variable",
        "@@system variables",
        (SQLSERVER, MYSQL),
        _system_variable,
    ),
    _feature(
        "positional-parameter",
        "$n positional parameters",
        (POSTGRESQL,),
        _prefixed_param("$"),
    ),
    _feature(
        "bind-variable",
        ":name bind variables",
        (ORACLE, POSTGRESQL),
        _prefixed_param(":"),
    ),
    _feature(
        "temp-table",
        "#temporary tables",
        (SQLSERVER,),
        kind(TokenKind.TEMP_NAME),
    ),
]

_OPERATORS = [
    _feature(
        "double-colon-cast",
        ":: casts",
        (POSTGRESQL,),
        kind(TokenKind.OPERATOR, value="::"),
    ),
    _feature("ilike", "ILIKE", (POSTGRESQL,), any_word("ILIKE")),
    _feature("similar-to", "SIMILAR TO", (POSTGRESQL,), words("SIMILAR", "TO")),
    _feature(
        "regexp",
        "REGEXP/RLIKE operators",
        (MYSQL,),
        any_word("REGEXP", "RLIKE"),
    ),
    _feature(
        "json-arrow",
        "JSON -> and ->> operators",
        (POSTGRESQL, MYSQL),
        _json_arrow,
    ),
    _feature(
        "string-concat",
        "|| string concatenation",
        (POSTGRESQL, ORACLE),
        _string_concat,
    ),
    _feature(
        "array-constructor",
        "ARRAY[...] constructors",
        (POSTGRESQL,),
        _array_constructor,
    ),
]

_QUERIES = [
    _feature(
        "full-outer-join",
        "FULL OUTER JOIN",
        (POSTGRESQL, SQLSERVER, ORACLE),
        _either(words("FULL", "OUTER", "JOIN"), words("FULL", "JOIN")),
    ),
    _feature(
        "apply",
        "CROSS/OUTER APPLY",
        (SQLSERVER, ORACLE),
        _after(("CROSS", "OUTER"), "APPLY"),
    ),
    _feature(
        "lateral",
        "LATERAL joins",
        (POSTGRESQL, MYSQL, ORACLE),
        any_word("LATERAL"),
    ),
    _feature("minus", "MINUS set operator", (ORACLE,), any_word("MINUS")),
    _feature(
        "connect-by",
        "CONNECT BY hierarchical queries",
        (ORACLE,),
        words("CONNECT", "BY"),
    ),
    _feature(
        "pivot",
        "PIVOT/UNPIVOT",
        (SQLSERVER, ORACLE),
        call("PIVOT", "UNPIVOT"),
    ),
    _feature("distinct-on", "DISTINCT ON", (POSTGRESQL,), words("DISTINCT", "ON")),
    _feature(
        "with-recursive",
        "WITH RECURSIVE",
        (POSTGRESQL, MYSQL),
        words("WITH", "RECURSIVE"),
    ),
    _feature("from-dual", "FROM DUAL", (MYSQL, ORACLE), _after(("FROM",), "DUAL")),
    _feature("nolock", "NOLOCK table hints", (SQLSERVER,), any_word("NOLOCK")),
]

_DML = [
    _feature(
        "on-duplicate-key",
        "ON DUPLICATE KEY UPDATE",
        (MYSQL,),
        words("ON", "DUPLICATE", "KEY"),
    ),
    _feature("on-conflict", "ON CONFLICT", (POSTGRESQL,), words("ON", "CONFLICT")),
    _feature(
        "returning",
        "RETURNING clause",
        (POSTGRESQL, ORACLE),
        any_word("RETURNING"),
    ),
    _feature(
        "output-clause",
        "OUTPUT INSERTED/DELETED",
        (SQLSERVER,),
        _either(words("OUTPUT", "INSERTED"), words("OUTPUT", "DELETED")),
    ),
    _feature("replace-into", "REPLACE INTO", (MYSQL,), statement("REPLACE", "INTO")),
    _feature("insert-ignore", "INSERT IGNORE", (MYSQL,), words("INSERT", "IGNORE")),
    _feature("merge", "MERGE", (POSTGRESQL, SQLSERVER, ORACLE), statement("MERGE")),
]

_DDL = [
    _feature(
        "auto-increment",
        "AUTO_INCREMENT",
        (MYSQL,),
        any_word("AUTO_INCREMENT"),
    ),
    _feature(
        "serial",
        "SERIAL column types",
        (POSTGRESQL,),
        any_word("SERIAL", "BIGSERIAL", "SMALLSERIAL"),
    ),
    _feature(
        "identity-seed",
        "IDENTITY(seed, increment)",
        (SQLSERVER,),
        call("IDENTITY"),
    ),
    _feature(
        "create-or-replace",
        "CREATE OR REPLACE",
        (MYSQL, POSTGRESQL, ORACLE),
        words("CREATE", "OR", "REPLACE"),
    ),
    _feature(
        "create-or-alter",
        "CREATE OR ALTER",
        (SQLSERVER,),
        words("CREATE", "OR", "ALTER"),
    ),
    _feature(
        "create-if-not-exists",
        "CREATE ... IF NOT EXISTS",
        (MYSQL, POSTGRESQL),
        _create_if_not_exists,
    ),
    _feature(
        "drop-if-exists",
        "DROP ... IF EXISTS",
        (MYSQL, POSTGRESQL, SQLSERVER),
        _drop_if_exists,
    ),
    _feature(
        "engine-option",
        "ENGINE= table option",
        (MYSQL,),
        _table_option("ENGINE"),
    ),
    _feature(
        "mysql-types",
        "MySQL column types",
        (MYSQL,),
        any_word("MEDIUMINT", "TINYTEXT", "MEDIUMTEXT", "LONGTEXT", "LONGBLOB"),
    ),
    _feature(
        "sqlserver-types",
        "SQL Server column types",
        (SQLSERVER,),
        any_word("UNIQUEIDENTIFIER", "DATETIME2", "DATETIMEOFFSET", "NTEXT"),
    ),
    _feature("nvarchar", "NVARCHAR", (SQLSERVER, MYSQL), any_word("NVARCHAR")),
    _feature("tinyint", "TINYINT", (SQLSERVER, MYSQL), any_word("TINYINT")),
    _feature(
        "oracle-types",
        "Oracle column types",
        (ORACLE,),
        any_word("VARCHAR2", "NVARCHAR2", "CLOB", "NCLOB"),
    ),
    _feature(
        "postgres-types",
        "PostgreSQL column types",
        (POSTGRESQL,),
        any_word("BYTEA", "JSONB"),
    ),
]

_FUNCTIONS = [
    _feature("nvl", "NVL/NVL2", (ORACLE,), call("NVL", "NVL2")),
    _feature("ifnull", "IFNULL", (MYSQL,), call("IFNULL")),
    _feature("group-concat", "GROUP_CONCAT", (MYSQL,), call("GROUP_CONCAT")),
    _feature(
        "string-agg",
        "STRING_AGG",
        (POSTGRESQL, SQLSERVER),
        call("STRING_AGG"),
    ),
    _feature("listagg", "LISTAGG", (ORACLE,), call("LISTAGG")),
    _feature(
        "sqlserver-functions",
        "SQL Server date and string functions",
        (SQLSERVER,),
        call(
            "GETDATE",
            "DATEADD",
            "LEN",
            "CHARINDEX",
            "TRY_CAST",
            "TRY_CONVERT",
            "SYSDATETIME",
        ),
    ),
    _feature(
        "mysql-functions",
        "MySQL date functions",
        (MYSQL,),
        call("DATE_FORMAT", "STR_TO_DATE"),
    ),
    _feature(
        "postgres-functions",
        "PostgreSQL set and date functions",
        (POSTGRESQL,),
        call("GENERATE_SERIES", "DATE_TRUNC"),
    ),
    _feature("now", "NOW()", (MYSQL, POSTGRESQL), call("NOW")),
    _feature(
        "extract",
        "EXTRACT(field FROM ...)",
        (MYSQL, POSTGRESQL, ORACLE),
        call("EXTRACT"),
    ),
    _feature(
        "interval",
        "INTERVAL literals",
        (MYSQL, POSTGRESQL, ORACLE),
        any_word("INTERVAL"),
    ),
    _feature("sysdate", "SYSDATE", (ORACLE, MYSQL), any_word("SYSDATE")),
    _feature("nextval-column", "sequence.NEXTVAL", (ORACLE,), _nextval_pseudo_column),
    _feature("nextval-call", "nextval()", (POSTGRESQL,), call("NEXTVAL")),
    _feature(
        "next-value-for",
        "NEXT VALUE FOR",
        (SQLSERVER,),
        words("NEXT", "VALUE", "FOR"),
    ),
]

_STATEMENTS = [
    _feature("exec", "EXEC", (SQLSERVER, ORACLE), statement("EXEC")),
    _feature("print", "PRINT", (SQLSERVER,), statement("PRINT")),
    _feature("dbms-output", "DBMS_OUTPUT", (ORACLE,), any_word("DBMS_OUTPUT")),
    _feature("show", "SHOW", (MYSQL, POSTGRESQL), statement("SHOW")),
    _feature("describe", "DESCRIBE", (MYSQL, ORACLE), statement("DESCRIBE")),
    _feature("use", "USE database", (MYSQL, SQLSERVER), statement("USE")),
    _feature("vacuum", "VACUUM", (POSTGRESQL,), statement("VACUUM")),
    _feature(
        "listen-notify",
        "LISTEN/NOTIFY",
        (POSTGRESQL,),
        _either(statement("LISTEN"), statement("UNLISTEN"), statement("NOTIFY")),
    ),
    _feature("discard", "DISCARD", (POSTGRESQL,), statement("DISCARD")),
    _feature(
        "signal",
        "SIGNAL/RESIGNAL",
        (MYSQL,),
        _either(statement("SIGNAL"), statement("RESIGNAL")),
    ),
    _feature("revert", "REVERT", (SQLSERVER,), statement("REVERT")),
]

_CLIENT_COMMANDS = [
    _feature(
        "go",
        "GO batch separator",
        (SQLSERVER,),
        kind(TokenKind.BATCH, value="GO"),
    ),
    _feature(
        "slash-terminator",
        "/ statement terminator",
        (ORACLE,),
        kind(TokenKind.BATCH, value="/"),
    ),
    _feature(
        "delimiter",
        "DELIMITER command",
        (MYSQL,),
        kind(TokenKind.DELIMITER_COMMAND),
    ),
    _feature("psql-meta", "psql meta-commands", (POSTGRESQL,), kind(TokenKind.META)),
]


def default_features() -> list[Feature]:
    return [
        *_ROW_LIMITING,
        *_LEXICAL,
        *_OPERATORS,
        *_QUERIES,
        *_DML,
        *_DDL,
        *_FUNCTIONS,
        *_STATEMENTS,
        *_CLIENT_COMMANDS,
    ]


def default_registry(allow: Iterable[str] = ()) -> FeatureRegistry:
    """Built-in features, minus the ones named in allow.

    A removed feature is never reported, so it is accepted in every dialect.

    Raises:
        KeyError: If a name in allow is not a built-in feature.
    """
    registry = FeatureRegistry()
    for feature in default_features():
        registry.register(feature)
    for name in allow:
        registry.remove(name)
    return registry
