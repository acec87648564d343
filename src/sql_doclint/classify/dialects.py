# src/sql_doclint/classify/dialects.py

import re
from enum import Enum


class Dialect(str, Enum):
    """Target SQL dialect of a snippet."""

    GENERIC = "generic"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Dialect.GENERIC: "Generic",
    Dialect.MYSQL: "MySQL",
    Dialect.POSTGRESQL: "PostgreSQL",
    Dialect.SQLSERVER: "SQL Server",
    Dialect.ORACLE: "Oracle",
}

# Names accepted for a dialect in config files, CLI flags, fence tags
# and explicit "dialect: <name>" hints.
ALIASES: dict[str, Dialect] = {
    "generic": Dialect.GENERIC,
    "ansi": Dialect.GENERIC,
    "sql": Dialect.GENERIC,
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "postgresql": Dialect.POSTGRESQL,
    "postgres": Dialect.POSTGRESQL,
    "pgsql": Dialect.POSTGRESQL,
    "plpgsql": Dialect.POSTGRESQL,
    "pl/pgsql": Dialect.POSTGRESQL,
    "psql": Dialect.POSTGRESQL,
    "sqlserver": Dialect.SQLSERVER,
    "sql-server": Dialect.SQLSERVER,
    "mssql": Dialect.SQLSERVER,
    "tsql": Dialect.SQLSERVER,
    "t-sql": Dialect.SQLSERVER,
    "oracle": Dialect.ORACLE,
    "plsql": Dialect.ORACLE,
    "pl/sql": Dialect.ORACLE,
}

# Keywords that name a dialect inside free text (comments, headings).
# Alternation order matters: PL/pgSQL must win over PL/SQL.
KEYWORD_RE = re.compile(
    r"\b(?:"
    r"(?P<postgresql>postgres(?:ql)?|pl/pgsql|plpgsql|pgsql)"
    r"|(?P<mysql>mysql|mariadb)"
    r"|(?P<sqlserver>sql\s+server|mssql|t-sql|tsql|transact-sql)"
    r"|(?P<oracle>oracle|pl/sql|plsql)"
    r")\b",
    re.IGNORECASE,
)


def parse_dialect(name: str) -> Dialect:
    """Map a dialect name or alias to a Dialect.

    Raises:
        ValueError: If the name is unknown.
    """
    key = name.strip().lower()
    try:
        return ALIASES[key]
    except KeyError:
        raise ValueError(f"Unknown SQL dialect: {name}") from None


def find_dialect_keyword(text: str) -> Dialect | None:
    """First dialect named in free text, in text order."""
    match = KEYWORD_RE.search(text)
    if match is None:
        return None
    return Dialect(match.lastgroup)
