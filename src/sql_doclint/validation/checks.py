# src/sql_doclint/validation/checks.py

"""Structural checks run on each split statement.

The grammar is deliberately permissive: only constructs that are wrong in
every supported dialect are reported as invalid. Unrecognized statements
are reported as unsupported so they never fail a document.
"""

import difflib
from collections.abc import Sequence
from dataclasses import dataclass, field

from .splitter import Statement
from .tokenizer import Token, TokenKind
from .types import Outcome, Problem

STATEMENT_KEYWORDS = frozenset(
    {
        "ABORT",
        "ALTER",
        "ANALYZE",
        "ANALYSE",
        "AUDIT",
        "BACKUP",
        "BEGIN",
        "BULK",
        "CALL",
        "CHECK",
        "CHECKPOINT",
        "CHECKSUM",
        "CLOSE",
        "CLUSTER",
        "COMMENT",
        "COMMIT",
        "COPY",
        "CREATE",
        "DBCC",
        "DEALLOCATE",
        "DECLARE",
        "DELETE",
        "DENY",
        "DESC",
        "DESCRIBE",
        "DISCARD",
        "DO",
        "DROP",
        "END",
        "EXEC",
        "EXECUTE",
        "EXPLAIN",
        "FETCH",
        "FLUSH",
        "FOR",
        "GET",
        "GRANT",
        "HANDLER",
        "IF",
        "INSERT",
        "INSTALL",
        "ITERATE",
        "KILL",
        "LEAVE",
        "LISTEN",
        "LOAD",
        "LOCK",
        "LOOP",
        "MERGE",
        "NOAUDIT",
        "NOTIFY",
        "OPEN",
        "OPTIMIZE",
        "PREPARE",
        "PRINT",
        "PURGE",
        "RAISE",
        "RAISERROR",
        "REASSIGN",
        "REFRESH",
        "REINDEX",
        "RELEASE",
        "RENAME",
        "REPAIR",
        "REPEAT",
        "REPLACE",
        "RESET",
        "RESIGNAL",
        "RESTORE",
        "RETURN",
        "REVERT",
        "REVOKE",
        "ROLLBACK",
        "SAVE",
        "SAVEPOINT",
        "SELECT",
        "SET",
        "SHOW",
        "SIGNAL",
        "START",
        "TABLE",
        "THROW",
        "TRUNCATE",
        "UNINSTALL",
        "UNLISTEN",
        "UNLOCK",
        "UPDATE",
        "USE",
        "VACUUM",
        "VALUES",
        "WAITFOR",
        "WHILE",
        "WITH",
    }
)

_SET_OPERATORS = ("UNION", "INTERSECT", "EXCEPT", "MINUS")
# Keywords that end a SELECT when statements are not separated by delimiters.
_QUERY_TERMINATORS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "MERGE",
    "DECLARE",
    "PRINT",
    "EXEC",
    "EXECUTE",
    "RETURN",
    "CREATE",
    "ALTER",
    "DROP",
    "TRUNCATE",
    "WHILE",
    "FOR",
    "SET",
)
_REPEATABLE_CLAUSES = ("START WITH", "CONNECT BY")
_LIST_FOLLOWERS = ("FROM", "WHERE", "GROUP", "HAVING", "ORDER", "LIMIT", "UNION")
_INCOMPLETE_ENDINGS = (
    "AND",
    "OR",
    "NOT",
    "BY",
    "SET",
    "SELECT",
    "FROM",
    "WHERE",
    "JOIN",
    "IN",
    "LIKE",
    "BETWEEN",
    "WHEN",
    "THEN",
    "ELSE",
    "AS",
    "INTO",
    "TABLE",
)
_FROM_RANK = 1


@dataclass
class _Level:
    is_query: bool = False
    rank: int = -1
    last: str = ""
    seen: set[str] = field(default_factory=set)

    def start_query(self) -> None:
        self.is_query = True
        self.rank = 0
        self.last = "SELECT"
        self.seen = set()

    def end_query(self) -> None:
        self.is_query = False


def _at(tokens: Sequence[Token], i: int) -> Token | None:
    return tokens[i] if 0 <= i < len(tokens) else None


def _is_separator(token: Token | None) -> bool:
    return token is not None and (
        token.kind is TokenKind.DELIMITER or token.is_punct(";")
    )


def _clause_at(tokens: Sequence[Token], i: int) -> tuple[str, int, int] | None:
    """Clause name, rank and keyword width starting at token i."""
    token = tokens[i]
    if token.kind is not TokenKind.WORD:
        return None
    following = _at(tokens, i + 1)
    word = token.upper
    if word == "FROM":
        previous = _at(tokens, i - 1)
        if previous is not None and previous.is_word("DISTINCT"):
            return None
        return "FROM", _FROM_RANK, 1
    if word == "WHERE":
        return "WHERE", 2, 1
    if word == "START" and following is not None and following.is_word("WITH"):
        return "START WITH", 2, 2
    if word == "CONNECT" and following is not None and following.is_word("BY"):
        return "CONNECT BY", 2, 2
    if word == "GROUP" and following is not None and following.is_word("BY"):
        return "GROUP BY", 3, 2
    if word == "HAVING":
        return "HAVING", 4, 1
    if word == "WINDOW" and following is not None and following.kind is TokenKind.WORD:
        return "WINDOW", 5, 1
    if word == "ORDER" and following is not None and following.is_word("BY"):
        return "ORDER BY", 6, 2
    if word in ("LIMIT", "OFFSET"):
        return word, 7, 1
    if word == "FETCH" and following is not None and following.is_word("FIRST", "NEXT"):
        return "FETCH", 8, 2
    return None


def _ends_clause(tokens: Sequence[Token], i: int) -> bool:
    token = _at(tokens, i)
    if token is None or _is_separator(token) or token.is_punct(")"):
        return True
    if token.is_word(*_SET_OPERATORS):
        return True
    return _clause_at(tokens, i) is not None


def _empty_select_list(tokens: Sequence[Token], i: int) -> bool:
    j = i + 1
    while _at(tokens, j) is not None and tokens[j].is_word("DISTINCT", "ALL"):
        j += 1
    following = _at(tokens, j)
    if following is None or _is_separator(following) or following.is_punct(")"):
        return True
    return following.is_word("FROM")


def _invalid(message: str, token: Token) -> Problem:
    return Problem(outcome=Outcome.INVALID, message=message, line=token.line)


def _misspelled_statement(word: str) -> str | None:
    """Closest statement keyword when word looks like a typo of it.

    A typo keeps the first letter and stays within one character of the
    keyword's length, so prefixed statements such as UNLISTEN never match.
    """
    candidates = sorted(
        keyword
        for keyword in STATEMENT_KEYWORDS
        if keyword[0] == word[0] and abs(len(keyword) - len(word)) <= 1
    )
    close = difflib.get_close_matches(word, candidates, n=1, cutoff=0.8)
    return close[0] if close else None


def check_leading_keyword(statement: Statement) -> list[Problem]:
    first = statement.tokens[0]
    if first.is_punct("("):
        return []
    if first.kind is TokenKind.WORD:
        if first.upper in STATEMENT_KEYWORDS:
            return []
        close = _misspelled_statement(first.upper)
        if close:
            return [
                _invalid(
                    f"Unknown statement keyword '{first.value}', "
                    f"did you mean {close}?",
                    first,
                )
            ]
        return [
            Problem(
                outcome=Outcome.UNSUPPORTED_DIALECT,
                message=f"Unrecognized statement '{first.value}'",
                line=first.line,
            )
        ]
    if first.kind in (TokenKind.PARAM, TokenKind.QUOTED_IDENT, TokenKind.TEMP_NAME):
        return [
            Problem(
                outcome=Outcome.UNSUPPORTED_DIALECT,
                message=f"Unrecognized statement '{first.value}'",
                line=first.line,
            )
        ]
    return [_invalid(f"Statement cannot start with {first.value!r}", first)]


def check_query_clauses(tokens: Sequence[Token]) -> list[Problem]:
    """Clause order, duplicates and empty clauses of every SELECT level."""
    problems: list[Problem] = []
    levels = [_Level()]
    for i, token in enumerate(tokens):
        level = levels[-1]
        if token.is_punct("("):
            levels.append(_Level())
            continue
        if token.is_punct(")"):
            if len(levels) > 1:
                levels.pop()
            continue
        if _is_separator(token):
            level.end_query()
            continue
        if token.kind is not TokenKind.WORD:
            continue

        word = token.upper
        if word == "SELECT":
            level.start_query()
            if _empty_select_list(tokens, i):
                problems.append(_invalid("Empty select list", token))
            continue
        if not level.is_query:
            continue
        if word in _SET_OPERATORS or word in _QUERY_TERMINATORS:
            level.end_query()
            continue
        if word == "IF":
            following = _at(tokens, i + 1)
            if following is None or not following.is_punct("("):
                level.end_query()
            continue
        if word == "JOIN":
            if level.rank > _FROM_RANK:
                problems.append(_invalid(f"JOIN after {level.last}", token))
            continue

        clause = _clause_at(tokens, i)
        if clause is None:
            continue
        name, rank, width = clause
        if name in level.seen and name not in _REPEATABLE_CLAUSES:
            problems.append(_invalid(f"Duplicate {name} clause", token))
        elif rank < level.rank:
            problems.append(_invalid(f"{name} must come before {level.last}", token))
        else:
            level.rank = rank
            level.last = name
        level.seen.add(name)

        if name != "FETCH" and _ends_clause(tokens, i + width):
            if name == "FROM":
                problems.append(_invalid("Missing table after FROM", token))
            else:
                problems.append(_invalid(f"Empty {name} clause", token))
    return problems


def check_lists(tokens: Sequence[Token]) -> list[Problem]:
    problems: list[Problem] = []
    for i, token in enumerate(tokens):
        following = _at(tokens, i + 1)
        if token.is_punct(","):
            if following is None or _is_separator(following):
                problems.append(_invalid("Trailing comma at end of statement", token))
            elif following.is_punct(")"):
                problems.append(_invalid("Trailing comma before ')'", token))
            elif following.is_punct(","):
                problems.append(_invalid("Empty list item between commas", token))
            elif following.is_word(*_LIST_FOLLOWERS):
                problems.append(
                    _invalid(f"Trailing comma before {following.upper}", token)
                )
        elif token.is_word("IN") and following is not None and following.is_punct("("):
            closing = _at(tokens, i + 2)
            if closing is not None and closing.is_punct(")"):
                problems.append(_invalid("Empty IN list", token))
    return problems


def check_ending(statement: Statement) -> list[Problem]:
    last = statement.tokens[-1]
    if last.kind is TokenKind.OPERATOR and last.value != "*":
        return [_invalid(f"Statement ends with operator '{last.value}'", last)]
    if last.is_punct(".", ","):
        # trailing commas are reported by check_lists
        return [] if last.value == "," else [_invalid("Statement ends with '.'", last)]
    if last.is_word(*_INCOMPLETE_ENDINGS):
        return [_invalid(f"Incomplete statement: ends with {last.upper}", last)]
    return []


def check_statement(statement: Statement) -> list[Problem]:
    """All structural findings for one statement, in token order."""
    problems = check_leading_keyword(statement)
    if any(p.outcome is Outcome.INVALID for p in problems):
        return problems
    problems.extend(check_query_clauses(statement.tokens))
    problems.extend(check_lists(statement.tokens))
    problems.extend(check_ending(statement))
    return sorted(problems, key=lambda p: p.line)
