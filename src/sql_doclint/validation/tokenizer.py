# src/sql_doclint/validation/tokenizer.py

"""Dialect-aware SQL tokenizer.

Produces just enough structure for static checks: words, literals, quoted
identifiers, parameters, operators and punctuation. Comments are dropped.
Client batch commands (``GO``, ``DELIMITER``, ``/``) and psql
meta-commands are recognized only at the start of a line.
"""

import re
from dataclasses import dataclass
from enum import Enum

from sql_doclint.classify.dialects import Dialect


class TokenKind(str, Enum):
    WORD = "word"
    QUOTED_IDENT = "quoted_ident"
    STRING = "string"
    NUMBER = "number"
    PARAM = "param"
    TEMP_NAME = "temp_name"
    DOLLAR_BODY = "dollar_body"
    OPERATOR = "operator"
    PUNCT = "punct"
    DELIMITER = "delimiter"
    BATCH = "batch"
    DELIMITER_COMMAND = "delimiter_command"
    META = "meta"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    line: int
    quote: str = ""

    @property
    def upper(self) -> str:
        return self.value.upper() if self.kind is TokenKind.WORD else ""

    def is_word(self, *words: str) -> bool:
        return self.kind is TokenKind.WORD and self.value.upper() in words

    def is_punct(self, *values: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.value in values


class SqlSyntaxError(Exception):
    """Structural error found while tokenizing or splitting a snippet."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(message)
        self.message = message
        self.line = line


_GO_RE = re.compile(r"[ \t]*GO(?:[ \t]+\d+)?[ \t]*(?:--[^\n]*)?(?=\n|$)", re.IGNORECASE)
_SLASH_RE = re.compile(r"[ \t]*/[ \t]*(?=\n|$)")
_DELIMITER_RE = re.compile(r"[ \t]*DELIMITER[ \t]+(\S+)[ \t]*(?=\n|$)", re.IGNORECASE)
_META_RE = re.compile(r"[ \t]*(\\[^\n]*)")
_WORD_RE = re.compile(r"[A-Za-z_\u00c0-\uffff][\w$#]*")
_NUMBER_RE = re.compile(r"(?:\d+(?:\.\d+)?|\.\d+)(?:[eE][+-]?\d+)?")
_DOLLAR_TAG_RE = re.compile(r"\$(?:[A-Za-z_][A-Za-z_0-9]*)?\$")
_POSITIONAL_RE = re.compile(r"\$\d+")
_BRACKET_IDENT_RE = re.compile(r"\[[^\]\n]+\]")
_VARIABLE_RE = re.compile(r"@@?[A-Za-z_][\w$#]*")
_BIND_RE = re.compile(r":[A-Za-z_]\w*")
_TEMP_RE = re.compile(r"##?[A-Za-z_][\w$#]*")

_OPERATORS = (
    "->>",
    "#>>",
    "::",
    ":=",
    "<>",
    "!=",
    "<=",
    ">=",
    "||",
    "->",
    "#>",
    "=>",
    "<<",
    ">>",
    "@>",
    "<@",
    "&&",
)
_SINGLE_OPERATORS = "+-*/%=<>!|&^~@#?"
_PUNCTUATION = "(),.;[]{}:"
_STRING_PREFIXES = "nNeExXbB"
_Q_QUOTE_PAIRS = {"[": "]", "(": ")", "{": "}", "<": ">"}
# Keywords after which "[" opens a bracket identifier rather than a subscript.
_KEYWORDS_BEFORE_OPERAND = frozenset(
    {
        "AND",
        "APPLY",
        "AS",
        "BY",
        "CASE",
        "CREATE",
        "DATABASE",
        "DELETE",
        "DISTINCT",
        "DROP",
        "ELSE",
        "EXEC",
        "EXECUTE",
        "EXISTS",
        "FROM",
        "HAVING",
        "IN",
        "INDEX",
        "INTO",
        "IS",
        "JOIN",
        "NOT",
        "ON",
        "OR",
        "OUTPUT",
        "PROC",
        "PROCEDURE",
        "REFERENCES",
        "RETURN",
        "SELECT",
        "SET",
        "TABLE",
        "THEN",
        "TOP",
        "TRUNCATE",
        "UPDATE",
        "USE",
        "VIEW",
        "WHEN",
        "WHERE",
    }
)


class _Scanner:
    def __init__(self, text: str, dialect: Dialect) -> None:
        self.text = text
        self.dialect = dialect
        self.pos = 0
        self.line = 1
        self.delimiter = ";"
        self.tokens: list[Token] = []

    def emit(self, kind: TokenKind, value: str, line: int, quote: str = "") -> None:
        self.tokens.append(Token(kind=kind, value=value, line=line, quote=quote))

    def advance_to(self, end: int) -> str:
        chunk = self.text[self.pos : end]
        self.line += chunk.count("\n")
        self.pos = end
        return chunk

    def at_line_start(self) -> bool:
        return self.pos == 0 or self.text[self.pos - 1] == "\n"

    def previous_is_operand(self) -> bool:
        if not self.tokens:
            return False
        last = self.tokens[-1]
        if last.kind is TokenKind.WORD:
            return last.upper not in _KEYWORDS_BEFORE_OPERAND
        return last.kind is TokenKind.QUOTED_IDENT or last.is_punct(")", "]")

    def starts_fraction(self) -> bool:
        if not self.text[self.pos + 1 : self.pos + 2].isdigit():
            return False
        if not self.tokens:
            return True
        last = self.tokens[-1]
        if self.previous_is_operand() or last.kind is TokenKind.NUMBER:
            return False
        return not last.is_punct(".")

    def run(self) -> list[Token]:
        text = self.text
        while self.pos < len(text):
            if self.at_line_start() and self._line_command():
                continue

            char = text[self.pos]
            if char.isspace():
                self.advance_to(self.pos + 1)
                continue

            if self.delimiter != ";" and text.startswith(self.delimiter, self.pos):
                line = self.line
                self.advance_to(self.pos + len(self.delimiter))
                self.emit(TokenKind.DELIMITER, self.delimiter, line)
                continue

            if text.startswith("--", self.pos):
                self._skip_line()
            elif char == "#" and self._hash_is_comment():
                self._skip_line()
            elif text.startswith("/*", self.pos):
                self._block_comment()
            elif char == "'":
                self._string(self.pos)
            elif char in "qQ" and text.startswith("'", self.pos + 1):
                self._q_quote()
            elif char in _STRING_PREFIXES and text.startswith("'", self.pos + 1):
                self._string(self.pos + 1)
            elif char == '"':
                self._quoted('"', '"')
            elif char == "`":
                self._quoted("`", "`")
            elif char == "[" and not self.previous_is_operand() and self._bracket():
                pass
            elif char == "$":
                self._dollar()
            elif char == ";" and self.delimiter == ";":
                self.emit(TokenKind.DELIMITER, ";", self.line)
                self.advance_to(self.pos + 1)
            elif char.isdigit() or (char == "." and self.starts_fraction()):
                match = _NUMBER_RE.match(text, self.pos)
                line = self.line
                self.emit(TokenKind.NUMBER, self.advance_to(match.end()), line)
            elif _WORD_RE.match(text, self.pos):
                match = _WORD_RE.match(text, self.pos)
                line = self.line
                self.emit(TokenKind.WORD, self.advance_to(match.end()), line)
            else:
                self._symbol()
        return self.tokens

    def _line_command(self) -> bool:
        for pattern, kind in (
            (_GO_RE, TokenKind.BATCH),
            (_SLASH_RE, TokenKind.BATCH),
        ):
            match = pattern.match(self.text, self.pos)
            if match:
                line = self.line
                value = self.advance_to(match.end()).strip().split()[0]
                self.emit(kind, value.upper(), line)
                return True

        match = _DELIMITER_RE.match(self.text, self.pos)
        if match:
            line = self.line
            self.advance_to(match.end())
            self.delimiter = match.group(1)
            self.emit(TokenKind.DELIMITER_COMMAND, self.delimiter, line)
            return True

        match = _META_RE.match(self.text, self.pos)
        if match:
            line = self.line
            end = self.text.find("\n", self.pos)
            self.advance_to(len(self.text) if end < 0 else end)
            self.emit(TokenKind.META, match.group(1).strip(), line)
            return True
        return False

    def _hash_is_comment(self) -> bool:
        if self.dialect is Dialect.MYSQL:
            return True
        following = self.text[self.pos + 1 : self.pos + 2]
        return following == "" or following.isspace()

    def _skip_line(self) -> None:
        end = self.text.find("\n", self.pos)
        self.advance_to(len(self.text) if end < 0 else end)

    def _block_comment(self) -> None:
        line = self.line
        end = self.text.find("*/", self.pos + 2)
        if end < 0:
            raise SqlSyntaxError("Unterminated block comment", line)
        self.advance_to(end + 2)

    def _string_end(self, quote_pos: int, backslash: bool) -> int | None:
        i = quote_pos + 1
        text = self.text
        while i < len(text):
            char = text[i]
            if backslash and char == "\\":
                i += 2
                continue
            if char == "'":
                if text.startswith("'", i + 1):
                    i += 2
                    continue
                return i + 1
            i += 1
        return None

    def _string(self, quote_pos: int) -> None:
        line = self.line
        backslash = self.dialect is Dialect.MYSQL or self.text[self.pos] in "eE"
        end = self._string_end(quote_pos, backslash)
        quote = ""
        if end is None and not backslash:
            # Only terminated when backslash escapes apply, as in MySQL.
            end = self._string_end(quote_pos, backslash=True)
            quote = "\\"
        if end is None:
            raise SqlSyntaxError("Unterminated string literal", line)
        self.emit(TokenKind.STRING, self.advance_to(end), line, quote=quote)

    def _q_quote(self) -> None:
        # Oracle alternative quoting: q'[...]', q'{...}', q'!...!'
        line = self.line
        opener = self.text[self.pos + 2 : self.pos + 3]
        if not opener or opener.isspace():
            self._string(self.pos + 1)
            return
        closer = _Q_QUOTE_PAIRS.get(opener, opener) + "'"
        end = self.text.find(closer, self.pos + 3)
        if end < 0:
            raise SqlSyntaxError("Unterminated quoted string", line)
        self.emit(TokenKind.STRING, self.advance_to(end + 2), line, quote="q")

    def _quoted(self, opener: str, closer: str) -> None:
        line = self.line
        i = self.pos + 1
        text = self.text
        while True:
            end = text.find(closer, i)
            if end < 0:
                raise SqlSyntaxError(
                    f"Unterminated quoted identifier {opener}...{closer}", line
                )
            if text.startswith(closer, end + 1):
                i = end + 2
                continue
            value = self.advance_to(end + 1)
            self.emit(TokenKind.QUOTED_IDENT, value, line, quote=opener)
            return

    def _bracket(self) -> bool:
        match = _BRACKET_IDENT_RE.match(self.text, self.pos)
        if not match:
            return False
        line = self.line
        self.emit(TokenKind.QUOTED_IDENT, self.advance_to(match.end()), line, quote="[")
        return True

    def _dollar(self) -> None:
        line = self.line
        match = _POSITIONAL_RE.match(self.text, self.pos)
        if match:
            self.emit(TokenKind.PARAM, self.advance_to(match.end()), line)
            return
        match = _DOLLAR_TAG_RE.match(self.text, self.pos)
        if match:
            tag = match.group(0)
            end = self.text.find(tag, match.end())
            if end < 0:
                raise SqlSyntaxError(f"Unterminated dollar-quoted body {tag}", line)
            self.emit(
                TokenKind.DOLLAR_BODY, self.advance_to(end + len(tag)), line, quote=tag
            )
            return
        self.emit(TokenKind.OPERATOR, self.advance_to(self.pos + 1), line)

    def _symbol(self) -> None:
        text = self.text
        line = self.line
        for pattern, kind in (
            (_VARIABLE_RE, TokenKind.PARAM),
            (_TEMP_RE, TokenKind.TEMP_NAME),
        ):
            match = pattern.match(text, self.pos)
            if match:
                self.emit(kind, self.advance_to(match.end()), line)
                return

        if text.startswith(":", self.pos) and not text.startswith("::", self.pos):
            match = _BIND_RE.match(text, self.pos)
            if match:
                self.emit(TokenKind.PARAM, self.advance_to(match.end()), line)
                return

        for operator in _OPERATORS:
            if text.startswith(operator, self.pos):
                end = self.pos + len(operator)
                self.emit(TokenKind.OPERATOR, self.advance_to(end), line)
                return

        char = text[self.pos]
        if char == "?":
            self.emit(TokenKind.PARAM, self.advance_to(self.pos + 1), line)
        elif char in _PUNCTUATION:
            self.emit(TokenKind.PUNCT, self.advance_to(self.pos + 1), line)
        elif char in _SINGLE_OPERATORS:
            self.emit(TokenKind.OPERATOR, self.advance_to(self.pos + 1), line)
        else:
            raise SqlSyntaxError(f"Unexpected character {char!r}", line)


def tokenize(text: str, dialect: Dialect = Dialect.GENERIC) -> list[Token]:
    """Split snippet text into tokens.

    Raises:
        SqlSyntaxError: On unterminated literals, identifiers or comments,
            and on characters that cannot start any token.
    """
    return _Scanner(text, dialect).run()
