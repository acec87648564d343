# src/sql_doclint/validation/splitter.py

from collections.abc import Sequence
from dataclasses import dataclass

from .tokenizer import SqlSyntaxError, Token, TokenKind

# BEGIN followed by one of these starts a transaction, not a block.
_TRANSACTION_WORDS = (
    "TRANSACTION",
    "TRAN",
    "WORK",
    "DISTRIBUTED",
    "ISOLATION",
    "READ",
)
# END followed by one of these closes a construct that is not tracked.
_UNTRACKED_ENDINGS = ("IF", "LOOP", "WHILE", "REPEAT", "FOR")
_ROUTINES = {
    "PROCEDURE": "PROCEDURE",
    "PROC": "PROCEDURE",
    "FUNCTION": "FUNCTION",
    "TRIGGER": "TRIGGER",
    "PACKAGE": "PACKAGE",
}
_NOT_ROUTINES = (
    "TABLE",
    "VIEW",
    "INDEX",
    "SEQUENCE",
    "SCHEMA",
    "DATABASE",
    "USER",
    "ROLE",
)
_CLIENT_COMMANDS = (TokenKind.BATCH, TokenKind.DELIMITER_COMMAND, TokenKind.META)


@dataclass(frozen=True)
class Statement:
    """Tokens of one statement, without its terminating delimiter.

    Routine bodies keep their inner separators as tokens.
    """

    tokens: tuple[Token, ...]
    terminated: bool

    @property
    def line(self) -> int:
        return self.tokens[0].line


class _Splitter:
    def __init__(self, tokens: Sequence[Token]) -> None:
        self.tokens = tokens
        self.statements: list[Statement] = []
        self._reset()

    def _reset(self) -> None:
        self.current: list[Token] = []
        self.parens: list[Token] = []
        self.blocks: list[Token] = []
        self.block_closed = False
        self.outer_closed = False

    def run(self) -> list[Statement]:
        tokens = self.tokens
        i = 0
        while i < len(tokens):
            token = tokens[i]
            following = tokens[i + 1] if i + 1 < len(tokens) else None

            if token.kind in _CLIENT_COMMANDS:
                self._flush(terminated=True)
            elif token.kind is TokenKind.DELIMITER:
                if self.parens:
                    raise SqlSyntaxError("Unclosed parenthesis", self.parens[-1].line)
                if self.blocks or self._holds_open():
                    self.current.append(token)
                else:
                    self._flush(terminated=True)
            else:
                self.current.append(token)
                if token.is_punct("("):
                    self.parens.append(token)
                elif token.is_punct(")"):
                    if not self.parens:
                        raise SqlSyntaxError(
                            "Unmatched closing parenthesis", token.line
                        )
                    self.parens.pop()
                elif token.is_word("CASE"):
                    self.blocks.append(token)
                elif token.is_word("BEGIN") and self._opens_block(following):
                    self.blocks.append(token)
                elif token.is_word("END"):
                    if following is not None and following.is_word(*_UNTRACKED_ENDINGS):
                        pass
                    else:
                        self._close_block(token)
                        if following is not None and following.is_word("CASE"):
                            # END CASE: consume CASE so it does not open a block
                            self.current.append(following)
                            i += 1
            i += 1

        self._flush(terminated=False)
        return self.statements

    def _opens_block(self, following: Token | None) -> bool:
        if following is None or following.kind is TokenKind.DELIMITER:
            return False
        return not following.is_word(*_TRANSACTION_WORDS)

    def _close_block(self, token: Token) -> None:
        if self.blocks:
            opener = self.blocks.pop()
            if opener.is_word("BEGIN") and not self.blocks:
                self.block_closed = True
            return
        if self._is_declare_block() or self._routine_kind() is not None:
            self.outer_closed = True
            self.block_closed = True
            return
        if self.current and self.current[0] is token:
            # PostgreSQL accepts END as a synonym for COMMIT
            return
        raise SqlSyntaxError("END without matching BEGIN", token.line)

    def _is_declare_block(self) -> bool:
        if not self.current or not self.current[0].is_word("DECLARE"):
            return False
        second = self.current[1] if len(self.current) > 1 else None
        # T-SQL variable declarations are standalone statements
        return second is None or not (
            second.kind is TokenKind.PARAM and second.value.startswith("@")
        )

    def _routine_kind(self) -> str | None:
        if not self.current or not self.current[0].is_word("CREATE", "ALTER"):
            return None
        for token in self.current[1:10]:
            if token.is_word(*_NOT_ROUTINES):
                return None
            if token.kind is TokenKind.WORD and token.upper in _ROUTINES:
                return _ROUTINES[token.upper]
        return None

    def _has_quoted_body(self) -> bool:
        for i, token in enumerate(self.current):
            if token.kind is TokenKind.DOLLAR_BODY:
                return True
            if token.is_word("AS") and i + 1 < len(self.current):
                if self.current[i + 1].kind is TokenKind.STRING:
                    return True
        return False

    def _holds_open(self) -> bool:
        """Whether a delimiter at depth zero still belongs to a routine body."""
        if self._is_declare_block():
            return not self.block_closed
        kind = self._routine_kind()
        if kind is None:
            return False
        if kind == "PACKAGE":
            return not self.outer_closed
        if self.block_closed or self._has_quoted_body():
            return False
        return any(token.is_word("IS", "AS", "DECLARE") for token in self.current)

    def _flush(self, *, terminated: bool) -> None:
        if self.parens:
            raise SqlSyntaxError("Unclosed parenthesis", self.parens[-1].line)
        if self.blocks:
            opener = self.blocks[-1]
            raise SqlSyntaxError(f"{opener.upper} without matching END", opener.line)
        if self.current:
            self.statements.append(
                Statement(tokens=tuple(self.current), terminated=terminated)
            )
        self._reset()


def split_statements(tokens: Sequence[Token]) -> list[Statement]:
    """Group tokens into statements.

    Raises:
        SqlSyntaxError: On unbalanced parentheses or BEGIN/CASE/END blocks.
    """
    return _Splitter(tokens).run()
