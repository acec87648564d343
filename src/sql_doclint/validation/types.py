# src/sql_doclint/validation/types.py

from dataclasses import dataclass
from enum import Enum

from sql_doclint.classify.dialects import Dialect


class Outcome(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    UNSUPPORTED_DIALECT = "unsupported-dialect"


@dataclass(frozen=True)
class Problem:
    """A single finding inside a snippet. Lines are 1-based."""

    outcome: Outcome
    message: str
    line: int


@dataclass(frozen=True)
class ValidationResult:
    """Normalized outcome for one snippet under one dialect."""

    snippet_index: int
    dialect: Dialect
    outcome: Outcome
    message: str = ""
    line: int | None = None
    statements: int = 0

    @property
    def is_valid(self) -> bool:
        return self.outcome is Outcome.VALID
