"""Static SQL validation for documentation snippets.

Example:
    >>> from sql_doclint.validation import SyntaxValidator
    >>> from sql_doclint.classify import Dialect
    >>>
    >>> validator = SyntaxValidator()
    >>> result = validator.validate(snippet, Dialect.POSTGRESQL)
    >>> print(result.outcome, result.message)
"""

from .features import Feature, FeatureRegistry, default_registry
from .splitter import Statement, split_statements
from .tokenizer import SqlSyntaxError, Token, TokenKind, tokenize
from .types import Outcome, Problem, ValidationResult
from .validator import SyntaxValidator

__all__ = [
    # Validator
    "SyntaxValidator",
    # Types
    "Outcome",
    "Problem",
    "ValidationResult",
    # Features
    "Feature",
    "FeatureRegistry",
    "default_registry",
    # Lexing and splitting
    "SqlSyntaxError",
    "Statement",
    "Token",
    "TokenKind",
    "split_statements",
    "tokenize",
]
