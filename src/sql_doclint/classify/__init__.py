from .classifier import classify, leading_comments
from .dialects import Dialect, find_dialect_keyword, parse_dialect

__all__ = [
    "Dialect",
    "classify",
    "find_dialect_keyword",
    "leading_comments",
    "parse_dialect",
]
