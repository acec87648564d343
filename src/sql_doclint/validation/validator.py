# src/sql_doclint/validation/validator.py

import logging
from time import monotonic

from sql_doclint.classify.dialects import Dialect
from sql_doclint.observability import names
from sql_doclint.observability.base import MetricsHook, NoOpMetricsHook
from sql_doclint.parsers.models import Snippet

from .checks import check_statement
from .features import FeatureRegistry, default_registry
from .splitter import split_statements
from .tokenizer import SqlSyntaxError, tokenize
from .types import Outcome, Problem, ValidationResult

logger = logging.getLogger(__name__)


class SyntaxValidator:
    """Static, permissive SQL checks for documentation snippets.

    Design principles:
    - Textual only: SQL is never executed
    - Structural errors are invalid in every dialect
    - Dialect-specific constructs outside the target dialect are
      unsupported, never invalid
    - Generic accepts every known dialect construct
    """

    def __init__(
        self,
        registry: FeatureRegistry | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.registry = registry or default_registry()
        self.metrics_hook = metrics_hook

    def validate(self, snippet: Snippet, dialect: Dialect) -> ValidationResult:
        start = monotonic()
        result = self._validate(snippet, dialect)
        elapsed_ms = 1000 * (monotonic() - start)

        self.metrics_hook.record_latency(names.VALIDATION_DURATION, elapsed_ms)
        self.metrics_hook.increment(
            names.VALIDATION_RESULTS_TOTAL,
            labels={"outcome": result.outcome.value, "dialect": dialect.value},
        )
        logger.debug(
            "Snippet %d under %s: %s %s",
            snippet.index,
            dialect.value,
            result.outcome.value,
            result.message,
        )
        return result

    def problems(self, text: str, dialect: Dialect) -> tuple[list[Problem], int]:
        """All findings for a piece of SQL and the number of statements."""
        try:
            tokens = tokenize(text, dialect)
            statements = split_statements(tokens)
        except SqlSyntaxError as exc:
            return [Problem(Outcome.INVALID, exc.message, exc.line)], 0

        problems: list[Problem] = []
        for statement in statements:
            problems.extend(check_statement(statement))

        for feature, token in self.registry.detect(tokens):
            if feature.supported_by(dialect):
                continue
            problems.append(
                Problem(
                    outcome=Outcome.UNSUPPORTED_DIALECT,
                    message=(
                        f"{feature.description} is not supported by {dialect.label}"
                        f" (supported: {feature.supporters()})"
                    ),
                    line=token.line,
                )
            )
        return problems, len(statements)

    def _validate(self, snippet: Snippet, dialect: Dialect) -> ValidationResult:
        problems, statements = self.problems(snippet.text, dialect)
        for outcome in (Outcome.INVALID, Outcome.UNSUPPORTED_DIALECT):
            matching = [p for p in problems if p.outcome is outcome]
            if matching:
                first = min(matching, key=lambda p: p.line)
                return ValidationResult(
                    snippet_index=snippet.index,
                    dialect=dialect,
                    outcome=outcome,
                    message=first.message,
                    line=first.line,
                    statements=statements,
                )
        return ValidationResult(
            snippet_index=snippet.index,
            dialect=dialect,
            outcome=Outcome.VALID,
            statements=statements,
        )
