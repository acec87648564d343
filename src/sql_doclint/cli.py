"""Command-line interface for sql-doclint."""

import argparse
import logging
import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sql_doclint.classify.dialects import ALIASES, parse_dialect
from sql_doclint.config import LinterConfig, load_config
from sql_doclint.observability import LoggingMetricsHook, MetricsHook, NoOpMetricsHook
from sql_doclint.parsers.base import ParseError
from sql_doclint.pipeline import lint_file
from sql_doclint.report.report import Report, render_json, render_text
from sql_doclint.validation.features import FeatureRegistry, default_registry
from sql_doclint.validation.types import Outcome

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

_OUTCOME_STYLES = {
    Outcome.VALID: "green",
    Outcome.INVALID: "bold red",
    Outcome.UNSUPPORTED_DIALECT: "yellow",
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="sql-doclint",
        description="Validate SQL snippets in markdown documentation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sql-doclint guide.md
  sql-doclint guide.md --dialect postgresql --format json
  sql-doclint guide.md --write-toc
  sql-doclint --config .sql-doclint.yaml --check-toc
  sql-doclint guide.md --allow-feature limit --allow-feature ilike
  sql-doclint --list-features

Exit codes:
  0  every snippet is valid or uses constructs of another dialect
  1  at least one snippet is invalid, or --check-toc found a stale TOC
  2  malformed document, unreadable file or bad configuration
        """,
    )
    parser.add_argument(
        "path",
        nargs="?",
        help="Markdown file to check (default: the configured document, README.md)",
    )
    parser.add_argument(
        "--config",
        help="YAML configuration file",
    )
    parser.add_argument(
        "--dialect",
        choices=sorted(ALIASES),
        help="Validate every snippet against this dialect instead of classifying it",
    )
    parser.add_argument(
        "--format",
        dest="report_format",
        choices=["text", "json", "table"],
        help="Report format (default: text)",
    )
    parser.add_argument(
        "--write-toc",
        action="store_true",
        default=None,
        help="Rewrite the file with a regenerated table of contents",
    )
    parser.add_argument(
        "--check-toc",
        action="store_true",
        help="Fail when the table of contents is out of date",
    )
    parser.add_argument(
        "--insert-toc",
        dest="insert_toc_if_missing",
        action="store_true",
        default=None,
        help="Insert TOC markers after the first title when they are missing",
    )
    parser.add_argument(
        "--include-untagged",
        action="store_true",
        default=None,
        help="Also validate code blocks without a language tag",
    )
    parser.add_argument(
        "--allow-feature",
        dest="allow_features",
        action="append",
        metavar="NAME",
        help="Accept a dialect-specific construct in every dialect (repeatable)",
    )
    parser.add_argument(
        "--list-features",
        action="store_true",
        help="List the dialect-specific constructs that are checked and exit",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-vv for debug)",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log errors",
    )
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    if args.quiet:
        level = logging.ERROR
    elif args.verbose >= 2:
        level = logging.DEBUG
    elif args.verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def build_config(args: argparse.Namespace) -> LinterConfig:
    """Configuration file values, overridden by command-line flags."""
    config = load_config(args.config) if args.config else LinterConfig()
    return config.with_overrides(
        document=args.path,
        dialect=parse_dialect(args.dialect) if args.dialect else None,
        report_format=args.report_format,
        write_toc=args.write_toc,
        insert_toc_if_missing=args.insert_toc_if_missing,
        include_untagged=args.include_untagged,
        allow_features=tuple(args.allow_features) if args.allow_features else None,
    )


def print_features(registry: FeatureRegistry, console: Console) -> None:
    table = Table(title="Dialect-specific constructs")
    table.add_column("Name", style="cyan")
    table.add_column("Construct")
    table.add_column("Supported by")

    for name, feature in sorted(registry.list().items()):
        table.add_row(name, escape(feature.description), feature.supporters())

    console.print(table)


def print_table(report: Report, console: Console) -> None:
    table = Table(title=f"{report.source} ({report.total} snippets)")
    table.add_column("#", justify="right")
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Section")
    table.add_column("Dialect")
    table.add_column("Outcome")
    table.add_column("Message")

    for entry in report.entries:
        result = entry.result
        table.add_row(
            str(entry.snippet.index),
            str(entry.snippet.line + 1),
            escape(entry.snippet.section),
            result.dialect.label,
            f"[{_OUTCOME_STYLES[result.outcome]}]{result.outcome.value}[/]",
            escape(result.message),
        )

    console.print(table)
    console.print(
        ", ".join(f"{count} {outcome}" for outcome, count in report.counts.items())
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    if args.list_features:
        print_features(default_registry(), Console())
        return EXIT_OK

    metrics_hook: MetricsHook = (
        LoggingMetricsHook() if args.verbose >= 2 else NoOpMetricsHook()
    )

    try:
        config = build_config(args)
        run = lint_file(config.document, config, metrics_hook=metrics_hook)
    except ParseError as exc:
        print(f"sql-doclint: {config.document}: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except (OSError, ValueError) as exc:
        print(f"sql-doclint: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if isinstance(metrics_hook, LoggingMetricsHook):
        logger.debug("metrics: %s", metrics_hook.summary())

    if config.report_format == "json":
        sys.stdout.write(render_json(run.report))
    elif config.report_format == "table":
        print_table(run.report, Console())
    else:
        sys.stdout.write(render_text(run.report))

    if run.report.has_invalid:
        return EXIT_INVALID
    if args.check_toc and run.toc_changed and not config.write_toc:
        print("sql-doclint: table of contents is out of date", file=sys.stderr)
        return EXIT_INVALID
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
