# src/sql_doclint/report/report.py

import json
from collections.abc import Iterable
from dataclasses import dataclass

from sql_doclint.parsers.models import Snippet
from sql_doclint.validation.types import Outcome, ValidationResult


@dataclass(frozen=True)
class ReportEntry:
    snippet: Snippet
    result: ValidationResult

    @property
    def document_line(self) -> int | None:
        """1-based document line of the reported problem."""
        if self.result.line is None:
            return None
        return self.snippet.line + 1 + self.result.line


@dataclass(frozen=True)
class SectionSummary:
    section: str
    counts: dict[str, int]


@dataclass(frozen=True)
class Report:
    source: str
    entries: tuple[ReportEntry, ...]
    counts: dict[str, int]
    sections: tuple[SectionSummary, ...]

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def has_invalid(self) -> bool:
        return self.counts[Outcome.INVALID.value] > 0


def _empty_counts() -> dict[str, int]:
    return {outcome.value: 0 for outcome in Outcome}


def build_report(
    pairs: Iterable[tuple[Snippet, ValidationResult]], source: str = ""
) -> Report:
    """Aggregate validation results, keeping document order.

    Raises:
        ValueError: If a result does not belong to the snippet it is paired
            with.
    """
    entries = []
    counts = _empty_counts()
    sections: dict[str, dict[str, int]] = {}
    for snippet, result in pairs:
        if result.snippet_index != snippet.index:
            raise ValueError(
                f"Result for snippet {result.snippet_index} paired with "
                f"snippet {snippet.index}"
            )
        entries.append(ReportEntry(snippet=snippet, result=result))
        counts[result.outcome.value] += 1
        section = sections.setdefault(snippet.section, _empty_counts())
        section[result.outcome.value] += 1

    return Report(
        source=source,
        entries=tuple(entries),
        counts=counts,
        sections=tuple(
            SectionSummary(section=name, counts=section_counts)
            for name, section_counts in sections.items()
        ),
    )


def _summary(counts: dict[str, int]) -> str:
    return ", ".join(f"{count} {outcome}" for outcome, count in counts.items())


def render_text(report: Report) -> str:
    header = f"{report.source or '<document>'}: {report.total} snippets"
    lines = [f"{header}, {_summary(report.counts)}"]
    for entry in report.entries:
        result = entry.result
        if result.outcome is Outcome.VALID:
            continue
        lines.append(
            f"  {result.outcome.value.upper()} line {entry.document_line} "
            f"[{result.dialect.value}] {entry.snippet.section}: {result.message}"
        )
    if report.sections:
        lines.append("Sections:")
        for section in report.sections:
            lines.append(f"  {section.section}: {_summary(section.counts)}")
    return "\n".join(lines) + "\n"


def report_payload(report: Report) -> dict:
    return {
        "source": report.source,
        "total": report.total,
        "counts": dict(report.counts),
        "sections": [
            {"section": s.section, "counts": dict(s.counts)} for s in report.sections
        ],
        "snippets": [
            {
                "index": entry.snippet.index,
                "section": entry.snippet.section,
                "language": entry.snippet.language,
                "line": entry.snippet.line + 1,
                "dialect": entry.result.dialect.value,
                "outcome": entry.result.outcome.value,
                "message": entry.result.message,
                "problem_line": entry.document_line,
                "statements": entry.result.statements,
            }
            for entry in report.entries
        ],
    }


def render_json(report: Report) -> str:
    return json.dumps(report_payload(report), indent=2) + "\n"
