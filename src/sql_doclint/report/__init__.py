from .report import (
    Report,
    ReportEntry,
    SectionSummary,
    build_report,
    render_json,
    render_text,
    report_payload,
)
from .toc import build_toc, regenerate_toc, toc_is_current

__all__ = [
    # Report
    "Report",
    "ReportEntry",
    "SectionSummary",
    "build_report",
    "render_json",
    "render_text",
    "report_payload",
    # TOC
    "build_toc",
    "regenerate_toc",
    "toc_is_current",
]
