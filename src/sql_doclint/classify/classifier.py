# src/sql_doclint/classify/classifier.py

import logging
import re

from sql_doclint.parsers.models import Snippet

from .dialects import ALIASES, Dialect, find_dialect_keyword

logger = logging.getLogger(__name__)

_EXPLICIT_RE = re.compile(r"\bdialect\s*[:=]\s*([\w/+-]+)", re.IGNORECASE)


def leading_comments(text: str) -> list[str]:
    """Comment text at the top of a snippet, up to the first code line."""
    comments = []
    in_block = False
    for raw in text.splitlines():
        line = raw.strip()
        if in_block:
            end = line.find("*/")
            comments.append(line if end < 0 else line[:end])
            in_block = end < 0
            continue
        if not line:
            continue
        if line.startswith("--"):
            comments.append(line[2:])
        elif line.startswith("#") and (len(line) == 1 or not line[1].isalnum()):
            comments.append(line.lstrip("#"))
        elif line.startswith("/*"):
            end = line.find("*/", 2)
            comments.append(line[2:] if end < 0 else line[2:end])
            in_block = end < 0
        else:
            break
    return comments


def _explicit_hint(comments: list[str], snippet: Snippet) -> Dialect | None:
    for comment in comments:
        match = _EXPLICIT_RE.search(comment)
        if match is None:
            continue
        name = match.group(1).lower()
        if name in ALIASES:
            return ALIASES[name]
        logger.warning(
            "Unknown dialect hint %r in snippet %d; ignoring it",
            match.group(1),
            snippet.index,
        )
    return None


def _comment_hint(snippet: Snippet) -> Dialect | None:
    comments = leading_comments(snippet.text)
    explicit = _explicit_hint(comments, snippet)
    if explicit is not None:
        return explicit
    for comment in comments:
        if _EXPLICIT_RE.search(comment):
            continue
        dialect = find_dialect_keyword(comment)
        if dialect is not None:
            return dialect
    return None


def _fence_hint(snippet: Snippet) -> Dialect | None:
    words = snippet.info.split()
    if not words:
        return None
    tag = words[0].lower()
    if tag in ALIASES and ALIASES[tag] is not Dialect.GENERIC:
        return ALIASES[tag]
    return find_dialect_keyword(" ".join(words[1:]))


def _heading_hint(snippet: Snippet) -> Dialect | None:
    for title in reversed(snippet.heading_path):
        dialect = find_dialect_keyword(title)
        if dialect is not None:
            return dialect
    return None


def classify(snippet: Snippet, *, use_heading_hints: bool = True) -> Dialect:
    """Infer the target dialect of a snippet.

    Leading comments win over the fence info string, which wins over the
    heading path. Falls back to Generic.
    """
    dialect = _comment_hint(snippet) or _fence_hint(snippet)
    if dialect is None and use_heading_hints:
        dialect = _heading_hint(snippet)
    dialect = dialect or Dialect.GENERIC
    logger.debug("Snippet %d classified as %s", snippet.index, dialect.value)
    return dialect
