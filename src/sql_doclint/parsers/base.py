# parsers/base.py

from abc import ABC, abstractmethod
from collections.abc import Iterator

from .models import ParsedDocument, Snippet


class ParseError(ValueError):
    """Raised when a document cannot be split into snippets.

    Fatal: callers must not produce a partial report.
    """

    def __init__(self, message: str, *, line: int, byte_offset: int) -> None:
        super().__init__(f"{message} (line {line + 1}, byte offset {byte_offset})")
        self.line = line
        self.byte_offset = byte_offset


class DocumentParser(ABC):
    @abstractmethod
    def iter_snippets(self, text: str) -> Iterator[Snippet]:
        """
        Yield the fenced code blocks of a document in document order.

        Requirements:
        - Deterministic output for same input
        - Offsets are document-global
        - Each call starts a fresh scan
        """
        raise NotImplementedError

    @abstractmethod
    def parse(self, text: str) -> ParsedDocument:
        raise NotImplementedError
