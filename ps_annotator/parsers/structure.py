"""Data models for function spans, documents, and run results.

These models form the shared vocabulary between the function
extractor, the annotator, and the command line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class MatchMode(str, Enum):
    """How the end of a function definition is located."""

    LAZY = "lazy"
    BRACES = "braces"


class SpliceMode(str, Enum):
    """How descriptions are spliced back into a document."""

    REPLACE = "replace"
    OFFSETS = "offsets"


@dataclass(frozen=True)
class FunctionSpan:
    """One complete function definition found in a document.

    Attributes:
        name: Function name from the ``function <name>`` header.
        start: Offset of the ``function`` keyword.
        end: Offset one past the closing brace.
        text: The literal function text, ``document[start:end]``.
    """

    name: str
    start: int
    end: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary.

        Returns:
            Dictionary representation of this span.
        """
        return {
            "name": self.name,
            "start": self.start,
            "end": self.end,
            "text": self.text,
        }


@dataclass(frozen=True)
class SourceDocument:
    """The full text of one input file."""

    path: Optional[Path]
    text: str

    @classmethod
    def from_file(cls, path: Path) -> SourceDocument:
        """Read a document from disk as UTF-8 text.

        Line endings are kept as they are on disk.

        Args:
            path: File to read.

        Returns:
            A new SourceDocument.
        """
        with open(path, encoding="utf-8", newline="") as f:
            return cls(path=Path(path), text=f.read())

    @property
    def newline(self) -> str:
        """Line ending used by the document, ``"\\r\\n"`` or ``"\\n"``."""
        return detect_newline(self.text)


def detect_newline(text: str) -> str:
    """Return ``"\\r\\n"`` if the text uses Windows line endings, else ``"\\n"``."""
    return "\r\n" if "\r\n" in text else "\n"


@dataclass
class AnnotationResult:
    """The annotated form of one file and what produced it.

    Attributes:
        source_path: File that was read.
        destination_path: File that was written.
        spans: Functions found in the source, in extraction order.
        descriptions: One description per span, same order.
        text: The annotated document text.
    """

    source_path: Path
    destination_path: Path
    spans: list[FunctionSpan] = field(default_factory=list)
    descriptions: list[str] = field(default_factory=list)
    text: str = ""

    @property
    def function_count(self) -> int:
        """Number of functions annotated."""
        return len(self.spans)


@dataclass
class RunSummary:
    """Counts of files attempted, succeeded, and failed during a run."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    failed_files: list[str] = field(default_factory=list)
    succeeded_files: list[str] = field(default_factory=list)

    def record_success(self, path: Path) -> None:
        self.attempted += 1
        self.succeeded += 1
        self.succeeded_files.append(str(path))

    def record_failure(self, path: Path) -> None:
        self.attempted += 1
        self.failed += 1
        self.failed_files.append(str(path))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary.

        Returns:
            Dictionary representation of this summary.
        """
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failed_files": list(self.failed_files),
            "succeeded_files": list(self.succeeded_files),
        }
