"""Annotation pipeline: extract, describe, splice, write.

Orchestrates the annotation of PowerShell scripts by extracting each
function definition, asking the description client about it, and
inserting the answer as a ``<# Description: ... #>`` block directly
above the function. Works on a single file or a directory tree.
"""

import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Optional, Protocol, Union

from ps_annotator.generators.template_manager import TemplateManager
from ps_annotator.parsers.ps_parser import FunctionExtractor
from ps_annotator.parsers.structure import (
    AnnotationResult,
    FunctionSpan,
    RunSummary,
    SourceDocument,
    SpliceMode,
    detect_newline,
)

logger = logging.getLogger(__name__)

FileCallback = Callable[[Path, Path], None]


class Describer(Protocol):
    """Anything that can turn a function's source into a description."""

    def describe(self, function_text: str) -> str: ...


def validate_source(source: Path, mode: str) -> None:
    """Check that the source path exists and is the right kind.

    Args:
        source: Source file or directory.
        mode: ``"single"`` expects a file, ``"batch"`` a directory.

    Raises:
        FileNotFoundError: If the source does not exist.
        IsADirectoryError: If a file was expected but a directory was given.
        NotADirectoryError: If a directory was expected but not given.
    """
    source = Path(source)
    if mode == "batch":
        if not source.exists():
            raise FileNotFoundError(f"Source directory not found: {source}")
        if not source.is_dir():
            raise NotADirectoryError(f"Source is not a directory: {source}")
    else:
        if not source.exists():
            raise FileNotFoundError(f"Source file not found: {source}")
        if not source.is_file():
            raise IsADirectoryError(f"Source is not a file: {source}")


def collect_files(source_dir: Path, extensions: Iterable[str]) -> list[Path]:
    """Collect all files under a directory with a matching suffix.

    Args:
        source_dir: Directory to search recursively.
        extensions: Suffixes to include, e.g. ``[".ps1"]``. Case-insensitive.

    Returns:
        Sorted list of matching file paths.
    """
    wanted = {ext.lower() for ext in extensions}
    return sorted(
        path
        for path in Path(source_dir).rglob("*")
        if path.is_file() and path.suffix.lower() in wanted
    )


def plan_files(
    source_dir: Path, destination_dir: Path, extensions: Iterable[str]
) -> list[tuple[Path, Path]]:
    """Pair every matching source file with its mirrored destination.

    Args:
        source_dir: Directory to search recursively.
        destination_dir: Root of the mirrored output tree.
        extensions: Suffixes to include.

    Returns:
        List of (source, destination) pairs in processing order.
    """
    source_dir = Path(source_dir)
    destination_dir = Path(destination_dir)
    return [
        (path, destination_dir / path.relative_to(source_dir))
        for path in collect_files(source_dir, extensions)
    ]


def splice_by_replace(
    text: str, blocks: Iterable[tuple[FunctionSpan, str]]
) -> str:
    """Substitute every occurrence of each function's text with its block.

    Replacements run left to right on the already-modified text, so a
    function whose text also appears elsewhere, or inside another
    function, is annotated at every occurrence.
    """
    for span, block in blocks:
        text = text.replace(span.text, block)
    return text


def splice_by_offsets(
    text: str, blocks: Iterable[tuple[FunctionSpan, str]]
) -> str:
    """Rebuild the text, swapping each recorded span for its block.

    Spans must be non-overlapping and in document order.
    """
    parts = []
    cursor = 0
    for span, block in blocks:
        parts.append(text[cursor : span.start])
        parts.append(block)
        cursor = span.end
    parts.append(text[cursor:])
    return "".join(parts)


class Annotator:
    """Adds generated description comments above PowerShell functions."""

    def __init__(
        self,
        client: Describer,
        extractor: Optional[FunctionExtractor] = None,
        template_manager: Optional[TemplateManager] = None,
        splice_mode: Union[SpliceMode, str] = SpliceMode.OFFSETS,
        extensions: Optional[list[str]] = None,
    ) -> None:
        """Initialize the annotator.

        Args:
            client: Produces one description per function.
            extractor: Function extractor. Uses brace matching if not provided.
            template_manager: Renders comment blocks. Creates a default
                instance if not provided.
            splice_mode: ``"offsets"`` or ``"replace"``.
            extensions: File suffixes picked up in batch mode.
        """
        self.client = client
        self.extractor = extractor or FunctionExtractor()
        self.templates = template_manager or TemplateManager()
        self.splice_mode = SpliceMode(splice_mode)
        self.extensions = extensions or [".ps1"]

    def annotate_source(
        self, text: str
    ) -> tuple[str, list[FunctionSpan], list[str]]:
        """Annotate every function in a document.

        Comment blocks use the same line ending as the document.

        Args:
            text: Full text of a PowerShell script.

        Returns:
            The annotated text, the spans found, and one description
            per span. A document without functions is returned as is.
        """
        spans = list(self.extractor.iter_functions(text))
        if not spans:
            logger.debug("No functions found, leaving document unchanged")
            return text, [], []

        newline = detect_newline(text)
        descriptions = []
        blocks = []
        for span in spans:
            description = self.client.describe(span.text)
            logger.debug("Described function %s", span.name)
            descriptions.append(description)
            block = self.templates.render_comment_block(
                description, span.text, newline=newline
            )
            blocks.append((span, block))

        if self.splice_mode == SpliceMode.REPLACE:
            annotated = splice_by_replace(text, blocks)
        else:
            annotated = splice_by_offsets(text, blocks)
        return annotated, spans, descriptions

    def annotate_file(self, source: Path, destination: Path) -> AnnotationResult:
        """Annotate one file and write the result.

        Parent directories of the destination are created as needed and
        the destination is overwritten. Line endings are preserved
        byte for byte.

        Args:
            source: Script to read.
            destination: Where to write the annotated script.

        Returns:
            An AnnotationResult for the file.
        """
        source = Path(source)
        destination = Path(destination)
        document = SourceDocument.from_file(source)
        annotated, spans, descriptions = self.annotate_source(document.text)

        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(destination, "w", encoding="utf-8", newline="") as f:
            f.write(annotated)

        logger.info(
            "Annotated %s -> %s (%d functions)", source, destination, len(spans)
        )
        return AnnotationResult(
            source_path=source,
            destination_path=destination,
            spans=spans,
            descriptions=descriptions,
            text=annotated,
        )

    def annotate_single(
        self,
        source: Path,
        destination: Path,
        on_file_done: Optional[FileCallback] = None,
    ) -> RunSummary:
        """Annotate a single file.

        Args:
            source: Existing script file.
            destination: Output file path.
            on_file_done: Called with (source, destination) on success.

        Returns:
            A RunSummary covering the one file.

        Raises:
            FileNotFoundError: If the source does not exist.
            IsADirectoryError: If the source is a directory.
        """
        source = Path(source)
        validate_source(source, "single")
        return self._run([(source, Path(destination))], on_file_done)

    def annotate_directory(
        self,
        source_dir: Path,
        destination_dir: Path,
        on_file_done: Optional[FileCallback] = None,
    ) -> RunSummary:
        """Annotate every matching script under a directory.

        The destination mirrors the source's relative layout.

        Args:
            source_dir: Existing directory to search recursively.
            destination_dir: Root of the output tree.
            on_file_done: Called with (source, destination) per success.

        Returns:
            A RunSummary for all files found.

        Raises:
            FileNotFoundError: If the source does not exist.
            NotADirectoryError: If the source is not a directory.
        """
        source_dir = Path(source_dir)
        validate_source(source_dir, "batch")
        pairs = plan_files(source_dir, Path(destination_dir), self.extensions)
        logger.info("Found %d scripts under %s", len(pairs), source_dir)
        return self._run(pairs, on_file_done)

    def _run(
        self,
        pairs: list[tuple[Path, Path]],
        on_file_done: Optional[FileCallback],
    ) -> RunSummary:
        summary = RunSummary()
        for source, destination in pairs:
            try:
                self.annotate_file(source, destination)
            except Exception as e:
                logger.error("Failed to annotate %s: %s", source, e)
                summary.record_failure(source)
                continue

            summary.record_success(source)
            if on_file_done is not None:
                on_file_done(source, destination)

        logger.info(
            "Run complete: %d attempted, %d succeeded, %d failed",
            summary.attempted,
            summary.succeeded,
            summary.failed,
        )
        return summary
