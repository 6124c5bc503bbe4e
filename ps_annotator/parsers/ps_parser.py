"""PowerShell function extractor.

Locates ``function <name> { ... }`` definitions in raw script text.
Two matching modes are supported:

* ``lazy``: a non-greedy regular expression that stops at the first
  closing brace. Any nested block (``if``, loops, script blocks) ends
  the match early. Kept for compatibility with scripts annotated by
  earlier versions of this tool.
* ``braces``: a small lexical scan that counts brace depth and treats
  strings, here-strings and comments as opaque, so the span ends at the
  brace that closes the function.
"""

import logging
import re
from collections.abc import Iterator
from typing import Optional, Union

from ps_annotator.parsers.structure import FunctionSpan, MatchMode

logger = logging.getLogger(__name__)

_LAZY_RE = re.compile(r"function\s+([\w-]+)\s*\{.*?\}", re.DOTALL)
_HEADER_RE = re.compile(r"(?<![\w-])function\s+([\w-]+)\s*\{")
_HERE_STRING_RE = re.compile(r"@(['\"])[ \t]*\r?\n")


class FunctionExtractor:
    """Finds function definitions in PowerShell source text."""

    def __init__(self, mode: Union[MatchMode, str] = MatchMode.BRACES) -> None:
        """Initialize the extractor.

        Args:
            mode: Matching mode, ``"braces"`` or ``"lazy"``.

        Raises:
            ValueError: If the mode is not recognised.
        """
        self.mode = MatchMode(mode)

    def iter_functions(self, text: str) -> Iterator[FunctionSpan]:
        """Yield every top-level function definition in order.

        The returned generator is lazy and can only be consumed once.

        Args:
            text: Full text of a PowerShell script.

        Returns:
            A generator of FunctionSpan objects.
        """
        if self.mode == MatchMode.LAZY:
            return self._iter_lazy(text)
        return self._iter_braced(text)

    def extract(self, text: str) -> list[FunctionSpan]:
        """Return all function definitions in the text as a list.

        Args:
            text: Full text of a PowerShell script.

        Returns:
            List of FunctionSpan objects in document order.
        """
        spans = list(self.iter_functions(text))
        logger.debug(
            "Extracted %d functions (%s mode): %s",
            len(spans),
            self.mode.value,
            ", ".join(span.name for span in spans),
        )
        return spans

    def _iter_lazy(self, text: str) -> Iterator[FunctionSpan]:
        for match in _LAZY_RE.finditer(text):
            yield FunctionSpan(
                name=match.group(1),
                start=match.start(),
                end=match.end(),
                text=match.group(0),
            )

    def _iter_braced(self, text: str) -> Iterator[FunctionSpan]:
        pos = 0
        length = len(text)
        while pos < length:
            skipped = _skip_opaque(text, pos)
            if skipped is not None:
                pos = skipped
                continue

            if text[pos] == "f":
                header = _HEADER_RE.match(text, pos)
                if header:
                    end = _find_closing_brace(text, header.end())
                    if end is None:
                        logger.warning(
                            "Unbalanced braces in function %s at offset %d",
                            header.group(1),
                            pos,
                        )
                        pos = header.end()
                        continue
                    yield FunctionSpan(
                        name=header.group(1),
                        start=pos,
                        end=end,
                        text=text[pos:end],
                    )
                    pos = end
                    continue

            pos += 1


def _find_closing_brace(text: str, pos: int) -> Optional[int]:
    """Scan forward from just inside an opening brace.

    Returns:
        Offset one past the matching closing brace, or None if the
        text ends first.
    """
    depth = 1
    length = len(text)
    while pos < length:
        skipped = _skip_opaque(text, pos)
        if skipped is not None:
            pos = skipped
            continue

        ch = text[pos]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return pos + 1
        pos += 1
    return None


def _skip_opaque(text: str, pos: int) -> Optional[int]:
    """Skip a comment, string or here-string starting at ``pos``.

    Returns:
        The offset just past the construct, or None if none starts here.
    """
    ch = text[pos]

    if text.startswith("<#", pos):
        close = text.find("#>", pos + 2)
        return len(text) if close == -1 else close + 2

    if ch == "#":
        newline = text.find("\n", pos)
        return len(text) if newline == -1 else newline

    if ch == "@":
        here = _HERE_STRING_RE.match(text, pos)
        if here:
            terminator = "\n" + here.group(1) + "@"
            close = text.find(terminator, here.end() - 1)
            return len(text) if close == -1 else close + len(terminator)
        return None

    if ch == "'":
        close = text.find("'", pos + 1)
        return len(text) if close == -1 else close + 1

    if ch == '"':
        i = pos + 1
        while i < len(text):
            if text[i] == "`":
                i += 2
                continue
            if text[i] == '"':
                return i + 1
            i += 1
        return len(text)

    return None


def extract_functions(
    text: str, mode: Union[MatchMode, str] = MatchMode.BRACES
) -> list[FunctionSpan]:
    """Extract all function definitions from PowerShell source text.

    Args:
        text: Full text of a PowerShell script.
        mode: Matching mode, ``"braces"`` or ``"lazy"``.

    Returns:
        List of FunctionSpan objects in document order.
    """
    return FunctionExtractor(mode).extract(text)
