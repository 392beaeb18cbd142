"""
Source Text and Location Tracking
=================================

This module owns the compiled text and everything that points into it.

- **Source**: the fully include-expanded text of one compilation unit and
  where it came from (a file path, or ``<string>`` for in-memory input).
  A Source is created once and shared by reference; it is never copied.
- **CodePoint**: one offset into a Source. Resolves lazily to a
  1-indexed ``(line, column)`` pair by scanning the preceding text.
- **Span**: a half-open ``[start, end)`` range of offsets in one Source,
  used to locate tokens and errors and to render annotated excerpts.

Include Expansion
-----------------
A line of the form ``#include <path>`` is replaced by the text of
``<path>.mi`` resolved against the directory of the file containing the
directive. Included files are expanded recursively, each relative to its
own directory. Expansion is purely textual and happens eagerly, before
tokenization, so a missing include aborts loading immediately.

Excerpt Rendering
-----------------
>>> source = Source.from_string("fn main do\\n    call exit\\nend")
>>> print(source.span(15, 24).render(line_pad=1))
  1 | fn main do
  2 |     call exit
    |     ^^^^^^^^^
  3 | end
"""

import logging
from pathlib import Path
from typing import Optional, Union

from mica.errors import EndOfInputError, IncludeError, SourceIOError

logger = logging.getLogger(__name__)

# Directive recognised at the start of a line during include expansion
INCLUDE_DIRECTIVE = "#include "

# Extension appended to include targets
DEFAULT_EXTENSION = ".mi"


# =============================================================================
# Source
# =============================================================================

class Source:
    """
    Immutable owner of the text of one compilation unit.

    Attributes:
        text: The include-expanded source text
        path: Originating file path, or None for in-memory strings
    """

    __slots__ = ("_text", "_path")

    def __init__(self, text: str, path: Optional[str] = None):
        self._text = text
        self._path = path

    @classmethod
    def from_string(cls, text: str) -> "Source":
        """Create a Source for in-memory text."""
        return cls(text)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        extension: str = DEFAULT_EXTENSION,
    ) -> "Source":
        """
        Load a source file and expand its ``#include`` directives.

        Args:
            path: File to read
            extension: Suffix appended to include targets

        Raises:
            SourceIOError: If the file or one of its includes cannot be read
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceIOError(f"{path}: {_read_failure(exc)}").when(
                "doing IO operation"
            ) from exc

        expanded = expand_includes(text, path, extension)
        return cls(expanded, str(path))

    @property
    def text(self) -> str:
        return self._text

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def name(self) -> str:
        """Provenance label used in error headers."""
        return self._path if self._path is not None else "<string>"

    def __len__(self) -> int:
        return len(self._text)

    def __repr__(self) -> str:
        return f"Source({self.name})"

    def lines(self) -> list[str]:
        """Split the text into lines (a trailing newline yields an empty last line)."""
        return self._text.split("\n")

    def point(self, offset: int) -> "CodePoint":
        return CodePoint(self, offset)

    def span(self, start: int, end: Optional[int] = None) -> "Span":
        """Span from ``start`` to ``end`` (an empty span if ``end`` is omitted)."""
        return Span(self, start, start if end is None else end)


def _read_failure(exc: Exception) -> str:
    """Short reason for a failed read (OS error text or the decoding problem)."""
    if isinstance(exc, UnicodeDecodeError):
        return f"not valid UTF-8 (byte {exc.start})"
    return exc.strerror or str(exc)


def _include_target(line: str) -> str:
    """Extract the path of an include directive, tolerating <...> and "..."."""
    target = line[len(INCLUDE_DIRECTIVE):].strip()
    if len(target) >= 2 and (target[0], target[-1]) in (("<", ">"), ('"', '"')):
        target = target[1:-1].strip()
    return target


def expand_includes(
    text: str,
    path: Union[str, Path],
    extension: str = DEFAULT_EXTENSION,
    _stack: Optional[list[str]] = None,
) -> str:
    """
    Replace every ``#include`` line of ``text`` with the referenced file.

    Args:
        text: Text of the file being expanded
        path: Path of that file (include targets are relative to its directory)
        extension: Suffix appended to include targets
        _stack: Resolved paths currently being expanded (cycle detection)

    Returns:
        The expanded text

    Raises:
        IncludeError: If an included file is missing, unreadable or not UTF-8,
            or includes itself
    """
    path = Path(path)
    stack = _stack if _stack is not None else [str(path.resolve())]
    directory = path.parent

    expanded = []
    for line in text.split("\n"):
        if not line.startswith(INCLUDE_DIRECTIVE):
            expanded.append(line)
            continue

        target = _include_target(line)
        include_path = directory / f"{target}{extension}"
        resolved = str(include_path.resolve())

        if resolved in stack:
            raise IncludeError(target, "circular include detected").when(
                f"expanding includes of {path}"
            )

        try:
            included = include_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise IncludeError(target, _read_failure(exc)).when(
                f"expanding includes of {path}"
            ) from exc

        logger.debug(f"Including {include_path} into {path}")
        expanded.append(expand_includes(included, include_path, extension, stack + [resolved]))

    return "\n".join(expanded)


# =============================================================================
# CodePoint
# =============================================================================

class CodePoint:
    """
    A single offset into a Source.

    The line/column pair is not stored; it is computed on demand by
    ``position()`` so creating points stays cheap.
    """

    __slots__ = ("source", "offset")

    def __init__(self, source: Source, offset: int):
        if offset < 0:
            raise ValueError(f"negative source offset {offset}")
        self.source = source
        self.offset = offset

    def position(self) -> tuple[int, int]:
        """
        Resolve to a 1-indexed ``(line, column)`` pair.

        Raises:
            EndOfInputError: If the offset lies beyond the end of the text
        """
        text = self.source.text
        if self.offset > len(text):
            raise EndOfInputError().when("resolving source position")

        before = text[:self.offset]
        line = before.count("\n") + 1
        column = self.offset - (before.rfind("\n") + 1) + 1
        return line, column

    def span(self) -> "Span":
        return Span.point(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CodePoint):
            return NotImplemented
        return self.source is other.source and self.offset == other.offset

    def __hash__(self) -> int:
        return hash((id(self.source), self.offset))

    def __repr__(self) -> str:
        return f"CodePoint({self.source.name}, {self.offset})"


# =============================================================================
# Span
# =============================================================================

class Span:
    """
    Half-open range ``[start, end)`` of offsets within one Source.

    Invariant: ``start <= end`` and both bounds belong to ``source``.
    The only mutation allowed is ``extend()``.
    """

    __slots__ = ("source", "start", "end")

    def __init__(self, source: Source, start: int, end: int):
        self.source = source
        self.start = min(start, end)
        self.end = max(start, end)

    @classmethod
    def point(cls, point: CodePoint) -> "Span":
        """Empty span sitting at ``point``."""
        return cls(point.source, point.offset, point.offset)

    @classmethod
    def between(cls, a: CodePoint, b: CodePoint) -> "Span":
        """Span covering both points, whatever their order."""
        if a.source is not b.source:
            raise ValueError("CodePoints should be of same Source")
        return cls(a.source, a.offset, b.offset)

    def start_point(self) -> CodePoint:
        return CodePoint(self.source, self.start)

    def end_point(self) -> CodePoint:
        return CodePoint(self.source, self.end)

    def bounds(self) -> tuple[CodePoint, CodePoint]:
        return self.start_point(), self.end_point()

    def is_empty(self) -> bool:
        return self.start == self.end

    @property
    def text(self) -> str:
        return self.source.text[self.start:self.end]

    def extend(self, point: CodePoint) -> None:
        """Grow the span so that it also covers ``point``."""
        if point.source is not self.source:
            raise ValueError("CodePoint should be of same Source as Span")
        self.start = min(self.start, point.offset)
        self.end = max(self.end, point.offset)

    def merge(self, other: "Span") -> "Span":
        """New span covering this span and ``other``."""
        if other.source is not self.source:
            raise ValueError("Spans should be of same Source")
        return Span(self.source, min(self.start, other.start), max(self.end, other.end))

    def location(self) -> str:
        """
        Header text for error messages.

        Empty spans use the position style ``file:line:col``; anything
        wider uses the range style ``file:line:col..line:col``.
        """
        start_line, start_col = self.start_point().position()
        if self.is_empty():
            return f"{self.source.name}:{start_line}:{start_col}"
        end_line, end_col = self.end_point().position()
        return f"{self.source.name}:{start_line}:{start_col}..{end_line}:{end_col}"

    def render(self, line_pad: int = 2) -> str:
        """
        Render the covered lines with a caret band under each of them.

        Args:
            line_pad: Extra source lines shown above and below the span

        Returns:
            Multi-line excerpt, one ``NNN | text`` row per source line and
            one ``    | ^^^`` row per line covered by the span
        """
        start_line, start_col = self.start_point().position()
        if self.is_empty():
            end_line, end_col = start_line, start_col
        else:
            # Column of the last covered character (end is exclusive)
            end_line, end_col = CodePoint(self.source, self.end - 1).position()

        lines = self.source.lines()
        first = max(start_line - line_pad, 1)
        last = min(end_line + line_pad, len(lines))

        render = []
        for number in range(first, last + 1):
            text = lines[number - 1]
            render.append(f"{number:3} | {text}")

            if number == start_line and number == end_line:
                band = " " * (start_col - 1) + "^" * (end_col - start_col + 1)
            elif number == start_line:
                band = " " * (start_col - 1) + "^" * max(len(text) - start_col + 1, 1)
            elif number == end_line:
                band = "^" * end_col
            elif start_line < number < end_line:
                band = "^" * len(text)
            else:
                continue
            render.append(f"    | {band}".rstrip())

        return "\n".join(render)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Span):
            return NotImplemented
        return (
            self.source is other.source
            and self.start == other.start
            and self.end == other.end
        )

    def __hash__(self) -> int:
        return hash((id(self.source), self.start, self.end))

    def __repr__(self) -> str:
        return f"{self.start}..{self.end}"
