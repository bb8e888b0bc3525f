"""Range-based text edits and unified diffs.

Fixers express a rewrite as ``TextEdit`` objects over the text they were
given; everything outside the edited ranges is preserved byte for byte,
comments and formatting included.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass

from prodready.errors import FixApplicationError


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replace ``text[start:end]`` with *replacement*."""

    start: int
    end: int
    replacement: str

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid edit range [{self.start}, {self.end})")


@dataclass(frozen=True, slots=True)
class LineShift:
    """Lines after ``after_line`` moved by ``delta``."""

    after_line: int
    delta: int


def apply_edits(text: str, edits: list[TextEdit]) -> str:
    """Apply non-overlapping *edits*; raises ``FixApplicationError`` on overlap."""
    ordered = sorted(edits, key=lambda e: (e.start, e.end))
    for prev, nxt in zip(ordered, ordered[1:]):
        if nxt.start < prev.end:
            raise FixApplicationError(
                f"overlapping edits at offsets {prev.start}-{prev.end} and {nxt.start}-{nxt.end}"
            )
    if ordered and ordered[-1].end > len(text):
        raise FixApplicationError("edit extends past end of text")

    out = text
    for edit in reversed(ordered):
        out = out[: edit.start] + edit.replacement + out[edit.end :]
    return out


def line_shifts(text: str, edits: list[TextEdit]) -> list[LineShift]:
    """How each edit moves the lines below it."""
    shifts: list[LineShift] = []
    for edit in edits:
        end_line = text.count("\n", 0, edit.end) + 1
        delta = edit.replacement.count("\n") - text.count("\n", edit.start, edit.end)
        if delta:
            shifts.append(LineShift(after_line=end_line, delta=delta))
    return shifts


def shift_line(line: int, shifts: list[LineShift]) -> int:
    return line + sum(s.delta for s in shifts if line > s.after_line)


def unified_diff(before: str, after: str, *, file: str = "file") -> str:
    """Unified diff with ``before``/``after`` headers."""
    lines = difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=f"{file}\tbefore",
        tofile=f"{file}\tafter",
    )
    out: list[str] = []
    for line in lines:
        out.append(line if line.endswith("\n") else line + "\n\\ No newline at end of file\n")
    return "".join(out)


def snippet(text: str, line: int, *, before: int = 2, after: int = 2) -> str:
    """Lines around *line* (1-based) for previews."""
    lines = text.splitlines()
    if line <= 0:
        return "\n".join(lines[: before + after + 1])
    start = max(0, line - 1 - before)
    end = min(len(lines), line + after)
    return "\n".join(lines[start:end])
