"""JavaScript parsing on top of ``esprima``.

Every file is tried as an ES module first and as a classic script second,
with ``loc``/``range`` tracking, JSX and tolerant mode enabled.  Recoverable
problems are kept on ``ParsedSource.errors``; anything else surfaces as
``ParseFailure`` so the caller can turn it into a parse-error issue.
"""

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterator

import esprima
from esprima.error_handler import Error as EsprimaError

from prodready.errors import ParseFailure
from prodready.source import ast_utils

_logger = logging.getLogger(__name__)

_PARSE_OPTIONS = {"loc": True, "range": True, "tolerant": True, "jsx": True}

_LINE_BREAK = re.compile(r"\r\n|[\n\r\u2028\u2029]")


@dataclass
class ParsedSource:
    """One parse of one text.  Discarded after use, never edited in place."""

    text: str
    program: Any
    source_type: str = "module"
    errors: tuple[str, ...] = ()
    _nodes: list[Any] | None = field(default=None, init=False, repr=False)
    _parents: dict[int, Any] | None = field(default=None, init=False, repr=False)
    _line_starts: list[int] | None = field(default=None, init=False, repr=False)

    # ── traversal ───────────────────────────────────────────────────

    def _index(self) -> None:
        nodes: list[Any] = []
        parents: dict[int, Any] = {}
        for node, parent in ast_utils.walk(self.program):
            nodes.append(node)
            parents[id(node)] = parent
        self._nodes = nodes
        self._parents = parents

    @property
    def nodes(self) -> list[Any]:
        """All nodes in source (pre-)order."""
        if self._nodes is None:
            self._index()
        return self._nodes  # type: ignore[return-value]

    def nodes_of_type(self, *types: str) -> Iterator[Any]:
        wanted = set(types)
        return (n for n in self.nodes if n.type in wanted)

    def parent(self, node: Any) -> Any | None:
        if self._parents is None:
            self._index()
        return self._parents.get(id(node))  # type: ignore[union-attr]

    def ancestors(self, node: Any) -> Iterator[Any]:
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def enclosing_function(self, node: Any) -> Any | None:
        for anc in self.ancestors(node):
            if ast_utils.is_function(anc):
                return anc
        return None

    # ── text ────────────────────────────────────────────────────────

    def text_of(self, node: Any) -> str:
        start, end = ast_utils.node_range(node)
        return self.text[start:end]

    @property
    def line_starts(self) -> list[int]:
        if self._line_starts is None:
            self._line_starts = [0] + [m.end() for m in _LINE_BREAK.finditer(self.text)]
        return self._line_starts

    def line_of_offset(self, offset: int) -> int:
        """1-based line number containing *offset*."""
        return bisect.bisect_right(self.line_starts, offset)

    def line_text(self, line: int) -> str:
        starts = self.line_starts
        if line < 1 or line > len(starts):
            return ""
        begin = starts[line - 1]
        end = starts[line] if line < len(starts) else len(self.text)
        return self.text[begin:end].rstrip("\r\n\u2028\u2029")

    def indent_of_line(self, line: int) -> str:
        content = self.line_text(line)
        return content[: len(content) - len(content.lstrip(" \t"))]


def _attempt(parse_fn: Any, text: str) -> Any:
    try:
        return parse_fn(text, dict(_PARSE_OPTIONS))
    except RecursionError as exc:
        raise EsprimaError("Maximum nesting depth exceeded") from exc


def parse(text: str, *, file: str = "") -> ParsedSource:
    """Parse *text*; raise ``ParseFailure`` when neither goal symbol accepts it."""
    failures: list[EsprimaError] = []
    for source_type, parse_fn in (
        ("module", esprima.parseModule),
        ("script", esprima.parseScript),
    ):
        try:
            program = _attempt(parse_fn, text)
        except EsprimaError as exc:
            failures.append(exc)
            continue
        tolerated = tuple(
            str(getattr(e, "description", None) or e)
            for e in (getattr(program, "errors", None) or ())
        )
        if tolerated:
            _logger.debug("%s: tolerated %d parse error(s)", file or "<source>", len(tolerated))
        return ParsedSource(
            text=text,
            program=program,
            source_type=source_type,
            errors=tolerated,
        )

    # Report whichever attempt got furthest into the text.
    best = max(failures, key=lambda e: getattr(e, "index", 0) or 0)
    reason = str(getattr(best, "description", None) or best)
    line = int(getattr(best, "lineNumber", 0) or 0)
    column = getattr(best, "column", None)
    _logger.debug("%s: parse failed at line %d: %s", file or "<source>", line, reason)
    raise ParseFailure(reason, line=line, column=column)


def try_parse(text: str) -> ParsedSource | None:
    """Return ``None`` instead of raising; used to validate fixer output."""
    try:
        return parse(text)
    except ParseFailure:
        return None
