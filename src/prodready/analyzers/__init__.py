"""Analyzers turn one parsed file plus its Context into issues.

Every analyzer exposes ``id``, ``name``, ``category`` and ``version`` and
implements ``should_run(file_id, context)`` and
``analyze(tree, context, file_id) -> list[Issue]``.  ``analyze`` is pure:
several analyzers may run over the same tree, in any order.

Available analyzers:
    - SQLInjectionAnalyzer: query strings built by concatenation/interpolation
    - ErrorHandlingAnalyzer: async functions without try/catch, bare ``.then``
    - HardcodedSecretsAnalyzer: credentials embedded in string literals
"""

from __future__ import annotations

import re
from typing import Protocol

from prodready.model import Category
from prodready.model.context import Context
from prodready.model.issue import Issue
from prodready.source.parser import ParsedSource

JS_FILE_RE = re.compile(r"\.(?:js|jsx|mjs|cjs|ts|tsx)$", re.IGNORECASE)
TEST_FILE_RE = re.compile(r"(?:\.(?:test|spec)\.[^/\\]+$)|(?:(?:^|[/\\])__tests__[/\\])")


class Analyzer(Protocol):
    """Structural type every detector satisfies."""

    id: str
    name: str
    category: Category
    version: str

    def should_run(self, file_id: str, context: Context) -> bool:
        ...

    def analyze(self, tree: ParsedSource, context: Context, file_id: str) -> list[Issue]:
        """Return issues found in *tree*; must not mutate *tree* or *context*."""
        ...


def is_source_file(file_id: str) -> bool:
    return bool(JS_FILE_RE.search(file_id))


def is_test_file(file_id: str) -> bool:
    return bool(TEST_FILE_RE.search(file_id))


def default_analyzers(*, async_wrappers: tuple[str, ...] = ()) -> list[Analyzer]:
    """Registration order is the order detectors run in."""
    from prodready.analyzers.error_handling import ErrorHandlingAnalyzer
    from prodready.analyzers.secrets import HardcodedSecretsAnalyzer
    from prodready.analyzers.sql_injection import SQLInjectionAnalyzer

    return [
        SQLInjectionAnalyzer(),
        ErrorHandlingAnalyzer(extra_wrappers=async_wrappers),
        HardcodedSecretsAnalyzer(),
    ]
