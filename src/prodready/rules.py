"""Issue-type registry.

Every ``Issue.type`` emitted by a detector must appear in exactly one of
``FIXABLE_TYPES`` or ``UNFIXABLE_TYPES``.
"""

from __future__ import annotations

SQL_INJECTION = "sql-injection"
NO_ERROR_HANDLING = "no-error-handling"
UNHANDLED_PROMISE = "unhandled-promise"
HARDCODED_SECRET = "hardcoded-secret"
PARSE_ERROR = "parse-error"

FIXABLE_TYPES: frozenset[str] = frozenset(
    {
        SQL_INJECTION,
        NO_ERROR_HANDLING,
        UNHANDLED_PROMISE,
        HARDCODED_SECRET,
    }
)

UNFIXABLE_TYPES: frozenset[str] = frozenset({PARSE_ERROR})

ALL_TYPES: frozenset[str] = FIXABLE_TYPES | UNFIXABLE_TYPES


def is_known_type(issue_type: str) -> bool:
    return issue_type in ALL_TYPES
