"""Process exit statuses of the ``prodready`` commands.

    scan      0 green, 1 yellow, 2 red
    fix       0 every attempted fix applied, 1 at least one failed
    report    0 written
    validate  0 valid, 1 schema violation
    (any)     2 missing path, bad config or usage error
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    VIOLATION = 1
    ERROR = 2
