"""Exception hierarchy.

Per-file and per-issue failures are normally captured as data (parse-error
issues, failed ``AppliedFix`` records).  These exceptions travel between the
layers that produce that data, and only ``EngineConfigurationError`` and
``ConfigError`` are expected to reach a caller.
"""

from __future__ import annotations


class ProdReadyError(Exception):
    """Base class for all prodready errors."""


class ParseFailure(ProdReadyError):
    """Source text could not be parsed into an AST."""

    def __init__(self, reason: str, *, line: int = 0, column: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.line = line
        self.column = column


class FixerNotAvailable(ProdReadyError):
    """No registered fixer accepts the issue."""

    def __init__(self, message: str = "No fixer available for this issue type"):
        super().__init__(message)


class FixApplicationError(ProdReadyError):
    """A fixer could not produce a valid edit for its target."""


class EngineConfigurationError(ProdReadyError):
    """The transformation engine was used without any registered fixer."""


class ConfigError(ProdReadyError):
    """Invalid ``.prodready.yml`` or scan configuration."""
