"""Enums shared across detectors, fixers and reporting."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Ordinal issue severity, worst first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Category(str, Enum):
    """Informational grouping; not used by the score."""

    SECURITY = "security"
    RELIABILITY = "reliability"
    PERFORMANCE = "performance"
    OBSERVABILITY = "observability"
    MAINTAINABILITY = "maintainability"
    OPERATIONAL = "operational"


class ScoreTier(str, Enum):
    """Traffic-light tier derived from the score."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)
