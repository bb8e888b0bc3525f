"""Production-readiness score — the single number users see first.

Formula:
    score = max(0, 100 − Σ penalty(severity))

Penalties are flat per issue; category and volume do not matter.
"""

from __future__ import annotations

from typing import Iterable

from prodready.model import Severity
from prodready.model.issue import Issue

# ── per-issue penalty ───────────────────────────────────────────────
PENALTIES: dict[Severity, int] = {
    Severity.CRITICAL: 20,
    Severity.HIGH: 10,
    Severity.MEDIUM: 5,
    Severity.LOW: 2,
}

MAX_SCORE = 100


def compute_score(issues: Iterable[Issue]) -> int:
    """Return a 0-100 integer score.

    Higher is better — ≥80 green, 50-79 yellow, <50 red.
    """
    penalty = sum(PENALTIES.get(i.severity, 0) for i in issues)
    return max(0, MAX_SCORE - penalty)
