"""Readiness tiers for the score.

``scan`` exits with the tier's code, and the pretty output, the reports and
``AnalysisResult.to_dict()`` all label a score through :func:`tier_from_score`.
"""

from __future__ import annotations

from dataclasses import dataclass

from prodready.model import ScoreTier
from prodready.utils.exit_codes import ExitCode


@dataclass(frozen=True, slots=True)
class ScoreThresholds:
    """Lowest score that still counts as green / yellow."""

    green_min: int = 80
    yellow_min: int = 50


DEFAULT_THRESHOLDS = ScoreThresholds()

_TIER_EXIT_CODES = {
    ScoreTier.GREEN: ExitCode.SUCCESS,
    ScoreTier.YELLOW: ExitCode.VIOLATION,
    ScoreTier.RED: ExitCode.ERROR,
}


def tier_from_score(
    score: int,
    *,
    thresholds: ScoreThresholds = DEFAULT_THRESHOLDS,
) -> ScoreTier:
    if score >= thresholds.green_min:
        return ScoreTier.GREEN
    if score >= thresholds.yellow_min:
        return ScoreTier.YELLOW
    return ScoreTier.RED


def exit_code_from_tier(tier: ScoreTier) -> int:
    return _TIER_EXIT_CODES[tier]


def exit_code_from_score(
    score: int,
    *,
    thresholds: ScoreThresholds = DEFAULT_THRESHOLDS,
) -> int:
    """``prodready scan`` exit status for *score*."""
    return exit_code_from_tier(tier_from_score(score, thresholds=thresholds))
