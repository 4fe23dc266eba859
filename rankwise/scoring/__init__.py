"""Deterministic answer scoring and ranking."""

from rankwise.scoring.confidence import ConfidenceFactors, score_confidence
from rankwise.scoring.ranking import AnswerRanker, RankingResult, rank_answers

__all__ = [
    "AnswerRanker",
    "ConfidenceFactors",
    "RankingResult",
    "rank_answers",
    "score_confidence",
]
