"""Ranking of candidate answers for a question.

Blends each candidate's confidence with a relevance score and a
hallucination penalty, orders the candidates, and then spreads adjacent
scores apart so that every rank is visibly distinct from the next.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, replace

from rankwise.scoring import constants as c
from rankwise.scoring.confidence import (
    ConfidenceFactors,
    clamp,
    extract_keywords,
    find_phrases,
    round_half_up,
    score_confidence,
)

logger = logging.getLogger(__name__)

_DEFINITION_LEAD_RE = re.compile(r"^(?:it|this|that|the|a|an)\s+")
_METHOD_RE = re.compile(r"step|method|way|process|approach")
_CAUSAL_RE = re.compile(r"because|reason|due to|since|as a result")


@dataclass(frozen=True)
class RankingResult:
    """Scoring breakdown and final placement of one candidate answer."""

    text: str
    position: int  # Index of the candidate in the input sequence
    factors: ConfidenceFactors
    relevance: int
    hallucination_penalty: int
    final_score: int
    confidence: int  # Display confidence, lowered alongside final_score
    rank: int = 0


def relevance_score(question: str, answer: str) -> int:
    """Score (0-100) how directly the answer addresses the question."""
    keywords = set(extract_keywords(question))
    if not keywords:
        return c.NEUTRAL_SCORE

    question_lower = question.lower()
    answer_lower = answer.lower()

    matched = sum(1 for keyword in keywords if keyword in answer_lower)
    score = min(c.MAX_SCORE, matched / len(keywords) * c.RELEVANCE_MATCH_SCALE)

    # Question words match anywhere, so "whatever" and "show" count too
    if "what" in question_lower and _DEFINITION_LEAD_RE.match(answer_lower.lstrip()):
        score += c.DIRECT_ANSWER_PATTERN_BONUS
    if "how" in question_lower and _METHOD_RE.search(answer_lower):
        score += c.DIRECT_ANSWER_PATTERN_BONUS
    if "why" in question_lower and _CAUSAL_RE.search(answer_lower):
        score += c.DIRECT_ANSWER_PATTERN_BONUS

    return clamp(round_half_up(score))


def hallucination_penalty(answer: str) -> int:
    """Points (0-20) to subtract for refusals and uncertain qualifiers."""
    penalty = len(find_phrases(answer, c.UNCERTAINTY_PHRASES)) * c.UNCERTAINTY_PHRASE_PENALTY
    qualifiers = len(find_phrases(answer, c.VAGUE_QUALIFIERS)) * c.VAGUE_QUALIFIER_PENALTY
    penalty += min(c.MAX_QUALIFIER_PENALTY, qualifiers)
    return min(c.MAX_HALLUCINATION_PENALTY, penalty)


def final_score(relevance: int, confidence: int, penalty: int) -> int:
    """Blend relevance and confidence, minus the hallucination penalty (0-100)."""
    weighted = relevance * c.RELEVANCE_WEIGHT + confidence * c.CONFIDENCE_WEIGHT
    return clamp(round_half_up(weighted - penalty))


class AnswerRanker:
    """Ranks candidate answers with a guaranteed gap between adjacent ranks.

    Each candidate is scored independently, the candidates are sorted by
    final score (earlier input wins ties), and a single left-to-right pass
    pushes any score that sits too close to its predecessor down to
    ``previous - min_gap``, floored at zero. Corrections cascade: a lowered
    score becomes the bar for the next candidate.
    """

    def __init__(self, min_gap: int = c.MIN_RANK_GAP) -> None:
        """Initialize ranker.

        Args:
            min_gap: Minimum final score difference between adjacent ranks.
        """
        self.min_gap = min_gap

    def score(self, question: str, answer: str, position: int = 0) -> RankingResult:
        """Score one candidate without reference to its peers."""
        factors = score_confidence(question, answer)
        relevance = relevance_score(question, answer)
        penalty = hallucination_penalty(answer)

        return RankingResult(
            text=answer,
            position=position,
            factors=factors,
            relevance=relevance,
            hallucination_penalty=penalty,
            final_score=final_score(relevance, factors.confidence, penalty),
            confidence=factors.confidence,
        )

    def rank(self, question: str, candidates: Sequence[str]) -> list[RankingResult]:
        """Score, order and rank candidate answers.

        An empty candidate sequence yields an empty list.

        Args:
            question: The user's question
            candidates: Candidate answer texts, in generation order

        Returns:
            One RankingResult per candidate, ordered by rank (1 = best)
        """
        scored = [
            self.score(question, answer, position)
            for position, answer in enumerate(candidates)
        ]
        ordered = sorted(scored, key=lambda result: result.final_score, reverse=True)
        differentiated = self.differentiate(ordered)

        logger.debug(
            "Ranked %d candidates",
            len(differentiated),
            extra={"final_scores": [r.final_score for r in differentiated]},
        )

        return [
            replace(result, rank=rank)
            for rank, result in enumerate(differentiated, start=1)
        ]

    def differentiate(self, ordered: Sequence[RankingResult]) -> list[RankingResult]:
        """Enforce the minimum gap between adjacent, already sorted results.

        Returns new result objects; the input is left untouched.
        """
        adjusted: list[RankingResult] = []

        for result in ordered:
            if adjusted:
                previous = adjusted[-1].final_score
                if previous - result.final_score < self.min_gap:
                    lowered = max(c.MIN_SCORE, previous - self.min_gap)
                    delta = result.final_score - lowered
                    logger.debug(
                        "Lowering candidate %d from %d to %d",
                        result.position,
                        result.final_score,
                        lowered,
                    )
                    result = replace(
                        result,
                        final_score=lowered,
                        confidence=max(c.MIN_SCORE, result.confidence - delta),
                    )
            adjusted.append(result)

        return adjusted


_default_ranker = AnswerRanker()


def rank_answers(question: str, candidates: Sequence[str]) -> list[RankingResult]:
    """Rank candidate answers with the default minimum gap."""
    return _default_ranker.rank(question, candidates)
