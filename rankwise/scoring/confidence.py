"""Confidence scoring for a single candidate answer.

Computes a deterministic 0-100 confidence value for an answer relative to a
question from surface text features only (no external API calls):

1. Keyword overlap: how many question keywords the answer mentions
2. Completeness: answer length relative to an ideal band
3. Structural quality: lists, numbered steps, paragraphs, sentences
4. Clarity penalty: hedging, repetition, filler and refusal phrases
"""

from __future__ import annotations

import math
import re
import string
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache

from rankwise.scoring import constants as c

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_LIST_LINE_RE = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s", re.MULTILINE)
_NUMBERED_STEP_RE = re.compile(r"\d+[.)]\s")
_SENTENCE_END_RE = re.compile(r"[.!?]+")
_DIRECT_ANSWER_RE = re.compile(
    r"^(?:" + "|".join(c.DIRECT_ANSWER_LEADS) + r")", re.IGNORECASE
)


@dataclass(frozen=True)
class ConfidenceFactors:
    """Sub-scores and aggregate confidence for one question/answer pair."""

    keyword_overlap: int
    completeness: int
    structural_quality: int
    clarity_penalty: int
    confidence: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up."""
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int = c.MIN_SCORE, high: int = c.MAX_SCORE) -> int:
    return max(low, min(high, value))


def normalize(text: str) -> str:
    """Lower-case text and fold typographic apostrophes to ASCII."""
    return text.lower().replace("’", "'")


def extract_keywords(text: str) -> list[str]:
    """Extract content keywords (length > 3, not a stop word).

    Duplicates are preserved in order of appearance.
    """
    words = _PUNCTUATION_RE.sub(" ", text.lower()).split()
    return [
        word for word in words
        if len(word) >= c.MIN_KEYWORD_LENGTH and word not in c.STOP_WORDS
    ]


@lru_cache(maxsize=None)
def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(phrase) + r"\b")


def find_phrases(text: str, phrases: Iterable[str]) -> list[str]:
    """Return the phrases that occur in text as whole words.

    Args:
        text: Text to search; it is normalized before matching
        phrases: Lower-case phrases to look for

    Returns:
        Matching phrases, each listed once, in the order given
    """
    normalized = normalize(text)
    return [p for p in dict.fromkeys(phrases) if _phrase_pattern(p).search(normalized)]


def keyword_overlap_score(question: str, answer: str) -> int:
    """Score (0-100) how many distinct question keywords the answer mentions."""
    keywords = set(extract_keywords(question))
    if not keywords:
        return c.NEUTRAL_SCORE

    answer_lower = answer.lower()
    matched = sum(1 for keyword in keywords if keyword in answer_lower)
    ratio = matched / len(keywords)

    score = round_half_up(ratio * 100)
    if ratio > c.OVERLAP_BONUS_THRESHOLD:
        score += c.OVERLAP_BONUS
    return clamp(score)


def completeness_score(answer: str) -> int:
    """Score (0-100) the answer length against the ideal band.

    Short answers lose points faster than long ones.
    """
    length = len(answer)

    if c.IDEAL_LENGTH_MIN <= length <= c.IDEAL_LENGTH_MAX:
        return 100
    if c.SHORT_LENGTH_MIN <= length < c.IDEAL_LENGTH_MIN:
        return 70 + round_half_up((length - 100) / 50 * 30)
    if c.IDEAL_LENGTH_MAX < length <= c.LONG_LENGTH_MAX:
        return 100 - round_half_up((length - 350) / 150 * 20)
    if length < c.SHORT_LENGTH_MIN:
        return max(c.TERSE_FLOOR, round_half_up(length / 100 * 70))
    return max(c.VERBOSE_FLOOR, 100 - round_half_up((length - 500) / 200 * 60))


def structural_quality_score(answer: str) -> int:
    """Score (0-100) formatting: lists, steps, paragraphs, sentences, lead-in."""
    score = c.STRUCTURE_BASE

    if _LIST_LINE_RE.search(answer):
        score += c.LIST_BONUS

    if _NUMBERED_STEP_RE.search(answer):
        score += c.NUMBERED_STEP_BONUS

    low, high = c.PARAGRAPH_BREAKS_RANGE
    if low <= answer.count("\n\n") <= high:
        score += c.PARAGRAPH_BONUS

    low, high = c.SENTENCE_COUNT_RANGE
    if low <= len(_SENTENCE_END_RE.findall(answer)) <= high:
        score += c.SENTENCE_BONUS

    if _DIRECT_ANSWER_RE.match(answer.strip()):
        score += c.DIRECT_ANSWER_BONUS

    return min(c.MAX_SCORE, score)


def count_repeated_words(answer: str) -> int:
    """Count distinct long words that recur more than the allowed number of times."""
    words = (word.strip(string.punctuation) for word in normalize(answer).split())
    frequency = Counter(w for w in words if len(w) >= c.REPEATED_WORD_MIN_LENGTH)
    return sum(1 for count in frequency.values() if count > c.REPEATED_WORD_MAX_COUNT)


def clarity_penalty(answer: str) -> int:
    """Points (0-30) to subtract for hedging, repetition, filler and refusals."""
    penalty = len(find_phrases(answer, c.VAGUE_PHRASES)) * c.VAGUE_PHRASE_PENALTY
    penalty += count_repeated_words(answer) * c.REPEATED_WORD_PENALTY
    penalty += len(find_phrases(answer, c.FILLER_PHRASES)) * c.FILLER_PHRASE_PENALTY
    penalty += len(find_phrases(answer, c.REFUSAL_PHRASES)) * c.REFUSAL_PHRASE_PENALTY
    return min(c.MAX_CLARITY_PENALTY, penalty)


def score_confidence(question: str, answer: str) -> ConfidenceFactors:
    """Score a single answer against its question.

    Never raises: empty or degenerate text yields low but defined scores.

    Args:
        question: The user's question
        answer: One candidate answer

    Returns:
        ConfidenceFactors with every sub-score and the aggregate confidence
    """
    overlap = keyword_overlap_score(question, answer)
    completeness = completeness_score(answer)
    structure = structural_quality_score(answer)
    penalty = clarity_penalty(answer)

    weighted = (
        overlap * c.KEYWORD_OVERLAP_WEIGHT
        + completeness * c.COMPLETENESS_WEIGHT
        + structure * c.STRUCTURAL_QUALITY_WEIGHT
    )

    return ConfidenceFactors(
        keyword_overlap=overlap,
        completeness=completeness,
        structural_quality=structure,
        clarity_penalty=penalty,
        confidence=clamp(round_half_up(weighted) - penalty),
    )
