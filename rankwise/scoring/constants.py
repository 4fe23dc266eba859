"""Phrase lists, weights and caps used by the answer scorers.

Every tunable number or word list the scorers depend on lives here so the
scoring policy can be audited and adjusted in one place. Bump
``PHRASE_SET_VERSION`` whenever a phrase list changes.
"""

from __future__ import annotations

PHRASE_SET_VERSION = "1.0"

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "from", "as", "is", "are", "was", "were", "be", "been",
    "being", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "can", "this", "that", "these",
    "those", "what", "which", "who", "whom", "whose", "where", "when", "why",
    "how", "if", "then", "than",
})

# Hedging language that weakens an answer's clarity.
VAGUE_PHRASES: tuple[str, ...] = (
    "i think", "i believe", "i guess", "maybe", "perhaps", "might be",
    "could be", "possibly", "sort of", "kind of", "a bit", "somewhat",
)

FILLER_PHRASES: tuple[str, ...] = (
    "um", "uh", "like", "you know", "actually", "basically", "literally",
)

# Explicit refusals or admissions of not knowing.
REFUSAL_PHRASES: tuple[str, ...] = (
    "i cannot", "i don't know", "i'm not sure", "i have no idea",
    "i'm unable to", "i cannot provide",
)

UNCERTAINTY_PHRASES: tuple[str, ...] = REFUSAL_PHRASES + (
    "i don't have access", "i cannot answer", "i cannot determine",
    "i cannot verify",
)

VAGUE_QUALIFIERS: tuple[str, ...] = (
    "might be", "could be", "possibly", "perhaps", "maybe", "i think",
    "i believe", "i guess", "probably",
)

DIRECT_ANSWER_LEADS: tuple[str, ...] = (
    "yes", "no", "the", "it", "this", "that", "in", "to", "for", "with",
)

# Keyword extraction
MIN_KEYWORD_LENGTH = 4
NEUTRAL_SCORE = 50

# Keyword overlap
OVERLAP_BONUS_THRESHOLD = 0.8
OVERLAP_BONUS = 10

# Completeness, by answer length in characters
IDEAL_LENGTH_MIN = 150
IDEAL_LENGTH_MAX = 350
SHORT_LENGTH_MIN = 100
LONG_LENGTH_MAX = 500
TERSE_FLOOR = 30
VERBOSE_FLOOR = 40

# Structural quality
STRUCTURE_BASE = 50
LIST_BONUS = 20
NUMBERED_STEP_BONUS = 15
PARAGRAPH_BONUS = 10
SENTENCE_BONUS = 10
DIRECT_ANSWER_BONUS = 5
PARAGRAPH_BREAKS_RANGE = (1, 3)
SENTENCE_COUNT_RANGE = (3, 8)

# Clarity penalty
VAGUE_PHRASE_PENALTY = 3
REPEATED_WORD_PENALTY = 2
FILLER_PHRASE_PENALTY = 1
REFUSAL_PHRASE_PENALTY = 5
REPEATED_WORD_MIN_LENGTH = 5
REPEATED_WORD_MAX_COUNT = 3
MAX_CLARITY_PENALTY = 30

# Confidence aggregate
KEYWORD_OVERLAP_WEIGHT = 0.4
COMPLETENESS_WEIGHT = 0.3
STRUCTURAL_QUALITY_WEIGHT = 0.2

# Relevance
RELEVANCE_MATCH_SCALE = 80
DIRECT_ANSWER_PATTERN_BONUS = 10

# Hallucination penalty
UNCERTAINTY_PHRASE_PENALTY = 5
VAGUE_QUALIFIER_PENALTY = 2
MAX_QUALIFIER_PENALTY = 10
MAX_HALLUCINATION_PENALTY = 20

# Final score
RELEVANCE_WEIGHT = 0.3
CONFIDENCE_WEIGHT = 0.6

# Differentiation
MIN_RANK_GAP = 5

MAX_SCORE = 100
MIN_SCORE = 0
