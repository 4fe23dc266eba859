"""Pydantic schemas for answer generation and ranking."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HistoryMessage(BaseModel):
    """A prior conversation turn sent as generation context."""

    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=8000)


class Answer(BaseModel):
    """A ranked answer as shown to and stored by clients."""

    id: str
    rank: int = Field(..., ge=1)
    content: str
    confidence: int = Field(..., ge=0, le=100)
    source: str | None = None


class AnswersRequest(BaseModel):
    """Request schema for generating ranked answers."""

    question: str = Field(..., min_length=1, max_length=4000)
    history: list[HistoryMessage] = Field(default_factory=list)


class AnswersResponse(BaseModel):
    """Response schema for generated ranked answers."""

    question: str
    answers: list[Answer]


class RankRequest(BaseModel):
    """Request schema for ranking caller-supplied candidate answers."""

    question: str = Field(..., max_length=4000)
    candidates: list[str] = Field(..., min_length=1, max_length=10)


class ConfidenceFactorsRead(BaseModel):
    """Confidence sub-scores for one candidate."""

    model_config = ConfigDict(from_attributes=True)

    keyword_overlap: int
    completeness: int
    structural_quality: int
    clarity_penalty: int
    confidence: int


class RankingResultRead(BaseModel):
    """Full scoring breakdown for one ranked candidate."""

    model_config = ConfigDict(from_attributes=True)

    rank: int
    position: int
    text: str
    final_score: int
    confidence: int
    relevance: int
    hallucination_penalty: int
    factors: ConfidenceFactorsRead


class RankResponse(BaseModel):
    """Response schema for ranking caller-supplied candidates."""

    question: str
    results: list[RankingResultRead]
