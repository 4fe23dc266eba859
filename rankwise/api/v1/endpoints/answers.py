"""Answer generation and ranking endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from rankwise.models.domain.answer import (
    AnswersRequest,
    AnswersResponse,
    RankingResultRead,
    RankRequest,
    RankResponse,
)
from rankwise.services.answer_service import AnswerService

router = APIRouter()


def get_answer_service() -> AnswerService:
    """Get answer service instance."""
    return AnswerService()


AnswerSvc = Annotated[AnswerService, Depends(get_answer_service)]


@router.post("", response_model=AnswersResponse)
async def generate_answers(
    request: AnswersRequest,
    service: AnswerSvc,
) -> AnswersResponse:
    """Generate three candidate answers and return them ranked.

    Args:
        request: The question and optional prior conversation turns
        service: Answer service instance

    Returns:
        AnswersResponse with answers ordered by rank (1 = best)

    Note:
        - Questions are limited to 4000 characters
        - Only the most recent conversation messages are sent as context
    """
    answers = await service.generate_answers(request.question, request.history)
    return AnswersResponse(question=request.question, answers=answers)


@router.post("/rank", response_model=RankResponse)
async def rank_candidates(
    request: RankRequest,
    service: AnswerSvc,
) -> RankResponse:
    """Rank caller-supplied candidate answers.

    Returns the full scoring breakdown for each candidate. No text is
    generated.
    """
    results = service.rank_candidates(request.question, request.candidates)
    return RankResponse(
        question=request.question,
        results=[RankingResultRead.model_validate(result) for result in results],
    )
