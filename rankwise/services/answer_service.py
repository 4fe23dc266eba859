"""Service that generates candidate answers and ranks them."""

import asyncio
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from rankwise.core.config import Settings, get_settings
from rankwise.core.exceptions import (
    RateLimitError,
    UnauthorizedError,
    UpstreamError,
    ValidationError,
)
from rankwise.models.domain.answer import Answer, HistoryMessage
from rankwise.scoring.ranking import AnswerRanker, RankingResult
from rankwise.services.openai_client import GenerationError, Message, OpenAIChatClient

logger = logging.getLogger(__name__)

ANSWER_COUNT = 3


@dataclass(frozen=True)
class AnswerStyle:
    """Prompting parameters for one flavour of candidate answer."""

    description: str
    system_prompt: str
    temperature: float
    max_tokens: int


ANSWER_STYLES: tuple[AnswerStyle, ...] = (
    AnswerStyle(
        description="Concise & Beginner-Friendly",
        system_prompt="""You are a helpful teacher who explains complex topics in simple, easy-to-understand language.
Your answers should be:
- Concise (2-4 sentences maximum)
- Beginner-friendly with no jargon
- Direct and to the point
- Use everyday language
- Focus on the core answer without extra details""",
        temperature=0.7,
        max_tokens=200,
    ),
    AnswerStyle(
        description="Detailed & Technical",
        system_prompt="""You are an expert technical advisor who provides comprehensive, detailed explanations.
Your answers should be:
- Detailed and thorough (4-8 sentences)
- Step-by-step when applicable
- Include technical context and reasoning
- Well-structured with clear organization
- Use precise terminology when helpful""",
        temperature=0.8,
        max_tokens=400,
    ),
    AnswerStyle(
        description="Practical & Example-Driven",
        system_prompt="""You are a practical consultant who provides actionable, real-world advice.
Your answers should be:
- Practical and actionable
- Include concrete examples or use cases
- Focus on real-world application
- Show how to implement or use the information
- Relatable and applicable""",
        temperature=0.9,
        max_tokens=350,
    ),
)


def prepare_history(history: Sequence[HistoryMessage], limit: int) -> list[Message]:
    """Keep the most recent `limit` conversation messages."""
    if limit <= 0:
        return []
    return [Message(role=m.role, content=m.content) for m in history[-limit:]]


def pad_candidates(candidates: Sequence[str], count: int = ANSWER_COUNT) -> list[str]:
    """Drop blank candidates and pad by repeating the first remaining one.

    Returns an empty list when no candidate has any text.
    """
    valid = [text for text in candidates if text and text.strip()]
    if not valid:
        return []
    while len(valid) < count:
        valid.append(valid[0])
    return valid[:count]


def to_answer(result: RankingResult, source: str) -> Answer:
    return Answer(
        id=f"answer-{uuid.uuid4()}",
        rank=result.rank,
        content=result.text.strip(),
        confidence=result.confidence,
        source=source,
    )


class AnswerService:
    """Generates candidate answers in distinct styles and ranks them.

    Handles the workflow of:
    1. Trimming the conversation history sent as context
    2. Generating one candidate per answer style, concurrently
    3. Padding short candidate sets
    4. Ranking candidates and building answer records
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: OpenAIChatClient | None = None,
        ranker: AnswerRanker | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client
        self.ranker = ranker or AnswerRanker()

    @property
    def client(self) -> OpenAIChatClient:
        """Get or create chat client (lazy initialization)."""
        if self._client is None:
            self._client = OpenAIChatClient(settings=self.settings)
        return self._client

    async def generate_answers(
        self,
        question: str,
        history: Sequence[HistoryMessage] | None = None,
    ) -> list[Answer]:
        """Generate and rank answers to a question.

        Args:
            question: The user's question
            history: Previous conversation messages for context

        Returns:
            Answers ordered by rank (1 = best)

        Raises:
            ValidationError: If the question is blank
            UnauthorizedError: If no API key is configured or the provider rejects it
            RateLimitError: If the provider rate limit or quota is exhausted
            UpstreamError: If generation fails or yields no usable text
        """
        if not question.strip():
            raise ValidationError("Question cannot be empty")
        if not self.settings.openai_api_key:
            raise UnauthorizedError(
                "OpenAI API key is required. Set OPENAI_API_KEY to generate answers."
            )

        messages = prepare_history(history or [], self.settings.history_max_messages)
        messages.append(Message(role="user", content=question))

        outcomes = await asyncio.gather(
            *(self._generate(style, messages) for style in ANSWER_STYLES),
            return_exceptions=True,
        )

        texts: list[str] = []
        failures: list[GenerationError] = []
        for style, outcome in zip(ANSWER_STYLES, outcomes, strict=True):
            if isinstance(outcome, GenerationError):
                logger.warning(
                    "Failed to generate %s answer: %s", style.description, outcome
                )
                failures.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                texts.append(outcome)

        candidates = pad_candidates(texts)
        if not candidates:
            if failures:
                raise self._map_generation_error(failures[0]) from failures[0]
            raise UpstreamError("Failed to generate any valid answers. Please try again.")

        results = self.ranker.rank(question, candidates)
        logger.info(
            "Generated ranked answers",
            extra={
                "candidate_count": len(texts),
                "failed_styles": len(failures),
                "final_scores": [r.final_score for r in results],
            },
        )
        return [to_answer(result, self.settings.answer_source_label) for result in results]

    def rank_candidates(self, question: str, candidates: Sequence[str]) -> list[RankingResult]:
        """Rank caller-supplied candidates without calling the provider."""
        return self.ranker.rank(question, candidates)

    async def _generate(self, style: AnswerStyle, messages: list[Message]) -> str:
        result = await self.client.complete(
            messages,
            system_prompt=style.system_prompt,
            temperature=style.temperature,
            max_tokens=style.max_tokens,
        )
        return result.content

    @staticmethod
    def _map_generation_error(error: GenerationError) -> Exception:
        """Translate a provider failure into a user-facing API error."""
        if error.status_code == 401:
            return UnauthorizedError(
                "Invalid or missing OpenAI API key. Check that OPENAI_API_KEY is set correctly."
            )
        if error.status_code == 429:
            return RateLimitError(
                "OpenAI API rate limit or quota exceeded. Please wait a moment and try again."
            )
        return UpstreamError()
