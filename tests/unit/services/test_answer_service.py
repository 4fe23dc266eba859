"""Tests for the answer generation and ranking service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from rankwise.core.exceptions import (
    RateLimitError,
    UnauthorizedError,
    UpstreamError,
    ValidationError,
)
from rankwise.models.domain.answer import HistoryMessage
from rankwise.services.answer_service import (
    ANSWER_STYLES,
    AnswerService,
    pad_candidates,
    prepare_history,
)
from rankwise.services.openai_client import CompletionResult, GenerationError

QUESTION = "How do I reset my password?"

ANSWERS = [
    "Open account settings and choose reset password.",
    (
        "Follow these steps to reset your password:\n"
        "1. Open the sign-in page and click Forgot password.\n"
        "2. Enter the email address linked to your account.\n"
        "3. Open the reset link we send you and choose a new password."
    ),
    "  I'm not sure, maybe ask support.  ",
]


def completion(content: str) -> CompletionResult:
    return CompletionResult(
        content=content,
        model="gpt-3.5-turbo",
        prompt_tokens=10,
        completion_tokens=20,
        finish_reason="stop",
    )


@pytest.fixture
def mock_settings() -> MagicMock:
    """Create mock settings."""
    settings = MagicMock()
    settings.history_max_messages = 12
    settings.answer_source_label = "Test Source"
    return settings


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock chat client returning the three sample answers."""
    client = MagicMock()
    client.complete = AsyncMock(side_effect=[completion(a) for a in ANSWERS])
    return client


@pytest.fixture
def service(mock_settings: MagicMock, mock_client: MagicMock) -> AnswerService:
    return AnswerService(settings=mock_settings, client=mock_client)


class TestPadCandidates:
    """Tests for pad_candidates()."""

    def test_full_set_is_unchanged(self) -> None:
        assert pad_candidates(["a", "b", "c"]) == ["a", "b", "c"]

    def test_pads_with_first_candidate(self) -> None:
        assert pad_candidates(["a", "b"]) == ["a", "b", "a"]
        assert pad_candidates(["a"]) == ["a", "a", "a"]

    def test_drops_blank_candidates(self) -> None:
        assert pad_candidates(["", "b", "   "]) == ["b", "b", "b"]

    def test_truncates_extra_candidates(self) -> None:
        assert pad_candidates(["a", "b", "c", "d"]) == ["a", "b", "c"]

    def test_no_usable_candidates(self) -> None:
        assert pad_candidates(["", "  "]) == []
        assert pad_candidates([]) == []


class TestPrepareHistory:
    """Tests for prepare_history()."""

    def test_keeps_most_recent_messages(self) -> None:
        history = [
            HistoryMessage(role="user" if i % 2 == 0 else "assistant", content=f"m{i}")
            for i in range(6)
        ]
        messages = prepare_history(history, limit=4)

        assert [m.content for m in messages] == ["m2", "m3", "m4", "m5"]
        assert messages[0].role == "user"

    def test_zero_limit_drops_history(self) -> None:
        history = [HistoryMessage(role="user", content="hello")]
        assert prepare_history(history, limit=0) == []


class TestGenerateAnswers:
    """Tests for AnswerService.generate_answers()."""

    async def test_returns_ranked_answers(self, service: AnswerService) -> None:
        answers = await service.generate_answers(QUESTION)

        assert [a.rank for a in answers] == [1, 2, 3]
        assert answers[0].content == ANSWERS[1]
        assert all(a.source == "Test Source" for a in answers)
        assert len({a.id for a in answers}) == 3

    async def test_content_is_stripped(self, service: AnswerService) -> None:
        answers = await service.generate_answers(QUESTION)
        assert "I'm not sure, maybe ask support." in [a.content for a in answers]

    async def test_confidence_is_strictly_decreasing(self, service: AnswerService) -> None:
        answers = await service.generate_answers(QUESTION)
        confidences = [a.confidence for a in answers]
        assert confidences == sorted(confidences, reverse=True)

    async def test_generates_one_answer_per_style(
        self, service: AnswerService, mock_client: MagicMock
    ) -> None:
        await service.generate_answers(QUESTION)

        assert mock_client.complete.await_count == len(ANSWER_STYLES)
        calls = mock_client.complete.await_args_list
        for call, style in zip(calls, ANSWER_STYLES):
            assert call.kwargs["system_prompt"] == style.system_prompt
            assert call.kwargs["temperature"] == style.temperature
            assert call.kwargs["max_tokens"] == style.max_tokens

    async def test_sends_trimmed_history_and_question(
        self, service: AnswerService, mock_settings: MagicMock, mock_client: MagicMock
    ) -> None:
        mock_settings.history_max_messages = 2
        history = [
            HistoryMessage(role="user", content="first question"),
            HistoryMessage(role="assistant", content="first answer"),
            HistoryMessage(role="user", content="second question"),
            HistoryMessage(role="assistant", content="second answer"),
        ]

        await service.generate_answers(QUESTION, history)

        messages = mock_client.complete.await_args_list[0].args[0]
        assert [m.content for m in messages] == ["second question", "second answer", QUESTION]

    async def test_blank_question_is_rejected(
        self, service: AnswerService, mock_client: MagicMock
    ) -> None:
        with pytest.raises(ValidationError):
            await service.generate_answers("   ")
        mock_client.complete.assert_not_awaited()

    async def test_missing_api_key_is_unauthorized(
        self, service: AnswerService, mock_settings: MagicMock, mock_client: MagicMock
    ) -> None:
        mock_settings.openai_api_key = None

        with pytest.raises(UnauthorizedError, match="OpenAI API key is required"):
            await service.generate_answers(QUESTION)
        mock_client.complete.assert_not_awaited()

    async def test_pads_when_a_style_returns_nothing(
        self, service: AnswerService, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(
            side_effect=[completion(ANSWERS[0]), completion(""), completion(ANSWERS[1])]
        )

        answers = await service.generate_answers(QUESTION)

        assert len(answers) == 3
        contents = [a.content for a in answers]
        assert contents.count(ANSWERS[0]) == 2
        assert [a.rank for a in answers] == [1, 2, 3]

    async def test_tolerates_a_failed_style(
        self, service: AnswerService, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(
            side_effect=[
                completion(ANSWERS[0]),
                GenerationError("boom"),
                completion(ANSWERS[1]),
            ]
        )

        answers = await service.generate_answers(QUESTION)

        assert len(answers) == 3

    async def test_no_usable_text_raises_upstream_error(
        self, service: AnswerService, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(return_value=completion("  "))

        with pytest.raises(UpstreamError):
            await service.generate_answers(QUESTION)

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [(401, UnauthorizedError), (429, RateLimitError), (500, UpstreamError), (None, UpstreamError)],
    )
    async def test_provider_failures_are_mapped(
        self,
        service: AnswerService,
        mock_client: MagicMock,
        status_code: int | None,
        expected: type[Exception],
    ) -> None:
        mock_client.complete = AsyncMock(
            side_effect=GenerationError("failed", status_code=status_code)
        )

        with pytest.raises(expected):
            await service.generate_answers(QUESTION)

    async def test_unexpected_errors_propagate(
        self, service: AnswerService, mock_client: MagicMock
    ) -> None:
        mock_client.complete = AsyncMock(side_effect=RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await service.generate_answers(QUESTION)


class TestRankCandidates:
    """Tests for AnswerService.rank_candidates()."""

    def test_ranks_without_calling_provider(
        self, service: AnswerService, mock_client: MagicMock
    ) -> None:
        results = service.rank_candidates(QUESTION, ANSWERS)

        assert [r.rank for r in results] == [1, 2, 3]
        mock_client.complete.assert_not_called()

    def test_works_without_api_key(self, mock_settings: MagicMock) -> None:
        mock_settings.openai_api_key = None
        service = AnswerService(settings=mock_settings)

        assert len(service.rank_candidates(QUESTION, ANSWERS)) == 3
