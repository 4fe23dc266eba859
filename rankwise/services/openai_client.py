"""OpenAI chat completions client for generating candidate answers."""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Literal

from openai import APIStatusError, AsyncOpenAI, RateLimitError
from openai.types.chat import ChatCompletionMessageParam

from rankwise.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Error from the chat completions API."""

    def __init__(
        self,
        message: str,
        is_retryable: bool = False,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.is_retryable = is_retryable
        self.status_code = status_code


@dataclass
class Message:
    """A chat message."""

    role: Literal["user", "assistant"]
    content: str


@dataclass
class CompletionResult:
    """Result of a chat completion."""

    content: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    finish_reason: str | None = None


class OpenAIChatClient:
    """Client for OpenAI chat completions.

    Provides a single completion call with automatic rate limit and
    server error retries.
    """

    DEFAULT_MODEL = "gpt-3.5-turbo"
    MAX_RETRIES = 5
    BASE_DELAY = 1.0  # seconds

    def __init__(
        self,
        settings: Settings | None = None,
        model: str | None = None,
    ) -> None:
        """Initialize chat client.

        Args:
            settings: Application settings. If None, loads from environment.
            model: Chat model to use. Defaults to the configured model.
        """
        self.settings = settings or get_settings()
        self.model = model or self.settings.openai_chat_model or self.DEFAULT_MODEL
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create OpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._client

    async def close(self) -> None:
        """Close the client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def complete(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 400,
    ) -> CompletionResult:
        """Generate a single completion.

        Args:
            messages: Conversation messages, ending with the user's question
            system_prompt: Optional system prompt prepended to the messages
            temperature: Sampling temperature
            max_tokens: Maximum tokens in the completion

        Returns:
            CompletionResult with the generated text

        Raises:
            GenerationError: If the completion fails
        """
        if not self.settings.openai_api_key:
            raise GenerationError("OpenAI API key is required", status_code=401)

        payload: list[ChatCompletionMessageParam] = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})
        payload.extend({"role": m.role, "content": m.content} for m in messages)

        last_error: Exception | None = None

        for attempt in range(self.MAX_RETRIES):
            try:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=payload,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )

                content = ""
                finish_reason = None
                if response.choices:
                    choice = response.choices[0]
                    content = choice.message.content or ""
                    finish_reason = choice.finish_reason

                usage = response.usage
                return CompletionResult(
                    content=content,
                    model=response.model,
                    prompt_tokens=usage.prompt_tokens if usage else 0,
                    completion_tokens=usage.completion_tokens if usage else 0,
                    finish_reason=finish_reason,
                )

            except RateLimitError as e:
                last_error = e
                delay = self._calculate_backoff(attempt)
                logger.warning(
                    f"Rate limited by OpenAI, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                await asyncio.sleep(delay)
                continue

            except APIStatusError as e:
                if e.status_code >= 500 and attempt < self.MAX_RETRIES - 1:
                    last_error = e
                    delay = self._calculate_backoff(attempt)
                    logger.warning(
                        f"Server error, retrying in {delay:.1f}s "
                        f"(attempt {attempt + 1}/{self.MAX_RETRIES}): {e}"
                    )
                    await asyncio.sleep(delay)
                    continue

                raise GenerationError(
                    f"Failed to generate completion: {e}",
                    is_retryable=False,
                    status_code=e.status_code,
                ) from e

            except Exception as e:
                raise GenerationError(
                    f"Failed to generate completion: {e}",
                    is_retryable=False,
                ) from e

        raise GenerationError(
            f"Failed to generate completion after {self.MAX_RETRIES} attempts: {last_error}",
            is_retryable=True,
            status_code=429 if isinstance(last_error, RateLimitError) else None,
        )

    def _calculate_backoff(self, attempt: int) -> float:
        """Calculate exponential backoff delay with jitter.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        delay: float = self.BASE_DELAY * (2**attempt)
        # Add jitter (±25%)
        jitter: float = delay * 0.25 * (random.random() * 2 - 1)
        return delay + jitter
