"""Completion client for the hosted model API (OpenAI-compatible)."""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, replace

from openai import AsyncOpenAI, OpenAIError

from marvin.config import Settings
from marvin.errors import UpstreamError

logger = logging.getLogger(__name__)

GENERATION_FAILED = "Antwort konnte nicht generiert werden"
EMBEDDING_FAILED = "Embedding konnte nicht erstellt werden"


@dataclass(frozen=True)
class CompletionOptions:
    """Request parameters for a chat completion."""

    model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 800
    frequency_penalty: float = 0.1
    presence_penalty: float = 0.1

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionOptions":
        return cls(
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            frequency_penalty=settings.llm_frequency_penalty,
            presence_penalty=settings.llm_presence_penalty,
        )


@dataclass(frozen=True)
class CompletionResult:
    """Generated text plus what the API reported about the call."""

    content: str
    model: str
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class CompletionClient:
    """Wraps chat completions, streaming and embeddings behind one object."""

    def __init__(
        self,
        client: AsyncOpenAI,
        options: CompletionOptions | None = None,
        embedding_model: str = "text-embedding-3-large",
    ):
        self.client = client
        self.options = options or CompletionOptions()
        self.embedding_model = embedding_model

    def _request_kwargs(self, messages: list[dict[str, str]], options: CompletionOptions) -> dict:
        return {
            "model": options.model,
            "messages": messages,
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
        }

    async def complete(self, messages: list[dict[str, str]], **overrides) -> CompletionResult:
        """
        Generate a reply for an assembled conversation.

        Args:
            messages: Output of assemble_conversation
            **overrides: Per-call replacements for CompletionOptions fields

        Returns:
            CompletionResult; content is "" when the API returned none

        Raises:
            UpstreamError: On any transport or API error
        """
        options = replace(self.options, **overrides)
        try:
            completion = await self.client.chat.completions.create(
                **self._request_kwargs(messages, options)
            )
        except OpenAIError as e:
            logger.error("Chat completion failed (model=%s): %s", options.model, e)
            raise UpstreamError(GENERATION_FAILED) from e

        content = ""
        if completion.choices and completion.choices[0].message:
            content = completion.choices[0].message.content or ""

        usage = completion.usage
        return CompletionResult(
            content=content,
            model=completion.model or options.model,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
            total_tokens=usage.total_tokens if usage else None,
        )

    async def stream(self, messages: list[dict[str, str]], **overrides) -> AsyncIterator[str]:
        """
        Stream a reply as text deltas.

        Raises:
            UpstreamError: If the request fails or the stream breaks off
        """
        options = replace(self.options, **overrides)
        try:
            stream = await self.client.chat.completions.create(
                **self._request_kwargs(messages, options),
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta and delta.content:
                    yield delta.content
        except OpenAIError as e:
            logger.error("Streaming completion failed (model=%s): %s", options.model, e)
            raise UpstreamError(GENERATION_FAILED) from e

    async def embed(self, text: str) -> list[float]:
        """
        Embed text for retrieval.

        Raises:
            UpstreamError: On any transport or API error
        """
        try:
            response = await self.client.embeddings.create(
                model=self.embedding_model,
                input=text,
                encoding_format="float",
            )
        except OpenAIError as e:
            logger.error("Embedding failed (model=%s): %s", self.embedding_model, e)
            raise UpstreamError(EMBEDDING_FAILED) from e
        return list(response.data[0].embedding)

    async def close(self) -> None:
        await self.client.close()


def build_completion_client(settings: Settings) -> CompletionClient:
    """Construct the client from settings (called once in the app lifespan)."""
    client = AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_api_base,
        max_retries=settings.openai_max_retries,
        timeout=settings.openai_timeout_seconds,
    )
    return CompletionClient(
        client=client,
        options=CompletionOptions.from_settings(settings),
        embedding_model=settings.embedding_model,
    )
