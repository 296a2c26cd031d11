"""Tests for the completion client wrapper."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from marvin.errors import UpstreamError
from marvin.services.completion import CompletionClient, CompletionOptions

MESSAGES = [
    {"role": "system", "content": "persona"},
    {"role": "user", "content": "Hallo"},
]


def make_openai(create=None, embeddings_create=None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create or AsyncMock()
    client.embeddings.create = embeddings_create or AsyncMock()
    client.close = AsyncMock()
    return client


def completion_response(content, model="gpt-4o"):
    return SimpleNamespace(
        model=model,
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=8, total_tokens=20),
    )


async def test_complete_sends_configured_parameters():
    openai = make_openai(create=AsyncMock(return_value=completion_response("Hallo zurück")))
    client = CompletionClient(openai, CompletionOptions())

    result = await client.complete(MESSAGES)

    assert result.content == "Hallo zurück"
    assert result.total_tokens == 20
    kwargs = openai.chat.completions.create.call_args.kwargs
    assert kwargs["messages"] == MESSAGES
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["temperature"] == 0.7
    assert kwargs["max_tokens"] == 800
    assert kwargs["frequency_penalty"] == 0.1
    assert kwargs["presence_penalty"] == 0.1


async def test_complete_accepts_per_call_overrides():
    openai = make_openai(create=AsyncMock(return_value=completion_response("ok")))
    client = CompletionClient(openai, CompletionOptions())

    await client.complete(MESSAGES, temperature=0.2, max_tokens=100)

    kwargs = openai.chat.completions.create.call_args.kwargs
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 100
    assert client.options.temperature == 0.7


async def test_complete_returns_empty_string_without_content():
    openai = make_openai(create=AsyncMock(return_value=completion_response(None)))
    client = CompletionClient(openai)

    result = await client.complete(MESSAGES)

    assert result.content == ""


async def test_complete_wraps_api_errors():
    openai = make_openai(create=AsyncMock(side_effect=OpenAIError("rate limited")))
    client = CompletionClient(openai)

    with pytest.raises(UpstreamError) as exc_info:
        await client.complete(MESSAGES)

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Antwort konnte nicht generiert werden"


async def test_stream_yields_text_deltas():
    async def chunks():
        for text in ("Hal", None, "lo"):
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])
        yield SimpleNamespace(choices=[])

    openai = make_openai(create=AsyncMock(return_value=chunks()))
    client = CompletionClient(openai)

    parts = [part async for part in client.stream(MESSAGES)]

    assert parts == ["Hal", "lo"]
    assert openai.chat.completions.create.call_args.kwargs["stream"] is True


async def test_embed_returns_vector():
    response = SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])])
    openai = make_openai(embeddings_create=AsyncMock(return_value=response))
    client = CompletionClient(openai, embedding_model="text-embedding-3-small")

    assert await client.embed("Achtsamkeit") == [0.1, 0.2, 0.3]
    assert openai.embeddings.create.call_args.kwargs["model"] == "text-embedding-3-small"


async def test_embed_wraps_api_errors():
    openai = make_openai(embeddings_create=AsyncMock(side_effect=OpenAIError("down")))
    client = CompletionClient(openai)

    with pytest.raises(UpstreamError):
        await client.embed("text")
