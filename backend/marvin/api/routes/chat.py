"""API routes for chatting with Marvin, plain and streamed."""

import logging
from collections.abc import Sequence
from uuid import UUID

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

from marvin.api.deps import Completion, CurrentUser, Store
from marvin.config import sanitize_error
from marvin.db.models import ChatSession, Message, MessageRole
from marvin.db.store import SessionStore, parse_session_id
from marvin.errors import MarvinError, ValidationError
from marvin.schemas.base import ApiResponse
from marvin.schemas.sessions import ChatRequest, ChatResponse, InsightsRead
from marvin.services.classifier import (
    detect_consciousness_level,
    extract_insights,
    level_label,
    level_progress,
)
from marvin.services.completion import CompletionClient, CompletionResult
from marvin.services.conversation import SYSTEM_PROMPT, assemble_conversation
from marvin.services.text import DEFAULT_SESSION_TITLE, estimate_tokens, generate_session_title

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

NO_REPLY = "Entschuldigung, ich konnte keine Antwort generieren."


# =============================================================================
# HELPERS
# =============================================================================


def _require_fields(request: ChatRequest) -> tuple[str, UUID]:
    """Both message and session_id must be present and non-empty."""
    if not request.message or not request.message.strip() or not request.session_id:
        raise ValidationError("Nachricht und Session-ID sind erforderlich")
    return request.message, parse_session_id(request.session_id)


def _title_for(session: ChatSession, history: Sequence[Message], message: str) -> str | None:
    """New title when this is the first message of a default-titled session."""
    if history or session.title not in (None, DEFAULT_SESSION_TITLE):
        return None
    return generate_session_title(message)


async def _start_exchange(
    store: SessionStore,
    user_id: UUID,
    request: ChatRequest,
) -> tuple[ChatSession, Sequence[Message], str, list[dict[str, str]]]:
    """
    Shared first half of a chat turn.

    Verifies ownership, loads history, persists the user message and
    assembles the conversation for the completion API.
    """
    message, session_id = _require_fields(request)
    session = await store.get_owned_session(session_id, user_id)
    history = await store.list_messages(session.id)

    await store.append_message(
        session.id,
        MessageRole.USER,
        message,
        tokens=estimate_tokens(message),
    )

    conversation = assemble_conversation(SYSTEM_PROMPT, history, message)
    return session, history, message, conversation


async def _finish_exchange(
    store: SessionStore,
    completion: CompletionClient,
    session: ChatSession,
    history: Sequence[Message],
    message: str,
    result: CompletionResult,
) -> ChatResponse:
    """Classify, persist the reply and update the session's counters."""
    reply = result.content or NO_REPLY

    earlier_user_text = " ".join(m.content for m in history if m.role == MessageRole.USER.value)
    level = detect_consciousness_level(message, earlier_user_text)
    insights = extract_insights(message, reply)

    reply_tokens = result.completion_tokens or estimate_tokens(reply)
    await store.append_message(
        session.id,
        MessageRole.ASSISTANT,
        reply,
        tokens=reply_tokens,
        model=result.model,
        temperature=completion.options.temperature,
        metadata={"consciousness_level": level.value},
    )

    total_tokens = result.total_tokens or (estimate_tokens(message) + reply_tokens)
    await store.record_exchange(
        session,
        message_count=2,
        tokens=total_tokens,
        title=_title_for(session, history, message),
    )

    return ChatResponse(
        message=reply,
        session_id=session.id,
        consciousness_level=level.value,
        level_label=level_label(level),
        level_progress=level_progress(level),
        insights=InsightsRead(
            emotions=insights.emotions,
            topics=insights.topics,
            patterns=insights.patterns,
            goals=insights.goals,
        ),
    )


# =============================================================================
# CHAT
# =============================================================================


@router.post("", response_model=ApiResponse[ChatResponse])
async def chat(
    request: ChatRequest,
    user: CurrentUser,
    store: Store,
    completion: Completion,
):
    """
    Send a message and get Marvin's reply.

    The user message is committed before the model is called, so it stays
    in the session even if generation or saving the reply fails.
    """
    session, history, message, conversation = await _start_exchange(store, user.id, request)
    logger.info("Chat turn in session %s (%d prior messages)", session.id, len(history))

    result = await completion.complete(conversation)
    response = await _finish_exchange(store, completion, session, history, message, result)

    return ApiResponse(data=response)


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    user: CurrentUser,
    store: Store,
    completion: Completion,
):
    """
    Send a message and stream the reply using Server-Sent Events (SSE).

    Events:
    - 'message': Text chunks from the assistant
    - 'done': Final ChatResponse as JSON
    - 'error': Error message
    """
    session, history, message, conversation = await _start_exchange(store, user.id, request)
    logger.info("Streamed chat turn in session %s (%d prior messages)", session.id, len(history))

    async def event_generator():
        """Generate SSE events for streaming response."""
        chunks: list[str] = []

        try:
            async for chunk in completion.stream(conversation):
                chunks.append(chunk)
                yield {"event": "message", "data": chunk}

            reply = "".join(chunks)
            result = CompletionResult(content=reply, model=completion.options.model)
            response = await _finish_exchange(store, completion, session, history, message, result)

            yield {"event": "done", "data": response.model_dump_json()}

        except MarvinError as e:
            logger.error("Chat streaming failed in session %s: %s", session.id, e.message)
            yield {"event": "error", "data": e.message}

        except Exception as e:
            logger.exception("Error during chat streaming")
            yield {"event": "error", "data": sanitize_error(e)}

    return EventSourceResponse(event_generator())
