"""Conversation assembly for the completion API."""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_PROMPT_PATH = Path(__file__).parent.parent / "prompts" / "marvin_system.md"

_FALLBACK_PROMPT = (
    "Du bist Marvin, ein einfühlsamer und weiser Bewusstseins-Coach. "
    "Du sprichst Deutsch, stellst tiefgreifende Fragen und antwortest "
    "hilfreich, einfühlsam und ermutigend."
)


class HistoryEntry(Protocol):
    """Anything with a role and content (ORM rows, schemas)."""

    role: str
    content: str


def load_system_prompt(path: Path = _PROMPT_PATH) -> str:
    """Load the Marvin persona used as system prompt."""
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.warning("System prompt not found at %s, using fallback persona", path)
        return _FALLBACK_PROMPT


# Load once at module import
SYSTEM_PROMPT = load_system_prompt()


def assemble_conversation(
    system_prompt: str,
    history: Iterable[HistoryEntry],
    user_message: str,
) -> list[dict[str, str]]:
    """
    Build the message list sent to the completion API.

    Args:
        system_prompt: Persona prompt, always the first entry
        history: Prior messages of the session in creation order
        user_message: The new user utterance, always the last entry

    Returns:
        Fresh list of {"role", "content"} dicts; history is copied, never
        reordered, filtered or mutated.
    """
    messages = [{"role": "system", "content": system_prompt}]
    messages.extend({"role": entry.role, "content": entry.content} for entry in history)
    messages.append({"role": "user", "content": user_message})
    return messages
