"""Small text helpers shared by routes and schemas."""

import re

DEFAULT_SESSION_TITLE = "Neue Unterhaltung"
MAX_INPUT_LENGTH = 2000

_ANGLE_BRACKETS = re.compile(r"[<>]")


def truncate_text(text: str, max_length: int) -> str:
    """Cut text to max_length characters, marking the cut with '...'."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def sanitize_input(value: str) -> str:
    """Trim, drop angle brackets and cap user input at MAX_INPUT_LENGTH characters."""
    return _ANGLE_BRACKETS.sub("", value.strip())[:MAX_INPUT_LENGTH]


def generate_session_title(first_message: str) -> str:
    """Derive a session title from the first message of a conversation."""
    truncated = truncate_text(sanitize_input(first_message), 50)
    return truncated or DEFAULT_SESSION_TITLE


def parse_tags(raw: str) -> list[str]:
    """Split a comma-separated tag string into trimmed, non-empty tags."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def format_file_size(num_bytes: int) -> str:
    """
    Human-readable file size.

    >>> format_file_size(0)
    '0 Bytes'
    >>> format_file_size(1536)
    '1.5 KB'
    """
    if num_bytes <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    size = float(num_bytes)
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    # Drop trailing zeros like the UI does ("1.5 KB", "2 MB")
    return f"{round(size, 2):g} {units[index]}"


def estimate_tokens(text: str) -> int:
    """Rough token estimate (about four characters per token)."""
    return (len(text) + 3) // 4
