"""Chunking and similarity ranking for uploaded documents."""

import math
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

_SENTENCE_ENDS = ".!?"


class EmbeddedChunk(Protocol):
    embedding: Sequence[float] | None


C = TypeVar("C", bound=EmbeddedChunk)


def chunk_text(text: str, max_chunk_size: int = 1000, overlap: int = 100) -> list[str]:
    """
    Split text into overlapping chunks, preferring sentence boundaries.

    A chunk ends after the last '.', '!' or '?' inside its window when that
    boundary lies past the window's midpoint; otherwise it is cut at
    max_chunk_size. Consecutive chunks overlap by `overlap` characters.
    Chunks are stripped and empty ones dropped.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")
    if not 0 <= overlap < max_chunk_size // 2:
        raise ValueError("overlap must be smaller than half of max_chunk_size")

    chunks: list[str] = []
    start = 0
    length = len(text)

    while start < length:
        end = start + max_chunk_size

        if end < length:
            last_sentence_end = max(text.rfind(mark, start, end) for mark in _SENTENCE_ENDS)
            if last_sentence_end > start + max_chunk_size * 0.5:
                end = last_sentence_end + 1

        chunks.append(text[start:end].strip())
        if end >= length:
            break
        start = end - overlap

    return [chunk for chunk in chunks if chunk]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Raises:
        ValueError: If the vectors differ in length

    Returns 0.0 when either vector has zero norm.
    """
    if len(a) != len(b):
        raise ValueError("Vectors must have the same length")

    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot_product / (norm_a * norm_b)


def rank_chunks(
    query_embedding: Sequence[float],
    chunks: Iterable[C],
    limit: int = 5,
) -> list[tuple[C, float]]:
    """
    Rank embedded chunks by similarity to a query embedding.

    Chunks without an embedding, or whose embedding has another dimension
    (e.g. produced by a different model), are skipped.
    """
    scored = [
        (chunk, cosine_similarity(query_embedding, chunk.embedding))
        for chunk in chunks
        if chunk.embedding and len(chunk.embedding) == len(query_embedding)
    ]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]
