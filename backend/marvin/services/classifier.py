"""
Keyword heuristics for coaching tone.

Both functions are plain lookups over fixed German keyword lists: a keyword
counts once if it occurs anywhere (as a substring) in the lower-cased text.
The result only steers tone and depth of the reply; the chat handler keeps
the level in the assistant message's metadata.
"""

from dataclasses import dataclass, field
from enum import Enum


class ConsciousnessLevel(str, Enum):
    """Coarse consciousness level, ascending from A to D."""

    A = "A"  # Suchend
    B = "B"  # Erwachend
    C = "C"  # Auf dem Weg
    D = "D"  # Hochbewusst


# Spiritual language, self-awareness, integration
LEVEL_D_KEYWORDS = (
    "bewusstsein", "schwingung", "frequenz", "manifestation", "schöpfer",
    "einheit", "präsenz", "achtsamkeit", "transformation", "integration",
    "schatten", "licht", "energie", "spirituell", "erwachen",
)

# Growth mindset, self-reflection, patterns
LEVEL_C_KEYWORDS = (
    "entwicklung", "wachstum", "muster", "reflektion", "erkenntnis",
    "veränderung", "prozess", "weg", "reise", "lernen", "verstehen",
)

# Questioning, seeking, opening
LEVEL_B_KEYWORDS = (
    "frage", "suche", "warum", "sinn", "zweck", "richtung", "orientierung",
    "unsicher", "zweifel", "öffnung", "neugierig", "interesse",
)

# Problems, feeling stuck, reactive
LEVEL_A_KEYWORDS = (
    "problem", "schwierigkeit", "stuck", "fest", "hilfe", "nicht weiter",
    "verzweifelt", "müde", "erschöpft", "überwältigt", "stress",
)

# Highest level first: ties resolve to the earlier entry
_LEVEL_KEYWORDS = (
    (ConsciousnessLevel.D, LEVEL_D_KEYWORDS),
    (ConsciousnessLevel.C, LEVEL_C_KEYWORDS),
    (ConsciousnessLevel.B, LEVEL_B_KEYWORDS),
    (ConsciousnessLevel.A, LEVEL_A_KEYWORDS),
)

EMOTION_KEYWORDS = (
    "freude", "glück", "liebe", "dankbarkeit", "frieden",
    "angst", "sorge", "trauer", "wut", "frustration",
    "unsicherheit", "zweifel", "verwirrung", "stress",
    "hoffnung", "vertrauen", "mut", "klarheit", "ruhe",
)

TOPIC_KEYWORDS = (
    "beruf", "arbeit", "karriere", "beziehung", "partnerschaft",
    "familie", "gesundheit", "geld", "finanzen", "spiritualität",
    "persönlichkeit", "selbstwert", "ziele", "träume", "zukunft",
)

_LEVEL_LABELS = {
    ConsciousnessLevel.A: "Suchend",
    ConsciousnessLevel.B: "Erwachend",
    ConsciousnessLevel.C: "Auf dem Weg",
    ConsciousnessLevel.D: "Hochbewusst",
}

_LEVEL_PROGRESS = {
    ConsciousnessLevel.A: 25,
    ConsciousnessLevel.B: 50,
    ConsciousnessLevel.C: 75,
    ConsciousnessLevel.D: 100,
}


@dataclass
class Insights:
    """Emotions and topics found in one exchange."""

    emotions: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    goals: list[str] = field(default_factory=list)


def _count_keywords(keywords: tuple[str, ...], text: str) -> int:
    return sum(1 for keyword in keywords if keyword in text)


def detect_consciousness_level(message: str, context: str | None = None) -> ConsciousnessLevel:
    """
    Tag text with the level whose keyword list matches most often.

    Args:
        message: The user's message
        context: Optional extra text (earlier messages) scored together with it

    Returns:
        The best-scoring level; ties prefer the higher level (D > C > B > A)
        and text without any match defaults to B.
    """
    text = message.lower() + " " + (context or "").lower()

    scores = [(level, _count_keywords(keywords, text)) for level, keywords in _LEVEL_KEYWORDS]
    max_score = max(score for _, score in scores)

    if max_score == 0:
        return ConsciousnessLevel.B

    for level, score in scores:
        if score == max_score:
            return level

    return ConsciousnessLevel.A


def extract_insights(user_message: str, assistant_response: str) -> Insights:
    """Return the emotion and topic keywords present in an exchange, in list order."""
    text = (user_message + " " + assistant_response).lower()
    return Insights(
        emotions=[emotion for emotion in EMOTION_KEYWORDS if emotion in text],
        topics=[topic for topic in TOPIC_KEYWORDS if topic in text],
    )


def is_valid_level(value: str) -> bool:
    """Check whether a string names one of the four levels."""
    return value in {level.value for level in ConsciousnessLevel}


def level_label(level: ConsciousnessLevel) -> str:
    """German display name of a level."""
    return _LEVEL_LABELS[ConsciousnessLevel(level)]


def level_progress(level: ConsciousnessLevel) -> int:
    """Progress percentage shown for a level."""
    return _LEVEL_PROGRESS[ConsciousnessLevel(level)]
