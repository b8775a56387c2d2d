"""
Keyword heuristics applied to a chat message before it is forwarded.

None of this is language understanding: intent is first-match substring
lookup against fixed vocabularies, and search terms are the first few
non-stop-words of the message.
"""

import re
from enum import Enum


class Intent(str, Enum):
    """What the user appears to want back."""

    PDF = "pdf"
    CODE = "code"
    GENERAL = "general"


# Checked in order; the first vocabulary with any hit wins.
INTENT_KEYWORDS: list[tuple[Intent, tuple[str, ...]]] = [
    (Intent.PDF, ("pdf", "document", "generate a file")),
    (
        Intent.CODE,
        (
            "code",
            "create a",
            "write a",
            "html",
            "css",
            "javascript",
            "python",
            "function",
            "program",
        ),
    ),
]

STOP_WORDS = frozenset({
    "what", "is", "the", "a", "an", "how", "why", "when", "where", "who",
    "can", "you", "tell", "me", "about", "explain", "show", "please", "i",
    "want", "to", "know", "of", "and", "or", "in", "on", "for", "with",
})

MAX_SEARCH_TERMS = 3
FALLBACK_QUERY_CHARS = 30

_TITLE_NOISE = re.compile(r"generate|create|make|pdf|document", re.IGNORECASE)
DEFAULT_PDF_TITLE = "AI Generated Document"


def classify_intent(message: str) -> Intent:
    """Case-insensitive substring match; pdf is checked before code."""
    lowered = message.lower()
    for intent, keywords in INTENT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return Intent.GENERAL


def extract_search_terms(message: str) -> str:
    """
    Image search query for a message.

    Keeps words longer than 2 characters that are not stop words and joins
    the first three. Falls back to the first 30 characters of the message
    when nothing survives.
    """
    words = [
        word
        for word in message.lower().split()
        if len(word) > 2 and word not in STOP_WORDS
    ]
    if not words:
        return message[:FALLBACK_QUERY_CHARS]
    return " ".join(words[:MAX_SEARCH_TERMS])


def pdf_title(message: str) -> str:
    """Document title derived from the request wording."""
    title = " ".join(_TITLE_NOISE.sub("", message).split())
    return title or DEFAULT_PDF_TITLE
