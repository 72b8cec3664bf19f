# ml/preprocess.py

import re
from typing import Mapping, Optional

STOP_WORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "from", "up", "about", "into", "through", "during", "before",
    "after", "above", "below", "between", "among", "is", "are", "was",
    "were", "be", "been", "being", "have", "has", "had", "do", "does",
    "did", "will", "would", "could", "should", "may", "might", "must",
    "can", "this", "that", "these", "those", "a", "an", "as", "if",
    "then", "than", "so", "no", "not", "only", "own", "same", "such",
    "too", "very", "just", "now", "here", "there", "when", "where",
    "why", "how", "all", "any", "both", "each", "few", "more", "most",
    "other", "some", "what", "which", "who", "whom", "whose",
})

TEXT_FIELDS = ("summary", "description", "component", "environment", "issue_type", "priority")

# (feature prefix, field) pairs, in the order they are appended
CATEGORICAL_FIELDS = (
    ("priority", "priority"),
    ("type", "issue_type"),
    ("env", "environment"),
    ("comp", "component"),
)

_PUNCTUATION = re.compile(r"[^\w\s]", re.ASCII)


def is_stop_word(word: str) -> bool:
    return word in STOP_WORDS


def preprocess_text(text: Optional[str]) -> list[str]:
    """Lowercase, strip punctuation, drop short tokens and stop words."""
    if not text:
        return []

    cleaned = _PUNCTUATION.sub(" ", text.lower())
    return [
        word for word in cleaned.split()
        if len(word) > 2 and not is_stop_word(word)
    ]


def extract_features(ticket: Mapping[str, Optional[str]]) -> list[str]:
    """
    Bag-of-words tokens over all text fields followed by the
    field-prefixed categorical features (priority_high, type_bug, ...).
    """
    text_content = " ".join(ticket.get(name) or "" for name in TEXT_FIELDS)
    features = preprocess_text(text_content)

    for prefix, name in CATEGORICAL_FIELDS:
        value = ticket.get(name)
        if value:
            features.append(f"{prefix}_{value.lower()}")

    return features


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line on commas outside double quotes.
    Quote characters only toggle the in-quotes state; "" escapes are not supported.
    """
    result = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            result.append("".join(current))
            current = []
        else:
            current.append(char)

    result.append("".join(current))
    return result
