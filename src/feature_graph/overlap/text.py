"""
Keyword-set text similarity.

No stemming, no embeddings. Two texts are compared by
the Jaccard overlap of their keyword sets plus a small boost for shared
three-word phrases.
"""

import re
from typing import FrozenSet, Iterable, List, Set, Tuple

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
        "be", "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "must", "can", "this", "that",
        "these", "those", "it", "its", "they", "their", "them", "we", "our",
        "us", "you", "your", "i", "my", "me",
    }
)

MIN_KEYWORD_LENGTH = 4
PHRASE_BONUS = 0.1
MAX_PHRASE_BONUS = 0.3

_WORD_RE = re.compile(r"[a-z0-9]+")


def tokenize(text: str) -> List[str]:
    """Lowercase alphanumeric runs, in order."""
    return _WORD_RE.findall((text or "").lower())


def extract_keywords(text: str) -> Set[str]:
    """Keywords of a text: tokens longer than three characters, minus stop words."""
    return {
        word
        for word in tokenize(text)
        if len(word) >= MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    }


def jaccard_similarity(set1: Iterable, set2: Iterable) -> float:
    """Intersection over union; 0.0 when both are empty."""
    a, b = set(set1), set(set2)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def trigrams(text: str) -> Set[Tuple[str, str, str]]:
    """Consecutive three-word sequences of a text."""
    words = tokenize(text)
    return {tuple(words[i:i + 3]) for i in range(len(words) - 2)}


def calculate_text_similarity(text1: str, text2: str) -> float:
    """
    Similarity of two free texts in [0, 1].

    Jaccard over keyword sets, plus 0.1 per shared three-word phrase (the
    phrase bonus is capped at 0.3), with the total capped at 1.0.
    """
    overlap = jaccard_similarity(extract_keywords(text1), extract_keywords(text2))
    shared_phrases = len(trigrams(text1) & trigrams(text2))
    bonus = min(shared_phrases * PHRASE_BONUS, MAX_PHRASE_BONUS)
    return min(overlap + bonus, 1.0)
