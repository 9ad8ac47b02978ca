"""
word-list filters applied before a corpus build.

every word in the list costs an embedding call, so junk is dropped up
front:
- short words (< 3 chars)
- anything that isn't purely alphabetic
- stopwords (the, a, is, etc.)
- misspellings / slang with repeated chars ("yesss", "nooo")
- duplicates and case variants
"""

import logging
import re
from typing import Iterable

logger = logging.getLogger(__name__)

# function words make terrible guesses and terrible secrets
STOPWORDS = frozenset([
    "a", "an", "the",
    "i", "me", "my", "we", "our", "you", "your", "he", "him", "his",
    "she", "her", "it", "its", "they", "them", "their",
    "this", "that", "these", "those", "what", "which", "who", "whom",
    "am", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did",
    "at", "by", "for", "from", "in", "into", "of", "off", "on", "onto",
    "out", "over", "to", "up", "with", "about",
    "and", "but", "if", "or", "as", "so", "than", "then",
    "not", "no", "very", "just", "also", "too",
])

# 3+ of the same char in a row
REPEATED_CHARS = re.compile(r"(.)\1{2,}")


def is_valid_word(
    word: str,
    *,
    min_length: int = 3,
    stopwords: Iterable[str] | None = STOPWORDS,
    ascii_only: bool = False,
) -> bool:
    """check if a (cleaned) word is worth embedding."""
    if len(word) < min_length:
        return False
    if not word.isalpha():
        return False
    if ascii_only and not word.isascii():
        return False
    if stopwords is not None and word in stopwords:
        return False
    if REPEATED_CHARS.search(word):
        return False
    return True


def clean_wordlist(
    words: Iterable[str],
    *,
    min_length: int = 3,
    stopwords: Iterable[str] | None = STOPWORDS,
    ascii_only: bool = False,
) -> tuple[list[str], dict[str, int]]:
    """
    filter a raw word list, keeping input order.

    returns:
        kept: cleaned, unique words
        stats: dict with filtering counts
    """
    stop = frozenset(stopwords) if stopwords is not None else None
    kept: list[str] = []
    seen: set[str] = set()

    stats = {
        "total": 0,
        "kept": 0,
        "duplicate": 0,
        "too_short": 0,
        "non_alpha": 0,
        "stopword": 0,
        "repeated_chars": 0,
    }

    for raw in words:
        w = raw.strip().lower()
        if not w:
            continue
        stats["total"] += 1

        if w in seen:
            stats["duplicate"] += 1
            continue
        if len(w) < min_length:
            stats["too_short"] += 1
            continue
        if not w.isalpha() or (ascii_only and not w.isascii()):
            stats["non_alpha"] += 1
            continue
        if stop is not None and w in stop:
            stats["stopword"] += 1
            continue
        if REPEATED_CHARS.search(w):
            stats["repeated_chars"] += 1
            continue

        seen.add(w)
        kept.append(w)
        stats["kept"] += 1

    logger.info(
        "filtered word list: %d in, %d kept (%s)",
        stats["total"], stats["kept"],
        ", ".join(f"{k}={v}" for k, v in stats.items() if k not in ("total", "kept") and v),
    )
    return kept, stats
