"""
deterministic secret word selection based on date.

uses sha256 hash of date string to pick a stable index.
same date → same word, no matter where/when the server starts.
"""

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from wordfreq import zipf_frequency

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class ScoredWord:
    word: str
    zipf: float


def today(tz: str = "America/New_York") -> str:
    """
    today's date (YYYY-MM-DD) in the game's timezone.

    the server calls this once at startup, so its secret only rolls over
    when it is restarted after midnight.
    """
    return datetime.now(ZoneInfo(tz)).strftime("%Y-%m-%d")


def score_vocab(
    vocab: Iterable[str],
    *,
    lang: str = "en",
    wordlist: str = "small",
    min_zipf: float = 3.0,
) -> list[ScoredWord]:
    """zipf frequency of each word, keeping only those >= min_zipf."""
    scored: list[ScoredWord] = []
    for w in vocab:
        z = float(zipf_frequency(w, lang, wordlist=wordlist))
        if z >= min_zipf:
            scored.append(ScoredWord(word=w, zipf=z))
    return scored


def secret_candidates(vocab: Iterable[str], min_zipf: float = 3.0, lang: str = "en") -> list[str]:
    """
    corpus words common enough to be a fun secret.

    rare words make an unwinnable game, so secrets come from the
    frequent end of the vocabulary.
    """
    return [s.word for s in score_vocab(vocab, lang=lang, min_zipf=min_zipf)]


def secret_for_date(
    date_str: str,
    vocab: Sequence[str],
    candidates: Sequence[str] | None = None,
    min_length: int = 3,
) -> str:
    """
    deterministically pick a secret word for a given date.

    args:
        date_str: date in YYYY-MM-DD format
        vocab: corpus words (fallback pool)
        candidates: preferred pool, e.g. from secret_candidates()
        min_length: minimum word length to accept

    returns:
        the secret word
    """
    if not DATE_RE.match(date_str):
        raise ValueError(f"date must be YYYY-MM-DD, got: {date_str}")

    pool = [w for w in (candidates or vocab) if len(w) >= min_length and w.isalpha()]
    if not pool:
        # candidates too strict, fall back to anything in the corpus
        pool = [w for w in vocab if len(w) >= min_length and w.isalpha()]
    if not pool:
        raise RuntimeError("no word in the vocabulary can be a secret")

    # interpret first 8 bytes of the hash as little-endian uint64
    h = hashlib.sha256(date_str.encode("utf-8")).digest()
    seed_int = int.from_bytes(h[:8], byteorder="little")
    return pool[seed_int % len(pool)]
