"""
one game: a secret word, and the rank feedback for each guess.

two feedback conventions exist:

- corpus mode (the real one): the guess's position in the corpus sorted
  by similarity to the secret. corpus words get their true rank, other
  words a synthetic one.
- reciprocal mode (legacy): floor(1 / similarity). kept for compatibility
  with older clients only; it blows up as similarity approaches 0 and is
  undefined (None) at or below 0.

the two are not interchangeable.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from .cache import LRUCache
from .corpus_build import RetryPolicy
from .embeddings import VectorStore, clean_word, normalize
from .errors import EmptyGuessError
from .providers import EmbeddingProvider
from .rankings import Neighbor, SimilarityRanker

logger = logging.getLogger(__name__)


class FeedbackMode(str, Enum):
    CORPUS = "corpus"
    RECIPROCAL = "reciprocal"


@dataclass
class GuessOutcome:
    """what the player gets back for one guess."""

    word: str
    position: int | None
    similarity: float
    in_corpus: bool
    top: list[Neighbor] = field(default_factory=list)


def reciprocal_position(similarity: float) -> int | None:
    """legacy position: floor(1 / similarity); None when similarity <= 0."""
    if similarity <= 0.0:
        return None
    return math.floor(1.0 / similarity)


class GameSession:
    """
    binds a secret word to the ranker.

    the secret's vector is resolved once, at construction: from the store
    when the secret is a corpus word, otherwise from the provider.

    args:
        store: loaded corpus
        provider: embedding provider for words outside the corpus
        secret_word: the word to guess
        mode: "corpus" (default) or "reciprocal"
        top_k: default length of the neighbor list
        cache_size: max guess embeddings kept in memory (0 = no cache)
        retry: provider retry policy while serving (default: one attempt)
    """

    def __init__(
        self,
        store: VectorStore,
        provider: EmbeddingProvider,
        secret_word: str,
        mode: FeedbackMode | str = FeedbackMode.CORPUS,
        top_k: int = 20,
        cache_size: int = 10_000,
        retry: RetryPolicy | None = None,
    ):
        secret = clean_word(secret_word)
        if not secret:
            raise ValueError("secret word must not be empty")

        self.store = store
        self.provider = provider
        self.ranker = SimilarityRanker(store)
        self.mode = FeedbackMode(mode)
        self.top_k = top_k
        self.cache: LRUCache[str, NDArray[np.float32]] = LRUCache(cache_size)
        self.retry = retry or RetryPolicy(max_attempts=1)

        self.secret_word = secret
        self.secret_vector = self._resolve_secret(secret)

    def _resolve_secret(self, secret: str) -> NDArray[np.float32]:
        idx = self.store.lookup(secret)
        if idx is not None:
            return self.store.vector_at(idx)

        logger.warning("secret '%s' is not a corpus word; its own rank will be synthetic", secret)
        vec = normalize(self.retry.call(self.provider.embed, secret))
        self.store.check_dimension(vec)
        return vec

    def embedding_for(self, word: str) -> NDArray[np.float32]:
        """
        unit vector for a (cleaned) guess: cache, then corpus, then provider.

        raises:
            ProviderError: provider failed after the retry policy gave up
            DimensionMismatchError: provider vector doesn't match the corpus
        """
        cached = self.cache.get(word)
        if cached is not None:
            return cached

        idx = self.store.lookup(word)
        if idx is not None:
            return self.store.vector_at(idx)

        vec = normalize(self.retry.call(self.provider.embed, word))
        self.store.check_dimension(vec)
        self.cache.put(word, vec)
        return vec

    def evaluate_guess(self, raw_word: str, top_k: int | None = None) -> GuessOutcome:
        """
        rank one guess against the secret.

        raises:
            EmptyGuessError: blank guess
            ProviderError, DimensionMismatchError: see embedding_for
        """
        word = clean_word(raw_word)
        if not word:
            raise EmptyGuessError()
        k = self.top_k if top_k is None else top_k

        # exact hit: no embedding call, no floating-point wobble
        if word == self.secret_word:
            result = self.ranker.rank(self.secret_vector)
            return GuessOutcome(
                word=word,
                position=1,
                similarity=1.0,
                in_corpus=word in self.store,
                top=result.top_k(k),
            )

        guess_vec = self.embedding_for(word)
        similarity = float(np.dot(guess_vec, self.secret_vector))
        result = self.ranker.rank(self.secret_vector, word, similarity)

        if self.mode is FeedbackMode.CORPUS:
            position = result.target_rank
            # corpus words report the score the ordering used
            similarity = result.target_similarity
        else:
            position = reciprocal_position(similarity)

        return GuessOutcome(
            word=word,
            position=position,
            similarity=similarity,
            in_corpus=result.target_in_corpus,
            top=result.top_k(k),
        )
