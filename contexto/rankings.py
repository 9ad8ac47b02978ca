"""
rank the whole corpus by cosine similarity to a query vector.

this is the core contexto logic: score every word against the query,
order them (rank 1 = closest), and place a target word in that order.
a target outside the corpus gets a synthetic rank: the position its
similarity would take if it were inserted into the sorted list.

it's a plain linear scan on purpose. the rank has to be relative to the
full corpus, which an approximate index can't promise.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .embeddings import VectorStore, clean_word


@dataclass(frozen=True)
class Neighbor:
    """one entry of a top-k list."""

    word: str
    similarity: float
    rank: int


@dataclass
class RankedResult:
    """results from SimilarityRanker.rank."""

    # word list of the store that was ranked
    words: list[str]

    # scores[i] = similarity of corpus word i to the query
    scores: NDArray[np.float32]

    # corpus indices sorted by similarity descending, ties in corpus order
    order: NDArray[np.int64]

    # full rank array: ranks[i] = position of word i (1 = closest to query)
    ranks: NDArray[np.int64]

    # the word we were asked to place, if any
    target_word: str | None = None

    # its rank: real if in the corpus, synthetic if not, None if unknown
    target_rank: int | None = None

    # its similarity to the query
    target_similarity: float | None = None

    # whether target_word is a corpus word
    target_in_corpus: bool = False

    def __len__(self) -> int:
        return len(self.order)

    def word_at_rank(self, rank: int) -> str:
        return self.words[int(self.order[rank - 1])]

    def similarity_at(self, rank: int) -> float:
        """similarity of the entry at 1-based rank."""
        return float(self.scores[self.order[rank - 1]])

    def top_k(self, k: int) -> list[Neighbor]:
        """first k entries of the ordering; k is clamped to [0, N]."""
        k = max(0, min(int(k), len(self.order)))
        return [
            Neighbor(
                word=self.words[int(idx)],
                similarity=float(self.scores[idx]),
                rank=pos,
            )
            for pos, idx in enumerate(self.order[:k], 1)
        ]


def top_k(result: RankedResult, k: int) -> list[Neighbor]:
    return result.top_k(k)


def synthetic_rank(scores: NDArray[np.floating], similarity: float) -> int:
    """
    rank a similarity value against corpus scores without inserting it.

    1 + number of corpus entries strictly more similar, clamped to [1, N]:
    beating everything gives 1, losing to everything gives N.
    """
    n = len(scores)
    greater = int(np.count_nonzero(scores > np.float32(similarity)))
    return max(1, min(greater + 1, n))


class SimilarityRanker:
    """
    linear-scan ranker over a VectorStore.

    holds a reference to the store and never writes to it, so one ranker
    (or many) can serve concurrent requests.
    """

    def __init__(self, store: VectorStore):
        self.store = store

    def score(self, query: NDArray[np.floating]) -> NDArray[np.float32]:
        """
        cosine similarity of the query to every corpus vector.

        both sides are unit length, so this is just the dot product.

        raises:
            DimensionMismatchError: len(query) != store dimension
        """
        self.store.check_dimension(query)
        q = np.asarray(query, dtype=np.float32)
        return self.store.vectors @ q  # shape (N,)

    def rank(
        self,
        query: NDArray[np.floating],
        target_word: str | None = None,
        target_similarity: float | None = None,
    ) -> RankedResult:
        """
        compute the full ordering and place target_word in it.

        args:
            query: unit vector of dimension D
            target_word: word whose rank we want (optional)
            target_similarity: similarity of target_word to the query; only
                used when target_word is not a corpus word, to compute the
                synthetic rank

        returns:
            RankedResult with the full ordering and the target's rank
        """
        scores = self.score(query)
        n = len(scores)

        # stable sort on negated scores: descending, ties keep corpus order
        order = np.argsort(-scores, kind="stable")

        ranks = np.empty(n, dtype=np.int64)
        ranks[order] = np.arange(1, n + 1, dtype=np.int64)

        result = RankedResult(
            words=self.store.words,
            scores=scores,
            order=order,
            ranks=ranks,
        )

        if target_word is None:
            return result

        word = clean_word(target_word)
        result.target_word = word
        idx = self.store.lookup(word)

        if idx is not None:
            result.target_in_corpus = True
            result.target_rank = int(ranks[idx])
            result.target_similarity = float(scores[idx])
        elif target_similarity is not None:
            result.target_rank = synthetic_rank(scores, target_similarity)
            result.target_similarity = float(target_similarity)

        return result
