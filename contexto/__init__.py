"""
contexto ranking server

ranks every corpus word by embedding similarity to a secret word and
tells players where their guess lands in that ordering.
"""

from .config import Config
from .embeddings import VectorStore, load_corpus
from .errors import (
    ContextoError,
    CorpusFormatError,
    DimensionMismatchError,
    EmptyGuessError,
    ProviderError,
)
from .rankings import Neighbor, RankedResult, SimilarityRanker
from .session import FeedbackMode, GameSession, GuessOutcome
from .corpus_build import BuildReport, RetryPolicy, build_corpus

__all__ = [
    "Config",
    "VectorStore",
    "load_corpus",
    "ContextoError",
    "CorpusFormatError",
    "DimensionMismatchError",
    "EmptyGuessError",
    "ProviderError",
    "Neighbor",
    "RankedResult",
    "SimilarityRanker",
    "FeedbackMode",
    "GameSession",
    "GuessOutcome",
    "BuildReport",
    "RetryPolicy",
    "build_corpus",
]
