#!/usr/bin/env python3
"""
find the rank of a word relative to a secret.

usage:
    python scripts/find_word_rank.py --secret apple --word fruit
    python scripts/find_word_rank.py --secret apple --word fruit --corpus data/

words outside the corpus are embedded with the configured provider and
get a synthetic rank.
"""

import argparse
import sys
from pathlib import Path

# add parent dir to path so we can import contexto
sys.path.insert(0, str(Path(__file__).parent.parent))

from contexto.config import Config
from contexto.embeddings import load_corpus
from contexto.errors import ContextoError
from contexto.providers import get_provider
from contexto.session import GameSession


def main():
    config = Config.from_env()

    parser = argparse.ArgumentParser(description="find word rank for a secret")
    parser.add_argument("--secret", type=str, required=True, help="secret word")
    parser.add_argument("--word", type=str, required=True, help="word to find")
    parser.add_argument(
        "--corpus",
        type=Path,
        default=config.corpus_path,
        help=f"corpus .jsonl or preprocessed dir (default: {config.corpus_path})"
    )
    args = parser.parse_args()

    try:
        store = load_corpus(args.corpus)
        session = GameSession(store, get_provider(config), args.secret, top_k=0)
        outcome = session.evaluate_guess(args.word)
    except ContextoError as e:
        print(f"error: {e}")
        sys.exit(1)

    n = len(store)
    print(f"secret word: {session.secret_word}")
    print(f"search word: '{outcome.word}'" + ("" if outcome.in_corpus else " (not in corpus, synthetic rank)"))
    print(f"similarity: {outcome.similarity:.4f}")
    print(f"rank: {outcome.position:,} (out of {n:,} words)")

    if n > 1:
        percentile = (1 - (outcome.position - 1) / (n - 1)) * 100
        print(f"percentile: {percentile:.2f}%")


if __name__ == "__main__":
    main()
