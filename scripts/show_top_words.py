#!/usr/bin/env python3
"""
display the top N words for a secret word.
"""

import argparse
import sys
from pathlib import Path

# add parent dir to path so we can import contexto
sys.path.insert(0, str(Path(__file__).parent.parent))

from contexto.config import Config
from contexto.embeddings import load_corpus
from contexto.errors import ContextoError
from contexto.rankings import SimilarityRanker


def main():
    config = Config.from_env()

    parser = argparse.ArgumentParser(description="display top words for a secret")
    parser.add_argument("--secret", type=str, required=True, help="secret word (must be in the corpus)")
    parser.add_argument("--top", type=int, default=50, help="number of top words to show")
    parser.add_argument(
        "--corpus",
        type=Path,
        default=config.corpus_path,
        help=f"corpus .jsonl or preprocessed dir (default: {config.corpus_path})"
    )
    args = parser.parse_args()

    print("loading corpus...")
    try:
        store = load_corpus(args.corpus)
    except ContextoError as e:
        print(f"error: {e}")
        sys.exit(1)
    print(f"  loaded {len(store):,} words, dims={store.dimension}")

    idx = store.lookup(args.secret)
    if idx is None:
        print(f"'{args.secret}' not found in corpus")
        sys.exit(1)

    result = SimilarityRanker(store).rank(store.vector_at(idx))

    print(f"\ntop {args.top} words for '{store.word_at(idx)}':")
    print("-" * 50)
    for n in result.top_k(args.top):
        print(f"{n.rank:5d}. {n.word:20s} (similarity {n.similarity:.4f})")


if __name__ == "__main__":
    main()
