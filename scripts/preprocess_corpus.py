#!/usr/bin/env python3
"""
one-time preprocessing: corpus .jsonl → words.json + embeddings_normed.npy

usage:
    python scripts/preprocess_corpus.py embeddings.jsonl --output-dir data/

a 3072-dim corpus of a few hundred thousand words takes a while to parse
as JSON; the .npy version loads (memory-mapped) almost instantly. point
EMB_FILE at the output directory to serve from it.
"""

import argparse
import sys
from pathlib import Path

# add parent dir to path so we can import contexto
sys.path.insert(0, str(Path(__file__).parent.parent))

from contexto.embeddings import load_corpus, save_npy
from contexto.errors import CorpusFormatError


def main():
    parser = argparse.ArgumentParser(
        description="preprocess a corpus file into fast-loadable format"
    )
    parser.add_argument("corpus_path", type=Path, help="corpus .jsonl file")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("data"),
        help="output directory (default: data/)"
    )
    args = parser.parse_args()

    print(f"reading {args.corpus_path}...")
    try:
        store = load_corpus(args.corpus_path)
    except CorpusFormatError as e:
        print(f"error: {e}")
        sys.exit(1)
    print(f"  {len(store):,} words, dims={store.dimension}")

    paths = save_npy(store, args.output_dir)

    print("\npreprocessing complete!")
    for name, path in paths.items():
        print(f"  {name}: {path} ({path.stat().st_size:,} bytes)")


if __name__ == "__main__":
    main()
