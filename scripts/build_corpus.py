#!/usr/bin/env python3
"""
build (or resume) the corpus file from a word list.

usage:
    OPENAI_API_KEY=sk-... python scripts/build_corpus.py words.txt embeddings.jsonl
    python scripts/build_corpus.py words.txt embeddings.jsonl --filter --provider deterministic

words already present in the output are skipped, so re-running after a
crash or a rate-limit storm only embeds what's missing.
"""

import argparse
import logging
import sys
from pathlib import Path

# add parent dir to path so we can import contexto
sys.path.insert(0, str(Path(__file__).parent.parent))

from contexto.config import Config
from contexto.corpus_build import RetryPolicy, build_corpus, read_wordlist
from contexto.filters import clean_wordlist
from contexto.providers import get_provider


def main():
    env = Config.from_env()

    parser = argparse.ArgumentParser(description="embed a word list into a corpus file")
    parser.add_argument("words_file", type=Path, help="one word per line")
    parser.add_argument("out_file", type=Path, help="corpus .jsonl (appended to)")
    parser.add_argument(
        "--provider",
        default=env.provider,
        help=f"embedding provider: openai | deterministic (default: {env.provider})"
    )
    parser.add_argument(
        "--model",
        default=env.embed_model,
        help=f"embedding model (default: {env.embed_model})"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=env.batch_size,
        help=f"words per provider call (default: {env.batch_size})"
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=env.concurrency,
        help=f"provider calls in flight (default: {env.concurrency})"
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=env.retry_attempts,
        help=f"attempts per batch (default: {env.retry_attempts})"
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=env.retry_delay,
        help=f"seconds between attempts (default: {env.retry_delay})"
    )
    parser.add_argument(
        "--filter",
        action="store_true",
        help="drop stopwords, short and non-alphabetic words first"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="print per-batch progress"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.words_file.exists():
        print(f"error: file not found: {args.words_file}")
        sys.exit(1)

    words = read_wordlist(args.words_file)
    print(f"read {len(words):,} words from {args.words_file}")

    if args.filter:
        words, stats = clean_wordlist(words)
        print(f"  kept {stats['kept']:,} after filtering")

    config = Config(
        provider=args.provider,
        embed_model=args.model,
        embed_dimensions=env.embed_dimensions,
        api_key=env.api_key,
    )
    provider = get_provider(config)
    retry = RetryPolicy(max_attempts=args.retries, delay=args.retry_delay)

    report = build_corpus(
        words,
        args.out_file,
        provider,
        batch_size=args.batch_size,
        concurrency=args.concurrency,
        retry=retry,
    )

    print(f"\ntotal words: {report.total:,}")
    print(f"  already saved: {report.skipped:,}")
    print(f"  written:       {report.written:,}")
    if report.failed:
        print(f"  failed:        {report.failed:,} (run again to resume)")
        sys.exit(1)

    print("\ndone!")


if __name__ == "__main__":
    main()
