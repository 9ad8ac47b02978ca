"""
build (or resume building) the corpus file from a word list.

words already in the output file are skipped, new ones are embedded in
batches and appended as JSON lines. existing lines are never rewritten, so
a build that died halfway can simply be run again.

provider calls go through a small thread pool (bounded in-flight
requests) and a RetryPolicy; a batch that keeps failing is logged and
left for the next run instead of aborting the whole build.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Sequence, TypeVar

from .embeddings import clean_word, format_record, normalize, parse_record, read_corpus_words
from .errors import CorpusFormatError, ProviderError
from .providers import EmbeddingProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    how often and how patiently to retry a provider call.

    delay is the wait before the first retry; each further retry waits
    delay * backoff**n, capped at max_delay. backoff=1.0 is a fixed delay.
    """

    max_attempts: int = 3
    delay: float = 2.0
    backoff: float = 1.0
    max_delay: float = 30.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def delays(self) -> Iterator[float]:
        """the sleeps between attempts (max_attempts - 1 of them)."""
        d = self.delay
        for _ in range(self.max_attempts - 1):
            yield min(d, self.max_delay)
            d *= self.backoff

    def call(
        self,
        fn: Callable[..., T],
        *args,
        sleep: Callable[[float], None] = time.sleep,
    ) -> T:
        """
        call fn(*args), retrying on ProviderError.

        raises:
            ProviderError: the last failure once attempts are exhausted
        """
        waits = self.delays()
        attempt = 1
        while True:
            try:
                return fn(*args)
            except ProviderError as e:
                wait = next(waits, None)
                if wait is None:
                    raise
                logger.warning(
                    "provider error (attempt %d/%d): %s; retrying in %.1fs",
                    attempt, self.max_attempts, e, wait,
                )
                sleep(wait)
                attempt += 1


@dataclass
class BuildReport:
    """what a build run did."""

    total: int = 0      # unique words in the input list
    skipped: int = 0    # already in the output file
    written: int = 0    # appended this run
    failed: int = 0     # left out after retries ran out

    @property
    def complete(self) -> bool:
        return self.failed == 0


def read_wordlist(path: Path | str) -> list[str]:
    """one word per line; trimmed, lowercased, blank lines dropped."""
    with open(path, "r", encoding="utf-8") as f:
        return [w for w in (clean_word(line) for line in f) if w]


def _dedupe(words: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for w in words:
        w = clean_word(w)
        if w and w not in seen:
            seen.add(w)
            out.append(w)
    return out


def repair_tail(path: Path) -> None:
    """
    fix up the last line of a corpus file a crashed run may have torn.

    a complete record that only lacks its newline gets one; a partial
    record is cut off so it gets embedded again. earlier lines are never
    touched.
    """
    if not path.exists() or path.stat().st_size == 0:
        return

    with open(path, "rb+") as f:
        size = f.seek(0, 2)
        f.seek(size - 1)
        if f.read(1) == b"\n":
            return

        # walk back to the last newline
        start = size
        while start > 0:
            step = min(4096, start)
            f.seek(start - step)
            chunk = f.read(step)
            nl = chunk.rfind(b"\n")
            if nl != -1:
                start = start - step + nl + 1
                break
            start -= step

        f.seek(start)
        tail = f.read().decode("utf-8", errors="replace").strip()
        try:
            parse_record(tail, 0, str(path))
        except CorpusFormatError:
            logger.warning("%s: dropping torn last line (%d bytes)", path, size - start)
            f.truncate(start)
            return
        f.seek(0, 2)
        f.write(b"\n")


def build_corpus(
    words: Sequence[str],
    out_path: Path | str,
    provider: EmbeddingProvider,
    batch_size: int = 50,
    concurrency: int = 2,
    retry: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BuildReport:
    """
    embed every word not yet in out_path and append it.

    args:
        words: word list (duplicates and case variants are collapsed)
        out_path: corpus .jsonl file, created if missing
        provider: embedding provider
        batch_size: words per provider call
        concurrency: max provider calls in flight
        retry: retry policy per batch (default: 3 attempts, 2s apart)
        sleep: injected for tests

    returns:
        BuildReport with counts
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    retry = retry or RetryPolicy()
    out_path = Path(out_path)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    repair_tail(out_path)

    unique = _dedupe(words)
    existing = read_corpus_words(out_path)
    todo = [w for w in unique if w not in existing]

    report = BuildReport(total=len(unique), skipped=len(unique) - len(todo))
    logger.info(
        "total words: %d, already saved: %d, to embed: %d",
        report.total, report.skipped, len(todo),
    )
    if not todo:
        return report

    batches = [todo[i:i + batch_size] for i in range(0, len(todo), batch_size)]

    def embed(batch: list[str]) -> list[list[float]]:
        vectors = retry.call(provider.embed_batch, batch, sleep=sleep)
        if len(vectors) != len(batch):
            raise ProviderError(
                f"provider returned {len(vectors)} vectors for {len(batch)} words"
            )
        return vectors

    # workers only talk to the provider; this thread does all the writing
    with open(out_path, "a", encoding="utf-8") as out, \
            ThreadPoolExecutor(max_workers=concurrency) as pool:
        futures = {pool.submit(embed, batch): batch for batch in batches}
        for future in as_completed(futures):
            batch = futures[future]
            try:
                vectors = future.result()
            except ProviderError as e:
                logger.error("batch starting at '%s' failed: %s", batch[0], e)
                report.failed += len(batch)
                continue

            for word, vec in zip(batch, vectors):
                out.write(format_record(word, normalize(vec)))
            out.flush()
            report.written += len(batch)
            logger.info("saved %d/%d", report.skipped + report.written, report.total)

    return report
