"""Tests for the resumable corpus build."""

import json

import numpy as np
import pytest

from contexto.corpus_build import BuildReport, RetryPolicy, build_corpus, read_wordlist
from contexto.embeddings import load_corpus
from contexto.errors import ProviderError

from .conftest import FakeProvider

VECTORS = {
    "a": [1.0, 0.0],
    "b": [0.0, 2.0],
    "c": [3.0, 4.0],
    "d": [1.0, 1.0],
    "e": [0.0, 1.0],
}


def no_sleep(_seconds: float) -> None:
    pass


def corpus_lines(path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


class TestResume:
    def test_only_missing_words_are_embedded(self, write_jsonl) -> None:
        out = write_jsonl([
            {"word": "a", "vector": [1.0, 0.0]},
            {"word": "b", "vector": [0.0, 1.0]},
        ])
        before = out.read_text(encoding="utf-8")
        provider = FakeProvider(VECTORS)

        report = build_corpus(["a", "b", "c"], out, provider, sleep=no_sleep)

        assert provider.calls == [["c"]]
        assert report == BuildReport(total=3, skipped=2, written=1, failed=0)
        # existing lines untouched, new one appended
        text = out.read_text(encoding="utf-8")
        assert text.startswith(before)
        assert [r["word"] for r in corpus_lines(out)] == ["a", "b", "c"]

    def test_second_run_is_a_no_op(self, tmp_path) -> None:
        out = tmp_path / "corpus.jsonl"
        provider = FakeProvider(VECTORS)
        build_corpus(["a", "b"], out, provider, sleep=no_sleep)
        provider.calls.clear()

        report = build_corpus(["a", "b"], out, provider, sleep=no_sleep)

        assert provider.calls == []
        assert report.written == 0
        assert report.skipped == 2
        assert len(corpus_lines(out)) == 2

    def test_malformed_existing_line_is_skipped(self, write_jsonl) -> None:
        out = write_jsonl([
            {"word": "a", "vector": [1.0, 0.0]},
            '{"word": "b", "vec',
        ])
        provider = FakeProvider(VECTORS)

        report = build_corpus(["a", "b"], out, provider, sleep=no_sleep)

        assert provider.calls == [["b"]]
        assert report.written == 1

    def test_torn_last_line_is_dropped(self, tmp_path) -> None:
        out = tmp_path / "embeddings.jsonl"
        out.write_text('{"word": "a", "vector": [1.0, 0.0]}\n{"word": "b", "vec', encoding="utf-8")
        provider = FakeProvider(VECTORS)

        build_corpus(["a", "b", "c"], out, provider, concurrency=1, sleep=no_sleep)
        assert provider.calls == [["b", "c"]]

        # the next run has nothing left to do and the file loads cleanly
        provider.calls.clear()
        report = build_corpus(["a", "b", "c"], out, provider, sleep=no_sleep)
        assert provider.calls == []
        assert report.skipped == 3
        assert load_corpus(out).words == ["a", "b", "c"]

    def test_complete_last_line_without_newline_is_kept(self, tmp_path) -> None:
        out = tmp_path / "embeddings.jsonl"
        out.write_text('{"word": "a", "vector": [1.0, 0.0]}', encoding="utf-8")
        provider = FakeProvider(VECTORS)

        report = build_corpus(["a", "b"], out, provider, sleep=no_sleep)

        assert provider.calls == [["b"]]
        assert report.skipped == 1
        assert [r["word"] for r in corpus_lines(out)] == ["a", "b"]

    def test_creates_missing_output(self, tmp_path) -> None:
        out = tmp_path / "sub" / "corpus.jsonl"
        build_corpus(["a"], out, FakeProvider(VECTORS), sleep=no_sleep)
        assert out.exists()


class TestBuild:
    def test_input_is_deduplicated(self, tmp_path) -> None:
        provider = FakeProvider(VECTORS)
        report = build_corpus(["a", " A ", "b", "a"], tmp_path / "c.jsonl", provider, sleep=no_sleep)
        assert report.total == 2
        assert provider.calls == [["a", "b"]]

    def test_vectors_written_normalized(self, tmp_path) -> None:
        out = tmp_path / "c.jsonl"
        build_corpus(["c"], out, FakeProvider(VECTORS), sleep=no_sleep)
        (record,) = corpus_lines(out)
        assert record["word"] == "c"
        assert np.allclose(record["vector"], [0.6, 0.8], atol=1e-6)

    def test_batches_and_concurrency(self, tmp_path) -> None:
        out = tmp_path / "c.jsonl"
        provider = FakeProvider(VECTORS)

        report = build_corpus(list("abcde"), out, provider, batch_size=2, concurrency=2, sleep=no_sleep)

        assert report.written == 5
        assert sorted(len(c) for c in provider.calls) == [1, 2, 2]
        # batches may land in any order, but the corpus loads cleanly
        store = load_corpus(out)
        assert sorted(store.words) == list("abcde")

    def test_invalid_arguments(self, tmp_path) -> None:
        with pytest.raises(ValueError):
            build_corpus(["a"], tmp_path / "c.jsonl", FakeProvider(VECTORS), batch_size=0)
        with pytest.raises(ValueError):
            build_corpus(["a"], tmp_path / "c.jsonl", FakeProvider(VECTORS), concurrency=0)


class TestFailures:
    def test_transient_error_is_retried(self, tmp_path) -> None:
        slept: list[float] = []
        provider = FakeProvider(VECTORS, fail_times=1)

        report = build_corpus(
            ["a"], tmp_path / "c.jsonl", provider,
            retry=RetryPolicy(max_attempts=3, delay=1.5),
            sleep=slept.append,
        )

        assert report.written == 1
        assert len(provider.calls) == 2
        assert slept == [1.5]

    def test_failed_batch_does_not_abort_build(self, tmp_path) -> None:
        out = tmp_path / "c.jsonl"
        # "zzz" has no vector, so its batch always fails
        provider = FakeProvider(VECTORS)

        report = build_corpus(
            ["a", "zzz", "b"], out, provider,
            batch_size=1, concurrency=1,
            retry=RetryPolicy(max_attempts=2, delay=0.0),
            sleep=no_sleep,
        )

        assert report.written == 2
        assert report.failed == 1
        assert not report.complete
        assert sorted(r["word"] for r in corpus_lines(out)) == ["a", "b"]
        assert provider.calls.count(["zzz"]) == 2

    def test_short_response_is_a_provider_error(self, tmp_path) -> None:
        class ShortProvider(FakeProvider):
            def embed_batch(self, texts):
                return super().embed_batch(texts)[:1]

        report = build_corpus(
            ["a", "b"], tmp_path / "c.jsonl", ShortProvider(VECTORS),
            retry=RetryPolicy(max_attempts=1), sleep=no_sleep,
        )
        assert report.failed == 2
        assert report.written == 0


class TestRetryPolicy:
    def test_fixed_delay(self) -> None:
        assert list(RetryPolicy(max_attempts=3, delay=2.0).delays()) == [2.0, 2.0]

    def test_backoff_is_capped(self) -> None:
        policy = RetryPolicy(max_attempts=5, delay=1.0, backoff=3.0, max_delay=5.0)
        assert list(policy.delays()) == [1.0, 3.0, 5.0, 5.0]

    def test_single_attempt_never_sleeps(self) -> None:
        slept: list[float] = []
        with pytest.raises(ProviderError):
            RetryPolicy(max_attempts=1).call(FakeProvider().embed, "x", sleep=slept.append)
        assert slept == []

    def test_other_errors_are_not_retried(self) -> None:
        calls = []

        def boom():
            calls.append(1)
            raise KeyError("nope")

        with pytest.raises(KeyError):
            RetryPolicy(max_attempts=3).call(boom, sleep=no_sleep)
        assert len(calls) == 1

    def test_needs_one_attempt(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


def test_read_wordlist(tmp_path) -> None:
    path = tmp_path / "words.txt"
    path.write_text("Apple\n\n  fruit \r\ncar\n", encoding="utf-8")
    assert read_wordlist(path) == ["apple", "fruit", "car"]
