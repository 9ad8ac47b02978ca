"""
shared fixtures: tiny hand-made corpora and a fake embedding provider.

the fruit corpus is laid out so that, relative to "apple":
    apple (1.0) > fruit (0.8) > car (0.1)
"""

import json
import math
import threading
from pathlib import Path

import pytest

from contexto.embeddings import VectorStore
from contexto.errors import ProviderError

APPLE = [1.0, 0.0, 0.0]
FRUIT = [0.8, 0.6, 0.0]
CAR = [0.1, 0.0, math.sqrt(0.99)]


class FakeProvider:
    """
    provider backed by a dict; records every call.

    words missing from the dict raise ProviderError, and `fail_times`
    makes the first n calls fail regardless.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None, fail_times: int = 0):
        self.vectors = dict(vectors or {})
        self.fail_times = fail_times
        self.calls: list[list[str]] = []
        self._lock = threading.Lock()

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts):
        with self._lock:
            self.calls.append(list(texts))
            if self.fail_times > 0:
                self.fail_times -= 1
                raise ProviderError("rate limited")
        missing = [t for t in texts if t not in self.vectors]
        if missing:
            raise ProviderError(f"no vector for {missing}")
        return [self.vectors[t] for t in texts]


@pytest.fixture
def fruit_records() -> list[tuple[str, list[float]]]:
    return [("apple", APPLE), ("fruit", FRUIT), ("car", CAR)]


@pytest.fixture
def fruit_store(fruit_records) -> VectorStore:
    return VectorStore.from_records(fruit_records)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider({"apple": APPLE, "fruit": FRUIT, "car": CAR})


@pytest.fixture
def write_jsonl(tmp_path):
    """write records (dicts or raw strings) as lines of a corpus file."""

    def _writer(lines, name: str = "embeddings.jsonl") -> Path:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line if isinstance(line, str) else json.dumps(line))
                f.write("\n")
        return path

    return _writer


@pytest.fixture
def fruit_corpus(write_jsonl, fruit_records) -> Path:
    return write_jsonl([{"word": w, "vector": v} for w, v in fruit_records])
