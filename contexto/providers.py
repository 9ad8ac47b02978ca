"""
embedding providers: word → raw vector.

the provider is the only part of the system that talks to the network.
everything it raises is translated to ProviderError at this boundary, so
callers only ever have one exception type to retry on.
"""

import hashlib
import logging
from importlib import import_module
from typing import Any, Protocol, Sequence

import numpy as np

from .config import Config
from .errors import ProviderError

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """anything that can embed text. vectors need not be normalized."""

    def embed(self, text: str) -> list[float]: ...

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]: ...


class OpenAIEmbeddingProvider:
    """
    OpenAI embeddings API.

    args:
        model: embedding model name (text-embedding-3-large → 3072 dims)
        api_key: falls back to OPENAI_API_KEY in the environment
        dimensions: optional shortened output size (text-embedding-3-*)
    """

    def __init__(
        self,
        model: str = "text-embedding-3-large",
        api_key: str | None = None,
        dimensions: int | None = None,
    ):
        self.model = model
        self.api_key = api_key
        self.dimensions = dimensions
        # created on first use so importing this module never needs a key
        self._client: Any | None = None

    def _get_client(self) -> Any:
        if self._client is None:
            try:
                OpenAI = import_module("openai").OpenAI
                self._client = OpenAI(api_key=self.api_key)
            except Exception as e:
                raise ProviderError(f"could not create OpenAI client: {e}") from e
        return self._client

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []

        kwargs: dict[str, Any] = {"model": self.model, "input": list(texts)}
        if self.dimensions is not None:
            kwargs["dimensions"] = self.dimensions

        client = self._get_client()
        try:
            resp = client.embeddings.create(**kwargs)
        except Exception as e:
            raise ProviderError(f"embedding request failed: {e}") from e

        # the API tags every result with its input index; don't trust order
        data = sorted(resp.data, key=lambda d: d.index)
        if len(data) != len(texts):
            raise ProviderError(
                f"embedding response has {len(data)} vectors for {len(texts)} inputs"
            )
        return [list(d.embedding) for d in data]


class DeterministicEmbeddingProvider:
    """
    offline provider: hashed character trigrams → vector.

    same word → same vector, and words sharing trigrams ("apple",
    "apples") come out similar. no semantics beyond spelling, but good
    enough for local runs and tests without an API key.
    """

    def __init__(self, dim: int = 256):
        if dim <= 0:
            raise ValueError(f"dim must be positive, got {dim}")
        self.dim = dim
        self.model = f"trigram-hash-{dim}"
        self.calls = 0

    def _vector(self, text: str) -> list[float]:
        vec = np.zeros(self.dim, dtype=np.float32)
        padded = f"^{text.strip().lower()}$"
        for i in range(len(padded) - 2):
            gram = padded[i:i + 3].encode("utf-8")
            h = int.from_bytes(hashlib.md5(gram).digest()[:8], byteorder="little")
            # top bit picks the sign so unrelated words stay near orthogonal
            sign = 1.0 if h >> 63 else -1.0
            vec[h % self.dim] += sign
        return vec.tolist()

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls += 1
        return [self._vector(t) for t in texts]


def get_provider(config: Config) -> EmbeddingProvider:
    """pick a provider by config.provider name."""
    name = config.provider.lower()
    if name == "openai":
        logger.info("using OpenAI embeddings (model=%s)", config.embed_model)
        return OpenAIEmbeddingProvider(
            model=config.embed_model,
            api_key=config.api_key,
            dimensions=config.embed_dimensions,
        )
    if name == "deterministic":
        dim = config.embed_dimensions or 256
        logger.info("using deterministic offline embeddings (dim=%d)", dim)
        return DeterministicEmbeddingProvider(dim=dim)
    raise ValueError(f"unknown embedding provider: {config.provider!r}")
