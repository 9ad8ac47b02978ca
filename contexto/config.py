"""
configuration for the contexto server and corpus builder.

all the magic numbers live here so they're easy to tweak.
`Config.from_env()` is the only place that reads environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class Config:
    """server + corpus build settings. tweak these as needed."""

    # corpus: a .jsonl file or a preprocessed directory (words.json + .npy)
    corpus_path: Path = Path("embeddings.jsonl")

    # embedding provider
    provider: str = "openai"
    embed_model: str = "text-embedding-3-large"
    embed_dimensions: int | None = None
    api_key: str | None = None

    # http
    host: str = "0.0.0.0"
    port: int = 3000

    # game
    secret_word: str | None = None
    feedback_mode: str = "corpus"
    top_k: int = 20
    cache_size: int = 10_000

    # corpus build (matches the limits the provider usually tolerates)
    batch_size: int = 50
    concurrency: int = 2
    retry_attempts: int = 3
    retry_delay: float = 2.0

    # serving never retries for long; one attempt unless told otherwise
    serve_retry_attempts: int = 1

    log_level: str = "INFO"

    # filenames for preprocessed data
    vocab_file: str = "words.json"
    embeddings_file: str = "embeddings_normed.npy"

    def __post_init__(self):
        """ensure paths are Path objects."""
        self.corpus_path = Path(self.corpus_path)

    @classmethod
    def from_env(cls) -> "Config":
        """build a config from environment variables, falling back to defaults."""
        defaults = cls()
        dims = os.getenv("EMBED_DIMENSIONS")
        return cls(
            corpus_path=Path(os.getenv("EMB_FILE", str(defaults.corpus_path))),
            provider=os.getenv("EMBED_PROVIDER", defaults.provider).lower(),
            embed_model=os.getenv("EMBED_MODEL", defaults.embed_model),
            embed_dimensions=int(dims) if dims else None,
            # OPENAI_KEY is what the old node services used
            api_key=os.getenv("OPENAI_API_KEY") or os.getenv("OPENAI_KEY"),
            host=os.getenv("HOST", defaults.host),
            port=int(os.getenv("PORT", str(defaults.port))),
            secret_word=os.getenv("SECRET_WORD") or None,
            feedback_mode=os.getenv("FEEDBACK_MODE", defaults.feedback_mode).lower(),
            top_k=int(os.getenv("TOP_K", str(defaults.top_k))),
            cache_size=int(os.getenv("CACHE_SIZE", str(defaults.cache_size))),
            batch_size=int(os.getenv("BATCH_SIZE", str(defaults.batch_size))),
            concurrency=int(os.getenv("CONCURRENCY", str(defaults.concurrency))),
            retry_attempts=int(os.getenv("RETRY_ATTEMPTS", str(defaults.retry_attempts))),
            retry_delay=float(os.getenv("RETRY_DELAY", str(defaults.retry_delay))),
            serve_retry_attempts=int(
                os.getenv("SERVE_RETRY_ATTEMPTS", str(defaults.serve_retry_attempts))
            ),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )


# default config instance
DEFAULT_CONFIG = Config()
