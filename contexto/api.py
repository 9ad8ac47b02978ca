"""
HTTP API: translate requests into GameSession calls.

endpoints:
- GET  /        plain liveness text
- GET  /health  corpus + session info
- POST /guess   {"word": "..."} → position, similarity, top-k neighbors

handlers are plain `def`s, so FastAPI runs them in its thread pool and
ranking scans for concurrent guesses proceed in parallel over the shared
read-only store.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from .config import Config
from .corpus_build import RetryPolicy
from .embeddings import load_corpus
from .errors import DimensionMismatchError, EmptyGuessError, ProviderError
from .providers import get_provider
from .session import GameSession
from .word_of_day import secret_candidates, secret_for_date, today

logger = logging.getLogger(__name__)


class GuessRequest(BaseModel):
    word: str = ""


class NeighborModel(BaseModel):
    word: str
    similarity: float
    rank: int


class GuessResponse(BaseModel):
    word: str
    position: int | None
    similarity: float
    in_corpus: bool
    top: list[NeighborModel]


class HealthResponse(BaseModel):
    status: str
    words: int
    dimension: int
    provider: str
    model: str
    mode: str


def build_session(config: Config) -> GameSession:
    """
    load the corpus and set up the game.

    raises:
        CorpusFormatError: the corpus can't be loaded; the server must not start
    """
    store = load_corpus(config.corpus_path)
    provider = get_provider(config)

    secret = config.secret_word
    if not secret:
        date_str = today()
        secret = secret_for_date(date_str, store.words, candidates=secret_candidates(store.words))
        # picked once per process: a server running past midnight keeps
        # this secret until it is restarted
        logger.info(
            "no SECRET_WORD configured, picked the word of the day for %s "
            "(fixed until restart)",
            date_str,
        )

    return GameSession(
        store,
        provider,
        secret,
        mode=config.feedback_mode,
        top_k=config.top_k,
        cache_size=config.cache_size,
        retry=RetryPolicy(max_attempts=config.serve_retry_attempts, delay=config.retry_delay),
    )


def create_app(config: Config | None = None, session: GameSession | None = None) -> FastAPI:
    """
    app factory.

    args:
        config: settings (default: Config.from_env())
        session: ready-made session; when omitted the corpus is loaded at
                 startup and a load failure aborts startup
    """
    config = config or Config.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.session is None:
            logger.info("loading embeddings...")
            app.state.session = build_session(config)
        store = app.state.session.store
        logger.info("ready: %d words, dims=%d", len(store), store.dimension)
        yield

    app = FastAPI(title="contexto", lifespan=lifespan)
    app.state.session = session
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- errors: {"error": message}, never fatal to the process ---

    @app.exception_handler(DimensionMismatchError)
    async def dimension_mismatch(request: Request, exc: DimensionMismatchError):
        logger.error("%s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(EmptyGuessError)
    async def empty_guess(request: Request, exc: EmptyGuessError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(ProviderError)
    async def provider_error(request: Request, exc: ProviderError):
        logger.error("embedding provider failed: %s", exc)
        return JSONResponse(status_code=502, content={"error": str(exc)})

    # --- routes ---

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "server is running"

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request) -> dict[str, Any]:
        session: GameSession = request.app.state.session
        return {
            "status": "ok",
            "words": len(session.store),
            "dimension": session.store.dimension,
            "provider": config.provider,
            "model": getattr(session.provider, "model", config.embed_model),
            "mode": session.mode.value,
        }

    @app.post("/guess", response_model=GuessResponse)
    def guess(
        body: GuessRequest,
        request: Request,
        top: int | None = Query(default=None, ge=0),
    ):
        session: GameSession = request.app.state.session
        outcome = session.evaluate_guess(body.word, top_k=top)

        return {
            "word": outcome.word,
            "position": outcome.position,
            "similarity": outcome.similarity,
            "in_corpus": outcome.in_corpus,
            "top": [
                {"word": n.word, "similarity": n.similarity, "rank": n.rank}
                for n in outcome.top
            ],
        }

    return app
