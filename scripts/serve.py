#!/usr/bin/env python3
"""
run the guess server.

usage:
    EMB_FILE=embeddings.jsonl SECRET_WORD=apple python scripts/serve.py
    python scripts/serve.py --port 8000

all settings come from the environment (see contexto/config.py);
the flags below only override host/port.
"""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

# add parent dir to path so we can import contexto
sys.path.insert(0, str(Path(__file__).parent.parent))

from contexto.api import create_app
from contexto.config import Config


def main():
    config = Config.from_env()

    parser = argparse.ArgumentParser(description="run the contexto guess server")
    parser.add_argument("--host", default=config.host, help=f"bind address (default: {config.host})")
    parser.add_argument("--port", type=int, default=config.port, help=f"port (default: {config.port})")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not config.corpus_path.exists():
        print(f"error: corpus not found at {config.corpus_path}")
        print("set EMB_FILE or run scripts/build_corpus.py first!")
        sys.exit(1)

    # a broken corpus raises during startup and uvicorn exits non-zero
    uvicorn.run(create_app(config), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
