"""
corpus loader: the in-memory word → unit vector store.

the corpus is a JSON-lines file, one `{"word": ..., "vector": [...]}` per
line, written by the corpus builder. for large vocabularies it can also be
preprocessed into words.json + embeddings_normed.npy (see save_npy), which
loads much faster and can be memory-mapped.
"""

import json
import logging
import math
from pathlib import Path
from typing import Iterable, Sequence, Sized

import numpy as np
from numpy.typing import NDArray

from .config import DEFAULT_CONFIG
from .errors import CorpusFormatError, DimensionMismatchError

logger = logging.getLogger(__name__)


def normalize(vec: Sequence[float] | NDArray[np.floating]) -> NDArray[np.float32]:
    """
    L2-normalize a single vector.

    a zero vector is divided by 1, i.e. returned unchanged. that's a
    degenerate case (it has similarity 0 to everything) but it's defined.
    """
    arr = np.asarray(vec, dtype=np.float32)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        norm = 1.0
    return arr / norm


def normalize_rows(matrix: NDArray[np.floating]) -> NDArray[np.float32]:
    """L2-normalize every row; zero rows are left as they are."""
    matrix = np.asarray(matrix, dtype=np.float32)
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return matrix / norms


def clean_word(word: str) -> str:
    return word.strip().lower()


class VectorStore:
    """
    fixed corpus of (word, unit vector) entries, indexed 0..N-1.

    built once at startup and read-only afterwards: the vector matrix is
    flagged non-writeable so concurrent rankers can share it without locks.
    """

    def __init__(self, words: list[str], vectors: NDArray[np.float32]):
        if len(words) == 0:
            raise CorpusFormatError("corpus is empty")
        if vectors.ndim != 2 or vectors.shape[0] != len(words):
            raise CorpusFormatError(
                f"shape mismatch: {len(words)} words vs vectors {vectors.shape}"
            )
        if vectors.shape[1] == 0:
            raise CorpusFormatError("corpus vectors have zero dimension")

        self._words = list(words)
        self._vectors = vectors
        self._vectors.flags.writeable = False
        self._index: dict[str, int] = {}
        for i, w in enumerate(self._words):
            self._index.setdefault(w, i)

    # --- construction ---

    @classmethod
    def from_records(
        cls,
        records: Iterable[tuple[str, Sequence[float]]],
        source: str = "<records>",
    ) -> "VectorStore":
        """
        build a store from (word, vector) pairs.

        words are lowercased and trimmed; the first occurrence of a
        duplicate wins. vectors are normalized here regardless of input.
        """
        words: list[str] = []
        rows: list[Sequence[float]] = []
        seen: set[str] = set()
        dim: int | None = None

        for n, (word, vector) in enumerate(records, 1):
            w = clean_word(word)
            if dim is None:
                dim = len(vector)
                if dim == 0:
                    raise CorpusFormatError(f"{source}: record {n} has an empty vector")
            elif len(vector) != dim:
                raise CorpusFormatError(
                    f"{source}: record {n} ('{w}') has {len(vector)} dims, expected {dim}"
                )
            if w in seen:
                logger.warning("%s: duplicate word '%s' at record %d, keeping first", source, w, n)
                continue
            seen.add(w)
            words.append(w)
            rows.append(vector)

        if not words:
            raise CorpusFormatError(f"{source}: no records")

        matrix = np.array(rows, dtype=np.float32)
        if not np.isfinite(matrix).all():
            raise CorpusFormatError(f"{source}: vectors hold NaN or infinite values")
        return cls(words, normalize_rows(matrix))

    @classmethod
    def load(cls, path: Path) -> "VectorStore":
        return load_corpus(path)

    # --- accessors ---

    def size(self) -> int:
        return len(self._words)

    def __len__(self) -> int:
        return len(self._words)

    @property
    def dimension(self) -> int:
        return int(self._vectors.shape[1])

    @property
    def words(self) -> list[str]:
        return self._words

    @property
    def vectors(self) -> NDArray[np.float32]:
        """the (N, D) matrix of unit rows. read-only."""
        return self._vectors

    def vector_at(self, index: int) -> NDArray[np.float32]:
        return self._vectors[index]

    def word_at(self, index: int) -> str:
        return self._words[index]

    def lookup(self, word: str) -> int | None:
        """word → corpus index, or None when the word isn't in the corpus."""
        return self._index.get(clean_word(word))

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and clean_word(word) in self._index

    def check_dimension(self, vec: Sized) -> None:
        if len(vec) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(vec))


# ---------------------------------------------------------------------------
# JSON-lines corpus
# ---------------------------------------------------------------------------


def parse_record(line: str, line_num: int, source: str) -> tuple[str, list[float]]:
    """parse one corpus line. raises CorpusFormatError with the line number."""
    try:
        obj = json.loads(line)
    except json.JSONDecodeError as e:
        raise CorpusFormatError(f"{source}:{line_num}: invalid JSON ({e.msg})") from e

    if not isinstance(obj, dict):
        raise CorpusFormatError(f"{source}:{line_num}: record is not an object")

    word = obj.get("word")
    vector = obj.get("vector")
    if not isinstance(word, str) or not word.strip():
        raise CorpusFormatError(f"{source}:{line_num}: missing or empty 'word'")
    if not isinstance(vector, list) or not vector:
        raise CorpusFormatError(f"{source}:{line_num}: missing or empty 'vector'")
    # bool is an int subclass, but true/false in a vector is garbage
    if not all(isinstance(x, (int, float)) and not isinstance(x, bool) for x in vector):
        raise CorpusFormatError(f"{source}:{line_num}: 'vector' must hold numbers only")
    # json.loads lets NaN and Infinity through
    if any(isinstance(x, float) and not math.isfinite(x) for x in vector):
        raise CorpusFormatError(f"{source}:{line_num}: 'vector' has non-finite values")

    return word, vector


def _iter_jsonl_records(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            yield parse_record(line, line_num, str(path))


def load_corpus(path: Path | str) -> VectorStore:
    """
    load the serving corpus.

    args:
        path: a .jsonl corpus file, or a directory holding words.json +
              embeddings_normed.npy (see save_npy)

    returns:
        a read-only VectorStore with unit-normalized rows

    raises:
        CorpusFormatError: file absent, empty, or any record malformed /
        of a different dimension than the first one
    """
    path = Path(path)
    if path.is_dir():
        return load_npy(path)
    if not path.exists():
        raise CorpusFormatError(f"corpus file not found: {path}")

    logger.info("loading corpus from %s", path)
    store = VectorStore.from_records(_iter_jsonl_records(path), source=str(path))
    logger.info("loaded %d words, dims=%d", len(store), store.dimension)
    return store


def read_corpus_words(path: Path | str) -> set[str]:
    """
    collect the words already present in a (possibly partial) corpus file.

    this is the resume scan for the builder, so it's lenient: a missing
    file is just an empty set and malformed lines are logged and skipped.
    """
    path = Path(path)
    if not path.exists():
        return set()

    existing: set[str] = set()
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                word, _ = parse_record(line, line_num, str(path))
            except CorpusFormatError as e:
                logger.warning("skipping malformed line: %s", e)
                continue
            existing.add(clean_word(word))
    return existing


def format_record(word: str, vector: NDArray[np.floating] | Sequence[float]) -> str:
    """serialize one corpus entry as a JSON line (with trailing newline)."""
    values = [float(x) for x in vector]
    return json.dumps({"word": word, "vector": values}) + "\n"


# ---------------------------------------------------------------------------
# preprocessed format: words.json + embeddings_normed.npy
# ---------------------------------------------------------------------------


def save_npy(store: VectorStore, data_dir: Path | str) -> dict[str, Path]:
    """
    write a store as words.json + embeddings_normed.npy.

    returns:
        dict mapping artifact name to file path
    """
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    vocab_path = data_dir / DEFAULT_CONFIG.vocab_file
    with open(vocab_path, "w", encoding="utf-8") as f:
        json.dump(store.words, f)

    emb_path = data_dir / DEFAULT_CONFIG.embeddings_file
    np.save(emb_path, np.asarray(store.vectors, dtype=np.float32))

    return {"vocab": vocab_path, "embeddings": emb_path}


def load_npy(data_dir: Path | str, mmap: bool = True) -> VectorStore:
    """
    load a store written by save_npy.

    args:
        data_dir: directory with words.json + embeddings_normed.npy
        mmap: if True, memory-map the matrix (faster for large vocab)
    """
    data_dir = Path(data_dir)
    vocab_path = data_dir / DEFAULT_CONFIG.vocab_file
    emb_path = data_dir / DEFAULT_CONFIG.embeddings_file
    for p in (vocab_path, emb_path):
        if not p.exists():
            raise CorpusFormatError(f"preprocessed corpus file not found: {p}")

    try:
        with open(vocab_path, "r", encoding="utf-8") as f:
            words = json.load(f)
        vectors = np.load(emb_path, mmap_mode="r" if mmap else None)
    except (json.JSONDecodeError, ValueError) as e:
        raise CorpusFormatError(f"{data_dir}: unreadable preprocessed corpus ({e})") from e

    if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
        raise CorpusFormatError(f"{vocab_path}: expected a JSON list of words")
    if vectors.ndim != 2:
        raise CorpusFormatError(f"{emb_path}: expected a 2-D matrix, got shape {vectors.shape}")
    if vectors.shape[0] != len(words):
        raise CorpusFormatError(
            f"{data_dir}: {len(words)} words vs {vectors.shape[0]} embedding rows"
        )
    if not np.isfinite(vectors).all():
        raise CorpusFormatError(f"{emb_path}: matrix holds NaN or infinite values")

    # same rule as the JSON-lines loader: first occurrence of a word wins
    words = [clean_word(w) for w in words]
    keep: list[int] = []
    seen: set[str] = set()
    for i, w in enumerate(words):
        if w in seen:
            logger.warning("%s: duplicate word '%s' at row %d, keeping first", vocab_path, w, i)
            continue
        seen.add(w)
        keep.append(i)
    if len(keep) < len(words):
        words = [words[i] for i in keep]
        vectors = vectors[keep]

    # rows written by save_npy are already unit length; only renormalize
    # when they aren't, so a memory-mapped matrix stays mapped
    norms = np.linalg.norm(vectors, axis=1)
    nonzero = norms > 0
    if not np.allclose(norms[nonzero], 1.0, atol=1e-4):
        logger.info("%s: rows not unit length, normalizing", emb_path)
        vectors = normalize_rows(vectors)
    elif vectors.dtype != np.float32:
        vectors = vectors.astype(np.float32)

    store = VectorStore(words, vectors)
    logger.info("loaded %d words, dims=%d (preprocessed)", len(store), store.dimension)
    return store
