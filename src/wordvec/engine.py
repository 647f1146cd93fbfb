"""
Similarity Engine - Nearest-neighbour and analogy queries over a store.

Implements:
- Query vector composition (sum of words, or b - a + c)
- Top-K selection by cosine similarity
- Deterministic ordering: ties keep ascending row order
"""

import logging
import time
import uuid
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from .core.exceptions import InvalidQueryShape, UnresolvedWordError
from .core.logging import QueryContext, get_logger, log_with_context
from .core.types import QueryMode, QueryResult, WordDistance
from .store import NOT_FOUND, EmbeddingStore, normalize_vector


logger = get_logger(__name__)

DEFAULT_TOP_K = 40
ANALOGY_WORDS = 3
NEG_INF = float("-inf")
SCORE_BLOCK_ROWS = 4096


def split_query(words: Union[str, Iterable[str]]) -> List[str]:
    """Turn a whitespace-delimited query string (or word list) into words."""
    if isinstance(words, str):
        return words.split()
    return list(words)


def resolve(store: EmbeddingStore, words: Sequence[str]) -> List[int]:
    """Row index per query word, NOT_FOUND for unknown words."""
    return [store.index_of(word) for word in words]


def compose(
    store: EmbeddingStore,
    mode: Union[str, QueryMode],
    resolved: Sequence[int],
    words: Sequence[str],
) -> np.ndarray:
    """
    Build the (unnormalized) query vector.

    Distance mode sums the rows of every resolved word and skips the rest,
    so an empty or fully unknown query gives the zero vector. Analogy mode
    computes row[b] - row[a] + row[c] for words (a, b, c).

    Args:
        store: Embedding store to read rows from
        mode: Query mode
        resolved: Row index per query word (NOT_FOUND when unknown)
        words: Query words, parallel to `resolved`

    Returns:
        float32 vector of length store.dimension

    Raises:
        InvalidQueryShape: If an analogy does not have exactly three words
        UnresolvedWordError: If any analogy word is not in the vocabulary
    """
    mode = QueryMode.parse(mode)
    if len(resolved) != len(words):
        raise ValueError(f"Resolved indices must match words: {len(resolved)} != {len(words)}")

    if mode == QueryMode.ANALOGY:
        if len(words) != ANALOGY_WORDS:
            raise InvalidQueryShape(
                f"Analogy needs exactly {ANALOGY_WORDS} words, got {len(words)}",
                expected=ANALOGY_WORDS,
                actual=len(words),
            )
        missing = [w for w, idx in zip(words, resolved) if idx == NOT_FOUND]
        if missing:
            raise UnresolvedWordError(
                f"Analogy words not in vocabulary: {', '.join(missing)}",
                words=missing,
            )
        a, b, c = (store.row(idx) for idx in resolved)
        return b - a + c

    vec = np.zeros(store.dimension, dtype=np.float32)
    for idx in resolved:
        if idx == NOT_FOUND:
            continue
        vec += store.row(idx)
    return vec


class TopKBuffer:
    """
    Fixed-size ranked buffer filled by online insertion.

    A new entry goes in front of the first entry whose score is strictly
    lower; entries pushed past `k` are dropped. Scores not strictly above
    `floor` (and NaN) are never admitted, so among equal scores the entry
    offered first keeps the better rank.
    """

    def __init__(self, k: int, floor: float = NEG_INF):
        self.k = k
        self.floor = floor
        self._entries: List[WordDistance] = []

    def offer(self, word: str, score: float) -> bool:
        """
        Try to insert a candidate.

        Returns:
            True if the candidate now holds a rank
        """
        if self.k <= 0 or not score > self.floor:
            return False

        for rank, entry in enumerate(self._entries):
            if entry.score < score:
                self._entries.insert(rank, WordDistance(word, score))
                del self._entries[self.k:]
                return True

        if len(self._entries) < self.k:
            self._entries.append(WordDistance(word, score))
            return True
        return False

    def __len__(self) -> int:
        return len(self._entries)

    def results(self) -> List[WordDistance]:
        return list(self._entries)


def top_k(
    store: EmbeddingStore,
    query_vector: np.ndarray,
    exclude: Iterable[int] = (),
    k: int = DEFAULT_TOP_K,
    floor: float = NEG_INF,
) -> List[WordDistance]:
    """
    Rank vocabulary rows by dot product with a unit query vector.

    Equivalent to offering every non-excluded row, in ascending row order,
    to a TopKBuffer. Each score multiplies float32 components and sums them
    in float64, block by block over the rows, and only rows reaching the
    k-th best score (ties included) are offered.

    Args:
        store: Embedding store to rank
        query_vector: Normalized query vector
        exclude: Row indices never returned
        k: Maximum number of results
        floor: Scores must be strictly above this to be ranked

    Returns:
        Up to k results, best first
    """
    if k <= 0 or store.vocab_size == 0:
        return []

    query = np.asarray(query_vector, dtype=np.float32)
    if query.shape != (store.dimension,):
        raise ValueError(
            f"Query vector dimension must match store: {query.shape} != ({store.dimension},)"
        )

    scores = np.empty(store.vocab_size, dtype=np.float64)
    for start in range(0, store.vocab_size, SCORE_BLOCK_ROWS):
        block = store.vectors[start:start + SCORE_BLOCK_ROWS]
        scores[start:start + len(block)] = np.multiply(block, query).sum(axis=1, dtype=np.float64)

    with np.errstate(invalid="ignore"):
        eligible = scores > floor
    for idx in exclude:
        if 0 <= idx < store.vocab_size:
            eligible[idx] = False

    candidates = np.flatnonzero(eligible)
    if candidates.size > k:
        candidate_scores = scores[candidates]
        kth_best = np.partition(candidate_scores, candidates.size - k)[candidates.size - k]
        candidates = candidates[candidate_scores >= kth_best]

    buffer = TopKBuffer(k, floor)
    for idx in candidates:
        buffer.offer(store.word(int(idx)), float(scores[idx]))
    return buffer.results()


class SimilarityEngine:
    """
    Answers distance and analogy queries against one EmbeddingStore.

    The store is only read, so one engine (or many) may serve concurrent
    callers.
    """

    def __init__(
        self,
        store: EmbeddingStore,
        top_k: int = DEFAULT_TOP_K,
        floor: float = NEG_INF,
    ):
        """
        Initialize the engine.

        Args:
            store: Loaded embedding store
            top_k: Default number of results per query
            floor: Minimum (exclusive) score for a result; 0.0 ranks only
                positive similarities
        """
        if top_k < 0:
            raise ValueError(f"top_k must not be negative: {top_k}")
        self.store = store
        self.top_k = top_k
        self.floor = floor

    def resolve(self, words: Union[str, Iterable[str]]) -> List[int]:
        return resolve(self.store, split_query(words))

    def query(
        self,
        words: Union[str, Iterable[str]],
        mode: Union[str, QueryMode] = QueryMode.DISTANCE,
        k: Optional[int] = None,
    ) -> QueryResult:
        """
        Run a query and rank the vocabulary against it.

        Every resolved query word is excluded from the results.

        Args:
            words: Query words, or a whitespace-delimited string
            mode: 'distance' or 'analogy'
            k: Override for the number of results

        Returns:
            QueryResult with ranked results

        Raises:
            InvalidQueryShape: Unknown mode, or analogy without three words
            UnresolvedWordError: Analogy word not in the vocabulary
        """
        start_time = time.time()
        mode = QueryMode.parse(mode)
        words = split_query(words)
        k = self.top_k if k is None else k

        if mode == QueryMode.ANALOGY and len(words) != ANALOGY_WORDS:
            raise InvalidQueryShape(
                f"Analogy needs exactly {ANALOGY_WORDS} words, got {len(words)}",
                expected=ANALOGY_WORDS,
                actual=len(words),
            )

        with QueryContext(query_id=uuid.uuid4().hex[:12], mode=mode.value):
            resolved = resolve(self.store, words)
            raw = compose(self.store, mode, resolved, words)
            query_vector, norm = normalize_vector(raw)

            degenerate = not np.isfinite(norm) or norm == 0.0
            if degenerate:
                log_with_context(
                    logger, logging.WARNING,
                    f"Query vector has zero length for words {words}; no results ranked",
                )

            exclude = {idx for idx in resolved if idx != NOT_FOUND}
            results = top_k(self.store, query_vector, exclude, k=k, floor=self.floor)

            execution_ms = int((time.time() - start_time) * 1000)
            log_with_context(
                logger, logging.DEBUG,
                f"Ranked {len(results)} of {self.store.vocab_size} words in {execution_ms}ms",
            )

        return QueryResult(
            mode=mode,
            words=words,
            resolved=[None if idx == NOT_FOUND else idx for idx in resolved],
            results=results,
            degenerate_query=degenerate,
            execution_ms=execution_ms,
        )

    def distance(self, words: Union[str, Iterable[str]], k: Optional[int] = None) -> QueryResult:
        """Nearest neighbours of one word or the sum of several."""
        return self.query(words, QueryMode.DISTANCE, k=k)

    def analogy(self, words: Union[str, Iterable[str]], k: Optional[int] = None) -> QueryResult:
        """Complete 'a is to b as c is to ?' for words (a, b, c)."""
        return self.query(words, QueryMode.ANALOGY, k=k)
