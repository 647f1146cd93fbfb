"""
Embedding Store - In-memory table of unit-normalized word vectors.

Parses the word2vec binary model format:

    <vocab_size> <dimension>\\n
    <word><space><dimension x float32 little-endian>[\\n]
    ...

Rows are normalized to unit length as they are read, so every dot product
against the table is a cosine similarity. Once built, a store is immutable
and may be shared by any number of concurrent readers.
"""

import time
from pathlib import Path
from typing import BinaryIO, Iterable, List, Sequence, TextIO, Tuple, Union

import numpy as np

from .core.exceptions import FormatError, UnresolvedWordError
from .core.logging import get_logger


logger = get_logger(__name__)

MAX_DIMENSION = 2000
NOT_FOUND = -1

# Bytes skipped before each word token (leftover record newlines included)
_WORD_SKIP = b" \t\r\n"
_WORD_TERMINATOR = b" "
_FLOAT_DTYPE = np.dtype("<f4")


def normalize_vector(vec: np.ndarray) -> Tuple[np.ndarray, float]:
    """
    Scale a vector to unit L2 length.

    A zero vector yields NaN components; callers detect that case through
    the returned norm rather than an exception.

    Args:
        vec: Vector to normalize

    Returns:
        Tuple of (normalized float32 vector, original norm)
    """
    as_double = np.asarray(vec, dtype=np.float64)
    norm = float(np.sqrt(np.dot(as_double, as_double)))
    with np.errstate(divide="ignore", invalid="ignore"):
        normalized = (as_double / norm).astype(np.float32)
    return normalized, norm


class EmbeddingStore:
    """
    Vocabulary-indexed matrix of unit-length float32 vectors.

    Row i of `vectors` belongs to `vocabulary[i]`. Word lookup is a linear
    scan returning the first match, so duplicate words after the first are
    only reachable by index. That scan is O(vocab_size) per query word and is
    the known scaling limit of lookups on very large vocabularies.
    """

    def __init__(
        self,
        vocabulary: Sequence[str],
        vectors: np.ndarray,
        degenerate_rows: Iterable[int] = (),
    ):
        """
        Wrap already-normalized vectors.

        Args:
            vocabulary: Words in row order
            vectors: 2-D array of shape (len(vocabulary), dimension)
            degenerate_rows: Indices of rows whose raw vector had zero length
        """
        matrix = np.ascontiguousarray(vectors, dtype=np.float32)
        if matrix.ndim != 2:
            raise ValueError(f"Vectors must be 2-D, got shape {matrix.shape}")
        if matrix.shape[0] != len(vocabulary):
            raise ValueError(
                f"Row count must match vocabulary: {matrix.shape[0]} != {len(vocabulary)}"
            )
        matrix.flags.writeable = False

        self._vocabulary: Tuple[str, ...] = tuple(vocabulary)
        self._vectors = matrix
        self._degenerate_rows: Tuple[int, ...] = tuple(sorted(degenerate_rows))

    @classmethod
    def from_vectors(cls, vocabulary: Sequence[str], raw_vectors) -> "EmbeddingStore":
        """
        Build a store from raw (unnormalized) vectors.

        Args:
            vocabulary: Words in row order
            raw_vectors: Array-like of shape (len(vocabulary), dimension)
        """
        raw = np.asarray(raw_vectors, dtype=np.float32)
        if raw.ndim != 2:
            raise ValueError(f"Vectors must be 2-D, got shape {raw.shape}")

        matrix = np.empty_like(raw)
        degenerate = []
        for row_index in range(raw.shape[0]):
            matrix[row_index], norm = normalize_vector(raw[row_index])
            if norm == 0.0:
                degenerate.append(row_index)
        return cls(vocabulary, matrix, degenerate)

    @classmethod
    def load(cls, stream: BinaryIO, **kwargs) -> "EmbeddingStore":
        """Parse a binary model stream. See `load`."""
        return load(stream, **kwargs)

    # =========================================================================
    # Shape
    # =========================================================================

    @property
    def vocabulary(self) -> Tuple[str, ...]:
        return self._vocabulary

    @property
    def vectors(self) -> np.ndarray:
        """Read-only (vocab_size, dimension) float32 matrix."""
        return self._vectors

    @property
    def dimension(self) -> int:
        return self._vectors.shape[1]

    @property
    def vocab_size(self) -> int:
        return len(self._vocabulary)

    @property
    def degenerate_rows(self) -> Tuple[int, ...]:
        """Rows whose raw vector had zero length (their components are NaN)."""
        return self._degenerate_rows

    def __len__(self) -> int:
        return len(self._vocabulary)

    def __contains__(self, word: object) -> bool:
        return self.index_of(word) != NOT_FOUND

    def __repr__(self) -> str:
        return f"EmbeddingStore(vocab_size={self.vocab_size}, dimension={self.dimension})"

    # =========================================================================
    # Lookup
    # =========================================================================

    def index_of(self, word: object) -> int:
        """
        Find the row of the first occurrence of `word`.

        Returns:
            Row index, or NOT_FOUND (-1) if the word is absent
        """
        try:
            return self._vocabulary.index(word)
        except ValueError:
            return NOT_FOUND

    def word(self, index: int) -> str:
        return self._vocabulary[index]

    def row(self, index: int) -> np.ndarray:
        """Read-only view of row `index`."""
        if index < 0 or index >= self.vocab_size:
            raise IndexError(f"Row {index} out of range for vocabulary of {self.vocab_size}")
        return self._vectors[index]

    def vector(self, word: str) -> np.ndarray:
        """
        Read-only unit vector for `word`.

        Raises:
            UnresolvedWordError: If the word is not in the vocabulary
        """
        index = self.index_of(word)
        if index == NOT_FOUND:
            raise UnresolvedWordError(f"Word not in vocabulary: {word!r}", words=[word])
        return self._vectors[index]

    # =========================================================================
    # Serialization
    # =========================================================================

    def dump(self, stream: BinaryIO, encoding: str = "utf-8") -> None:
        """Write this store's (normalized) vectors in the binary model format."""
        dump(self._vocabulary, self._vectors, stream, encoding=encoding)

    def dump_text(self, stream: TextIO, precision: int = 6) -> None:
        """
        Write the table as text: a header line, then `word v1 v2 ...` per row.
        """
        stream.write(f"{self.vocab_size} {self.dimension}\n")
        for word, row in zip(self._vocabulary, self._vectors):
            values = " ".join(f"{v:.{precision}f}" for v in row)
            stream.write(f"{word} {values}\n")


# =============================================================================
# Binary format
# =============================================================================

def _parse_header(data: bytes, max_dimension: int) -> Tuple[int, int, int]:
    """
    Parse the `<vocab_size> <dimension>` header line.

    Returns:
        Tuple of (vocab_size, dimension, offset of the first record)
    """
    line_end = data.find(b"\n")
    if line_end == -1:
        line_end = len(data)
    header = data[:line_end]

    try:
        fields = header.decode("ascii").split()
    except UnicodeDecodeError:
        raise FormatError("Header line is not ASCII", offset=0) from None

    if len(fields) != 2:
        raise FormatError(
            f"Header must be '<vocab_size> <dimension>', got {header[:80]!r}", offset=0
        )

    if not all(field.isdigit() for field in fields):
        raise FormatError(f"Header fields are not unsigned integers: {fields}", offset=0)
    vocab_size, dimension = int(fields[0]), int(fields[1])

    if dimension <= 0:
        raise FormatError(f"Dimension must be positive: {dimension}", offset=0)
    if dimension > max_dimension:
        raise FormatError(
            f"Dimension {dimension} exceeds maximum supported size {max_dimension}", offset=0
        )

    return vocab_size, dimension, min(line_end + 1, len(data))


def parse_model(
    data: bytes,
    max_dimension: int = MAX_DIMENSION,
    encoding: str = "utf-8",
) -> EmbeddingStore:
    """
    Parse a complete binary model held in memory.

    Args:
        data: Entire model file contents
        max_dimension: Largest dimension accepted in the header
        encoding: Text encoding of word tokens (undecodable bytes are replaced)

    Returns:
        A fully populated EmbeddingStore

    Raises:
        FormatError: If the header is malformed or the data is truncated
    """
    vocab_size, dimension, pos = _parse_header(data, max_dimension)
    logger.info(
        f"Loading model: {vocab_size} words x {dimension} dimensions",
        extra={"vocab_size": vocab_size, "dimension": dimension},
    )

    record_bytes = dimension * _FLOAT_DTYPE.itemsize
    total = len(data)
    # Smallest record: one word byte, the terminator, the vector, no separator
    if total - pos < vocab_size * (record_bytes + 2):
        raise FormatError(
            f"Truncated stream: header declares {vocab_size} records of {dimension} floats, "
            f"only {total - pos} bytes follow",
            offset=pos,
        )

    vocabulary: List[str] = []
    matrix = np.empty((vocab_size, dimension), dtype=np.float32)
    degenerate = []

    for record in range(vocab_size):
        while pos < total and data[pos] in _WORD_SKIP:
            pos += 1

        word_end = data.find(_WORD_TERMINATOR, pos)
        if word_end == -1:
            raise FormatError(
                f"Truncated stream: record {record} of {vocab_size} has no word terminator",
                offset=pos,
                record=record,
            )
        vocabulary.append(data[pos:word_end].decode(encoding, errors="replace"))
        pos = word_end + 1

        if pos + record_bytes > total:
            raise FormatError(
                f"Truncated stream: record {record} needs {record_bytes} vector bytes, "
                f"{total - pos} available",
                offset=pos,
                record=record,
            )
        raw = np.frombuffer(data, dtype=_FLOAT_DTYPE, count=dimension, offset=pos)
        pos += record_bytes

        matrix[record], norm = normalize_vector(raw)
        if norm == 0.0:
            degenerate.append(record)

    if degenerate:
        logger.warning(
            f"{len(degenerate)} zero-length vectors in model; their rows are NaN "
            f"(first: {vocabulary[degenerate[0]]!r})"
        )

    return EmbeddingStore(vocabulary, matrix, degenerate)


def load(
    stream: Union[BinaryIO, bytes],
    max_dimension: int = MAX_DIMENSION,
    encoding: str = "utf-8",
) -> EmbeddingStore:
    """
    Read a binary model from a byte stream.

    The whole stream is consumed before parsing. Nothing is returned unless
    every record parses, so a failed load never yields a partial store.

    Args:
        stream: Readable binary stream, or the raw bytes themselves
        max_dimension: Largest dimension accepted in the header
        encoding: Text encoding of word tokens

    Raises:
        FormatError: If the header is malformed or the stream is truncated
    """
    start_time = time.time()
    data = stream if isinstance(stream, (bytes, bytearray, memoryview)) else stream.read()
    if isinstance(data, str):
        raise TypeError("Model stream must be opened in binary mode")
    data = bytes(data)

    store = parse_model(data, max_dimension=max_dimension, encoding=encoding)

    elapsed_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"Loaded {store.vocab_size} vectors ({len(data)} bytes) in {elapsed_ms}ms",
        extra={"vocab_size": store.vocab_size, "dimension": store.dimension, "elapsed_ms": elapsed_ms},
    )
    return store


def load_file(path: Union[str, Path], **kwargs) -> EmbeddingStore:
    """Open `path` in binary mode and load it. See `load`."""
    path = Path(path)
    logger.info(f"Reading model file: {path}", extra={"model_path": str(path)})
    with open(path, "rb") as f:
        return load(f, **kwargs)


def dump(
    vocabulary: Sequence[str],
    vectors,
    stream: BinaryIO,
    encoding: str = "utf-8",
) -> None:
    """
    Write vectors in the binary model format.

    Each record is `<word><space><float32 LE x dimension>\\n`. The trailing
    newline is optional for readers, which skip it before the next word.

    Args:
        vocabulary: Words in row order (must not contain spaces)
        vectors: Array-like of shape (len(vocabulary), dimension)
        stream: Writable binary stream
        encoding: Text encoding for word tokens
    """
    matrix = np.asarray(vectors, dtype=_FLOAT_DTYPE)
    if matrix.ndim != 2 or matrix.shape[0] != len(vocabulary):
        raise ValueError(
            f"Vectors of shape {matrix.shape} do not match {len(vocabulary)} words"
        )

    stream.write(f"{matrix.shape[0]} {matrix.shape[1]}\n".encode("ascii"))
    for word, row in zip(vocabulary, matrix):
        if not word or any(ch in word for ch in " \t\r\n"):
            raise ValueError(f"Word cannot be empty or contain whitespace: {word!r}")
        stream.write(word.encode(encoding))
        stream.write(_WORD_TERMINATOR)
        stream.write(row.tobytes())
        stream.write(b"\n")
