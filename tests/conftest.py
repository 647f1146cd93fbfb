"""
Shared test fixtures and configuration for pytest.
"""

import io
import logging
import sys
from pathlib import Path
from typing import List, Sequence

import numpy as np
import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from wordvec.store import EmbeddingStore, dump, load  # noqa: E402


logger = logging.getLogger(__name__)


ROYAL_WORDS = ["king", "queen", "man", "woman"]
ROYAL_VECTORS = [
    [0.9, 0.1],
    [0.8, 0.2],
    [0.95, 0.05],
    [0.7, 0.3],
]


def model_bytes(words: Sequence[str], vectors, trailing_newlines: bool = True) -> bytes:
    """Serialize words and vectors in the binary model format."""
    if not trailing_newlines:
        return _records_without_newlines(words, vectors)
    buffer = io.BytesIO()
    dump(words, vectors, buffer)
    return buffer.getvalue()


def _records_without_newlines(words: Sequence[str], vectors) -> bytes:
    """Header line, then records packed back to back."""
    matrix = np.asarray(vectors, dtype="<f4")
    parts: List[bytes] = [f"{matrix.shape[0]} {matrix.shape[1]}\n".encode("ascii")]
    for word, row in zip(words, matrix):
        parts.append(word.encode("utf-8") + b" " + row.tobytes())
    return b"".join(parts)


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "e2e: End-to-end tests through the CLI")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def royal_model_bytes() -> bytes:
    """Four-word, two-dimensional model in the binary format."""
    return model_bytes(ROYAL_WORDS, ROYAL_VECTORS)


@pytest.fixture
def royal_store(royal_model_bytes) -> EmbeddingStore:
    """Store loaded from the four-word model."""
    return load(io.BytesIO(royal_model_bytes))


@pytest.fixture
def royal_model_file(tmp_path, royal_model_bytes) -> Path:
    """Four-word model written to a temporary file."""
    path = tmp_path / "royal.bin"
    path.write_bytes(royal_model_bytes)
    return path


@pytest.fixture
def random_store() -> EmbeddingStore:
    """Deterministic 200-word, 16-dimensional store."""
    rng = np.random.default_rng(1234)
    words = [f"w{i}" for i in range(200)]
    return EmbeddingStore.from_vectors(words, rng.normal(size=(200, 16)))
