"""
wordvec - Word embedding store and similarity search.

Key components:
- store.py: EmbeddingStore and the word2vec binary format reader/writer
- engine.py: SimilarityEngine for distance and analogy queries
- holder.py: ModelHolder for publishing a loaded store to concurrent readers
- cli.py: Command-line queries against a model file

Key concepts:
- Every stored vector is unit length, so a dot product is a cosine similarity.
- A store never changes after load; reloading publishes a new store.
"""

from .core.exceptions import (
    ConfigError,
    FormatError,
    InvalidQueryShape,
    ModelNotLoadedError,
    UnresolvedWordError,
    WordVecError,
)
from .core.types import QueryMode, QueryResult, WordDistance
from .engine import SimilarityEngine, TopKBuffer, compose, top_k
from .holder import ModelHolder
from .store import MAX_DIMENSION, NOT_FOUND, EmbeddingStore, dump, load, load_file

__version__ = "0.1.0"

__all__ = [
    "EmbeddingStore",
    "SimilarityEngine",
    "ModelHolder",
    "TopKBuffer",
    "QueryMode",
    "QueryResult",
    "WordDistance",
    "compose",
    "top_k",
    "load",
    "load_file",
    "dump",
    "MAX_DIMENSION",
    "NOT_FOUND",
    "WordVecError",
    "FormatError",
    "UnresolvedWordError",
    "InvalidQueryShape",
    "ModelNotLoadedError",
    "ConfigError",
]
