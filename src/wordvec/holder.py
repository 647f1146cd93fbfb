"""
Model Holder - Owns the currently published EmbeddingStore.

Loading parses into a fresh store first and only then swaps the reference,
so concurrent readers see either the old store or the new one, never a
partially loaded table. A failed load leaves the previous store in place.
"""

import threading
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .core.exceptions import ModelNotLoadedError
from .core.logging import get_logger
from .engine import DEFAULT_TOP_K, NEG_INF, SimilarityEngine
from .store import MAX_DIMENSION, EmbeddingStore, load, load_file


logger = get_logger(__name__)


class ModelHolder:
    """
    Externally owned reference to the current embedding store.
    
    Pass a holder to whatever serves queries instead of keeping a
    module-level model.
    """
    
    def __init__(
        self,
        store: Optional[EmbeddingStore] = None,
        max_dimension: int = MAX_DIMENSION,
        encoding: str = "utf-8",
    ):
        self._store = store
        self._generation = 0 if store is None else 1
        self._lock = threading.Lock()
        self.max_dimension = max_dimension
        self.encoding = encoding
    
    @property
    def is_loaded(self) -> bool:
        return self._store is not None
    
    @property
    def generation(self) -> int:
        """Number of stores published so far."""
        return self._generation
    
    @property
    def current(self) -> EmbeddingStore:
        """
        The published store.
        
        Raises:
            ModelNotLoadedError: If nothing has been published yet
        """
        store = self._store
        if store is None:
            raise ModelNotLoadedError("No model has been loaded")
        return store
    
    def publish(self, store: EmbeddingStore) -> Optional[EmbeddingStore]:
        """
        Make `store` the current store.
        
        Returns:
            The previously published store, or None
        """
        with self._lock:
            previous = self._store
            self._store = store
            self._generation += 1
            generation = self._generation
        
        logger.info(
            f"Published model generation {generation}: "
            f"{store.vocab_size} words x {store.dimension} dimensions"
        )
        return previous
    
    def load(self, stream: Union[BinaryIO, bytes]) -> EmbeddingStore:
        """
        Parse a model stream and publish it.
        
        Raises:
            FormatError: If parsing fails; the previous store stays current
        """
        store = load(stream, max_dimension=self.max_dimension, encoding=self.encoding)
        self.publish(store)
        return store
    
    def load_file(self, path: Union[str, Path]) -> EmbeddingStore:
        """Load a model file and publish it. See `load`."""
        store = load_file(path, max_dimension=self.max_dimension, encoding=self.encoding)
        self.publish(store)
        return store
    
    def engine(self, top_k: int = DEFAULT_TOP_K, floor: float = NEG_INF) -> SimilarityEngine:
        """Engine bound to the store that is current right now."""
        return SimilarityEngine(self.current, top_k=top_k, floor=floor)
