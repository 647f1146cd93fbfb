"""
Core data types for the wordvec package.

Uses dataclasses with to_dict/from_dict helpers for JSON output.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import InvalidQueryShape


class QueryMode(str, Enum):
    """Kind of similarity query."""
    DISTANCE = "distance"
    ANALOGY = "analogy"

    @classmethod
    def parse(cls, value: "str | QueryMode") -> "QueryMode":
        """Parse a mode tag, raising InvalidQueryShape for unknown tags."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidQueryShape(f"Unknown query mode: {value!r}") from None


@dataclass(frozen=True)
class WordDistance:
    """
    A single ranked result row.
    
    Attributes:
        word: Vocabulary word
        score: Cosine similarity between the query vector and the word's vector
    """
    word: str
    score: float
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"word": self.word, "score": self.score}
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordDistance":
        """Create from dictionary."""
        return cls(word=data["word"], score=float(data["score"]))


@dataclass
class QueryResult:
    """
    Outcome of a distance or analogy query.
    
    Attributes:
        mode: Query mode that produced the result
        words: Query words as given
        resolved: Row index per query word, None when the word is unknown
        results: Ranked results, best first
        degenerate_query: True when the composed query vector had zero length
        execution_ms: Wall time spent composing and scoring
    """
    mode: QueryMode
    words: List[str]
    resolved: List[Optional[int]] = field(default_factory=list)
    results: List[WordDistance] = field(default_factory=list)
    degenerate_query: bool = False
    execution_ms: int = 0
    
    @property
    def best(self) -> Optional[WordDistance]:
        """Top-ranked result, if any."""
        return self.results[0] if self.results else None
    
    @property
    def unresolved_words(self) -> List[str]:
        return [w for w, idx in zip(self.words, self.resolved) if idx is None]
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "mode": self.mode.value,
            "words": list(self.words),
            "resolved": list(self.resolved),
            "results": [r.to_dict() for r in self.results],
            "degenerate_query": self.degenerate_query,
            "execution_ms": self.execution_ms,
        }
