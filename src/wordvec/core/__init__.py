"""
Core subpackage for wordvec.

Contains types, exceptions, and logging utilities.
"""

from .types import (
    QueryMode,
    QueryResult,
    WordDistance,
)
from .exceptions import (
    WordVecError,
    FormatError,
    UnresolvedWordError,
    InvalidQueryShape,
    ModelNotLoadedError,
    ConfigError,
)

__all__ = [
    # Types
    "QueryMode",
    "QueryResult",
    "WordDistance",
    # Exceptions
    "WordVecError",
    "FormatError",
    "UnresolvedWordError",
    "InvalidQueryShape",
    "ModelNotLoadedError",
    "ConfigError",
]
