"""
Custom exceptions for the wordvec package.
"""

from typing import List, Optional


class WordVecError(Exception):
    """Base exception for all wordvec errors."""
    pass


class FormatError(WordVecError):
    """
    Error parsing a binary embedding model.
    
    Raised when:
    - Header line is missing or is not two integers
    - Declared dimension is non-positive or exceeds the supported maximum
    - Stream ends before a record is complete
    """
    
    def __init__(self, message: str, offset: Optional[int] = None, record: Optional[int] = None):
        super().__init__(message)
        self.offset = offset
        self.record = record


class UnresolvedWordError(WordVecError):
    """
    One or more query words are absent from the vocabulary.
    
    Raised by analogy composition, which needs all three operands.
    Distance queries skip unknown words instead.
    """
    
    def __init__(self, message: str, words: Optional[List[str]] = None):
        super().__init__(message)
        self.words = words or []


class InvalidQueryShape(WordVecError):
    """
    Query does not have the shape its mode requires.
    
    Raised when:
    - An analogy query does not have exactly three words
    - The query mode is unknown
    """
    
    def __init__(self, message: str, expected: Optional[int] = None, actual: Optional[int] = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ModelNotLoadedError(WordVecError):
    """A query was issued before any model was published."""
    pass


class ConfigError(WordVecError):
    """
    Error in wordvec configuration.
    
    Raised when:
    - Configuration file is missing or invalid
    - Configuration values are out of valid range
    """
    pass
