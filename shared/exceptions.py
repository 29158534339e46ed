"""
Exception taxonomy for the embedding stack.

Callers can tell configuration problems (raised at construction) apart from
runtime failures (dimension, numeric, encoding) by type.
"""


class EmbeddingError(Exception):
    """Base exception for all embedding errors."""
    pass


class ConfigurationError(EmbeddingError, ValueError):
    """
    Invalid construction-time configuration.

    Raised when:
    - max_results is not positive
    - a score or ratio lies outside [0, 1]
    - model or tokenizer artifacts are missing
    - cache size or sequence length is not positive
    """
    pass


class DimensionMismatchError(EmbeddingError, ValueError):
    """Two vectors of different lengths were compared."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Vector dimensions differ: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class NumericError(EmbeddingError, ArithmeticError):
    """A zero-norm vector was normalized or compared."""
    pass


class EncodingError(EmbeddingError, RuntimeError):
    """
    Text could not be turned into an embedding.

    Raised when:
    - the tokenizer fails
    - the inference engine fails
    - a token sequence cannot be partitioned without splitting a word

    The original failure is available as __cause__.
    """
    pass


class InferenceTimeoutError(EncodingError):
    """The inference engine did not answer within the configured timeout."""

    def __init__(self, message: str, timeout: float = None):
        super().__init__(message)
        self.timeout = timeout
