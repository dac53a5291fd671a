"""Error taxonomy for Vista.

Every error carries an explicit ``kind``. The retry wrapper and the API layer
branch on that tag rather than on the exception class hierarchy:

- TRANSIENT: timeouts, connection resets, provider overload. Retryable.
- SCHEMA: index/dimension mismatch. Misconfiguration, never retried.
- VALIDATION: malformed input rejected before any network call.
- FATAL: everything else (bad credentials, malformed or empty responses).

Missing records are not errors: lookups return ``None``/``False``.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification tag carried by every Vista error."""

    TRANSIENT = "transient"
    SCHEMA = "schema"
    VALIDATION = "validation"
    FATAL = "fatal"


class VistaError(Exception):
    """Base exception for all Vista errors."""

    default_kind = ErrorKind.FATAL

    def __init__(self, message: str = "", kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.kind = kind or self.default_kind

    @property
    def is_transient(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT


# =============================================================================
# Validation / schema
# =============================================================================


class ValidationError(VistaError):
    """Raised for malformed input such as an empty query."""

    default_kind = ErrorKind.VALIDATION


class IndexSchemaMismatch(VistaError):
    """Raised when an existing index disagrees with the configured schema."""

    default_kind = ErrorKind.SCHEMA


class DimensionMismatch(IndexSchemaMismatch):
    """Raised when an embedding's length differs from the index dimension.

    The embedding model and the index disagree, so this is a configuration
    problem rather than bad input.
    """

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Embedding has {actual} dimensions, index expects {expected}")
        self.expected = expected
        self.actual = actual


# =============================================================================
# Vector store
# =============================================================================


class StoreUnavailable(VistaError):
    """Raised when the vector store cannot be reached or times out."""

    default_kind = ErrorKind.TRANSIENT


# =============================================================================
# Model provider
# =============================================================================


class LLMError(VistaError):
    """Base exception for LLM client errors."""

    pass


class LLMConnectionError(LLMError):
    """Raised when unable to connect to the LLM provider."""

    default_kind = ErrorKind.TRANSIENT


class LLMTimeoutError(LLMError):
    """Raised when a provider call runs past its deadline."""

    default_kind = ErrorKind.TRANSIENT


class LLMRateLimitError(LLMError):
    """Raised when rate limited or the provider is overloaded."""

    default_kind = ErrorKind.TRANSIENT


class LLMAuthenticationError(LLMError):
    """Raised when authentication with the LLM provider fails."""

    pass


class LLMServerError(LLMError):
    """Raised when the provider answers with a 5xx, e.g. a model failed to load."""

    default_kind = ErrorKind.TRANSIENT


class LLMRequestError(LLMError):
    """Raised when the provider rejects a request (4xx, context window exceeded)."""

    pass


class ProviderUnavailable(LLMError):
    """Raised when the provider's model-management endpoints fail."""

    default_kind = ErrorKind.TRANSIENT


class DescriptionUnavailable(LLMError):
    """Raised when no usable description could be produced for an image."""

    pass


class EmbeddingUnavailable(LLMError):
    """Raised when the provider returns no usable embedding."""

    pass


class SummarizationUnavailable(LLMError):
    """Raised when the provider returns no usable summary."""

    pass
