"""Exception taxonomy shared by the service layer and the HTTP handlers.

Every error carries a stable ``code`` and the HTTP status the API layer
renders it with, so routes never have to inspect messages.
"""

from __future__ import annotations


class JobFilterError(Exception):
    code = "JobFilterError"
    status_code = 500

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)


class MissingCredentialError(JobFilterError):
    """OPENAI_API_KEY environment variable not set"""

    code = "NoOpenAIKeyError"
    status_code = 500


class InvalidJobError(JobFilterError):
    """Job must include required embedding fields"""

    code = "InvalidJobFields"
    status_code = 422

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        super().__init__(message)
        if code:
            self.code = code


class EmbeddingServiceError(JobFilterError):
    """Embedding service unavailable"""

    code = "EmbeddingError"
    status_code = 503


class PayloadTooLargeError(JobFilterError):
    """Embedding request too large"""

    code = "EmbeddingPayloadTooLarge"
    status_code = 413


class DimensionMismatchError(JobFilterError, ValueError):
    """Embedding vectors must have the same dimension"""

    code = "VectorDimensionMismatch"
    status_code = 500
