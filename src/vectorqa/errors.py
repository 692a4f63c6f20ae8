"""Error taxonomy for the indexing and question-answering pipeline."""

from contextlib import contextmanager
from typing import Iterator, Optional, Type

import openai
import requests
from qdrant_client.http.exceptions import ResponseHandlingException


class VectorQAError(Exception):
    """Base class for errors surfaced to callers."""

    error_type = "internal_error"
    status_code = 500


class ProviderError(VectorQAError):
    """An external provider (embedding, LLM or vector store) call failed."""

    error_type = "provider_error"
    status_code = 502

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider


class ProviderAuthError(ProviderError):
    error_type = "provider_auth_error"
    status_code = 502


class ProviderRateLimitError(ProviderError):
    error_type = "provider_rate_limit_error"
    status_code = 429


class ProviderNetworkError(ProviderError):
    error_type = "provider_network_error"
    status_code = 503


class EmbeddingProviderError(ProviderError):
    """Raised by embedders for every failed embedding call.

    ``reason`` names the classified failure (``auth``, ``rate_limit``,
    ``network`` or ``unknown``) and drives the HTTP status code.
    """

    error_type = "embedding_provider_error"

    _REASONS = {
        ProviderAuthError: ("auth", ProviderAuthError.status_code),
        ProviderRateLimitError: ("rate_limit", ProviderRateLimitError.status_code),
        ProviderNetworkError: ("network", ProviderNetworkError.status_code),
    }

    def __init__(self, message: str, kind: Type[ProviderError] = ProviderError):
        super().__init__(message, provider="embedding")
        self.reason, self.status_code = self._REASONS.get(
            kind, ("unknown", ProviderError.status_code)
        )


class DocumentLoadError(VectorQAError):
    error_type = "document_load_error"
    status_code = 500

    def __init__(self, message: str, source_path: Optional[str] = None):
        super().__init__(message)
        self.source_path = source_path


class IndexAlreadyExistsRace(VectorQAError):
    """The index was created by someone else between check and create."""

    error_type = "index_already_exists"
    status_code = 409


class IndexNotFoundError(VectorQAError):
    error_type = "index_not_found"
    status_code = 404


class IndexNotReadyError(VectorQAError):
    error_type = "index_not_ready"
    status_code = 503


class InvalidBatchError(VectorQAError, ValueError):
    error_type = "invalid_batch"
    status_code = 500


def _status_code(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def classify_exception(exc: BaseException) -> Type[ProviderError]:
    """Map an SDK or transport exception to a provider error class."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderAuthError
    if isinstance(exc, openai.RateLimitError):
        return ProviderRateLimitError
    if isinstance(
        exc,
        (
            openai.APIConnectionError,
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
            ResponseHandlingException,
            ConnectionError,
            TimeoutError,
        ),
    ):
        return ProviderNetworkError

    status = _status_code(exc)
    if status in (401, 403):
        return ProviderAuthError
    if status == 429:
        return ProviderRateLimitError
    if status in (502, 503, 504):
        return ProviderNetworkError
    if exc.__cause__ is not None:
        return classify_exception(exc.__cause__)
    return ProviderError


def translate_provider_error(exc: BaseException, provider: str) -> ProviderError:
    kind = classify_exception(exc)
    message = f"{provider} provider call failed: {exc}"
    if provider == "embedding":
        return EmbeddingProviderError(message, kind=kind)
    return kind(message, provider=provider)


@contextmanager
def provider_errors(provider: str) -> Iterator[None]:
    """Re-raise SDK exceptions inside the block as classified ProviderErrors.

    Errors already in the taxonomy pass through, except that embedding
    failures are always reported as EmbeddingProviderError.
    """
    try:
        yield
    except ProviderError as e:
        if provider == "embedding" and not isinstance(e, EmbeddingProviderError):
            raise EmbeddingProviderError(str(e), kind=type(e)) from e
        raise
    except VectorQAError:
        raise
    except Exception as e:
        raise translate_provider_error(e, provider) from e


__all__ = [
    "VectorQAError",
    "ProviderError",
    "ProviderAuthError",
    "ProviderRateLimitError",
    "ProviderNetworkError",
    "EmbeddingProviderError",
    "DocumentLoadError",
    "IndexAlreadyExistsRace",
    "IndexNotFoundError",
    "IndexNotReadyError",
    "InvalidBatchError",
    "classify_exception",
    "translate_provider_error",
    "provider_errors",
]
