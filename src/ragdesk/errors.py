"""ragdesk exception hierarchy.

Every exception raised by the library carries a ``category`` so callers can
tell input problems apart from provider outages or storage faults without
parsing messages. The CLI maps categories to exit codes (see
``ragdesk.cli.errors``).
"""

from __future__ import annotations


class RagdeskError(Exception):
    """Base class for all ragdesk errors."""

    category: str = "internal"


class ValidationError(RagdeskError, ValueError):
    """Invalid caller input: empty text, bad parameters, nothing indexed."""

    category = "validation"


class UnsupportedTypeError(ValidationError):
    """No text extractor exists for the declared file type."""


class ExtractionError(RagdeskError):
    """A parser failed to pull text out of a document."""

    category = "extraction"


class ExternalServiceError(RagdeskError):
    """A call to an external provider or website failed."""

    category = "external"


class EmbeddingError(ExternalServiceError):
    """The embedding provider failed for at least one text."""


class CompletionError(ExternalServiceError):
    """The completion provider failed to produce an answer."""


class FetchError(ExternalServiceError):
    """A web page could not be fetched or has an unusable response."""


class SsrfError(FetchError):
    """Raised when a URL resolves to a private or reserved address."""

    category = "validation"


class StorageError(RagdeskError):
    """The chunk snapshot could not be read, written, or extended."""

    category = "storage"
