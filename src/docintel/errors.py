"""Exception types raised at the boundary with external collaborators."""


class DocIntelError(Exception):
    """Base exception for docintel."""

    pass


class CollaboratorError(DocIntelError):
    """An external collaborator (extraction, embedding, storage) failed.

    Not retried by the core; batch ingestion records it against the document.
    """

    pass


class ExtractionError(CollaboratorError):
    """Raised when text cannot be extracted from a file."""

    pass


class UnsupportedFormatError(ExtractionError):
    """Raised when no extractor handles the file type."""

    pass


class EmbeddingError(CollaboratorError):
    """Raised when the embedding backend fails."""

    pass


class StorageError(CollaboratorError):
    """Raised when the fragment store is unavailable or rejects a write."""

    pass


__all__ = [
    "DocIntelError",
    "CollaboratorError",
    "ExtractionError",
    "UnsupportedFormatError",
    "EmbeddingError",
    "StorageError",
]
