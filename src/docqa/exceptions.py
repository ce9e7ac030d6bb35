"""
docqa exceptions.
"""


class DocQAError(Exception):
    """Base exception for document question-answering errors."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationError(DocQAError, ValueError):
    """Raised when a request is missing a question or model identifier."""

    def __init__(self, message: str):
        super().__init__(message, code="validation_error")


class DocumentNotFoundError(DocQAError):
    """Raised when a document is absent even after a cache reload."""

    def __init__(self, document_id: int):
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found", code="not_found")


class NoContentError(DocQAError):
    """Raised when a document has no chunks to rank."""

    def __init__(self, document_id: int):
        self.document_id = document_id
        super().__init__(f"Document {document_id} has no content to search", code="no_content")


class ProviderError(DocQAError):
    """Raised when an embedding or completion call fails."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"Provider '{provider}' failed: {message}", code="provider_error")


class PersistenceError(DocQAError):
    """Raised when the document store cannot load, save or delete."""

    def __init__(self, message: str):
        super().__init__(f"Persistence error: {message}", code="persistence_error")
