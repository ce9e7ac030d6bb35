"""Base classes and abstract interfaces for the collaborators of the QA core."""

from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .document import Document, DocumentSummary


class BaseEmbedding(ABC):
    """Abstract base class for embedding providers."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        pass


class BaseChunker(ABC):
    """Abstract base class for text chunkers."""

    @abstractmethod
    def split(self, text: str) -> list[str]:
        pass


class BaseDocumentStore(ABC):
    """Abstract base class for document persistence.

    ``save`` is atomic: either the document and all of its chunks are
    committed or nothing is.
    """

    @abstractmethod
    async def load_all(self) -> list["Document"]:
        """Load every document with its chunks, in chunk order."""
        pass

    @abstractmethod
    async def load(self, document_id: int) -> Optional["Document"]:
        pass

    @abstractmethod
    async def save(self, document: "Document") -> int:
        """Persist a new document and return its committed id.

        The committed document and chunk ids are written back onto the
        aggregate.
        """
        pass

    @abstractmethod
    async def delete(self, document_id: int) -> bool:
        pass

    @abstractmethod
    async def list_summaries(self) -> list["DocumentSummary"]:
        """List stored documents, newest first."""
        pass
