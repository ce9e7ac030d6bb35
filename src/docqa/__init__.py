"""
docqa - Grounded question answering over uploaded documents.
"""

from docqa.exceptions import (
    DocQAError,
    ValidationError,
    DocumentNotFoundError,
    NoContentError,
    ProviderError,
    PersistenceError,
)
from docqa.providers import LLMProvider, LLMResponse, OllamaProvider, OpenAIProvider
from docqa.rag import (
    # Core
    DocumentQAPipeline,
    QAResult,
    AnswerOutcome,
    Document,
    Chunk,
    DocumentSummary,
    # Cache and ingestion
    ChunkCache,
    IngestionPipeline,
    FixedSizeChunker,
    # Ranking and validation
    RetrievalRanker,
    AnswerValidator,
    cosine_similarity,
    REFUSAL_MESSAGE,
    UNRELATED_MESSAGE,
    INSUFFICIENT_CONTEXT_MESSAGE,
    # Collaborators
    FakeEmbedding,
    OllamaEmbedding,
    OpenAIEmbedding,
    SQLiteDocumentStore,
    MemoryDocumentStore,
    TextExtractor,
)
from docqa.utils import DocQAConfig, load_config

__version__ = "0.1.0"
__all__ = [
    # Errors
    "DocQAError",
    "ValidationError",
    "DocumentNotFoundError",
    "NoContentError",
    "ProviderError",
    "PersistenceError",
    # Providers
    "LLMProvider",
    "LLMResponse",
    "OllamaProvider",
    "OpenAIProvider",
    # Core
    "DocumentQAPipeline",
    "QAResult",
    "AnswerOutcome",
    "Document",
    "Chunk",
    "DocumentSummary",
    "ChunkCache",
    "IngestionPipeline",
    "FixedSizeChunker",
    "RetrievalRanker",
    "AnswerValidator",
    "cosine_similarity",
    "REFUSAL_MESSAGE",
    "UNRELATED_MESSAGE",
    "INSUFFICIENT_CONTEXT_MESSAGE",
    "FakeEmbedding",
    "OllamaEmbedding",
    "OpenAIEmbedding",
    "SQLiteDocumentStore",
    "MemoryDocumentStore",
    "TextExtractor",
    # Config
    "DocQAConfig",
    "load_config",
]
