"""Retrieval, ranking and citation validation for document question answering."""

from .document import Document, Chunk, DocumentSummary, RankedCandidate, CitedPassage, Ranking
from .base import BaseEmbedding, BaseChunker, BaseDocumentStore
from .similarity import cosine_similarity
from .serializer import serialize_embedding, deserialize_embedding
from .embeddings import FakeEmbedding, OllamaEmbedding, OpenAIEmbedding
from .chunking import FixedSizeChunker
from .store import SQLiteDocumentStore, MemoryDocumentStore
from .cache import ChunkCache, build_cache_entry
from .ingestion import IngestionPipeline
from .ranker import RetrievalRanker, render_context
from .validator import AnswerValidator, Verdict, REFUSAL_MESSAGE, extract_citations, is_refusal
from .extraction import TextExtractor
from .pipeline import (
    DocumentQAPipeline,
    QAResult,
    AnswerOutcome,
    UNRELATED_MESSAGE,
    INSUFFICIENT_CONTEXT_MESSAGE,
    build_prompt,
)

__all__ = [
    "Document", "Chunk", "DocumentSummary", "RankedCandidate", "CitedPassage", "Ranking",
    "BaseEmbedding", "BaseChunker", "BaseDocumentStore",
    "cosine_similarity", "serialize_embedding", "deserialize_embedding",
    "FakeEmbedding", "OllamaEmbedding", "OpenAIEmbedding",
    "FixedSizeChunker",
    "SQLiteDocumentStore", "MemoryDocumentStore",
    "ChunkCache", "build_cache_entry",
    "IngestionPipeline",
    "RetrievalRanker", "render_context",
    "AnswerValidator", "Verdict", "REFUSAL_MESSAGE", "extract_citations", "is_refusal",
    "TextExtractor",
    "DocumentQAPipeline", "QAResult", "AnswerOutcome",
    "UNRELATED_MESSAGE", "INSUFFICIENT_CONTEXT_MESSAGE", "build_prompt",
]
