"""Document question-answering pipeline."""

import asyncio
import logging
from enum import Enum
from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field

from docqa.exceptions import ValidationError

from .base import BaseChunker, BaseDocumentStore, BaseEmbedding
from .cache import ChunkCache
from .chunking import FixedSizeChunker
from .document import DocumentSummary
from .extraction import TextExtractor
from .ingestion import IngestionPipeline
from .ranker import RetrievalRanker, render_context
from .validator import REFUSAL_MESSAGE, AnswerValidator

if TYPE_CHECKING:
    from docqa.providers.base import LLMProvider
    from docqa.utils.config import DocQAConfig

logger = logging.getLogger(__name__)

UNRELATED_MESSAGE = "Your question does not relate to the document, so I cannot answer it."

INSUFFICIENT_CONTEXT_MESSAGE = "I don't have enough information from the document to answer that question."

GROUNDED_PROMPT_TEMPLATE = """You answer questions about a document using ONLY the context passages below.

Rules:
1. Use only the information in the context. Do not use general knowledge or prior training.
2. Cite the passage supporting every statement with its label in square brackets, for example [C1].
3. Only use labels that appear in the context. Never invent a label.
4. If the context does not contain the answer, reply with exactly:
{refusal}

Context:
{context}

Question: {question}

Answer:"""


class AnswerOutcome(str, Enum):
    """How a question was resolved."""
    ANSWERED = "answered"
    REFUSED = "refused"
    UNRELATED = "unrelated"
    INSUFFICIENT_CONTEXT = "insufficient_context"


class QAResult(BaseModel):
    """Answer to one question and how it was reached."""
    answer: str
    outcome: AnswerOutcome
    citations: list[str] = Field(default_factory=list)
    top_score: Optional[float] = None


def build_prompt(context: str, question: str) -> str:
    return GROUNDED_PROMPT_TEMPLATE.format(refusal=REFUSAL_MESSAGE, context=context, question=question)


class DocumentQAPipeline:
    """Ingest documents and answer questions grounded in their passages."""

    def __init__(
        self,
        embedding: BaseEmbedding,
        store: BaseDocumentStore,
        llm_provider: "LLMProvider",
        chunker: Optional[BaseChunker] = None,
        cache: Optional[ChunkCache] = None,
        ranker: Optional[RetrievalRanker] = None,
        validator: Optional[AnswerValidator] = None,
        extractor: Optional[TextExtractor] = None,
        available_models: Optional[list[str]] = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ):
        self.embedding = embedding
        self.store = store
        self.llm_provider = llm_provider
        self.chunker = chunker or FixedSizeChunker()
        self.cache = cache or ChunkCache(store)
        self.ranker = ranker or RetrievalRanker(self.cache)
        self.validator = validator or AnswerValidator()
        self.extractor = extractor or TextExtractor()
        self.ingestion = IngestionPipeline(self.chunker, embedding, store, self.cache)
        self.available_models = list(available_models or [])
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_config(cls, config: "DocQAConfig") -> "DocumentQAPipeline":
        """Build the pipeline and its providers from configuration."""
        from docqa.providers import OllamaProvider, OpenAIProvider
        from docqa.utils.logging import set_log_level

        from .embeddings import OllamaEmbedding, OpenAIEmbedding
        from .store import SQLiteDocumentStore

        set_log_level(config.log_level)

        if config.provider == "openai":
            embedding = OpenAIEmbedding(model=config.embedding_model, api_key=config.api_key, base_url=config.base_url)
            llm_provider = OpenAIProvider(api_key=config.api_key, base_url=config.base_url)
        else:
            base_url = config.base_url or "http://localhost:11434"
            embedding = OllamaEmbedding(model=config.embedding_model, base_url=base_url, timeout=config.request_timeout)
            llm_provider = OllamaProvider(base_url=base_url, timeout=config.request_timeout)

        store = SQLiteDocumentStore(config.db_path)
        cache = ChunkCache(store)
        return cls(
            embedding=embedding,
            store=store,
            llm_provider=llm_provider,
            chunker=FixedSizeChunker(config.chunk_size, config.chunk_overlap, config.chunk_unit),
            cache=cache,
            ranker=RetrievalRanker(
                cache,
                candidate_pool_size=config.candidate_pool_size,
                max_context_chunks=config.max_context_chunks,
                unrelated_threshold=config.unrelated_threshold,
                floor_threshold=config.floor_threshold,
                score_margin=config.score_margin,
            ),
            validator=AnswerValidator(
                general_knowledge_phrases=config.general_knowledge_phrases,
                strict_threshold=config.strict_threshold,
            ),
            available_models=config.available_models,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    async def initialize(self) -> None:
        """Load every stored document into the chunk cache."""
        await self.cache.initialize()

    async def ingest(self, file_name: str, text: str) -> DocumentSummary:
        return await self.ingestion.ingest(file_name, text)

    async def ingest_file(self, file_bytes: bytes, file_name: str) -> DocumentSummary:
        """Extract text from an uploaded file and ingest it."""
        loop = asyncio.get_event_loop()
        text = await loop.run_in_executor(None, self.extractor.extract, file_bytes, file_name)
        return await self.ingest(file_name, text)

    async def ask_question(self, document_id: int, question: str, model_id: str) -> str:
        result = await self.ask(document_id, question, model_id)
        return result.answer

    async def ask(self, document_id: int, question: str, model_id: str) -> QAResult:
        """Answer a question about one document.

        Raises DocumentNotFoundError when the document is missing even after
        a cache reload, and ProviderError when embedding or generation fails.
        Unrelated or unsupported answers are returned as normal results.
        """
        if not question or not question.strip():
            raise ValidationError("A question is required")
        if not model_id or not model_id.strip():
            raise ValidationError("A model identifier is required")

        chunks = await self.ranker.resolve(document_id)
        if not chunks:
            logger.info(f"Document {document_id} has no chunks to search")
            return QAResult(answer=INSUFFICIENT_CONTEXT_MESSAGE, outcome=AnswerOutcome.INSUFFICIENT_CONTEXT)

        query_embedding = await self.embedding.embed(question)
        ranking = self.ranker.rank(document_id, chunks, query_embedding)

        if ranking.unrelated:
            logger.info(f"Question about document {document_id} is unrelated (top score {ranking.top_score:.3f})")
            return QAResult(answer=UNRELATED_MESSAGE, outcome=AnswerOutcome.UNRELATED, top_score=ranking.top_score)

        prompt = build_prompt(render_context(ranking), question)
        raw_answer = await self.llm_provider.complete_prompt(
            model_id, prompt, temperature=self.temperature, max_tokens=self.max_tokens
        )

        verdict = self.validator.check(raw_answer, ranking.labels, ranking.top_score)
        answer = self.validator.apply(raw_answer, verdict)
        outcome = AnswerOutcome.ANSWERED if verdict.valid and verdict.reason != "refusal" else AnswerOutcome.REFUSED
        return QAResult(answer=answer, outcome=outcome, citations=verdict.citations, top_score=ranking.top_score)

    async def delete_document(self, document_id: int) -> bool:
        """Delete a document from the store and drop its cache entry."""
        # A store delete can commit after its caller is cancelled, so the
        # cache removal must run with it.
        deleted = await asyncio.shield(self._delete(document_id))
        if deleted:
            logger.info(f"Deleted document {document_id}")
        return deleted

    async def _delete(self, document_id: int) -> bool:
        try:
            return await self.store.delete(document_id)
        finally:
            self.cache.remove(document_id)

    async def list_documents(self) -> list[DocumentSummary]:
        return await self.store.list_summaries()

    def get_available_models(self) -> list[str]:
        return list(self.available_models)
