"""Document ingestion: chunk, embed, persist, cache."""

import asyncio
import logging
from datetime import datetime, timezone

from .base import BaseChunker, BaseDocumentStore, BaseEmbedding
from .cache import ChunkCache, build_cache_entry
from .document import Chunk, Document, DocumentSummary
from .serializer import serialize_embedding

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Turns extracted document text into a stored, cached document."""

    def __init__(
        self,
        chunker: BaseChunker,
        embedding: BaseEmbedding,
        store: BaseDocumentStore,
        cache: ChunkCache,
    ):
        self.chunker = chunker
        self.embedding = embedding
        self.store = store
        self.cache = cache

    async def ingest(self, file_name: str, text: str) -> DocumentSummary:
        """Chunk and embed ``text``, then persist and cache it as one document.

        Embedding requests are issued one chunk at a time, in document
        order. Any embedding or persistence failure aborts the whole
        document: nothing is saved and the cache is left untouched.
        """
        pieces = self.chunker.split(text)
        chunks = []
        for position, piece in enumerate(pieces):
            vector = await self.embedding.embed(piece)
            chunks.append(Chunk(position=position, content=piece, embedding_json=serialize_embedding(vector)))

        document = Document(file_name=file_name, uploaded_at=datetime.now(timezone.utc), chunks=chunks)
        # Once the save starts, finish it and the cache update together.
        await asyncio.shield(self._commit(document))
        logger.info(f"Ingested document {document.id} '{file_name}' ({len(chunks)} chunks)")
        return document.summary()

    async def _commit(self, document: Document) -> None:
        document_id = await self.store.save(document)
        self.cache.put(document_id, build_cache_entry(document))
