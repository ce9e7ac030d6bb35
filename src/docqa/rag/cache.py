"""Process-wide chunk cache keyed by document id."""

import asyncio
import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .base import BaseDocumentStore
from .document import Chunk, Document
from .serializer import deserialize_embedding

logger = logging.getLogger(__name__)

CacheEntry = tuple[Chunk, ...]

_REMOVED = None


def build_cache_entry(document: Document) -> CacheEntry:
    """Deserialize a saved document's chunk embeddings into a cache entry.

    A chunk whose stored embedding cannot be decoded gets an empty vector,
    which scores 0.0 and sorts last, instead of failing the whole entry.
    """
    entry = []
    for chunk in document.chunks:
        try:
            embedding = deserialize_embedding(chunk.embedding_json)
        except ValueError as e:
            logger.warning(f"Corrupt embedding for chunk {chunk.id} of document {document.id}: {e}")
            embedding = []
        entry.append(chunk.model_copy(update={"embedding": embedding}))
    return tuple(entry)


class ChunkCache:
    """In-memory index of each document's chunks with embeddings populated.

    The index is an immutable snapshot that is replaced by reference on
    every change, so readers see an entry fully absent, fully old or fully
    new. ``reload`` is single-flight: concurrent callers share one rebuild.
    """

    def __init__(self, store: BaseDocumentStore):
        self.store = store
        self._index: Mapping[int, CacheEntry] = MappingProxyType({})
        self._reload_task: Optional[asyncio.Task] = None
        # Writes made while a rebuild is loading; replayed over its result.
        self._pending: Optional[dict[int, Optional[CacheEntry]]] = None
        self.reload_count = 0

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, document_id: int) -> bool:
        return document_id in self._index

    def get(self, document_id: int) -> Optional[CacheEntry]:
        return self._index.get(document_id)

    def document_ids(self) -> list[int]:
        return list(self._index)

    def put(self, document_id: int, chunks: Iterable[Chunk]) -> None:
        entry = tuple(chunks)
        index = dict(self._index)
        index[document_id] = entry
        self._index = MappingProxyType(index)
        if self._pending is not None:
            self._pending[document_id] = entry

    def remove(self, document_id: int) -> None:
        if document_id in self._index:
            index = dict(self._index)
            del index[document_id]
            self._index = MappingProxyType(index)
        if self._pending is not None:
            self._pending[document_id] = _REMOVED

    def replace_all(self, entries: Mapping[int, Iterable[Chunk]]) -> None:
        self._index = MappingProxyType({
            document_id: tuple(chunks) for document_id, chunks in entries.items()
        })

    async def initialize(self) -> None:
        """Load the whole index before serving requests."""
        await self.reload()

    async def reload(self) -> None:
        """Rebuild the whole index from the document store.

        If a rebuild is already running, wait for it instead of starting
        another. On failure the previous index is kept and the error is
        raised to every waiter.
        """
        task = self._reload_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._rebuild())
            self._reload_task = task
        try:
            await asyncio.shield(task)
        finally:
            if task.done() and self._reload_task is task:
                self._reload_task = None

    async def _rebuild(self) -> None:
        logger.info("Loading all document chunks into the cache")
        self._pending = {}
        try:
            documents = await self.store.load_all()
            entries = {document.id: build_cache_entry(document) for document in documents}
            for document_id, entry in self._pending.items():
                if entry is _REMOVED:
                    entries.pop(document_id, None)
                else:
                    entries[document_id] = entry
            self.replace_all(entries)
        finally:
            self._pending = None
        self.reload_count += 1
        logger.info(f"Loaded {len(entries)} documents into the cache")
