"""Similarity ranking and context selection."""

import logging
from typing import Sequence

from docqa.exceptions import DocumentNotFoundError, NoContentError

from .cache import CacheEntry, ChunkCache
from .document import Chunk, CitedPassage, RankedCandidate, Ranking
from .similarity import cosine_similarity

logger = logging.getLogger(__name__)


class RetrievalRanker:
    """Select a bounded, labeled context window for one question.

    Candidates are first cut to the ``candidate_pool_size`` best chunks,
    then narrowed to those scoring within ``score_margin`` of the best one
    (never below ``floor_threshold``). A best score under
    ``unrelated_threshold`` marks the question as unrelated to the document.
    """

    def __init__(
        self,
        cache: ChunkCache,
        candidate_pool_size: int = 12,
        max_context_chunks: int = 8,
        unrelated_threshold: float = 0.18,
        floor_threshold: float = 0.15,
        score_margin: float = 0.10,
    ):
        self.cache = cache
        self.candidate_pool_size = candidate_pool_size
        self.max_context_chunks = max_context_chunks
        self.unrelated_threshold = unrelated_threshold
        self.floor_threshold = floor_threshold
        self.score_margin = score_margin

    async def resolve(self, document_id: int) -> CacheEntry:
        """Get a document's chunks, reloading the cache once on a miss."""
        chunks = self.cache.get(document_id)
        if chunks is None:
            logger.info(f"Cache miss for document {document_id}, reloading")
            await self.cache.reload()
            chunks = self.cache.get(document_id)
            if chunks is None:
                raise DocumentNotFoundError(document_id)
        return chunks

    async def rank_document(self, document_id: int, query_embedding: Sequence[float]) -> Ranking:
        chunks = await self.resolve(document_id)
        return self.rank(document_id, chunks, query_embedding)

    def rank(self, document_id: int, chunks: Sequence[Chunk], query_embedding: Sequence[float]) -> Ranking:
        scored = [
            RankedCandidate(
                position=position,
                content=chunk.content,
                score=cosine_similarity(query_embedding, chunk.embedding),
            )
            for position, chunk in enumerate(chunks)
        ]
        # sorted() is stable, so equal scores keep document order.
        candidates = sorted(scored, key=lambda c: c.score, reverse=True)[:self.candidate_pool_size]
        if not candidates:
            raise NoContentError(document_id)

        top_score = candidates[0].score
        if top_score < self.unrelated_threshold:
            logger.debug(f"Document {document_id}: top score {top_score:.3f} below unrelated threshold")
            return Ranking(top_score=top_score, candidates=candidates, unrelated=True)

        cutoff = max(self.floor_threshold, top_score - self.score_margin)
        selected = [c for c in candidates if c.score >= cutoff][:self.max_context_chunks]
        if not selected:
            selected = candidates[:1]

        selection = [
            CitedPassage(label=f"C{i}", candidate=candidate)
            for i, candidate in enumerate(selected, start=1)
        ]
        logger.debug(
            f"Document {document_id}: selected {len(selection)} of {len(candidates)} candidates "
            f"(top {top_score:.3f}, cutoff {cutoff:.3f})"
        )
        return Ranking(top_score=top_score, candidates=candidates, selection=selection)


def render_context(ranking: Ranking) -> str:
    """Render the selected passages as labeled, score-annotated blocks."""
    return "\n---\n".join(
        f"[{passage.label}] (relevance: {passage.candidate.score:.2f})\n{passage.candidate.content}"
        for passage in ranking.selection
    )
