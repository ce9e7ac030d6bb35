"""Tests for the question-answering pipeline."""

import asyncio

import pytest

from docqa.exceptions import DocumentNotFoundError, PersistenceError, ProviderError, ValidationError
from docqa.rag import (
    AnswerOutcome,
    DocumentQAPipeline,
    FixedSizeChunker,
    INSUFFICIENT_CONTEXT_MESSAGE,
    MemoryDocumentStore,
    REFUSAL_MESSAGE,
    SQLiteDocumentStore,
    UNRELATED_MESSAGE,
    deserialize_embedding,
)
from docqa.rag.document import Chunk, Document

from fakes import QUERY_VECTOR, ScriptedLLM, StaticEmbedding, seed_document


class FailingSaveStore(MemoryDocumentStore):
    async def save(self, document: Document) -> int:
        raise PersistenceError("disk full")


class TestIngestion:
    @pytest.mark.asyncio
    async def test_ingest_persists_and_caches(self, pipeline, store, embedding):
        text = "abcdefghijklmnopqrstuvwxyz0123456789"
        summary = await pipeline.ingest("alphabet.txt", text)

        assert summary.file_name == "alphabet.txt"
        stored = await store.load(summary.id)
        assert [c.content for c in stored.chunks] == [text[0:20], text[15:35], text[30:36]]
        assert [c.position for c in stored.chunks] == [0, 1, 2]

        entry = pipeline.cache.get(summary.id)
        assert [c.content for c in entry] == [c.content for c in stored.chunks]
        assert all(c.embedding == QUERY_VECTOR for c in entry)
        assert all(deserialize_embedding(c.embedding_json) == QUERY_VECTOR for c in stored.chunks)

    @pytest.mark.asyncio
    async def test_embeds_chunks_in_document_order(self, pipeline, embedding):
        text = "abcdefghijklmnopqrstuvwxyz0123456789"
        await pipeline.ingest("alphabet.txt", text)
        assert embedding.calls == [text[0:20], text[15:35], text[30:36]]

    @pytest.mark.asyncio
    async def test_embedding_failure_leaves_no_document(self, pipeline, store, embedding):
        text = "abcdefghijklmnopqrstuvwxyz0123456789"
        embedding.fail_on.add(text[15:35])

        with pytest.raises(ProviderError):
            await pipeline.ingest("alphabet.txt", text)

        assert await store.load_all() == []
        assert len(pipeline.cache) == 0
        assert embedding.calls == [text[0:20], text[15:35]]

    @pytest.mark.asyncio
    async def test_persistence_failure_leaves_cache_untouched(self, embedding, llm):
        pipeline = DocumentQAPipeline(embedding=embedding, store=FailingSaveStore(), llm_provider=llm)
        with pytest.raises(PersistenceError):
            await pipeline.ingest("notes.txt", "some text")
        assert len(pipeline.cache) == 0

    @pytest.mark.asyncio
    async def test_documents_ingest_concurrently(self, pipeline, store):
        summaries = await asyncio.gather(
            pipeline.ingest("a.txt", "first document text"),
            pipeline.ingest("b.txt", "second document text"),
        )
        assert len({s.id for s in summaries}) == 2
        assert all(pipeline.cache.get(s.id) for s in summaries)

    @pytest.mark.asyncio
    async def test_ingest_file_extracts_text(self, pipeline, store):
        summary = await pipeline.ingest_file("plain text body".encode("utf-8"), "body.txt")
        stored = await store.load(summary.id)
        assert stored.chunks[0].content == "plain text body"


class TestAskQuestion:
    @pytest.mark.asyncio
    async def test_returns_cited_answer(self, pipeline, store, llm):
        document_id = await seed_document(store, [0.9, 0.85, 0.5, 0.1])
        await pipeline.initialize()
        llm.reply = "Revenue rose [C1] while costs held [C2]."

        result = await pipeline.ask(document_id, "How did revenue change?", "llama3:8b")

        assert result.answer == llm.reply
        assert result.outcome == AnswerOutcome.ANSWERED
        assert result.citations == ["C1", "C2"]
        prompt = llm.calls[0]["messages"][0]["content"]
        assert llm.calls[0]["model"] == "llama3:8b"
        assert "[C1] (relevance: 0.90)\npassage 0" in prompt
        assert "[C2] (relevance: 0.85)\npassage 1" in prompt
        assert "passage 2" not in prompt
        assert "Question: How did revenue change?" in prompt
        assert REFUSAL_MESSAGE in prompt

    @pytest.mark.asyncio
    async def test_unknown_citation_is_refused(self, pipeline, store, llm):
        document_id = await seed_document(store, [0.9, 0.85, 0.5])
        llm.reply = "Revenue rose [C3]."

        result = await pipeline.ask(document_id, "How did revenue change?", "mistral")

        assert result.answer == REFUSAL_MESSAGE
        assert result.outcome == AnswerOutcome.REFUSED

    @pytest.mark.asyncio
    async def test_uncited_answer_is_refused(self, pipeline, store, llm):
        document_id = await seed_document(store, [0.9])
        llm.reply = "Revenue rose sharply."
        assert await pipeline.ask_question(document_id, "Revenue?", "mistral") == REFUSAL_MESSAGE

    @pytest.mark.asyncio
    async def test_model_refusal_is_passed_through(self, pipeline, store, llm):
        document_id = await seed_document(store, [0.9])
        llm.reply = REFUSAL_MESSAGE

        result = await pipeline.ask(document_id, "Revenue?", "mistral")

        assert result.answer == REFUSAL_MESSAGE
        assert result.outcome == AnswerOutcome.REFUSED

    @pytest.mark.asyncio
    async def test_weakly_related_answer_is_refused(self, pipeline, store, llm):
        document_id = await seed_document(store, [0.19])
        llm.reply = "Revenue rose [C1]."

        assert await pipeline.ask_question(document_id, "Revenue?", "mistral") == REFUSAL_MESSAGE
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_unrelated_question_skips_model(self, pipeline, store, llm):
        document_id = await seed_document(store, [0.1, 0.05])

        result = await pipeline.ask(document_id, "What is the weather?", "mistral")

        assert result.answer == UNRELATED_MESSAGE
        assert result.outcome == AnswerOutcome.UNRELATED
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_empty_document_needs_more_context(self, pipeline, store, embedding, llm):
        await store.save(Document(file_name="empty.txt"))
        summaries = await store.list_summaries()

        answer = await pipeline.ask_question(summaries[0].id, "Anything?", "mistral")

        assert answer == INSUFFICIENT_CONTEXT_MESSAGE
        assert embedding.calls == []
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_cache_miss_reloads_once(self, pipeline, store, llm):
        document_id = await seed_document(store, [0.9])
        llm.reply = "Yes [C1]."

        assert await pipeline.ask_question(document_id, "Revenue?", "mistral") == "Yes [C1]."
        assert await pipeline.ask_question(document_id, "Revenue?", "mistral") == "Yes [C1]."
        assert pipeline.cache.reload_count == 1

    @pytest.mark.asyncio
    async def test_missing_document_raises_not_found(self, pipeline, llm):
        with pytest.raises(DocumentNotFoundError):
            await pipeline.ask_question(404, "Revenue?", "mistral")
        assert pipeline.cache.reload_count == 1
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_query_embedding_failure_propagates(self, pipeline, store, embedding):
        document_id = await seed_document(store, [0.9])
        embedding.fail_on.add("Revenue?")
        with pytest.raises(ProviderError):
            await pipeline.ask_question(document_id, "Revenue?", "mistral")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("question, model_id", [("", "mistral"), ("   ", "mistral"), ("Revenue?", "")])
    async def test_rejects_blank_input(self, pipeline, question, model_id):
        with pytest.raises(ValidationError):
            await pipeline.ask_question(1, question, model_id)

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_reload(self, store, llm):
        document_id = await seed_document(store, [0.9])
        llm.reply = "Yes [C1]."
        pipeline = DocumentQAPipeline(embedding=StaticEmbedding(), store=store, llm_provider=llm)

        answers = await asyncio.gather(*[
            pipeline.ask_question(document_id, "Revenue?", "mistral") for _ in range(5)
        ])

        assert answers == ["Yes [C1]."] * 5
        assert pipeline.cache.reload_count == 1

    @pytest.mark.asyncio
    async def test_corrupt_document_does_not_block_healthy_one(self, pipeline, store, llm):
        healthy = await seed_document(store, [0.9])
        await store.save(Document(
            file_name="bad.txt",
            chunks=[Chunk(position=0, content="broken", embedding_json="[0.1, ")],
        ))
        llm.reply = "Yes [C1]."

        assert await pipeline.ask_question(healthy, "Revenue?", "mistral") == "Yes [C1]."


class TestDeleteDocument:
    @pytest.mark.asyncio
    async def test_delete_then_ask_is_not_found(self, pipeline, llm):
        summary = await pipeline.ingest("notes.txt", "quarterly revenue notes")
        assert pipeline.cache.get(summary.id) is not None

        assert await pipeline.delete_document(summary.id) is True
        assert pipeline.cache.get(summary.id) is None

        with pytest.raises(DocumentNotFoundError):
            await pipeline.ask_question(summary.id, "Revenue?", "mistral")

    @pytest.mark.asyncio
    async def test_delete_missing_document(self, pipeline):
        assert await pipeline.delete_document(404) is False

    @pytest.mark.asyncio
    async def test_cancelled_delete_still_drops_cache_entry(self, tmp_path, embedding, llm):
        store = SQLiteDocumentStore(str(tmp_path / "docs.db"))
        pipeline = DocumentQAPipeline(embedding=embedding, store=store, llm_provider=llm)
        summary = await pipeline.ingest("notes.txt", "quarterly revenue notes")

        task = asyncio.create_task(pipeline.delete_document(summary.id))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        for _ in range(100):
            if pipeline.cache.get(summary.id) is None:
                break
            await asyncio.sleep(0.01)

        assert await store.load(summary.id) is None
        assert pipeline.cache.get(summary.id) is None
        with pytest.raises(DocumentNotFoundError):
            await pipeline.ask_question(summary.id, "Revenue?", "mistral")


class TestPipelineQueries:
    @pytest.mark.asyncio
    async def test_list_documents(self, pipeline):
        await pipeline.ingest("a.txt", "alpha")
        await pipeline.ingest("b.txt", "beta")
        names = {s.file_name for s in await pipeline.list_documents()}
        assert names == {"a.txt", "b.txt"}

    def test_available_models(self, pipeline):
        assert pipeline.get_available_models() == ["llama3:8b", "mistral", "phi3"]

    def test_default_chunker(self):
        pipeline = DocumentQAPipeline(embedding=StaticEmbedding(), store=MemoryDocumentStore(), llm_provider=ScriptedLLM())
        assert isinstance(pipeline.chunker, FixedSizeChunker)
        assert (pipeline.chunker.chunk_size, pipeline.chunker.overlap) == (1000, 100)
