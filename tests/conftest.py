"""
Test configuration and fixtures.
"""

import pytest

from docqa.rag import DocumentQAPipeline, FixedSizeChunker, MemoryDocumentStore

from fakes import ScriptedLLM, StaticEmbedding


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def embedding():
    return StaticEmbedding()


@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def pipeline(store, embedding, llm):
    return DocumentQAPipeline(
        embedding=embedding,
        store=store,
        llm_provider=llm,
        chunker=FixedSizeChunker(chunk_size=20, overlap=5),
        available_models=["llama3:8b", "mistral", "phi3"],
    )
