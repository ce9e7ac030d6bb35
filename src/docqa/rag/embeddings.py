"""Embedding provider implementations."""

import hashlib
import logging
import struct
from typing import Optional

import httpx
import openai

from docqa.exceptions import ProviderError

from .base import BaseEmbedding

logger = logging.getLogger(__name__)


class FakeEmbedding(BaseEmbedding):
    """Fake embedding that generates deterministic embeddings from text."""

    def __init__(self, dimension: int = 384, seed: int = 42):
        self.dimension = dimension
        self.seed = seed

    def _hash_text(self, text: str) -> list[float]:
        text_hash = hashlib.sha256(f"{self.seed}:{text}".encode()).digest()
        embedding = []
        for i in range(self.dimension):
            byte_idx = (i * 4) % (len(text_hash) - 4)
            value = struct.unpack("<i", text_hash[byte_idx:byte_idx + 4])[0]
            embedding.append(value / 2**31)
        return embedding

    async def embed(self, text: str) -> list[float]:
        return self._hash_text(text)


class OllamaEmbedding(BaseEmbedding):
    """Embeddings from a local Ollama server."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def embed(self, text: str) -> list[float]:
        client = self._get_client()
        try:
            response = await client.post("/api/embeddings", json={"model": self.model, "prompt": text})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError("ollama", f"embedding request failed: {e}") from e
        embedding = payload.get("embedding") if isinstance(payload, dict) else None
        if not embedding:
            raise ProviderError("ollama", f"no embedding returned for model '{self.model}'")
        try:
            return [float(value) for value in embedding]
        except (TypeError, ValueError) as e:
            raise ProviderError("ollama", f"malformed embedding for model '{self.model}': {e}") from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class OpenAIEmbedding(BaseEmbedding):
    """OpenAI embedding model."""

    def __init__(self, model: str = "text-embedding-3-small", api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self._client = None

    def _get_client(self):
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def embed(self, text: str) -> list[float]:
        client = self._get_client()
        try:
            response = await client.embeddings.create(model=self.model, input=text)
        except openai.OpenAIError as e:
            raise ProviderError("openai", f"embedding request failed: {e}") from e
        if not response.data:
            raise ProviderError("openai", f"no embedding returned for model '{self.model}'")
        return list(response.data[0].embedding)
