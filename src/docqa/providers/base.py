"""
Base LLM Provider interface.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class LLMResponse(BaseModel):
    """Response from an LLM."""
    content: str = ""
    usage: dict[str, int] = {}
    finish_reason: str = "stop"


class LLMProvider(ABC):
    """
    Abstract base class for chat completion providers.
    """

    name: str = "llm"

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        **kwargs: Any
    ) -> LLMResponse:
        """
        Get a completion from the LLM.

        Args:
            messages: List of messages in API format
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional provider-specific options

        Returns:
            The generated response

        Raises:
            ProviderError: If the provider call fails
        """
        pass

    async def complete_prompt(self, model: str, prompt: str, **kwargs: Any) -> str:
        """Send a single user prompt and return the generated text."""
        response = await self.complete([{"role": "user", "content": prompt}], model=model, **kwargs)
        return response.content
