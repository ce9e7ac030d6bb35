"""
Completion providers.
"""

from docqa.providers.base import LLMProvider, LLMResponse
from docqa.providers.ollama import OllamaProvider
from docqa.providers.openai import OpenAIProvider

__all__ = ["LLMProvider", "LLMResponse", "OllamaProvider", "OpenAIProvider"]
