"""
Configuration utilities.
"""

import json
from pathlib import Path
from typing import Literal

import yaml

from pydantic import BaseModel, Field, model_validator


class Config(BaseModel):
    """Base configuration class."""

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from file (YAML or JSON)."""
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        elif path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
            return cls(**data)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")


DEFAULT_GENERAL_KNOWLEDGE_PHRASES = [
    "it is well known",
    "it is widely known",
    "studies show",
    "research shows",
    "experts agree",
    "the capital of",
    "generally speaking",
    "as an ai language model",
    "based on my knowledge",
    "from my training",
]


class DocQAConfig(Config):
    """Configuration for the document question-answering pipeline.

    The ranking and validation thresholds are tuning heuristics carried over
    from production use, not derived optima.
    """

    # Chunking
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=100, ge=0)
    chunk_unit: Literal["character", "word"] = "character"

    # Ranking
    candidate_pool_size: int = Field(default=12, gt=0)
    max_context_chunks: int = Field(default=8, gt=0)
    unrelated_threshold: float = 0.18
    floor_threshold: float = 0.15
    score_margin: float = 0.10

    # Answer validation
    strict_threshold: float = 0.20
    general_knowledge_phrases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_GENERAL_KNOWLEDGE_PHRASES)
    )

    # Provider settings
    provider: Literal["ollama", "openai"] = "ollama"
    base_url: str | None = None
    api_key: str | None = None
    embedding_model: str = "nomic-embed-text"
    available_models: list[str] = Field(
        default_factory=lambda: ["llama3:8b", "mistral", "phi3"]
    )
    temperature: float = 0.0
    max_tokens: int = 1024
    request_timeout: float = 120.0

    # Persistence
    db_path: str = "docqa.db"

    # Logging
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_chunk_window(self) -> "DocQAConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self


def load_config(path: str | Path = "docqa.yaml") -> DocQAConfig:
    """
    Load pipeline configuration from file.

    Args:
        path: Path to config file

    Returns:
        DocQAConfig instance
    """
    path = Path(path)

    if not path.exists():
        return DocQAConfig()

    return DocQAConfig.from_file(path)
