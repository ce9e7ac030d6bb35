"""Document, chunk and ranking data structures."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """A bounded span of a document's text with its embedding.

    ``embedding_json`` is the persisted form; ``embedding`` is populated
    when the chunk is loaded into the cache.
    """
    id: Optional[int] = None
    document_id: Optional[int] = None
    position: int = 0
    content: str
    embedding_json: str = ""
    embedding: list[float] = Field(default_factory=list)


class Document(BaseModel):
    """An uploaded document and its ordered chunks."""
    id: Optional[int] = None
    file_name: str
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    chunks: list[Chunk] = Field(default_factory=list)

    def summary(self) -> "DocumentSummary":
        if self.id is None:
            raise ValueError("Document has not been saved")
        return DocumentSummary(id=self.id, file_name=self.file_name, uploaded_at=self.uploaded_at)


class DocumentSummary(BaseModel):
    """Identifier, name and upload time of a stored document."""
    id: int
    file_name: str
    uploaded_at: datetime


class RankedCandidate(BaseModel):
    """A chunk scored against one query."""
    position: int
    content: str
    score: float


class CitedPassage(BaseModel):
    """A ranked candidate selected as context under a citation label."""
    label: str
    candidate: RankedCandidate


class Ranking(BaseModel):
    """Outcome of ranking one document's chunks for one query."""
    top_score: float
    candidates: list[RankedCandidate] = Field(default_factory=list)
    selection: list[CitedPassage] = Field(default_factory=list)
    unrelated: bool = False

    @property
    def labels(self) -> list[str]:
        return [passage.label for passage in self.selection]
