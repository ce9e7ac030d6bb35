"""Citation and relevance checks on generated answers."""

import logging
import re
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from docqa.utils.config import DEFAULT_GENERAL_KNOWLEDGE_PHRASES

logger = logging.getLogger(__name__)

REFUSAL_MESSAGE = "I cannot answer this question based on the provided document."

CITATION_PATTERN = re.compile(r"\[C(\d+)\]", re.IGNORECASE)


def extract_citations(answer: str) -> list[str]:
    """Return the citation labels in ``answer`` in order of first use.

    Tags are matched case-insensitively and normalized to ``C<digits>``.
    """
    labels: list[str] = []
    for match in CITATION_PATTERN.finditer(answer):
        label = f"C{match.group(1)}"
        if label not in labels:
            labels.append(label)
    return labels


def is_refusal(answer: str) -> bool:
    return REFUSAL_MESSAGE.lower() in answer.lower()


class Verdict(BaseModel):
    """Result of checking one answer."""
    valid: bool
    reason: str = ""
    citations: list[str] = Field(default_factory=list)


class AnswerValidator:
    """Decide whether a generated answer may be returned verbatim.

    An answer passes only if it cites at least one label, cites no label
    outside the current context selection, contains none of the
    general-knowledge phrases, and the retrieval it was built from scored at
    least ``strict_threshold``. Answers that fail are replaced by
    ``REFUSAL_MESSAGE``. The phrase list is a substring heuristic and will
    also reject cited sentences that happen to use one of the phrases.
    """

    def __init__(
        self,
        general_knowledge_phrases: Optional[Iterable[str]] = None,
        strict_threshold: float = 0.20,
    ):
        if general_knowledge_phrases is None:
            general_knowledge_phrases = DEFAULT_GENERAL_KNOWLEDGE_PHRASES
        self.general_knowledge_phrases = [p.lower() for p in general_knowledge_phrases if p]
        self.strict_threshold = strict_threshold

    def check(self, answer: str, valid_labels: Iterable[str], top_score: float) -> Verdict:
        if not isinstance(answer, str) or not answer.strip():
            return Verdict(valid=False, reason="empty answer")
        if is_refusal(answer):
            return Verdict(valid=True, reason="refusal")

        citations = extract_citations(answer)
        if not citations:
            return Verdict(valid=False, reason="no citations")

        allowed = {str(label).upper() for label in valid_labels or ()}
        unknown = [label for label in citations if label not in allowed]
        if unknown:
            return Verdict(valid=False, reason=f"unknown citations {unknown}", citations=citations)

        lowered = answer.lower()
        for phrase in self.general_knowledge_phrases:
            if phrase in lowered:
                return Verdict(valid=False, reason=f"general-knowledge phrase '{phrase}'", citations=citations)

        if top_score is None or top_score < self.strict_threshold:
            return Verdict(valid=False, reason=f"weak retrieval (top score {top_score})", citations=citations)

        return Verdict(valid=True, citations=citations)

    def apply(self, answer: str, verdict: Verdict) -> str:
        if verdict.valid:
            return answer
        logger.warning(f"Rejected generated answer: {verdict.reason}")
        return REFUSAL_MESSAGE

    def validate(self, answer: str, valid_labels: Iterable[str], top_score: float) -> str:
        """Return ``answer`` if it passes every check, else the refusal."""
        return self.apply(answer, self.check(answer, valid_labels, top_score))
