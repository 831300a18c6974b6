"""
Retrieval: lexical term-overlap search over a fixed, read-only document set.

Responsibility: Rank documents for a query and return hits for the agent's
retrieve tool. No embeddings, no persistence; the corpus is built in-process.
"""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypedDict

from nova_agent.core.config import RETRIEVE_LIMIT, SNIPPET_MAX_CHARS

logger = logging.getLogger(__name__)

_NON_TOKEN_CHARS = re.compile(r"[^a-z0-9\s]")
ELLIPSIS = "…"


@dataclass(frozen=True)
class Document:
    id: str
    title: str
    text: str


class RetrievalHit(TypedDict):
    id: str
    title: str
    snippet: str
    score: int


# search(query, limit) -> ranked hits; the retrieve tool only depends on this shape
SearchFn = Callable[[str, int], list[RetrievalHit]]


DOCS: tuple[Document, ...] = (
    Document(
        id="hackathon-submission",
        title="Hackathon submission checklist",
        text="\n".join([
            "Pick one category.",
            "Provide a brief text description explaining what you built and how you leverage Amazon Nova.",
            "Provide a demo video around 3 minutes showing the project functioning and include #AmazonNova.",
            "Provide a code repository link (share access if private).",
        ]),
    ),
    Document(
        id="nova-act-summary",
        title="Nova Act summary",
        text="\n".join([
            "Nova Act is an AWS service to build and manage fleets of reliable AI agents for automating production UI workflows at scale.",
            "It automates browser workflows and can integrate with external tools via API calls and remote MCP.",
        ]),
    ),
    Document(
        id="agentic-best-practices",
        title="Agentic demo best practices",
        text="\n".join([
            "Show a clear goal, a plan, tool usage, and a trace of steps.",
            "Keep the demo crisp and within 3 minutes.",
            "Make errors visible and actionable (missing credentials, missing model access).",
        ]),
    ),
)


def tokenize(text: str) -> list[str]:
    """Lowercase, blank out everything but [a-z0-9] and whitespace, split, drop empties."""
    return _NON_TOKEN_CHARS.sub(" ", (text or "").lower()).split()


def make_snippet(text: str, max_chars: int = SNIPPET_MAX_CHARS) -> str:
    if len(text) > max_chars:
        return text[:max_chars] + ELLIPSIS
    return text


class DocumentIndex:
    """
    Read-only index over a document sequence.

    Token sets are computed once at construction; search() never mutates the
    index, so one instance can be shared by concurrent runs.
    """

    def __init__(self, docs: Sequence[Document]) -> None:
        self._docs = tuple(docs)
        self._terms = tuple(frozenset(tokenize(d.title + " " + d.text)) for d in self._docs)

    def __len__(self) -> int:
        return len(self._docs)

    def search(self, query: str, limit: int = RETRIEVE_LIMIT) -> list[RetrievalHit]:
        """
        Score each document by how many query tokens appear in it.

        A query token repeated twice counts twice. Zero-score documents are
        dropped; ties keep corpus order (sorted() is stable).
        """
        q = tokenize(query)
        logger.info("[retrieval:search] IN  query=%r tokens=%d limit=%d", query, len(q), limit)
        if not q:
            return []
        scored = []
        for doc, terms in zip(self._docs, self._terms):
            score = sum(1 for term in q if term in terms)
            if score > 0:
                scored.append((doc, score))
        scored = sorted(scored, key=lambda x: -x[1])[: max(limit, 0)]
        hits: list[RetrievalHit] = [
            {"id": d.id, "title": d.title, "snippet": make_snippet(d.text), "score": score}
            for d, score in scored
        ]
        logger.info("[retrieval:search] OUT hits=%s", [(h["id"], h["score"]) for h in hits])
        return hits


DEFAULT_INDEX = DocumentIndex(DOCS)


def retrieve(query: str, limit: int = RETRIEVE_LIMIT) -> list[RetrievalHit]:
    """Search the built-in corpus."""
    return DEFAULT_INDEX.search(query, limit)
