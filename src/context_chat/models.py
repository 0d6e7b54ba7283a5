"""Domain models for the chat engine."""

from dataclasses import dataclass, field
from typing import Literal

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A single message in a conversation."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ScoredSnippet:
    """A line-level window of a corpus file scored against a query."""

    score: int
    source: str
    line: int
    text: str


@dataclass(frozen=True)
class WebResult:
    """A search result normalized from whichever provider answered."""

    title: str
    link: str
    snippet: str


@dataclass(frozen=True)
class RagSource:
    """Where a local snippet used in the prompt came from."""

    source: str
    line: int


@dataclass(frozen=True)
class ChatResult:
    """The outcome of one successful chat call."""

    session_id: str
    model: str
    reply: str
    messages_in_memory: int
    rag_sources: list[RagSource] = field(default_factory=list)
    web_sources: list[WebResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Render the camelCase response shape returned to API clients."""
        return {
            "sessionId": self.session_id,
            "model": self.model,
            "reply": self.reply,
            "messagesInMemory": self.messages_in_memory,
            "ragSources": [
                {"source": s.source, "line": s.line} for s in self.rag_sources
            ],
            "webSources": [
                {"title": w.title, "link": w.link, "snippet": w.snippet}
                for w in self.web_sources
            ],
        }
