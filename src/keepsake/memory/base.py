"""
Memory data model and persistence contract.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from keepsake.core.typing import JSONDict, MessageDict


def new_id() -> str:
    return uuid4().hex


def dedupe_topics(topics: list[str] | None) -> list[str]:
    """Drop blanks and duplicates, keep first-seen order."""
    seen: set[str] = set()
    result = []
    for topic in topics or []:
        if topic and topic not in seen:
            seen.add(topic)
            result.append(topic)
    return result


@dataclass
class Memory:
    """Single remembered fact about a user (optionally agent/team scoped)."""

    user_id: str
    text: str
    id: str = ""
    agent_id: str | None = None
    team_id: str | None = None
    source_input: str | None = None
    topics: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.topics = dedupe_topics(self.topics)
        if self.updated_at is None or self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def touch(self) -> None:
        """Bump updated_at, never moving it behind created_at."""
        self.updated_at = max(datetime.now(), self.created_at)

    def to_dict(self) -> JSONDict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "agent_id": self.agent_id,
            "team_id": self.team_id,
            "text": self.text,
            "source_input": self.source_input,
            "topics": list(self.topics),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class SessionSummary:
    """Condensed record of one conversation session."""

    user_id: str
    session_id: str
    summary_text: str
    id: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.updated_at is None or self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def touch(self) -> None:
        self.updated_at = max(datetime.now(), self.created_at)


@dataclass
class TurnPair:
    """One user turn and the assistant reply that followed it."""

    user: str
    assistant: str = ""


def pair_messages(messages: list[MessageDict]) -> list[TurnPair]:
    """Group role-tagged messages into user/assistant pairs.

    Each user message opens a pair; the next assistant (or model) message
    closes it. System and tool messages are skipped. An assistant message
    with no preceding user turn is dropped.
    """
    pairs: list[TurnPair] = []
    current: TurnPair | None = None

    for msg in messages:
        role = msg.get("role")
        content = msg.get("content")
        if not isinstance(content, str):
            continue

        if role == "user":
            if current is not None:
                pairs.append(current)
            current = TurnPair(user=content)
        elif role in ("assistant", "model") and current is not None:
            current.assistant = content
            pairs.append(current)
            current = None

    if current is not None:
        pairs.append(current)
    return pairs


class MemoryDatabase(ABC):
    """Persistence contract for memories and session summaries."""

    # Memories

    @abstractmethod
    async def create_memory(self, memory: Memory) -> Memory:
        """Insert memory, assigning id/timestamps when missing."""
        ...

    @abstractmethod
    async def get_memory(self, memory_id: str) -> Memory | None:
        """Get specific memory by ID."""
        ...

    @abstractmethod
    async def list_memories(self, user_id: str) -> list[Memory]:
        """All memories for a user, oldest first."""
        ...

    @abstractmethod
    async def update_memory(self, memory: Memory) -> bool:
        """Persist changed fields of an existing memory."""
        ...

    @abstractmethod
    async def delete_memory(self, memory_id: str) -> bool:
        """Delete memory. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def clear_memories(self, user_id: str) -> int:
        """Delete every memory of a user, return the count."""
        ...

    @abstractmethod
    async def replace_memories(
        self, new_memories: list[Memory], delete_ids: list[str]
    ) -> list[str]:
        """Insert new_memories and delete delete_ids atomically.

        Either every change is applied or none is. Returns the ids that
        were actually deleted.
        """
        ...

    # Session summaries

    @abstractmethod
    async def create_session_summary(self, summary: SessionSummary) -> SessionSummary:
        """Insert or replace the summary for (user_id, session_id)."""
        ...

    @abstractmethod
    async def get_session_summary(
        self, user_id: str, session_id: str
    ) -> SessionSummary | None:
        ...

    @abstractmethod
    async def update_session_summary(self, summary: SessionSummary) -> bool:
        ...

    @abstractmethod
    async def delete_session_summary(self, user_id: str, session_id: str) -> bool:
        ...

    # Schema management (idempotent)

    @abstractmethod
    async def create_tables(self) -> None:
        ...

    @abstractmethod
    async def upgrade_schema(self) -> None:
        ...

    @abstractmethod
    async def drop_tables(self) -> None:
        ...
