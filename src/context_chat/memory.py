"""Conversation store — bounded, per-session message history.

Sessions live for the life of the process; there is no expiry or
eviction. Two concurrent writes to the same session are last-write-wins.
"""

import threading

from context_chat.models import ChatMessage


class ConversationStore:
    """Thread-safe mapping of session id to a sliding window of messages."""

    def __init__(self, max_messages: int = 20) -> None:
        if max_messages <= 0:
            raise ValueError(f"max_messages must be positive, got {max_messages}")
        self.max_messages = max_messages
        self._sessions: dict[str, tuple[ChatMessage, ...]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> list[ChatMessage]:
        """Return a copy of the session's history (empty if unseen)."""
        with self._lock:
            return list(self._sessions.get(session_id, ()))

    def set(
        self,
        session_id: str,
        messages: list[ChatMessage],
        max_messages: int | None = None,
    ) -> list[ChatMessage]:
        """Replace the session's history, keeping only the newest entries.

        Args:
            session_id: Session key.
            messages: Full history, oldest first.
            max_messages: Window size for this write. Falls back to the
                store's default.

        Returns:
            The history as stored.
        """
        limit = max_messages if max_messages is not None else self.max_messages
        if limit <= 0:
            raise ValueError(f"max_messages must be positive, got {limit}")
        kept = tuple(messages[-limit:])
        with self._lock:
            self._sessions[session_id] = kept
        return list(kept)

    def clear(self, session_id: str) -> bool:
        """Drop a session. Returns whether it existed."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
