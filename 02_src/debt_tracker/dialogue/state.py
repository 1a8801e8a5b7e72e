"""Per-chat conversation state store."""

import asyncio

from ..models import ConversationState


class ConversationStore:
    """Keyed map of conversation state, one lock per chat.

    Holders of ``lock(chat_id)`` own that chat's state until they release it;
    unrelated chats never wait on each other.
    """

    def __init__(self):
        self._states: dict[int, ConversationState] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    def get(self, chat_id: int) -> ConversationState:
        """Get the chat's state, creating the idle baseline on first use."""
        state = self._states.get(chat_id)
        if state is None:
            state = ConversationState(chat_id=chat_id)
            self._states[chat_id] = state
        return state

    def peek(self, chat_id: int) -> ConversationState | None:
        """Get the chat's state without creating it."""
        return self._states.get(chat_id)

    def lock(self, chat_id: int) -> asyncio.Lock:
        """Get the lock serializing events for one chat."""
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[chat_id] = lock
        return lock

    def clear(self) -> None:
        """Forget every chat's state (process-restart semantics).

        Locks held by an in-flight event are kept so that event's chat stays
        serialized; all others are dropped.
        """
        self._states.clear()
        self._locks = {
            chat_id: lock for chat_id, lock in self._locks.items() if lock.locked()
        }

    def __len__(self) -> int:
        return len(self._states)
