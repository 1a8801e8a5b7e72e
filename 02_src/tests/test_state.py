"""Tests for ConversationStore."""

import asyncio

from debt_tracker.dialogue import ConversationStore
from debt_tracker.models import DialogueStep


class TestConversationStore:
    """Tests for per-chat state and locks."""

    def test_get_creates_idle_state(self):
        """Test that the first get creates the baseline."""
        store = ConversationStore()
        assert store.peek(1) is None

        state = store.get(1)

        assert state.is_idle
        assert store.peek(1) is state
        assert len(store) == 1

    def test_states_are_per_chat(self):
        """Test that chats do not share state."""
        store = ConversationStore()
        store.get(1).step = DialogueStep.AWAITING_DEBTOR_NAME

        assert store.get(2).step is DialogueStep.IDLE

    def test_clear_forgets_states(self):
        """Test that clear drops every chat's state."""
        store = ConversationStore()
        store.get(1).step = DialogueStep.AWAITING_DEBTOR_NAME

        store.clear()

        assert store.peek(1) is None
        assert store.get(1).is_idle

    def test_lock_is_stable_per_chat(self):
        """Test that each chat has exactly one lock."""
        store = ConversationStore()
        assert store.lock(1) is store.lock(1)
        assert store.lock(1) is not store.lock(2)

    async def test_other_chat_is_not_blocked(self):
        """Test that holding one chat's lock does not block another."""
        store = ConversationStore()

        async with store.lock(1):
            await asyncio.wait_for(store.lock(2).acquire(), timeout=1)
            store.lock(2).release()
            assert store.lock(1).locked()

    async def test_clear_drops_idle_locks(self):
        """Test that clear forgets unheld locks but keeps held ones."""
        store = ConversationStore()
        idle = store.lock(1)
        busy = store.lock(2)

        async with busy:
            store.clear()

            assert store.lock(2) is busy
            assert store.lock(1) is not idle
