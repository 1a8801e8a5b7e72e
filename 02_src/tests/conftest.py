"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from debt_tracker.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def conversations():
    """Create an empty conversation store."""
    from debt_tracker.dialogue import ConversationStore

    return ConversationStore()


@pytest.fixture
def engine(storage, conversations):
    """Create DialogueEngine over in-memory storage."""
    from debt_tracker.dialogue import DialogueEngine

    return DialogueEngine(storage, conversations)


@pytest.fixture
def chat():
    """Helpers that build inbound events for one chat."""
    from debt_tracker.models import ButtonEvent, CommandEvent, TextEvent

    class Chat:
        chat_id = 42

        def command(self, command: str) -> CommandEvent:
            return CommandEvent(chat_id=self.chat_id, command=command)

        def text(self, text: str) -> TextEvent:
            return TextEvent(chat_id=self.chat_id, text=text)

        def button(self, payload: str, message_id: int | None = 7) -> ButtonEvent:
            return ButtonEvent(chat_id=self.chat_id, payload=payload, message_id=message_id)

    return Chat()
