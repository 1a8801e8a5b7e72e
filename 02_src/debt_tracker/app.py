"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .config import resolve_db_path
from .dialogue import ConversationStore, DialogueEngine, IDialogueEngine
from .logging_config import get_logger
from .storage import ILedgerStore, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset ledger and conversation state between test runs."""
        ...

    @property
    def storage(self) -> ILedgerStore:
        ...

    @property
    def engine(self) -> IDialogueEngine:
        ...


class Application:
    """Main application bootstrap."""

    def __init__(self, db_path: str | None = None):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)

        # Components (will be initialized in start())
        self._storage: Storage | None = None
        self._conversations: ConversationStore | None = None
        self._engine: DialogueEngine | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Conversation state (in memory, lost on restart)
        self._conversations = ConversationStore()

        # 3. DialogueEngine (depends on Storage + ConversationStore)
        self._engine = DialogueEngine(self._storage, self._conversations)
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        self._engine = None
        if self._conversations is not None:
            self._conversations.clear()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset ledger and conversation state between test runs."""
        if self._conversations is not None:
            self._conversations.clear()
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    @property
    def storage(self) -> Storage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def conversations(self) -> ConversationStore:
        """Get conversation store instance."""
        if self._conversations is None:
            raise RuntimeError("Application not started")
        return self._conversations

    @property
    def engine(self) -> DialogueEngine:
        """Get dialogue engine instance."""
        if not self._engine:
            raise RuntimeError("Application not started")
        return self._engine
