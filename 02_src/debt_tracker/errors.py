"""Ledger domain errors."""


class LedgerError(Exception):
    """Base class for all ledger and dialogue domain errors."""


class NotFound(LedgerError):
    """An entity id no longer resolves (e.g. a button referencing a deleted debt)."""

    def __init__(self, entity: str, key: object):
        super().__init__(f"{entity} not found: {key!r}")
        self.entity = entity
        self.key = key


class AlreadyExists(LedgerError):
    """A debtor with the same name already exists in the chat."""

    def __init__(self, name: str, chat_id: int):
        super().__init__(f"debtor {name!r} already exists in chat {chat_id}")
        self.name = name
        self.chat_id = chat_id


class InvalidInput(LedgerError):
    """User input failed validation (amount, reason, date, subtraction)."""


class StoreUnavailable(LedgerError):
    """The underlying storage failed for reasons outside domain logic."""
