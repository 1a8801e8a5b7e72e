"""Debt Tracker core."""

from .app import Application, IApplication
from .dialogue import ConversationStore, DialogueEngine, IDialogueEngine
from .errors import AlreadyExists, InvalidInput, LedgerError, NotFound, StoreUnavailable
from .export import export_csv
from .models import (
    Action,
    ButtonEvent,
    CommandEvent,
    ConversationState,
    Debt,
    Debtor,
    DialogueStep,
    Document,
    InboundEvent,
    RenderMode,
    RenderRequest,
    TextEvent,
)
from .storage import ILedgerStore, Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Debtor",
    "Debt",
    "DialogueStep",
    "ConversationState",
    "CommandEvent",
    "TextEvent",
    "ButtonEvent",
    "InboundEvent",
    "RenderMode",
    "RenderRequest",
    "Action",
    "Document",
    # Errors
    "LedgerError",
    "NotFound",
    "AlreadyExists",
    "InvalidInput",
    "StoreUnavailable",
    # Components
    "ILedgerStore",
    "Storage",
    "ConversationStore",
    "IDialogueEngine",
    "DialogueEngine",
    "export_csv",
]
