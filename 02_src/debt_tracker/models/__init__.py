"""Core data models for Debt Tracker."""

from .dialogue import ConversationState, DialogueStep
from .events import (
    Action,
    ButtonEvent,
    CommandEvent,
    Document,
    InboundEvent,
    RenderMode,
    RenderRequest,
    TextEvent,
)
from .ledger import Debt, Debtor, total_debt

__all__ = [
    # Ledger
    "Debtor",
    "Debt",
    "total_debt",
    # Dialogue
    "DialogueStep",
    "ConversationState",
    # Events
    "CommandEvent",
    "TextEvent",
    "ButtonEvent",
    "InboundEvent",
    "RenderMode",
    "Action",
    "Document",
    "RenderRequest",
]
