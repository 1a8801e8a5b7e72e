"""Dialogue module."""

from .engine import DialogueEngine, IDialogueEngine
from .payloads import ButtonAction, ButtonPayload, decode_payload, encode_payload
from .state import ConversationStore

__all__ = [
    "DialogueEngine",
    "IDialogueEngine",
    "ConversationStore",
    "ButtonAction",
    "ButtonPayload",
    "decode_payload",
    "encode_payload",
]
