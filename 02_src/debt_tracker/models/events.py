"""Inbound events and outbound render requests."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


@dataclass
class CommandEvent:
    """A slash command such as ``/add``."""

    chat_id: int
    command: str


@dataclass
class TextEvent:
    """Free text typed by the user."""

    chat_id: int
    text: str


@dataclass
class ButtonEvent:
    """An inline button press on a previously rendered message."""

    chat_id: int
    payload: str
    message_id: int | None = None  # message carrying the pressed button


InboundEvent = Union[CommandEvent, TextEvent, ButtonEvent]


class RenderMode(str, Enum):
    """How the presentation adapter should show a render request."""

    SEND = "send"
    EDIT = "edit"


@dataclass
class Action:
    """A labeled button with an opaque payload."""

    label: str
    payload: str


@dataclass
class Document:
    """A file attached to a render request (CSV export)."""

    filename: str
    content: bytes


@dataclass
class RenderRequest:
    """Plain text plus optional rows of actions for the presentation adapter."""

    chat_id: int
    text: str
    mode: RenderMode = RenderMode.SEND
    message_id: int | None = None  # set when mode is EDIT
    actions: list[list[Action]] = field(default_factory=list)
    document: Document | None = None

    @property
    def payloads(self) -> list[str]:
        """All action payloads, row by row."""
        return [action.payload for row in self.actions for action in row]
