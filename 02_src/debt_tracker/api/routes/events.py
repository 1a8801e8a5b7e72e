"""Dialogue event API routes."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, model_validator

from ...app import IApplication
from ...logging_config import get_logger
from ...models import (
    ButtonEvent,
    CommandEvent,
    InboundEvent,
    RenderMode,
    RenderRequest,
    TextEvent,
)

logger = get_logger(__name__)


class EventRequest(BaseModel):
    """One inbound chat event: exactly one of command, text or payload."""

    chat_id: int
    command: str | None = None
    text: str | None = None
    payload: str | None = None
    message_id: int | None = None

    @model_validator(mode="after")
    def check_single_kind(self) -> "EventRequest":
        kinds = [v for v in (self.command, self.text, self.payload) if v is not None]
        if len(kinds) != 1:
            raise ValueError("exactly one of command, text or payload is required")
        return self

    def to_event(self) -> InboundEvent:
        if self.command is not None:
            return CommandEvent(chat_id=self.chat_id, command=self.command)
        if self.payload is not None:
            return ButtonEvent(
                chat_id=self.chat_id, payload=self.payload, message_id=self.message_id
            )
        return TextEvent(chat_id=self.chat_id, text=self.text or "")


class ActionResponse(BaseModel):
    """A labeled button."""

    label: str
    payload: str


class DocumentResponse(BaseModel):
    """An attached text document."""

    filename: str
    content: str


class RenderResponse(BaseModel):
    """A render request for the presentation adapter."""

    chat_id: int
    text: str
    mode: RenderMode
    message_id: int | None = None
    actions: list[list[ActionResponse]] = Field(default_factory=list)
    document: DocumentResponse | None = None

    @classmethod
    def from_render(cls, render: RenderRequest) -> "RenderResponse":
        document = None
        if render.document is not None:
            document = DocumentResponse(
                filename=render.document.filename,
                content=render.document.content.decode("utf-8"),
            )
        return cls(
            chat_id=render.chat_id,
            text=render.text,
            mode=render.mode,
            message_id=render.message_id,
            actions=[
                [ActionResponse(label=a.label, payload=a.payload) for a in row]
                for row in render.actions
            ],
            document=document,
        )


class EventResponse(BaseModel):
    """Response model for an event."""

    renders: list[RenderResponse]


def create_events_router(app: IApplication) -> APIRouter:
    """Create events router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.post("/events", response_model=EventResponse)
    async def post_event(request: EventRequest) -> dict:
        """Feed one event to the dialogue engine."""
        try:
            renders = await app.engine.handle(request.to_event())
        except Exception as e:
            logger.error("Event handling failed for chat %s", request.chat_id, exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))
        return {"renders": [RenderResponse.from_render(r) for r in renders]}

    return router
