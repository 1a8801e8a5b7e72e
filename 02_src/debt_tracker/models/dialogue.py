"""Conversation state models."""

from dataclasses import dataclass
from enum import Enum


class DialogueStep(str, Enum):
    """Which multi-turn dialog step a chat is waiting on."""

    IDLE = "idle"
    AWAITING_DEBTOR_NAME = "awaiting_debtor_name"
    AWAITING_DEBT_REASON = "awaiting_debt_reason"
    AWAITING_DEBT_AMOUNT = "awaiting_debt_amount"
    AWAITING_EDIT_CHOICE = "awaiting_edit_choice"
    EDITING_AMOUNT = "editing_amount"
    EDITING_REASON = "editing_reason"
    SUBTRACTING_FROM_DEBT = "subtracting_from_debt"
    CONFIRMING_CLOSE_DEBT = "confirming_close_debt"
    CONFIRMING_DELETE_DEBTOR = "confirming_delete_debtor"
    SETTING_PAYMENT_DATE = "setting_payment_date"
    EDITING_PAYMENT_DATE = "editing_payment_date"
    SETTING_PAYMENT_AMOUNT = "setting_payment_amount"
    EDITING_PAYMENT_AMOUNT = "editing_payment_amount"


@dataclass
class ConversationState:
    """Ephemeral per-chat dialog state. Focus is kept by id only."""

    chat_id: int
    step: DialogueStep = DialogueStep.IDLE
    debtor_id: int | None = None
    debt_id: int | None = None
    draft_reason: str | None = None

    def reset(self) -> None:
        """Return to the idle baseline and drop any focus."""
        self.step = DialogueStep.IDLE
        self.debtor_id = None
        self.debt_id = None
        self.draft_reason = None

    @property
    def is_idle(self) -> bool:
        return (
            self.step is DialogueStep.IDLE
            and self.debtor_id is None
            and self.debt_id is None
            and self.draft_reason is None
        )
