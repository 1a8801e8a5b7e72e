"""Inline button payloads: ``<action>:<entity id>``."""

from dataclasses import dataclass
from enum import Enum

from ..errors import InvalidInput

SEPARATOR = ":"


class ButtonAction(str, Enum):
    """Every action a rendered button can carry."""

    # debtor list
    SELECT_DEBTOR = "select_debtor"
    # per-debt actions, id is a debt id
    EDIT_DEBT = "edit_debt"
    EDIT_AMOUNT = "edit_amount"
    EDIT_REASON = "edit_reason"
    SUBTRACT_FROM_DEBT = "subtract_from_debt"
    CLOSE_DEBT = "close_debt"
    CONFIRM_CLOSE = "confirm_close"
    # per-debtor actions, id is a debtor id
    CANCEL = "cancel"
    ADD_DEBT_TO_EXISTING = "add_debt_to_existing"
    DELETE_DEBTOR = "delete_debtor"
    CONFIRM_DELETE_DEBTOR = "confirm_delete_debtor"
    SET_PAYMENT_DATE = "set_payment_date"
    EDIT_PAYMENT_DATE = "edit_payment_date"
    CLEAR_PAYMENT_DATE = "clear_payment_date"
    SET_PAYMENT_AMOUNT = "set_payment_amount"
    EDIT_PAYMENT_AMOUNT = "edit_payment_amount"
    CLEAR_PAYMENT_AMOUNT = "clear_payment_amount"


@dataclass(frozen=True)
class ButtonPayload:
    """A decoded button payload. The id is only a reference and must be re-resolved."""

    action: ButtonAction
    entity_id: int

    def encode(self) -> str:
        return f"{self.action.value}{SEPARATOR}{self.entity_id}"


def encode_payload(action: ButtonAction, entity_id: int) -> str:
    return ButtonPayload(action, entity_id).encode()


def decode_payload(raw: str) -> ButtonPayload:
    """Decode ``<action>:<id>``. Raises InvalidInput for anything malformed."""
    action_name, sep, id_text = (raw or "").partition(SEPARATOR)
    if not sep:
        raise InvalidInput(f"payload without entity id: {raw!r}")
    try:
        action = ButtonAction(action_name)
    except ValueError as e:
        raise InvalidInput(f"unknown button action: {action_name!r}") from e
    try:
        entity_id = int(id_text)
    except ValueError as e:
        raise InvalidInput(f"bad entity id in payload: {raw!r}") from e
    return ButtonPayload(action, entity_id)
