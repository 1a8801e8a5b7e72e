"""DialogueEngine implementation."""

from typing import Awaitable, Callable, Iterable, Mapping, Protocol

from ..errors import AlreadyExists, InvalidInput, NotFound, StoreUnavailable
from ..export import export_csv
from ..logging_config import get_logger
from ..models import (
    ButtonEvent,
    CommandEvent,
    ConversationState,
    Debt,
    Debtor,
    DialogueStep,
    InboundEvent,
    RenderRequest,
    TextEvent,
)
from ..storage import ILedgerStore
from . import views
from .parsing import parse_amount, parse_debtor_name, parse_payment_date, parse_reason
from .payloads import ButtonAction, ButtonPayload, decode_payload
from .state import ConversationStore

logger = get_logger(__name__)

Renders = list[RenderRequest]
CommandHandler = Callable[[ConversationState], Awaitable[Renders]]
TextHandler = Callable[[ConversationState, TextEvent], Awaitable[Renders]]
ButtonHandler = Callable[[ConversationState, ButtonEvent, ButtonPayload], Awaitable[Renders]]


class IDialogueEngine(Protocol):
    """Turns one inbound event into ledger effects, a new state and render requests."""

    async def handle(self, event: InboundEvent) -> Renders:
        """Process one event for its chat. Never raises for domain errors."""
        ...


def normalize_command(command: str) -> str:
    """``/Add@DebtTrackerBot extra`` -> ``add``."""
    parts = command.strip().lstrip("/").split()
    if not parts:
        return ""
    return parts[0].split("@", 1)[0].lower()


def _check_exhaustive(kind: str, members: Iterable, handlers: Mapping) -> None:
    missing = [member.value for member in members if member not in handlers]
    if missing:
        raise RuntimeError(f"No {kind} handler for: {', '.join(missing)}")


class DialogueEngine:
    """Per-chat conversation state machine over the ledger."""

    def __init__(self, store: ILedgerStore, conversations: ConversationStore):
        self._store = store
        self._conversations = conversations

        self._commands: dict[str, CommandHandler] = {
            "start": self._cmd_start,
            "help": self._cmd_help,
            "add": self._cmd_add,
            "debts": self._cmd_debts,
            "exportcsv": self._cmd_export,
        }

        # One transition function per step for free text
        self._text_handlers: dict[DialogueStep, TextHandler] = {
            DialogueStep.IDLE: self._on_idle_text,
            DialogueStep.AWAITING_DEBTOR_NAME: self._on_debtor_name,
            DialogueStep.AWAITING_DEBT_REASON: self._on_debt_reason,
            DialogueStep.AWAITING_DEBT_AMOUNT: self._on_debt_amount,
            DialogueStep.AWAITING_EDIT_CHOICE: self._on_text_while_awaiting_button,
            DialogueStep.EDITING_AMOUNT: self._on_new_amount,
            DialogueStep.EDITING_REASON: self._on_new_reason,
            DialogueStep.SUBTRACTING_FROM_DEBT: self._on_subtract,
            DialogueStep.CONFIRMING_CLOSE_DEBT: self._on_text_while_awaiting_button,
            DialogueStep.CONFIRMING_DELETE_DEBTOR: self._on_text_while_awaiting_button,
            DialogueStep.SETTING_PAYMENT_DATE: self._on_payment_date,
            DialogueStep.EDITING_PAYMENT_DATE: self._on_payment_date,
            DialogueStep.SETTING_PAYMENT_AMOUNT: self._on_payment_amount,
            DialogueStep.EDITING_PAYMENT_AMOUNT: self._on_payment_amount,
        }

        self._button_handlers: dict[ButtonAction, ButtonHandler] = {
            ButtonAction.SELECT_DEBTOR: self._on_select_debtor,
            ButtonAction.EDIT_DEBT: self._on_edit_debt,
            ButtonAction.EDIT_AMOUNT: self._on_edit_choice,
            ButtonAction.EDIT_REASON: self._on_edit_choice,
            ButtonAction.SUBTRACT_FROM_DEBT: self._on_edit_choice,
            ButtonAction.CLOSE_DEBT: self._on_close_debt,
            ButtonAction.CONFIRM_CLOSE: self._on_confirm_close,
            ButtonAction.CANCEL: self._on_cancel,
            ButtonAction.ADD_DEBT_TO_EXISTING: self._on_add_debt_to_existing,
            ButtonAction.DELETE_DEBTOR: self._on_delete_debtor,
            ButtonAction.CONFIRM_DELETE_DEBTOR: self._on_confirm_delete_debtor,
            ButtonAction.SET_PAYMENT_DATE: self._on_payment_prompt,
            ButtonAction.EDIT_PAYMENT_DATE: self._on_payment_prompt,
            ButtonAction.SET_PAYMENT_AMOUNT: self._on_payment_prompt,
            ButtonAction.EDIT_PAYMENT_AMOUNT: self._on_payment_prompt,
            ButtonAction.CLEAR_PAYMENT_DATE: self._on_clear_payment,
            ButtonAction.CLEAR_PAYMENT_AMOUNT: self._on_clear_payment,
        }

        _check_exhaustive("dialogue step", DialogueStep, self._text_handlers)
        _check_exhaustive("button action", ButtonAction, self._button_handlers)

    @property
    def conversations(self) -> ConversationStore:
        return self._conversations

    async def handle(self, event: InboundEvent) -> Renders:
        """Process one event under its chat's lock.

        Domain errors never escape: InvalidInput re-prompts, NotFound and
        StoreUnavailable report to the user and reset the chat to idle.
        """
        chat_id = event.chat_id
        async with self._conversations.lock(chat_id):
            state = self._conversations.get(chat_id)
            logger.info(
                "Handling %s for chat %s",
                type(event).__name__,
                chat_id,
                extra={"chat_id": chat_id, "step": state.step.value},
            )
            try:
                return await self._dispatch(state, event)
            except InvalidInput as e:
                logger.info("Invalid input for chat %s: %s", chat_id, e)
                return [views.send(chat_id, views.INVALID_INPUT)]
            except NotFound as e:
                logger.info("Stale reference for chat %s: %s", chat_id, e)
                state.reset()
                return [self._reply_to(event, views.NO_LONGER_AVAILABLE)]
            except StoreUnavailable:
                logger.error(
                    "Store failure while handling chat %s", chat_id, exc_info=True
                )
                state.reset()
                return [views.send(chat_id, views.STORE_FAILURE)]

    async def _dispatch(self, state: ConversationState, event: InboundEvent) -> Renders:
        if isinstance(event, CommandEvent):
            return await self._handle_command(state, event)
        if isinstance(event, TextEvent):
            return await self._text_handlers[state.step](state, event)
        if isinstance(event, ButtonEvent):
            return await self._handle_button(state, event)
        raise TypeError(f"Unsupported event: {event!r}")

    def _reply_to(self, event: InboundEvent, text: str) -> RenderRequest:
        if isinstance(event, ButtonEvent):
            return views.reply(event.chat_id, text, event.message_id)
        return views.send(event.chat_id, text)

    # Resolution: every id is re-read from the store and checked against the chat

    async def _resolve_debtor(self, chat_id: int, debtor_id: int) -> Debtor:
        debtor = await self._store.find_debtor_by_id(debtor_id)
        if debtor.chat_id != chat_id:
            raise NotFound("debtor", debtor_id)
        return debtor

    async def _resolve_debt(self, chat_id: int, debt_id: int) -> tuple[Debt, Debtor]:
        debt = await self._store.get_debt(debt_id)
        debtor = await self._resolve_debtor(chat_id, debt.debtor_id)
        return debt, debtor

    async def _focused_debtor(self, state: ConversationState) -> Debtor:
        if state.debtor_id is None:
            raise NotFound("focused debtor", state.chat_id)
        return await self._resolve_debtor(state.chat_id, state.debtor_id)

    async def _focused_debt(self, state: ConversationState) -> tuple[Debt, Debtor]:
        if state.debt_id is None:
            raise NotFound("focused debt", state.chat_id)
        return await self._resolve_debt(state.chat_id, state.debt_id)

    async def _debtor_view(self, debtor: Debtor) -> RenderRequest:
        debts = await self._store.list_debts(debtor.id)
        return views.debtor_detail(debtor, debts)

    async def _refreshed_view(self, chat_id: int, debtor_id: int | None) -> Renders:
        """Re-read and render the debtor; nothing if it is gone."""
        if debtor_id is None:
            return []
        try:
            debtor = await self._resolve_debtor(chat_id, debtor_id)
        except NotFound:
            return []
        return [await self._debtor_view(debtor)]

    def _expired(self, state: ConversationState, event: ButtonEvent) -> Renders:
        logger.info(
            "Rejected button %r for chat %s in step %s",
            event.payload,
            state.chat_id,
            state.step.value,
        )
        return [views.send(state.chat_id, views.BUTTON_EXPIRED)]

    # Commands

    async def _handle_command(self, state: ConversationState, event: CommandEvent) -> Renders:
        state.reset()
        handler = self._commands.get(normalize_command(event.command))
        if handler is None:
            return [views.send(state.chat_id, views.UNKNOWN_COMMAND)]
        return await handler(state)

    async def _cmd_start(self, state: ConversationState) -> Renders:
        return [views.send(state.chat_id, views.START_TEXT)]

    async def _cmd_help(self, state: ConversationState) -> Renders:
        return [views.send(state.chat_id, views.HELP_TEXT)]

    async def _cmd_add(self, state: ConversationState) -> Renders:
        state.step = DialogueStep.AWAITING_DEBTOR_NAME
        return [views.send(state.chat_id, views.ASK_DEBTOR_NAME)]

    async def _cmd_debts(self, state: ConversationState) -> Renders:
        debtors = await self._store.list_debtors(state.chat_id)
        if not debtors:
            return [views.send(state.chat_id, views.NO_DEBTORS)]
        entries = [
            (debtor, len(await self._store.list_debts(debtor.id))) for debtor in debtors
        ]
        return [views.debtor_list(state.chat_id, entries)]

    async def _cmd_export(self, state: ConversationState) -> Renders:
        try:
            content = await export_csv(self._store, state.chat_id)
        except NotFound:
            return [views.send(state.chat_id, views.NOTHING_TO_EXPORT)]
        return [views.export_document(state.chat_id, content)]

    # Free text

    async def _on_idle_text(self, state: ConversationState, event: TextEvent) -> Renders:
        state.reset()
        return [views.send(state.chat_id, views.IDLE_HINT)]

    async def _on_text_while_awaiting_button(
        self, state: ConversationState, event: TextEvent
    ) -> Renders:
        return [views.send(state.chat_id, views.USE_BUTTONS)]

    async def _on_debtor_name(self, state: ConversationState, event: TextEvent) -> Renders:
        try:
            name = parse_debtor_name(event.text)
        except InvalidInput:
            return [views.send(state.chat_id, views.ASK_DEBTOR_NAME_AGAIN)]

        try:
            debtor = await self._store.find_debtor_by_name(name, state.chat_id)
        except NotFound:
            try:
                debtor = await self._store.create_debtor(name, state.chat_id)
            except AlreadyExists:
                return [views.send(state.chat_id, views.debtor_exists(name))]
            logger.info("Created debtor %s for chat %s", debtor.id, state.chat_id)

        state.debtor_id = debtor.id
        state.step = DialogueStep.AWAITING_DEBT_REASON
        return [views.send(state.chat_id, views.ask_reason(debtor))]

    async def _on_debt_reason(self, state: ConversationState, event: TextEvent) -> Renders:
        try:
            reason = parse_reason(event.text)
        except InvalidInput:
            return [views.send(state.chat_id, views.ASK_REASON_AGAIN)]

        debtor = await self._focused_debtor(state)
        state.draft_reason = reason
        state.step = DialogueStep.AWAITING_DEBT_AMOUNT
        return [views.send(state.chat_id, views.ask_amount(debtor, reason))]

    async def _on_debt_amount(self, state: ConversationState, event: TextEvent) -> Renders:
        try:
            amount = parse_amount(event.text)
        except InvalidInput:
            return [views.send(state.chat_id, views.INVALID_AMOUNT)]

        debtor = await self._focused_debtor(state)
        if state.draft_reason is None:
            raise NotFound("debt draft", state.chat_id)
        debt = await self._store.create_debt(debtor.id, amount, state.draft_reason)
        logger.info("Created debt %s for debtor %s", debt.id, debtor.id)
        state.reset()
        return [views.send(state.chat_id, views.debt_added(debtor, debt))]

    async def _on_new_amount(self, state: ConversationState, event: TextEvent) -> Renders:
        try:
            amount = parse_amount(event.text)
        except InvalidInput:
            return [views.send(state.chat_id, views.INVALID_AMOUNT)]

        debt, debtor = await self._focused_debt(state)
        await self._store.set_debt_amount(debt.id, amount)
        state.reset()
        return [
            views.send(state.chat_id, views.AMOUNT_UPDATED),
            await self._debtor_view(debtor),
        ]

    async def _on_new_reason(self, state: ConversationState, event: TextEvent) -> Renders:
        try:
            reason = parse_reason(event.text)
        except InvalidInput:
            return [views.send(state.chat_id, views.ASK_REASON_AGAIN)]

        debt, debtor = await self._focused_debt(state)
        await self._store.set_debt_reason(debt.id, reason)
        state.reset()
        return [
            views.send(state.chat_id, views.REASON_UPDATED),
            await self._debtor_view(debtor),
        ]

    async def _on_subtract(self, state: ConversationState, event: TextEvent) -> Renders:
        try:
            amount = parse_amount(event.text)
        except InvalidInput:
            return [views.send(state.chat_id, views.INVALID_AMOUNT)]

        # compare against the debt as stored now, not as it was when focused
        debt, debtor = await self._focused_debt(state)
        if amount > debt.amount:
            return [views.send(state.chat_id, views.subtract_exceeds(debt))]

        remainder = debt.amount - amount
        if remainder == 0:
            await self._store.delete_debt(debt.id)
            message = views.debt_settled(debt)
        else:
            await self._store.set_debt_amount(debt.id, remainder)
            message = views.debt_reduced(amount, remainder)

        state.reset()
        return [views.send(state.chat_id, message), await self._debtor_view(debtor)]

    async def _on_payment_date(self, state: ConversationState, event: TextEvent) -> Renders:
        try:
            value = parse_payment_date(event.text)
        except InvalidInput:
            return [views.send(state.chat_id, views.INVALID_DATE)]

        debtor = await self._focused_debtor(state)
        await self._store.set_payment_date(debtor.id, value)
        state.reset()
        return [
            views.send(state.chat_id, views.payment_date_set(debtor, value)),
            *await self._refreshed_view(state.chat_id, debtor.id),
        ]

    async def _on_payment_amount(self, state: ConversationState, event: TextEvent) -> Renders:
        try:
            value = parse_amount(event.text)
        except InvalidInput:
            return [views.send(state.chat_id, views.INVALID_AMOUNT)]

        debtor = await self._focused_debtor(state)
        await self._store.set_payment_amount(debtor.id, value)
        editing = state.step is DialogueStep.EDITING_PAYMENT_AMOUNT
        state.reset()
        text = views.PAYMENT_AMOUNT_UPDATED if editing else views.payment_amount_set(debtor, value)
        return [
            views.send(state.chat_id, text),
            *await self._refreshed_view(state.chat_id, debtor.id),
        ]

    # Buttons

    async def _handle_button(self, state: ConversationState, event: ButtonEvent) -> Renders:
        try:
            payload = decode_payload(event.payload)
        except InvalidInput as e:
            logger.warning("Undecodable button payload for chat %s: %s", state.chat_id, e)
            return self._expired(state, event)
        return await self._button_handlers[payload.action](state, event, payload)

    async def _on_select_debtor(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        state.reset()
        debtor = await self._resolve_debtor(state.chat_id, payload.entity_id)
        return [await self._debtor_view(debtor)]

    async def _on_edit_debt(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        state.reset()
        debt, debtor = await self._resolve_debt(state.chat_id, payload.entity_id)
        state.debtor_id = debtor.id
        state.debt_id = debt.id
        state.step = DialogueStep.AWAITING_EDIT_CHOICE
        return [views.edit_choice(debt, state.chat_id, event.message_id)]

    async def _on_edit_choice(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        if (
            state.step is not DialogueStep.AWAITING_EDIT_CHOICE
            or state.debt_id != payload.entity_id
        ):
            return self._expired(state, event)

        debt, _ = await self._resolve_debt(state.chat_id, payload.entity_id)
        if payload.action is ButtonAction.EDIT_AMOUNT:
            state.step, prompt = DialogueStep.EDITING_AMOUNT, views.ASK_NEW_AMOUNT
        elif payload.action is ButtonAction.EDIT_REASON:
            state.step, prompt = DialogueStep.EDITING_REASON, views.ASK_NEW_REASON
        else:
            state.step, prompt = DialogueStep.SUBTRACTING_FROM_DEBT, views.ask_subtract(debt)
        return [views.reply(state.chat_id, prompt, event.message_id)]

    async def _on_close_debt(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        state.reset()
        debt, debtor = await self._resolve_debt(state.chat_id, payload.entity_id)
        state.debtor_id = debtor.id
        state.debt_id = debt.id
        state.step = DialogueStep.CONFIRMING_CLOSE_DEBT
        return [views.confirm_close(debt, state.chat_id, event.message_id)]

    async def _on_confirm_close(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        if (
            state.step is not DialogueStep.CONFIRMING_CLOSE_DEBT
            or state.debt_id != payload.entity_id
        ):
            return self._expired(state, event)

        debtor_id = state.debtor_id
        state.reset()
        try:
            await self._store.delete_debt(payload.entity_id)
            text = views.DEBT_CLOSED
        except NotFound:
            text = views.DEBT_ALREADY_CLOSED
        return [
            views.reply(state.chat_id, text, event.message_id),
            *await self._refreshed_view(state.chat_id, debtor_id),
        ]

    async def _on_cancel(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        state.reset()
        return [
            views.reply(state.chat_id, views.CANCELLED, event.message_id),
            *await self._refreshed_view(state.chat_id, payload.entity_id),
        ]

    async def _on_add_debt_to_existing(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        state.reset()
        debtor = await self._resolve_debtor(state.chat_id, payload.entity_id)
        state.debtor_id = debtor.id
        state.step = DialogueStep.AWAITING_DEBT_REASON
        return [views.reply(state.chat_id, views.ask_reason(debtor), event.message_id)]

    async def _on_delete_debtor(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        state.reset()
        debtor = await self._resolve_debtor(state.chat_id, payload.entity_id)
        state.debtor_id = debtor.id
        state.step = DialogueStep.CONFIRMING_DELETE_DEBTOR
        return [views.confirm_delete_debtor(debtor, event.message_id)]

    async def _on_confirm_delete_debtor(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        if (
            state.step is not DialogueStep.CONFIRMING_DELETE_DEBTOR
            or state.debtor_id != payload.entity_id
        ):
            return self._expired(state, event)

        state.reset()
        debtor = await self._resolve_debtor(state.chat_id, payload.entity_id)
        await self._store.delete_debtor(debtor.id)
        logger.info("Deleted debtor %s for chat %s", debtor.id, state.chat_id)
        return [views.reply(state.chat_id, views.debtor_deleted(debtor), event.message_id)]

    async def _on_payment_prompt(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        step, prompt = {
            ButtonAction.SET_PAYMENT_DATE: (
                DialogueStep.SETTING_PAYMENT_DATE,
                views.ASK_PAYMENT_DATE,
            ),
            ButtonAction.EDIT_PAYMENT_DATE: (
                DialogueStep.EDITING_PAYMENT_DATE,
                views.ASK_NEW_PAYMENT_DATE,
            ),
            ButtonAction.SET_PAYMENT_AMOUNT: (
                DialogueStep.SETTING_PAYMENT_AMOUNT,
                views.ASK_PAYMENT_AMOUNT,
            ),
            ButtonAction.EDIT_PAYMENT_AMOUNT: (
                DialogueStep.EDITING_PAYMENT_AMOUNT,
                views.ASK_NEW_PAYMENT_AMOUNT,
            ),
        }[payload.action]

        state.reset()
        debtor = await self._resolve_debtor(state.chat_id, payload.entity_id)
        state.debtor_id = debtor.id
        state.step = step
        return [views.reply(state.chat_id, prompt, event.message_id)]

    async def _on_clear_payment(
        self, state: ConversationState, event: ButtonEvent, payload: ButtonPayload
    ) -> Renders:
        state.reset()
        debtor = await self._resolve_debtor(state.chat_id, payload.entity_id)
        if payload.action is ButtonAction.CLEAR_PAYMENT_DATE:
            await self._store.set_payment_date(debtor.id, None)
            text = views.PAYMENT_DATE_CLEARED
        else:
            await self._store.set_payment_amount(debtor.id, None)
            text = views.PAYMENT_AMOUNT_CLEARED
        return [
            views.reply(state.chat_id, text, event.message_id),
            *await self._refreshed_view(state.chat_id, debtor.id),
        ]
