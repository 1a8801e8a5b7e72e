"""Render requests for prompts, the debtor list and the debtor view."""

from datetime import date
from decimal import Decimal

from ..models import Action, Debt, Debtor, Document, RenderMode, RenderRequest, total_debt
from .payloads import ButtonAction, encode_payload

DATE_FORMAT = "%d.%m.%Y"

START_TEXT = (
    "Hi! I'm DebtTracker, I keep track of who owes you what.\n\n"
    "Commands:\n"
    "/add - add a debt\n"
    "/debts - list debtors and their debts\n"
    "/exportcsv - export everything as CSV\n"
    "/help - help and command list"
)
HELP_TEXT = (
    "DebtTracker commands:\n\n"
    "/add - add a new debt. I'll ask for the debtor's name, the reason and the amount.\n"
    "/debts - list your debtors. Pick one to see their debts, close or edit them.\n"
    "/exportcsv - export your data as a CSV file.\n"
    "/help - show this message."
)
IDLE_HINT = "To add a debt use /add. To see your debts use /debts."
UNKNOWN_COMMAND = "Unknown command. Use /help to see the list of commands."
NO_DEBTORS = "You have no debtors yet. Use /add to add one."
DEBTORS_TITLE = "Your debtors:"
NOTHING_TO_EXPORT = "Nothing to export yet. Add some debtors first."
EXPORT_READY = "Here is your debt export."

ASK_DEBTOR_NAME = "Enter the debtor's name:"
ASK_DEBTOR_NAME_AGAIN = "The name can't be empty. Enter the debtor's name:"
ASK_REASON_AGAIN = "The reason can't be empty. What is the debt for?"
ASK_NEW_AMOUNT = "Enter the new amount:"
ASK_NEW_REASON = "Enter the new reason:"
ASK_PAYMENT_DATE = "Enter the payment date (DD.MM.YYYY or DD.MM.YY):"
ASK_NEW_PAYMENT_DATE = "Enter the new payment date (DD.MM.YYYY or DD.MM.YY):"
ASK_PAYMENT_AMOUNT = "Enter the payment amount:"
ASK_NEW_PAYMENT_AMOUNT = "Enter the new payment amount:"
CHOOSE_EDIT = "What do you want to change?"
USE_BUTTONS = "Please use the buttons above, or start over with a command."

INVALID_INPUT = "That input isn't valid, please try again."
INVALID_AMOUNT = "Please enter a valid amount (a positive number, at most two decimals)."
INVALID_DATE = (
    "Unrecognized date. Please use DD.MM.YYYY or DD.MM.YY, "
    "for example 31.12.2024 or 31.12.24."
)

AMOUNT_UPDATED = "Debt amount updated."
REASON_UPDATED = "Debt reason updated."
DEBT_CLOSED = "Debt closed."
DEBT_ALREADY_CLOSED = "This debt was already closed."
CANCELLED = "Cancelled."
PAYMENT_DATE_CLEARED = "Payment date cleared."
PAYMENT_AMOUNT_CLEARED = "Payment amount cleared."
PAYMENT_AMOUNT_UPDATED = "Payment amount updated."

NO_LONGER_AVAILABLE = "This item is no longer available."
BUTTON_EXPIRED = "This button has expired. Use /debts to start over."
STORE_FAILURE = "Something went wrong, please try again later."


def format_amount(amount: Decimal) -> str:
    return f"{amount:.2f}"


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def plural_debts(count: int) -> str:
    return f"{count} debt" if count == 1 else f"{count} debts"


def button(label: str, action: ButtonAction, entity_id: int) -> Action:
    return Action(label=label, payload=encode_payload(action, entity_id))


def send(chat_id: int, text: str, actions: list[list[Action]] | None = None) -> RenderRequest:
    return RenderRequest(chat_id=chat_id, text=text, actions=actions or [])


def reply(
    chat_id: int,
    text: str,
    message_id: int | None,
    actions: list[list[Action]] | None = None,
) -> RenderRequest:
    """Edit the message a button was pressed on, or send a new one when unknown."""
    if message_id is None:
        return send(chat_id, text, actions)
    return RenderRequest(
        chat_id=chat_id,
        text=text,
        mode=RenderMode.EDIT,
        message_id=message_id,
        actions=actions or [],
    )


# Prompts that carry ledger data

def ask_reason(debtor: Debtor) -> str:
    return f"What is {debtor.name}'s debt for?"


def ask_amount(debtor: Debtor, reason: str) -> str:
    return f"How much does {debtor.name} owe for {reason}?"


def ask_subtract(debt: Debt) -> str:
    return f"How much should be subtracted from the debt of {format_amount(debt.amount)}?"


def debtor_exists(name: str) -> str:
    return f"A debtor named {name} already exists in your list. Please enter a different name."


def debt_added(debtor: Debtor, debt: Debt) -> str:
    return (
        f"Debt added! {debtor.name} owes {format_amount(debt.amount)} "
        f"for {debt.reason}."
    )


def subtract_exceeds(debt: Debt) -> str:
    return (
        "The amount to subtract can't exceed the debt "
        f"({format_amount(debt.amount)}). Enter a smaller amount:"
    )


def debt_settled(debt: Debt) -> str:
    return (
        f"The debt of {format_amount(debt.amount)} for {debt.reason} "
        "is fully paid off and closed."
    )


def debt_reduced(subtracted: Decimal, remainder: Decimal) -> str:
    return (
        f"{format_amount(subtracted)} subtracted from the debt. "
        f"Remaining: {format_amount(remainder)}."
    )


def payment_date_set(debtor: Debtor, value: date) -> str:
    return f"Payment date for {debtor.name} set to {format_date(value)}."


def payment_amount_set(debtor: Debtor, value: Decimal) -> str:
    return f"Payment amount for {debtor.name} set to {format_amount(value)}."


def debtor_deleted(debtor: Debtor) -> str:
    return f"Debtor {debtor.name} and all of their debts were deleted."


# Views

def debtor_list(chat_id: int, entries: list[tuple[Debtor, int]]) -> RenderRequest:
    """One button per debtor, labeled with the number of open debts."""
    rows = [
        [
            button(
                f"{debtor.name} ({plural_debts(count)})",
                ButtonAction.SELECT_DEBTOR,
                debtor.id,
            )
        ]
        for debtor, count in entries
    ]
    return send(chat_id, DEBTORS_TITLE, rows)


def debtor_detail(debtor: Debtor, debts: list[Debt]) -> RenderRequest:
    """The debtor view: each debt, the derived total and the payment plan."""
    lines = [f"{debtor.name}'s debts:", ""]
    rows: list[list[Action]] = []

    for debt in debts:
        lines.append(f"- {format_amount(debt.amount)} for {debt.reason}")
        rows.append(
            [
                button("Edit", ButtonAction.EDIT_DEBT, debt.id),
                button("Close", ButtonAction.CLOSE_DEBT, debt.id),
            ]
        )

    lines.append("")
    lines.append(f"Total debt: {format_amount(total_debt(debts))}")

    if debtor.payment_date is not None:
        lines.append(f"Payment date: {format_date(debtor.payment_date)}")
        rows.append(
            [
                button("Change date", ButtonAction.EDIT_PAYMENT_DATE, debtor.id),
                button("Clear date", ButtonAction.CLEAR_PAYMENT_DATE, debtor.id),
            ]
        )
    else:
        rows.append([button("Set payment date", ButtonAction.SET_PAYMENT_DATE, debtor.id)])

    if debtor.payment_amount is not None:
        lines.append(f"Payment amount: {format_amount(debtor.payment_amount)}")
        rows.append(
            [
                button("Change amount", ButtonAction.EDIT_PAYMENT_AMOUNT, debtor.id),
                button("Clear amount", ButtonAction.CLEAR_PAYMENT_AMOUNT, debtor.id),
            ]
        )
    else:
        rows.append(
            [button("Set payment amount", ButtonAction.SET_PAYMENT_AMOUNT, debtor.id)]
        )

    rows.append(
        [
            button("Add debt", ButtonAction.ADD_DEBT_TO_EXISTING, debtor.id),
            button("Delete debtor", ButtonAction.DELETE_DEBTOR, debtor.id),
        ]
    )
    return send(debtor.chat_id, "\n".join(lines), rows)


def edit_choice(debt: Debt, chat_id: int, message_id: int | None) -> RenderRequest:
    rows = [
        [
            button("Change amount", ButtonAction.EDIT_AMOUNT, debt.id),
            button("Change reason", ButtonAction.EDIT_REASON, debt.id),
            button("Subtract", ButtonAction.SUBTRACT_FROM_DEBT, debt.id),
        ]
    ]
    return reply(chat_id, CHOOSE_EDIT, message_id, rows)


def confirm_close(debt: Debt, chat_id: int, message_id: int | None) -> RenderRequest:
    rows = [
        [
            button("Yes, close", ButtonAction.CONFIRM_CLOSE, debt.id),
            button("Cancel", ButtonAction.CANCEL, debt.debtor_id),
        ]
    ]
    text = (
        f"Are you sure you want to close the debt of {format_amount(debt.amount)} "
        f"for {debt.reason}?"
    )
    return reply(chat_id, text, message_id, rows)


def confirm_delete_debtor(debtor: Debtor, message_id: int | None) -> RenderRequest:
    rows = [
        [
            button("Yes, delete", ButtonAction.CONFIRM_DELETE_DEBTOR, debtor.id),
            button("Cancel", ButtonAction.CANCEL, debtor.id),
        ]
    ]
    text = (
        f"Are you sure you want to delete {debtor.name}? "
        "All of their debts will be deleted too!"
    )
    return reply(debtor.chat_id, text, message_id, rows)


def export_document(chat_id: int, content: str) -> RenderRequest:
    request = send(chat_id, EXPORT_READY)
    request.document = Document(
        filename=f"debts_{chat_id}.csv",
        content=content.encode("utf-8"),
    )
    return request
