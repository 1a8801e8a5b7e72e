"""Read-only CSV snapshot of a chat's ledger."""

import csv
import io

from ..errors import NotFound
from ..models import total_debt
from ..storage import ILedgerStore

EXPORT_HEADER = [
    "Debtor Name",
    "Total Debt",
    "Payment Date",
    "Payment Amount",
    "Debt Reason",
    "Debt Amount",
]


async def export_csv(store: ILedgerStore, chat_id: int) -> str:
    """Render every debtor of the chat as CSV, one row per debt.

    Debtors without debts get a single row with an empty reason and 0.00.
    Raises NotFound when the chat has no debtors at all.
    """
    debtors = await store.list_debtors(chat_id)
    if not debtors:
        raise NotFound("debtors for chat", chat_id)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADER)

    for debtor in debtors:
        debts = await store.list_debts(debtor.id)
        prefix = [
            debtor.name,
            f"{total_debt(debts):.2f}",
            debtor.payment_date.strftime("%d.%m.%Y") if debtor.payment_date else "",
            f"{debtor.payment_amount:.2f}" if debtor.payment_amount is not None else "",
        ]
        if not debts:
            writer.writerow(prefix + ["", "0.00"])
            continue
        for debt in debts:
            writer.writerow(prefix + [debt.reason, f"{debt.amount:.2f}"])

    return buffer.getvalue()
