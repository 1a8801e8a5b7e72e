"""Ledger data models."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable


@dataclass
class Debtor:
    """A named party, scoped to one chat, who may owe zero or more debts."""

    id: int
    chat_id: int
    name: str  # unique per chat_id
    payment_date: date | None = None  # expected payment date
    payment_amount: Decimal | None = None  # expected payment amount


@dataclass
class Debt:
    """One obligation of a debtor."""

    id: int
    debtor_id: int
    amount: Decimal
    reason: str


def total_debt(debts: Iterable[Debt]) -> Decimal:
    """Sum of debt amounts. Always derived from the debts given, never stored."""
    return sum((debt.amount for debt in debts), Decimal("0"))
