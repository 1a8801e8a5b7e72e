"""SQLite ledger storage implementation."""

import asyncio
import sqlite3
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import AsyncIterator, Iterable, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..errors import AlreadyExists, InvalidInput, LedgerError, NotFound, StoreUnavailable
from ..logging_config import get_logger
from ..models import Debt, Debtor

logger = get_logger(__name__)

DEBTOR_COLUMNS = "id, chat_id, name, payment_date, payment_amount"
DEBT_COLUMNS = "id, debtor_id, amount, reason"

# aiosqlite raises ValueError once its connection is closed
DRIVER_ERRORS = (sqlite3.Error, ValueError)


class ILedgerStore(Protocol):
    """Durable ledger of debtors and their debts."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Debtors
    async def create_debtor(self, name: str, chat_id: int) -> Debtor:
        """Create a debtor. Raises AlreadyExists for a duplicate (name, chat_id)."""
        ...

    async def find_debtor_by_name(self, name: str, chat_id: int) -> Debtor:
        """Get a debtor by name within a chat. Raises NotFound."""
        ...

    async def find_debtor_by_id(self, debtor_id: int) -> Debtor:
        """Get a debtor by ID. Raises NotFound."""
        ...

    async def list_debtors(self, chat_id: int) -> list[Debtor]:
        """List the chat's debtors in a stable order."""
        ...

    async def delete_debtor(self, debtor_id: int) -> None:
        """Delete a debtor and all of its debts atomically."""
        ...

    async def set_payment_date(self, debtor_id: int, payment_date: date | None) -> None:
        """Set or clear the expected payment date."""
        ...

    async def set_payment_amount(
        self, debtor_id: int, payment_amount: Decimal | None
    ) -> None:
        """Set or clear the expected payment amount."""
        ...

    # Debts
    async def create_debt(self, debtor_id: int, amount: Decimal, reason: str) -> Debt:
        """Create a debt for a live debtor."""
        ...

    async def list_debts(self, debtor_id: int) -> list[Debt]:
        """List a debtor's debts in a stable order."""
        ...

    async def get_debt(self, debt_id: int) -> Debt:
        """Get a debt by ID. Raises NotFound."""
        ...

    async def set_debt_amount(self, debt_id: int, amount: Decimal) -> None:
        """Replace a debt's amount."""
        ...

    async def set_debt_reason(self, debt_id: int, reason: str) -> None:
        """Replace a debt's reason."""
        ...

    async def delete_debt(self, debt_id: int) -> None:
        """Delete one debt. A second call raises NotFound."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _require_amount(amount: Decimal | int | str, field: str = "amount") -> Decimal:
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation as e:
        raise InvalidInput(f"{field} is not a number: {amount!r}") from e
    if not value.is_finite() or value <= 0:
        raise InvalidInput(f"{field} must be positive, got {amount!r}")
    return value


def _require_text(text: str, field: str) -> str:
    value = (text or "").strip()
    if not value:
        raise InvalidInput(f"{field} must not be empty")
    return value


def _row_to_debtor(row: Iterable) -> Debtor:
    debtor_id, chat_id, name, payment_date, payment_amount = row
    return Debtor(
        id=debtor_id,
        chat_id=chat_id,
        name=name,
        payment_date=date.fromisoformat(payment_date) if payment_date else None,
        payment_amount=Decimal(payment_amount) if payment_amount is not None else None,
    )


def _row_to_debt(row: Iterable) -> Debt:
    debt_id, debtor_id, amount, reason = row
    return Debt(id=debt_id, debtor_id=debtor_id, amount=Decimal(amount), reason=reason)


class Storage:
    """SQLite ledger storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        # One connection is shared by every coroutine: a transaction or a read
        # holds this lock so no statement from another caller runs inside it.
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)
        await self._conn.execute("PRAGMA foreign_keys = ON")

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()
        logger.info("Ledger storage opened at %s", self._db_path)

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[aiosqlite.Connection]:
        """Run statements as one unit: commit on success, roll back on any error."""
        conn = self._require_conn()
        async with self._lock:
            try:
                yield conn
                await conn.commit()
            except LedgerError:
                await self._rollback(conn)
                raise
            except DRIVER_ERRORS as e:
                await self._rollback(conn)
                logger.error("Storage failure during %s: %s", action, e)
                raise StoreUnavailable(f"{action} failed: {e}") from e

    async def _rollback(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.rollback()
        except DRIVER_ERRORS as e:
            logger.warning("Rollback failed: %s", e)

    async def _fetch_one(self, action: str, query: str, params: tuple) -> tuple | None:
        conn = self._require_conn()
        async with self._lock:
            try:
                cursor = await conn.execute(query, params)
                return await cursor.fetchone()
            except DRIVER_ERRORS as e:
                logger.error("Storage failure during %s: %s", action, e)
                raise StoreUnavailable(f"{action} failed: {e}") from e

    async def _fetch_all(self, action: str, query: str, params: tuple) -> list[tuple]:
        conn = self._require_conn()
        async with self._lock:
            try:
                cursor = await conn.execute(query, params)
                return list(await cursor.fetchall())
            except DRIVER_ERRORS as e:
                logger.error("Storage failure during %s: %s", action, e)
                raise StoreUnavailable(f"{action} failed: {e}") from e

    # Debtors
    async def create_debtor(self, name: str, chat_id: int) -> Debtor:
        """Create a debtor. Raises AlreadyExists for a duplicate (name, chat_id)."""
        name = _require_text(name, "debtor name")

        async with self._transaction("create_debtor") as conn:
            try:
                cursor = await conn.execute(
                    """
                    INSERT INTO debtors (name, chat_id)
                    VALUES (?, ?)
                    """,
                    (name, chat_id),
                )
            except sqlite3.IntegrityError as e:
                raise AlreadyExists(name, chat_id) from e
            debtor_id = cursor.lastrowid

        return Debtor(id=debtor_id, chat_id=chat_id, name=name)

    async def find_debtor_by_name(self, name: str, chat_id: int) -> Debtor:
        """Get a debtor by name within a chat. Raises NotFound."""
        row = await self._fetch_one(
            "find_debtor_by_name",
            f"""
            SELECT {DEBTOR_COLUMNS}
            FROM debtors
            WHERE name = ? AND chat_id = ?
            """,
            (name.strip(), chat_id),
        )
        if not row:
            raise NotFound("debtor", name)
        return _row_to_debtor(row)

    async def find_debtor_by_id(self, debtor_id: int) -> Debtor:
        """Get a debtor by ID. Raises NotFound."""
        row = await self._fetch_one(
            "find_debtor_by_id",
            f"""
            SELECT {DEBTOR_COLUMNS}
            FROM debtors
            WHERE id = ?
            """,
            (debtor_id,),
        )
        if not row:
            raise NotFound("debtor", debtor_id)
        return _row_to_debtor(row)

    async def list_debtors(self, chat_id: int) -> list[Debtor]:
        """List the chat's debtors in creation order."""
        rows = await self._fetch_all(
            "list_debtors",
            f"""
            SELECT {DEBTOR_COLUMNS}
            FROM debtors
            WHERE chat_id = ?
            ORDER BY id ASC
            """,
            (chat_id,),
        )
        return [_row_to_debtor(row) for row in rows]

    async def delete_debtor(self, debtor_id: int) -> None:
        """Delete a debtor; ON DELETE CASCADE removes its debts in the same statement."""
        async with self._transaction("delete_debtor") as conn:
            cursor = await conn.execute("DELETE FROM debtors WHERE id = ?", (debtor_id,))
            if cursor.rowcount == 0:
                raise NotFound("debtor", debtor_id)

    async def set_payment_date(self, debtor_id: int, payment_date: date | None) -> None:
        """Set or clear the expected payment date."""
        value = payment_date.isoformat() if payment_date else None
        async with self._transaction("set_payment_date") as conn:
            cursor = await conn.execute(
                "UPDATE debtors SET payment_date = ? WHERE id = ?",
                (value, debtor_id),
            )
            if cursor.rowcount == 0:
                raise NotFound("debtor", debtor_id)

    async def set_payment_amount(
        self, debtor_id: int, payment_amount: Decimal | None
    ) -> None:
        """Set or clear the expected payment amount."""
        value = None
        if payment_amount is not None:
            value = str(_require_amount(payment_amount, "payment amount"))
        async with self._transaction("set_payment_amount") as conn:
            cursor = await conn.execute(
                "UPDATE debtors SET payment_amount = ? WHERE id = ?",
                (value, debtor_id),
            )
            if cursor.rowcount == 0:
                raise NotFound("debtor", debtor_id)

    # Debts
    async def create_debt(self, debtor_id: int, amount: Decimal, reason: str) -> Debt:
        """Create a debt for a live debtor."""
        amount = _require_amount(amount)
        reason = _require_text(reason, "reason")

        async with self._transaction("create_debt") as conn:
            try:
                cursor = await conn.execute(
                    """
                    INSERT INTO debts (debtor_id, amount, reason)
                    VALUES (?, ?, ?)
                    """,
                    (debtor_id, str(amount), reason),
                )
            except sqlite3.IntegrityError as e:
                # foreign key violation: the debtor is gone
                raise NotFound("debtor", debtor_id) from e
            debt_id = cursor.lastrowid

        return Debt(id=debt_id, debtor_id=debtor_id, amount=amount, reason=reason)

    async def list_debts(self, debtor_id: int) -> list[Debt]:
        """List a debtor's debts in creation order."""
        rows = await self._fetch_all(
            "list_debts",
            f"""
            SELECT {DEBT_COLUMNS}
            FROM debts
            WHERE debtor_id = ?
            ORDER BY id ASC
            """,
            (debtor_id,),
        )
        return [_row_to_debt(row) for row in rows]

    async def get_debt(self, debt_id: int) -> Debt:
        """Get a debt by ID. Raises NotFound."""
        row = await self._fetch_one(
            "get_debt",
            f"""
            SELECT {DEBT_COLUMNS}
            FROM debts
            WHERE id = ?
            """,
            (debt_id,),
        )
        if not row:
            raise NotFound("debt", debt_id)
        return _row_to_debt(row)

    async def set_debt_amount(self, debt_id: int, amount: Decimal) -> None:
        """Replace a debt's amount."""
        amount = _require_amount(amount)
        async with self._transaction("set_debt_amount") as conn:
            cursor = await conn.execute(
                "UPDATE debts SET amount = ? WHERE id = ?",
                (str(amount), debt_id),
            )
            if cursor.rowcount == 0:
                raise NotFound("debt", debt_id)

    async def set_debt_reason(self, debt_id: int, reason: str) -> None:
        """Replace a debt's reason."""
        reason = _require_text(reason, "reason")
        async with self._transaction("set_debt_reason") as conn:
            cursor = await conn.execute(
                "UPDATE debts SET reason = ? WHERE id = ?",
                (reason, debt_id),
            )
            if cursor.rowcount == 0:
                raise NotFound("debt", debt_id)

    async def delete_debt(self, debt_id: int) -> None:
        """Delete one debt. A second call raises NotFound."""
        async with self._transaction("delete_debt") as conn:
            cursor = await conn.execute("DELETE FROM debts WHERE id = ?", (debt_id,))
            if cursor.rowcount == 0:
                raise NotFound("debt", debt_id)

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        async with self._transaction("clear") as conn:
            for table in ["debts", "debtors"]:
                await conn.execute(f"DELETE FROM {table}")
