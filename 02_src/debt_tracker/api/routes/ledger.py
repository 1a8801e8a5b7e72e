"""Read-only ledger API routes."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from ...app import IApplication
from ...errors import NotFound, StoreUnavailable
from ...export import export_csv
from ...models import total_debt


class DebtResponse(BaseModel):
    """Response model for a debt."""

    id: int
    amount: Decimal
    reason: str


class DebtorResponse(BaseModel):
    """Response model for a debtor with its debts and derived total."""

    id: int
    name: str
    payment_date: date | None
    payment_amount: Decimal | None
    total_debt: Decimal
    debts: list[DebtResponse]


def create_ledger_router(app: IApplication) -> APIRouter:
    """Create ledger router."""
    router = APIRouter(prefix="/api/chats", tags=["ledger"])

    @router.get("/{chat_id}/debtors", response_model=list[DebtorResponse])
    async def get_debtors(chat_id: int) -> list[dict]:
        """Snapshot of a chat's debtors; totals are computed on every call."""
        try:
            result = []
            for debtor in await app.storage.list_debtors(chat_id):
                debts = await app.storage.list_debts(debtor.id)
                result.append(
                    {
                        "id": debtor.id,
                        "name": debtor.name,
                        "payment_date": debtor.payment_date,
                        "payment_amount": debtor.payment_amount,
                        "total_debt": total_debt(debts),
                        "debts": [
                            {"id": d.id, "amount": d.amount, "reason": d.reason}
                            for d in debts
                        ],
                    }
                )
            return result
        except StoreUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))

    @router.get("/{chat_id}/export.csv")
    async def get_export(chat_id: int) -> Response:
        """CSV export of a chat's ledger."""
        try:
            content = await export_csv(app.storage, chat_id)
        except NotFound:
            raise HTTPException(status_code=404, detail="No debtors to export")
        except StoreUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))

        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="debts_{chat_id}.csv"'},
        )

    return router
