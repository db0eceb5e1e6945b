from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from craftflow.core.constants import ADJUSTMENT_REASONS
from craftflow.dependencies import get_ledger, require_login_api
from craftflow.schemas.ledger import StockAdjustment, StockAdjustmentCreate
from craftflow.services.ledger_service import LedgerStore

router = APIRouter(prefix="/stock-adjustments", tags=["Stock Adjustments"])


@router.get("", response_model=list[StockAdjustment], response_model_by_alias=False)
def list_stock_adjustments(
    product_id: Optional[str] = Query(None, description="Only adjustments for this product"),
    ledger: LedgerStore = Depends(get_ledger),
):
    adjustments = ledger.stock_adjustments
    if product_id:
        return [a for a in adjustments if a.product_id == product_id]
    return list(adjustments)


@router.get("/reasons")
def list_reasons():
    return {"reasons": list(ADJUSTMENT_REASONS)}


@router.post(
    "",
    response_model=StockAdjustment,
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_login_api)],
)
def create_stock_adjustment(payload: StockAdjustmentCreate, ledger: LedgerStore = Depends(get_ledger)):
    return ledger.add_stock_adjustment(payload)


__all__ = ["router"]
