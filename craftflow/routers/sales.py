from fastapi import APIRouter, Depends, status

from craftflow.dependencies import get_ledger, require_login_api
from craftflow.schemas.ledger import Sale, SaleCreate
from craftflow.services.ledger_service import LedgerStore

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.get("", response_model=list[Sale], response_model_by_alias=False)
def list_sales(ledger: LedgerStore = Depends(get_ledger)):
    return list(ledger.sales)


@router.post(
    "",
    response_model=Sale,
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_login_api)],
)
def create_sale(payload: SaleCreate, ledger: LedgerStore = Depends(get_ledger)):
    return ledger.add_sale(payload)


@router.delete("", dependencies=[Depends(require_login_api)])
def clear_sales(ledger: LedgerStore = Depends(get_ledger)):
    return {"cleared": ledger.clear_sales()}


__all__ = ["router"]
