from fastapi import APIRouter, Depends, status

from craftflow.dependencies import get_ledger, require_login_api
from craftflow.schemas.ledger import Nota, NotaCreate
from craftflow.services.ledger_service import LedgerStore

router = APIRouter(prefix="/notas", tags=["Notas"])


@router.get("", response_model=list[Nota], response_model_by_alias=False)
def list_notas(ledger: LedgerStore = Depends(get_ledger)):
    return list(ledger.notas)


@router.post(
    "",
    response_model=Nota,
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_login_api)],
)
def create_nota(payload: NotaCreate, ledger: LedgerStore = Depends(get_ledger)):
    return ledger.add_nota(payload)


__all__ = ["router"]
