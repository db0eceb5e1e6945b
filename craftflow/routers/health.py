from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from craftflow.config import get_settings
from craftflow.dependencies import get_ledger
from craftflow.services.ledger_service import LedgerStore

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(ledger: LedgerStore = Depends(get_ledger)):
    settings = get_settings()
    persistence_errors = ledger.persistence_errors
    return {
        "status": "degraded" if persistence_errors else "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "time": datetime.now(timezone.utc).isoformat(),
        "persistence_errors": persistence_errors,
    }
