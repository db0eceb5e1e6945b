from fastapi import Request

from craftflow.core.auth import require_login_api
from craftflow.services.ledger_service import LedgerStore


def get_ledger(request: Request) -> LedgerStore:
    return request.app.state.ledger


__all__ = ["get_ledger", "require_login_api"]
