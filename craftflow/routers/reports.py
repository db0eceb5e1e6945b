from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from craftflow.config import get_settings
from craftflow.dependencies import get_ledger
from craftflow.services.ledger_service import LedgerStore
from craftflow.services.report_service import (
    dashboard_summary,
    margin_report,
    sales_report,
    stock_levels,
    stock_report,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


def _encode(report):
    return jsonable_encoder(report, by_alias=False)


@router.get("/dashboard")
def dashboard(ledger: LedgerStore = Depends(get_ledger)):
    settings = get_settings()
    return _encode(dashboard_summary(ledger.snapshot(), recent_limit=settings.RECENT_ACTIVITY_LIMIT))


@router.get("/sales")
def sales(
    top: int = Query(5, ge=1, le=100, description="Best sellers to list"),
    ledger: LedgerStore = Depends(get_ledger),
):
    return _encode(sales_report(ledger.sales, top_n=top))


@router.get("/stock")
def stock(ledger: LedgerStore = Depends(get_ledger)):
    settings = get_settings()
    return _encode(stock_report(ledger.products, low_stock_threshold=settings.LOW_STOCK_THRESHOLD))


@router.get("/margins")
def margins(
    top: int = Query(5, ge=1, le=100, description="Products to list"),
    ledger: LedgerStore = Depends(get_ledger),
):
    return _encode(margin_report(ledger.products, top_n=top))


@router.get("/stock-levels")
def levels(
    search: Optional[str] = Query(None, description="Name or type search"),
    product_type: Optional[str] = Query(None, alias="type", description="Exact product type"),
    ledger: LedgerStore = Depends(get_ledger),
):
    settings = get_settings()
    return _encode(
        stock_levels(
            ledger.products,
            search=search,
            product_type=product_type,
            low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
        )
    )


@router.get("/consistency")
def consistency(ledger: LedgerStore = Depends(get_ledger)):
    mismatched = ledger.verify()
    return {"consistent": not mismatched, "mismatched_product_ids": mismatched}


__all__ = ["router"]
