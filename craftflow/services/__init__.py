from craftflow.services.ledger_service import LedgerSnapshot, LedgerStore, build_ledger
from craftflow.services.persistence import MemoryBlobStore, PersistenceError, SqlBlobStore
from craftflow.services.report_service import (
    dashboard_summary,
    margin_report,
    sales_report,
    stock_levels,
    stock_report,
)

__all__ = [
    "LedgerSnapshot",
    "LedgerStore",
    "MemoryBlobStore",
    "PersistenceError",
    "SqlBlobStore",
    "build_ledger",
    "dashboard_summary",
    "margin_report",
    "sales_report",
    "stock_levels",
    "stock_report",
]
