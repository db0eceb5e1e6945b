from craftflow.schemas.ledger import (
    Nota,
    NotaCreate,
    Product,
    ProductCreate,
    ProductEdit,
    ProductUpdate,
    Sale,
    SaleCreate,
    StockAdjustment,
    StockAdjustmentCreate,
    StockOverride,
)

__all__ = [
    "Nota",
    "NotaCreate",
    "Product",
    "ProductCreate",
    "ProductEdit",
    "ProductUpdate",
    "Sale",
    "SaleCreate",
    "StockAdjustment",
    "StockAdjustmentCreate",
    "StockOverride",
]
