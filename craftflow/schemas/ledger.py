from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from craftflow.core.dates import normalize_timestamp


def _coerce_timestamp(value):
    if value is None:
        return None
    normalized = normalize_timestamp(value)
    if normalized is None:
        raise ValueError(f"Invalid timestamp: {value!r}")
    return normalized


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


Timestamp = Annotated[datetime, BeforeValidator(_coerce_timestamp)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


class LedgerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        allow_inf_nan=False,
        frozen=True,
    )


# ==============================
# Entities
# ==============================


class Product(LedgerModel):
    id: str
    name: str
    type: str
    barcode: OptionalText = None
    cost_price: float = Field(ge=0)
    selling_price: float = Field(ge=0)
    current_stock: int = 0
    created_at: Timestamp


class StockAdjustment(LedgerModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    quantity_change: int
    reason: str
    date: Timestamp
    created_at: Timestamp


class Sale(LedgerModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    quantity_sold: int
    price_per_item: float
    total_amount: float
    sale_date: Timestamp
    created_at: Timestamp


class Nota(LedgerModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    note_number: OptionalText = None
    date: Timestamp
    created_at: Timestamp


# ==============================
# Operation payloads
# ==============================


class ProductCreate(LedgerModel):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    barcode: OptionalText = None
    cost_price: float = Field(ge=0)
    selling_price: float = Field(ge=0)
    initial_stock: int = 0


class ProductEdit(LedgerModel):
    """Editable product fields, replaced wholesale.

    ``current_stock`` is optional; when present and different from the stored
    value the ledger records a reconciling adjustment instead of overwriting it.
    """

    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    barcode: OptionalText = None
    cost_price: float = Field(ge=0)
    selling_price: float = Field(ge=0)
    current_stock: Optional[int] = None


class ProductUpdate(ProductEdit):
    id: str = Field(min_length=1)


class StockAdjustmentCreate(LedgerModel):
    product_id: str = Field(min_length=1)
    quantity_change: int
    reason: str = Field(min_length=1)
    date: Optional[Timestamp] = None


class StockOverride(LedgerModel):
    new_stock: int
    reason: OptionalText = None
    date: Optional[Timestamp] = None


class NotaCreate(LedgerModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    note_number: OptionalText = None
    date: Optional[Timestamp] = None


class SaleCreate(LedgerModel):
    product_id: str = Field(min_length=1)
    quantity_sold: int = Field(gt=0)
    price_per_item: float = Field(ge=0)
    sale_date: Optional[Timestamp] = None


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
