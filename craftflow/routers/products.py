from fastapi import APIRouter, Depends, HTTPException, status

from craftflow.dependencies import get_ledger, require_login_api
from craftflow.schemas.ledger import (
    Product,
    ProductCreate,
    ProductEdit,
    StockAdjustment,
    StockOverride,
)
from craftflow.services.ledger_service import LedgerStore

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[Product], response_model_by_alias=False)
def list_products(ledger: LedgerStore = Depends(get_ledger)):
    return list(ledger.products)


@router.post(
    "",
    response_model=Product,
    response_model_by_alias=False,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_login_api)],
)
def create_product(payload: ProductCreate, ledger: LedgerStore = Depends(get_ledger)):
    return ledger.add_product(payload)


@router.get("/barcode/{barcode}", response_model=Product, response_model_by_alias=False)
def get_product_by_barcode(barcode: str, ledger: LedgerStore = Depends(get_ledger)):
    product = ledger.get_product_by_barcode(barcode)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return product


@router.get("/{product_id}", response_model=Product, response_model_by_alias=False)
def get_product(product_id: str, ledger: LedgerStore = Depends(get_ledger)):
    product = ledger.get_product_by_id(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return product


@router.put(
    "/{product_id}",
    response_model=Product,
    response_model_by_alias=False,
    dependencies=[Depends(require_login_api)],
)
def update_product(product_id: str, payload: ProductEdit, ledger: LedgerStore = Depends(get_ledger)):
    return ledger.update_product({**payload.model_dump(), "id": product_id})


@router.post(
    "/{product_id}/stock",
    response_model=StockAdjustment | None,
    response_model_by_alias=False,
    dependencies=[Depends(require_login_api)],
)
def set_product_stock(product_id: str, payload: StockOverride, ledger: LedgerStore = Depends(get_ledger)):
    return ledger.set_current_stock(product_id, payload)


@router.delete("/{product_id}", dependencies=[Depends(require_login_api)])
def delete_product(product_id: str, ledger: LedgerStore = Depends(get_ledger)):
    if ledger.get_product_by_id(product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return {"deleted": ledger.delete_product(product_id)}


__all__ = ["router"]
