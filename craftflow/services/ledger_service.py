"""In-memory ledger of products, stock adjustments, sales and notas.

Every product's ``current_stock`` is the signed sum of its stock adjustments.
Sales and notas never touch stock directly: each one is recorded together with
the adjustment it implies, in a single state transition.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from craftflow.core.constants import (
    COLLECTION_KEYS,
    NOTAS_KEY,
    PRODUCTS_KEY,
    REASON_INITIAL_STOCK,
    REASON_NOTA_ENTRY,
    REASON_STOCK_COUNT_CORRECTION,
    SALES_KEY,
    STOCK_ADJUSTMENTS_KEY,
    sale_reason,
)
from craftflow.core.dates import normalize_timestamp, same_day, utc_now
from craftflow.core.errors import (
    DuplicateBarcodeError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from craftflow.core.ids import generate_id
from craftflow.schemas.ledger import (
    Nota,
    NotaCreate,
    Product,
    ProductCreate,
    ProductUpdate,
    Sale,
    SaleCreate,
    StockAdjustment,
    StockAdjustmentCreate,
    StockOverride,
)
from craftflow.services.persistence import BlobStore

logger = logging.getLogger(__name__)

_COLLECTION_ADAPTERS = {
    PRODUCTS_KEY: TypeAdapter(list[Product]),
    STOCK_ADJUSTMENTS_KEY: TypeAdapter(list[StockAdjustment]),
    SALES_KEY: TypeAdapter(list[Sale]),
    NOTAS_KEY: TypeAdapter(list[Nota]),
}


@dataclass(frozen=True)
class LedgerSnapshot:
    products: tuple[Product, ...] = ()
    stock_adjustments: tuple[StockAdjustment, ...] = ()
    sales: tuple[Sale, ...] = ()
    notas: tuple[Nota, ...] = ()

    def product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def collection(self, key: str) -> tuple:
        return getattr(self, key)


def _parse(model, data):
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value")
        raise ValidationError(f"{field}: {message}" if field else message, field=field or None) from exc


def _insert_by_date_desc(items: tuple, item, key: Callable) -> tuple:
    # Stable: an item dated like existing ones lands after them.
    return tuple(sorted(items + (item,), key=key, reverse=True))


def _adjustment_date(adjustment: StockAdjustment):
    return adjustment.date


def _replace_product(products: tuple[Product, ...], updated: Product) -> tuple[Product, ...]:
    return tuple(updated if product.id == updated.id else product for product in products)


def stock_totals(adjustments: Iterable[StockAdjustment]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for adjustment in adjustments:
        totals[adjustment.product_id] = totals.get(adjustment.product_id, 0) + adjustment.quantity_change
    return totals


class LedgerStore:
    def __init__(
        self,
        blob_store: BlobStore,
        *,
        key_prefix: str = "dsystem_",
        id_factory: Callable[[], str] = generate_id,
        clock: Callable = utc_now,
        enforce_unique_barcode: bool = True,
    ):
        self._blob_store = blob_store
        self._storage_keys = {key: f"{key_prefix}{key}" for key in COLLECTION_KEYS}
        self._id_factory = id_factory
        self._clock = clock
        self._enforce_unique_barcode = enforce_unique_barcode
        self._state = LedgerSnapshot()
        self._failed_saves: dict[str, str] = {}
        self._lock = threading.RLock()

    # ==============================
    # Read access
    # ==============================

    @property
    def products(self) -> tuple[Product, ...]:
        return self._state.products

    @property
    def stock_adjustments(self) -> tuple[StockAdjustment, ...]:
        return self._state.stock_adjustments

    @property
    def sales(self) -> tuple[Sale, ...]:
        return self._state.sales

    @property
    def notas(self) -> tuple[Nota, ...]:
        return self._state.notas

    @property
    def persistence_errors(self) -> dict[str, str]:
        with self._lock:
            return dict(self._failed_saves)

    def snapshot(self) -> LedgerSnapshot:
        return self._state

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return self._state.product(product_id)

    def get_product_by_barcode(self, barcode: Optional[str]) -> Optional[Product]:
        if barcode is None or not str(barcode).strip():
            return None
        barcode = str(barcode).strip()
        for product in self._state.products:
            if product.barcode == barcode:
                return product
        return None

    # ==============================
    # Products
    # ==============================

    def add_product(self, data) -> Product:
        payload: ProductCreate = _parse(ProductCreate, data)
        with self._lock:
            state = self._state
            self._check_barcode(state, payload.barcode)

            created_at = self._now()
            product = Product(
                id=self._id_factory(),
                name=payload.name,
                type=payload.type,
                barcode=payload.barcode,
                cost_price=payload.cost_price,
                selling_price=payload.selling_price,
                current_stock=0,
                created_at=created_at,
            )
            state = replace(state, products=state.products + (product,))
            changed = {PRODUCTS_KEY}

            if payload.initial_stock != 0:
                state, _ = self._apply_adjustment(
                    state,
                    product.id,
                    payload.initial_stock,
                    REASON_INITIAL_STOCK,
                    effective_date=created_at,
                    created_at=created_at,
                )
                changed.add(STOCK_ADJUSTMENTS_KEY)

            self._commit(state, changed)
            logger.info(
                "Added product %s (%s) with initial stock %d",
                product.id,
                product.name,
                payload.initial_stock,
            )
            return state.product(product.id)

    def update_product(self, data) -> Product:
        payload: ProductUpdate = _parse(ProductUpdate, data)
        with self._lock:
            state = self._state
            existing = self._require_product(state, payload.id)
            self._check_barcode(state, payload.barcode, exclude_id=existing.id)

            updated = existing.model_copy(
                update={
                    "name": payload.name,
                    "type": payload.type,
                    "barcode": payload.barcode,
                    "cost_price": payload.cost_price,
                    "selling_price": payload.selling_price,
                }
            )
            state = replace(state, products=_replace_product(state.products, updated))
            changed = {PRODUCTS_KEY}

            if payload.current_stock is not None and payload.current_stock != existing.current_stock:
                now = self._now()
                state, _ = self._apply_adjustment(
                    state,
                    existing.id,
                    payload.current_stock - existing.current_stock,
                    REASON_STOCK_COUNT_CORRECTION,
                    effective_date=now,
                    created_at=now,
                )
                changed.add(STOCK_ADJUSTMENTS_KEY)

            self._commit(state, changed)
            logger.info("Updated product %s", existing.id)
            return state.product(existing.id)

    def set_current_stock(self, product_id: str, data) -> Optional[StockAdjustment]:
        """Administrative override of a product's stock level.

        Records the difference as a reconciling adjustment so the stock stays
        equal to the adjustment sum. Returns None when nothing changes.
        """
        payload: StockOverride = _parse(StockOverride, data)
        with self._lock:
            state = self._state
            product = self._require_product(state, product_id)
            delta = payload.new_stock - product.current_stock
            if delta == 0:
                return None

            now = self._now()
            state, adjustment = self._apply_adjustment(
                state,
                product.id,
                delta,
                payload.reason or REASON_STOCK_COUNT_CORRECTION,
                effective_date=payload.date or now,
                created_at=now,
            )
            self._commit(state, {PRODUCTS_KEY, STOCK_ADJUSTMENTS_KEY})
            logger.info(
                "Stock override for %s: %d -> %d",
                product.id,
                product.current_stock,
                payload.new_stock,
            )
            return adjustment

    def delete_product(self, product_id: str) -> dict[str, int]:
        with self._lock:
            state = self._state
            if state.product(product_id) is None:
                logger.warning("Delete requested for unknown product %s", product_id)
                return {key: 0 for key in COLLECTION_KEYS}

            next_state = LedgerSnapshot(
                products=tuple(p for p in state.products if p.id != product_id),
                stock_adjustments=tuple(
                    a for a in state.stock_adjustments if a.product_id != product_id
                ),
                sales=tuple(s for s in state.sales if s.product_id != product_id),
                notas=tuple(n for n in state.notas if n.product_id != product_id),
            )
            removed = {
                key: len(state.collection(key)) - len(next_state.collection(key))
                for key in COLLECTION_KEYS
            }
            self._commit(next_state, {key for key, count in removed.items() if count})
            logger.info("Deleted product %s and dependents %s", product_id, removed)
            return removed

    # ==============================
    # Stock movements
    # ==============================

    def add_stock_adjustment(self, data) -> StockAdjustment:
        payload: StockAdjustmentCreate = _parse(StockAdjustmentCreate, data)
        with self._lock:
            now = self._now()
            state, adjustment = self._apply_adjustment(
                self._state,
                payload.product_id,
                payload.quantity_change,
                payload.reason,
                effective_date=payload.date or now,
                created_at=now,
            )
            self._commit(state, {PRODUCTS_KEY, STOCK_ADJUSTMENTS_KEY})
            logger.info(
                "Stock adjustment %s for %s: %+d (%s)",
                adjustment.id,
                adjustment.product_id,
                adjustment.quantity_change,
                adjustment.reason,
            )
            return adjustment

    def add_nota(self, data) -> Nota:
        payload: NotaCreate = _parse(NotaCreate, data)
        with self._lock:
            state = self._state
            product = self._require_product(state, payload.product_id)
            now = self._now()
            effective_date = payload.date or now

            nota = Nota(
                id=self._id_factory(),
                product_id=product.id,
                product_name=product.name,
                quantity=payload.quantity,
                note_number=payload.note_number,
                date=effective_date,
                created_at=now,
            )
            state = replace(
                state,
                notas=_insert_by_date_desc(state.notas, nota, key=lambda n: n.date),
            )
            state, _ = self._apply_adjustment(
                state,
                product.id,
                payload.quantity,
                REASON_NOTA_ENTRY,
                effective_date=effective_date,
                created_at=now,
            )
            self._commit(state, {NOTAS_KEY, STOCK_ADJUSTMENTS_KEY, PRODUCTS_KEY})
            logger.info("Nota %s: +%d %s", nota.id, nota.quantity, product.name)
            return nota

    def add_sale(self, data) -> Sale:
        payload: SaleCreate = _parse(SaleCreate, data)
        with self._lock:
            state = self._state
            product = self._require_product(state, payload.product_id)
            if product.current_stock < payload.quantity_sold:
                logger.warning(
                    "Sale rejected for %s: available %d, requested %d",
                    product.id,
                    product.current_stock,
                    payload.quantity_sold,
                )
                raise InsufficientStockError(
                    product.id,
                    product.name,
                    available=product.current_stock,
                    requested=payload.quantity_sold,
                )

            now = self._now()
            sale_date = payload.sale_date or now
            sale = Sale(
                id=self._id_factory(),
                product_id=product.id,
                product_name=product.name,
                quantity_sold=payload.quantity_sold,
                price_per_item=payload.price_per_item,
                total_amount=payload.quantity_sold * payload.price_per_item,
                sale_date=sale_date,
                created_at=now,
            )
            state = replace(
                state,
                sales=_insert_by_date_desc(state.sales, sale, key=lambda s: s.sale_date),
            )
            state, _ = self._apply_adjustment(
                state,
                product.id,
                -payload.quantity_sold,
                sale_reason(sale.id),
                effective_date=sale_date,
                created_at=now,
            )
            self._commit(state, {SALES_KEY, STOCK_ADJUSTMENTS_KEY, PRODUCTS_KEY})
            logger.info(
                "Sale %s: %d x %s at %.2f",
                sale.id,
                sale.quantity_sold,
                product.name,
                sale.price_per_item,
            )
            return sale

    def clear_sales(self) -> int:
        """Drop every sale record. Stock adjustments, and so stock, are kept."""
        with self._lock:
            removed = len(self._state.sales)
            self._commit(replace(self._state, sales=()), {SALES_KEY})
            logger.info("Cleared %d sales", removed)
            return removed

    # ==============================
    # Loading and repair
    # ==============================

    def load(self) -> LedgerSnapshot:
        with self._lock:
            self._state = LedgerSnapshot(
                **{key: self._load_collection(key) for key in COLLECTION_KEYS}
            )
            logger.info(
                "Ledger loaded: %d products, %d adjustments, %d sales, %d notas",
                len(self._state.products),
                len(self._state.stock_adjustments),
                len(self._state.sales),
                len(self._state.notas),
            )
            return self._state

    def verify(self) -> list[str]:
        """Ids of products whose stock differs from their adjustment sum."""
        state = self._state
        totals = stock_totals(state.stock_adjustments)
        return [
            product.id
            for product in state.products
            if product.current_stock != totals.get(product.id, 0)
        ]

    def reconcile(self) -> dict[str, int]:
        with self._lock:
            state = self._state
            products_by_id = {product.id: product for product in state.products}

            adjustments = [a for a in state.stock_adjustments if a.product_id in products_by_id]
            sales = tuple(s for s in state.sales if s.product_id in products_by_id)
            notas = tuple(n for n in state.notas if n.product_id in products_by_id)
            summary = {
                "orphan_stock_adjustments": len(state.stock_adjustments) - len(adjustments),
                "orphan_sales": len(state.sales) - len(sales),
                "orphan_notas": len(state.notas) - len(notas),
                "synthesized_adjustments": 0,
                "restocked_products": 0,
            }

            paired: set[str] = set()

            def find_pair(predicate):
                for adjustment in adjustments:
                    if adjustment.id not in paired and predicate(adjustment):
                        paired.add(adjustment.id)
                        return adjustment
                return None

            for nota in notas:
                match = find_pair(
                    lambda a: a.product_id == nota.product_id
                    and a.reason == REASON_NOTA_ENTRY
                    and a.quantity_change == nota.quantity
                    and same_day(a.date, nota.date)
                )
                if match is None:
                    adjustment = self._synthesize_adjustment(
                        products_by_id[nota.product_id],
                        nota.quantity,
                        REASON_NOTA_ENTRY,
                        nota.date,
                        nota.created_at,
                    )
                    adjustments.append(adjustment)
                    paired.add(adjustment.id)
                    summary["synthesized_adjustments"] += 1

            for sale in sales:
                prefix = sale_reason(sale.id)
                match = find_pair(
                    lambda a: a.product_id == sale.product_id
                    and a.reason.startswith(prefix)
                    and a.quantity_change == -sale.quantity_sold
                    and same_day(a.date, sale.sale_date)
                )
                if match is None:
                    adjustment = self._synthesize_adjustment(
                        products_by_id[sale.product_id],
                        -sale.quantity_sold,
                        prefix,
                        sale.sale_date,
                        sale.created_at,
                    )
                    adjustments.append(adjustment)
                    paired.add(adjustment.id)
                    summary["synthesized_adjustments"] += 1

            totals = stock_totals(adjustments)
            products = []
            for product in state.products:
                expected = totals.get(product.id, 0)
                if product.current_stock != expected:
                    product = product.model_copy(update={"current_stock": expected})
                    summary["restocked_products"] += 1
                products.append(product)

            next_state = LedgerSnapshot(
                products=tuple(products),
                stock_adjustments=tuple(sorted(adjustments, key=_adjustment_date, reverse=True)),
                sales=sales,
                notas=notas,
            )
            changed = {
                key
                for key in COLLECTION_KEYS
                if next_state.collection(key) != state.collection(key)
            }
            if changed:
                self._commit(next_state, changed)
                logger.warning("Ledger reconciled: %s", summary)
            return summary

    # ==============================
    # Internals
    # ==============================

    def _now(self):
        return normalize_timestamp(self._clock())

    def _require_product(self, state: LedgerSnapshot, product_id: str) -> Product:
        product = state.product(product_id)
        if product is None:
            logger.warning("Unknown product %s", product_id)
            raise NotFoundError(product_id)
        return product

    def _check_barcode(self, state: LedgerSnapshot, barcode: Optional[str], exclude_id: Optional[str] = None):
        if not self._enforce_unique_barcode or not barcode:
            return
        for product in state.products:
            if product.barcode == barcode and product.id != exclude_id:
                raise DuplicateBarcodeError(barcode, product.id)

    def _synthesize_adjustment(self, product, quantity_change, reason, effective_date, created_at):
        return StockAdjustment(
            id=self._id_factory(),
            product_id=product.id,
            product_name=product.name,
            quantity_change=quantity_change,
            reason=reason,
            date=effective_date,
            created_at=created_at,
        )

    def _apply_adjustment(
        self,
        state: LedgerSnapshot,
        product_id: str,
        quantity_change: int,
        reason: str,
        *,
        effective_date,
        created_at,
    ) -> tuple[LedgerSnapshot, StockAdjustment]:
        product = self._require_product(state, product_id)
        if quantity_change == 0:
            raise ValidationError("Quantity change must be nonzero", field="quantity_change")

        adjustment = self._synthesize_adjustment(
            product, quantity_change, reason, effective_date, created_at
        )
        updated = product.model_copy(
            update={"current_stock": product.current_stock + quantity_change}
        )
        next_state = replace(
            state,
            products=_replace_product(state.products, updated),
            stock_adjustments=_insert_by_date_desc(
                state.stock_adjustments, adjustment, key=_adjustment_date
            ),
        )
        return next_state, adjustment

    def _commit(self, state: LedgerSnapshot, changed: Iterable[str]) -> None:
        self._state = state
        changed = set(changed)
        for key in COLLECTION_KEYS:
            if key in changed:
                self._persist(key)

    def _persist(self, key: str) -> None:
        storage_key = self._storage_keys[key]
        data = _COLLECTION_ADAPTERS[key].dump_json(list(self._state.collection(key)), by_alias=True)
        try:
            self._blob_store.save(storage_key, data)
        except Exception as exc:
            logger.exception("Failed to persist %s", storage_key)
            self._failed_saves[key] = str(exc)
        else:
            self._failed_saves.pop(key, None)

    def _load_collection(self, key: str) -> tuple:
        storage_key = self._storage_keys[key]
        raw = self._blob_store.load(storage_key)
        if raw is None:
            return ()
        try:
            return tuple(_COLLECTION_ADAPTERS[key].validate_json(raw))
        except PydanticValidationError:
            logger.exception("Stored %s is unreadable; starting empty", storage_key)
            return ()


def build_ledger(blob_store: BlobStore, settings, **kwargs) -> LedgerStore:
    ledger = LedgerStore(
        blob_store,
        key_prefix=settings.LEDGER_KEY_PREFIX,
        enforce_unique_barcode=settings.LEDGER_ENFORCE_UNIQUE_BARCODE,
        **kwargs,
    )
    ledger.load()
    if settings.LEDGER_RECONCILE_ON_LOAD:
        ledger.reconcile()
    return ledger


__all__ = ["LedgerSnapshot", "LedgerStore", "build_ledger", "stock_totals"]
