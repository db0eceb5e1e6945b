PRODUCTS_KEY = "products"
STOCK_ADJUSTMENTS_KEY = "stock_adjustments"
SALES_KEY = "sales"
NOTAS_KEY = "notas"
COLLECTION_KEYS = (PRODUCTS_KEY, STOCK_ADJUSTMENTS_KEY, SALES_KEY, NOTAS_KEY)

REASON_INITIAL_STOCK = "Initial Stock"
REASON_NEW_BATCH = "New Batch"
REASON_STOCK_COUNT_CORRECTION = "Stock Count Correction"
REASON_DAMAGED_GOODS = "Damaged Goods"
REASON_RETURNED_ITEM = "Returned Item"
REASON_PROMOTION_GIFT = "Promotion/Gift"
REASON_OTHER = "Other"

ADJUSTMENT_REASONS = (
    REASON_INITIAL_STOCK,
    REASON_NEW_BATCH,
    REASON_STOCK_COUNT_CORRECTION,
    REASON_DAMAGED_GOODS,
    REASON_RETURNED_ITEM,
    REASON_PROMOTION_GIFT,
    REASON_OTHER,
)

# System-generated reasons
REASON_NOTA_ENTRY = "Entrada por Nota"
SALE_REASON_PREFIX = "Venda ID: "
SALE_REASON_ID_CHARS = 4

STOCK_STATUSES = ("OUT_OF_STOCK", "LOW", "OK")
UNKNOWN_PRODUCT_NAME = "Unknown product"


def sale_reason(sale_id: str) -> str:
    return f"{SALE_REASON_PREFIX}{sale_id[:SALE_REASON_ID_CHARS]}"
