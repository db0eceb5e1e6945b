from craftflow.core.constants import UNKNOWN_PRODUCT_NAME


def _stock_status(current_stock, low_stock_threshold):
    if current_stock <= 0:
        return "OUT_OF_STOCK"
    if current_stock < low_stock_threshold:
        return "LOW"
    return "OK"


def stock_value(products):
    return sum(product.current_stock * product.cost_price for product in products)


def stock_items(products):
    return sum(product.current_stock for product in products)


def dashboard_summary(snapshot, recent_limit=5):
    products = snapshot.products
    sales = snapshot.sales
    return {
        "total_products": len(products),
        "total_stock_items": stock_items(products),
        "total_stock_value": stock_value(products),
        "total_sales_count": len(sales),
        "total_revenue": sum(sale.total_amount for sale in sales),
        "recent_sales": list(sales[:recent_limit]),
        "recent_stock_adjustments": list(snapshot.stock_adjustments[:recent_limit]),
    }


def sales_report(sales, top_n=5):
    by_product = {}
    for sale in sales:
        entry = by_product.get(sale.product_id)
        if entry is None:
            entry = {
                "product_id": sale.product_id,
                "name": sale.product_name or UNKNOWN_PRODUCT_NAME,
                "quantity": 0,
                "revenue": 0.0,
            }
            by_product[sale.product_id] = entry
        entry["quantity"] += sale.quantity_sold
        entry["revenue"] += sale.total_amount

    entries = list(by_product.values())
    return {
        "total_revenue": sum(sale.total_amount for sale in sales),
        "total_sales_count": len(sales),
        "total_items_sold": sum(sale.quantity_sold for sale in sales),
        "best_selling_by_quantity": sorted(entries, key=lambda e: e["quantity"], reverse=True)[:top_n],
        "best_selling_by_revenue": sorted(entries, key=lambda e: e["revenue"], reverse=True)[:top_n],
    }


def stock_report(products, low_stock_threshold=10):
    low_stock = [p for p in products if 0 < p.current_stock < low_stock_threshold]
    return {
        "total_stock_value": stock_value(products),
        "total_stock_items": stock_items(products),
        "low_stock_products": sorted(low_stock, key=lambda p: p.current_stock),
        "out_of_stock_products": [p for p in products if p.current_stock == 0],
    }


def margin_report(products, top_n=5):
    margins = [
        {"product_id": p.id, "name": p.name, "margin": p.selling_price - p.cost_price}
        for p in products
    ]
    positive = [entry for entry in margins if entry["margin"] > 0]
    return {
        "highest_margin_products": sorted(positive, key=lambda e: e["margin"], reverse=True)[:top_n],
    }


def stock_levels(products, search=None, product_type=None, low_stock_threshold=10):
    """Name-sorted stock listing filtered by a search term and a product type.

    The search term matches name or type, case-insensitively. A type of
    ``None`` or ``"all"`` disables type filtering.
    """
    search_text = str(search).strip().lower() if search else ""
    type_filter = str(product_type).strip() if product_type else ""
    if type_filter.lower() == "all":
        type_filter = ""

    rows = []
    for product in products:
        if search_text and search_text not in product.name.lower() and search_text not in product.type.lower():
            continue
        if type_filter and product.type != type_filter:
            continue
        rows.append(
            {
                "product_id": product.id,
                "name": product.name,
                "type": product.type,
                "barcode": product.barcode,
                "current_stock": product.current_stock,
                "cost_price": product.cost_price,
                "total_value": product.current_stock * product.cost_price,
                "status": _stock_status(product.current_stock, low_stock_threshold),
            }
        )

    rows.sort(key=lambda row: row["name"].casefold())
    return {
        "product_types": sorted({product.type for product in products}),
        "count": len(rows),
        "results": rows,
    }


__all__ = [
    "dashboard_summary",
    "margin_report",
    "sales_report",
    "stock_levels",
    "stock_report",
    "stock_value",
]
