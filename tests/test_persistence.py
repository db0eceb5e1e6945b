import json
import unittest
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from craftflow.core.errors import ValidationError
from craftflow.database.base import Base
from craftflow.models.blob import CollectionBlob
from craftflow.services.ledger_service import LedgerStore
from craftflow.services.persistence import MemoryBlobStore, PersistenceError, SqlBlobStore


class BrokenBlobStore(MemoryBlobStore):
    def save(self, key, data):
        raise PersistenceError(f"disk full while writing {key}")


class CrashingBlobStore(MemoryBlobStore):
    def save(self, key, data):
        raise RuntimeError(f"driver crashed while writing {key}")


class SqlBlobStoreTest(unittest.TestCase):
    def setUp(self):
        engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=engine)
        self.Session = sessionmaker(bind=engine)
        self.store = SqlBlobStore(self.Session)

    def test_missing_key_loads_none(self):
        self.assertIsNone(self.store.load("dsystem_products"))

    def test_save_overwrites_single_row(self):
        self.store.save("dsystem_sales", b"[]")
        self.store.save("dsystem_sales", b'[{"id": "s1"}]')

        self.assertEqual(self.store.load("dsystem_sales"), b'[{"id": "s1"}]')
        db = self.Session()
        self.assertEqual(db.query(CollectionBlob).count(), 1)
        db.close()

    def test_ledger_survives_restart(self):
        ledger = LedgerStore(self.store)
        product = ledger.add_product(
            {"name": "Candle", "type": "Candle", "cost_price": 5, "selling_price": 15, "initial_stock": 12}
        )
        ledger.add_sale({"product_id": product.id, "quantity_sold": 2, "price_per_item": 15})

        reloaded = LedgerStore(self.store)
        reloaded.load()

        self.assertEqual(reloaded.get_product_by_id(product.id).current_stock, 10)
        self.assertEqual(reloaded.sales, ledger.sales)
        self.assertEqual(reloaded.stock_adjustments, ledger.stock_adjustments)
        self.assertEqual(reloaded.verify(), [])


class LedgerPersistenceTest(unittest.TestCase):
    def test_only_changed_collections_are_saved(self):
        blob_store = MemoryBlobStore()
        ledger = LedgerStore(blob_store, key_prefix="shop_")

        ledger.add_product(
            {"name": "Cream", "type": "Cream", "cost_price": 2, "selling_price": 4}
        )

        self.assertEqual(blob_store.keys(), ["shop_products"])

    def test_blobs_use_camel_case_fields(self):
        blob_store = MemoryBlobStore()
        ledger = LedgerStore(blob_store)
        ledger.add_product(
            {"name": "Candle", "type": "Candle", "cost_price": 5, "selling_price": 15, "initial_stock": 3}
        )

        products = json.loads(blob_store.load("dsystem_products"))
        adjustments = json.loads(blob_store.load("dsystem_stock_adjustments"))

        self.assertEqual(products[0]["currentStock"], 3)
        self.assertIn("sellingPrice", products[0])
        self.assertEqual(adjustments[0]["quantityChange"], 3)
        self.assertEqual(adjustments[0]["productName"], "Candle")

    def test_loads_browser_storage_format(self):
        blob_store = MemoryBlobStore(
            {
                "dsystem_products": json.dumps(
                    [
                        {
                            "id": "p1",
                            "name": "Perfume",
                            "type": "Perfume",
                            "costPrice": 20,
                            "sellingPrice": 45,
                            "currentStock": 4,
                            "createdAt": "2024-03-01T12:00:00.000Z",
                        }
                    ]
                ).encode("utf-8"),
                "dsystem_stock_adjustments": json.dumps(
                    [
                        {
                            "id": "a1",
                            "productId": "p1",
                            "productName": "Perfume",
                            "quantityChange": 4,
                            "reason": "Estoque Inicial",
                            "date": "2024-03-01T12:00:00.000Z",
                            "createdAt": "2024-03-01T12:00:00.000Z",
                        }
                    ]
                ).encode("utf-8"),
            }
        )
        ledger = LedgerStore(blob_store)

        ledger.load()

        product = ledger.get_product_by_id("p1")
        self.assertEqual(product.current_stock, 4)
        self.assertEqual(product.created_at, datetime(2024, 3, 1, 12, tzinfo=timezone.utc))
        self.assertEqual(ledger.sales, ())
        self.assertEqual(ledger.verify(), [])

    def test_corrupt_blob_loads_empty(self):
        blob_store = MemoryBlobStore({"dsystem_products": b"{not json"})
        ledger = LedgerStore(blob_store)

        with self.assertLogs("craftflow.services.ledger_service", level="ERROR"):
            ledger.load()

        self.assertEqual(ledger.products, ())

    def test_failed_save_keeps_memory_state(self):
        ledger = LedgerStore(BrokenBlobStore())

        with self.assertLogs("craftflow.services.ledger_service", level="ERROR"):
            product = ledger.add_product(
                {"name": "Candle", "type": "Candle", "cost_price": 5, "selling_price": 15, "initial_stock": 1}
            )

        self.assertEqual(ledger.get_product_by_id(product.id).current_stock, 1)
        self.assertEqual(set(ledger.persistence_errors), {"products", "stock_adjustments"})

    def test_unexpected_save_error_still_attempts_every_collection(self):
        ledger = LedgerStore(CrashingBlobStore())

        with self.assertLogs("craftflow.services.ledger_service", level="ERROR") as logs:
            product = ledger.add_product(
                {"name": "Candle", "type": "Candle", "cost_price": 5, "selling_price": 15, "initial_stock": 1}
            )

        self.assertEqual(ledger.get_product_by_id(product.id).current_stock, 1)
        self.assertEqual(set(ledger.persistence_errors), {"products", "stock_adjustments"})
        self.assertEqual(len(logs.records), 2)

    def test_rejected_infinite_price_keeps_reload_intact(self):
        blob_store = MemoryBlobStore()
        ledger = LedgerStore(blob_store)
        product = ledger.add_product(
            {"name": "Candle", "type": "Candle", "cost_price": 5, "selling_price": 15, "initial_stock": 5}
        )

        with self.assertRaises(ValidationError):
            ledger.add_product(
                {"name": "Soap", "type": "Soap", "cost_price": float("inf"), "selling_price": 4}
            )
        with self.assertRaises(ValidationError):
            ledger.add_sale(
                {"product_id": product.id, "quantity_sold": 1, "price_per_item": float("inf")}
            )

        reloaded = LedgerStore(blob_store)
        reloaded.load()

        self.assertEqual(reloaded.products, ledger.products)
        self.assertEqual(reloaded.get_product_by_id(product.id).current_stock, 5)
        self.assertEqual(reloaded.verify(), [])


if __name__ == "__main__":
    unittest.main()
