import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from craftflow.config import Settings
from craftflow.main import create_app
from craftflow.services.ledger_service import LedgerStore
from craftflow.services.persistence import MemoryBlobStore

CANDLE = {
    "name": "Candle",
    "type": "Candle",
    "barcode": "789100",
    "costPrice": 5,
    "sellingPrice": 15,
    "initialStock": 50,
}


class LedgerApiTest(unittest.TestCase):
    def setUp(self):
        self.ledger = LedgerStore(MemoryBlobStore())
        self.client = TestClient(create_app(ledger=self.ledger))

    def _create_candle(self):
        response = self.client.post("/products", json=CANDLE)
        self.assertEqual(response.status_code, 201)
        return response.json()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_product_lifecycle(self):
        product = self._create_candle()
        self.assertEqual(product["current_stock"], 50)

        by_barcode = self.client.get("/products/barcode/789100").json()
        self.assertEqual(by_barcode["id"], product["id"])

        response = self.client.put(
            f"/products/{product['id']}",
            json={
                "name": "Big Candle",
                "type": "Candle",
                "barcode": "789100",
                "cost_price": 6,
                "selling_price": 20,
                "current_stock": 45,
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["current_stock"], 45)

        consistency = self.client.get("/reports/consistency").json()
        self.assertTrue(consistency["consistent"])

        response = self.client.delete(f"/products/{product['id']}")
        self.assertEqual(response.json()["deleted"]["stock_adjustments"], 2)
        self.assertEqual(self.client.get(f"/products/{product['id']}").status_code, 404)

    def test_sale_flow_and_error_mapping(self):
        product = self._create_candle()

        response = self.client.post(
            "/sales",
            json={"productId": product["id"], "quantitySold": 2, "pricePerItem": 15},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["total_amount"], 30)

        response = self.client.post(
            "/sales",
            json={"product_id": product["id"], "quantity_sold": 100, "price_per_item": 15},
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["available"], 48)

        response = self.client.post(
            "/sales",
            json={"product_id": "missing", "quantity_sold": 1, "price_per_item": 15},
        )
        self.assertEqual(response.status_code, 404)

        response = self.client.post(
            "/stock-adjustments",
            json={"product_id": product["id"], "quantity_change": 0, "reason": "Other"},
        )
        self.assertEqual(response.status_code, 422)

        response = self.client.post("/products", json=CANDLE)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["field"], "barcode")

    def test_nota_and_clear_sales(self):
        product = self._create_candle()
        self.client.post(
            "/notas",
            json={"product_id": product["id"], "quantity": 10, "note_number": "NF-1", "date": "2024-06-01"},
        )
        self.client.post(
            "/sales",
            json={"product_id": product["id"], "quantity_sold": 5, "price_per_item": 15},
        )

        self.assertEqual(len(self.client.get("/notas").json()), 1)
        self.assertEqual(self.client.delete("/sales").json(), {"cleared": 1})
        self.assertEqual(self.client.get("/sales").json(), [])
        self.assertEqual(self.client.get(f"/products/{product['id']}").json()["current_stock"], 55)

        adjustments = self.client.get(
            "/stock-adjustments", params={"product_id": product["id"]}
        ).json()
        self.assertEqual(len(adjustments), 3)

    def test_reports(self):
        product = self._create_candle()
        self.client.post(
            "/sales",
            json={"product_id": product["id"], "quantity_sold": 45, "price_per_item": 15},
        )

        dashboard = self.client.get("/reports/dashboard").json()
        self.assertEqual(dashboard["total_revenue"], 675)
        self.assertEqual(dashboard["recent_sales"][0]["product_name"], "Candle")

        stock = self.client.get("/reports/stock").json()
        self.assertEqual(stock["low_stock_products"][0]["current_stock"], 5)

        levels = self.client.get("/reports/stock-levels", params={"type": "Candle"}).json()
        self.assertEqual(levels["results"][0]["status"], "LOW")


class AuthApiTest(unittest.TestCase):
    def setUp(self):
        settings = Settings(AUTH_USERNAME="admin", AUTH_PASSWORD="password")
        patcher = patch("craftflow.core.auth.get_settings", return_value=settings)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = TestClient(create_app(ledger=LedgerStore(MemoryBlobStore())))

    def test_mutations_require_login(self):
        response = self.client.post("/products", json=CANDLE)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.client.get("/products").status_code, 200)

    def test_login_and_logout(self):
        response = self.client.post("/login", json={"username": "admin", "password": "wrong"})
        self.assertEqual(response.status_code, 401)

        response = self.client.post("/login", json={"username": "Admin", "password": "password"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["authenticated"])
        self.assertEqual(self.client.post("/products", json=CANDLE).status_code, 201)

        session = self.client.post("/logout").json()
        self.assertFalse(session["authenticated"])
        self.assertEqual(self.client.post("/products", json=CANDLE).status_code, 401)


if __name__ == "__main__":
    unittest.main()
