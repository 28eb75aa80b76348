"""
Tests for stock alert, purchase suggestion and receipt endpoints.
"""
import pytest
from decimal import Decimal

from tests.factories import create_test_component, create_test_price, create_test_supplier

BASE_URL = "/api/v1/stock-alerts"


class TestStockAlerts:
    """Tests for GET /api/v1/stock-alerts"""

    @pytest.mark.api
    def test_scan_creates_single_alert(self, client, db):
        part = create_test_component(db, quantity=0, min_stock=5)
        create_test_component(db, quantity=100, min_stock=5)
        db.commit()

        first = client.get(f"{BASE_URL}/").json()
        second = client.get(f"{BASE_URL}/").json()

        assert len(first) == 1
        assert first[0]["component_id"] == part.id
        assert first[0]["alert_type"] == "OUT_OF_STOCK"
        assert first[0]["suggested_order_quantity"] == 10
        assert [a["id"] for a in second] == [first[0]["id"]]

    @pytest.mark.api
    def test_receipt_resolves_alert(self, client, db):
        part = create_test_component(db, quantity=2, min_stock=5)
        db.commit()
        alert_id = client.get(f"{BASE_URL}/").json()[0]["id"]

        response = client.post(f"{BASE_URL}/receipts", json={"component_id": part.id, "quantity": 10})

        assert response.status_code == 200
        assert response.json() == {"component_id": part.id, "quantity": 12, "resolved_alert_ids": [alert_id]}
        assert client.get(f"{BASE_URL}/").json() == []

    @pytest.mark.api
    def test_receipt_rejects_zero_quantity(self, client, db):
        part = create_test_component(db)
        db.commit()

        response = client.post(f"{BASE_URL}/receipts", json={"component_id": part.id, "quantity": 0})

        assert response.status_code == 422

    @pytest.mark.api
    def test_receipt_unknown_component(self, client, db):
        response = client.post(f"{BASE_URL}/receipts", json={"component_id": 99999, "quantity": 1})

        assert response.status_code == 404

    @pytest.mark.api
    def test_resolve_recovered(self, client, db):
        create_test_component(db, quantity=0, min_stock=5)
        db.commit()
        client.get(f"{BASE_URL}/")

        response = client.post(f"{BASE_URL}/resolve")

        assert response.status_code == 200
        assert response.json() == []


class TestPurchasing:

    @pytest.mark.api
    def test_purchase_suggestions(self, client, db):
        part = create_test_component(db, sku="IC-555", quantity=1, min_stock=10)
        supplier = create_test_supplier(db, name="Digi-Key")
        create_test_price(db, part, supplier, price="0.25")
        db.commit()

        response = client.get(f"{BASE_URL}/purchase-suggestions")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["sku"] == "IC-555"
        assert data[0]["suggested_quantity"] == 19
        assert data[0]["urgency"] == "HIGH"
        assert data[0]["preferred_supplier_name"] == "Digi-Key"
        assert Decimal(data[0]["estimated_cost"]) == Decimal("4.75")

    @pytest.mark.api
    def test_record_price(self, client, db):
        part = create_test_component(db)
        supplier = create_test_supplier(db)
        db.commit()

        response = client.post(f"{BASE_URL}/prices", json={
            "component_id": part.id,
            "supplier_id": supplier.id,
            "price": "0.07",
            "quantity": 1000,
            "source": "QUOTE",
        })

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["price"]) == Decimal("0.07")
        assert data["date"] is not None


@pytest.mark.api
def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
