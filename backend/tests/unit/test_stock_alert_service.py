"""
Unit Tests for the Stock Alert Service

1. scan(): one ACTIVE alert per component, alert type and reorder quantity
2. Alert persistence and resolution on purchase receipt
3. Purchase suggestions (supplier resolution, urgency ranking, cost)
"""
import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from boardops.core.status_config import PurchaseUrgency
from boardops.exceptions import NotFoundError, ValidationError
from boardops.models.stock_alert import StockAlert
from boardops.services.inventory_service import ComponentSnapshot
from boardops.services.stock_alert_service import (
    PriceQuote,
    StockAlertService,
    classify_urgency,
    scan,
    suggested_alert_quantity,
)

from tests.factories import create_test_component, create_test_price, create_test_supplier


def snapshot(id, quantity, min_stock):
    return ComponentSnapshot(
        id=id, quantity=quantity, min_stock=min_stock,
        unit_cost=Decimal("0"), sell_price=Decimal("0"),
    )


def no_price(component_id):
    return None


class TestScan:

    def test_out_of_stock_alert(self):
        alerts = scan([snapshot(1, 0, 5)], [], no_price)

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.component_id == 1
        assert alert.alert_type == "OUT_OF_STOCK"
        assert alert.status == "ACTIVE"
        assert alert.suggested_order_quantity == 10
        assert alert.preferred_supplier_id is None

    def test_low_stock_alert_at_threshold(self):
        alerts = scan([snapshot(1, 5, 5)], [], no_price)

        assert alerts[0].alert_type == "LOW_STOCK"
        assert alerts[0].current_stock == 5

    def test_no_alert_above_threshold(self):
        assert scan([snapshot(1, 6, 5)], [], no_price) == []

    def test_existing_active_alert_not_duplicated(self):
        existing = StockAlert(component_id=1, status="ACTIVE")

        assert scan([snapshot(1, 0, 5)], [existing], no_price) == []

    def test_resolved_alert_does_not_block_new_one(self):
        resolved = StockAlert(component_id=1, status="RESOLVED")

        assert len(scan([snapshot(1, 0, 5)], [resolved], no_price)) == 1

    def test_duplicate_component_in_one_scan(self):
        alerts = scan([snapshot(1, 0, 5), snapshot(1, 0, 5)], [], no_price)

        assert len(alerts) == 1

    def test_preferred_supplier_from_latest_price(self):
        quote = PriceQuote(supplier_id=7, price=Decimal("0.12"))

        alerts = scan([snapshot(1, 2, 5)], [], lambda cid: quote)

        assert alerts[0].preferred_supplier_id == 7

    @pytest.mark.parametrize("min_stock, expected", [(0, 10), (3, 10), (5, 10), (40, 80)])
    def test_suggested_alert_quantity(self, min_stock, expected):
        assert suggested_alert_quantity(min_stock) == expected


class TestUrgency:

    @pytest.mark.parametrize("quantity, expected", [
        (0, PurchaseUrgency.CRITICAL),
        (4, PurchaseUrgency.HIGH),
        (7, PurchaseUrgency.MEDIUM),
        (8, PurchaseUrgency.LOW),
        (10, PurchaseUrgency.LOW),
    ])
    def test_classify_urgency(self, quantity, expected):
        assert classify_urgency(quantity, 10) == expected


class TestAlertLifecycle:

    def test_refresh_persists_and_deduplicates(self, db_session):
        part = create_test_component(db_session, quantity=0, min_stock=5)
        create_test_component(db_session, quantity=50, min_stock=5)
        db_session.commit()
        service = StockAlertService(db_session)

        first = service.refresh_alerts()
        second = service.refresh_alerts()

        assert [a.component_id for a in first] == [part.id]
        assert [a.id for a in second] == [first[0].id]
        assert db_session.query(StockAlert).count() == 1

    def test_refresh_uses_latest_supplier(self, db_session):
        part = create_test_component(db_session, quantity=1, min_stock=5)
        old = create_test_supplier(db_session)
        new = create_test_supplier(db_session)
        create_test_price(db_session, part, old, date=datetime.utcnow() - timedelta(days=30))
        create_test_price(db_session, part, new, date=datetime.utcnow() - timedelta(days=1))
        db_session.commit()

        alerts = StockAlertService(db_session).refresh_alerts()

        assert alerts[0].preferred_supplier_id == new.id

    def test_receipt_above_minimum_resolves_alert(self, db_session):
        part = create_test_component(db_session, quantity=0, min_stock=5)
        db_session.commit()
        service = StockAlertService(db_session)
        alert = service.refresh_alerts()[0]

        result = service.receive_stock(part.id, 6)

        assert result["quantity"] == 6
        assert result["resolved_alert_ids"] == [alert.id]
        db_session.refresh(alert)
        assert alert.status == "RESOLVED"
        assert alert.resolved_at is not None
        assert service.list_active_alerts() == []

    def test_receipt_to_threshold_keeps_alert(self, db_session):
        part = create_test_component(db_session, quantity=0, min_stock=5)
        db_session.commit()
        service = StockAlertService(db_session)
        service.refresh_alerts()

        result = service.receive_stock(part.id, 5)

        assert result["resolved_alert_ids"] == []
        assert len(service.list_active_alerts()) == 1

    def test_new_alert_after_resolution(self, db_session):
        part = create_test_component(db_session, quantity=0, min_stock=5)
        db_session.commit()
        service = StockAlertService(db_session)
        service.refresh_alerts()
        service.receive_stock(part.id, 10)
        service.inventory.consume(part.id, 10)
        db_session.commit()

        alerts = service.refresh_alerts()

        assert len(alerts) == 1
        assert db_session.query(StockAlert).count() == 2

    def test_receipt_for_unknown_component(self, db_session):
        with pytest.raises(NotFoundError):
            StockAlertService(db_session).receive_stock(999, 5)

    def test_resolve_recovered_alerts(self, db_session):
        part = create_test_component(db_session, quantity=0, min_stock=5)
        still_short = create_test_component(db_session, quantity=1, min_stock=5)
        db_session.commit()
        service = StockAlertService(db_session)
        service.refresh_alerts()
        service.inventory.set_quantity(part.id, 20)
        db_session.commit()

        resolved = service.resolve_recovered_alerts()

        assert [a.component_id for a in resolved] == [part.id]
        assert [a.component_id for a in service.list_active_alerts()] == [still_short.id]


class TestPriceHistory:

    def test_record_price(self, db_session):
        part = create_test_component(db_session)
        supplier = create_test_supplier(db_session)
        db_session.commit()
        service = StockAlertService(db_session)

        service.record_price(part.id, supplier.id, "0.08", quantity=500, source="QUOTE")

        quote = service.latest_price(part.id)
        assert quote.supplier_id == supplier.id
        assert quote.price == Decimal("0.08")

    def test_record_price_unknown_supplier(self, db_session):
        part = create_test_component(db_session)
        db_session.commit()

        with pytest.raises(NotFoundError):
            StockAlertService(db_session).record_price(part.id, 999, "1.00")

    def test_record_price_rejects_negative(self, db_session):
        part = create_test_component(db_session)
        supplier = create_test_supplier(db_session)
        db_session.commit()

        with pytest.raises(ValidationError):
            StockAlertService(db_session).record_price(part.id, supplier.id, "-1")


class TestPurchaseSuggestions:

    def test_ranked_by_urgency(self, db_session):
        create_test_supplier(db_session)
        low = create_test_component(db_session, quantity=9, min_stock=10)
        critical = create_test_component(db_session, quantity=0, min_stock=10)
        high = create_test_component(db_session, quantity=2, min_stock=10)
        create_test_component(db_session, quantity=50, min_stock=10)
        db_session.commit()

        suggestions = StockAlertService(db_session).generate_purchase_suggestions()

        assert [s.component_id for s in suggestions] == [critical.id, high.id, low.id]
        assert [s.urgency for s in suggestions] == ["CRITICAL", "HIGH", "LOW"]

    def test_quantity_and_cost_from_latest_price(self, db_session):
        part = create_test_component(db_session, quantity=4, min_stock=20)
        supplier = create_test_supplier(db_session, name="Mouser")
        create_test_price(db_session, part, supplier, price="0.50")
        db_session.commit()

        suggestion = StockAlertService(db_session).generate_purchase_suggestions()[0]

        assert suggestion.suggested_quantity == 36
        assert suggestion.estimated_cost == Decimal("18.00")
        assert suggestion.preferred_supplier_id == supplier.id
        assert suggestion.preferred_supplier_name == "Mouser"

    def test_minimum_order_quantity(self, db_session):
        create_test_supplier(db_session)
        create_test_component(db_session, quantity=2, min_stock=3)
        db_session.commit()

        suggestion = StockAlertService(db_session).generate_purchase_suggestions()[0]

        assert suggestion.suggested_quantity == 10
        assert suggestion.estimated_cost == Decimal("0")

    def test_falls_back_to_first_active_supplier(self, db_session):
        create_test_supplier(db_session, status="INACTIVE")
        active = create_test_supplier(db_session)
        create_test_component(db_session, quantity=0, min_stock=5)
        db_session.commit()

        suggestion = StockAlertService(db_session).generate_purchase_suggestions()[0]

        assert suggestion.preferred_supplier_id == active.id

    def test_excluded_without_any_supplier(self, db_session):
        create_test_component(db_session, quantity=0, min_stock=5)
        db_session.commit()

        assert StockAlertService(db_session).generate_purchase_suggestions() == []
