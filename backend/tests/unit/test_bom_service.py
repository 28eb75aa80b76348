"""
Unit Tests for the BOM / catalog service
"""
import pytest
from decimal import Decimal

from boardops.exceptions import (
    BusinessRuleError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from boardops.models.finished_product import FinishedProduct
from boardops.services.bom_service import BOMService

from tests.factories import (
    create_test_component,
    create_test_finished_product,
    create_test_production_order,
)


class TestFinishedProducts:

    def test_create_with_bom(self, db_session):
        part = create_test_component(db_session)
        db_session.commit()

        product = BOMService(db_session).create_finished_product(
            code="PCB-LED-01",
            name="LED driver",
            sell_price="12.50",
            estimated_production_time=8,
            bom_lines=[{"component_id": part.id, "quantity": 4, "process": "PTH", "position": "R1-R4"}],
        )

        assert product.id is not None
        assert product.status == "ACTIVE"
        assert len(product.bom_lines) == 1
        assert product.bom_lines[0].process == "PTH"

    def test_duplicate_code_rejected(self, db_session):
        create_test_finished_product(db_session, code="PCB-1")
        db_session.commit()

        with pytest.raises(DuplicateError):
            BOMService(db_session).create_finished_product(code="PCB-1", name="Copy")

    @pytest.mark.parametrize("field, kwargs", [
        ("code", {"code": "  ", "name": "Board"}),
        ("name", {"code": "PCB-9", "name": ""}),
        ("status", {"code": "PCB-9", "name": "Board", "status": "ARCHIVED"}),
        ("category", {"code": "PCB-9", "name": "Board", "category": "BGA"}),
    ])
    def test_create_validation(self, db_session, field, kwargs):
        with pytest.raises(ValidationError) as exc_info:
            BOMService(db_session).create_finished_product(**kwargs)

        assert exc_info.value.details["field"] == field

    def test_update_fields(self, db_session):
        product = create_test_finished_product(db_session, code="PCB-1")
        db_session.commit()

        product = BOMService(db_session).update_finished_product(
            product.id, name="Renamed", sell_price="99.90", status="DISCONTINUED"
        )

        assert product.name == "Renamed"
        assert product.sell_price == Decimal("99.90")
        assert product.status == "DISCONTINUED"

    def test_update_to_taken_code(self, db_session):
        create_test_finished_product(db_session, code="PCB-1")
        product = create_test_finished_product(db_session, code="PCB-2")
        db_session.commit()

        with pytest.raises(DuplicateError):
            BOMService(db_session).update_finished_product(product.id, code="PCB-1")

    def test_list_by_status(self, db_session):
        create_test_finished_product(db_session, status="ACTIVE")
        create_test_finished_product(db_session, status="INACTIVE")
        db_session.commit()
        service = BOMService(db_session)

        assert len(service.list_finished_products()) == 2
        assert len(service.list_finished_products(status="INACTIVE")) == 1

    def test_delete_with_active_order_refused(self, db_session):
        product = create_test_finished_product(db_session)
        create_test_production_order(db_session, product, status="IN_PROGRESS")
        db_session.commit()

        with pytest.raises(BusinessRuleError):
            BOMService(db_session).delete_finished_product(product.id)

    def test_delete_removes_bom_lines(self, db_session):
        part = create_test_component(db_session)
        product = create_test_finished_product(db_session, bom=[(part, 1)])
        db_session.commit()

        BOMService(db_session).delete_finished_product(product.id)

        assert db_session.query(FinishedProduct).count() == 0

    def test_delete_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            BOMService(db_session).delete_finished_product(42)


class TestBOMLines:

    def test_add_line(self, db_session):
        part = create_test_component(db_session)
        product = create_test_finished_product(db_session)
        db_session.commit()

        line = BOMService(db_session).add_bom_line(product.id, component_id=part.id, quantity=3)

        assert line.quantity == 3
        assert line.process == "SMD"
        assert BOMService(db_session).get_finished_product(product.id).bom[0].quantity == 3

    def test_add_line_unknown_component(self, db_session):
        product = create_test_finished_product(db_session)
        db_session.commit()

        with pytest.raises(NotFoundError):
            BOMService(db_session).add_bom_line(product.id, component_id=999, quantity=1)

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_add_line_non_positive_quantity(self, db_session, quantity):
        part = create_test_component(db_session)
        product = create_test_finished_product(db_session)
        db_session.commit()

        with pytest.raises(ValidationError):
            BOMService(db_session).add_bom_line(product.id, component_id=part.id, quantity=quantity)

    def test_add_line_rejects_mixed_process(self, db_session):
        part = create_test_component(db_session)
        product = create_test_finished_product(db_session)
        db_session.commit()

        with pytest.raises(ValidationError):
            BOMService(db_session).add_bom_line(product.id, component_id=part.id, quantity=1, process="MIXED")

    def test_update_and_remove_line(self, db_session):
        part = create_test_component(db_session)
        product = create_test_finished_product(db_session, bom=[(part, 1)])
        db_session.commit()
        service = BOMService(db_session)
        line_id = product.bom_lines[0].id

        line = service.update_bom_line(product.id, line_id, quantity=6, position="C12")
        assert (line.quantity, line.position) == (6, "C12")

        service.remove_bom_line(product.id, line_id)
        assert service.get_finished_product(product.id).bom == ()

    def test_line_of_other_product_not_found(self, db_session):
        part = create_test_component(db_session)
        first = create_test_finished_product(db_session, bom=[(part, 1)])
        second = create_test_finished_product(db_session)
        db_session.commit()

        with pytest.raises(NotFoundError):
            BOMService(db_session).remove_bom_line(second.id, first.bom_lines[0].id)


class TestExportImport:

    def test_export_then_import_restores_catalog(self, db_session):
        part = create_test_component(db_session)
        create_test_finished_product(db_session, code="PCB-1", bom=[(part, 2)], sell_price="10.00")
        create_test_finished_product(db_session, code="PCB-2", status="INACTIVE")
        db_session.commit()
        service = BOMService(db_session)

        exported = service.export_production_data()
        service.clear_production_data()
        assert service.list_finished_products() == []

        assert service.import_production_data(exported) is True

        products = service.list_finished_products()
        assert exported["version"] == "1.0"
        assert [p.code for p in products] == ["PCB-1", "PCB-2"]
        assert products[0].bom_lines[0].quantity == 2
        assert products[1].status == "INACTIVE"

    @pytest.mark.parametrize("data", [
        None,
        [],
        {"products": []},
        {"finished_products": [{"name": "no code"}]},
        {"finished_products": [{"code": "X", "name": "Y", "bom": [{"component_id": 999, "quantity": 1}]}]},
    ])
    def test_malformed_import_changes_nothing(self, db_session, data):
        create_test_finished_product(db_session, code="KEEP")
        db_session.commit()
        service = BOMService(db_session)

        assert service.import_production_data(data) is False
        assert [p.code for p in service.list_finished_products()] == ["KEEP"]

    def test_import_with_repeated_code_rolls_back(self, db_session):
        create_test_finished_product(db_session, code="KEEP")
        db_session.commit()
        service = BOMService(db_session)
        data = {"finished_products": [
            {"code": "PCB-X", "name": "First"},
            {"code": "PCB-X", "name": "Second"},
        ]}

        assert service.import_production_data(data) is False

        assert [p.code for p in service.list_finished_products()] == ["KEEP"]
        # Session is still usable after the failed import
        assert service.create_finished_product(code="PCB-Y", name="After").id is not None

    def test_clear_refused_while_orders_exist(self, db_session):
        product = create_test_finished_product(db_session)
        create_test_production_order(db_session, product, status="COMPLETED")
        db_session.commit()

        with pytest.raises(BusinessRuleError):
            BOMService(db_session).clear_production_data()
