"""
BOM / Catalog Service

Finished products and their single-level bills of materials:
- Catalog accessor used by the analysis engine and the order manager
- Finished product CRUD (unique codes, no deletion while orders are active)
- BOM line editing (never touches existing production order items)
- JSON export/import of the whole catalog
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from boardops.core.status_config import (
    ACTIVE_PRODUCTION_ORDER_STATUSES,
    BOM_LINE_PROCESSES,
    FinishedProductStatus,
    ProcessType,
)
from boardops.exceptions import (
    BusinessRuleError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from boardops.logging_config import get_logger
from boardops.models.component import Component
from boardops.models.finished_product import BOMLine, FinishedProduct
from boardops.models.production_order import ProductionOrder

logger = get_logger(__name__)

EXPORT_VERSION = "1.0"

PRODUCT_FIELDS = (
    "name",
    "description",
    "category",
    "estimated_production_time",
    "sell_price",
    "status",
)
BOM_LINE_FIELDS = ("quantity", "process", "position", "notes")


@dataclass(frozen=True)
class BOMLineSnapshot:
    id: int
    component_id: int
    quantity: int
    process: str = ProcessType.SMD.value
    position: Optional[str] = None


@dataclass(frozen=True)
class FinishedProductSnapshot:
    """Read-only view of a finished product as the planning engine sees it"""
    id: int
    code: str
    name: str
    sell_price: Decimal
    estimated_production_time: int
    status: str
    bom: Tuple[BOMLineSnapshot, ...] = ()


class CatalogAccessor(Protocol):
    def get_finished_product(self, finished_product_id: int) -> Optional[FinishedProductSnapshot]:
        ...


def to_snapshot(product: FinishedProduct) -> FinishedProductSnapshot:
    return FinishedProductSnapshot(
        id=product.id,
        code=product.code,
        name=product.name,
        sell_price=Decimal(str(product.sell_price or 0)),
        estimated_production_time=int(product.estimated_production_time or 0),
        status=product.status,
        bom=tuple(
            BOMLineSnapshot(
                id=line.id,
                component_id=line.component_id,
                quantity=int(line.quantity),
                process=line.process,
                position=line.position,
            )
            for line in product.bom_lines
        ),
    )


def _validate_status(status: Optional[str]) -> None:
    if status is None:
        return
    allowed = [s.value for s in FinishedProductStatus]
    if status not in allowed:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(allowed)}",
            field="status",
            value=status,
        )


def _validate_category(category: Optional[str]) -> None:
    if category is None:
        return
    allowed = [p.value for p in ProcessType]
    if category not in allowed:
        raise ValidationError(
            f"Invalid category '{category}'. Must be one of: {', '.join(allowed)}",
            field="category",
            value=category,
        )


def _validate_process(process: Optional[str]) -> None:
    if process is None:
        return
    if process not in BOM_LINE_PROCESSES:
        raise ValidationError(
            f"Invalid process '{process}'. Must be SMD or PTH",
            field="process",
            value=process,
        )


def _validate_line_quantity(quantity) -> None:
    if quantity is None or int(quantity) <= 0:
        raise ValidationError("BOM line quantity must be positive", field="quantity", value=quantity)


class BOMService:
    """Catalog accessor and finished product/BOM editing."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Accessor
    # ------------------------------------------------------------------

    def get_finished_product(self, finished_product_id: int) -> Optional[FinishedProductSnapshot]:
        product = self.db.get(FinishedProduct, finished_product_id)
        if product is None:
            return None
        return to_snapshot(product)

    def list_snapshots(self, status: Optional[str] = None) -> List[FinishedProductSnapshot]:
        return [to_snapshot(p) for p in self.list_finished_products(status=status)]

    # ------------------------------------------------------------------
    # Finished products
    # ------------------------------------------------------------------

    def require_finished_product(self, finished_product_id: int) -> FinishedProduct:
        product = self.db.get(FinishedProduct, finished_product_id)
        if product is None:
            raise NotFoundError("FinishedProduct", finished_product_id)
        return product

    def list_finished_products(self, status: Optional[str] = None) -> List[FinishedProduct]:
        query = self.db.query(FinishedProduct).options(selectinload(FinishedProduct.bom_lines))
        if status:
            query = query.filter(FinishedProduct.status == status)
        return query.order_by(FinishedProduct.id).all()

    def create_finished_product(
        self,
        *,
        code: str,
        name: str,
        sell_price=0,
        estimated_production_time: int = 0,
        category: str = ProcessType.SMD.value,
        status: str = FinishedProductStatus.ACTIVE.value,
        description: Optional[str] = None,
        bom_lines: Optional[List[Dict[str, Any]]] = None,
    ) -> FinishedProduct:
        code = (code or "").strip()
        name = (name or "").strip()
        if not code:
            raise ValidationError("Finished product code is required", field="code")
        if not name:
            raise ValidationError("Finished product name is required", field="name")
        _validate_status(status)
        _validate_category(category)

        if self.db.query(FinishedProduct).filter(FinishedProduct.code == code).first():
            raise DuplicateError("FinishedProduct", field="code", value=code)

        product = FinishedProduct(
            code=code,
            name=name,
            description=description,
            category=category,
            estimated_production_time=max(0, int(estimated_production_time or 0)),
            sell_price=Decimal(str(sell_price or 0)),
            status=status,
        )
        self.db.add(product)
        self.db.flush()

        for line in bom_lines or []:
            self._build_line(product, **line)

        self.db.commit()
        self.db.refresh(product)
        logger.info(
            "Finished product created",
            extra={"finished_product_id": product.id, "code": product.code, "bom_lines": len(product.bom_lines)},
        )
        return product

    def update_finished_product(self, finished_product_id: int, **changes) -> FinishedProduct:
        product = self.require_finished_product(finished_product_id)

        if "code" in changes and changes["code"] is not None:
            code = changes.pop("code").strip()
            if not code:
                raise ValidationError("Finished product code is required", field="code")
            clash = (
                self.db.query(FinishedProduct)
                .filter(FinishedProduct.code == code, FinishedProduct.id != product.id)
                .first()
            )
            if clash:
                raise DuplicateError("FinishedProduct", field="code", value=code)
            product.code = code

        if "name" in changes and changes["name"] is not None and not changes["name"].strip():
            raise ValidationError("Finished product name is required", field="name")
        _validate_status(changes.get("status"))
        _validate_category(changes.get("category"))

        for field in PRODUCT_FIELDS:
            if field in changes and changes[field] is not None:
                value = changes[field]
                if field == "sell_price":
                    value = Decimal(str(value))
                elif field == "estimated_production_time":
                    value = max(0, int(value))
                setattr(product, field, value)

        product.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(product)
        logger.info("Finished product updated", extra={"finished_product_id": product.id})
        return product

    def delete_finished_product(self, finished_product_id: int) -> None:
        product = self.require_finished_product(finished_product_id)

        active_orders = (
            self.db.query(ProductionOrder)
            .filter(
                ProductionOrder.finished_product_id == product.id,
                ProductionOrder.status.in_([s.value for s in ACTIVE_PRODUCTION_ORDER_STATUSES]),
            )
            .count()
        )
        if active_orders:
            raise BusinessRuleError(
                f"Finished product {product.code} has {active_orders} active production order(s)",
                rule="no_delete_with_active_orders",
                details={"finished_product_id": product.id, "active_orders": active_orders},
            )

        self.db.delete(product)
        self.db.commit()
        logger.info("Finished product deleted", extra={"finished_product_id": finished_product_id})

    # ------------------------------------------------------------------
    # BOM lines
    # ------------------------------------------------------------------

    def _build_line(
        self,
        product: FinishedProduct,
        *,
        component_id: int,
        quantity: int,
        process: str = ProcessType.SMD.value,
        position: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> BOMLine:
        _validate_line_quantity(quantity)
        _validate_process(process)
        if self.db.get(Component, component_id) is None:
            raise NotFoundError("Component", component_id)

        line = BOMLine(
            finished_product_id=product.id,
            component_id=component_id,
            quantity=int(quantity),
            process=process,
            position=position,
            notes=notes,
        )
        product.bom_lines.append(line)
        self.db.flush()
        return line

    def add_bom_line(self, finished_product_id: int, **line) -> BOMLine:
        product = self.require_finished_product(finished_product_id)
        bom_line = self._build_line(product, **line)
        product.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(bom_line)
        logger.info(
            "BOM line added",
            extra={
                "finished_product_id": product.id,
                "bom_line_id": bom_line.id,
                "component_id": bom_line.component_id,
            },
        )
        return bom_line

    def _require_line(self, finished_product_id: int, line_id: int) -> BOMLine:
        line = (
            self.db.query(BOMLine)
            .filter(BOMLine.id == line_id, BOMLine.finished_product_id == finished_product_id)
            .first()
        )
        if line is None:
            raise NotFoundError("BOMLine", line_id)
        return line

    def update_bom_line(self, finished_product_id: int, line_id: int, **changes) -> BOMLine:
        self.require_finished_product(finished_product_id)
        line = self._require_line(finished_product_id, line_id)

        if changes.get("quantity") is not None:
            _validate_line_quantity(changes["quantity"])
        _validate_process(changes.get("process"))
        if changes.get("component_id") is not None:
            if self.db.get(Component, changes["component_id"]) is None:
                raise NotFoundError("Component", changes["component_id"])
            line.component_id = changes["component_id"]

        for field in BOM_LINE_FIELDS:
            if field in changes and changes[field] is not None:
                setattr(line, field, int(changes[field]) if field == "quantity" else changes[field])

        line.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(line)
        logger.info(
            "BOM line updated",
            extra={"finished_product_id": finished_product_id, "bom_line_id": line.id},
        )
        return line

    def remove_bom_line(self, finished_product_id: int, line_id: int) -> None:
        product = self.require_finished_product(finished_product_id)
        line = self._require_line(finished_product_id, line_id)
        product.bom_lines.remove(line)
        product.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info(
            "BOM line removed",
            extra={"finished_product_id": finished_product_id, "bom_line_id": line_id},
        )

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_production_data(self) -> Dict[str, Any]:
        products = []
        for product in self.list_finished_products():
            products.append({
                "code": product.code,
                "name": product.name,
                "description": product.description,
                "category": product.category,
                "estimated_production_time": product.estimated_production_time,
                "sell_price": str(product.sell_price),
                "status": product.status,
                "bom": [
                    {
                        "component_id": line.component_id,
                        "quantity": line.quantity,
                        "process": line.process,
                        "position": line.position,
                        "notes": line.notes,
                    }
                    for line in product.bom_lines
                ],
            })
        return {
            "finished_products": products,
            "exported_at": datetime.utcnow().isoformat(),
            "version": EXPORT_VERSION,
        }

    def import_production_data(self, data: Any) -> bool:
        """
        Replace the catalog with an exported document.

        Returns False (nothing changed) when the document is malformed, repeats
        a product code or references unknown components.
        """
        if not isinstance(data, dict) or not isinstance(data.get("finished_products"), list):
            logger.error("Production data import rejected: missing 'finished_products' list")
            return False

        try:
            self._clear_catalog()
            for entry in data["finished_products"]:
                if not isinstance(entry, dict):
                    raise ValidationError("Finished product entry must be an object")
                lines = entry.get("bom") or []
                product = FinishedProduct(
                    code=str(entry["code"]).strip(),
                    name=str(entry["name"]).strip(),
                    description=entry.get("description"),
                    category=entry.get("category") or ProcessType.SMD.value,
                    estimated_production_time=max(0, int(entry.get("estimated_production_time") or 0)),
                    sell_price=Decimal(str(entry.get("sell_price") or 0)),
                    status=entry.get("status") or FinishedProductStatus.ACTIVE.value,
                )
                _validate_status(product.status)
                _validate_category(product.category)
                self.db.add(product)
                self.db.flush()
                for line in lines:
                    self._build_line(
                        product,
                        component_id=int(line["component_id"]),
                        quantity=line["quantity"],
                        process=line.get("process") or ProcessType.SMD.value,
                        position=line.get("position"),
                        notes=line.get("notes"),
                    )
            self.db.commit()
        except (
            KeyError,
            TypeError,
            ValueError,
            InvalidOperation,
            IntegrityError,
            ValidationError,
            NotFoundError,
        ) as e:
            self.db.rollback()
            logger.error(f"Production data import failed: {e}")
            return False

        logger.info(
            "Production data imported",
            extra={"finished_products": len(data["finished_products"])},
        )
        return True

    def clear_production_data(self) -> None:
        self._clear_catalog()
        self.db.commit()
        logger.info("Production data cleared")

    def _clear_catalog(self) -> None:
        """Delete every finished product. Refused while any production order references one."""
        referenced = {
            row[0]
            for row in self.db.query(ProductionOrder.finished_product_id).distinct().all()
        }
        if referenced:
            raise BusinessRuleError(
                "Cannot clear catalog while production orders reference finished products",
                rule="no_clear_with_orders",
                details={"finished_product_ids": sorted(referenced)},
            )
        for product in self.db.query(FinishedProduct).all():
            self.db.delete(product)
        self.db.flush()
