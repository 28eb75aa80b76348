"""
Stock Alert Service

Derives shortage alerts and purchase suggestions from component stock.

Alert lifecycle:
- raised when a component is at or below its minimum stock and has no
  ACTIVE alert (at most one ACTIVE alert per component)
- resolved when stock rises back above the minimum, which only happens
  through a purchase receipt (production consumes components, it never
  produces them)
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from sqlalchemy.orm import Session

from boardops.core.settings import get_settings
from boardops.core.status_config import (
    URGENCY_RANK,
    PriceSource,
    PurchaseUrgency,
    StockAlertStatus,
    StockAlertType,
    SupplierStatus,
)
from boardops.exceptions import NotFoundError, ValidationError
from boardops.logging_config import get_logger
from boardops.models.stock_alert import StockAlert
from boardops.models.supplier import PriceHistory, Supplier
from boardops.services.inventory_service import ComponentSnapshot, InventoryService

logger = get_logger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    """Most recent price paid/quoted for a component"""
    supplier_id: int
    price: Decimal
    date: Optional[datetime] = None


class PriceHistoryAccessor(Protocol):
    def latest_price(self, component_id: int) -> Optional[PriceQuote]:
        ...


@dataclass(frozen=True)
class PurchaseSuggestion:
    component_id: int
    sku: str
    name: str
    current_stock: int
    min_stock: int
    suggested_quantity: int
    preferred_supplier_id: int
    preferred_supplier_name: str
    estimated_cost: Decimal
    urgency: str


def suggested_alert_quantity(min_stock: int) -> int:
    settings = get_settings()
    return max(min_stock * settings.ALERT_STOCK_MULTIPLIER, settings.ALERT_MIN_ORDER_QUANTITY)


def classify_urgency(quantity: int, min_stock: int) -> PurchaseUrgency:
    settings = get_settings()
    if quantity == 0:
        return PurchaseUrgency.CRITICAL
    if quantity < min_stock * settings.URGENCY_HIGH_RATIO:
        return PurchaseUrgency.HIGH
    if quantity < min_stock * settings.URGENCY_MEDIUM_RATIO:
        return PurchaseUrgency.MEDIUM
    return PurchaseUrgency.LOW


def scan(
    components: Iterable[ComponentSnapshot],
    active_alerts: Iterable[StockAlert],
    latest_price: Callable[[int], Optional[PriceQuote]],
) -> List[StockAlert]:
    """
    Build new (unsaved) alerts for components at or below minimum stock.

    Components that already have an ACTIVE alert are skipped; the caller
    persists the result alongside the existing alerts.
    """
    alerted = {
        a.component_id for a in active_alerts
        if a.status == StockAlertStatus.ACTIVE.value
    }
    new_alerts: List[StockAlert] = []

    for component in components:
        if component.quantity > component.min_stock or component.id in alerted:
            continue

        quote = latest_price(component.id)
        alert = StockAlert(
            component_id=component.id,
            alert_type=(
                StockAlertType.OUT_OF_STOCK.value if component.quantity == 0
                else StockAlertType.LOW_STOCK.value
            ),
            status=StockAlertStatus.ACTIVE.value,
            current_stock=component.quantity,
            min_stock=component.min_stock,
            suggested_order_quantity=suggested_alert_quantity(component.min_stock),
            preferred_supplier_id=quote.supplier_id if quote else None,
            created_at=datetime.utcnow(),
        )
        new_alerts.append(alert)
        alerted.add(component.id)

    return new_alerts


class StockAlertService:
    """Persisted stock alerts, price history lookups and purchase suggestions."""

    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)

    # ------------------------------------------------------------------
    # Price history
    # ------------------------------------------------------------------

    def latest_price(self, component_id: int) -> Optional[PriceQuote]:
        entry = (
            self.db.query(PriceHistory)
            .filter(PriceHistory.component_id == component_id)
            .order_by(PriceHistory.date.desc(), PriceHistory.id.desc())
            .first()
        )
        if entry is None:
            return None
        return PriceQuote(
            supplier_id=entry.supplier_id,
            price=Decimal(str(entry.price)),
            date=entry.date,
        )

    def record_price(
        self,
        component_id: int,
        supplier_id: int,
        price,
        quantity: int = 0,
        source: str = PriceSource.MANUAL.value,
        date: Optional[datetime] = None,
    ) -> PriceHistory:
        self.inventory.require_component(component_id)
        if self.db.get(Supplier, supplier_id) is None:
            raise NotFoundError("Supplier", supplier_id)
        price = Decimal(str(price))
        if price < 0:
            raise ValidationError("Price cannot be negative", field="price", value=price)
        allowed = [s.value for s in PriceSource]
        if source not in allowed:
            raise ValidationError(
                f"Invalid source '{source}'. Must be one of: {', '.join(allowed)}",
                field="source",
                value=source,
            )

        entry = PriceHistory(
            component_id=component_id,
            supplier_id=supplier_id,
            price=price,
            quantity=max(0, int(quantity or 0)),
            source=source,
            date=date or datetime.utcnow(),
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        logger.info(
            "Price recorded",
            extra={"component_id": component_id, "supplier_id": supplier_id, "price": price},
        )
        return entry

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def list_active_alerts(self) -> List[StockAlert]:
        return (
            self.db.query(StockAlert)
            .filter(StockAlert.status == StockAlertStatus.ACTIVE.value)
            .order_by(StockAlert.id)
            .all()
        )

    def refresh_alerts(self) -> List[StockAlert]:
        """Raise alerts for newly short components and return every ACTIVE alert."""
        active = self.list_active_alerts()
        new_alerts = scan(self.inventory.list_components(), active, self.latest_price)

        if new_alerts:
            self.db.add_all(new_alerts)
            self.db.commit()
            for alert in new_alerts:
                logger.info(
                    f"Stock alert raised: {alert.alert_type}",
                    extra={
                        "alert_id": alert.id,
                        "component_id": alert.component_id,
                        "current_stock": alert.current_stock,
                        "min_stock": alert.min_stock,
                    },
                )
            active = self.list_active_alerts()

        return active

    def _resolve(self, alerts: Iterable[StockAlert]) -> List[StockAlert]:
        now = datetime.utcnow()
        resolved = []
        for alert in alerts:
            alert.status = StockAlertStatus.RESOLVED.value
            alert.resolved_at = now
            resolved.append(alert)
        return resolved

    def receive_stock(self, component_id: int, quantity: int) -> Dict[str, object]:
        """
        Book a purchase receipt.

        Stock is incremented atomically; the component's ACTIVE alert is
        resolved once the new quantity exceeds its minimum stock.
        """
        try:
            new_quantity = self.inventory.receive(component_id, quantity)
            component = self.inventory.require_component(component_id)

            resolved: List[StockAlert] = []
            if new_quantity > (component.min_stock or 0):
                resolved = self._resolve(
                    self.db.query(StockAlert).filter(
                        StockAlert.component_id == component_id,
                        StockAlert.status == StockAlertStatus.ACTIVE.value,
                    ).all()
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if resolved:
            logger.info(
                "Stock alert resolved by receipt",
                extra={"component_id": component_id, "alert_ids": [a.id for a in resolved]},
            )
        return {
            "component_id": component_id,
            "quantity": new_quantity,
            "resolved_alert_ids": [a.id for a in resolved],
        }

    def resolve_recovered_alerts(self) -> List[StockAlert]:
        """Resolve ACTIVE alerts whose component is back above its minimum."""
        active = self.list_active_alerts()
        stock = self.inventory.snapshot(a.component_id for a in active)
        recovered = [
            a for a in active
            if a.component_id in stock
            and stock[a.component_id].quantity > stock[a.component_id].min_stock
        ]
        resolved = self._resolve(recovered)
        if resolved:
            self.db.commit()
            logger.info("Recovered stock alerts resolved", extra={"count": len(resolved)})
        return resolved

    # ------------------------------------------------------------------
    # Purchase suggestions
    # ------------------------------------------------------------------

    def _first_active_supplier(self) -> Optional[Supplier]:
        return (
            self.db.query(Supplier)
            .filter(Supplier.status == SupplierStatus.ACTIVE.value)
            .order_by(Supplier.id)
            .first()
        )

    def generate_purchase_suggestions(self) -> List[PurchaseSuggestion]:
        """
        Components to reorder, most urgent first.

        The preferred supplier is the one of the most recent price entry,
        falling back to the first ACTIVE supplier. Components for which no
        supplier can be resolved are left out.
        """
        settings = get_settings()
        fallback = self._first_active_supplier()
        suppliers = {s.id: s for s in self.db.query(Supplier).all()}

        suggestions: List[PurchaseSuggestion] = []
        for component in self.inventory.list_components():
            if component.quantity > component.min_stock:
                continue

            quantity = max(
                component.min_stock * settings.ALERT_STOCK_MULTIPLIER - component.quantity,
                settings.ALERT_MIN_ORDER_QUANTITY,
            )
            quote = self.latest_price(component.id)
            supplier = suppliers.get(quote.supplier_id) if quote else fallback
            if supplier is None:
                logger.debug(
                    f"No supplier for component {component.id}, purchase suggestion skipped",
                    extra={"component_id": component.id},
                )
                continue

            suggestions.append(PurchaseSuggestion(
                component_id=component.id,
                sku=component.sku,
                name=component.name,
                current_stock=component.quantity,
                min_stock=component.min_stock,
                suggested_quantity=quantity,
                preferred_supplier_id=supplier.id,
                preferred_supplier_name=supplier.name,
                estimated_cost=quote.price * quantity if quote else Decimal("0"),
                urgency=classify_urgency(component.quantity, component.min_stock).value,
            ))

        # Stable sort keeps component order within an urgency
        suggestions.sort(key=lambda s: URGENCY_RANK[s.urgency], reverse=True)
        return suggestions

