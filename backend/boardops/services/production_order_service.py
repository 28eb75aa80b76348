"""
Production Order Service

Owns the production order lifecycle and the per-order component ledger:

    PLANNED → IN_PROGRESS → COMPLETED
    PLANNED / IN_PROGRESS → CANCELLED

- create() explodes the BOM into order items (frozen requirements)
- complete() consumes every item from inventory, floored at zero
- status changes are compare-and-set updates on the order row, so a lost
  race surfaces as an error instead of a double consumption
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from boardops.core.settings import get_settings
from boardops.core.status_config import (
    ACTIVE_PRODUCTION_ORDER_STATUSES,
    TERMINAL_PRODUCTION_ORDER_STATUSES,
    OrderItemStatus,
    ProductionOrderPriority,
    ProductionOrderStatus,
    get_allowed_production_order_transitions,
    is_valid_production_order_transition,
)
from boardops.exceptions import (
    ConcurrencyError,
    InsufficientInventoryError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from boardops.logging_config import get_logger
from boardops.models.production_order import ProductionOrder, ProductionOrderItem
from boardops.services.bom_service import BOMService
from boardops.services.inventory_service import InventoryService
from boardops.services.production_analysis import MissingComponent

logger = get_logger(__name__)

UPDATABLE_FIELDS = (
    "notes",
    "priority",
    "assigned_operator",
    "station",
    "planned_start_date",
    "planned_end_date",
    "estimated_duration",
)


@dataclass(frozen=True)
class AvailabilityReport:
    """Live stock check of an order's requirements (advisory only)"""
    order_id: int
    available: bool
    missing_components: Tuple[MissingComponent, ...] = ()


@dataclass
class ProductionMetrics:
    total_orders: int = 0
    active_orders: int = 0
    pending_orders: int = 0
    completed_today: int = 0
    average_completion_time: float = 0.0
    efficiency: float = 0.0
    on_time_delivery: float = 0.0
    counts_by_status: Dict[str, int] = field(default_factory=dict)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store timestamps as naive UTC, like the datetime.utcnow column defaults."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _validate_priority(priority: str) -> None:
    allowed = [p.value for p in ProductionOrderPriority]
    if priority not in allowed:
        raise ValidationError(
            f"Invalid priority '{priority}'. Must be one of: {', '.join(allowed)}",
            field="priority",
            value=priority,
        )


def _required_by_component(items) -> Dict[int, int]:
    """Total required quantity per component, in component id order.

    A BOM may list the same component on several lines, so stock checks
    must compare against the summed demand.
    """
    totals: Dict[int, int] = {}
    for item in sorted(items, key=lambda i: i.component_id):
        totals[item.component_id] = totals.get(item.component_id, 0) + item.required_quantity
    return totals


def _validate_schedule(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is None:
        raise ValidationError("Planned start date is required", field="planned_start_date")
    if end is None:
        raise ValidationError("Planned end date is required", field="planned_end_date")
    if end < start:
        raise ValidationError(
            "Planned end date cannot be before planned start date",
            field="planned_end_date",
            value=end.isoformat(),
        )


class ProductionOrderService:
    """Production order lifecycle, bound to one database session."""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.catalog = BOMService(db)
        self.inventory = InventoryService(db)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, order_id: int) -> ProductionOrder:
        order = (
            self.db.query(ProductionOrder)
            .options(selectinload(ProductionOrder.items))
            .filter(ProductionOrder.id == order_id)
            .first()
        )
        if order is None:
            raise NotFoundError("ProductionOrder", order_id)
        return order

    def list_orders(self) -> List[ProductionOrder]:
        return self.db.query(ProductionOrder).order_by(ProductionOrder.id).all()

    def list_by_status(self, status: str) -> List[ProductionOrder]:
        allowed = [s.value for s in ProductionOrderStatus]
        if status not in allowed:
            raise ValidationError(
                f"Invalid status '{status}'. Must be one of: {', '.join(allowed)}",
                field="status",
                value=status,
            )
        return (
            self.db.query(ProductionOrder)
            .filter(ProductionOrder.status == status)
            .order_by(ProductionOrder.id)
            .all()
        )

    def list_by_finished_product(self, finished_product_id: int) -> List[ProductionOrder]:
        return (
            self.db.query(ProductionOrder)
            .filter(ProductionOrder.finished_product_id == finished_product_id)
            .order_by(ProductionOrder.id)
            .all()
        )

    def list_active(self) -> List[ProductionOrder]:
        return (
            self.db.query(ProductionOrder)
            .filter(ProductionOrder.status.in_([s.value for s in ACTIVE_PRODUCTION_ORDER_STATUSES]))
            .order_by(ProductionOrder.id)
            .all()
        )

    def list_items(self, order_id: int) -> List[ProductionOrderItem]:
        return list(self.get_by_id(order_id).items)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def calculate_order_duration(self, finished_product_id: int, quantity: int) -> int:
        """Setup time plus per-unit build time, in minutes (0 for an unknown product)."""
        product = self.catalog.get_finished_product(finished_product_id)
        if product is None:
            return 0
        unit_time = product.estimated_production_time or self.settings.DEFAULT_UNIT_BUILD_MINUTES
        return self.settings.ORDER_SETUP_TIME_MINUTES + unit_time * max(0, int(quantity))

    def create(
        self,
        finished_product_id: int,
        quantity: int,
        planned_start_date: datetime,
        planned_end_date: datetime,
        priority: str = ProductionOrderPriority.MEDIUM.value,
        *,
        notes: Optional[str] = None,
        assigned_operator: Optional[str] = None,
        station: Optional[str] = None,
        estimated_duration: Optional[int] = None,
    ) -> ProductionOrder:
        """
        Create a PLANNED order and explode the BOM into its items.

        Component availability is not checked here: planning may precede
        procurement. Use check_availability() before starting.
        """
        if quantity is None or int(quantity) <= 0:
            raise ValidationError("Order quantity must be positive", field="quantity", value=quantity)
        quantity = int(quantity)
        _validate_priority(priority)
        planned_start_date = _naive_utc(planned_start_date)
        planned_end_date = _naive_utc(planned_end_date)
        _validate_schedule(planned_start_date, planned_end_date)

        product = self.catalog.get_finished_product(finished_product_id)
        if product is None:
            raise NotFoundError("FinishedProduct", finished_product_id)

        if estimated_duration is None:
            estimated_duration = self.calculate_order_duration(product.id, quantity)

        order = ProductionOrder(
            finished_product_id=product.id,
            quantity=quantity,
            status=ProductionOrderStatus.PLANNED.value,
            priority=priority,
            planned_start_date=planned_start_date,
            planned_end_date=planned_end_date,
            estimated_duration=max(0, int(estimated_duration)),
            notes=notes,
            assigned_operator=assigned_operator,
            station=station,
        )
        for line in product.bom:
            order.items.append(ProductionOrderItem(
                component_id=line.component_id,
                bom_line_id=line.id,
                required_quantity=line.quantity * quantity,
                allocated_quantity=0,
                consumed_quantity=0,
                shortfall_quantity=0,
                status=OrderItemStatus.PENDING.value,
            ))

        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)

        if not product.bom:
            logger.warning(
                f"Production order {order.id} created for {product.code} with an empty BOM",
                extra={"order_id": order.id, "finished_product_id": product.id},
            )
        logger.info(
            "Production order created",
            extra={
                "order_id": order.id,
                "finished_product_id": product.id,
                "quantity": quantity,
                "items": len(order.items),
            },
        )
        return order

    def update_order(self, order_id: int, **changes) -> ProductionOrder:
        """Edit scheduling/assignment fields of a non-terminal order. Status is never changed here."""
        order = self.get_by_id(order_id)
        if order.is_terminal:
            raise InvalidTransitionError(
                "ProductionOrder",
                order.id,
                action="update",
                current_state=order.status,
                allowed_states=sorted(s.value for s in ACTIVE_PRODUCTION_ORDER_STATUSES),
            )

        if changes.get("priority") is not None:
            _validate_priority(changes["priority"])
        for key in ("planned_start_date", "planned_end_date"):
            if changes.get(key) is not None:
                changes[key] = _naive_utc(changes[key])
        _validate_schedule(
            changes.get("planned_start_date") or order.planned_start_date,
            changes.get("planned_end_date") or order.planned_end_date,
        )
        if changes.get("estimated_duration") is not None and int(changes["estimated_duration"]) < 0:
            raise ValidationError(
                "Estimated duration cannot be negative",
                field="estimated_duration",
                value=changes["estimated_duration"],
            )

        for key in UPDATABLE_FIELDS:
            if key in changes and changes[key] is not None:
                setattr(order, key, changes[key])
        order.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(order)
        logger.info("Production order updated", extra={"order_id": order.id})
        return order

    def delete_order(self, order_id: int) -> None:
        """Remove a COMPLETED or CANCELLED order and its items."""
        order = self.get_by_id(order_id)
        if not order.is_terminal:
            raise InvalidTransitionError(
                "ProductionOrder",
                order.id,
                action="delete",
                current_state=order.status,
                allowed_states=sorted(s.value for s in TERMINAL_PRODUCTION_ORDER_STATUSES),
            )
        self.db.delete(order)
        self.db.commit()
        logger.info("Production order deleted", extra={"order_id": order_id})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _require_transition(self, order: ProductionOrder, new_status: ProductionOrderStatus, action: str) -> None:
        if not is_valid_production_order_transition(order.status, new_status):
            allowed_from = sorted(
                s.value for s in ProductionOrderStatus
                if is_valid_production_order_transition(s, new_status)
            )
            raise InvalidTransitionError(
                "ProductionOrder",
                order.id,
                action=action,
                current_state=order.status,
                allowed_states=allowed_from,
                details={"allowed_transitions": get_allowed_production_order_transitions(order.status)},
            )

    def _compare_and_set(self, order: ProductionOrder, new_status: ProductionOrderStatus, **values) -> None:
        """
        Move the order row to new_status only if it is still in the status we read.

        Raises ConcurrencyError when another session changed it first.
        """
        expected = order.status
        values["status"] = new_status.value
        values["updated_at"] = datetime.utcnow()
        updated = (
            self.db.query(ProductionOrder)
            .filter(ProductionOrder.id == order.id, ProductionOrder.status == expected)
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            self.db.rollback()
            raise ConcurrencyError("ProductionOrder", order.id, expected_state=expected)

    def _finish(self, order_id: int) -> ProductionOrder:
        self.db.commit()
        order = self.get_by_id(order_id)
        self.db.refresh(order)
        return order

    def start(self, order_id: int) -> ProductionOrder:
        order = self.get_by_id(order_id)
        self._require_transition(order, ProductionOrderStatus.IN_PROGRESS, "start")

        self._compare_and_set(order, ProductionOrderStatus.IN_PROGRESS, actual_start_date=datetime.utcnow())
        order = self._finish(order_id)
        logger.info("Production order started", extra={"order_id": order.id})
        return order

    def cancel(self, order_id: int) -> ProductionOrder:
        """Cancel a PLANNED or IN_PROGRESS order. Nothing was reserved, so nothing is released."""
        order = self.get_by_id(order_id)
        self._require_transition(order, ProductionOrderStatus.CANCELLED, "cancel")

        previous = order.status
        self._compare_and_set(order, ProductionOrderStatus.CANCELLED)
        order = self._finish(order_id)
        logger.info(
            "Production order cancelled",
            extra={"order_id": order.id, "previous_status": previous},
        )
        return order

    def complete(self, order_id: int) -> ProductionOrder:
        """
        Complete an IN_PROGRESS order, consuming every item from inventory.

        Each component is decremented by the item's required quantity,
        floored at zero. Items are recorded as fully consumed; whatever could
        not actually be drawn is kept in shortfall_quantity. With
        STRICT_COMPLETION the order is rejected before any stock moves.

        Raises:
            NotFoundError: order or a referenced component does not exist
            InvalidTransitionError: order is not IN_PROGRESS
            InsufficientInventoryError: strict mode and some item is short
            ConcurrencyError: another session completed/cancelled it first
        """
        order = self.get_by_id(order_id)
        self._require_transition(order, ProductionOrderStatus.COMPLETED, "complete")

        # Lock order is by component id across all orders
        items = sorted(order.items, key=lambda i: (i.component_id, i.id))

        stock = self.inventory.snapshot(i.component_id for i in items)
        for item in items:
            if item.component_id not in stock:
                raise NotFoundError("Component", item.component_id)

        if self.settings.STRICT_COMPLETION:
            shortages = [
                {
                    "component_id": component_id,
                    "required": required,
                    "available": stock[component_id].quantity,
                }
                for component_id, required in _required_by_component(items).items()
                if stock[component_id].quantity < required
            ]
            if shortages:
                logger.warning(
                    f"Completion of production order {order.id} rejected: insufficient stock",
                    extra={"order_id": order.id, "shortages": shortages},
                )
                raise InsufficientInventoryError(order.id, shortages=shortages)

        now = datetime.utcnow()
        try:
            self._compare_and_set(order, ProductionOrderStatus.COMPLETED, actual_end_date=now)

            total_shortfall = 0
            for item in items:
                drawn = self.inventory.consume(item.component_id, item.required_quantity)
                item.consumed_quantity = item.required_quantity
                item.shortfall_quantity = item.required_quantity - drawn
                item.status = OrderItemStatus.CONSUMED.value
                item.consumed_at = now
                total_shortfall += item.shortfall_quantity

            order = self._finish(order_id)
        except ConcurrencyError:
            # _compare_and_set already rolled back
            raise
        except Exception:
            self.db.rollback()
            raise

        if total_shortfall:
            logger.warning(
                f"Production order {order.id} completed with {total_shortfall} unit(s) not in stock",
                extra={"order_id": order.id, "shortfall": total_shortfall},
            )
        logger.info(
            "Production order completed",
            extra={"order_id": order.id, "items_consumed": len(items)},
        )
        return order

    # ------------------------------------------------------------------
    # Availability & metrics
    # ------------------------------------------------------------------

    def check_availability(self, order_id: int) -> AvailabilityReport:
        """Compare the order's summed requirement per component with live stock. Read-only."""
        order = self.get_by_id(order_id)
        required = _required_by_component(order.items)
        stock = self.inventory.snapshot(required)

        missing = []
        for component_id, needed in required.items():
            component = stock.get(component_id)
            available = component.quantity if component else 0
            if available < needed:
                missing.append(MissingComponent(
                    component_id=component_id,
                    needed=needed,
                    available=available,
                    missing=needed - available,
                ))

        return AvailabilityReport(
            order_id=order.id,
            available=not missing,
            missing_components=tuple(missing),
        )

    def metrics(self, now: Optional[datetime] = None) -> ProductionMetrics:
        """Rollup over all orders, recomputed on every call."""
        now = _naive_utc(now) or datetime.utcnow()
        start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        orders = self.db.query(ProductionOrder).all()

        counts = {s.value: 0 for s in ProductionOrderStatus}
        for order in orders:
            counts[order.status] = counts.get(order.status, 0) + 1

        completed = [
            o for o in orders
            if o.status == ProductionOrderStatus.COMPLETED.value
            and o.actual_start_date and o.actual_end_date
        ]
        completed_today = sum(
            1 for o in orders
            if o.status == ProductionOrderStatus.COMPLETED.value
            and o.actual_end_date and o.actual_end_date >= start_of_today
        )

        average_completion = 0.0
        on_time = 0.0
        efficiency = 0.0
        if completed:
            durations = [o.actual_duration_minutes for o in completed]
            average_completion = sum(durations) / len(completed)
            on_time = sum(1 for o in completed if o.is_on_time) / len(completed) * 100

            ratios = []
            for order, actual in zip(completed, durations):
                if actual <= 0:
                    # Finished instantly: counts as on plan
                    ratios.append(100.0)
                else:
                    ratios.append(order.estimated_duration / actual * 100)
            efficiency = min(100.0, sum(ratios) / len(ratios))

        return ProductionMetrics(
            total_orders=len(orders),
            active_orders=counts[ProductionOrderStatus.IN_PROGRESS.value],
            pending_orders=counts[ProductionOrderStatus.PLANNED.value],
            completed_today=completed_today,
            average_completion_time=round(average_completion, 2),
            efficiency=round(efficiency, 2),
            on_time_delivery=round(on_time, 2),
            counts_by_status=counts,
        )
