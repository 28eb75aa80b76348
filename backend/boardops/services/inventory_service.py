"""
Inventory Service

The single write path for component stock. Everything that changes
Component.quantity (order completion, purchase receipts, manual counts)
goes through here so that:
- quantities never go negative
- concurrent writers to the same component are serialized
- decrements are done in SQL (read-modify-write never happens in Python)

Readers get immutable ComponentSnapshot values. A snapshot is only valid for
the call that produced it; re-read before any mutating decision.
"""
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Protocol

from sqlalchemy import case
from sqlalchemy.orm import Session

from boardops.exceptions import NotFoundError, ValidationError
from boardops.logging_config import get_logger
from boardops.models.component import Component

logger = get_logger(__name__)


@dataclass(frozen=True)
class ComponentSnapshot:
    """Point-in-time view of one component's stock and pricing"""
    id: int
    quantity: int
    min_stock: int
    unit_cost: Decimal
    sell_price: Decimal
    sku: str = ""
    name: str = ""


class InventoryAccessor(Protocol):
    """What the planning engine needs from the inventory store."""

    def get_component(self, component_id: int) -> Optional[ComponentSnapshot]:
        ...

    def set_quantity(self, component_id: int, new_quantity: int) -> None:
        ...


# ============================================================================
# Per-component locks
# ============================================================================

_component_locks: Dict[int, threading.Lock] = {}
_registry_lock = threading.Lock()


@contextmanager
def component_lock(component_id: int) -> Iterator[None]:
    """Serialize in-process writers of one component's quantity."""
    with _registry_lock:
        lock = _component_locks.setdefault(component_id, threading.Lock())
    with lock:
        yield


def non_negative(value) -> int:
    """Coerce a stored quantity/threshold to an int, treating negatives as 0."""
    if value is None:
        return 0
    return max(0, int(value))


def to_snapshot(component: Component) -> ComponentSnapshot:
    return ComponentSnapshot(
        id=component.id,
        quantity=non_negative(component.quantity),
        min_stock=non_negative(component.min_stock),
        unit_cost=Decimal(str(component.unit_cost or 0)),
        sell_price=Decimal(str(component.sell_price or 0)),
        sku=component.sku or "",
        name=component.name or "",
    )


class InventoryService:
    """SQLAlchemy-backed inventory accessor.

    Mutating methods flush but do not commit; the calling service owns the
    transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_component(self, component_id: int) -> Optional[ComponentSnapshot]:
        component = self.db.get(Component, component_id)
        if component is None:
            return None
        return to_snapshot(component)

    def require_component(self, component_id: int) -> Component:
        component = self.db.get(Component, component_id)
        if component is None:
            raise NotFoundError("Component", component_id)
        return component

    def snapshot(self, component_ids: Optional[Iterable[int]] = None) -> Dict[int, ComponentSnapshot]:
        """Current stock keyed by component id (all components when ids is None)."""
        query = self.db.query(Component)
        if component_ids is not None:
            ids = set(component_ids)
            if not ids:
                return {}
            query = query.filter(Component.id.in_(ids))
        return {c.id: to_snapshot(c) for c in query.all()}

    def list_components(self, active_only: bool = True) -> List[ComponentSnapshot]:
        query = self.db.query(Component)
        if active_only:
            query = query.filter(Component.active.is_(True))
        return [to_snapshot(c) for c in query.order_by(Component.id).all()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_quantity(self, component_id: int, new_quantity: int) -> None:
        """Overwrite stock (physical count, manual correction)."""
        if new_quantity is None or int(new_quantity) < 0:
            raise ValidationError(
                "Component quantity cannot be negative", field="quantity", value=new_quantity
            )
        with component_lock(component_id):
            self.require_component(component_id)
            self.db.query(Component).filter(Component.id == component_id).update(
                {Component.quantity: int(new_quantity)}, synchronize_session=False
            )
            self.db.flush()
            self._reload(component_id)
        logger.info(
            "Component quantity set",
            extra={"component_id": component_id, "quantity": int(new_quantity)},
        )

    def consume(self, component_id: int, quantity: int) -> int:
        """
        Decrement stock by `quantity`, floored at zero.

        The decrement is a single conditional UPDATE, so two orders completing
        against the same component cannot overwrite each other's result.

        Returns:
            The quantity actually drawn (less than requested when stock ran out)
        """
        quantity = non_negative(quantity)
        with component_lock(component_id):
            current = (
                self.db.query(Component.quantity)
                .filter(Component.id == component_id)
                .with_for_update()
                .scalar()
            )
            if current is None:
                raise NotFoundError("Component", component_id)

            self.db.query(Component).filter(Component.id == component_id).update(
                {
                    Component.quantity: case(
                        (Component.quantity > quantity, Component.quantity - quantity),
                        else_=0,
                    )
                },
                synchronize_session=False,
            )
            self.db.flush()
            component = self._reload(component_id)

        drawn = min(non_negative(current), quantity)
        if drawn < quantity:
            logger.warning(
                f"Component {component_id} short by {quantity - drawn}: stock floored at zero",
                extra={"component_id": component_id, "requested": quantity, "drawn": drawn},
            )
        logger.debug(
            "Component consumed",
            extra={"component_id": component_id, "drawn": drawn, "remaining": component.quantity},
        )
        return drawn

    def receive(self, component_id: int, quantity: int) -> int:
        """Increment stock (purchase receipt). Returns the new quantity."""
        if quantity is None or int(quantity) <= 0:
            raise ValidationError(
                "Received quantity must be positive", field="quantity", value=quantity
            )
        with component_lock(component_id):
            self.require_component(component_id)
            self.db.query(Component).filter(Component.id == component_id).update(
                {Component.quantity: Component.quantity + int(quantity)},
                synchronize_session=False,
            )
            self.db.flush()
            component = self._reload(component_id)
        logger.info(
            "Component stock received",
            extra={"component_id": component_id, "received": int(quantity), "quantity": component.quantity},
        )
        return component.quantity

    def _reload(self, component_id: int) -> Component:
        """Refresh the identity-map copy after a SQL-side update."""
        return (
            self.db.query(Component)
            .filter(Component.id == component_id)
            .populate_existing()
            .one()
        )
