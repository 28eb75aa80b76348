"""
Production Analysis

Explodes a finished product's BOM against an inventory snapshot:
how many units can be built, which components are short, what one unit
costs and what margin it leaves.

`analyze()` is a pure function. Results are immutable and only describe the
snapshot they were computed from; inventory may change right after, so never
store an analysis or act on it without re-reading stock.
"""
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from boardops.core.settings import get_settings
from boardops.core.status_config import FinishedProductStatus
from boardops.logging_config import get_logger
from boardops.services.bom_service import BOMService, FinishedProductSnapshot
from boardops.services.inventory_service import ComponentSnapshot, InventoryService, non_negative

logger = get_logger(__name__)

HUNDRED = Decimal("100")
MARGIN_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class MissingComponent:
    component_id: int
    needed: int
    available: int
    missing: int


@dataclass(frozen=True)
class ProductionAnalysis:
    """Producibility of one finished product against one inventory snapshot"""
    finished_product_id: int
    max_producible: int
    missing_components: Tuple[MissingComponent, ...] = field(default_factory=tuple)
    total_cost: Decimal = Decimal("0")
    profit_margin: Decimal = Decimal("0")

    @property
    def can_produce(self) -> bool:
        return self.max_producible > 0


def profit_margin(sell_price: Decimal, total_cost: Decimal) -> Decimal:
    """Margin as a percentage of sell price (0 when there is no price)."""
    if sell_price <= 0:
        return Decimal("0")
    return ((sell_price - total_cost) / sell_price * HUNDRED).quantize(MARGIN_PLACES)


def analyze(
    product: FinishedProductSnapshot,
    inventory: Mapping[int, ComponentSnapshot],
) -> ProductionAnalysis:
    """
    Compute producibility, shortages, unit cost and margin.

    Args:
        product: Finished product with its BOM
        inventory: Component snapshots keyed by component id

    A BOM line whose component is not in the snapshot is skipped with a
    warning and counts toward neither max_producible nor total_cost.
    """
    max_producible: Optional[int] = None
    total_cost = Decimal("0")
    missing: List[MissingComponent] = []

    for line in product.bom:
        component = inventory.get(line.component_id)
        if component is None:
            logger.warning(
                f"Component {line.component_id} of BOM line {line.id} not found, skipping",
                extra={"finished_product_id": product.id, "component_id": line.component_id},
            )
            continue

        needed = non_negative(line.quantity)
        available = non_negative(component.quantity)
        can_build = available // needed if needed > 0 else 0

        max_producible = can_build if max_producible is None else min(max_producible, can_build)
        total_cost += component.unit_cost * needed

        if can_build == 0:
            missing.append(MissingComponent(
                component_id=component.id,
                needed=needed,
                available=available,
                missing=max(0, needed - available),
            ))

    return ProductionAnalysis(
        finished_product_id=product.id,
        max_producible=max_producible or 0,
        missing_components=tuple(missing),
        total_cost=total_cost,
        profit_margin=profit_margin(product.sell_price, total_cost),
    )


def analyze_production(db: Session, finished_product_id: int) -> Optional[ProductionAnalysis]:
    """Analyze one finished product against live stock (None if the product does not exist)."""
    product = BOMService(db).get_finished_product(finished_product_id)
    if product is None:
        return None
    inventory = InventoryService(db).snapshot(line.component_id for line in product.bom)
    return analyze(product, inventory)


def get_dashboard_data(db: Session) -> Dict[str, Any]:
    """
    Catalog-wide production rollup.

    Returns totals, the components referenced by the most BOMs and the
    current build capacity of every ACTIVE product (largest first).
    """
    settings = get_settings()
    products = BOMService(db).list_snapshots()
    inventory = InventoryService(db).snapshot(
        {line.component_id for p in products for line in p.bom}
    )

    usage: Counter = Counter()
    for product in products:
        for line in product.bom:
            usage[line.component_id] += 1

    # Counter.most_common keeps first-seen order among equal counts
    most_used = [
        {"component_id": component_id, "usage_count": count}
        for component_id, count in usage.most_common(settings.DASHBOARD_TOP_COMPONENTS)
    ]

    capacity = [
        {
            "finished_product_id": product.id,
            "max_producible": analyze(product, inventory).max_producible,
        }
        for product in products
        if product.status == FinishedProductStatus.ACTIVE.value
    ]
    capacity.sort(key=lambda row: row["max_producible"], reverse=True)

    return {
        "total_finished_products": len(products),
        "active_products": sum(1 for p in products if p.status == FinishedProductStatus.ACTIVE.value),
        "total_production_value": sum((p.sell_price for p in products), Decimal("0")),
        "most_used_components": most_used,
        "production_capacity": capacity,
    }
